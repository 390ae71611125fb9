from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path

from dotenv import load_dotenv
from web3 import Web3

from vaultcheck.errors import ConfigInvalid, ConfigMissing, InvalidAddress


LBTC = "0x8236a87084f8b84306f72007f36f2618a5634494"
FUNDING_HOLDER = "0x79851BB0db6b03F348fA9c98ef5D23AD3B03b014"
ABI_PATH = Path(__file__).resolve().parent.parent / "vault_abi.json"

REQUIRED_VARS = ("RPC_URL", "PRIVATE_KEY", "VAULT_ADDRESS")
CONTROL_NAMESPACES = ("anvil", "hardhat")


def to_address(value: str) -> str:
    value = str(value).strip()
    # checksum casing of the input is not trusted
    if not Web3.is_address(value.lower()):
        raise InvalidAddress(f"Not a valid address: {value!r}")
    return Web3.to_checksum_address(value.lower())


@dataclass(frozen=True)
class Config:
    rpc_url: str
    private_key: str
    vault_address: str
    vault_abi_path: Path = ABI_PATH
    asset_address: str = LBTC
    funding_address: str = FUNDING_HOLDER
    asset_decimals: int = 8
    min_funding: str = "0.01"
    funding_amount: str = "0.01"
    deposit_amount: str = "0.0000001"
    apy: float = 1.2
    defillama_pool: str | None = None
    defillama_field: str = "apy"
    control_namespace: str = "anvil"
    confirmation_timeout: float = 120.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "vault_address", to_address(self.vault_address))
        object.__setattr__(self, "asset_address", to_address(self.asset_address))
        object.__setattr__(self, "funding_address", to_address(self.funding_address))
        object.__setattr__(self, "vault_abi_path", Path(self.vault_abi_path))
        if self.control_namespace not in CONTROL_NAMESPACES:
            raise ConfigInvalid(
                f"CONTROL_NAMESPACE must be one of {', '.join(CONTROL_NAMESPACES)}, got {self.control_namespace!r}"
            )
        if self.confirmation_timeout <= 0:
            raise ConfigInvalid("CONFIRMATION_TIMEOUT must be positive")

    @classmethod
    def from_env(cls, env_file: str | os.PathLike | None = None, environ: dict[str, str] | None = None) -> Config:
        if environ is None:
            load_dotenv(env_file)
            environ = dict(os.environ)

        def get(name: str) -> str | None:
            value = environ.get(name)
            if value is None or not str(value).strip():
                return None
            return str(value).strip()

        missing = [name for name in REQUIRED_VARS if get(name) is None]
        if missing:
            raise ConfigMissing(missing)

        kwargs = {
            "rpc_url": get("RPC_URL"),
            "private_key": get("PRIVATE_KEY"),
            "vault_address": get("VAULT_ADDRESS"),
        }
        optional = {
            "VAULT_ABI_PATH": ("vault_abi_path", Path),
            "ASSET_ADDRESS": ("asset_address", str),
            "FUNDING_ADDRESS": ("funding_address", str),
            "ASSET_DECIMALS": ("asset_decimals", int),
            "VAULT_APY": ("apy", float),
            "DEFILLAMA_POOL": ("defillama_pool", str),
            "DEFILLAMA_FIELD": ("defillama_field", str),
            "CONTROL_NAMESPACE": ("control_namespace", str.lower),
            "CONFIRMATION_TIMEOUT": ("confirmation_timeout", float),
        }
        for var, (attr, convert) in optional.items():
            raw = get(var)
            if raw is None:
                continue
            try:
                kwargs[attr] = convert(raw)
            except ValueError as e:
                raise ConfigInvalid(f"{var}={raw!r}: {e}") from e

        return cls(**kwargs)

    @property
    def vault_abi(self) -> list[dict]:
        return load_abi(self.vault_abi_path)


_ABI_CACHE: dict[Path, list[dict]] = {}


def load_abi(path: str | os.PathLike) -> list[dict]:
    path = Path(path).resolve()
    if path not in _ABI_CACHE:
        with open(path, "r") as f:
            _ABI_CACHE[path] = json.load(f)
    return _ABI_CACHE[path]
