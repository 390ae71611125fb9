import pytest
from web3 import Web3

from vaultcheck.config import ABI_PATH, Config, load_abi, to_address
from vaultcheck.errors import ConfigInvalid, ConfigMissing, InvalidAddress

from conftest import PRIVATE_KEY


VAULT_LOWER = "0x" + "ab" * 20

BASE_ENV = {
    "RPC_URL": "http://127.0.0.1:8545",
    "PRIVATE_KEY": PRIVATE_KEY,
    "VAULT_ADDRESS": VAULT_LOWER,
}


def test_from_env_defaults():
    config = Config.from_env(environ=BASE_ENV)
    assert config.rpc_url == "http://127.0.0.1:8545"
    assert config.vault_address == Web3.to_checksum_address(VAULT_LOWER)
    assert config.asset_address == Web3.to_checksum_address("0x8236a87084f8b84306f72007f36f2618a5634494")
    assert config.asset_decimals == 8
    assert config.apy == 1.2
    assert config.control_namespace == "anvil"
    assert config.vault_abi_path == ABI_PATH


def test_missing_required_values_are_all_reported():
    with pytest.raises(ConfigMissing) as exc:
        Config.from_env(environ={"RPC_URL": "http://127.0.0.1:8545", "PRIVATE_KEY": "  "})
    assert exc.value.names == ["PRIVATE_KEY", "VAULT_ADDRESS"]


def test_optional_values_are_converted():
    env = dict(BASE_ENV, ASSET_DECIMALS="18", VAULT_APY="3.5", CONTROL_NAMESPACE="Hardhat",
               CONFIRMATION_TIMEOUT="30", DEFILLAMA_POOL="abc-123")
    config = Config.from_env(environ=env)
    assert config.asset_decimals == 18
    assert config.apy == 3.5
    assert config.control_namespace == "hardhat"
    assert config.confirmation_timeout == 30.0
    assert config.defillama_pool == "abc-123"


@pytest.mark.parametrize("name,value", [
    ("ASSET_DECIMALS", "eight"),
    ("VAULT_APY", "high"),
    ("CONTROL_NAMESPACE", "geth"),
    ("CONFIRMATION_TIMEOUT", "0"),
])
def test_invalid_optional_values(name, value):
    with pytest.raises(ConfigInvalid):
        Config.from_env(environ=dict(BASE_ENV, **{name: value}))


def test_invalid_vault_address():
    with pytest.raises(InvalidAddress):
        Config.from_env(environ=dict(BASE_ENV, VAULT_ADDRESS="0x1234"))


def test_to_address_normalizes_case():
    mixed = "0x79851BB0db6b03F348fA9c98ef5D23AD3B03b014"
    assert to_address(mixed.lower()) == to_address(mixed.upper().replace("0X", "0x"))


def test_from_env_reads_dotenv_file(tmp_path, monkeypatch):
    for name in BASE_ENV:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    env_file = tmp_path / ".env"
    env_file.write_text("".join(f"{k}={v}\n" for k, v in BASE_ENV.items()))

    config = Config.from_env(env_file)
    assert config.private_key == PRIVATE_KEY


def test_load_abi_is_cached():
    abi = load_abi(ABI_PATH)
    assert {entry["name"] for entry in abi} >= {"enter", "exit", "totalSupply", "owner"}
    assert load_abi(ABI_PATH) is abi


def test_to_address_ignores_bad_checksum_casing():
    bad_checksum = "0x79851bB0db6b03F348fA9c98ef5D23AD3B03b014"
    assert to_address(bad_checksum) == Web3.to_checksum_address(bad_checksum.lower())
    assert to_address(bad_checksum) != bad_checksum
    with pytest.raises(InvalidAddress):
        to_address("0x79851bB0db6b03F348fA9c98ef5D23AD3B03b01")
