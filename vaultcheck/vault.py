from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from vaultcheck.chain import ChainClient, Signer
from vaultcheck.config import to_address
from vaultcheck.errors import TransactionFailed, Unauthorized
from vaultcheck.asset import TokenAmount


@dataclass(frozen=True)
class VaultSnapshot:
    name: str
    symbol: str
    decimals: int
    total_share_supply: int
    owner: str


class Vault:
    def __init__(self, chain: ChainClient, address: str, abi: list[dict]) -> None:
        self.chain = chain
        self.address = to_address(address)
        self.abi = abi

    def _read(self, method: str, *args: Any, block_identifier: int | None = None) -> Any:
        return self.chain.read(self.address, self.abi, method, args, block_identifier)

    def metadata(self) -> VaultSnapshot:
        return VaultSnapshot(
            name=str(self._read("name")),
            symbol=str(self._read("symbol")),
            decimals=int(self._read("decimals")),
            total_share_supply=int(self._read("totalSupply")),
            owner=to_address(self._read("owner")),
        )

    def owner(self) -> str:
        return to_address(self._read("owner"))

    def total_supply(self, block_identifier: int | None = None) -> int:
        return int(self._read("totalSupply", block_identifier=block_identifier))

    def share_balance_of(self, holder: str) -> TokenAmount:
        raw = self._read("balanceOf", to_address(holder))
        return TokenAmount(int(raw), int(self._read("decimals")))

    def enter(self, depositor: str, asset: str, asset_amount: int, beneficiary: str,
              shares_to_mint: int, signer: Signer) -> Any:
        args = [to_address(depositor), to_address(asset), int(asset_amount), to_address(beneficiary), int(shares_to_mint)]
        return self._privileged("enter", args, signer)

    def exit(self, withdrawer: str, asset: str, asset_amount: int, beneficiary: str,
             shares_to_burn: int, signer: Signer) -> Any:
        args = [to_address(withdrawer), to_address(asset), int(asset_amount), to_address(beneficiary), int(shares_to_burn)]
        return self._privileged("exit", args, signer)

    def _privileged(self, method: str, args: list, signer: Signer) -> Any:
        try:
            return self.chain.write(self.address, self.abi, method, args, signer)
        except TransactionFailed as e:
            if isinstance(e, Unauthorized) or to_address(signer.address) == self.owner():
                raise
            raise Unauthorized(method, f"{signer.address} is not the vault owner", e.tx_hash) from e
