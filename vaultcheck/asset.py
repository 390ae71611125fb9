from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from vaultcheck.chain import ChainClient, Signer
from vaultcheck.config import to_address
from vaultcheck.formatting import format_units


ERC20_ABI = [
    {"inputs": [{"internalType": "address", "name": "account", "type": "address"}], "name": "balanceOf", "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"internalType": "address", "name": "spender", "type": "address"}, {"internalType": "uint256", "name": "amount", "type": "uint256"}], "name": "approve", "outputs": [{"internalType": "bool", "name": "", "type": "bool"}], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"internalType": "address", "name": "to", "type": "address"}, {"internalType": "uint256", "name": "amount", "type": "uint256"}], "name": "transfer", "outputs": [{"internalType": "bool", "name": "", "type": "bool"}], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [], "name": "decimals", "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}], "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "symbol", "outputs": [{"internalType": "string", "name": "", "type": "string"}], "stateMutability": "view", "type": "function"},
]


@dataclass(frozen=True)
class TokenAmount:
    amount: int
    decimals: int

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"Token amount cannot be negative: {self.amount}")

    def __int__(self) -> int:
        return self.amount

    def __str__(self) -> str:
        return format_units(self.amount, self.decimals)


class AssetToken:
    """ERC20 accessor. Every read goes to the chain."""

    def __init__(self, chain: ChainClient, address: str) -> None:
        self.chain = chain
        self.address = to_address(address)

    def _read(self, method: str, *args: Any) -> Any:
        return self.chain.read(self.address, ERC20_ABI, method, args)

    def decimals(self) -> int:
        return int(self._read("decimals"))

    def symbol(self) -> str:
        return str(self._read("symbol"))

    def balance_of(self, holder: str, block_identifier: int | None = None) -> TokenAmount:
        raw = self.chain.read(self.address, ERC20_ABI, "balanceOf", [to_address(holder)], block_identifier)
        return TokenAmount(int(raw), self.decimals())

    def approve(self, spender: str, amount: int, signer: Signer) -> Any:
        return self.chain.write(self.address, ERC20_ABI, "approve", [to_address(spender), int(amount)], signer)

    def transfer(self, to: str, amount: int, signer: Signer) -> Any:
        return self.chain.write(self.address, ERC20_ABI, "transfer", [to_address(to), int(amount)], signer)
