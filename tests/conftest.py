from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from vaultcheck.chain import ChainClient
from vaultcheck.config import Config, to_address
from vaultcheck.errors import ControlChannelError, TransactionFailed


# anvil default account #0
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
WALLET = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
VAULT = to_address("0x" + "11" * 20)
ASSET = to_address("0x8236a87084f8b84306f72007f36f2618a5634494")
FUNDER = to_address("0x79851BB0db6b03F348fA9c98ef5D23AD3B03b014")
OWNER = to_address("0x" + "22" * 20)


class FakeChain(ChainClient):
    """In-memory ERC20 + vault pair behind the ChainClient surface."""

    def __init__(self, config: Config, supports_control: bool = True) -> None:
        super().__init__(config, w3=MagicMock())
        self.supports_control = supports_control
        self.block = 100
        self.reads: list[tuple] = []
        self.token = {"symbol": "LBTC", "decimals": 8, "balances": {}, "allowances": {}}
        self.vault = {
            "name": "Lombard Vault", "symbol": "LBTCv", "decimals": 8,
            "owner": OWNER, "total_supply": 0, "balances": {},
        }

    def block_number(self) -> int:
        return self.block

    def _control(self, command: str, address: str) -> None:
        if not self.supports_control:
            raise ControlChannelError(f"anvil_{command} is not supported")
        self.trace.append((command, address))

    def read(self, address, abi, method, args=(), block_identifier=None):
        self.reads.append((address, method, tuple(args), block_identifier))
        if address == ASSET:
            if method == "balanceOf":
                return self.token["balances"].get(args[0], 0)
            return self.token[method]
        if address == VAULT:
            if method == "balanceOf":
                return self.vault["balances"].get(args[0], 0)
            if method == "totalSupply":
                return self.vault["total_supply"]
            return self.vault[method]
        raise AssertionError(f"unknown contract {address}")

    def write(self, address, abi, method, args, signer):
        self.trace.append(("write", method, signer.address))
        handler = getattr(self, f"_{'asset' if address == ASSET else 'vault'}_{method}")
        handler(signer.address, *args)
        self.block += 1
        return {"status": 1, "blockNumber": self.block}

    def _move(self, frm, to, amount, method):
        balances = self.token["balances"]
        if balances.get(frm, 0) < amount:
            raise TransactionFailed(method, "transfer amount exceeds balance")
        balances[frm] = balances.get(frm, 0) - amount
        balances[to] = balances.get(to, 0) + amount

    def _asset_transfer(self, sender, to, amount):
        self._move(sender, to, amount, "transfer")

    def _asset_approve(self, sender, spender, amount):
        self.token["allowances"][(sender, spender)] = amount

    def _only_owner(self, sender, method):
        if sender != self.vault["owner"]:
            raise TransactionFailed(method, "UNAUTHORIZED")

    def _vault_enter(self, sender, frm, asset, asset_amount, to, share_amount):
        self._only_owner(sender, "enter")
        allowance = self.token["allowances"].get((frm, VAULT), 0)
        if allowance < asset_amount:
            raise TransactionFailed("enter", "insufficient allowance")
        self.token["allowances"][(frm, VAULT)] = allowance - asset_amount
        self._move(frm, VAULT, asset_amount, "enter")
        self.vault["balances"][to] = self.vault["balances"].get(to, 0) + share_amount
        self.vault["total_supply"] += share_amount

    def _vault_exit(self, sender, to, asset, asset_amount, frm, share_amount):
        self._only_owner(sender, "exit")
        if self.vault["balances"].get(frm, 0) < share_amount:
            raise TransactionFailed("exit", "burn amount exceeds balance")
        self.vault["balances"][frm] -= share_amount
        self.vault["total_supply"] -= share_amount
        self._move(VAULT, to, asset_amount, "exit")


@pytest.fixture
def config():
    return Config(rpc_url="http://127.0.0.1:8545", private_key=PRIVATE_KEY, vault_address=VAULT)


@pytest.fixture
def chain(config):
    fake = FakeChain(config)
    fake.token["balances"][FUNDER] = 5_000_000
    fake.token["balances"][VAULT] = 5_000_000_000
    fake.vault["total_supply"] = 4_900_000_000
    return fake
