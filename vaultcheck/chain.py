from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from eth_account import Account
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from vaultcheck import log
from vaultcheck.config import Config, to_address
from vaultcheck.errors import (
    ChainConnectionError,
    ConfirmationTimeout,
    ControlChannelError,
    ImpersonationError,
    TransactionFailed,
    VaultCheckError,
)


def decode_primitive(data: Any) -> Any:
    if isinstance(data, HexBytes):
        return data.to_0x_hex()
    if isinstance(data, bytes):
        return "0x" + data.hex()
    return data


@dataclass(frozen=True)
class Signer:
    address: str
    account: LocalAccount | None = None

    @property
    def impersonated(self) -> bool:
        return self.account is None


class ChainClient:
    """JSON-RPC access for reads, confirmed writes and test-chain control calls."""

    def __init__(self, config: Config, w3: Web3 | None = None) -> None:
        self.config = config
        self.w3 = w3 if w3 is not None else Web3(Web3.HTTPProvider(config.rpc_url))
        if not self.w3.is_connected():
            raise ChainConnectionError(f"Failed to connect to RPC at {config.rpc_url}")
        account = Account.from_key(config.private_key)
        self.wallet = Signer(address=account.address, account=account)
        self.trace: list[tuple[str, ...]] = []
        self._impersonated: str | None = None
        self._contracts: dict[str, Any] = {}

    def contract(self, address: str, abi: list[dict]) -> Any:
        address = to_address(address)
        if address not in self._contracts:
            self._contracts[address] = self.w3.eth.contract(address=address, abi=abi)
        return self._contracts[address]

    def block_number(self) -> int:
        return self.w3.eth.block_number

    def read(self, address: str, abi: list[dict], method: str, args: list | tuple = (),
             block_identifier: int | str | None = None) -> Any:
        fn = getattr(self.contract(address, abi).functions, method)(*args)
        if block_identifier is None:
            return fn.call()
        return fn.call(block_identifier=block_identifier)

    def write(self, address: str, abi: list[dict], method: str, args: list | tuple, signer: Signer) -> Any:
        fn = getattr(self.contract(address, abi).functions, method)(*args)
        self.trace.append(("write", method, signer.address))
        try:
            if signer.impersonated:
                tx_hash = fn.transact({"from": signer.address})
            else:
                tx = fn.build_transaction({
                    "from": signer.address,
                    "nonce": self.w3.eth.get_transaction_count(signer.address, "pending"),
                    "chainId": self.w3.eth.chain_id,
                })
                signed = signer.account.sign_transaction(tx)
                tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            raise TransactionFailed(method, str(e)) from e

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.config.confirmation_timeout
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(
                f"{method} not confirmed within {self.config.confirmation_timeout}s ({decode_primitive(tx_hash)})"
            ) from e

        if receipt["status"] != 1:
            raise TransactionFailed(method, tx_hash=decode_primitive(tx_hash))
        return receipt

    def _control(self, command: str, address: str) -> None:
        rpc_method = f"{self.config.control_namespace}_{command}"
        try:
            response = self.w3.provider.make_request(rpc_method, [address])
        except Exception as e:
            raise ControlChannelError(f"{rpc_method} failed: {e}") from e
        if not isinstance(response, dict) or response.get("error"):
            error = response.get("error") if isinstance(response, dict) else response
            raise ControlChannelError(
                f"{rpc_method} rejected by the node (not a forked test chain?): {error}"
            )
        self.trace.append((command, address))

    def begin_impersonation(self, address: str) -> Signer:
        address = to_address(address)
        if self._impersonated is not None:
            raise ImpersonationError(
                f"Cannot impersonate {address} while {self._impersonated} is still impersonated"
            )
        self._control("impersonateAccount", address)
        self._impersonated = address
        return Signer(address=address)

    def end_impersonation(self, address: str) -> None:
        address = to_address(address)
        if self._impersonated != address:
            raise ImpersonationError(f"{address} is not the impersonated account")
        try:
            self._control("stopImpersonatingAccount", address)
        finally:
            self._impersonated = None

    @contextmanager
    def impersonating(self, address: str) -> Iterator[Signer]:
        signer = self.begin_impersonation(address)
        try:
            yield signer
        except BaseException as e:
            try:
                self.end_impersonation(signer.address)
            except VaultCheckError as stop_error:
                log.error(f"{signer.address} action failed before its session could be closed: {e}")
                raise stop_error from e
            raise
        self.end_impersonation(signer.address)
