"""Exception hierarchy for the vault check run."""

from __future__ import annotations


class VaultCheckError(Exception):
    pass


class ConfigMissing(VaultCheckError):
    def __init__(self, names: list[str]) -> None:
        self.names = list(names)
        super().__init__(f"Missing required configuration: {', '.join(self.names)}")


class ConfigInvalid(VaultCheckError):
    pass


class InvalidAddress(VaultCheckError):
    pass


class InsufficientFunds(VaultCheckError):
    def __init__(self, holder: str, balance: int, required: int) -> None:
        self.holder = holder
        self.balance = balance
        self.required = required
        super().__init__(f"{holder} holds {balance}, needs at least {required}")


class TransactionFailed(VaultCheckError):
    def __init__(self, method: str, reason: str = "", tx_hash: str | None = None) -> None:
        self.method = method
        self.reason = reason
        self.tx_hash = tx_hash
        message = f"Transaction {method} reverted"
        if tx_hash:
            message += f" ({tx_hash})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class Unauthorized(TransactionFailed):
    pass


class ConfirmationTimeout(VaultCheckError):
    pass


class ControlChannelError(VaultCheckError):
    pass


class ChainConnectionError(VaultCheckError):
    pass


class ImpersonationError(VaultCheckError):
    pass


class BalanceMismatch(VaultCheckError):
    def __init__(self, label: str, expected: int, actual: int) -> None:
        self.label = label
        self.expected = expected
        self.actual = actual
        super().__init__(f"{label}: expected share balance {expected}, got {actual}")


class ArithmeticPreconditionError(ArithmeticError):
    """Share quote requested against a zero divisor. Never user-facing."""
