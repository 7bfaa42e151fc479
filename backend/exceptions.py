"""
Custom exception classes for chain operations.
"""


class ChainError(Exception):
    """Base class for errors raised by the in-process chain."""
    pass


class ChainConnectionError(ChainError):
    """Raised when the configured network cannot be served."""
    pass


class InsufficientBalanceError(ChainError):
    """Raised when an account cannot cover the value attached to a transaction."""
    pass


class UnknownContractError(ChainError):
    """Raised when no contract is deployed at the requested address."""
    pass


class ContractRevert(ChainError):
    """
    Raised when contract execution reverts.

    Every state change made by the reverting transaction is rolled back.
    Subclasses pin a named revert reason so callers can branch on cause.
    """
    reason = "execution reverted"

    def __init__(self, reason: str | None = None):
        if reason is not None:
            self.reason = reason
        self.tx_hash: str | None = None
        super().__init__(self.reason)
