"""Exception hierarchy shared by the ledger services."""
from __future__ import annotations


class LedgerError(RuntimeError):
    """Base class for ledger service errors."""


class NotFoundError(LedgerError):
    """Raised when a referenced record does not exist or is outside the caller's scope."""


class UnauthorizedError(LedgerError):
    """Raised when a shared link is redeemed with a phone number it was not issued for."""


class ForbiddenError(LedgerError):
    """Raised when the acting principal lacks the role or ownership an operation needs."""


class InvalidOrExpiredLinkError(LedgerError):
    """Raised for unknown, expired, or revoked shared link tokens.

    The three cases are deliberately indistinguishable to callers.
    """

    def __init__(self, message: str = "Shared link not found or expired") -> None:
        super().__init__(message)


class ConflictError(LedgerError):
    """Raised when a state transition is not allowed from the record's current state."""


class ConcurrencyError(ConflictError):
    """Raised when optimistic locking detects a concurrent update."""


class ValidationError(LedgerError):
    """Raised when a required field is missing or malformed."""


__all__ = [
    "ConcurrencyError",
    "ConflictError",
    "ForbiddenError",
    "InvalidOrExpiredLinkError",
    "LedgerError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
]
