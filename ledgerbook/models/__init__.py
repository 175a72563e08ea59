"""ORM models package."""
from .account_deletion_request import AccountDeletionRequest, DeletionRequestStatus
from .audit_log import AuditLog
from .base import Base, TimestampMixin
from .customer import Customer
from .payment_claim import PaymentClaim, PaymentClaimStatus
from .payment_method import PaymentMethod, PaymentMethodType
from .shared_link import SharedLink
from .transaction import Transaction, TransactionKind
from .user import User, UserRole

__all__ = [
    "AccountDeletionRequest",
    "AuditLog",
    "Base",
    "Customer",
    "DeletionRequestStatus",
    "PaymentClaim",
    "PaymentClaimStatus",
    "PaymentMethod",
    "PaymentMethodType",
    "SharedLink",
    "TimestampMixin",
    "Transaction",
    "TransactionKind",
    "User",
    "UserRole",
]
