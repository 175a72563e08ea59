"""Pydantic schemas package."""

from .account import DeletionRequestCreate, DeletionRequestRead, UserRead
from .customer import CustomerCreate, CustomerRead, CustomerUpdate
from .payment import PaymentClaimRead, PaymentSubmitRequest, PaymentSubmitResponse, PaymentSummaryRead
from .payment_method import PaymentMethodCreate, PaymentMethodRead, PaymentMethodUpdate
from .shared_link import (
    ReversedTransactionRead,
    SharedLedgerRead,
    SharedLinkCreate,
    SharedLinkCreated,
    SharedLinkMetadata,
    SharedLinkRead,
    SharedLinkVerifyRequest,
)
from .transaction import LedgerSummaryRead, TransactionCreate, TransactionRead, TransactionUpdate

__all__ = [
    "CustomerCreate",
    "CustomerRead",
    "CustomerUpdate",
    "DeletionRequestCreate",
    "DeletionRequestRead",
    "LedgerSummaryRead",
    "PaymentClaimRead",
    "PaymentMethodCreate",
    "PaymentMethodRead",
    "PaymentMethodUpdate",
    "PaymentSubmitRequest",
    "PaymentSubmitResponse",
    "PaymentSummaryRead",
    "ReversedTransactionRead",
    "SharedLedgerRead",
    "SharedLinkCreate",
    "SharedLinkCreated",
    "SharedLinkMetadata",
    "SharedLinkRead",
    "SharedLinkVerifyRequest",
    "TransactionCreate",
    "TransactionRead",
    "TransactionUpdate",
    "UserRead",
]
