"""Pydantic schemas for shared ledger links."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from ledgerbook.models import TransactionKind


class SharedLinkCreate(BaseModel):
    mobile_number: str = Field(..., max_length=32)
    customer_id: str | None = Field(default=None, max_length=36)


class SharedLinkCreated(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    token: str
    mobile_number: str = Field(validation_alias="phone_number")
    customer_id: str | None
    expires_at: datetime
    share_url: str


class SharedLinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    token: str
    phone_number: str
    customer_id: str | None
    expires_at: datetime
    revoked_at: datetime | None
    created_at: datetime


class SharedLinkMetadata(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    owner_name: str
    owner_phone: str
    expires_at: datetime
    customer_scoped: bool


class SharedLinkVerifyRequest(BaseModel):
    phone_number: str = Field(..., max_length=32)


class ReversedTransactionRead(BaseModel):
    """A ledger row as the counterparty sees it."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    kind: TransactionKind
    amount: Decimal
    description: str
    occurred_at: datetime
    balance: Decimal


class SharedLedgerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    owner_name: str
    owner_phone: str
    customer_id: str | None
    transactions: list[ReversedTransactionRead]


__all__ = [
    "ReversedTransactionRead",
    "SharedLedgerRead",
    "SharedLinkCreate",
    "SharedLinkCreated",
    "SharedLinkMetadata",
    "SharedLinkRead",
    "SharedLinkVerifyRequest",
]
