"""Pydantic schemas for ledger transactions."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from ledgerbook.models import TransactionKind


class TransactionCreate(BaseModel):
    customer_id: str = Field(..., min_length=1, max_length=36)
    kind: TransactionKind
    amount: Decimal
    description: str | None = Field(default=None, max_length=1000)
    occurred_at: datetime | None = None


class TransactionUpdate(BaseModel):
    """Editable fields only; kind and customer are fixed at creation."""

    model_config = ConfigDict(extra="forbid")

    amount: Decimal | None = None
    description: str | None = Field(default=None, max_length=1000)
    occurred_at: datetime | None = None


class TransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    customer_id: str
    kind: TransactionKind
    amount: Decimal
    description: str
    occurred_at: datetime
    balance: Decimal
    created_at: datetime


class LedgerSummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_received: Decimal
    total_given: Decimal
    current_balance: Decimal
    aggregate_balance: Decimal


__all__ = ["LedgerSummaryRead", "TransactionCreate", "TransactionRead", "TransactionUpdate"]
