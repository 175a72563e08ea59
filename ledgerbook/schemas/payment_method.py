"""Pydantic schemas for payment methods."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ledgerbook.models import PaymentMethodType


class PaymentMethodCreate(BaseModel):
    type: PaymentMethodType
    upi_id: str | None = Field(default=None, max_length=255)
    qr_code: str | None = None
    label: str | None = Field(default=None, max_length=255)
    is_default: bool = False


class PaymentMethodUpdate(BaseModel):
    upi_id: str | None = Field(default=None, max_length=255)
    qr_code: str | None = None
    label: str | None = Field(default=None, max_length=255)
    is_default: bool | None = None


class PaymentMethodRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    type: PaymentMethodType
    upi_id: str | None
    qr_code: str | None
    label: str
    is_default: bool
    created_at: datetime


__all__ = ["PaymentMethodCreate", "PaymentMethodRead", "PaymentMethodUpdate"]
