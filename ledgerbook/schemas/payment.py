"""Pydantic schemas for payment claims."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from ledgerbook.models import PaymentClaimStatus, PaymentMethodType


class PaymentSubmitRequest(BaseModel):
    phone_number: str = Field(..., max_length=32)
    payment_method_id: str = Field(..., max_length=36)
    amount: Decimal | None = None
    notes: str | None = Field(default=None, max_length=1000)
    payment_proof: str | None = Field(default=None, description="Base64 image, optionally as a data URL")


class PaymentClaimRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    payer_phone_number: str
    amount: Decimal
    payment_method_id: str | None
    payment_method_type: PaymentMethodType
    payment_method_label: str
    payment_method_upi_id: str | None
    notes: str
    proof_image_key: str
    status: PaymentClaimStatus
    processed_at: datetime | None
    processed_by: str | None
    transaction_id: str | None
    created_at: datetime


class PaymentSubmitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Decimal
    status: PaymentClaimStatus
    created_at: datetime


class PaymentSummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_payments: int
    total_amount: Decimal
    completed: int
    pending: int
    failed: int


__all__ = ["PaymentClaimRead", "PaymentSubmitRequest", "PaymentSubmitResponse", "PaymentSummaryRead"]
