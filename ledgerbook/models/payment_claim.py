"""Payment claim ORM model."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerbook.models.base import Base, TimestampMixin
from ledgerbook.models.payment_method import PaymentMethodType


class PaymentClaimStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentClaim(TimestampMixin, Base):
    """A payer-asserted payment awaiting approval by the ledger owner or an admin."""

    __tablename__ = "payment_claims"
    __table_args__ = (
        Index("ix_payment_claims_owner_id", "owner_id"),
        Index("ix_payment_claims_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    shared_link_token: Mapped[str] = mapped_column(String(128), nullable=False)
    payer_phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    payment_method_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True
    )
    payment_method_type: Mapped[PaymentMethodType] = mapped_column(
        Enum(PaymentMethodType, name="payment_method_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    payment_method_label: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    payment_method_upi_id: Mapped[str | None] = mapped_column(String(255))
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    proof_image_key: Mapped[str] = mapped_column(String(512), nullable=False)
    status: Mapped[PaymentClaimStatus] = mapped_column(
        Enum(PaymentClaimStatus, name="payment_claim_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentClaimStatus.PENDING,
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    processed_by: Mapped[str | None] = mapped_column(String(36))
    transaction_id: Mapped[str | None] = mapped_column(String(36))

    owner = relationship("User", back_populates="payment_claims", foreign_keys=[owner_id])
    payment_method = relationship("PaymentMethod")


__all__ = ["PaymentClaim", "PaymentClaimStatus"]
