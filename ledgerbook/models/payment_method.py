"""Payment method ORM model."""
from __future__ import annotations

import enum
import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerbook.models.base import Base, TimestampMixin


class PaymentMethodType(str, enum.Enum):
    UPI = "upi"
    QR = "qr"

    @property
    def display_name(self) -> str:
        return "UPI" if self is PaymentMethodType.UPI else "QR Code"


class PaymentMethod(TimestampMixin, Base):
    """Where an owner accepts payments: a UPI id or a QR code image."""

    __tablename__ = "payment_methods"
    __table_args__ = (
        Index("ix_payment_methods_owner_id", "owner_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[PaymentMethodType] = mapped_column(
        Enum(PaymentMethodType, name="payment_method_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    upi_id: Mapped[str | None] = mapped_column(String(255))
    qr_code: Mapped[str | None] = mapped_column(Text)
    label: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    owner = relationship("User", back_populates="payment_methods")


__all__ = ["PaymentMethod", "PaymentMethodType"]
