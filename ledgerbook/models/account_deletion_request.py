"""Account deletion request ORM model."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledgerbook.models.base import Base, TimestampMixin


class DeletionRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AccountDeletionRequest(TimestampMixin, Base):
    """A user's request to have their account and ledger data erased.

    The row is kept after approval as the record of the erasure, so ``user_id`` is a
    plain column rather than a foreign key.
    """

    __tablename__ = "account_deletion_requests"
    __table_args__ = (
        Index("ix_account_deletion_requests_user_id", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    user_phone: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    status: Mapped[DeletionRequestStatus] = mapped_column(
        Enum(DeletionRequestStatus, name="deletion_request_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DeletionRequestStatus.PENDING,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    processed_by: Mapped[str | None] = mapped_column(String(36))


__all__ = ["AccountDeletionRequest", "DeletionRequestStatus"]
