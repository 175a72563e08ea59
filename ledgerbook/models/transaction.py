"""Ledger transaction ORM model."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerbook.models.base import Base, TimestampMixin, utcnow


class TransactionKind(str, enum.Enum):
    GIVEN = "given"
    RECEIVED = "received"

    @property
    def opposite(self) -> "TransactionKind":
        return TransactionKind.RECEIVED if self is TransactionKind.GIVEN else TransactionKind.GIVEN


class Transaction(TimestampMixin, Base):
    """A single ledger row for one (owner, customer) pair.

    ``balance`` is a cached running total of the pair as of this row, inclusive. It is
    only ever written by the balance recalculation engine.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_owner_id", "owner_id"),
        Index("ix_transactions_owner_customer", "owner_id", "customer_id", "occurred_at", "sequence"),
        UniqueConstraint("owner_id", "customer_id", "sequence", name="uq_transactions_pair_sequence"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[TransactionKind] = mapped_column(
        SAEnum(TransactionKind, name="transaction_kind", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    lock_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    owner = relationship("User", back_populates="transactions")
    customer = relationship("Customer", back_populates="transactions")

    __mapper_args__ = {"version_id_col": lock_version}


__all__ = ["Transaction", "TransactionKind"]
