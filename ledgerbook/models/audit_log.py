"""Audit log ORM model."""
from __future__ import annotations

import uuid

from sqlalchemy import Index, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from ledgerbook.models.base import Base, TimestampMixin


class AuditLog(TimestampMixin, Base):
    """Captured moderation and ledger events.

    Rows outlive the users they mention (an approved account deletion is itself
    audited), so ``owner_id`` and ``actor_id`` are plain columns, not foreign keys.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_owner_id", "owner_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id: Mapped[str | None] = mapped_column(String(36))
    actor_id: Mapped[str | None] = mapped_column(String(36))
    action: Mapped[str] = mapped_column(String(128), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(128), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(128))
    payload: Mapped[dict | None] = mapped_column(JSON)


__all__ = ["AuditLog"]
