"""Data retention utilities for expired links and audit history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, or_
from sqlalchemy.orm import Session

from ledgerbook.core.config import Settings, get_settings
from ledgerbook.models import AuditLog, SharedLink
from ledgerbook.models.base import utcnow


@dataclass(slots=True)
class DataRetentionReport:
    """Summary of a retention cycle."""

    audit_logs_deleted: int
    shared_links_deleted: int

    def total_deleted(self) -> int:
        return self.audit_logs_deleted + self.shared_links_deleted


class DataRetentionService:
    """Applies retention windows to the database and object storage."""

    def __init__(self, session: Session, *, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()

    def purge_expired_records(self, *, now: datetime | None = None) -> DataRetentionReport:
        """Delete audit logs past retention and shared links dead for longer than the grace window.

        Link expiry is always enforced when a token is presented; this only removes rows
        that can no longer be redeemed.
        """

        current_time = now or utcnow()
        audit_cutoff = current_time - timedelta(days=self._settings.audit_log_retention_days)
        link_cutoff = current_time - timedelta(days=self._settings.shared_link_retention_days)

        audit_result = self._session.execute(
            delete(AuditLog).where(AuditLog.created_at < audit_cutoff)
        )
        link_result = self._session.execute(
            delete(SharedLink).where(
                or_(SharedLink.expires_at < link_cutoff, SharedLink.revoked_at < link_cutoff)
            )
        )

        return DataRetentionReport(
            audit_logs_deleted=int(audit_result.rowcount or 0),
            shared_links_deleted=int(link_result.rowcount or 0),
        )

    def build_s3_lifecycle_policy(self) -> dict[str, object]:
        """Return the S3 lifecycle configuration matching these retention windows."""

        return {
            "Rules": [
                {
                    "ID": "expire-audit-logs",
                    "Filter": {"Prefix": f"{self._settings.audit_log_prefix}/"},
                    "Status": "Enabled",
                    "Expiration": {"Days": self._settings.audit_log_retention_days},
                },
            ]
        }


__all__ = ["DataRetentionReport", "DataRetentionService"]
