"""Worker purging dead shared links and expired audit history."""

from __future__ import annotations

import asyncio
import logging

from ledgerbook.core.config import get_settings
from ledgerbook.db.session import get_session
from ledgerbook.models.base import utcnow
from ledgerbook.obs import DATA_RETENTION_AUDIT_COUNTER, DATA_RETENTION_SHARED_LINK_COUNTER
from ledgerbook.services.data_retention import DataRetentionReport, DataRetentionService
from ledgerbook.workers.observability import configure_worker, worker_span

LOGGER = logging.getLogger(__name__)


async def run_once(service: DataRetentionService) -> DataRetentionReport:
    """Execute a single retention cycle."""

    with worker_span("data_retention.cycle"):
        report = service.purge_expired_records(now=utcnow())
        if report.audit_logs_deleted:
            DATA_RETENTION_AUDIT_COUNTER.inc(report.audit_logs_deleted)
        if report.shared_links_deleted:
            DATA_RETENTION_SHARED_LINK_COUNTER.inc(report.shared_links_deleted)
        LOGGER.info(
            "data retention cycle complete",
            extra={
                "audit_logs_deleted": report.audit_logs_deleted,
                "shared_links_deleted": report.shared_links_deleted,
            },
        )
    return report


async def run() -> None:
    """Continuously run data retention cycles at the configured cadence."""

    settings = get_settings()
    configure_worker("ledgerbook-data-retention")
    interval = max(60, settings.data_retention_interval_seconds)
    LOGGER.info("starting data retention worker", extra={"interval_seconds": interval})
    while True:
        with get_session() as session:
            service = DataRetentionService(session=session, settings=settings)
            await run_once(service)
        await asyncio.sleep(interval)


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown
        LOGGER.info("data retention worker stopped")


if __name__ == "__main__":
    main()
