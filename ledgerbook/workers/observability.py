"""Observability setup shared by worker processes."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry.trace import Span

from ledgerbook.core.config import get_settings
from ledgerbook.core.logging import configure_logging
from ledgerbook.obs import initialise_tracing, ledger_span


def configure_worker(service_name: str) -> None:
    """Configure logging and, when enabled, tracing for a worker process."""

    settings = get_settings()
    configure_logging()
    if settings.enable_tracing:
        initialise_tracing(
            service_name=service_name,
            endpoint=settings.otel_exporter_endpoint,
            instrument_logging=False,
        )


@contextmanager
def worker_span(name: str, **attributes: Any) -> Iterator[Span]:
    """Span covering one unit of worker work."""

    with ledger_span(name, **attributes) as span:
        yield span


__all__ = ["configure_worker", "worker_span"]
