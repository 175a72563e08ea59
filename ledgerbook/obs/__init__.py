"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware
from .metrics import (
    BALANCE_RECALCULATION_COUNTER,
    BALANCE_ROWS_REWRITTEN_COUNTER,
    DATA_RETENTION_AUDIT_COUNTER,
    DATA_RETENTION_SHARED_LINK_COUNTER,
    PAYMENT_CLAIM_COUNTER,
    PAYMENT_MATERIALISATION_FAILURES,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    PrometheusMiddleware,
    metrics_router,
)
from .tracing import (
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    ledger_span,
)

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "BALANCE_RECALCULATION_COUNTER",
    "BALANCE_ROWS_REWRITTEN_COUNTER",
    "DATA_RETENTION_AUDIT_COUNTER",
    "DATA_RETENTION_SHARED_LINK_COUNTER",
    "PAYMENT_CLAIM_COUNTER",
    "PAYMENT_MATERIALISATION_FAILURES",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "metrics_router",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "ledger_span",
]
