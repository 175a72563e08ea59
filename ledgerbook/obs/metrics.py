"""Prometheus metrics for the HTTP surface and the ledger core."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "route"),
)
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "route", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "http_request_errors_total",
    "Total number of HTTP requests that resulted in server errors.",
    labelnames=("method", "route", "status"),
)
BALANCE_RECALCULATION_COUNTER = Counter(
    "ledger_balance_recalculations_total",
    "Number of full running-balance walks over a customer ledger.",
    labelnames=("reason",),
)
BALANCE_ROWS_REWRITTEN_COUNTER = Counter(
    "ledger_balance_rows_rewritten_total",
    "Number of ledger rows whose cached balance was rewritten by a recalculation.",
)
PAYMENT_CLAIM_COUNTER = Counter(
    "ledger_payment_claims_total",
    "Payment claim lifecycle transitions.",
    labelnames=("status",),
)
PAYMENT_MATERIALISATION_FAILURES = Counter(
    "ledger_payment_materialisation_failures_total",
    "Approved payment claims whose ledger entry could not be created.",
)
DATA_RETENTION_AUDIT_COUNTER = Counter(
    "data_retention_audit_logs_deleted_total",
    "Count of audit log records deleted by the retention job.",
)
DATA_RETENTION_SHARED_LINK_COUNTER = Counter(
    "data_retention_shared_links_deleted_total",
    "Count of expired or revoked shared links deleted by the retention job.",
)


def _route_template(request: Request) -> str:
    # Label by route template so per-token shared link URLs do not explode cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request metrics for Prometheus scraping."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        method = request.method
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
            if response.status_code >= 500:
                REQUEST_ERROR_COUNTER.labels(method=method, route=_route_template(request), status=status).inc()
            return response
        except Exception:
            REQUEST_ERROR_COUNTER.labels(method=method, route=_route_template(request), status="500").inc()
            raise
        finally:
            route = _route_template(request)
            latency = time.perf_counter() - start_time
            REQUEST_LATENCY_SECONDS.labels(method=method, route=route).observe(latency)
            REQUEST_COUNTER.labels(method=method, route=route, status=status).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
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
    "metrics_endpoint",
    "metrics_router",
]
