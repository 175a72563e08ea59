"""FastAPI application entrypoint for the ledger service."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ledgerbook.api.deps import http_error
from ledgerbook.api.routes import register_routes
from ledgerbook.core.config import Settings, get_settings
from ledgerbook.core.logging import configure_logging
from ledgerbook.obs import (
    AuditMiddleware,
    PrometheusMiddleware,
    initialise_tracing,
    instrument_fastapi_app,
    metrics_router,
)
from ledgerbook.services.errors import LedgerError

logger = logging.getLogger("ledgerbook.main")


async def _ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    # Routes translate service errors themselves; this catches anything that slips through.
    http_exc = http_error(exc)
    logger.warning(
        "Unhandled ledger error",
        extra={"path": request.url.path, "error": type(exc).__name__, "status_code": http_exc.status_code},
    )
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


def create_application(settings: Settings | None = None) -> FastAPI:
    """Build the ledger API with audit, metrics and optional tracing wired in."""
    configure_logging()
    settings = settings or get_settings()

    if settings.enable_tracing:
        initialise_tracing(service_name=settings.app_name, endpoint=settings.otel_exporter_endpoint)

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
    )
    application.add_exception_handler(LedgerError, _ledger_error_handler)

    application.add_middleware(AuditMiddleware, settings=settings)
    if settings.enable_metrics:
        application.add_middleware(PrometheusMiddleware)
        application.include_router(metrics_router)
    register_routes(application)

    if settings.enable_tracing:
        instrument_fastapi_app(application)

    logger.info(
        "Ledger API configured",
        extra={
            "atomic_payment_approval": settings.atomic_payment_approval,
            "shared_link_ttl_days": settings.shared_link_ttl_days,
            "metrics": settings.enable_metrics,
            "tracing": settings.enable_tracing,
        },
    )
    return application


app = create_application()
