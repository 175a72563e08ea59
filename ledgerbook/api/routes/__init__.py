"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from ledgerbook.api.routes import (
    account,
    admin,
    auth,
    customers,
    health,
    payment_methods,
    payments,
    shared,
    transactions,
)


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(customers.router, tags=["customers"])
    api_router.include_router(transactions.router, tags=["transactions"])
    api_router.include_router(shared.router, tags=["shared"])
    api_router.include_router(payments.router, tags=["payments"])
    api_router.include_router(payment_methods.router, tags=["payment-methods"])
    api_router.include_router(account.router, tags=["account"])
    api_router.include_router(admin.router, tags=["admin"])

    application.include_router(api_router)


__all__ = ["register_routes"]
