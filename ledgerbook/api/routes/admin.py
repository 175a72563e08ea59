"""Administrative moderation endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerbook.api.deps import get_db_session, http_error
from ledgerbook.api.routes.auth import AuthenticatedUser, require_role
from ledgerbook.models import User, UserRole
from ledgerbook.schemas import (
    DeletionRequestRead,
    PaymentClaimRead,
    PaymentMethodRead,
    TransactionRead,
    UserRead,
)
from ledgerbook.services.account_deletion import AccountDeletionService
from ledgerbook.services.errors import LedgerError
from ledgerbook.services.payment_methods import PaymentMethodService
from ledgerbook.services.payments import PaymentWorkflow
from ledgerbook.services.transactions import TransactionService

router = APIRouter(prefix="/admin")

require_admin = require_role(UserRole.ADMIN)


@router.get("/users", response_model=list[UserRead])
def list_users(
    session: Session = Depends(get_db_session),
    admin: AuthenticatedUser = Depends(require_admin),
) -> list[UserRead]:
    users = session.scalars(select(User).order_by(User.created_at.desc())).all()
    return [UserRead.model_validate(user) for user in users]


@router.get("/transactions", response_model=list[TransactionRead])
def list_all_transactions(
    session: Session = Depends(get_db_session),
    admin: AuthenticatedUser = Depends(require_admin),
) -> list[TransactionRead]:
    return [TransactionRead.model_validate(row) for row in TransactionService(session).list_all_transactions()]


@router.get("/payments", response_model=list[PaymentClaimRead])
def list_all_payments(
    session: Session = Depends(get_db_session),
    admin: AuthenticatedUser = Depends(require_admin),
) -> list[PaymentClaimRead]:
    return [PaymentClaimRead.model_validate(claim) for claim in PaymentWorkflow(session).list_all_payments()]


@router.get("/payment-methods", response_model=list[PaymentMethodRead])
def list_all_payment_methods(
    session: Session = Depends(get_db_session),
    admin: AuthenticatedUser = Depends(require_admin),
) -> list[PaymentMethodRead]:
    methods = PaymentMethodService(session).list_all_methods()
    return [PaymentMethodRead.model_validate(method) for method in methods]


@router.get("/deletion-requests", response_model=list[DeletionRequestRead])
def list_deletion_requests(
    session: Session = Depends(get_db_session),
    admin: AuthenticatedUser = Depends(require_admin),
) -> list[DeletionRequestRead]:
    requests = AccountDeletionService(session).list_requests()
    return [DeletionRequestRead.model_validate(item) for item in requests]


@router.post("/deletion-requests/{request_id}/approve", response_model=DeletionRequestRead)
def approve_deletion_request(
    request_id: str,
    session: Session = Depends(get_db_session),
    admin: AuthenticatedUser = Depends(require_admin),
) -> DeletionRequestRead:
    try:
        request, _ = AccountDeletionService(session).approve(request_id=request_id, admin_id=admin.user_id)
    except LedgerError as exc:
        raise http_error(exc) from exc
    return DeletionRequestRead.model_validate(request)


@router.post("/deletion-requests/{request_id}/reject", response_model=DeletionRequestRead)
def reject_deletion_request(
    request_id: str,
    session: Session = Depends(get_db_session),
    admin: AuthenticatedUser = Depends(require_admin),
) -> DeletionRequestRead:
    try:
        request = AccountDeletionService(session).reject(request_id=request_id, admin_id=admin.user_id)
    except LedgerError as exc:
        raise http_error(exc) from exc
    return DeletionRequestRead.model_validate(request)


__all__ = ["router"]
