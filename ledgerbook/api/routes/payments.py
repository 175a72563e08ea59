"""Payment claim review endpoints for ledger owners."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledgerbook.api.deps import get_db_session, http_error
from ledgerbook.api.routes.auth import AuthenticatedUser, get_current_user
from ledgerbook.schemas import PaymentClaimRead, PaymentSummaryRead
from ledgerbook.services.errors import LedgerError
from ledgerbook.services.payments import PaymentWorkflow

router = APIRouter(prefix="/payments")


@router.get("", response_model=list[PaymentClaimRead])
def list_payments(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[PaymentClaimRead]:
    claims = PaymentWorkflow(session).list_payments(owner_id=user.user_id)
    return [PaymentClaimRead.model_validate(claim) for claim in claims]


@router.get("/summary", response_model=PaymentSummaryRead)
def payment_summary(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> PaymentSummaryRead:
    return PaymentSummaryRead.model_validate(PaymentWorkflow(session).payment_summary(owner_id=user.user_id))


@router.post("/{payment_id}/approve", response_model=PaymentClaimRead)
def approve_payment(
    payment_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> PaymentClaimRead:
    try:
        result = PaymentWorkflow(session).approve(
            actor_id=user.user_id, actor_role=user.role, payment_id=payment_id
        )
    except LedgerError as exc:
        raise http_error(exc) from exc
    return PaymentClaimRead.model_validate(result.claim)


@router.post("/{payment_id}/reject", response_model=PaymentClaimRead)
def reject_payment(
    payment_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> PaymentClaimRead:
    try:
        claim = PaymentWorkflow(session).reject(
            actor_id=user.user_id, actor_role=user.role, payment_id=payment_id
        )
    except LedgerError as exc:
        raise http_error(exc) from exc
    return PaymentClaimRead.model_validate(claim)


__all__ = ["router"]
