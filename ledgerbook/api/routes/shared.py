"""Public endpoints redeemed with a shared link token."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.api.deps import get_db_session, http_error
from ledgerbook.schemas import (
    PaymentMethodRead,
    PaymentSubmitRequest,
    PaymentSubmitResponse,
    SharedLedgerRead,
    SharedLinkMetadata,
    SharedLinkVerifyRequest,
)
from ledgerbook.services.errors import LedgerError
from ledgerbook.services.payments import PaymentWorkflow
from ledgerbook.services.shared_links import SharedLinkGateway

router = APIRouter(prefix="/shared")


@router.get("/{token}", response_model=SharedLinkMetadata)
def resolve_shared_link(token: str, session: Session = Depends(get_db_session)) -> SharedLinkMetadata:
    try:
        metadata = SharedLinkGateway(session).resolve_metadata(token)
    except LedgerError as exc:
        raise http_error(exc) from exc
    return SharedLinkMetadata.model_validate(metadata)


@router.post("/{token}/verify", response_model=SharedLedgerRead)
def verify_shared_link(
    token: str,
    payload: SharedLinkVerifyRequest,
    session: Session = Depends(get_db_session),
) -> SharedLedgerRead:
    try:
        view = SharedLinkGateway(session).verify(token, payload.phone_number)
    except LedgerError as exc:
        raise http_error(exc) from exc
    return SharedLedgerRead.model_validate(view)


@router.get("/{token}/payment-methods", response_model=list[PaymentMethodRead])
def list_shared_payment_methods(
    token: str, session: Session = Depends(get_db_session)
) -> list[PaymentMethodRead]:
    try:
        methods = SharedLinkGateway(session).list_payment_methods(token)
    except LedgerError as exc:
        raise http_error(exc) from exc
    return [PaymentMethodRead.model_validate(method) for method in methods]


@router.post("/{token}/payment", response_model=PaymentSubmitResponse, status_code=status.HTTP_201_CREATED)
def submit_payment(
    token: str,
    payload: PaymentSubmitRequest,
    session: Session = Depends(get_db_session),
) -> PaymentSubmitResponse:
    try:
        claim = PaymentWorkflow(session).submit_payment(
            token=token,
            phone_number=payload.phone_number,
            payment_method_id=payload.payment_method_id,
            amount=payload.amount,
            proof_image=payload.payment_proof,
            notes=payload.notes,
        )
    except LedgerError as exc:
        raise http_error(exc) from exc
    return PaymentSubmitResponse.model_validate(claim)


__all__ = ["router"]
