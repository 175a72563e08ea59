"""Payment method endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.api.deps import get_db_session, http_error
from ledgerbook.api.routes.auth import AuthenticatedUser, get_current_user
from ledgerbook.schemas import PaymentMethodCreate, PaymentMethodRead, PaymentMethodUpdate
from ledgerbook.services.errors import LedgerError
from ledgerbook.services.payment_methods import PaymentMethodService

router = APIRouter(prefix="/payment-methods")


@router.get("", response_model=list[PaymentMethodRead])
def list_payment_methods(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[PaymentMethodRead]:
    methods = PaymentMethodService(session).list_methods(owner_id=user.user_id)
    return [PaymentMethodRead.model_validate(method) for method in methods]


@router.post("", response_model=PaymentMethodRead, status_code=status.HTTP_201_CREATED)
def create_payment_method(
    payload: PaymentMethodCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> PaymentMethodRead:
    try:
        method = PaymentMethodService(session).create_method(owner_id=user.user_id, **payload.model_dump())
    except LedgerError as exc:
        raise http_error(exc) from exc
    return PaymentMethodRead.model_validate(method)


@router.put("/{method_id}", response_model=PaymentMethodRead)
def update_payment_method(
    method_id: str,
    payload: PaymentMethodUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> PaymentMethodRead:
    try:
        method = PaymentMethodService(session).update_method(
            actor_id=user.user_id,
            actor_role=user.role,
            method_id=method_id,
            **payload.model_dump(exclude_unset=True),
        )
    except LedgerError as exc:
        raise http_error(exc) from exc
    return PaymentMethodRead.model_validate(method)


@router.delete("/{method_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment_method(
    method_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> None:
    try:
        PaymentMethodService(session).delete_method(
            actor_id=user.user_id, actor_role=user.role, method_id=method_id
        )
    except LedgerError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
