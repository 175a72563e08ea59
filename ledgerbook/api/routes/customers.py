"""Customer CRUD endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.api.deps import get_db_session, http_error
from ledgerbook.api.routes.auth import AuthenticatedUser, get_current_user
from ledgerbook.schemas import CustomerCreate, CustomerRead, CustomerUpdate
from ledgerbook.services.customers import CustomerService
from ledgerbook.services.errors import LedgerError

router = APIRouter(prefix="/customers")


@router.get("", response_model=list[CustomerRead])
def list_customers(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[CustomerRead]:
    customers = CustomerService(session).list_customers(owner_id=user.user_id)
    return [CustomerRead.model_validate(item) for item in customers]


@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> CustomerRead:
    try:
        customer = CustomerService(session).create_customer(
            owner_id=user.user_id, name=payload.name, mobile=payload.mobile
        )
    except LedgerError as exc:
        raise http_error(exc) from exc
    return CustomerRead.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(
    customer_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> CustomerRead:
    try:
        customer = CustomerService(session).get_customer(owner_id=user.user_id, customer_id=customer_id)
    except LedgerError as exc:
        raise http_error(exc) from exc
    return CustomerRead.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerRead)
def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> CustomerRead:
    try:
        customer = CustomerService(session).update_customer(
            owner_id=user.user_id, customer_id=customer_id, name=payload.name, mobile=payload.mobile
        )
    except LedgerError as exc:
        raise http_error(exc) from exc
    return CustomerRead.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> None:
    try:
        CustomerService(session).delete_customer(owner_id=user.user_id, customer_id=customer_id)
    except LedgerError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
