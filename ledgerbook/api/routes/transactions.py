"""Ledger transaction endpoints and shared link issuance."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.api.deps import get_db_session, http_error
from ledgerbook.api.routes.auth import AuthenticatedUser, get_current_user
from ledgerbook.schemas import (
    LedgerSummaryRead,
    SharedLinkCreate,
    SharedLinkCreated,
    SharedLinkRead,
    TransactionCreate,
    TransactionRead,
    TransactionUpdate,
)
from ledgerbook.services.errors import LedgerError
from ledgerbook.services.shared_links import SharedLinkGateway
from ledgerbook.services.transactions import TransactionService

router = APIRouter(prefix="/transactions")


@router.get("", response_model=list[TransactionRead])
def list_transactions(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[TransactionRead]:
    rows = TransactionService(session).list_transactions(owner_id=user.user_id)
    return [TransactionRead.model_validate(row) for row in rows]


@router.post("", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> TransactionRead:
    try:
        transaction = TransactionService(session).add_transaction(
            owner_id=user.user_id,
            customer_id=payload.customer_id,
            kind=payload.kind,
            amount=payload.amount,
            description=payload.description,
            occurred_at=payload.occurred_at,
        )
    except LedgerError as exc:
        raise http_error(exc) from exc
    return TransactionRead.model_validate(transaction)


@router.get("/summary", response_model=LedgerSummaryRead)
def get_summary(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> LedgerSummaryRead:
    summary = TransactionService(session).get_summary(owner_id=user.user_id)
    return LedgerSummaryRead.model_validate(summary)


@router.get("/customer/{customer_id}", response_model=list[TransactionRead])
def list_customer_transactions(
    customer_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[TransactionRead]:
    try:
        rows = TransactionService(session).list_transactions(owner_id=user.user_id, customer_id=customer_id)
    except LedgerError as exc:
        raise http_error(exc) from exc
    return [TransactionRead.model_validate(row) for row in rows]


@router.put("/{transaction_id}", response_model=TransactionRead)
def edit_transaction(
    transaction_id: str,
    payload: TransactionUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> TransactionRead:
    try:
        transaction = TransactionService(session).edit_transaction(
            owner_id=user.user_id,
            transaction_id=transaction_id,
            **payload.model_dump(exclude_unset=True),
        )
    except LedgerError as exc:
        raise http_error(exc) from exc
    return TransactionRead.model_validate(transaction)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> None:
    try:
        TransactionService(session).delete_transaction(owner_id=user.user_id, transaction_id=transaction_id)
    except LedgerError as exc:
        raise http_error(exc) from exc


@router.post("/share", response_model=SharedLinkCreated, status_code=status.HTTP_201_CREATED)
def create_shared_link(
    payload: SharedLinkCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> SharedLinkCreated:
    try:
        link = SharedLinkGateway(session).create_link(
            owner_id=user.user_id,
            phone_number=payload.mobile_number,
            customer_id=payload.customer_id,
        )
    except LedgerError as exc:
        raise http_error(exc) from exc
    return SharedLinkCreated.model_validate(link)


@router.get("/share", response_model=list[SharedLinkRead])
def list_shared_links(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[SharedLinkRead]:
    links = SharedLinkGateway(session).list_links(owner_id=user.user_id)
    return [SharedLinkRead.model_validate(link) for link in links]


@router.delete("/share/{token}", response_model=SharedLinkRead)
def revoke_shared_link(
    token: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> SharedLinkRead:
    try:
        link = SharedLinkGateway(session).revoke(owner_id=user.user_id, token=token)
    except LedgerError as exc:
        raise http_error(exc) from exc
    return SharedLinkRead.model_validate(link)


__all__ = ["router"]
