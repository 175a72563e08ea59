"""Self-service account endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.api.deps import get_db_session, http_error
from ledgerbook.api.routes.auth import AuthenticatedUser, get_current_user
from ledgerbook.schemas import DeletionRequestCreate, DeletionRequestRead
from ledgerbook.services.account_deletion import AccountDeletionService
from ledgerbook.services.errors import LedgerError

router = APIRouter(prefix="/account")


@router.post("/deletion-request", response_model=DeletionRequestRead, status_code=status.HTTP_201_CREATED)
def request_account_deletion(
    payload: DeletionRequestCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> DeletionRequestRead:
    try:
        request = AccountDeletionService(session).request_deletion(user_id=user.user_id, reason=payload.reason)
    except LedgerError as exc:
        raise http_error(exc) from exc
    return DeletionRequestRead.model_validate(request)


@router.get("/deletion-request", response_model=list[DeletionRequestRead])
def list_own_deletion_requests(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[DeletionRequestRead]:
    requests = AccountDeletionService(session).list_requests(user_id=user.user_id)
    return [DeletionRequestRead.model_validate(item) for item in requests]


__all__ = ["router"]
