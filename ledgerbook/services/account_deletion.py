"""Account deletion requests and their moderation."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ledgerbook.models import (
    AccountDeletionRequest,
    AuditLog,
    Customer,
    DeletionRequestStatus,
    PaymentClaim,
    PaymentMethod,
    SharedLink,
    Transaction,
    User,
)
from ledgerbook.models.base import utcnow
from ledgerbook.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ErasureReport:
    """Rows removed when a deletion request is approved."""

    customers: int
    transactions: int
    payment_claims: int
    payment_methods: int
    shared_links: int


class AccountDeletionService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def request_deletion(self, *, user_id: str, reason: str | None = None) -> AccountDeletionRequest:
        user = self._session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        pending = self._session.scalar(
            select(AccountDeletionRequest).where(
                AccountDeletionRequest.user_id == user_id,
                AccountDeletionRequest.status == DeletionRequestStatus.PENDING,
            )
        )
        if pending is not None:
            raise ConflictError("An account deletion request is already pending")
        request = AccountDeletionRequest(
            user_id=user.id,
            user_name=user.name,
            user_phone=user.phone,
            reason=reason or "",
        )
        self._session.add(request)
        self._session.commit()
        self._session.refresh(request)
        logger.info("account deletion requested", extra={"user_id": user_id, "request_id": request.id})
        return request

    def list_requests(self, *, user_id: str | None = None) -> Sequence[AccountDeletionRequest]:
        statement = select(AccountDeletionRequest).order_by(AccountDeletionRequest.created_at.desc())
        if user_id is not None:
            statement = statement.where(AccountDeletionRequest.user_id == user_id)
        return self._session.scalars(statement).all()

    def approve(self, *, request_id: str, admin_id: str) -> tuple[AccountDeletionRequest, ErasureReport]:
        """Erase the requesting user with everything they own, in one database transaction."""

        request = self._pending_request(request_id)
        user_id = request.user_id
        try:
            report = ErasureReport(
                customers=0,
                transactions=self._purge(Transaction, Transaction.owner_id == user_id),
                payment_claims=self._purge(PaymentClaim, PaymentClaim.owner_id == user_id),
                payment_methods=self._purge(PaymentMethod, PaymentMethod.owner_id == user_id),
                shared_links=self._purge(SharedLink, SharedLink.owner_id == user_id),
            )
            report.customers = self._purge(Customer, Customer.owner_id == user_id)
            user = self._session.get(User, user_id)
            if user is not None:
                self._session.delete(user)

            request.status = DeletionRequestStatus.APPROVED
            request.processed_at = utcnow()
            request.processed_by = admin_id
            self._session.add(
                AuditLog(
                    owner_id=user_id,
                    actor_id=admin_id,
                    action="account.delete",
                    resource_type="User",
                    resource_id=user_id,
                    payload={
                        "request_id": request.id,
                        "customers": report.customers,
                        "transactions": report.transactions,
                        "payment_claims": report.payment_claims,
                        "payment_methods": report.payment_methods,
                        "shared_links": report.shared_links,
                    },
                )
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        self._session.refresh(request)
        logger.info(
            "account deletion approved",
            extra={"user_id": user_id, "request_id": request.id, "admin_id": admin_id},
        )
        return request, report

    def reject(self, *, request_id: str, admin_id: str) -> AccountDeletionRequest:
        request = self._pending_request(request_id)
        request.status = DeletionRequestStatus.REJECTED
        request.processed_at = utcnow()
        request.processed_by = admin_id
        self._session.commit()
        self._session.refresh(request)
        logger.info("account deletion rejected", extra={"request_id": request.id, "admin_id": admin_id})
        return request

    def _pending_request(self, request_id: str) -> AccountDeletionRequest:
        request = self._session.get(AccountDeletionRequest, request_id)
        if request is None:
            raise NotFoundError("Deletion request not found")
        if request.status is not DeletionRequestStatus.PENDING:
            raise ConflictError("Request already processed")
        return request

    def _purge(self, model, criterion) -> int:
        result = self._session.execute(delete(model).where(criterion))
        return int(result.rowcount or 0)


__all__ = ["AccountDeletionService", "ErasureReport"]
