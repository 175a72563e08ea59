"""Payment claim intake and approval.

A payer holding a shared link submits a claim with a proof image; the ledger owner
(or an admin) later approves it, which records a ``received`` row on the payer's
pair ledger, or rejects it. Claims move out of ``pending`` exactly once.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ledgerbook.core.config import Settings, get_settings
from ledgerbook.models import (
    AuditLog,
    Customer,
    PaymentClaim,
    PaymentClaimStatus,
    PaymentMethod,
    SharedLink,
    Transaction,
    TransactionKind,
    UserRole,
)
from ledgerbook.models.base import utcnow
from ledgerbook.obs import PAYMENT_CLAIM_COUNTER, PAYMENT_MATERIALISATION_FAILURES
from ledgerbook.services import ledger_store
from ledgerbook.services.balances import CENT, pair_lock
from ledgerbook.services.customers import CustomerService
from ledgerbook.services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ledgerbook.services.proofs import ProofImageStore
from ledgerbook.services.shared_links import SharedLinkGateway
from ledgerbook.services.transactions import TransactionService, normalize_amount

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PaymentSummary:
    total_payments: int
    total_amount: Decimal
    completed: int
    pending: int
    failed: int


@dataclass(slots=True, frozen=True)
class ApprovalResult:
    claim: PaymentClaim
    transaction: Transaction | None


class PaymentWorkflow:
    """Coordinates the payment claim lifecycle."""

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        proof_store: ProofImageStore | None = None,
        transactions: TransactionService | None = None,
        customers: CustomerService | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._proof_store = proof_store or ProofImageStore(settings=self._settings)
        self._transactions = transactions or TransactionService(session)
        self._customers = customers or CustomerService(session)
        self._links = SharedLinkGateway(session, settings=self._settings)

    def submit_payment(
        self,
        *,
        token: str,
        phone_number: str | None,
        payment_method_id: str | None,
        amount: Decimal | int | float | str | None,
        proof_image: str | None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> PaymentClaim:
        """Record a payer-asserted payment as ``pending``.

        The amount is taken as asserted; it is not checked against the ledger.
        """

        link = self._links.authorize(token, phone_number, now=now)

        method = self._session.get(PaymentMethod, payment_method_id) if payment_method_id else None
        if method is None or method.owner_id != link.owner_id:
            raise NotFoundError("Payment method not found")

        try:
            normalized_amount = normalize_amount(amount)
        except ConflictError as exc:
            raise ValidationError(str(exc)) from exc
        if not (proof_image or "").strip():
            raise ValidationError("Payment proof image is required")

        claim_id = str(uuid.uuid4())
        stored = self._proof_store.store(owner_id=link.owner_id, claim_id=claim_id, payload=proof_image)

        claim = PaymentClaim(
            id=claim_id,
            owner_id=link.owner_id,
            shared_link_token=link.token,
            payer_phone_number=link.phone_number,
            amount=normalized_amount,
            payment_method_id=method.id,
            payment_method_type=method.type,
            payment_method_label=method.label,
            payment_method_upi_id=method.upi_id,
            notes=notes or "",
            proof_image_key=stored.key,
            status=PaymentClaimStatus.PENDING,
        )
        self._session.add(claim)
        try:
            self._session.commit()
        except Exception:
            self._session.rollback()
            self._proof_store.delete(stored.key)
            raise
        self._session.refresh(claim)

        PAYMENT_CLAIM_COUNTER.labels(status=PaymentClaimStatus.PENDING.value).inc()
        logger.info(
            "payment claim submitted",
            extra={"owner_id": claim.owner_id, "claim_id": claim.id, "amount": f"{normalized_amount:.2f}"},
        )
        return claim

    def approve(self, *, actor_id: str, actor_role: UserRole | str, payment_id: str) -> ApprovalResult:
        """Complete a pending claim and record it as a ``received`` ledger row.

        By default the status change is committed before the ledger row is written,
        and a failure writing the row is logged without undoing the approval. With
        ``atomic_payment_approval`` both are committed together or not at all.
        """

        claim = self._authorized_claim(actor_id=actor_id, actor_role=actor_role, payment_id=payment_id)

        if self._settings.atomic_payment_approval:
            try:
                self._transition(claim, PaymentClaimStatus.COMPLETED, actor_id=actor_id)
                customer = self._resolve_customer(claim, commit=False)
                with pair_lock(claim.owner_id, customer.id):
                    transaction = self._materialise(claim, customer, commit=False)
                    self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            self._session.refresh(claim)
            self._session.refresh(transaction)
            PAYMENT_CLAIM_COUNTER.labels(status=PaymentClaimStatus.COMPLETED.value).inc()
            return ApprovalResult(claim=claim, transaction=transaction)

        try:
            self._transition(claim, PaymentClaimStatus.COMPLETED, actor_id=actor_id)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        self._session.refresh(claim)
        PAYMENT_CLAIM_COUNTER.labels(status=PaymentClaimStatus.COMPLETED.value).inc()

        transaction: Transaction | None = None
        try:
            customer = self._resolve_customer(claim, commit=True)
            transaction = self._materialise(claim, customer, commit=True)
            self._session.commit()
        except Exception:
            self._session.rollback()
            PAYMENT_MATERIALISATION_FAILURES.inc()
            logger.exception(
                "approved payment claim without a ledger entry",
                extra={"owner_id": claim.owner_id, "claim_id": claim.id},
            )
            transaction = None
        self._session.refresh(claim)
        return ApprovalResult(claim=claim, transaction=transaction)

    def reject(self, *, actor_id: str, actor_role: UserRole | str, payment_id: str) -> PaymentClaim:
        claim = self._authorized_claim(actor_id=actor_id, actor_role=actor_role, payment_id=payment_id)
        try:
            self._transition(claim, PaymentClaimStatus.FAILED, actor_id=actor_id)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        self._session.refresh(claim)
        PAYMENT_CLAIM_COUNTER.labels(status=PaymentClaimStatus.FAILED.value).inc()
        return claim

    def list_payments(self, *, owner_id: str) -> Sequence[PaymentClaim]:
        statement = (
            select(PaymentClaim)
            .where(PaymentClaim.owner_id == owner_id)
            .order_by(PaymentClaim.created_at.desc())
        )
        return self._session.scalars(statement).all()

    def list_all_payments(self) -> Sequence[PaymentClaim]:
        return self._session.scalars(select(PaymentClaim).order_by(PaymentClaim.created_at.desc())).all()

    def payment_summary(self, *, owner_id: str) -> PaymentSummary:
        counts = {status: 0 for status in PaymentClaimStatus}
        total_amount = Decimal("0")
        for claim in self.list_payments(owner_id=owner_id):
            status = PaymentClaimStatus(claim.status)
            counts[status] += 1
            if status is PaymentClaimStatus.COMPLETED:
                total_amount += Decimal(claim.amount)
        return PaymentSummary(
            total_payments=sum(counts.values()),
            total_amount=total_amount.quantize(CENT),
            completed=counts[PaymentClaimStatus.COMPLETED],
            pending=counts[PaymentClaimStatus.PENDING],
            failed=counts[PaymentClaimStatus.FAILED],
        )

    def _authorized_claim(self, *, actor_id: str, actor_role: UserRole | str, payment_id: str) -> PaymentClaim:
        claim = self._session.get(PaymentClaim, payment_id)
        if claim is None:
            raise NotFoundError("Payment not found")
        if UserRole(actor_role) is not UserRole.ADMIN and claim.owner_id != actor_id:
            raise ForbiddenError("You can only process payments made to you")
        return claim

    def _transition(self, claim: PaymentClaim, new_status: PaymentClaimStatus, *, actor_id: str) -> None:
        """Move a claim out of ``pending``; concurrent callers race on the row, one wins."""

        processed_at = utcnow()
        result = self._session.execute(
            update(PaymentClaim)
            .where(PaymentClaim.id == claim.id, PaymentClaim.status == PaymentClaimStatus.PENDING)
            .values(status=new_status, processed_at=processed_at, processed_by=actor_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._session.rollback()
            raise ConflictError(f"Payment is already {PaymentClaimStatus(claim.status).value}")
        self._session.expire(claim)
        self._session.add(
            AuditLog(
                owner_id=claim.owner_id,
                actor_id=actor_id,
                action=f"payment.{'approve' if new_status is PaymentClaimStatus.COMPLETED else 'reject'}",
                resource_type="PaymentClaim",
                resource_id=claim.id,
                payload={"status": new_status.value, "amount": f"{Decimal(claim.amount):.2f}"},
            )
        )
        logger.info(
            "payment claim processed",
            extra={"claim_id": claim.id, "status": new_status.value, "actor_id": actor_id},
        )

    def _resolve_customer(self, claim: PaymentClaim, *, commit: bool) -> Customer:
        """The customer bound to the originating link, else the payer's customer by mobile."""

        link = self._session.scalar(select(SharedLink).where(SharedLink.token == claim.shared_link_token))
        if link is not None and link.customer_id is not None:
            customer = ledger_store.get_owned_customer(
                self._session, owner_id=claim.owner_id, customer_id=link.customer_id
            )
            if customer is not None:
                return customer
        return self._customers.find_or_create_by_mobile(
            owner_id=claim.owner_id, mobile=claim.payer_phone_number, commit=commit
        )

    def _materialise(self, claim: PaymentClaim, customer: Customer, *, commit: bool) -> Transaction:
        method_type = claim.payment_method_type
        transaction = self._transactions.add_transaction(
            owner_id=claim.owner_id,
            customer_id=customer.id,
            kind=TransactionKind.RECEIVED,
            amount=claim.amount,
            description=f"Payment received via {method_type.display_name}",
            commit=commit,
        )
        claim.transaction_id = transaction.id
        self._session.flush()
        return transaction


__all__ = ["ApprovalResult", "PaymentSummary", "PaymentWorkflow"]
