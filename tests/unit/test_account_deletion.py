from __future__ import annotations

from collections.abc import Callable

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledgerbook.models import (
    AuditLog,
    Customer,
    DeletionRequestStatus,
    PaymentClaim,
    PaymentMethod,
    SharedLink,
    Transaction,
    User,
    UserRole,
)
from ledgerbook.services.account_deletion import AccountDeletionService
from ledgerbook.services.errors import ConflictError, NotFoundError
from ledgerbook.services.payments import PaymentWorkflow
from ledgerbook.services.shared_links import SharedLinkGateway
from ledgerbook.services.transactions import TransactionService


def _count(session: Session, model, owner_id: str) -> int:
    return session.scalar(select(func.count()).select_from(model).where(model.owner_id == owner_id))


def test_only_one_pending_request_per_user(db_session: Session, owner: User) -> None:
    service = AccountDeletionService(db_session)
    request = service.request_deletion(user_id=owner.id, reason="closing shop")

    assert request.status is DeletionRequestStatus.PENDING
    assert (request.user_name, request.user_phone) == ("Ravi Traders", "9000000001")
    with pytest.raises(ConflictError):
        service.request_deletion(user_id=owner.id)
    with pytest.raises(NotFoundError):
        service.request_deletion(user_id="missing")


def test_approval_erases_everything_the_user_owns(
    db_session: Session,
    make_user: Callable[..., User],
    admin: User,
    owner: User,
    customer: Customer,
    upi_method: PaymentMethod,
    proof_image: str,
) -> None:
    bystander = make_user()
    bystander_customer = Customer(owner_id=bystander.id, name="Kept", mobile="9990004444")
    db_session.add(bystander_customer)
    db_session.commit()

    ledger = TransactionService(db_session)
    ledger.add_transaction(owner_id=owner.id, customer_id=customer.id, kind="given", amount=10)
    ledger.add_transaction(owner_id=bystander.id, customer_id=bystander_customer.id, kind="given", amount=10)
    token = SharedLinkGateway(db_session).create_link(owner_id=owner.id, phone_number=customer.mobile).token
    PaymentWorkflow(db_session).submit_payment(
        token=token,
        phone_number=customer.mobile,
        payment_method_id=upi_method.id,
        amount=10,
        proof_image=proof_image,
    )

    service = AccountDeletionService(db_session)
    request = service.request_deletion(user_id=owner.id)
    owner_id = owner.id
    approved, report = service.approve(request_id=request.id, admin_id=admin.id)

    assert approved.status is DeletionRequestStatus.APPROVED
    assert approved.processed_by == admin.id
    assert (report.customers, report.transactions, report.payment_claims) == (1, 1, 1)
    assert (report.payment_methods, report.shared_links) == (1, 1)

    assert db_session.get(User, owner_id) is None
    for model in (Customer, Transaction, PaymentClaim, PaymentMethod, SharedLink):
        assert _count(db_session, model, owner_id) == 0
    assert _count(db_session, Transaction, bystander.id) == 1

    audit = db_session.scalars(select(AuditLog).where(AuditLog.action == "account.delete")).one()
    assert audit.resource_id == owner_id
    assert audit.payload["transactions"] == 1

    # The request survives the erasure so admins keep a record of it.
    assert [item.id for item in service.list_requests()] == [request.id]


def test_processed_requests_cannot_be_reprocessed(db_session: Session, admin: User, owner: User) -> None:
    service = AccountDeletionService(db_session)
    request = service.request_deletion(user_id=owner.id)

    rejected = service.reject(request_id=request.id, admin_id=admin.id)
    assert rejected.status is DeletionRequestStatus.REJECTED
    with pytest.raises(ConflictError):
        service.approve(request_id=request.id, admin_id=admin.id)
    with pytest.raises(NotFoundError):
        service.reject(request_id="missing", admin_id=admin.id)

    assert db_session.get(User, owner.id).role is UserRole.USER
    assert service.request_deletion(user_id=owner.id).status is DeletionRequestStatus.PENDING
