from __future__ import annotations

from collections.abc import Callable

import pytest
from sqlalchemy.orm import Session

from ledgerbook.models import Customer, Transaction, User
from ledgerbook.services.customers import CustomerService
from ledgerbook.services.errors import NotFoundError, ValidationError
from ledgerbook.services.transactions import TransactionService


def test_create_requires_name_and_mobile(db_session: Session, owner: User) -> None:
    service = CustomerService(db_session)

    with pytest.raises(ValidationError):
        service.create_customer(owner_id=owner.id, name=" ", mobile="9990001111")
    with pytest.raises(ValidationError):
        service.create_customer(owner_id=owner.id, name="Asha", mobile="")

    created = service.create_customer(owner_id=owner.id, name=" Asha ", mobile=" 9990001111 ")
    assert (created.name, created.mobile) == ("Asha", "9990001111")


def test_customers_are_owner_scoped(
    db_session: Session, make_user: Callable[..., User], customer: Customer
) -> None:
    service = CustomerService(db_session)
    stranger = make_user()

    assert service.list_customers(owner_id=stranger.id) == []
    with pytest.raises(NotFoundError):
        service.get_customer(owner_id=stranger.id, customer_id=customer.id)
    with pytest.raises(NotFoundError):
        service.update_customer(owner_id=stranger.id, customer_id=customer.id, name="Hijack")
    with pytest.raises(NotFoundError):
        service.delete_customer(owner_id=stranger.id, customer_id=customer.id)


def test_delete_removes_pair_ledger(db_session: Session, owner: User, customer: Customer) -> None:
    ledger = TransactionService(db_session)
    ledger.add_transaction(owner_id=owner.id, customer_id=customer.id, kind="given", amount=5)
    ledger.add_transaction(owner_id=owner.id, customer_id=customer.id, kind="received", amount=2)

    removed = CustomerService(db_session).delete_customer(owner_id=owner.id, customer_id=customer.id)

    assert removed == 2
    assert db_session.query(Transaction).count() == 0


def test_find_or_create_by_mobile_reuses_oldest_match(db_session: Session, owner: User, customer: Customer) -> None:
    service = CustomerService(db_session)
    service.create_customer(owner_id=owner.id, name="Asha again", mobile=customer.mobile)

    assert service.find_or_create_by_mobile(owner_id=owner.id, mobile=customer.mobile).id == customer.id

    created = service.find_or_create_by_mobile(owner_id=owner.id, mobile="9990005555")
    assert created.name == "9990005555"
    assert service.find_by_mobile(owner_id=owner.id, mobile="9990005555").id == created.id
