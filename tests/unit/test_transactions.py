from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import delete
from sqlalchemy.orm import Session

from ledgerbook.models import Customer, Transaction, TransactionKind, User
from ledgerbook.services import transactions as transactions_module
from ledgerbook.services.errors import ConflictError, NotFoundError, ValidationError
from ledgerbook.services.transactions import TransactionService, normalize_amount

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(100, Decimal("100.00")), ("12.345", Decimal("12.34")), (Decimal("0.5"), Decimal("0.50"))],
)
def test_normalize_amount_quantizes_to_cents(raw: object, expected: Decimal) -> None:
    assert normalize_amount(raw) == expected


def test_normalize_amount_rejects_missing_and_malformed_values() -> None:
    with pytest.raises(ValidationError):
        normalize_amount(None)
    with pytest.raises(ValidationError):
        normalize_amount("twelve")
    with pytest.raises(ConflictError):
        normalize_amount(0)
    with pytest.raises(ConflictError):
        normalize_amount("-5")


def test_add_transaction_requires_owned_customer(
    db_session: Session, make_user: Callable[..., User], customer: Customer
) -> None:
    stranger = make_user()

    with pytest.raises(NotFoundError):
        TransactionService(db_session).add_transaction(
            owner_id=stranger.id, customer_id=customer.id, kind=TransactionKind.GIVEN, amount=10
        )


def test_edit_and_delete_are_owner_scoped(
    db_session: Session, make_user: Callable[..., User], owner: User, customer: Customer
) -> None:
    service = TransactionService(db_session)
    row = service.add_transaction(owner_id=owner.id, customer_id=customer.id, kind="given", amount=10)
    stranger = make_user()

    with pytest.raises(NotFoundError):
        service.edit_transaction(owner_id=stranger.id, transaction_id=row.id, amount=20)
    with pytest.raises(NotFoundError):
        service.delete_transaction(owner_id=stranger.id, transaction_id=row.id)


def test_edit_description_keeps_balances(db_session: Session, owner: User, customer: Customer) -> None:
    service = TransactionService(db_session)
    row = service.add_transaction(
        owner_id=owner.id, customer_id=customer.id, kind=TransactionKind.GIVEN, amount=10, occurred_at=T0
    )

    edited = service.edit_transaction(owner_id=owner.id, transaction_id=row.id, description="rice")

    assert edited.description == "rice"
    assert edited.balance == Decimal("-10.00")


def test_edit_rejects_non_positive_amount_and_cleared_timestamp(
    db_session: Session, owner: User, customer: Customer
) -> None:
    service = TransactionService(db_session)
    row = service.add_transaction(owner_id=owner.id, customer_id=customer.id, kind="received", amount=10)

    with pytest.raises(ConflictError):
        service.edit_transaction(owner_id=owner.id, transaction_id=row.id, amount=0)
    with pytest.raises(ValidationError):
        service.edit_transaction(owner_id=owner.id, transaction_id=row.id, occurred_at=None)


def test_list_transactions_is_newest_first(db_session: Session, owner: User, customer: Customer) -> None:
    service = TransactionService(db_session)
    older = service.add_transaction(
        owner_id=owner.id, customer_id=customer.id, kind="given", amount=1, occurred_at=T0
    )
    newer = service.add_transaction(
        owner_id=owner.id, customer_id=customer.id, kind="given", amount=2, occurred_at=T0 + timedelta(days=1)
    )

    assert [row.id for row in service.list_transactions(owner_id=owner.id)] == [newer.id, older.id]
    assert [row.id for row in service.list_transactions(owner_id=owner.id, customer_id=customer.id)] == [
        newer.id,
        older.id,
    ]


def test_summary_reports_latest_row_and_aggregate_balance(
    db_session: Session, owner: User, customer: Customer
) -> None:
    other = Customer(owner_id=owner.id, name="Bala", mobile="9990002222")
    db_session.add(other)
    db_session.commit()
    service = TransactionService(db_session)

    service.add_transaction(owner_id=owner.id, customer_id=customer.id, kind="given", amount=100, occurred_at=T0)
    service.add_transaction(
        owner_id=owner.id, customer_id=customer.id, kind="received", amount=30, occurred_at=T0 + timedelta(hours=1)
    )
    service.add_transaction(owner_id=owner.id, customer_id=other.id, kind="received", amount=50, occurred_at=T0)

    summary = service.get_summary(owner_id=owner.id)

    assert summary.total_received == Decimal("80.00")
    assert summary.total_given == Decimal("100.00")
    # Last created row belongs to the second customer.
    assert summary.current_balance == Decimal("50.00")
    assert summary.aggregate_balance == Decimal("-20.00")


def test_summary_for_empty_ledger(db_session: Session, owner: User) -> None:
    summary = TransactionService(db_session).get_summary(owner_id=owner.id)

    assert summary.total_received == Decimal("0")
    assert summary.total_given == Decimal("0")
    assert summary.current_balance == Decimal("0")
    assert summary.aggregate_balance == Decimal("0")


def test_summary_current_balance_follows_creation_time_across_customers(
    db_session: Session, owner: User, customer: Customer
) -> None:
    other = Customer(owner_id=owner.id, name="Bala", mobile="9990002222")
    db_session.add(other)
    db_session.commit()
    service = TransactionService(db_session)

    busy_pair = [
        service.add_transaction(
            owner_id=owner.id, customer_id=customer.id, kind="given", amount=10, occurred_at=T0 + timedelta(minutes=i)
        )
        for i in range(3)
    ]
    single = service.add_transaction(owner_id=owner.id, customer_id=other.id, kind="received", amount=7, occurred_at=T0)
    # The busy pair's last row carries the highest sequence but was created first.
    busy_pair[-1].created_at = T0 + timedelta(days=1)
    single.created_at = T0 + timedelta(days=2)
    for index, row in enumerate(busy_pair[:-1]):
        row.created_at = T0 + timedelta(hours=index)
    db_session.commit()

    summary = service.get_summary(owner_id=owner.id)

    assert busy_pair[-1].sequence > single.sequence
    assert summary.current_balance == Decimal("7.00")


@pytest.fixture()
def delete_while_waiting_for_lock(db_session: Session, monkeypatch: pytest.MonkeyPatch) -> Callable[[str], None]:
    """Make the next pair lock acquisition happen after another writer deleted a row."""

    real_pair_lock = transactions_module.pair_lock

    def _arm(transaction_id: str) -> None:
        @contextmanager
        def _lock_after_delete(owner_id: str, customer_id: str) -> Iterator[None]:
            db_session.execute(
                delete(Transaction)
                .where(Transaction.id == transaction_id)
                .execution_options(synchronize_session=False)
            )
            db_session.commit()
            with real_pair_lock(owner_id, customer_id):
                yield

        monkeypatch.setattr(transactions_module, "pair_lock", _lock_after_delete)

    return _arm


def test_edit_of_row_deleted_while_waiting_is_not_found(
    db_session: Session, owner: User, customer: Customer, delete_while_waiting_for_lock: Callable[[str], None]
) -> None:
    service = TransactionService(db_session)
    first = service.add_transaction(owner_id=owner.id, customer_id=customer.id, kind="given", amount=10, occurred_at=T0)
    second = service.add_transaction(
        owner_id=owner.id, customer_id=customer.id, kind="given", amount=5, occurred_at=T0 + timedelta(minutes=1)
    )
    delete_while_waiting_for_lock(first.id)

    with pytest.raises(NotFoundError):
        service.edit_transaction(owner_id=owner.id, transaction_id=first.id, amount=9)

    remaining = service.list_transactions(owner_id=owner.id, customer_id=customer.id)
    assert [row.id for row in remaining] == [second.id]
    assert remaining[0].amount == Decimal("5.00")


def test_delete_of_row_deleted_while_waiting_is_not_found(
    db_session: Session, owner: User, customer: Customer, delete_while_waiting_for_lock: Callable[[str], None]
) -> None:
    service = TransactionService(db_session)
    row = service.add_transaction(owner_id=owner.id, customer_id=customer.id, kind="given", amount=10)
    delete_while_waiting_for_lock(row.id)

    with pytest.raises(NotFoundError):
        service.delete_transaction(owner_id=owner.id, transaction_id=row.id)

    assert service.list_transactions(owner_id=owner.id) == []
