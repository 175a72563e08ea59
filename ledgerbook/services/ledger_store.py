"""Owner-scoped persistence helpers for ledger rows.

Every query here filters by ``owner_id``; cross-owner reads belong to the admin
listings in the individual services, never to this module.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ledgerbook.models import Customer, Transaction

_IMMUTABLE_FIELDS = frozenset({"id", "owner_id", "customer_id", "kind", "balance", "sequence"})


def chronological_order() -> tuple[Any, ...]:
    """Ordering of a pair ledger: time ascending, creation order breaking ties."""
    return (Transaction.occurred_at.asc(), Transaction.sequence.asc())


def newest_first_order() -> tuple[Any, ...]:
    return (Transaction.occurred_at.desc(), Transaction.sequence.desc())


def get_owned_customer(session: Session, *, owner_id: str, customer_id: str) -> Customer | None:
    customer = session.get(Customer, customer_id)
    if customer is None or customer.owner_id != owner_id:
        return None
    return customer


def get_owned_transaction(session: Session, *, owner_id: str, transaction_id: str) -> Transaction | None:
    transaction = session.get(Transaction, transaction_id)
    if transaction is None or transaction.owner_id != owner_id:
        return None
    return transaction


def lock_pair(session: Session, *, owner_id: str, customer_id: str) -> Customer | None:
    """Take the storage-level lock for a pair ledger by locking its customer row.

    Every pair mutation calls this before reading the pair, so writers in other
    processes queue behind it even while the pair has no rows yet.
    """

    statement = (
        select(Customer)
        .where(Customer.id == customer_id, Customer.owner_id == owner_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return session.scalars(statement).first()


def reload_owned_transaction(session: Session, *, owner_id: str, transaction_id: str) -> Transaction | None:
    """Re-read a row after the pair lock is held; ``None`` if it has since been deleted."""

    transaction = session.get(Transaction, transaction_id)
    if transaction is not None:
        session.expire(transaction)
    return get_owned_transaction(session, owner_id=owner_id, transaction_id=transaction_id)


def find_by_owner_and_customer(
    session: Session,
    *,
    owner_id: str,
    customer_id: str,
    for_update: bool = False,
) -> Sequence[Transaction]:
    """Return the pair ledger in chronological order."""

    statement = (
        select(Transaction)
        .where(Transaction.owner_id == owner_id, Transaction.customer_id == customer_id)
        .order_by(*chronological_order())
    )
    if for_update:
        # Rendered as SELECT ... FOR UPDATE where supported; SQLite ignores it.
        statement = statement.with_for_update()
    # Reload already-mapped rows so the walk never starts from a stale snapshot.
    statement = statement.execution_options(populate_existing=True)
    return session.scalars(statement).all()


def find_latest_for_owner_customer(
    session: Session, *, owner_id: str, customer_id: str
) -> Transaction | None:
    """Return the chronologically last row of a pair ledger."""

    statement = (
        select(Transaction)
        .where(Transaction.owner_id == owner_id, Transaction.customer_id == customer_id)
        .order_by(*newest_first_order())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return session.scalars(statement).first()


def next_sequence(session: Session, *, owner_id: str, customer_id: str) -> int:
    """Creation-order counter for a pair, used to break ``occurred_at`` ties."""

    statement = select(func.max(Transaction.sequence)).where(
        Transaction.owner_id == owner_id, Transaction.customer_id == customer_id
    )
    current = session.scalar(statement)
    return int(current or 0) + 1


def insert_transaction(session: Session, transaction: Transaction) -> Transaction:
    session.add(transaction)
    session.flush()
    return transaction


def update_fields(transaction: Transaction, changes: dict[str, Any]) -> set[str]:
    """Apply editable field changes and return the names of the fields that changed."""

    changed: set[str] = set()
    for field_name, value in changes.items():
        if field_name in _IMMUTABLE_FIELDS:
            raise ValueError(f"Field '{field_name}' cannot be edited")
        if field_name == "amount" and value is not None:
            value = Decimal(value)
        if getattr(transaction, field_name) != value:
            setattr(transaction, field_name, value)
            changed.add(field_name)
    return changed


def delete_transaction(session: Session, transaction: Transaction) -> None:
    session.delete(transaction)
    session.flush()


def delete_all_for_customer(session: Session, *, owner_id: str, customer_id: str) -> int:
    result = session.execute(
        delete(Transaction).where(
            Transaction.owner_id == owner_id, Transaction.customer_id == customer_id
        )
    )
    return int(result.rowcount or 0)


def list_for_owner(
    session: Session, *, owner_id: str, customer_ids: Iterable[str] | None = None
) -> Sequence[Transaction]:
    """Return an owner's rows newest-first, optionally limited to some customers."""

    statement = select(Transaction).where(Transaction.owner_id == owner_id)
    if customer_ids is not None:
        statement = statement.where(Transaction.customer_id.in_(list(customer_ids)))
    statement = statement.order_by(*newest_first_order())
    return session.scalars(statement).all()


__all__ = [
    "chronological_order",
    "delete_all_for_customer",
    "delete_transaction",
    "find_by_owner_and_customer",
    "find_latest_for_owner_customer",
    "get_owned_customer",
    "get_owned_transaction",
    "insert_transaction",
    "list_for_owner",
    "lock_pair",
    "newest_first_order",
    "next_sequence",
    "reload_owned_transaction",
    "update_fields",
]
