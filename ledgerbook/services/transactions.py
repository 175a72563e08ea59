"""Ledger transaction orchestration: add, edit, delete and summarise."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ledgerbook.models import Transaction, TransactionKind
from ledgerbook.models.base import as_utc, utcnow
from ledgerbook.services import ledger_store
from ledgerbook.services.balances import CENT, pair_lock, recalculate_pair, signed_amount
from ledgerbook.services.errors import ConcurrencyError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_SENTINEL: Any = object()


@dataclass(slots=True, frozen=True)
class LedgerSummary:
    """Dashboard totals for one owner.

    ``current_balance`` is the balance stored on the owner's most recently created
    transaction, whichever customer it belongs to. ``aggregate_balance`` is the sum
    of every customer's latest running balance.
    """

    total_received: Decimal
    total_given: Decimal
    current_balance: Decimal
    aggregate_balance: Decimal


def normalize_amount(amount: Decimal | int | float | str | None) -> Decimal:
    """Validate a ledger amount and quantize it to cents."""

    if amount is None or amount == "":
        raise ValidationError("Amount is required")
    try:
        value = Decimal(str(amount)).quantize(CENT)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Amount '{amount}' is not a valid number") from exc
    if value <= 0:
        raise ConflictError("Amount must be greater than zero")
    return value


class TransactionService:
    """Coordinates ledger mutations through the balance recalculation engine."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def add_transaction(
        self,
        *,
        owner_id: str,
        customer_id: str,
        kind: TransactionKind,
        amount: Decimal | int | float | str,
        description: str | None = None,
        occurred_at: datetime | None = None,
        commit: bool = True,
    ) -> Transaction:
        """Append a row to a pair ledger and return it with its balance populated.

        A row stamped at or after every existing row is the chronological last, so its
        balance is the previous latest balance plus its own signed amount. A back-dated
        row is inserted and the whole pair is replayed.
        """

        customer = ledger_store.get_owned_customer(self._session, owner_id=owner_id, customer_id=customer_id)
        if customer is None:
            raise NotFoundError(f"Customer '{customer_id}' was not found")
        kind = TransactionKind(kind)
        normalized_amount = normalize_amount(amount)
        stamp = as_utc(occurred_at) if occurred_at is not None else utcnow()

        with pair_lock(owner_id, customer_id):
            try:
                if ledger_store.lock_pair(self._session, owner_id=owner_id, customer_id=customer_id) is None:
                    raise NotFoundError(f"Customer '{customer_id}' was not found")
                latest = ledger_store.find_latest_for_owner_customer(
                    self._session, owner_id=owner_id, customer_id=customer_id
                )
                appended = latest is None or stamp >= as_utc(latest.occurred_at)
                previous_balance = Decimal(latest.balance) if latest is not None else Decimal("0")

                transaction = Transaction(
                    owner_id=owner_id,
                    customer_id=customer_id,
                    kind=kind,
                    amount=normalized_amount,
                    description=description or "",
                    occurred_at=stamp,
                    sequence=ledger_store.next_sequence(
                        self._session, owner_id=owner_id, customer_id=customer_id
                    ),
                    balance=(previous_balance + signed_amount(kind, normalized_amount)).quantize(CENT),
                )
                ledger_store.insert_transaction(self._session, transaction)

                if not appended:
                    recalculate_pair(
                        self._session, owner_id=owner_id, customer_id=customer_id, reason="backdated_insert"
                    )
                if commit:
                    self._session.commit()
            except Exception:
                self._session.rollback()
                raise

        if commit:
            self._session.refresh(transaction)
        logger.info(
            "ledger transaction added",
            extra={
                "owner_id": owner_id,
                "customer_id": customer_id,
                "transaction_id": transaction.id,
                "kind": kind.value,
                "appended": appended,
            },
        )
        return transaction

    def edit_transaction(
        self,
        *,
        owner_id: str,
        transaction_id: str,
        amount: Decimal | int | float | str | None = _SENTINEL,
        description: str | None = _SENTINEL,
        occurred_at: datetime | None = _SENTINEL,
    ) -> Transaction:
        """Edit amount, description or timestamp; kind and customer never change."""

        transaction = ledger_store.get_owned_transaction(
            self._session, owner_id=owner_id, transaction_id=transaction_id
        )
        if transaction is None:
            raise NotFoundError(f"Transaction '{transaction_id}' was not found")

        changes: dict[str, Any] = {}
        if amount is not _SENTINEL:
            changes["amount"] = normalize_amount(amount)
        if description is not _SENTINEL:
            changes["description"] = description or ""
        if occurred_at is not _SENTINEL:
            if occurred_at is None:
                raise ValidationError("occurred_at cannot be cleared")
            changes["occurred_at"] = as_utc(occurred_at)

        customer_id = transaction.customer_id
        with pair_lock(owner_id, customer_id):
            try:
                transaction = self._reload_under_lock(
                    owner_id=owner_id, customer_id=customer_id, transaction_id=transaction_id
                )
                if "occurred_at" in changes and as_utc(transaction.occurred_at) == changes["occurred_at"]:
                    changes.pop("occurred_at")
                changed = ledger_store.update_fields(transaction, changes)
                if changed & {"amount", "occurred_at"}:
                    recalculate_pair(self._session, owner_id=owner_id, customer_id=customer_id, reason="edit")
                else:
                    self._session.flush()
                self._session.commit()
            except StaleDataError as exc:
                self._session.rollback()
                raise ConcurrencyError("Transaction was modified concurrently") from exc
            except Exception:
                self._session.rollback()
                raise

        self._session.refresh(transaction)
        logger.info(
            "ledger transaction edited",
            extra={"owner_id": owner_id, "transaction_id": transaction_id, "fields": sorted(changed)},
        )
        return transaction

    def delete_transaction(self, *, owner_id: str, transaction_id: str) -> None:
        """Delete a row and replay the remaining rows of its pair ledger."""

        transaction = ledger_store.get_owned_transaction(
            self._session, owner_id=owner_id, transaction_id=transaction_id
        )
        if transaction is None:
            raise NotFoundError(f"Transaction '{transaction_id}' was not found")

        customer_id = transaction.customer_id
        with pair_lock(owner_id, customer_id):
            try:
                transaction = self._reload_under_lock(
                    owner_id=owner_id, customer_id=customer_id, transaction_id=transaction_id
                )
                ledger_store.delete_transaction(self._session, transaction)
                recalculate_pair(self._session, owner_id=owner_id, customer_id=customer_id, reason="delete")
                self._session.commit()
            except StaleDataError as exc:
                self._session.rollback()
                raise ConcurrencyError("Transaction was modified concurrently") from exc
            except Exception:
                self._session.rollback()
                raise

        logger.info(
            "ledger transaction deleted",
            extra={"owner_id": owner_id, "customer_id": customer_id, "transaction_id": transaction_id},
        )

    def _reload_under_lock(self, *, owner_id: str, customer_id: str, transaction_id: str) -> Transaction:
        # The row was looked up before the pair lock; a writer that held it first may have deleted it.
        ledger_store.lock_pair(self._session, owner_id=owner_id, customer_id=customer_id)
        transaction = ledger_store.reload_owned_transaction(
            self._session, owner_id=owner_id, transaction_id=transaction_id
        )
        if transaction is None:
            raise NotFoundError(f"Transaction '{transaction_id}' was not found")
        return transaction

    def list_transactions(self, *, owner_id: str, customer_id: str | None = None) -> Sequence[Transaction]:
        """An owner's transactions newest-first, optionally for a single customer."""

        if customer_id is None:
            return ledger_store.list_for_owner(self._session, owner_id=owner_id)
        if ledger_store.get_owned_customer(self._session, owner_id=owner_id, customer_id=customer_id) is None:
            raise NotFoundError(f"Customer '{customer_id}' was not found")
        return ledger_store.list_for_owner(self._session, owner_id=owner_id, customer_ids=[customer_id])

    def list_all_transactions(self) -> Sequence[Transaction]:
        statement = select(Transaction).order_by(*ledger_store.newest_first_order())
        return self._session.scalars(statement).all()

    def get_summary(self, *, owner_id: str) -> LedgerSummary:
        totals = self._session.execute(
            select(
                func.coalesce(
                    func.sum(case((Transaction.kind == TransactionKind.RECEIVED, Transaction.amount), else_=0)), 0
                ),
                func.coalesce(
                    func.sum(case((Transaction.kind == TransactionKind.GIVEN, Transaction.amount), else_=0)), 0
                ),
            ).where(Transaction.owner_id == owner_id)
        ).one()

        # ``sequence`` only orders rows within one pair, so it cannot break created_at ties here.
        most_recent = self._session.scalars(
            select(Transaction)
            .where(Transaction.owner_id == owner_id)
            .order_by(Transaction.created_at.desc())
            .limit(1)
        ).first()

        latest_per_customer: dict[str, Decimal] = {}
        rows = self._session.execute(
            select(Transaction.customer_id, Transaction.balance)
            .where(Transaction.owner_id == owner_id)
            .order_by(*ledger_store.chronological_order())
        )
        for customer_id, balance in rows:
            latest_per_customer[customer_id] = Decimal(balance)

        return LedgerSummary(
            total_received=Decimal(totals[0]).quantize(CENT),
            total_given=Decimal(totals[1]).quantize(CENT),
            current_balance=Decimal(most_recent.balance) if most_recent is not None else Decimal("0.00"),
            aggregate_balance=sum(latest_per_customer.values(), Decimal("0")).quantize(CENT),
        )


__all__ = ["LedgerSummary", "TransactionService", "normalize_amount"]
