"""Running-balance recalculation for (owner, customer) ledgers.

A pair ledger is the sequence of transactions for one owner and one customer,
ordered by ``occurred_at`` with creation order breaking ties. Each row caches the
pair's running balance as of that row: ``received`` adds its amount, ``given``
subtracts it. Because ``occurred_at`` is editable a single change can move a row
anywhere in the sequence, so every edit and delete replays the whole pair.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from threading import Lock, RLock

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ledgerbook.models import Transaction, TransactionKind
from ledgerbook.obs import BALANCE_RECALCULATION_COUNTER, BALANCE_ROWS_REWRITTEN_COUNTER, ledger_span
from ledgerbook.services import ledger_store
from ledgerbook.services.errors import ConcurrencyError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def signed_amount(kind: TransactionKind, amount: Decimal) -> Decimal:
    """Contribution of one row to the owner's balance with the customer."""
    value = Decimal(amount)
    return value if kind == TransactionKind.RECEIVED else -value


def replay_balances(rows: Iterable[Transaction]) -> list[Decimal]:
    """Running balances for rows already in chronological order, starting from zero."""

    running = Decimal("0")
    balances: list[Decimal] = []
    for row in rows:
        running = (running + signed_amount(row.kind, row.amount)).quantize(CENT)
        balances.append(running)
    return balances


@dataclass(slots=True, frozen=True)
class RecalculationResult:
    """Outcome of one full walk over a pair ledger."""

    owner_id: str
    customer_id: str
    rows_examined: int
    rows_changed: int
    final_balance: Decimal


class PairLockRegistry:
    """Per-(owner, customer) mutual exclusion within this process.

    Locks are reference counted and dropped once no caller holds or waits on them,
    so the registry does not grow with the number of customers ever touched.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[tuple[str, str], list] = {}

    @contextmanager
    def hold(self, owner_id: str, customer_id: str) -> Iterator[None]:
        key = (owner_id, customer_id)
        with self._guard:
            entry = self._locks.setdefault(key, [RLock(), 0])
            entry[1] += 1
        lock: RLock = entry[0]
        try:
            with lock:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)

    def active_keys(self) -> set[tuple[str, str]]:
        with self._guard:
            return set(self._locks)


_registry = PairLockRegistry()


def pair_lock(owner_id: str, customer_id: str):
    """Serialise read-all/recompute/write-all for one pair ledger.

    Callers must keep the scope open until their database transaction commits;
    mutations on other pairs never wait on it.
    """
    return _registry.hold(owner_id, customer_id)


def recalculate_pair(
    session: Session,
    *,
    owner_id: str,
    customer_id: str,
    reason: str = "edit",
) -> RecalculationResult:
    """Recompute and persist every running balance of one pair ledger.

    Pending changes are flushed first so the database ordering reflects them. Only
    rows whose cached balance differs from the replayed value are written. Nothing
    is committed here; a stale row raises :class:`ConcurrencyError` and the caller's
    transaction should be rolled back.
    """

    with ledger_span(
        "ledger.recalculate_pair", owner_id=owner_id, customer_id=customer_id, reason=reason
    ) as span:
        try:
            session.flush()
            rows = ledger_store.find_by_owner_and_customer(
                session, owner_id=owner_id, customer_id=customer_id, for_update=True
            )
            changed = 0
            for row, expected in zip(rows, replay_balances(rows)):
                current = row.balance
                if current is None or Decimal(current) != expected:
                    row.balance = expected
                    changed += 1
            session.flush()
        except StaleDataError as exc:
            raise ConcurrencyError("Ledger was modified concurrently; retry the operation") from exc

        final_balance = Decimal(rows[-1].balance) if rows else Decimal("0")
        span.set_attribute("ledger.rows_examined", len(rows))
        span.set_attribute("ledger.rows_changed", changed)

    BALANCE_RECALCULATION_COUNTER.labels(reason=reason).inc()
    if changed:
        BALANCE_ROWS_REWRITTEN_COUNTER.inc(changed)
    logger.debug(
        "recalculated pair ledger",
        extra={
            "owner_id": owner_id,
            "customer_id": customer_id,
            "rows_examined": len(rows),
            "rows_changed": changed,
        },
    )
    return RecalculationResult(
        owner_id=owner_id,
        customer_id=customer_id,
        rows_examined=len(rows),
        rows_changed=changed,
        final_balance=final_balance,
    )


__all__ = [
    "CENT",
    "PairLockRegistry",
    "RecalculationResult",
    "pair_lock",
    "recalculate_pair",
    "replay_balances",
    "signed_amount",
]
