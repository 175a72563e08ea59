"""Seed script for a demo admin, a demo ledger owner and a small ledger."""
from __future__ import annotations

import logging
import os
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerbook.api.routes.auth import hash_password
from ledgerbook.db.session import SessionLocal, engine
from ledgerbook.models import Base, PaymentMethodType, TransactionKind, User, UserRole
from ledgerbook.models.base import utcnow
from ledgerbook.services.customers import CustomerService
from ledgerbook.services.payment_methods import PaymentMethodService
from ledgerbook.services.transactions import TransactionService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_DEFAULT_PASSWORD = os.environ.get("LEDGERBOOK_SEED_PASSWORD", "ledgerbook-demo")


def _ensure_user(session: Session, *, name: str, phone: str, role: UserRole) -> tuple[User, bool]:
    user = session.scalar(select(User).where(User.phone == phone))
    if user is not None:
        logger.info("User %s already exists", phone)
        return user, False
    user = User(name=name, phone=phone, role=role, hashed_password=hash_password(_DEFAULT_PASSWORD))
    session.add(user)
    session.commit()
    logger.info("Added %s user %s", role.value, phone)
    return user, True


def seed(session: Session) -> None:
    """Seed an admin, an owner, and one customer ledger with a back-dated entry."""

    _ensure_user(session, name="Demo Admin", phone="9000000000", role=UserRole.ADMIN)
    owner, created = _ensure_user(session, name="Demo Owner", phone="9000000001", role=UserRole.USER)
    if not created:
        return

    customer = CustomerService(session).create_customer(owner_id=owner.id, name="Asha", mobile="9990001111")
    ledger = TransactionService(session)
    now = utcnow()
    ledger.add_transaction(
        owner_id=owner.id,
        customer_id=customer.id,
        kind=TransactionKind.GIVEN,
        amount="1500.00",
        description="Advance for supplies",
        occurred_at=now - timedelta(days=3),
    )
    ledger.add_transaction(
        owner_id=owner.id,
        customer_id=customer.id,
        kind=TransactionKind.RECEIVED,
        amount="500.00",
        description="Part payment",
        occurred_at=now - timedelta(days=1),
    )
    PaymentMethodService(session).create_method(
        owner_id=owner.id,
        type=PaymentMethodType.UPI,
        upi_id="demo.owner@upi",
        label="Primary UPI",
        is_default=True,
    )
    logger.info("Seeded demo ledger for customer %s", customer.id)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed(session)


if __name__ == "__main__":
    main()
