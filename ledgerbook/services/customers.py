"""Customer management for ledger owners."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ledgerbook.models import Customer, SharedLink
from ledgerbook.services import ledger_store
from ledgerbook.services.balances import pair_lock
from ledgerbook.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _require_text(value: str | None, field_name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field_name} is required")
    return cleaned


class CustomerService:
    """CRUD over an owner's customers."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create_customer(self, *, owner_id: str, name: str, mobile: str, commit: bool = True) -> Customer:
        customer = Customer(
            owner_id=owner_id,
            name=_require_text(name, "Name"),
            mobile=_require_text(mobile, "Mobile"),
        )
        self._session.add(customer)
        self._session.flush()
        if commit:
            self._session.commit()
            self._session.refresh(customer)
        logger.info("customer created", extra={"owner_id": owner_id, "customer_id": customer.id})
        return customer

    def list_customers(self, *, owner_id: str) -> Sequence[Customer]:
        statement = (
            select(Customer)
            .where(Customer.owner_id == owner_id)
            .order_by(Customer.name.asc(), Customer.created_at.asc())
        )
        return self._session.scalars(statement).all()

    def get_customer(self, *, owner_id: str, customer_id: str) -> Customer:
        customer = ledger_store.get_owned_customer(self._session, owner_id=owner_id, customer_id=customer_id)
        if customer is None:
            raise NotFoundError(f"Customer '{customer_id}' was not found")
        return customer

    def update_customer(
        self,
        *,
        owner_id: str,
        customer_id: str,
        name: str | None = None,
        mobile: str | None = None,
    ) -> Customer:
        customer = self.get_customer(owner_id=owner_id, customer_id=customer_id)
        if name is not None:
            customer.name = _require_text(name, "Name")
        if mobile is not None:
            customer.mobile = _require_text(mobile, "Mobile")
        self._session.commit()
        self._session.refresh(customer)
        return customer

    def delete_customer(self, *, owner_id: str, customer_id: str) -> int:
        """Delete a customer with its whole pair ledger and any links scoped to it.

        Returns the number of transactions removed.
        """

        customer = self.get_customer(owner_id=owner_id, customer_id=customer_id)
        with pair_lock(owner_id, customer_id):
            try:
                ledger_store.lock_pair(self._session, owner_id=owner_id, customer_id=customer_id)
                removed = ledger_store.delete_all_for_customer(
                    self._session, owner_id=owner_id, customer_id=customer_id
                )
                self._session.execute(
                    delete(SharedLink).where(
                        SharedLink.owner_id == owner_id, SharedLink.customer_id == customer_id
                    )
                )
                self._session.expire(customer, ["transactions"])
                self._session.delete(customer)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
        logger.info(
            "customer deleted",
            extra={"owner_id": owner_id, "customer_id": customer_id, "transactions_removed": removed},
        )
        return removed

    def find_by_mobile(self, *, owner_id: str, mobile: str) -> Customer | None:
        statement = (
            select(Customer)
            .where(Customer.owner_id == owner_id, Customer.mobile == mobile)
            .order_by(Customer.created_at.asc())
            .limit(1)
        )
        return self._session.scalars(statement).first()

    def find_or_create_by_mobile(
        self, *, owner_id: str, mobile: str, name: str | None = None, commit: bool = True
    ) -> Customer:
        """Return the owner's oldest customer with this mobile, creating one if absent."""

        mobile = _require_text(mobile, "Mobile")
        existing = self.find_by_mobile(owner_id=owner_id, mobile=mobile)
        if existing is not None:
            return existing
        return self.create_customer(owner_id=owner_id, name=name or mobile, mobile=mobile, commit=commit)


__all__ = ["CustomerService"]
