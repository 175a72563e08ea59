"""Phone-gated, time-limited shared views of an owner's ledger.

A shared link is a capability: whoever holds the token and the bound phone number
can read the owner's ledger (optionally a single customer's rows) until the link
expires or is revoked. The reader sees the counterparty's side of the ledger, so
every row is shown with its kind swapped and its balance negated. That reversal
happens at read time only.
"""
from __future__ import annotations

import logging
import secrets
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerbook.core.config import Settings, get_settings
from ledgerbook.models import PaymentMethod, SharedLink, Transaction, TransactionKind, User
from ledgerbook.models.base import utcnow
from ledgerbook.services import ledger_store
from ledgerbook.services.errors import (
    InvalidOrExpiredLinkError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_TOKEN_BYTES = 32


@dataclass(slots=True, frozen=True)
class CreatedLink:
    token: str
    phone_number: str
    customer_id: str | None
    expires_at: datetime
    share_url: str


@dataclass(slots=True, frozen=True)
class LinkMetadata:
    """What a landing page may show before the phone number is entered."""

    owner_name: str
    owner_phone: str
    expires_at: datetime
    customer_scoped: bool


@dataclass(slots=True, frozen=True)
class ReversedTransaction:
    id: str
    customer_id: str
    kind: TransactionKind
    amount: Decimal
    description: str
    occurred_at: datetime
    balance: Decimal


@dataclass(slots=True, frozen=True)
class SharedLedgerView:
    owner_name: str
    owner_phone: str
    customer_id: str | None
    transactions: list[ReversedTransaction]


def reverse_perspective(transaction: Transaction) -> ReversedTransaction:
    """The counterparty's reading of one ledger row."""

    return ReversedTransaction(
        id=transaction.id,
        customer_id=transaction.customer_id,
        kind=TransactionKind(transaction.kind).opposite,
        amount=Decimal(transaction.amount),
        description=transaction.description,
        occurred_at=transaction.occurred_at,
        balance=-Decimal(transaction.balance),
    )


class SharedLinkGateway:
    """Issues, resolves and revokes shared links."""

    def __init__(self, session: Session, *, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()

    def create_link(
        self,
        *,
        owner_id: str,
        phone_number: str | None,
        customer_id: str | None = None,
        now: datetime | None = None,
    ) -> CreatedLink:
        phone = (phone_number or "").strip()
        if not phone:
            raise ValidationError("Mobile number is required")
        if customer_id is not None:
            customer = ledger_store.get_owned_customer(self._session, owner_id=owner_id, customer_id=customer_id)
            if customer is None:
                raise NotFoundError(f"Customer '{customer_id}' was not found")

        expires_at = (now or utcnow()) + timedelta(days=self._settings.shared_link_ttl_days)
        link = SharedLink(
            token=secrets.token_hex(_TOKEN_BYTES),
            owner_id=owner_id,
            phone_number=phone,
            customer_id=customer_id,
            expires_at=expires_at,
        )
        self._session.add(link)
        self._session.commit()
        self._session.refresh(link)

        logger.info(
            "shared link created",
            extra={"owner_id": owner_id, "link_id": link.id, "customer_scoped": customer_id is not None},
        )
        return CreatedLink(
            token=link.token,
            phone_number=link.phone_number,
            customer_id=link.customer_id,
            expires_at=expires_at,
            share_url=f"{self._settings.shared_link_base_url.rstrip('/')}/shared/{link.token}",
        )

    def list_links(self, *, owner_id: str) -> Sequence[SharedLink]:
        statement = (
            select(SharedLink)
            .where(SharedLink.owner_id == owner_id)
            .order_by(SharedLink.created_at.desc())
        )
        return self._session.scalars(statement).all()

    def revoke(self, *, owner_id: str, token: str, now: datetime | None = None) -> SharedLink:
        """Invalidate a link before its expiry. Revoking twice is a no-op."""

        link = self._session.scalar(select(SharedLink).where(SharedLink.token == token))
        if link is None or link.owner_id != owner_id:
            raise NotFoundError("Shared link was not found")
        if link.revoked_at is None:
            link.revoked_at = now or utcnow()
            self._session.commit()
            self._session.refresh(link)
            logger.info("shared link revoked", extra={"owner_id": owner_id, "link_id": link.id})
        return link

    def resolve_metadata(self, token: str, *, now: datetime | None = None) -> LinkMetadata:
        link = self._active_link(token, now=now)
        owner = self._session.get(User, link.owner_id)
        if owner is None:
            raise InvalidOrExpiredLinkError()
        return LinkMetadata(
            owner_name=owner.name,
            owner_phone=owner.phone,
            expires_at=link.expires_at,
            customer_scoped=link.customer_id is not None,
        )

    def verify(self, token: str, phone_number: str | None, *, now: datetime | None = None) -> SharedLedgerView:
        """Check the token and phone number, then release the reversed ledger view.

        Nothing is recorded on success, so the same pair can be verified again until
        the link expires.
        """

        link = self.authorize(token, phone_number, now=now)
        owner = self._session.get(User, link.owner_id)
        if owner is None:
            raise InvalidOrExpiredLinkError()

        customer_ids = [link.customer_id] if link.customer_id is not None else None
        rows = ledger_store.list_for_owner(self._session, owner_id=link.owner_id, customer_ids=customer_ids)
        logger.info(
            "shared link verified",
            extra={"owner_id": link.owner_id, "link_id": link.id, "rows": len(rows)},
        )
        return SharedLedgerView(
            owner_name=owner.name,
            owner_phone=owner.phone,
            customer_id=link.customer_id,
            transactions=[reverse_perspective(row) for row in rows],
        )

    def list_payment_methods(self, token: str, *, now: datetime | None = None) -> Sequence[PaymentMethod]:
        """The owner's payment methods, default first then newest."""

        link = self._active_link(token, now=now)
        statement = (
            select(PaymentMethod)
            .where(PaymentMethod.owner_id == link.owner_id)
            .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc())
        )
        return self._session.scalars(statement).all()

    def authorize(self, token: str, phone_number: str | None, *, now: datetime | None = None) -> SharedLink:
        """Return the active link for ``token`` once ``phone_number`` matches it exactly."""

        phone = (phone_number or "").strip()
        if not phone:
            raise ValidationError("Phone number is required")
        link = self._active_link(token, now=now)
        if link.phone_number != phone:
            logger.warning("shared link phone mismatch", extra={"link_id": link.id})
            raise UnauthorizedError("Invalid phone number")
        return link

    def _active_link(self, token: str, *, now: datetime | None = None) -> SharedLink:
        current_time = now or utcnow()
        statement = select(SharedLink).where(
            SharedLink.token == token,
            SharedLink.expires_at > current_time,
            SharedLink.revoked_at.is_(None),
        )
        link = self._session.scalar(statement)
        if link is None:
            raise InvalidOrExpiredLinkError()
        return link


__all__ = [
    "CreatedLink",
    "LinkMetadata",
    "ReversedTransaction",
    "SharedLedgerView",
    "SharedLinkGateway",
    "reverse_perspective",
]
