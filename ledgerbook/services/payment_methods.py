"""Payment methods an owner advertises to payers through shared links."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ledgerbook.models import PaymentMethod, PaymentMethodType, UserRole
from ledgerbook.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_SENTINEL: Any = object()


class PaymentMethodService:
    """Owner-scoped CRUD; admins may edit or delete any owner's methods.

    At most one method per owner is the default: marking one as default clears the
    flag on every other method of the same owner.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def create_method(
        self,
        *,
        owner_id: str,
        type: PaymentMethodType | str,
        upi_id: str | None = None,
        qr_code: str | None = None,
        label: str | None = None,
        is_default: bool = False,
    ) -> PaymentMethod:
        try:
            method_type = PaymentMethodType(type)
        except ValueError as exc:
            raise ValidationError(f"Unknown payment method type '{type}'") from exc
        if method_type is PaymentMethodType.UPI and not (upi_id or "").strip():
            raise ValidationError("A UPI id is required for UPI payment methods")
        if method_type is PaymentMethodType.QR and not (qr_code or "").strip():
            raise ValidationError("A QR code is required for QR payment methods")

        if is_default:
            self._clear_defaults(owner_id)
        method = PaymentMethod(
            owner_id=owner_id,
            type=method_type,
            upi_id=upi_id.strip() if method_type is PaymentMethodType.UPI and upi_id else None,
            qr_code=qr_code if method_type is PaymentMethodType.QR else None,
            label=label or "",
            is_default=bool(is_default),
        )
        self._session.add(method)
        self._session.commit()
        self._session.refresh(method)
        logger.info(
            "payment method created",
            extra={"owner_id": owner_id, "payment_method_id": method.id, "type": method_type.value},
        )
        return method

    def list_methods(self, *, owner_id: str) -> Sequence[PaymentMethod]:
        statement = (
            select(PaymentMethod)
            .where(PaymentMethod.owner_id == owner_id)
            .order_by(PaymentMethod.created_at.desc())
        )
        return self._session.scalars(statement).all()

    def list_all_methods(self) -> Sequence[PaymentMethod]:
        return self._session.scalars(select(PaymentMethod).order_by(PaymentMethod.created_at.desc())).all()

    def update_method(
        self,
        *,
        actor_id: str,
        actor_role: UserRole | str,
        method_id: str,
        upi_id: str | None = _SENTINEL,
        qr_code: str | None = _SENTINEL,
        label: str | None = _SENTINEL,
        is_default: bool | None = _SENTINEL,
    ) -> PaymentMethod:
        """Edit the payload matching the method's type, its label or its default flag."""

        method = self._visible_method(actor_id=actor_id, actor_role=actor_role, method_id=method_id)
        if method.type is PaymentMethodType.UPI and upi_id is not _SENTINEL:
            if not (upi_id or "").strip():
                raise ValidationError("A UPI id is required for UPI payment methods")
            method.upi_id = upi_id.strip()
        if method.type is PaymentMethodType.QR and qr_code is not _SENTINEL:
            if not (qr_code or "").strip():
                raise ValidationError("A QR code is required for QR payment methods")
            method.qr_code = qr_code
        if label is not _SENTINEL:
            method.label = label or ""
        if is_default is not _SENTINEL and is_default is not None:
            if is_default:
                self._clear_defaults(method.owner_id, keep=method.id)
            method.is_default = bool(is_default)
        self._session.commit()
        self._session.refresh(method)
        return method

    def delete_method(self, *, actor_id: str, actor_role: UserRole | str, method_id: str) -> None:
        method = self._visible_method(actor_id=actor_id, actor_role=actor_role, method_id=method_id)
        self._session.delete(method)
        self._session.commit()
        logger.info(
            "payment method deleted",
            extra={"owner_id": method.owner_id, "payment_method_id": method_id, "actor_id": actor_id},
        )

    def _visible_method(self, *, actor_id: str, actor_role: UserRole | str, method_id: str) -> PaymentMethod:
        method = self._session.get(PaymentMethod, method_id)
        if method is None:
            raise NotFoundError("Payment method not found")
        if UserRole(actor_role) is not UserRole.ADMIN and method.owner_id != actor_id:
            raise NotFoundError("Payment method not found")
        return method

    def _clear_defaults(self, owner_id: str, *, keep: str | None = None) -> None:
        statement = update(PaymentMethod).where(
            PaymentMethod.owner_id == owner_id, PaymentMethod.is_default.is_(True)
        )
        if keep is not None:
            statement = statement.where(PaymentMethod.id != keep)
        self._session.execute(statement.values(is_default=False).execution_options(synchronize_session="fetch"))


__all__ = ["PaymentMethodService"]
