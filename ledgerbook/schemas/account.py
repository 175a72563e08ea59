"""Pydantic schemas for users and account deletion requests."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ledgerbook.models import DeletionRequestStatus, UserRole


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    phone: str
    email: str | None
    role: UserRole
    created_at: datetime


class DeletionRequestCreate(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class DeletionRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    user_name: str
    user_phone: str
    status: DeletionRequestStatus
    reason: str
    processed_at: datetime | None
    processed_by: str | None
    created_at: datetime


__all__ = ["DeletionRequestCreate", "DeletionRequestRead", "UserRead"]
