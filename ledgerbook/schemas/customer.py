"""Pydantic schemas for customer resources."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    mobile: str = Field(..., min_length=1, max_length=32)


class CustomerUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    mobile: str | None = Field(default=None, min_length=1, max_length=32)


class CustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    mobile: str
    created_at: datetime


__all__ = ["CustomerCreate", "CustomerRead", "CustomerUpdate"]
