"""Pydantic schemas for API key management.

Learn: Separate "Create" (input), "Created" (one-time response carrying the
raw key) and "Read" (listing, never the key) models.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from backstage.schemas.common import uuid_string


class ApiKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    account_id: Optional[str] = None
    organization_id: Optional[str] = None
    expires_days: Optional[int] = Field(None, ge=1, description="Expire in N days (None = never)")

    @field_validator("account_id", "organization_id", mode="before")
    @classmethod
    def _uuid_fields(cls, value, info: ValidationInfo):
        return uuid_string(value, info.field_name)


class ApiKeyCreated(BaseModel):
    """Response for API key creation — key is only shown ONCE."""
    id: uuid.UUID
    name: str
    key: str
    prefix: str
    account_id: uuid.UUID
    organization_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class ApiKeyRead(BaseModel):
    id: uuid.UUID
    name: str
    prefix: str
    account_id: uuid.UUID
    organization_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
