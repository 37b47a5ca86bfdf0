"""Pydantic schemas for artists."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from backstage.schemas.common import uuid_string


class ArtistCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    account_id: Optional[str] = None
    organization_id: Optional[str] = None

    @field_validator("account_id", "organization_id", mode="before")
    @classmethod
    def _uuid_fields(cls, value, info: ValidationInfo):
        return uuid_string(value, info.field_name)


class ArtistRead(BaseModel):
    id: uuid.UUID
    name: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
