"""Response schema for the resolved auth context."""

from typing import Optional

from pydantic import BaseModel


class AuthContextRead(BaseModel):
    account_id: str
    org_id: Optional[str] = None
