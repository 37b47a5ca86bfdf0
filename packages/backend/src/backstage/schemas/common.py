"""Shared field validators.

Learn: account_id / organization_id arrive as free-form caller input. They
are kept as strings (the auth core compares ids as strings) but must look
like UUIDs, with an error message that names the field.
"""

import uuid
from typing import Optional

from pydantic_core import PydanticCustomError


def uuid_string(value: Optional[str], field: str) -> Optional[str]:
    if value is None:
        return None
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError):
        raise PydanticCustomError("uuid_format", f"{field} must be a valid UUID")
