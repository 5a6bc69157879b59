"""
Base schemas shared by all models.
"""

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict


def _as_str(value):
    return value if value is None else str(value)


# Supabase returns numeric or uuid primary keys depending on the table
IdStr = Annotated[str, BeforeValidator(_as_str)]


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class FrozenSchema(BaseModel):
    """Immutable schema for metadata snapshots held for a whole run."""
    model_config = ConfigDict(
        from_attributes=True,
        frozen=True
    )
