"""
Attribute and attribute-family metadata read from the PIM.

These are snapshots: the importer never writes them.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from models.base import FrozenSchema, IdStr


class AttributeType(str, Enum):
    """PIM attribute types."""
    TEXT = "text"
    TEXTAREA = "textarea"
    BOOLEAN = "boolean"
    PRICE = "price"
    NUMBER = "number"
    SELECT = "select"
    MULTISELECT = "multiselect"
    CHECKBOX = "checkbox"
    DATE = "date"
    DATETIME = "datetime"
    IMAGE = "image"
    GALLERY = "gallery"
    FILE = "file"


class AttributeDefinition(FrozenSchema):
    """
    One attribute definition.

    The two scoping flags decide where a value for this attribute is
    written (see services.scope_classifier).
    """

    code: str = Field(..., min_length=1, description="Attribute code")
    type: AttributeType = Field(AttributeType.TEXT, description="Attribute type")
    is_required: bool = Field(False, description="Value must be present")
    value_per_locale: bool = Field(False, description="Value varies by locale")
    value_per_channel: bool = Field(False, description="Value varies by channel")
    allowed_options: frozenset[str] = Field(
        default_factory=frozenset,
        description="Option codes for select-like attributes"
    )

    @field_validator("allowed_options", mode="before")
    @classmethod
    def options_as_set(cls, v):
        """Accept any iterable (Supabase returns JSON arrays)."""
        if v is None:
            return frozenset()
        return frozenset(str(code) for code in v)

    def find_option(self, option_code: str) -> Optional[str]:
        """
        Look up an allowed option, ignoring case.

        Returns:
            The option code as stored on the attribute, or None
        """
        if not option_code:
            return None
        wanted = option_code.lower()
        for code in self.allowed_options:
            if code.lower() == wanted:
                return code
        return None


class AttributeFamily(FrozenSchema):
    """Attribute family with its ordered configurable attribute codes."""

    id: IdStr = Field(..., description="Family id")
    code: Optional[str] = Field(None, description="Family code")
    configurable_attribute_codes: tuple[str, ...] = Field(
        default=(),
        description="Attributes a configurable product of this family may vary on"
    )
