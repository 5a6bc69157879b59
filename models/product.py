"""
Product schemas exchanged with the product store.

See models.scope for the value payload carried by each write.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, IdStr
from models.scope import ScopedValueSet


class ProductType(str, Enum):
    """Product shapes the importer creates."""
    CONFIGURABLE = "configurable"
    SIMPLE = "simple"


class ProductCreate(BaseSchema):
    """
    Create a new product shell.

    Values are written afterwards with a full update payload.
    """

    type: ProductType = Field(..., description="configurable or simple")
    sku: str = Field(..., min_length=1, description="Product SKU (stable identity)")
    status: int = Field(1, ge=0, le=1, description="1 = enabled")
    attribute_family_id: IdStr = Field(..., description="Attribute family id")
    super_attributes: list[str] = Field(
        default_factory=list,
        description="Option axes a configurable product varies on"
    )


class VariantRef(BaseSchema):
    """A child variant as returned by the product store."""
    id: IdStr
    sku: str


class ProductRecord(BaseSchema):
    """
    Product as returned by the product store.

    Variants are only populated for configurable products.
    """

    id: IdStr = Field(..., description="Product id")
    sku: str = Field(..., description="Product SKU")
    type: ProductType = Field(ProductType.SIMPLE, description="Product type")
    status: int = Field(1, description="1 = enabled")
    parent_id: Optional[IdStr] = Field(None, description="Configurable parent id")
    variants: list[VariantRef] = Field(default_factory=list)

    @field_validator("variants", mode="before")
    @classmethod
    def variants_default(cls, v):
        return v or []

    def variant_ids_by_sku(self) -> dict[str, str]:
        return {variant.sku: variant.id for variant in self.variants}


@dataclass
class VariantPayload:
    """One processed variant, ready to be nested into its parent's write."""
    sku: str
    status: int
    values: ScopedValueSet
    exists: bool = False

    def to_payload(self, channel: str, locale: str) -> dict[str, Any]:
        return {
            "sku": self.sku,
            "status": self.status,
            "values": self.values.to_values(channel, locale),
        }
