"""
Shopify connector configuration: credentials, job filters and the
source field → PIM attribute mapping table.
"""

from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, IdStr

# Shopify product node fields that may be mapped to attributes
PRODUCT_FIELDS = ("title", "handle", "vendor", "descriptionHtml", "productType", "tags")

# Pseudo-fields read from node["seo"]
SEO_FIELDS = ("metafields_global_title_tag", "metafields_global_description_tag")

# Variant node fields handled by services.variant_fields
VARIANT_FIELDS = (
    "inventoryPolicy",
    "barcode",
    "taxable",
    "compareAtPrice",
    "sku",
    "inventoryTracked",
    "cost",
    "weight",
    "price",
    "inventoryQuantity",
)


class ShopifyCredential(BaseSchema):
    """Stored Shopify Admin API credential."""

    id: IdStr = Field(..., description="Credential id")
    shop_url: str = Field(..., description="https://<shop>.myshopify.com")
    access_token: str = Field(..., description="Admin API access token")
    api_version: Optional[str] = Field(None, description="Admin API version")
    active: bool = Field(True, description="Disabled credentials cannot run imports")
    extras: dict[str, Any] = Field(default_factory=dict)

    @field_validator("extras", mode="before")
    @classmethod
    def extras_default(cls, v):
        return v or {}

    @property
    def metafield_keys(self) -> tuple[str, ...]:
        """Product then variant metafield keys selected for import."""
        keys: list[str] = []
        for group in ("productMetafield", "productVariantMetafield"):
            for key in (self.extras.get(group) or {}):
                if key not in keys:
                    keys.append(key)
        return tuple(keys)


class ImportFilters(BaseSchema):
    """Per-job filters: which credential, and the active scope."""

    credentials: Optional[IdStr] = Field(None, description="Credential id")
    locale: Optional[str] = Field(None, description="Active locale code")
    channel: Optional[str] = Field(None, description="Active channel code")
    currency: Optional[str] = Field(None, description="Active currency code")


class ImportMapping(BaseSchema):
    """
    Declarative Shopify → PIM attribute mapping.

    Built from the connector settings blob:
        {"family_variant": "4", "variantimages": "variant_image",
         "images": "image,gallery_1", "title": "name", "price": "price", ...}
    """

    family_variant: Optional[IdStr] = Field(None, description="Family id for imported products")
    variant_image_attribute: Optional[str] = Field(None, description="Attribute for variant images")
    image_attributes: tuple[str, ...] = Field(
        default=(),
        description="Attributes receiving product images, by position"
    )
    fields: dict[str, str] = Field(
        default_factory=dict,
        description="Shopify field name → PIM attribute code"
    )

    @classmethod
    def from_connector_settings(cls, raw: Optional[dict]) -> "ImportMapping":
        """Split the flat connector settings blob into its parts."""
        raw = dict(raw or {})
        family = raw.pop("family_variant", None) or None
        variant_image = raw.pop("variantimages", None) or None
        images = raw.pop("images", None) or ""
        image_attributes = tuple(code.strip() for code in images.split(",") if code.strip())
        fields = {source: target for source, target in raw.items() if isinstance(target, str) and target}
        return cls(
            family_variant=family,
            variant_image_attribute=variant_image,
            image_attributes=image_attributes,
            fields=fields,
        )

    def _subset(self, names: tuple[str, ...]) -> dict[str, str]:
        return {source: target for source, target in self.fields.items() if source in names}

    @property
    def product_fields(self) -> dict[str, str]:
        return self._subset(PRODUCT_FIELDS)

    @property
    def seo_fields(self) -> dict[str, str]:
        return self._subset(SEO_FIELDS)

    @property
    def variant_fields(self) -> dict[str, str]:
        return self._subset(VARIANT_FIELDS)
