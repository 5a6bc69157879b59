"""Identity mapping between Shopify ids and PIM codes."""

from typing import Optional

from pydantic import BaseModel

from models.base import IdStr


class IdentityMapping(BaseModel):
    """Shopify GID recorded against the PIM code it was imported as."""
    external_id: str                          # Shopify GID, e.g. gid://shopify/Product/1
    internal_code: str                        # Product handle or variant SKU
    import_run_id: IdStr                      # Job that first imported it
    parent_external_id: Optional[str] = None  # Set for variants
    entity_type: str = "product"
