"""
Product store backed by the Supabase "products" table.

Configurable parents and their variants share the table; variants point at
their parent through parent_id. Attribute values are stored as the nested
scoped payload (common / channel_specific / locale_specific /
channel_locale_specific).
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client
from models.product import ProductCreate, ProductRecord, ProductType
from exceptions import DatabaseError, NotFoundError

logger = structlog.get_logger(__name__)

PRODUCT_COLUMNS = "id, sku, type, status, parent_id, attribute_family_id, values"


def merge_values(existing: Optional[dict], incoming: Optional[dict]) -> dict:
    """
    Deep-merge a scoped value payload into the stored one.

    Nested dicts (scope → channel → locale) are merged key by key, leaf
    values from the incoming payload replace stored ones.
    """
    merged: dict[str, Any] = dict(existing or {})
    for key, value in (incoming or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_values(merged[key], value)
        else:
            merged[key] = value
    return merged


class ProductService:
    """
    Product persistence for the importer.

    Handles:
    - Lookup by SKU (the identity key across runs)
    - Creating product shells
    - Writing scoped values, nested variants and categories
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    # ===================
    # READ OPERATIONS
    # ===================

    def _variants_of(self, product_id: str) -> list[dict]:
        try:
            result = (
                self.db.table(self.table)
                .select("id, sku")
                .eq("parent_id", product_id)
                .order("sku")
                .execute()
            )
        except Exception as e:
            logger.error("get_variants_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))
        return result.data or []

    def _to_record(self, row: dict) -> ProductRecord:
        variants = []
        if row.get("type") == ProductType.CONFIGURABLE.value:
            variants = self._variants_of(row["id"])
        return ProductRecord(**{**row, "variants": variants})

    def get_row(self, product_id: str) -> dict:
        """
        Get the raw product row by id.

        Raises:
            NotFoundError: If product doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select(PRODUCT_COLUMNS)
                .eq("id", product_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise NotFoundError("Product", product_id)
        return result.data[0]

    def _find_row_by_sku(self, sku: str) -> Optional[dict]:
        """Get the raw product row for a SKU, or None."""
        try:
            result = (
                self.db.table(self.table)
                .select(PRODUCT_COLUMNS)
                .eq("sku", sku)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_product_by_sku_failed",
                sku=sku,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        return result.data[0] if result.data else None

    def find_by_sku(self, sku: str) -> Optional[ProductRecord]:
        """
        Get a product by SKU.

        Args:
            sku: Product SKU (handle for configurable parents)

        Returns:
            ProductRecord or None if not found
        """
        logger.debug("getting_product_by_sku", sku=sku)

        row = self._find_row_by_sku(sku)
        if row is None:
            return None
        return self._to_record(row)

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductCreate) -> ProductRecord:
        """
        Create a new product shell.

        Args:
            data: Product creation data

        Returns:
            Created ProductRecord
        """
        logger.info("creating_product", sku=data.sku, type=data.type.value)

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "sku": data.sku,
                    "type": data.type.value,
                    "status": data.status,
                    "attribute_family_id": data.attribute_family_id,
                    "super_attributes": data.super_attributes,
                    "values": {},
                })
                .execute()
            )
        except Exception as e:
            logger.error(
                "create_product_failed",
                sku=data.sku,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        product = ProductRecord(**result.data[0])
        logger.info("product_created", product_id=product.id, sku=product.sku)
        return product

    def update(self, payload: dict, product_id: str) -> ProductRecord:
        """
        Write a product payload.

        Args:
            payload: {sku, status, values, variants?, categories?}
            product_id: Product id

        Returns:
            Updated ProductRecord, with variants for configurable products

        Raises:
            NotFoundError: If product doesn't exist
        """
        logger.info("updating_product", product_id=product_id, sku=payload.get("sku"))

        existing = self.get_row(product_id)

        update_data: dict[str, Any] = {
            "values": merge_values(existing.get("values"), payload.get("values")),
        }
        if "status" in payload:
            update_data["status"] = payload["status"]
        if payload.get("categories") is not None:
            update_data["categories"] = payload["categories"]

        try:
            self.db.table(self.table).update(update_data).eq("id", product_id).execute()
        except Exception as e:
            logger.error(
                "update_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        variants = payload.get("variants") or {}
        if variants:
            self._write_variants(existing, variants)

        logger.info(
            "product_updated",
            product_id=product_id,
            fields=list(update_data.keys()),
            variants=len(variants)
        )
        return self._to_record(self.get_row(product_id))

    def _write_variants(self, parent: dict, variants: dict[str, dict]) -> None:
        """
        Update known children in place, insert the rest under the parent.

        A variant whose SKU is already stored outside this parent (e.g. a
        former simple product that gained options) is moved under the
        parent instead of being inserted a second time.
        """
        known_ids = {str(row["id"]) for row in self._variants_of(parent["id"])}

        for key, variant in variants.items():
            if str(key) in known_ids:
                self._update_variant(self.get_row(str(key)), variant)
                continue

            existing = self._find_row_by_sku(variant["sku"])
            if existing is not None:
                logger.info(
                    "variant_moved_under_parent",
                    sku=variant["sku"],
                    product_id=existing["id"],
                    parent_id=parent["id"]
                )
                self._update_variant(existing, variant, parent_id=parent["id"])
                continue

            self._insert_variant(parent, variant)

    def _update_variant(self, current: dict, variant: dict, parent_id: Optional[str] = None) -> None:
        update_data: dict[str, Any] = {
            "status": variant.get("status", current.get("status")),
            "values": merge_values(current.get("values"), variant.get("values")),
        }
        if parent_id is not None:
            update_data["parent_id"] = parent_id

        try:
            self.db.table(self.table).update(update_data).eq("id", current["id"]).execute()
        except Exception as e:
            logger.error(
                "write_variant_failed",
                product_id=current["id"],
                error=str(e)
            )
            raise DatabaseError("upsert", str(e))

    def _insert_variant(self, parent: dict, variant: dict) -> None:
        try:
            self.db.table(self.table).insert({
                "sku": variant["sku"],
                "type": ProductType.SIMPLE.value,
                "status": variant.get("status", 1),
                "parent_id": parent["id"],
                "attribute_family_id": parent.get("attribute_family_id"),
                "values": variant.get("values") or {},
            }).execute()
        except Exception as e:
            logger.error(
                "write_variant_failed",
                product_id=parent["id"],
                sku=variant["sku"],
                error=str(e)
            )
            raise DatabaseError("upsert", str(e))


# Singleton instance for convenience
_product_service: Optional[ProductService] = None


def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
