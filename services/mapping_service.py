"""
Identity mapping store (Shopify id ↔ PIM code).

The table carries a unique constraint on (entity_type, internal_code) so
two batches racing to record the same product end with one row.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.mapping import IdentityMapping
from exceptions import DatabaseError, DuplicateError

logger = structlog.get_logger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


def _is_unique_violation(error: Exception) -> bool:
    code = getattr(error, "code", None)
    return code == UNIQUE_VIOLATION or "duplicate key" in str(error).lower()


class MappingService:
    """Shopify identity mappings."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "shopify_mappings"

    def find_by_internal_code(self, code: str, entity_type: str = "product") -> Optional[IdentityMapping]:
        """
        Get the mapping recorded for a PIM code.

        Args:
            code: Product handle or variant SKU
            entity_type: Mapped entity kind

        Returns:
            IdentityMapping or None if not found
        """
        try:
            result = (
                self.db.table(self.table)
                .select("external_id, internal_code, import_run_id, parent_external_id, entity_type")
                .eq("entity_type", entity_type)
                .eq("internal_code", code)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_mapping_failed", code=code, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return IdentityMapping(**result.data[0])

    def create(self, mapping: IdentityMapping) -> IdentityMapping:
        """
        Insert a mapping.

        Raises:
            DuplicateError: If a mapping for the code already exists
        """
        try:
            result = (
                self.db.table(self.table)
                .insert(mapping.model_dump())
                .execute()
            )
        except Exception as e:
            if _is_unique_violation(e):
                raise DuplicateError("Mapping", "internal_code", mapping.internal_code)
            logger.error(
                "create_mapping_failed",
                code=mapping.internal_code,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        logger.debug(
            "mapping_created",
            code=mapping.internal_code,
            external_id=mapping.external_id
        )
        return IdentityMapping(**{**mapping.model_dump(), **(result.data[0] if result.data else {})})


_mapping_service: Optional[MappingService] = None


def get_mapping_service() -> MappingService:
    """Get or create MappingService instance."""
    global _mapping_service
    if _mapping_service is None:
        _mapping_service = MappingService()
    return _mapping_service
