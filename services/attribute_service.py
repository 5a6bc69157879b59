"""
Attribute and attribute-family store.

Read-only access to the PIM attribute definitions. The import engine only
reads these through services.attribute_cache, once per run.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.attribute import AttributeDefinition, AttributeFamily
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

ATTRIBUTE_SELECT = "code, type, is_required, value_per_locale, value_per_channel, attribute_options(code)"


def _row_to_attribute(row: dict) -> AttributeDefinition:
    options = row.get("attribute_options") or row.get("allowed_options") or []
    return AttributeDefinition(
        code=row["code"],
        type=row.get("type") or "text",
        is_required=bool(row.get("is_required")),
        value_per_locale=bool(row.get("value_per_locale")),
        value_per_channel=bool(row.get("value_per_channel")),
        allowed_options=[o["code"] if isinstance(o, dict) else o for o in options],
    )


class AttributeService:
    """
    Attribute definition lookups.

    Handles:
    - Single attribute by code
    - Full attribute list (run snapshot)
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "attributes"

    def find_by_code(self, code: str) -> Optional[AttributeDefinition]:
        """
        Get an attribute by code.

        Args:
            code: Attribute code

        Returns:
            AttributeDefinition or None if not found
        """
        logger.debug("getting_attribute", code=code)

        try:
            result = (
                self.db.table(self.table)
                .select(ATTRIBUTE_SELECT)
                .eq("code", code)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_attribute_failed", code=code, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return _row_to_attribute(result.data[0])

    def all(self) -> list[AttributeDefinition]:
        """Get every attribute definition."""
        try:
            result = (
                self.db.table(self.table)
                .select(ATTRIBUTE_SELECT)
                .order("code")
                .execute()
            )
        except Exception as e:
            logger.error("get_attributes_failed", error=str(e))
            raise DatabaseError("select", str(e))

        attributes = [_row_to_attribute(row) for row in result.data]
        logger.info("attributes_retrieved", count=len(attributes))
        return attributes


class FamilyService:
    """Attribute family lookups."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "attribute_families"

    def find_by_id(self, family_id: str) -> Optional[AttributeFamily]:
        """
        Get a family with its configurable attribute codes.

        Args:
            family_id: Family id

        Returns:
            AttributeFamily or None if not found
        """
        logger.debug("getting_family", family_id=family_id)

        try:
            result = (
                self.db.table(self.table)
                .select("id, code, configurable_attributes")
                .eq("id", family_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_family_failed", family_id=family_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None

        row = result.data[0]
        return AttributeFamily(
            id=row["id"],
            code=row.get("code"),
            configurable_attribute_codes=tuple(row.get("configurable_attributes") or ()),
        )


_attribute_service: Optional[AttributeService] = None
_family_service: Optional[FamilyService] = None


def get_attribute_service() -> AttributeService:
    """Get or create AttributeService instance."""
    global _attribute_service
    if _attribute_service is None:
        _attribute_service = AttributeService()
    return _attribute_service


def get_family_service() -> FamilyService:
    """Get or create FamilyService instance."""
    global _family_service
    if _family_service is None:
        _family_service = FamilyService()
    return _family_service
