"""
Category lookups for Shopify collections.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class CategoryService:
    """PIM category master data (read-only)."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "categories"

    def find_by_code(self, code: str) -> Optional[dict]:
        """
        Get a category by code.

        Args:
            code: Category code (Shopify collection handle)

        Returns:
            Category row or None if not found
        """
        try:
            result = (
                self.db.table(self.table)
                .select("id, code")
                .eq("code", code)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_category_failed", code=code, error=str(e))
            raise DatabaseError("select", str(e))

        return result.data[0] if result.data else None


_category_service: Optional[CategoryService] = None


def get_category_service() -> CategoryService:
    """Get or create CategoryService instance."""
    global _category_service
    if _category_service is None:
        _category_service = CategoryService()
    return _category_service
