"""
Identity mapper.

Records which Shopify id each imported product or variant came from.
Lookups are by PIM code, so recording the same code twice is a no-op.
"""

from typing import Optional
import structlog

from models.mapping import IdentityMapping
from exceptions import DuplicateError

logger = structlog.get_logger(__name__)


class IdentityMapper:
    """Find-or-record over a mapping store."""

    def __init__(self, mapping_store):
        self.store = mapping_store

    def ensure_mapping(
        self,
        internal_code: str,
        external_id: str,
        import_run_id: str,
        parent_external_id: Optional[str] = None
    ) -> IdentityMapping:
        """
        Get the mapping for a code, recording it when missing.

        Args:
            internal_code: Handle (parents) or SKU (variants, simple products)
            external_id: Shopify GID
            import_run_id: Current job id
            parent_external_id: Parent product GID, for variants

        Returns:
            The stored mapping (possibly from an earlier run)
        """
        existing = self.store.find_by_internal_code(internal_code)
        if existing is not None:
            return existing

        mapping = IdentityMapping(
            external_id=external_id,
            internal_code=internal_code,
            import_run_id=import_run_id,
            parent_external_id=parent_external_id,
        )
        try:
            created = self.store.create(mapping)
        except DuplicateError:
            # Another batch recorded it between our lookup and insert
            logger.info("mapping_already_exists", code=internal_code)
            return self.store.find_by_internal_code(internal_code) or mapping

        logger.debug(
            "mapping_recorded",
            code=internal_code,
            external_id=external_id,
            parent_external_id=parent_external_id
        )
        return created
