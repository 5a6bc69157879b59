"""
Shopify connector configuration store.

Credentials live in "shopify_credentials"; the attribute mapping is the
"shopify_connector_settings" entry of one "shopify_export_mappings" row.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.connector import ImportMapping, ShopifyCredential
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

CONNECTOR_SETTINGS_KEY = "shopify_connector_settings"


class ConnectorService:
    """Credentials and import mapping lookups."""

    def __init__(self):
        self.db = get_supabase_client()
        self.credentials_table = "shopify_credentials"
        self.mappings_table = "shopify_export_mappings"

    def get_credential(self, credential_id: str) -> Optional[ShopifyCredential]:
        """
        Get a stored Shopify credential.

        Args:
            credential_id: Credential id

        Returns:
            ShopifyCredential or None if not found
        """
        try:
            result = (
                self.db.table(self.credentials_table)
                .select("id, shop_url, access_token, api_version, active, extras")
                .eq("id", credential_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_credential_failed", credential_id=credential_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return ShopifyCredential(**result.data[0])

    def get_import_mapping(self) -> ImportMapping:
        """
        Get the Shopify → PIM attribute mapping.

        Returns an empty mapping when the settings row is missing; the run
        context builder rejects it for lacking a family.
        """
        mapping_id = settings.connector_mapping_id
        try:
            result = (
                self.db.table(self.mappings_table)
                .select("id, mapping")
                .eq("id", mapping_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_import_mapping_failed", mapping_id=mapping_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            logger.warning("import_mapping_missing", mapping_id=mapping_id)
            return ImportMapping()

        raw = (result.data[0].get("mapping") or {}).get(CONNECTOR_SETTINGS_KEY)
        return ImportMapping.from_connector_settings(raw)


_connector_service: Optional[ConnectorService] = None


def get_connector_service() -> ConnectorService:
    """Get or create ConnectorService instance."""
    global _connector_service
    if _connector_service is None:
        _connector_service = ConnectorService()
    return _connector_service
