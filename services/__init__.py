"""
Business logic services.

Store services (one per table) plus the import engine built on top of them.
"""

from services.attribute_service import (
    AttributeService,
    FamilyService,
    get_attribute_service,
    get_family_service,
)
from services.product_service import ProductService, get_product_service
from services.mapping_service import MappingService, get_mapping_service
from services.category_service import CategoryService, get_category_service
from services.media_service import MediaService, get_media_service
from services.batch_service import BatchService, get_batch_service
from services.connector_service import ConnectorService, get_connector_service
from services.attribute_cache import AttributeMetadataCache
from services.run_context import RunContext, build_run_context
from services.product_reconciler import ProductReconciler
from services.batch_driver import BatchDriver
from services.import_service import ImportService, get_import_service

__all__ = [
    "AttributeService",
    "FamilyService",
    "get_attribute_service",
    "get_family_service",
    "ProductService",
    "get_product_service",
    "MappingService",
    "get_mapping_service",
    "CategoryService",
    "get_category_service",
    "MediaService",
    "get_media_service",
    "BatchService",
    "get_batch_service",
    "ConnectorService",
    "get_connector_service",
    "AttributeMetadataCache",
    "RunContext",
    "build_run_context",
    "ProductReconciler",
    "BatchDriver",
    "ImportService",
    "get_import_service",
]
