"""
Pydantic models and value types for the catalog import.
"""

from models.base import (
    BaseSchema,
    FrozenSchema,
    IdStr,
)
from models.attribute import (
    AttributeType,
    AttributeDefinition,
    AttributeFamily,
)
from models.scope import (
    Scope,
    ScopedValueSet,
)
from models.connector import (
    PRODUCT_FIELDS,
    SEO_FIELDS,
    VARIANT_FIELDS,
    ShopifyCredential,
    ImportFilters,
    ImportMapping,
)
from models.mapping import IdentityMapping
from models.product import (
    ProductType,
    ProductCreate,
    ProductRecord,
    VariantRef,
    VariantPayload,
)
from models.import_batch import (
    BatchState,
    RowOutcome,
    RowResult,
    BatchSummary,
    ImportBatch,
    ImportJob,
    ImportRunResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",
    "IdStr",

    # Attributes
    "AttributeType",
    "AttributeDefinition",
    "AttributeFamily",

    # Scopes
    "Scope",
    "ScopedValueSet",

    # Connector
    "PRODUCT_FIELDS",
    "SEO_FIELDS",
    "VARIANT_FIELDS",
    "ShopifyCredential",
    "ImportFilters",
    "ImportMapping",

    # Mapping
    "IdentityMapping",

    # Product
    "ProductType",
    "ProductCreate",
    "ProductRecord",
    "VariantRef",
    "VariantPayload",

    # Import
    "BatchState",
    "RowOutcome",
    "RowResult",
    "BatchSummary",
    "ImportBatch",
    "ImportJob",
    "ImportRunResponse",
]
