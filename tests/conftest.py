"""
Shared test fixtures.

Two kinds of doubles:
- MockSupabaseClient for store services (query builder shape only)
- In-memory stores for the import engine (real lookups by SKU/code)
"""

import sys
from pathlib import Path

# Add project root to Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

import pytest
from dataclasses import dataclass, field
from unittest.mock import MagicMock, patch
from datetime import datetime
from typing import Generator, Optional

from models.attribute import AttributeDefinition, AttributeFamily
from models.connector import ImportFilters, ImportMapping, ShopifyCredential
from models.import_batch import BatchState, BatchSummary, ImportBatch, ImportJob
from models.mapping import IdentityMapping
from models.product import ProductCreate, ProductRecord
from services.attribute_cache import AttributeMetadataCache
from services.image_resolver import ImageResolver
from services.product_reconciler import ProductReconciler
from services.product_service import merge_values
from services.run_context import RunContext, build_run_context
from exceptions import DuplicateError
from tests.factories import AttributeFactory

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - add id and timestamps
        if isinstance(data, dict):
            data = [data]
        for item in data:
            item.setdefault("id", "test-uuid-123")
            item["created_at"] = datetime.utcnow().isoformat() + "Z"
        self._data = data
        return self

    def update(self, data):
        # Simulate update - merge with existing data
        updated_data = [{**item, **data} for item in self._data]
        self._data = updated_data if updated_data else [data]
        return self

    def delete(self):
        return self

    def eq(self, column, value):
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        if self._is_single:
            data = self._data[0] if self._data else None
            return MockSupabaseResponse(data=data, count=1 if data else 0)
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery([dict(row) for row in self._data], self._count, self._error)

    def select(self, *args, **kwargs):
        return self._query()

    def insert(self, data):
        return self._query().insert(data)

    def update(self, data):
        return self._query().update(data)

    def delete(self):
        return self._query()


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}
        self.storage = MagicMock()

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count, "error": None}

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        self._tables[table_name] = {"data": [], "count": None, "error": error}

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None, "error": None})
        return MockSupabaseTable(config["data"], config["count"], config["error"])


STORE_MODULES = (
    "config.database",
    "services.attribute_service",
    "services.product_service",
    "services.mapping_service",
    "services.category_service",
    "services.media_service",
    "services.batch_service",
    "services.connector_service",
)


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "sku": "TEE-1", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock in every store module.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any store created here gets the mock
    """
    patches = [
        patch(f"{module}.get_supabase_client", return_value=mock_supabase)
        for module in STORE_MODULES
    ]
    for p in patches:
        p.start()
    try:
        yield mock_supabase
    finally:
        for p in reversed(patches):
            p.stop()


# ===================
# IN-MEMORY STORES
# ===================

class FakeAttributeStore:
    def __init__(self, attributes=()):
        self.attributes = {attribute.code: attribute for attribute in attributes}

    def all(self) -> list[AttributeDefinition]:
        return list(self.attributes.values())

    def find_by_code(self, code: str) -> Optional[AttributeDefinition]:
        return self.attributes.get(code)


class FakeFamilyStore:
    def __init__(self, families=()):
        self.families = {family.id: family for family in families}

    def find_by_id(self, family_id: str) -> Optional[AttributeFamily]:
        return self.families.get(str(family_id))


class FakeProductStore:
    """Products and variants keyed by id, looked up by SKU."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.created: list[ProductCreate] = []
        self.updates: list[tuple[dict, str]] = []
        self._last_id = 100

    def _new_id(self) -> str:
        self._last_id += 1
        return str(self._last_id)

    def _record(self, row: dict) -> ProductRecord:
        variants = [
            {"id": child["id"], "sku": child["sku"]}
            for child in self.rows.values()
            if child.get("parent_id") == row["id"]
        ]
        return ProductRecord(**{**row, "variants": variants})

    def by_sku(self, sku: str) -> Optional[dict]:
        for row in self.rows.values():
            if row["sku"] == sku:
                return row
        return None

    def find_by_sku(self, sku: str) -> Optional[ProductRecord]:
        row = self.by_sku(sku)
        return self._record(row) if row else None

    def create(self, data: ProductCreate) -> ProductRecord:
        self.created.append(data)
        row = {
            "id": self._new_id(),
            "sku": data.sku,
            "type": data.type.value,
            "status": data.status,
            "parent_id": None,
            "attribute_family_id": data.attribute_family_id,
            "super_attributes": list(data.super_attributes),
            "values": {},
        }
        self.rows[row["id"]] = row
        return self._record(row)

    def update(self, payload: dict, product_id: str) -> ProductRecord:
        self.updates.append((payload, product_id))
        row = self.rows[product_id]
        row["values"] = merge_values(row["values"], payload.get("values"))
        row["status"] = payload.get("status", row["status"])
        if payload.get("categories") is not None:
            row["categories"] = payload["categories"]

        for key, variant in (payload.get("variants") or {}).items():
            child = self.rows.get(key) or self.by_sku(variant["sku"])
            if child is not None:
                child["values"] = merge_values(child["values"], variant.get("values"))
                child["status"] = variant.get("status", child["status"])
                child["parent_id"] = product_id
                continue
            child_id = self._new_id()
            self.rows[child_id] = {
                "id": child_id,
                "sku": variant["sku"],
                "type": "simple",
                "status": variant.get("status", 1),
                "parent_id": product_id,
                "attribute_family_id": row["attribute_family_id"],
                "values": variant.get("values") or {},
            }
        return self._record(row)


class FakeMappingStore:
    """Mappings keyed by internal code; create() enforces uniqueness."""

    def __init__(self):
        self.mappings: dict[str, IdentityMapping] = {}
        self.create_calls = 0
        # Set to simulate another batch inserting between lookup and insert
        self.concurrent_insert: Optional[IdentityMapping] = None

    def find_by_internal_code(self, code: str, entity_type: str = "product") -> Optional[IdentityMapping]:
        return self.mappings.get(code)

    def create(self, mapping: IdentityMapping) -> IdentityMapping:
        self.create_calls += 1
        if self.concurrent_insert is not None:
            self.mappings[mapping.internal_code] = self.concurrent_insert
            self.concurrent_insert = None
        if mapping.internal_code in self.mappings:
            raise DuplicateError("Mapping", "internal_code", mapping.internal_code)
        self.mappings[mapping.internal_code] = mapping
        return mapping


class FakeCategoryStore:
    def __init__(self, codes=()):
        self.codes = set(codes)

    def find_by_code(self, code: str) -> Optional[dict]:
        return {"id": code, "code": code} if code in self.codes else None


class FakeMediaStore:
    """Records stored files and their content; references mimic the storage path layout."""

    def __init__(self):
        self.stored: list[tuple[str, str, str]] = []
        self.contents: list[bytes] = []

    def store(self, path: str, owner_id: str, attribute_code: str) -> str:
        self.stored.append((path, owner_id, attribute_code))
        self.contents.append(Path(path).read_bytes())
        return f"product/{owner_id}/{attribute_code}/{Path(path).name}"


class FakeBatchStore:
    def __init__(self):
        self.batches: dict[str, ImportBatch] = {}
        self._last_id = 0

    def delete_for_job(self, job_id: str) -> None:
        self.batches = {
            batch_id: batch for batch_id, batch in self.batches.items()
            if batch.job_id != job_id
        }

    def create(self, job_id: str, rows: list[dict]) -> ImportBatch:
        self._last_id += 1
        batch = ImportBatch(id=str(self._last_id), job_id=job_id, rows=rows)
        self.batches[batch.id] = batch
        return batch

    def pending_for_job(self, job_id: str) -> list[ImportBatch]:
        return [
            batch for batch in self.batches.values()
            if batch.job_id == job_id and batch.state == BatchState.PENDING
        ]

    def count_for_job(self, job_id: str) -> int:
        return sum(1 for batch in self.batches.values() if batch.job_id == job_id)

    def mark_processed(self, batch_id: str, summary: BatchSummary) -> None:
        batch = self.batches[batch_id]
        batch.state = BatchState.PROCESSED
        batch.summary = BatchSummary(created=summary.created, updated=summary.updated)


class FakeConnectorStore:
    def __init__(self, credential: Optional[ShopifyCredential], mapping: ImportMapping):
        self.credential = credential
        self.mapping = mapping

    def get_credential(self, credential_id: str) -> Optional[ShopifyCredential]:
        if self.credential is not None and self.credential.id == str(credential_id):
            return self.credential
        return None

    def get_import_mapping(self) -> ImportMapping:
        return self.mapping


class FakeDownloader:
    """Image downloader double: URLs containing "missing" fail, content names the URL."""

    def __init__(self):
        self.calls: list[str] = []

    def __call__(self, url: str) -> Optional[bytes]:
        self.calls.append(url)
        if "missing" in url:
            return None
        return b"\x89PNG " + url.encode()


@dataclass
class Stores:
    attributes: FakeAttributeStore
    families: FakeFamilyStore
    products: FakeProductStore = field(default_factory=FakeProductStore)
    mappings: FakeMappingStore = field(default_factory=FakeMappingStore)
    categories: FakeCategoryStore = field(default_factory=lambda: FakeCategoryStore(["summer", "tees"]))
    media: FakeMediaStore = field(default_factory=FakeMediaStore)
    batches: FakeBatchStore = field(default_factory=FakeBatchStore)


# ===================
# ENGINE FIXTURES
# ===================

@pytest.fixture
def attributes() -> list[AttributeDefinition]:
    """Attribute definitions covering every scope."""
    return [
        AttributeFactory.create("name", per_locale=True, required=True),
        AttributeFactory.create("url_key"),
        AttributeFactory.create("brand", per_channel=True),
        AttributeFactory.create("description", per_locale=True, per_channel=True),
        AttributeFactory.create("tags"),
        AttributeFactory.create("meta_title", per_locale=True),
        AttributeFactory.create("meta_description", per_locale=True),
        AttributeFactory.create("price", type="price"),
        AttributeFactory.create("cost", type="price"),
        AttributeFactory.create("sku"),
        AttributeFactory.create("barcode"),
        AttributeFactory.create("weight"),
        AttributeFactory.create("material", per_locale=True),
        AttributeFactory.select("color", ["red", "blue", "Navy-Blue"]),
        AttributeFactory.select("size", ["S", "M", "L"]),
        AttributeFactory.image("image"),
        AttributeFactory.image("variant_image"),
    ]


@pytest.fixture
def family() -> AttributeFamily:
    return AttributeFactory.family(id="4", configurable=("color", "size"))


@pytest.fixture
def import_mapping() -> ImportMapping:
    """Connector settings as saved by the mapping screen."""
    return ImportMapping.from_connector_settings({
        "family_variant": "4",
        "variantimages": "variant_image",
        "images": "image",
        "title": "name",
        "handle": "url_key",
        "vendor": "brand",
        "descriptionHtml": "description",
        "tags": "tags",
        "metafields_global_title_tag": "meta_title",
        "metafields_global_description_tag": "meta_description",
        "price": "price",
        "cost": "cost",
        "sku": "sku",
        "barcode": "barcode",
        "weight": "weight",
    })


@pytest.fixture
def credential() -> ShopifyCredential:
    return ShopifyCredential(
        id="1",
        shop_url="https://acme.myshopify.com",
        access_token="shpat_test",
        api_version="2024-01",
        active=True,
        extras={"productMetafield": {"material": "material"}},
    )


@pytest.fixture
def import_job() -> ImportJob:
    return ImportJob(
        id="job-1",
        filters=ImportFilters(credentials="1", locale="en_US", channel="default", currency="USD"),
    )


@pytest.fixture
def stores(attributes, family) -> Stores:
    """Fresh in-memory stores."""
    return Stores(
        attributes=FakeAttributeStore(attributes),
        families=FakeFamilyStore([family]),
    )


@pytest.fixture
def run_context(stores, import_mapping, credential, import_job) -> RunContext:
    cache = AttributeMetadataCache.load(stores.attributes, stores.families, [import_mapping.family_variant])
    return build_run_context(import_job, credential, import_mapping, cache)


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def image_resolver(downloader, stores, tmp_path) -> ImageResolver:
    return ImageResolver(downloader, stores.media, tmp_dir=str(tmp_path / "tmpstorage"))


@pytest.fixture
def reconciler(run_context, stores, image_resolver) -> ProductReconciler:
    return ProductReconciler(
        run_context,
        stores.products,
        stores.mappings,
        stores.categories,
        image_resolver,
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
