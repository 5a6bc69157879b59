"""
Unit tests for ImportService.

Run: pytest tests/unit/test_import_service.py -v
"""

import pytest

from models.import_batch import BatchState, ImportJob
from models.connector import ImportFilters
from services.import_service import ImportService
from exceptions import ConfigurationError, ImportJobNotFoundError
from tests.conftest import FakeConnectorStore, FakeDownloader
from tests.factories import ShopifyProductFactory, ShopifyVariantFactory


class FakeShopifyClient:
    """Serves a fixed list of product edges."""

    def __init__(self, edges: list[dict]):
        self.edges = edges
        self.download = FakeDownloader()

    def iter_product_edges(self):
        yield from self.edges


@pytest.fixture
def edges() -> list[dict]:
    return [
        ShopifyProductFactory.create(
            handle=f"mug-{i}",
            variants=[ShopifyVariantFactory.create(sku=f"MUG-{i}")],
        )
        for i in range(23)
    ]


@pytest.fixture
def connector(credential, import_mapping) -> FakeConnectorStore:
    return FakeConnectorStore(credential, import_mapping)


@pytest.fixture
def service(stores, connector, edges, monkeypatch) -> ImportService:
    monkeypatch.setattr("services.import_service.settings.batch_size", 10)
    return ImportService(
        connector_store=connector,
        attribute_store=stores.attributes,
        family_store=stores.families,
        product_store=stores.products,
        mapping_store=stores.mappings,
        category_store=stores.categories,
        media_store=stores.media,
        batch_store=stores.batches,
        client_factory=lambda credential: FakeShopifyClient(edges),
    )


class TestValidate:
    """Tests for ImportService.validate()"""

    def test_splits_rows_into_batches(self, service, stores, import_job):
        """Should save 23 products as batches of 10, 10 and 3."""
        batches = service.validate(import_job)

        assert [len(batch.rows) for batch in batches] == [10, 10, 3]
        assert all(batch.state == BatchState.PENDING for batch in batches)

    def test_revalidation_replaces_batches(self, service, stores, import_job):
        """Should drop the batches of an earlier validation."""
        service.validate(import_job)

        service.validate(import_job)

        assert stores.batches.count_for_job(import_job.id) == 3

    def test_unknown_credential(self, service):
        """Should fail before pulling anything."""
        job = ImportJob(id="job-9", filters=ImportFilters(credentials="9"))

        with pytest.raises(ConfigurationError):
            service.validate(job)

    def test_disabled_credential(self, service, connector, import_job):
        connector.credential = connector.credential.model_copy(update={"active": False})

        with pytest.raises(ConfigurationError):
            service.validate(import_job)


class TestRun:
    """Tests for ImportService.run()"""

    def test_run_without_batches(self, service, import_job):
        """Should reject a job that was never validated."""
        with pytest.raises(ImportJobNotFoundError):
            service.run(import_job)

    def test_processes_every_pending_batch(self, service, stores, import_job):
        """Should import every product and mark every batch processed."""
        service.validate(import_job)

        result = service.run(import_job)

        assert result.batches == 3
        assert (result.summary.created, result.summary.updated) == (23, 0)
        assert all(batch.state == BatchState.PROCESSED for batch in stores.batches.batches.values())
        assert len(stores.products.rows) == 23

    def test_processed_batches_not_rerun(self, service, stores, import_job):
        """Should only pick up batches still pending."""
        service.validate(import_job)
        service.run(import_job)

        result = service.run(import_job)

        assert result.batches == 0
        assert result.summary.created == 0

    def test_import_job_twice_is_idempotent(self, service, stores, import_job):
        """Should update, not duplicate, on a second full import."""
        service.import_job(import_job)

        result = service.import_job(import_job)

        assert (result.summary.created, result.summary.updated) == (0, 23)
        assert len(stores.products.rows) == 23
