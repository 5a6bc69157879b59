"""
Import service.

Entry point for a Shopify catalog import job:
    validate()   pull every product edge and save it as batches
    run()        process every pending batch of the job
    import_job() both, in order
"""

from typing import Callable, Optional
import structlog

from config import settings
from integrations.shopify import ShopifyClient
from models.connector import ShopifyCredential
from models.import_batch import BatchSummary, ImportBatch, ImportJob, ImportRunResponse
from services.attribute_cache import AttributeMetadataCache
from services.attribute_service import get_attribute_service, get_family_service
from services.batch_driver import BatchDriver
from services.batch_service import chunk_rows, get_batch_service
from services.category_service import get_category_service
from services.connector_service import get_connector_service
from services.image_resolver import ImageResolver
from services.mapping_service import get_mapping_service
from services.media_service import get_media_service
from services.product_reconciler import ProductReconciler
from services.product_service import get_product_service
from services.run_context import (
    RunContext,
    build_run_context,
    check_credential,
    resolve_credential_id,
)
from exceptions import ImportJobNotFoundError

logger = structlog.get_logger(__name__)


class ImportService:
    """
    Orchestrates one import job over the stores.

    Stores default to the Supabase-backed services; tests pass in-memory ones.
    """

    def __init__(
        self,
        connector_store=None,
        attribute_store=None,
        family_store=None,
        product_store=None,
        mapping_store=None,
        category_store=None,
        media_store=None,
        batch_store=None,
        client_factory: Callable[[ShopifyCredential], ShopifyClient] = ShopifyClient
    ):
        self.connector_store = connector_store or get_connector_service()
        self.attribute_store = attribute_store or get_attribute_service()
        self.family_store = family_store or get_family_service()
        self.product_store = product_store or get_product_service()
        self.mapping_store = mapping_store or get_mapping_service()
        self.category_store = category_store or get_category_service()
        self.media_store = media_store or get_media_service()
        self.batch_store = batch_store or get_batch_service()
        self.client_factory = client_factory

    def _credential(self, job: ImportJob) -> ShopifyCredential:
        credential_id = resolve_credential_id(job)
        credential = self.connector_store.get_credential(credential_id) if credential_id else None
        return check_credential(credential, credential_id)

    def load_context(self, job: ImportJob) -> tuple[RunContext, ShopifyCredential]:
        """
        Build the run context for a job.

        Raises:
            ConfigurationError: If the job configuration is unusable
        """
        credential = self._credential(job)
        mapping = self.connector_store.get_import_mapping()
        attributes = AttributeMetadataCache.load(
            self.attribute_store,
            self.family_store,
            [mapping.family_variant] if mapping.family_variant else []
        )
        return build_run_context(job, credential, mapping, attributes), credential

    def validate(self, job: ImportJob) -> list[ImportBatch]:
        """
        Pull the catalog and save it as batches, replacing earlier ones.

        Raises:
            ConfigurationError: If the job configuration is unusable
        """
        _, credential = self.load_context(job)

        client = self.client_factory(credential)
        edges = list(client.iter_product_edges())

        self.batch_store.delete_for_job(job.id)
        batches = [
            self.batch_store.create(job.id, rows)
            for rows in chunk_rows(edges, settings.batch_size)
        ]

        logger.info(
            "import_validated",
            job_id=job.id,
            products=len(edges),
            batches=len(batches)
        )
        return batches

    def run(self, job: ImportJob) -> ImportRunResponse:
        """
        Process every pending batch of a validated job.

        Raises:
            ImportJobNotFoundError: If the job was never validated
            ConfigurationError: If the job configuration is unusable
        """
        if self.batch_store.count_for_job(job.id) == 0:
            raise ImportJobNotFoundError(job.id)

        context, credential = self.load_context(job)
        client = self.client_factory(credential)
        reconciler = ProductReconciler(
            context,
            self.product_store,
            self.mapping_store,
            self.category_store,
            ImageResolver(client.download, self.media_store),
        )
        driver = BatchDriver(reconciler, self.batch_store)

        pending = self.batch_store.pending_for_job(job.id)
        summary = BatchSummary()
        for batch in pending:
            summary = summary + driver.run(batch)

        logger.info(
            "import_finished",
            job_id=job.id,
            batches=len(pending),
            created=summary.created,
            updated=summary.updated,
            skipped=summary.skipped
        )
        return ImportRunResponse(job_id=job.id, batches=len(pending), summary=summary)

    def import_job(self, job: ImportJob) -> ImportRunResponse:
        """Validate then run a job."""
        self.validate(job)
        return self.run(job)


_import_service: Optional[ImportService] = None


def get_import_service() -> ImportService:
    """Get or create ImportService instance."""
    global _import_service
    if _import_service is None:
        _import_service = ImportService()
    return _import_service
