"""
Batch driver.

Runs every row of one import batch through the product reconciler and
marks the batch PROCESSED with the summed counters. A failing row is
logged and skipped; it never stops the batch.
"""

import structlog

from models.import_batch import BatchSummary, ImportBatch, RowResult
from services.product_reconciler import ProductReconciler
from exceptions import AppError, RowValidationError

logger = structlog.get_logger(__name__)


class BatchDriver:
    """Processes batches for one run."""

    def __init__(self, reconciler: ProductReconciler, batch_store):
        self.reconciler = reconciler
        self.batch_store = batch_store

    def process_row(self, edge: dict) -> RowResult:
        """Reconcile one row, converting any failure into a skipped result."""
        node = edge.get("node") or {}
        try:
            return self.reconciler.reconcile(edge)
        except RowValidationError as e:
            logger.warning(
                "row_skipped",
                reason=e.reason,
                message=e.message,
                details=e.details,
                title=node.get("title")
            )
            return RowResult.skipped(e.reason)
        except AppError as e:
            logger.error(
                "row_failed",
                code=e.code,
                message=e.message,
                title=node.get("title")
            )
            return RowResult.skipped(e.code.lower())
        except Exception as e:
            logger.exception(
                "row_failed_unexpectedly",
                error=str(e),
                title=node.get("title")
            )
            return RowResult.skipped("unexpected_error")

    def run(self, batch: ImportBatch) -> BatchSummary:
        """
        Process a batch in row order and mark it PROCESSED.

        Returns:
            Summed created/updated/skipped counters
        """
        logger.info("batch_started", batch_id=batch.id, rows=len(batch.rows))

        summary = BatchSummary()
        for edge in batch.rows:
            summary = summary.add(self.process_row(edge))

        self.batch_store.mark_processed(batch.id, summary)

        logger.info(
            "batch_finished",
            batch_id=batch.id,
            created=summary.created,
            updated=summary.updated,
            skipped=summary.skipped
        )
        return summary
