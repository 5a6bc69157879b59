"""
Import batch store.

A job's source rows are saved as fixed-size batches so that a run can be
resumed batch by batch. Batches end PROCESSED with a created/updated summary.
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client
from models.import_batch import BatchState, BatchSummary, ImportBatch
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

BATCH_COLUMNS = "id, job_id, rows, state, summary"


def chunk_rows(rows: list[Any], size: int) -> list[list[Any]]:
    """Split rows into consecutive chunks of at most size items."""
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    return [rows[i:i + size] for i in range(0, len(rows), size)]


class BatchService:
    """Persistence for import batches."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "import_batches"

    def delete_for_job(self, job_id: str) -> None:
        """Remove every batch saved by an earlier validation of the job."""
        try:
            self.db.table(self.table).delete().eq("job_id", job_id).execute()
        except Exception as e:
            logger.error("delete_batches_failed", job_id=job_id, error=str(e))
            raise DatabaseError("delete", str(e))

        logger.debug("batches_deleted", job_id=job_id)

    def create(self, job_id: str, rows: list[dict]) -> ImportBatch:
        """
        Save one pending batch.

        Args:
            job_id: Owning job
            rows: Source product edges

        Returns:
            Created ImportBatch
        """
        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "job_id": job_id,
                    "rows": rows,
                    "state": BatchState.PENDING.value,
                })
                .execute()
            )
        except Exception as e:
            logger.error("create_batch_failed", job_id=job_id, error=str(e))
            raise DatabaseError("insert", str(e))

        return ImportBatch(**result.data[0])

    def pending_for_job(self, job_id: str) -> list[ImportBatch]:
        """Get the job's batches that have not been processed yet."""
        try:
            result = (
                self.db.table(self.table)
                .select(BATCH_COLUMNS)
                .eq("job_id", job_id)
                .eq("state", BatchState.PENDING.value)
                .order("id")
                .execute()
            )
        except Exception as e:
            logger.error("get_pending_batches_failed", job_id=job_id, error=str(e))
            raise DatabaseError("select", str(e))

        return [ImportBatch(**row) for row in result.data]

    def count_for_job(self, job_id: str) -> int:
        """Number of batches saved for the job, in any state."""
        try:
            result = (
                self.db.table(self.table)
                .select("id", count="exact")
                .eq("job_id", job_id)
                .execute()
            )
        except Exception as e:
            logger.error("count_batches_failed", job_id=job_id, error=str(e))
            raise DatabaseError("select", str(e))

        return result.count if result.count is not None else len(result.data)

    def mark_processed(self, batch_id: str, summary: BatchSummary) -> None:
        """Set the terminal state and the created/updated counters."""
        try:
            (
                self.db.table(self.table)
                .update({
                    "state": BatchState.PROCESSED.value,
                    "summary": {
                        "created": summary.created,
                        "updated": summary.updated,
                    },
                })
                .eq("id", batch_id)
                .execute()
            )
        except Exception as e:
            logger.error("mark_batch_processed_failed", batch_id=batch_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info(
            "batch_processed",
            batch_id=batch_id,
            created=summary.created,
            updated=summary.updated
        )


_batch_service: Optional[BatchService] = None


def get_batch_service() -> BatchService:
    """Get or create BatchService instance."""
    global _batch_service
    if _batch_service is None:
        _batch_service = BatchService()
    return _batch_service
