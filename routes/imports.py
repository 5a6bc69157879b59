"""
Import API routes.

POST /api/imports/validate  pull the Shopify catalog into batches
POST /api/imports/run       process the pending batches of a job
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.import_batch import ImportJob, ImportRunResponse
from services.import_service import get_import_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/imports", tags=["Imports"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/validate")
def validate_import(job: ImportJob):
    """
    Pull every Shopify product and save it as import batches.

    Earlier batches of the same job are replaced.
    """
    try:
        batches = get_import_service().validate(job)
        return {
            "job_id": job.id,
            "batches": len(batches),
            "rows": sum(len(batch.rows) for batch in batches),
        }
    except Exception as e:
        return handle_error(e)


@router.post("/run", response_model=ImportRunResponse)
def run_import(
    job: ImportJob,
    validate: bool = Query(False, description="Pull the catalog before running")
):
    """
    Process every pending batch of a job.

    Returns the created/updated/skipped totals.
    """
    try:
        service = get_import_service()
        if validate:
            return service.import_job(job)
        return service.run(job)
    except Exception as e:
        return handle_error(e)
