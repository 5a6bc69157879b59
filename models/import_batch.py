"""
Import job and batch schemas.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, IdStr
from models.connector import ImportFilters


class BatchState(str, Enum):
    """Batch lifecycle."""
    PENDING = "pending"
    PROCESSED = "processed"


class RowOutcome(str, Enum):
    """Terminal state of one source row."""
    PERSISTED = "persisted"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RowResult:
    """What reconciling one row changed."""
    outcome: RowOutcome
    created: int = 0
    updated: int = 0
    reason: Optional[str] = None

    @classmethod
    def skipped(cls, reason: str) -> "RowResult":
        return cls(outcome=RowOutcome.SKIPPED, reason=reason)


class BatchSummary(BaseSchema):
    """Created/updated counters for a batch or a whole job."""

    created: int = Field(0, ge=0)
    updated: int = Field(0, ge=0)
    skipped: int = Field(0, ge=0)

    def add(self, result: RowResult) -> "BatchSummary":
        return BatchSummary(
            created=self.created + result.created,
            updated=self.updated + result.updated,
            skipped=self.skipped + (1 if result.outcome == RowOutcome.SKIPPED else 0),
        )

    def __add__(self, other: "BatchSummary") -> "BatchSummary":
        return BatchSummary(
            created=self.created + other.created,
            updated=self.updated + other.updated,
            skipped=self.skipped + other.skipped,
        )


class ImportBatch(BaseSchema):
    """
    Fixed-size slice of source product edges.

    rows holds the raw GraphQL edges ({"node": {...}, "cursor": "..."}).
    """

    id: IdStr = Field(..., description="Batch id")
    job_id: IdStr = Field(..., description="Owning import job")
    rows: list[dict[str, Any]] = Field(default_factory=list)
    state: BatchState = Field(BatchState.PENDING)
    summary: Optional[BatchSummary] = None

    @field_validator("rows", mode="before")
    @classmethod
    def rows_default(cls, v):
        return v or []


class ImportJob(BaseSchema):
    """One import run request."""

    id: IdStr = Field(..., description="Job id, also the mapping import_run_id")
    filters: ImportFilters = Field(default_factory=ImportFilters)


class ImportRunResponse(BaseSchema):
    """Result of running every pending batch of a job."""

    job_id: str
    batches: int
    summary: BatchSummary
