# src/core/models.py — v1
"""Domain models shared by the checker, the dispatcher and the reports.

CheckRequest / CheckResponse describe one remote check, CheckOutcome is the
per-file result of a batch and BatchSummary the reduced view of a batch.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

from acrocheck.core.errors import ErrorKind

SCORECARD_REPORT = "scorecard"
DASHBOARD_REPORT = "contentAnalysisDashboard"


class CheckMode(str, Enum):
    """Check type sent to the service."""

    AUTOMATED = "automated"
    BATCH = "batch"


class CheckRequest(BaseModel):
    """Single check submission, built per file at invocation time."""

    file_path: str
    content: str
    check_mode: CheckMode = CheckMode.AUTOMATED
    batch_id: str | None = None
    content_format: str = "AUTO"

    @property
    def effective_batch_id(self) -> str | None:
        """Batch id is only meaningful for batch checks."""
        return self.batch_id if self.check_mode is CheckMode.BATCH else None


class CheckResponse(BaseModel):
    """Result of a completed remote check."""

    id: str
    quality_score: float | None = None
    quality_status: str | None = None
    reports: dict[str, str] = Field(default_factory=dict)

    def report_link(self, name: str) -> str | None:
        link = self.reports.get(name)
        return link or None


class CheckOutcome(BaseModel):
    """Per-file outcome of a batch. No result_link means the check failed."""

    file_path: str
    result_link: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.result_link is not None

    @classmethod
    def failed(cls, file_path: str) -> CheckOutcome:
        return cls(file_path=file_path, result_link=None)


class BatchSummary(BaseModel):
    """Tally of a batch run and the link worth surfacing to the user."""

    model_config = {"frozen": True}

    batch_id: str
    success_count: int = 0
    failure_count: int = 0
    representative_link: str | None = None

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


@dataclass(frozen=True)
class RetryAttempt:
    """Snapshot handed to retry observers before each backoff sleep."""

    attempt_number: int
    last_error: ErrorKind | None
    next_delay_s: float
