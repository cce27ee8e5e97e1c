# src/batch/runner.py — v1
"""Batch run: validate config, scan, dispatch, summarize.

Usage:
    async with create_check_client(settings) as client:
        result = await BatchRunner(settings, client).run(batch_id="release-42")
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from acrocheck.batch.aggregator import summarize
from acrocheck.batch.dispatcher import SupportsCheck, ThrottledBatchDispatcher
from acrocheck.batch.scanner import FileScanner
from acrocheck.check.invoker import CheckInvoker
from acrocheck.client.base_client import BaseCheckClient
from acrocheck.config.settings import Settings
from acrocheck.core.models import BatchSummary, CheckMode, CheckOutcome
from acrocheck.logging.context import set_batch_context
from acrocheck.reporting.summary import log_outcomes

logger = logging.getLogger(__name__)


def generate_batch_id(timestamp: datetime | None = None) -> str:
    """Generate a batch id: batch-YYYYMMDD-HHMMSS (UTC)."""
    ts = timestamp or datetime.now(timezone.utc)
    return f"batch-{ts.strftime('%Y%m%d-%H%M%S')}"


class BatchRunResult(BaseModel):
    """Everything a batch run produced."""

    summary: BatchSummary
    outcomes: list[CheckOutcome] = Field(default_factory=list)
    files_found: int = 0
    cancelled: bool = False
    duration_seconds: float = 0.0


class BatchRunner:
    """Check every supported file of the content directory as one batch."""

    def __init__(
        self,
        settings: Settings,
        client: BaseCheckClient | None = None,
        scanner: FileScanner | None = None,
        invoker: SupportsCheck | None = None,
    ) -> None:
        if invoker is None:
            if client is None:
                raise ValueError("BatchRunner needs a client or an invoker")
            invoker = CheckInvoker(settings, client)
        self._settings = settings
        self._scanner = scanner or FileScanner()
        self._dispatcher = ThrottledBatchDispatcher(
            invoker,
            max_concurrency=settings.max_concurrency,
            pacing_delay_s=settings.pacing_delay_s,
        )

    async def run(
        self,
        batch_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchRunResult:
        """Run the batch.

        Raises:
            ConfigurationError: Settings are invalid. Nothing is dispatched.
        """
        self._settings.ensure_valid()

        provided = (batch_id or "").strip()
        if provided:
            batch_id = provided
            logger.info("Using provided Batch ID: %s", batch_id)
        else:
            batch_id = generate_batch_id()
            logger.info("Using default Batch ID: %s", batch_id)
        set_batch_context(batch_id)

        root = self._settings.content_path
        files = self._scanner.scan(root, recursive=self._settings.recursive)
        if not files:
            logger.warning("No supported files found in %s", root)
            return BatchRunResult(summary=summarize(batch_id, []))

        t0 = time.perf_counter()
        outcomes = await self._dispatcher.dispatch_batch(
            files, batch_id, check_mode=CheckMode.BATCH, cancel_event=cancel_event,
        )
        duration = time.perf_counter() - t0

        log_outcomes(outcomes)
        summary = summarize(batch_id, outcomes)
        logger.info(
            "Batch processing completed: %d successful, %d failed",
            summary.success_count, summary.failure_count,
        )
        if summary.representative_link:
            logger.info("Content Analysis Dashboard (Batch Report): %s", summary.representative_link)
        else:
            logger.warning("No Content Analysis Dashboard report was generated")

        return BatchRunResult(
            summary=summary,
            outcomes=outcomes,
            files_found=len(files),
            cancelled=len(outcomes) < len(files),
            duration_seconds=round(duration, 2),
        )
