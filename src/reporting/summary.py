# src/reporting/summary.py — v1
"""Console and log output for a finished batch."""

from __future__ import annotations

import logging
from typing import Iterable, TextIO

from acrocheck.core.models import BatchSummary, CheckOutcome

logger = logging.getLogger(__name__)


def log_outcomes(outcomes: Iterable[CheckOutcome]) -> None:
    """One SUCCESS / FAILED log line per file."""
    for outcome in outcomes:
        if outcome.succeeded:
            logger.info("SUCCESS: %s - %s", outcome.file_path, outcome.result_link)
        else:
            logger.warning("FAILED: %s", outcome.file_path)


def print_summary(
    summary: BatchSummary,
    out: TextIO,
    duration_seconds: float | None = None,
    cancelled: bool = False,
) -> None:
    """Print the human-readable batch summary block."""
    print("\n===== Batch Check Summary =====", file=out)
    print(f"  Batch ID:    {summary.batch_id}", file=out)
    print(f"  Successful:  {summary.success_count}", file=out)
    print(f"  Failed:      {summary.failure_count}", file=out)
    if duration_seconds is not None:
        print(f"  Duration:    {duration_seconds:.1f}s", file=out)
    if cancelled:
        print("  Status:      cancelled before completion", file=out)
    if summary.representative_link:
        print(
            f"  Content Analysis Dashboard (Batch Report): {summary.representative_link}",
            file=out,
        )
    else:
        print("  No Content Analysis Dashboard report was generated.", file=out)
