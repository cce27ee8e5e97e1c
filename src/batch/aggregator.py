# src/batch/aggregator.py — v1
"""Reduce per-file outcomes into a BatchSummary."""

from __future__ import annotations

from typing import Iterable

from acrocheck.core.models import BatchSummary, CheckOutcome


def summarize(batch_id: str, outcomes: Iterable[CheckOutcome]) -> BatchSummary:
    """Count successes and failures and pick the link to surface.

    The representative link is the first non-blank link of a successful
    outcome, in input order. Pure: no I/O, inputs are not modified.
    """
    success_count = 0
    failure_count = 0
    representative_link: str | None = None

    for outcome in outcomes:
        if outcome.succeeded:
            success_count += 1
            if representative_link is None and outcome.result_link and outcome.result_link.strip():
                representative_link = outcome.result_link
        else:
            failure_count += 1

    return BatchSummary(
        batch_id=batch_id,
        success_count=success_count,
        failure_count=failure_count,
        representative_link=representative_link,
    )
