# src/batch/dispatcher.py — v1
"""Throttled batch dispatch — bounded concurrency plus pacing between calls.

Every file gets its own task up front. A semaphore admits at most
``max_concurrency`` of them into the checker at a time, and each task keeps
its slot for ``pacing_delay_s`` after its check returns, which spaces out
requests to roughly ``max_concurrency`` per (call latency + pacing delay).

Outcomes are written into per-index slots, so the returned list follows
input order regardless of completion order.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Protocol, Sequence

from acrocheck.core.cancellation import acquire_or_cancel, sleep_or_cancel
from acrocheck.core.errors import OperationCancelled
from acrocheck.core.models import CheckMode, CheckOutcome
from acrocheck.logging.context import set_batch_context, set_file_context

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 2
DEFAULT_PACING_DELAY_S = 0.5


class SupportsCheck(Protocol):
    async def check(
        self,
        file_path: str,
        batch_id: str | None = None,
        check_mode: CheckMode = CheckMode.AUTOMATED,
        cancel_event: asyncio.Event | None = None,
    ) -> str | None: ...


class ThrottledBatchDispatcher:
    """Fan a list of files out to the checker without flooding the service."""

    def __init__(
        self,
        invoker: SupportsCheck,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        pacing_delay_s: float = DEFAULT_PACING_DELAY_S,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        if pacing_delay_s < 0:
            raise ValueError("pacing_delay_s must be >= 0")
        self._invoker = invoker
        self._max_concurrency = max_concurrency
        self._pacing_delay_s = pacing_delay_s

    async def dispatch_batch(
        self,
        file_paths: Sequence[str | Path],
        batch_id: str,
        check_mode: CheckMode = CheckMode.BATCH,
        cancel_event: asyncio.Event | None = None,
    ) -> list[CheckOutcome]:
        """Check every file and return one outcome per file, in input order.

        If ``cancel_event`` fires, files that never produced an outcome are
        left out of the result and the call returns once in-flight tasks
        have unwound.
        """
        paths = [str(p) for p in file_paths]
        if not paths:
            return []

        set_batch_context(batch_id)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        slots: list[CheckOutcome | None] = [None] * len(paths)

        logger.info(
            "Dispatching %d check tasks (max %d concurrent, %.2fs pacing)",
            len(paths), self._max_concurrency, self._pacing_delay_s,
        )
        tasks = [
            asyncio.create_task(
                self._process_file(
                    index, path, batch_id, check_mode, semaphore, slots, cancel_event,
                ),
                name=f"check-{index}",
            )
            for index, path in enumerate(paths)
        ]
        await asyncio.gather(*tasks)

        outcomes = [outcome for outcome in slots if outcome is not None]
        if len(outcomes) < len(paths):
            logger.warning(
                "Batch %s cancelled: %d of %d files have no outcome",
                batch_id, len(paths) - len(outcomes), len(paths),
            )
        else:
            logger.info("All %d check tasks completed", len(outcomes))
        return outcomes

    async def _process_file(
        self,
        index: int,
        path: str,
        batch_id: str,
        check_mode: CheckMode,
        semaphore: asyncio.Semaphore,
        slots: list[CheckOutcome | None],
        cancel_event: asyncio.Event | None,
    ) -> None:
        set_file_context(path, "batch_check")
        try:
            await acquire_or_cancel(semaphore, cancel_event, "acquire_slot")
        except OperationCancelled:
            logger.debug("Not dispatched, batch cancelled: %s", path)
            return

        try:
            logger.debug("Starting throttled processing for %s", path)
            try:
                link = await self._invoker.check(
                    path, batch_id=batch_id, check_mode=check_mode, cancel_event=cancel_event,
                )
            except OperationCancelled:
                logger.info("Check cancelled for %s", path)
                return
            except Exception:
                logger.exception("Unexpected error checking %s", path)
                slots[index] = CheckOutcome.failed(path)
            else:
                slots[index] = CheckOutcome(file_path=path, result_link=link)

            # Pacing is cut short on cancellation; the outcome above stands.
            with contextlib.suppress(OperationCancelled):
                await sleep_or_cancel(self._pacing_delay_s, cancel_event, "pacing_delay")
        finally:
            semaphore.release()
