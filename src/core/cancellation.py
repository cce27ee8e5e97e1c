# src/core/cancellation.py — v1
"""Cooperative cancellation helpers built on a shared asyncio.Event.

Every suspension point of a batch (slot acquisition, remote call, pacing
delay, retry backoff) goes through one of these helpers so that a single
event set by the caller unwinds all of them.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, TypeVar

from acrocheck.core.errors import OperationCancelled

T = TypeVar("T")


def raise_if_cancelled(cancel_event: asyncio.Event | None, operation: str = "operation") -> None:
    """Raise OperationCancelled if the event is already set."""
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelled(operation)


async def await_or_cancel(
    aw: Awaitable[T],
    cancel_event: asyncio.Event | None,
    operation: str = "operation",
) -> T:
    """Await ``aw`` unless ``cancel_event`` fires first.

    Raises:
        OperationCancelled: If the event fires before ``aw`` completes.
            ``aw`` is cancelled in that case.
    """
    if cancel_event is None:
        return await aw

    task = asyncio.ensure_future(aw)
    if cancel_event.is_set():
        task.cancel()
        raise OperationCancelled(operation)

    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task.done():
        return task.result()

    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    raise OperationCancelled(operation)


async def sleep_or_cancel(
    delay_s: float,
    cancel_event: asyncio.Event | None,
    operation: str = "sleep",
) -> None:
    """Sleep for ``delay_s`` seconds, waking early with OperationCancelled."""
    await await_or_cancel(asyncio.sleep(delay_s), cancel_event, operation)


async def acquire_or_cancel(
    semaphore: asyncio.Semaphore,
    cancel_event: asyncio.Event | None,
    operation: str = "acquire",
) -> None:
    """Acquire one unit of ``semaphore`` unless the event fires first.

    On return the caller holds the unit and must release it. If the event
    fires while waiting, nothing is held.
    """
    await await_or_cancel(semaphore.acquire(), cancel_event, operation)
    if cancel_event is not None and cancel_event.is_set():
        semaphore.release()
        raise OperationCancelled(operation)
