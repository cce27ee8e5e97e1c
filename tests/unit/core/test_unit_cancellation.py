# tests/unit/core/test_unit_cancellation.py — v1
"""Tests for core/cancellation.py — event-driven cancellation helpers."""

from __future__ import annotations

import asyncio
import time

import pytest

from acrocheck.core.cancellation import (
    acquire_or_cancel,
    await_or_cancel,
    raise_if_cancelled,
    sleep_or_cancel,
)
from acrocheck.core.errors import OperationCancelled


async def _value(v: int, delay: float = 0.0) -> int:
    await asyncio.sleep(delay)
    return v


class TestAwaitOrCancel:
    @pytest.mark.asyncio
    async def test_without_event(self):
        assert await await_or_cancel(_value(3), None) == 3

    @pytest.mark.asyncio
    async def test_returns_result(self):
        event = asyncio.Event()
        assert await await_or_cancel(_value(7, 0.01), event) == 7

    @pytest.mark.asyncio
    async def test_already_set_raises(self):
        event = asyncio.Event()
        event.set()
        with pytest.raises(OperationCancelled):
            await await_or_cancel(_value(1), event, "remote_call")

    @pytest.mark.asyncio
    async def test_event_during_wait_unwinds_promptly(self):
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, event.set)
        t0 = time.perf_counter()
        with pytest.raises(OperationCancelled):
            await await_or_cancel(_value(1, 10.0), event)
        assert time.perf_counter() - t0 < 1.0

    @pytest.mark.asyncio
    async def test_propagates_operation_error(self):
        async def boom() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await await_or_cancel(boom(), asyncio.Event())


class TestSleepAndAcquire:
    @pytest.mark.asyncio
    async def test_sleep_completes(self):
        await sleep_or_cancel(0.01, asyncio.Event())

    @pytest.mark.asyncio
    async def test_sleep_cancelled(self):
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, event.set)
        with pytest.raises(OperationCancelled):
            await sleep_or_cancel(5.0, event)

    @pytest.mark.asyncio
    async def test_acquire_holds_unit(self):
        sem = asyncio.Semaphore(1)
        await acquire_or_cancel(sem, asyncio.Event())
        assert sem.locked()
        sem.release()

    @pytest.mark.asyncio
    async def test_acquire_cancelled_holds_nothing(self):
        sem = asyncio.Semaphore(1)
        await sem.acquire()
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, event.set)
        with pytest.raises(OperationCancelled):
            await acquire_or_cancel(sem, event)
        sem.release()
        # The single unit is free again: nothing leaked to the cancelled waiter.
        await asyncio.wait_for(sem.acquire(), timeout=1.0)

    def test_raise_if_cancelled(self):
        raise_if_cancelled(None)
        event = asyncio.Event()
        raise_if_cancelled(event)
        event.set()
        with pytest.raises(OperationCancelled):
            raise_if_cancelled(event, "dispatch")
