# tests/integration/batch/test_int_batch_pipeline.py — v1
"""Integration tests for the batch pipeline over the HTTP client.

Covers: batch/runner.py, batch/dispatcher.py, check/invoker.py,
client/http_client.py, batch/aggregator.py.
No network — the checking service is an httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from pathlib import Path

import httpx
import pytest

from acrocheck.batch.runner import BatchRunner
from acrocheck.check.invoker import CheckInvoker
from acrocheck.check.retry import RetryPolicy
from acrocheck.client.client_factory import create_check_client
from acrocheck.client.http_client import CHECKS_PATH, SIGN_IN_PATH

BASE = "https://acme.acrolinx.cloud"
FAST = RetryPolicy(max_retries=2, base_delay_s=0.0, max_delay_s=0.0)


class ScriptedService:
    """Checking service whose answers depend on the submitted document.

    ``rate_limited`` files get one 429 before succeeding, ``rejected``
    files always get a 400. The first result fetch for a ``flaky_results``
    file answers 503.
    """

    def __init__(
        self,
        rate_limited: set[str] = frozenset(),
        rejected: set[str] = frozenset(),
        flaky_results: set[str] = frozenset(),
    ):
        self.rate_limited = set(rate_limited)
        self.rejected = set(rejected)
        self.flaky_results = set(flaky_results)
        self.submissions: list[dict] = []
        self._ids = itertools.count(1)
        self._results: dict[str, dict] = {}
        self._names: dict[str, str] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == SIGN_IN_PATH:
            return httpx.Response(200, json={"data": {"accessToken": "tok"}})

        if request.url.path == CHECKS_PATH and request.method == "POST":
            body = json.loads(request.content)
            self.submissions.append(body)
            name = Path(body["document"]["reference"]).name
            if name in self.rejected:
                return httpx.Response(400, json={"error": {"detail": "unsupported content"}})
            if name in self.rate_limited:
                self.rate_limited.discard(name)
                return httpx.Response(429, json={"error": {"title": "Too Many Requests"}})
            check_id = f"c-{next(self._ids)}"
            self._names[check_id] = name
            batch_id = body["checkOptions"].get("batchId", "none")
            self._results[check_id] = {
                "id": check_id,
                "quality": {"score": 80, "status": "yellow"},
                "reports": {
                    "scorecard": {"link": f"{BASE}/scorecard/{check_id}"},
                    "contentAnalysisDashboard": {"link": f"{BASE}/dashboard/{batch_id}"},
                },
            }
            return httpx.Response(
                201, json={"links": {"result": f"{BASE}{CHECKS_PATH}/{check_id}"}},
            )

        check_id = request.url.path.rsplit("/", 1)[-1]
        if self._names[check_id] in self.flaky_results:
            self.flaky_results.discard(self._names[check_id])
            return httpx.Response(503, json={"error": {"title": "Service Unavailable"}})
        return httpx.Response(200, json={"data": self._results[check_id]})


async def _run(settings, service: ScriptedService, **run_kwargs):
    async with create_check_client(settings, transport=httpx.MockTransport(service)) as client:
        invoker = CheckInvoker(settings, client, remote_policy=FAST, file_policy=FAST)
        return await BatchRunner(settings, invoker=invoker).run(**run_kwargs)


class TestBatchPipeline:

    @pytest.mark.asyncio
    async def test_all_files_succeed(self, settings):
        service = ScriptedService()
        result = await _run(settings, service, batch_id="release-42")

        assert result.files_found == 4
        assert result.summary.success_count == 4
        assert result.summary.representative_link == f"{BASE}/dashboard/release-42"
        assert all(s["checkOptions"]["checkType"] == "batch" for s in service.submissions)
        assert all(s["checkOptions"]["batchId"] == "release-42" for s in service.submissions)

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self, settings):
        service = ScriptedService(rate_limited={"intro.md"})
        result = await _run(settings, service, batch_id="b")

        assert result.summary.success_count == 4
        intro = [s for s in service.submissions if s["document"]["reference"].endswith("intro.md")]
        assert len(intro) == 2

    @pytest.mark.asyncio
    async def test_failed_result_fetch_keeps_single_submission(self, settings):
        service = ScriptedService(flaky_results={"intro.md"})
        result = await _run(settings, service, batch_id="b")

        assert result.summary.success_count == 4
        intro = [s for s in service.submissions if s["document"]["reference"].endswith("intro.md")]
        assert len(intro) == 1
        assert len(service.submissions) == 4

    @pytest.mark.asyncio
    async def test_rejected_file_counts_as_failure(self, settings):
        service = ScriptedService(rejected={"topic.dita"})
        result = await _run(settings, service, batch_id="b")

        assert result.summary.success_count == 3
        assert result.summary.failure_count == 1
        failed = [o.file_path for o in result.outcomes if not o.succeeded]
        assert [Path(p).name for p in failed] == ["topic.dita"]
        dita = [s for s in service.submissions if s["document"]["reference"].endswith(".dita")]
        assert len(dita) == 1

    @pytest.mark.asyncio
    async def test_outcomes_in_scan_order(self, settings, content_dir: Path):
        result = await _run(settings, ScriptedService(), batch_id="b")
        paths = [Path(o.file_path).relative_to(content_dir).as_posix() for o in result.outcomes]
        assert paths == sorted(paths)

    @pytest.mark.asyncio
    async def test_cancel_before_start(self, settings):
        service = ScriptedService()
        event = asyncio.Event()
        event.set()
        result = await _run(settings, service, batch_id="b", cancel_event=event)

        assert result.cancelled is True
        assert result.outcomes == []
        assert service.submissions == []
