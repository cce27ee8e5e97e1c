# tests/conftest.py — v1
"""Shared test fixtures: settings, a content directory and a fake checking service.

No network access — the remote service is replaced by FakeCheckClient or
an httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from acrocheck.check.retry import RetryPolicy
from acrocheck.client.base_client import BaseCheckClient
from acrocheck.config.settings import Settings
from acrocheck.core.models import CheckRequest, CheckResponse

BASE_URL = "https://acme.acrolinx.cloud"


class FakeCheckClient(BaseCheckClient):
    """In-memory checking service.

    ``failures`` maps a file name to exceptions raised (in order) by
    submissions of that file; ``result_failures`` does the same for
    result fetches, after the submission was accepted.
    """

    def __init__(
        self,
        reports: dict[str, str] | None = None,
        delay_s: float = 0.0,
        failures: dict[str, list[Exception]] | None = None,
        result_failures: dict[str, list[Exception]] | None = None,
    ) -> None:
        self.reports = reports if reports is not None else {
            "scorecard": BASE_URL + "/scorecard/{name}",
            "contentAnalysisDashboard": BASE_URL + "/dashboard/{name}",
        }
        self.delay_s = delay_s
        self.failures = failures or {}
        self.result_failures = result_failures or {}
        self.sign_ins = 0
        self.requests: list[CheckRequest] = []
        self.fetches: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self._accepted: dict[str, CheckRequest] = {}

    async def sign_in(self, sso_token: str, username: str) -> str:
        self.sign_ins += 1
        return f"token-{username}"

    async def start_check(self, access_token: str, request: CheckRequest) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.requests.append(request)
            if self.delay_s:
                await asyncio.sleep(self.delay_s)
            pending = self.failures.get(Path(request.file_path).name)
            if pending:
                raise pending.pop(0)
            handle = f"check-{len(self.requests)}"
            self._accepted[handle] = request
            return handle
        finally:
            self.in_flight -= 1

    async def fetch_result(self, access_token: str, handle: str) -> CheckResponse:
        self.fetches.append(handle)
        name = Path(self._accepted[handle].file_path).name
        pending = self.result_failures.get(name)
        if pending:
            raise pending.pop(0)
        return CheckResponse(
            id=handle,
            quality_score=87.5,
            quality_status="green",
            reports={k: v.format(name=name) for k, v in self.reports.items()},
        )

    async def aclose(self) -> None:
        self.closed = True


# === FIXTURES ===


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real ACROLINX_* variables out of the tests."""
    import os

    for key in list(os.environ):
        if key.upper().startswith("ACROLINX_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers installed by setup_logging() so they never outlive a test."""
    yield
    logging.getLogger("acrocheck").handlers.clear()


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """Content directory with four supported files and one unsupported."""
    root = tmp_path / "content"
    files = {
        "intro.md": "# Introduction\n\nThis guide explain the setup.",
        "notes.txt": "Plain text notes.",
        "guide/setup.html": "<html><body><p>Install it.</p></body></html>",
        "guide/topic.dita": "<topic id='t1'><title>Topic</title></topic>",
        "logo.png": "not really a png",
    }
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def settings(content_dir: Path) -> Settings:
    """Valid settings pointing at ``content_dir`` with no pacing delay."""
    return Settings(
        _env_file=None,
        url=BASE_URL,
        sso_token="shared-secret",
        username="writer",
        client_signature="client-signature-1",
        content_dir=str(content_dir),
        pacing_delay_s=0.0,
        open_browser=False,
    )


@pytest.fixture
def fake_client() -> FakeCheckClient:
    return FakeCheckClient()


@pytest.fixture
def fake_client_factory():
    """Build FakeCheckClient instances with custom behaviour."""
    return FakeCheckClient


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Retry policy without backoff delays."""
    return RetryPolicy(max_retries=3, base_delay_s=0.0, max_delay_s=0.0)
