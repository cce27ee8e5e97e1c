# src/check/invoker.py — v1
"""Single-file check: read the file, submit it, pick the link to report.

CheckInvoker is the only component that writes to the remote service. It
holds no per-call state, so one instance serves every concurrent task of a
batch and every watch-mode event.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from acrocheck.check.retry import (
    FILE_OPERATION_POLICY,
    REMOTE_CALL_POLICY,
    RetryExhausted,
    RetryPolicy,
    execute_with_retry,
)
from acrocheck.client.base_client import BaseCheckClient
from acrocheck.config.settings import Settings
from acrocheck.core.errors import FileAccessError
from acrocheck.core.models import (
    DASHBOARD_REPORT,
    SCORECARD_REPORT,
    CheckMode,
    CheckRequest,
    CheckResponse,
)

logger = logging.getLogger(__name__)


def select_result_link(response: CheckResponse, check_mode: CheckMode) -> str | None:
    """Dashboard link for batch checks when available, else the scorecard."""
    if check_mode is CheckMode.BATCH:
        dashboard = response.report_link(DASHBOARD_REPORT)
        if dashboard:
            return dashboard
    return response.report_link(SCORECARD_REPORT)


class CheckInvoker:
    """Check one file against the remote service."""

    def __init__(
        self,
        settings: Settings,
        client: BaseCheckClient,
        remote_policy: RetryPolicy = REMOTE_CALL_POLICY,
        file_policy: RetryPolicy = FILE_OPERATION_POLICY,
    ) -> None:
        self._settings = settings
        self._client = client
        self._remote_policy = remote_policy
        self._file_policy = file_policy

    async def check(
        self,
        file_path: str,
        batch_id: str | None = None,
        check_mode: CheckMode = CheckMode.AUTOMATED,
        cancel_event: asyncio.Event | None = None,
    ) -> str | None:
        """Check ``file_path`` and return the report link, or None on failure.

        Item-level failures (unreadable file, remote errors, exhausted
        retries) are logged and turned into None.

        Raises:
            OperationCancelled: The cancellation event fired.
        """
        try:
            content = await self._read_content(Path(file_path), cancel_event)
        except FileAccessError as e:
            logger.warning("Skipping %s: %s", file_path, e)
            return None
        except RetryExhausted as e:
            logger.warning(
                "Could not read %s after %d attempt(s): %s",
                file_path, e.attempts, e.last_error,
            )
            return None

        request = CheckRequest(
            file_path=file_path,
            content=content,
            check_mode=check_mode,
            batch_id=batch_id,
        )
        logger.info(
            "Sending check request for %s (batch: %s, mode: %s)",
            file_path, request.effective_batch_id, check_mode.value,
        )

        # Submission and result polling are retried separately: a failed poll
        # must not submit the same content again.
        try:
            access_token, handle = await execute_with_retry(
                lambda: self._start(request),
                "acrolinx_submit",
                context=file_path,
                policy=self._remote_policy,
                cancel_event=cancel_event,
            )
            response = await execute_with_retry(
                lambda: self._client.fetch_result(access_token, handle),
                "acrolinx_result",
                context=file_path,
                policy=self._remote_policy,
                cancel_event=cancel_event,
            )
        except RetryExhausted as e:
            logger.error(
                "Check failed for %s in %s after %d attempt(s) (%s): %s",
                file_path, e.operation, e.attempts, e.kind.value, e.last_error,
            )
            return None

        logger.info(
            "Check %s completed for %s: score %s (%s)",
            response.id, file_path, response.quality_score, response.quality_status,
        )
        link = select_result_link(response, check_mode)
        if link is None:
            logger.warning("No report link returned for %s", file_path)
        return link

    async def _start(self, request: CheckRequest) -> tuple[str, str]:
        access_token = await self._client.sign_in(
            self._settings.sso_token, self._settings.username,
        )
        handle = await self._client.start_check(access_token, request)
        return access_token, handle

    async def _read_content(self, path: Path, cancel_event: asyncio.Event | None) -> str:
        if not path.exists():
            raise FileAccessError("file not found", context=str(path))
        if not path.is_file():
            raise FileAccessError("not a regular file", context=str(path))
        try:
            size = path.stat().st_size
        except OSError as e:
            raise FileAccessError(f"cannot stat file: {e}", context=str(path)) from e
        if size > self._settings.max_file_size_bytes:
            raise FileAccessError(
                f"file is {size} bytes, limit is {self._settings.max_file_size_bytes}",
                context=str(path),
            )

        content = await execute_with_retry(
            lambda: asyncio.to_thread(path.read_text, encoding="utf-8"),
            "read_file",
            context=str(path),
            policy=self._file_policy,
            cancel_event=cancel_event,
        )
        logger.debug("Read %s (%d characters)", path, len(content))
        return content
