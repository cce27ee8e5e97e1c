# src/client/http_client.py — v1
"""Acrolinx Platform API adapter built on httpx.

Signs in with the SSO shared secret, submits a check, then polls the
result link until the check is done. HTTP and transport failures are
mapped to RemoteApiError kinds so the retry layer can tell transient
failures from permanent ones.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from acrocheck.client.base_client import BaseCheckClient
from acrocheck.core.errors import ErrorKind, RemoteApiError
from acrocheck.core.models import CheckRequest, CheckResponse

logger = logging.getLogger(__name__)

SIGN_IN_PATH = "/api/v1/auth/sign-ins"
CHECKS_PATH = "/api/v1/checking/checks"


class HttpCheckClient(BaseCheckClient):
    """httpx-based client for the Acrolinx checking API."""

    def __init__(
        self,
        base_url: str,
        client_signature: str,
        request_timeout_s: float = 60.0,
        check_timeout_s: float = 300.0,
        poll_interval_s: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._check_timeout_s = check_timeout_s
        self._poll_interval_s = poll_interval_s
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=request_timeout_s,
            transport=transport,
            headers={
                "X-Acrolinx-Client": client_signature,
                "Accept": "application/json",
            },
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def sign_in(self, sso_token: str, username: str) -> str:
        response = await self._request(
            "POST", SIGN_IN_PATH,
            headers={"username": username, "password": sso_token},
        )
        body = _json_body(response, SIGN_IN_PATH)
        token = (body.get("data") or {}).get("accessToken")
        if not token:
            raise RemoteApiError(
                "Sign-in response contains no access token",
                kind=ErrorKind.PROTOCOL, endpoint=SIGN_IN_PATH,
            )
        logger.debug("Signed in as %s", username)
        return token

    async def start_check(self, access_token: str, request: CheckRequest) -> str:
        check_options: dict[str, Any] = {
            "checkType": request.check_mode.value,
            "contentFormat": request.content_format,
        }
        if request.effective_batch_id:
            check_options["batchId"] = request.effective_batch_id

        payload = {
            "content": request.content,
            "checkOptions": check_options,
            "document": {"reference": request.file_path},
        }
        response = await self._request(
            "POST", CHECKS_PATH, json=payload,
            headers={"X-Acrolinx-Auth": access_token}, context=request.file_path,
        )
        body = _json_body(response, CHECKS_PATH, request.file_path)
        result_url = (body.get("links") or {}).get("result")
        if not result_url:
            raise RemoteApiError(
                "Check submission returned no result link",
                kind=ErrorKind.PROTOCOL, context=request.file_path, endpoint=CHECKS_PATH,
            )
        logger.debug("Check accepted for %s: %s", request.file_path, result_url)
        return result_url

    async def fetch_result(self, access_token: str, handle: str) -> CheckResponse:
        """Poll the result link until the check is done or check_timeout_s elapses."""
        auth = {"X-Acrolinx-Auth": access_token}
        context = handle
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._check_timeout_s
        url = handle

        while True:
            response = await self._request("GET", url, headers=auth, context=context)
            body = _json_body(response, url, context)
            if response.status_code == 200 and body.get("data"):
                return _parse_check_result(body["data"], url, context)

            progress = body.get("progress") or {}
            retry_after = float(progress.get("retryAfter") or self._poll_interval_s)
            url = (body.get("links") or {}).get("poll") or url
            if loop.time() + retry_after > deadline:
                raise RemoteApiError(
                    f"Check not finished within {self._check_timeout_s:.0f}s",
                    kind=ErrorKind.TIMEOUT, context=context, endpoint=url,
                )
            logger.debug(
                "Check in progress for %s (%s%%), polling again in %.1fs",
                context, progress.get("percent", "?"), retry_after,
            )
            await asyncio.sleep(retry_after)

    async def _request(
        self,
        method: str,
        url: str,
        context: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise RemoteApiError.timeout(context=context, endpoint=url) from e
        except httpx.TransportError as e:
            raise RemoteApiError(
                f"Connection failed: {e}",
                kind=ErrorKind.CONNECTION, context=context, endpoint=url,
            ) from e

        if response.status_code >= 400:
            raise RemoteApiError.from_status(
                response.status_code,
                detail=_error_detail(response),
                context=context,
                endpoint=url,
            )
        return response


def _json_body(response: httpx.Response, endpoint: str, context: str | None = None) -> dict:
    try:
        body = response.json()
    except ValueError as e:
        raise RemoteApiError(
            "Response is not valid JSON",
            kind=ErrorKind.PROTOCOL, context=context, endpoint=endpoint,
        ) from e
    if not isinstance(body, dict):
        raise RemoteApiError(
            "Response is not a JSON object",
            kind=ErrorKind.PROTOCOL, context=context, endpoint=endpoint,
        )
    return body


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        error = body.get("error") or {}
        if isinstance(error, dict):
            return str(error.get("detail") or error.get("title") or "")
    return ""


def _parse_check_result(data: dict, endpoint: str, context: str) -> CheckResponse:
    check_id = data.get("id")
    if not check_id:
        raise RemoteApiError(
            "Check result has no id",
            kind=ErrorKind.PROTOCOL, context=context, endpoint=endpoint,
        )
    quality = data.get("quality") or {}
    reports: dict[str, str] = {}
    for name, report in (data.get("reports") or {}).items():
        link = report.get("link") if isinstance(report, dict) else None
        if link:
            reports[name] = link
    return CheckResponse(
        id=str(check_id),
        quality_score=quality.get("score"),
        quality_status=quality.get("status"),
        reports=reports,
    )
