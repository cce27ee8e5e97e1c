# src/client/base_client.py — v1
"""Abstract checking-service client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType

from acrocheck.core.models import CheckRequest, CheckResponse


class BaseCheckClient(ABC):
    """Remote content-checking service.

    A check happens in two steps: ``start_check`` submits the content and
    returns a handle, ``fetch_result`` waits for the finished check behind
    that handle. Callers retry the steps separately so that a failed fetch
    never submits the same content twice.

    Implementations must be safe to share between concurrent checks and
    raise RemoteApiError (with an ErrorKind) on failure.
    """

    @abstractmethod
    async def sign_in(self, sso_token: str, username: str) -> str:
        """Exchange SSO credentials for an access token."""

    @abstractmethod
    async def start_check(self, access_token: str, request: CheckRequest) -> str:
        """Submit content for checking and return the result handle."""

    @abstractmethod
    async def fetch_result(self, access_token: str, handle: str) -> CheckResponse:
        """Wait for the check behind ``handle`` to finish and return it."""

    async def aclose(self) -> None:
        """Release network resources."""

    async def __aenter__(self) -> BaseCheckClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
