# src/client/client_factory.py — v1
"""Factory: build the checking-service client from Settings."""

from __future__ import annotations

import logging

import httpx

from acrocheck.client.base_client import BaseCheckClient
from acrocheck.client.http_client import HttpCheckClient
from acrocheck.config.settings import Settings

logger = logging.getLogger(__name__)


def create_check_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BaseCheckClient:
    """Instantiate the HTTP client for ``settings.url``.

    Args:
        settings: Application settings (URL, signature, timeouts).
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """
    logger.debug("Creating check client for %s", settings.base_url)
    return HttpCheckClient(
        base_url=settings.base_url,
        client_signature=settings.client_signature,
        request_timeout_s=settings.request_timeout_s,
        check_timeout_s=settings.check_timeout_s,
        transport=transport,
    )
