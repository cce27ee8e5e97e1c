# src/reporting/browser.py — v1
"""Open report links in the user's default browser."""

from __future__ import annotations

import logging
import webbrowser

logger = logging.getLogger(__name__)


def open_url_in_browser(url: str | None) -> bool:
    """Open ``url`` if it is an https link. Returns True when a browser was launched."""
    if not url or not url.strip() or not url.startswith("https://"):
        logger.warning("Invalid URL, cannot open in browser: %r", url)
        return False
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.error("Failed to open browser for %s: %s", url, e)
        return False
    if opened:
        logger.info("Opening %s in default browser", url)
    else:
        logger.warning("No browser available to open %s", url)
    return opened
