# src/watch/monitor.py — v1
"""Watch mode — poll the content directory and check files as they change.

Polling compares (mtime, size) snapshots of supported files. New paths are
reported as "created" (a rename shows up this way too), changed stats as
"modified". Files present when monitoring starts form the baseline and are
not checked. Each event runs in its own task through the same CheckInvoker
as the batch path and shares the stop event as its cancellation signal.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal

from acrocheck.batch.dispatcher import SupportsCheck
from acrocheck.batch.scanner import FileScanner
from acrocheck.config.settings import Settings
from acrocheck.core.cancellation import sleep_or_cancel
from acrocheck.core.errors import OperationCancelled
from acrocheck.core.models import CheckMode
from acrocheck.logging.context import set_file_context
from acrocheck.reporting.browser import open_url_in_browser

logger = logging.getLogger(__name__)

Snapshot = dict[Path, tuple[int, int]]


@dataclass(frozen=True)
class FileEvent:
    kind: Literal["created", "modified"]
    path: Path


def diff_snapshots(old: Snapshot, new: Snapshot) -> list[FileEvent]:
    """Events needed to go from ``old`` to ``new``, sorted by path."""
    events: list[FileEvent] = []
    for path in sorted(new):
        if path not in old:
            events.append(FileEvent("created", path))
        elif old[path] != new[path]:
            events.append(FileEvent("modified", path))
    return events


class DirectoryMonitor:
    """Poll a directory and run an automated check for every change."""

    def __init__(
        self,
        settings: Settings,
        invoker: SupportsCheck,
        scanner: FileScanner | None = None,
        opener: Callable[[str], bool] = open_url_in_browser,
    ) -> None:
        self._root = settings.content_path
        self._interval_s = settings.watch_interval_s
        self._recursive = settings.recursive
        self._open_browser = settings.open_browser
        self._invoker = invoker
        self._scanner = scanner or FileScanner()
        self._opener = opener
        self._snapshot: Snapshot = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def take_snapshot(self) -> Snapshot:
        """Stat every supported file under the root."""
        pattern_fn = self._root.rglob if self._recursive else self._root.glob
        snapshot: Snapshot = {}
        for path in pattern_fn("*"):
            if not self._scanner.is_file_supported(path):
                continue
            try:
                stat = path.stat()
            except OSError:
                continue  # vanished between listing and stat
            if path.is_file():
                snapshot[path] = (stat.st_mtime_ns, stat.st_size)
        return snapshot

    async def start(self) -> None:
        """Record the baseline snapshot."""
        if not self._root.is_dir():
            msg = f"Content directory does not exist: {self._root}"
            raise ValueError(msg)
        self._snapshot = await asyncio.to_thread(self.take_snapshot)
        logger.info(
            "Monitoring started for %s (%d files in baseline)", self._root, len(self._snapshot),
        )

    async def poll_once(self, stop_event: asyncio.Event | None = None) -> list[FileEvent]:
        """Take a new snapshot and spawn one check task per change."""
        current = await asyncio.to_thread(self.take_snapshot)
        events = diff_snapshots(self._snapshot, current)
        self._snapshot = current
        for event in events:
            self._spawn(event, stop_event)
        return events

    async def run(self, stop_event: asyncio.Event) -> None:
        """Poll until ``stop_event`` is set, then wait for event tasks to unwind."""
        await self.start()
        try:
            while not stop_event.is_set():
                try:
                    await sleep_or_cancel(self._interval_s, stop_event, "watch_poll")
                except OperationCancelled:
                    break
                await self.poll_once(stop_event)
        finally:
            await self.drain(cancel=not stop_event.is_set())
            logger.info("Monitoring stopped for %s", self._root)

    async def drain(self, cancel: bool = False) -> None:
        """Wait for in-flight event tasks, cancelling them first if asked."""
        pending = list(self._tasks)
        if not pending:
            return
        if cancel:
            for task in pending:
                task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    def _spawn(self, event: FileEvent, stop_event: asyncio.Event | None) -> None:
        task = asyncio.create_task(
            self.handle_event(event, stop_event), name=f"watch-{event.path.name}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def handle_event(
        self,
        event: FileEvent,
        stop_event: asyncio.Event | None = None,
    ) -> str | None:
        """Validate the file, check it, and open the scorecard."""
        path = str(event.path)
        set_file_context(path, "auto_check")

        if not self._scanner.is_file_valid(path):
            logger.debug("File is not valid, skipping: %s", path)
            return None
        if not self._scanner.is_file_supported(path):
            logger.debug("File type not supported, skipping: %s", path)
            return None

        logger.info("File %s: %s", event.kind, path)
        try:
            link = await self._invoker.check(
                path, check_mode=CheckMode.AUTOMATED, cancel_event=stop_event,
            )
        except OperationCancelled:
            logger.debug("Check cancelled for %s", path)
            return None
        except Exception:
            logger.exception("Error processing file change for %s", path)
            return None

        if link:
            logger.info("Check completed successfully for %s: %s", path, link)
            if self._open_browser:
                self._opener(link)
        return link
