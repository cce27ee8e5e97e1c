# src/batch/scanner.py — v1
"""File discovery — directory scanning and extension allow-listing.

Supplies the ordered list of files a batch checks, and the validity /
support tests the watch mode applies to individual change events.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

# Extensions (lowercase, without dot) the checking service understands.
SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({
    # XML-based
    "xml", "xhtm", "xhtml", "svg", "resx", "xlf", "xliff", "dita", "ditamap", "ditaval",
    # HTML
    "html", "htm",
    # Markdown
    "markdown", "mdown", "mkdn", "mkd", "md",
    # Plain text
    "txt",
    # Source code
    "java",
    "c", "h", "cc", "cpp", "cxx", "c++", "hh", "hpp", "hxx", "h++", "dic",
    # Configuration
    "yaml", "yml",
    "properties",
    "json",
})


def file_extension(path: str | Path) -> str:
    return Path(path).suffix.lstrip(".").lower()


class FileScanner:
    """Scan directories for files the checking service supports."""

    def __init__(self, extensions: Iterable[str] | None = None) -> None:
        self._extensions = (
            frozenset(e.lstrip(".").lower() for e in extensions)
            if extensions is not None
            else SUPPORTED_EXTENSIONS
        )

    def is_file_supported(self, path: str | Path) -> bool:
        """True if the extension is on the allow-list."""
        if not str(path).strip():
            return False
        supported = file_extension(path) in self._extensions
        if not supported:
            logger.debug("Unsupported extension %r: %s", file_extension(path), path)
        return supported

    def is_file_valid(self, path: str | Path) -> bool:
        """True if ``path`` is an existing, readable regular file."""
        if not str(path).strip():
            logger.warning("File path is empty")
            return False
        p = Path(path)
        if not p.exists():
            logger.warning("File does not exist: %s", p)
            return False
        if not p.is_file():
            logger.warning("Path is not a regular file: %s", p)
            return False
        try:
            with p.open("rb") as fh:
                fh.read(1)
        except OSError as e:
            logger.warning("File is not accessible: %s (%s)", p, e)
            return False
        return True

    def filter_supported(self, paths: Iterable[Path]) -> list[Path]:
        return [p for p in paths if self.is_file_supported(p)]

    def scan(self, scan_root: Path, recursive: bool = True) -> list[Path]:
        """Discover all supported files under ``scan_root``, sorted by path.

        Raises:
            ValueError: If ``scan_root`` is not a directory.
        """
        if not scan_root.is_dir():
            msg = f"Scan root is not a directory: {scan_root}"
            raise ValueError(msg)

        pattern_fn = scan_root.rglob if recursive else scan_root.glob
        all_files = [p for p in sorted(pattern_fn("*")) if p.is_file()]
        logger.debug("Found %d files in %s", len(all_files), scan_root)

        supported = self.filter_supported(all_files)
        logger.info(
            "Scanned %s: found %d supported files out of %d (recursive=%s)",
            scan_root, len(supported), len(all_files), recursive,
        )
        return supported
