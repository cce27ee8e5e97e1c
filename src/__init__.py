# src/__init__.py — v1
"""acrocheck — submit content files to an Acrolinx checking service.

Usage:
    from acrocheck.batch.runner import BatchRunner
    result = await BatchRunner(settings, client).run()
"""

from acrocheck.version import __version__

__all__ = ["__version__"]
