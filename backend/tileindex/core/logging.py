"""Logging setup shared by the CLI and the HTTP application.

Modules log through ``logging.getLogger(__name__)``; this helper only
configures the root handler once, writing diagnostics to stderr the way
the command-line tool always has.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging to stderr.

    Args:
        level: Level name (``"DEBUG"``, ``"INFO"``...) or numeric level.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
