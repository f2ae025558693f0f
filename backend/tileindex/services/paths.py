"""Resolution of source paths written into location tokens."""

from __future__ import annotations

import dataclasses
import logging
import os

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class PathResolver:
    """Rewrites relative source paths against a working directory.

    The working directory is captured once, when the run starts. A path is
    rewritten only when absolute mode is on, the path is relative and it
    exists on the filesystem; connection strings such as ``PG:dbname=gis``
    and absolute paths are written as given.

    Attributes:
        base_dir: Captured working directory, None when absolute mode is off.
    """

    base_dir: str | None = None

    @property
    def enabled(self) -> bool:
        return self.base_dir is not None

    @classmethod
    def capture(cls, write_absolute_path: bool) -> PathResolver:
        """Capture the current working directory if absolute mode is on.

        If the working directory cannot be determined the resolver is
        returned disabled and a single warning is logged.
        """
        if not write_absolute_path:
            return cls()
        try:
            base_dir = os.getcwd()
        except OSError as exc:
            logger.warning(
                "Cannot determine the current directory (%s). "
                "The option write_absolute_path will have no effect.",
                exc,
            )
            return cls()
        return cls(base_dir)

    def resolve(self, path: str) -> str:
        """Return the path to record in the catalog for a source dataset."""
        if self.base_dir is None:
            return path
        if os.path.isabs(path) or not os.path.exists(path):
            return path
        return os.path.join(self.base_dir, path)
