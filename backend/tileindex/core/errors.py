"""Exception hierarchy for tile index assembly.

Failures split into two families. Per-unit failures (a dataset that does
not open, a layer that cannot be read or whose extent cannot be computed,
a malformed location token) are caught by the assembler and turned
into a skip at that granularity. Subclasses of FatalCatalogError mean
the catalog itself can no longer be trusted; they abort the run with exit
status 1.

Example:
    Handle a fatal condition around a run:
        >>> from tileindex.core import errors
        >>> from tileindex.services import assembler

        >>> try:
        ...     report = assembler.assemble(options, store)
        ... except errors.FatalCatalogError as exc:
        ...     print(f"Tile index aborted: {exc}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class TileIndexError(RuntimeError):
    """Base class for every error raised by the tileindex package."""


class MalformedTokenError(TileIndexError, ValueError):
    """A location token has no comma or a non-integer layer suffix."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Malformed location token: {token!r}")
        self.token = token


class DatasetOpenError(TileIndexError):
    """A source dataset could not be opened for reading."""

    def __init__(self, path: str, reason: str | None = None) -> None:
        message = f"Failed to open dataset {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class ExtentError(TileIndexError):
    """The extent of a source layer could not be computed."""


class LayerReadError(TileIndexError):
    """A source layer, its schema or its spatial reference is unreadable."""


class FatalCatalogError(TileIndexError):
    """The catalog cannot be created, opened or written; the run aborts."""


class DriverNotFoundError(FatalCatalogError):
    """The requested output driver is not registered.

    Attributes:
        driver_name: Name that was looked up.
        available: Names of the drivers that are registered.
    """

    def __init__(self, driver_name: str, available: Iterable[str]) -> None:
        self.driver_name = driver_name
        self.available = tuple(available)
        listing = "\n".join(f"  -> `{name}'" for name in self.available)
        super().__init__(
            f"Unable to find driver `{driver_name}'.\n"
            f"The following drivers are available:\n{listing}"
        )


class DriverCapabilityError(FatalCatalogError):
    """The output driver cannot create new datasets."""

    def __init__(self, driver_name: str) -> None:
        super().__init__(
            f"{driver_name} driver does not support data source creation."
        )
        self.driver_name = driver_name


class CatalogCreateError(FatalCatalogError):
    """The driver failed to create the catalog dataset."""

    def __init__(self, driver_name: str, path: str) -> None:
        super().__init__(f"{driver_name} driver failed to create {path}")
        self.driver_name = driver_name
        self.path = path


class CatalogLayerError(FatalCatalogError):
    """The catalog has no layer and none could be created."""


class LocationFieldError(FatalCatalogError):
    """The configured location field is missing from the catalog schema."""

    def __init__(self, field_name: str) -> None:
        super().__init__(
            f"Can't find {field_name} field in tile index dataset."
        )
        self.field_name = field_name


class CatalogWriteError(FatalCatalogError):
    """Appending an entry to the catalog failed."""
