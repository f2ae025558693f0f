"""Vector store interfaces and the in-memory backend.

The assembly services never touch a concrete vector format. They talk to a
vector store through the protocols below: open a source dataset and walk
its layers, open or create the catalog dataset, read its existing entries
and append new ones. Two implementations exist:

- InMemoryVectorStore: dictionaries of layers and catalogs, used by tests
  and for local experiments.
- OgrVectorStore (tileindex.db.ogr_store): GDAL/OGR Python bindings, used
  in production.

Example:
    Build a store with one two-layer dataset and run against it:
        >>> from tileindex.db import models, store
        >>> vector_store = store.InMemoryVectorStore()
        >>> vector_store.add_dataset("a.shp", [
        ...     store.MemoryLayer("roads", bounds=(0, 0, 10, 5)),
        ...     store.MemoryLayer("rivers", bounds=(5, 5, 20, 10)),
        ... ])
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Protocol, Self

from tileindex.core import errors
from tileindex.db import models

if TYPE_CHECKING:
    import types
    from collections.abc import Iterable, Iterator, Mapping

    from shapely.geometry import Polygon

    from tileindex.core import config


class LayerHandleProtocol(Protocol):
    """One layer inside an open source dataset.

    schema() and spatial_ref() raise LayerReadError, extent() raises
    ExtentError, when the store cannot read them.
    """

    @property
    def name(self) -> str: ...

    def schema(self) -> tuple[models.FieldDef, ...]: ...

    def spatial_ref(self) -> models.SpatialRef | None: ...

    def extent(self) -> models.BBox: ...


class DatasetProtocol(Protocol):
    """An open, read-only source dataset; closed on context exit."""

    def layer_count(self) -> int: ...

    def layer(self, index: int) -> LayerHandleProtocol | None: ...

    def close(self) -> None: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None: ...


class CatalogLayerProtocol(Protocol):
    """The catalog layer holding location tokens and their polygons."""

    def feature_count(self) -> int: ...

    def field_names(self) -> list[str]: ...

    def entries(self, location_field: str) -> Iterator[models.CatalogEntry]: ...

    def append(
        self,
        location_field: str,
        location: models.LocationToken,
        geometry: Polygon,
    ) -> None: ...


class CatalogDatasetProtocol(Protocol):
    """The catalog dataset, opened for update or freshly created."""

    def layer_count(self) -> int: ...

    def ensure_layer(
        self,
        layer_name: str,
        location_field: str,
        field_width: int,
        spatial_ref: models.SpatialRef | None,
    ) -> CatalogLayerProtocol: ...

    def close(self) -> None: ...


class VectorStoreProtocol(Protocol):
    """Entry point of a vector store backend."""

    def open(self, path: str) -> DatasetProtocol: ...

    def open_catalog(self, path: str) -> CatalogDatasetProtocol | None: ...

    def create_catalog(
        self,
        path: str,
        driver_name: str,
    ) -> CatalogDatasetProtocol: ...

    def driver_names(self) -> list[str]: ...


@dataclasses.dataclass(frozen=True)
class MemorySpatialRef:
    """Spatial reference identified by a definition string (e.g. EPSG:4326)."""

    definition: str

    def is_same(self, other: models.SpatialRef) -> bool:
        return isinstance(other, MemorySpatialRef) and (
            self.definition.casefold() == other.definition.casefold()
        )

    def clone(self) -> MemorySpatialRef:
        return MemorySpatialRef(self.definition)

    def to_wkt(self) -> str:
        return self.definition


@dataclasses.dataclass
class MemoryLayer:
    """Source layer definition doubling as its own layer handle.

    A layer without bounds reports an extent failure, and an ``unreadable``
    layer fails schema() and spatial_ref() with LayerReadError. Every call to
    schema(), spatial_ref() or extent() is counted in ``evaluations`` so
    tests can check which layers were looked at.
    """

    layer_name: str
    fields: tuple[models.FieldDef, ...] = ()
    srs: MemorySpatialRef | None = None
    bounds: models.BBox | None = None
    unreadable: bool = False
    evaluations: int = dataclasses.field(default=0, compare=False)

    @property
    def name(self) -> str:
        return self.layer_name

    def schema(self) -> tuple[models.FieldDef, ...]:
        self.evaluations += 1
        self._check_readable()
        return self.fields

    def spatial_ref(self) -> MemorySpatialRef | None:
        self.evaluations += 1
        self._check_readable()
        return self.srs

    def extent(self) -> models.BBox:
        self.evaluations += 1
        if self.bounds is None:
            raise errors.ExtentError(f"layer {self.layer_name} has no extent")
        return self.bounds

    def _check_readable(self) -> None:
        if self.unreadable:
            raise errors.LayerReadError(
                f"layer {self.layer_name} has a corrupt definition"
            )


class MemoryDataset:
    """Read-only view over a list of MemoryLayer objects."""

    def __init__(self, path: str, layers: list[MemoryLayer]) -> None:
        self.path = path
        self._layers = layers
        self.closed = False

    def layer_count(self) -> int:
        return len(self._layers)

    def layer(self, index: int) -> MemoryLayer | None:
        if 0 <= index < len(self._layers):
            return self._layers[index]
        return None

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        self.close()


class MemoryCatalogLayer:
    """Catalog layer storing rows as CatalogEntry objects.

    Set ``fail_appends`` to make every append raise CatalogWriteError.
    """

    def __init__(
        self,
        name: str,
        field_names: Iterable[str],
        spatial_ref: models.SpatialRef | None = None,
        rows: Iterable[models.CatalogEntry] = (),
    ) -> None:
        self.name = name
        self._field_names = list(field_names)
        self.spatial_ref = spatial_ref
        self.rows: list[models.CatalogEntry] = list(rows)
        self.fail_appends = False

    def feature_count(self) -> int:
        return len(self.rows)

    def field_names(self) -> list[str]:
        return list(self._field_names)

    def entries(self, location_field: str) -> Iterator[models.CatalogEntry]:
        yield from list(self.rows)

    def append(
        self,
        location_field: str,
        location: models.LocationToken,
        geometry: Polygon,
    ) -> None:
        if self.fail_appends:
            raise errors.CatalogWriteError(
                "Failed to create feature on tile index. Terminating."
            )
        self.rows.append(models.CatalogEntry(location, geometry))


class MemoryCatalogDataset:
    """Catalog dataset made of MemoryCatalogLayer objects."""

    def __init__(
        self,
        path: str,
        layers: Iterable[MemoryCatalogLayer] = (),
        can_create_layer: bool = True,
    ) -> None:
        self.path = path
        self.layers = list(layers)
        self.can_create_layer = can_create_layer
        self.closed = False

    def layer_count(self) -> int:
        return len(self.layers)

    def ensure_layer(
        self,
        layer_name: str,
        location_field: str,
        field_width: int,
        spatial_ref: models.SpatialRef | None,
    ) -> MemoryCatalogLayer:
        if not self.layers:
            if not self.can_create_layer:
                raise errors.CatalogLayerError(
                    "Can't find any layer in output tileindex!"
                )
            self.layers.append(
                MemoryCatalogLayer(layer_name, [location_field], spatial_ref)
            )
        return self.layers[0]

    def close(self) -> None:
        self.closed = True


DEFAULT_MEMORY_DRIVERS: dict[str, bool] = {
    "ESRI Shapefile": True,
    "GPKG": True,
    "GeoJSON": True,
}


class InMemoryVectorStore(VectorStoreProtocol):
    """Simple in-memory vector store for tests and local development.

    Attributes:
        datasets: Source layers keyed by dataset path.
        catalogs: Catalog datasets keyed by path.
        drivers: Driver name to "supports creation" flag.
        opened: Paths passed to open(), in call order.
        handles: Datasets returned by open(), to check they get closed.
    """

    def __init__(self, drivers: Mapping[str, bool] | None = None) -> None:
        """Initialize an empty store with the given driver registry."""
        self.datasets: dict[str, list[MemoryLayer]] = {}
        self.catalogs: dict[str, MemoryCatalogDataset] = {}
        self.drivers = dict(
            DEFAULT_MEMORY_DRIVERS if drivers is None else drivers
        )
        self.opened: list[str] = []
        self.handles: list[MemoryDataset] = []
        self.failing_creates: set[str] = set()

    def add_dataset(self, path: str, layers: Iterable[MemoryLayer]) -> None:
        """Register a source dataset made of the given layers."""
        self.datasets[path] = list(layers)

    def add_catalog(self, catalog: MemoryCatalogDataset) -> None:
        """Register an existing catalog dataset."""
        self.catalogs[catalog.path] = catalog

    def open(self, path: str) -> MemoryDataset:
        self.opened.append(path)
        layers = self.datasets.get(path)
        if layers is None:
            raise errors.DatasetOpenError(path)
        dataset = MemoryDataset(path, layers)
        self.handles.append(dataset)
        return dataset

    def open_catalog(self, path: str) -> MemoryCatalogDataset | None:
        catalog = self.catalogs.get(path)
        if catalog is not None:
            catalog.closed = False
        return catalog

    def create_catalog(
        self,
        path: str,
        driver_name: str,
    ) -> MemoryCatalogDataset:
        driver = next(
            (n for n in self.drivers if n.casefold() == driver_name.casefold()),
            None,
        )
        if driver is None:
            raise errors.DriverNotFoundError(driver_name, self.driver_names())
        if not self.drivers[driver]:
            raise errors.DriverCapabilityError(driver_name)
        if path in self.failing_creates:
            raise errors.CatalogCreateError(driver_name, path)
        catalog = MemoryCatalogDataset(path)
        self.catalogs[path] = catalog
        return catalog

    def driver_names(self) -> list[str]:
        return list(self.drivers)


def get_vector_store(settings: config.Settings | None = None) -> VectorStoreProtocol:
    """Factory function to create the production vector store.

    Args:
        settings: Application settings (unused by the OGR backend, accepted
            so the factory can be used as a FastAPI dependency).

    Returns:
        OgrVectorStore instance backed by the GDAL Python bindings.
    """
    from tileindex.db import ogr_store

    return ogr_store.OgrVectorStore()
