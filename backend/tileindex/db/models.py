"""Data models for tile index assembly.

This module defines the value types that flow between the vector store,
the assembly services and the catalog: attribute field definitions, the
per-layer snapshot taken while scanning a source dataset, the catalog
baseline, catalog entries, layer selectors and the run options.

Example:
    Describe a run that indexes layer 0 of two shapefiles:
        >>> from tileindex.db import models
        >>> options = models.IndexOptions(
        ...     output_path="index.shp",
        ...     sources=[
        ...         models.SourceSpec("tiles/a.shp"),
        ...         models.SourceSpec("tiles/b.shp"),
        ...     ],
        ...     layer_filter=models.LayerFilter((models.ByIndex(0),)),
        ... )
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from shapely.geometry import Polygon

    from tileindex.core import config

BBox = tuple[float, float, float, float]
LocationToken = str


class SpatialRef(Protocol):
    """Opaque spatial reference handle owned by a vector store."""

    def is_same(self, other: SpatialRef) -> bool: ...

    def clone(self) -> SpatialRef: ...

    def to_wkt(self) -> str: ...


@dataclasses.dataclass(frozen=True)
class FieldDef:
    """One attribute field of a layer schema.

    Attributes:
        name: Field name as declared by the source.
        type: Field type name (``"String"``, ``"Integer"``, ``"Real"``...).
        width: Declared width, 0 when unspecified.
        precision: Declared precision, 0 when unspecified.
    """

    name: str
    type: str
    width: int = 0
    precision: int = 0

    def matches(self, other: FieldDef) -> bool:
        """Compare type, width, precision and case-insensitive name."""
        return (
            self.type == other.type
            and self.width == other.width
            and self.precision == other.precision
            and self.name.casefold() == other.name.casefold()
        )


@dataclasses.dataclass
class SourceLayer:
    """Snapshot of one layer of one source dataset taken during a scan.

    Only derived values survive the scan: the schema tuple and the cloned
    spatial reference are independent of the dataset, which is closed as
    soon as its layers have been visited.

    Attributes:
        dataset_path: Path the dataset was opened with.
        layer_index: Position of the layer inside the dataset.
        layer_name: Layer name reported by the store.
        field_schema: Ordered attribute fields.
        spatial_ref: Cloned spatial reference, None when the layer has none.
        extent: (minx, miny, maxx, maxy), None when it could not be computed.
    """

    dataset_path: str
    layer_index: int
    layer_name: str
    field_schema: tuple[FieldDef, ...] = ()
    spatial_ref: SpatialRef | None = None
    extent: BBox | None = None


@dataclasses.dataclass(frozen=True)
class Baseline:
    """Schema and spatial reference every catalog entry is checked against."""

    field_schema: tuple[FieldDef, ...]
    spatial_ref: SpatialRef | None


@dataclasses.dataclass(frozen=True)
class CatalogEntry:
    """One tile index record: a location token and its bounding polygon."""

    location: LocationToken
    geometry: Polygon | None


@dataclasses.dataclass(frozen=True)
class ByIndex:
    """Select the layer at a given position."""

    index: int

    def selects(self, layer_index: int, layer_name: str) -> bool:
        return self.index == layer_index


@dataclasses.dataclass(frozen=True)
class ByName:
    """Select layers by name, case-insensitively."""

    name: str

    def selects(self, layer_index: int, layer_name: str) -> bool:
        return self.name.casefold() == layer_name.casefold()


LayerSelector = ByIndex | ByName


@dataclasses.dataclass(frozen=True)
class LayerFilter:
    """Ordered list of layer selectors; empty means every layer."""

    selectors: tuple[LayerSelector, ...] = ()

    @property
    def is_wildcard(self) -> bool:
        return not self.selectors

    @classmethod
    def from_lists(
        cls,
        indices: Iterable[int] = (),
        names: Iterable[str] = (),
    ) -> LayerFilter:
        """Build a filter from layer numbers and layer names."""
        selectors: list[LayerSelector] = [ByIndex(i) for i in indices]
        selectors.extend(ByName(name) for name in names)
        return cls(tuple(selectors))


@dataclasses.dataclass(frozen=True)
class SourceSpec:
    """A source dataset and an optional filter overriding the global one."""

    path: str
    layer_filter: LayerFilter | None = None


@dataclasses.dataclass
class IndexOptions:
    """Fully-resolved configuration of one tile index run.

    Attributes:
        output_path: Catalog dataset to open for update or create.
        sources: Source datasets in processing order.
        output_format: Driver name used if the catalog must be created.
        location_field: Field holding the location token.
        write_absolute_path: Rewrite relative source paths as absolute.
        skip_different_projection: Skip layers with a different SRS.
        accept_different_schemas: Disable the attribute schema check.
        layer_filter: Global layer filter applied to every source.
        location_field_width: Width of the location field on creation.
        catalog_layer_name: Layer name on creation.
    """

    output_path: str
    sources: Sequence[SourceSpec]
    output_format: str = "ESRI Shapefile"
    location_field: str = "LOCATION"
    write_absolute_path: bool = False
    skip_different_projection: bool = False
    accept_different_schemas: bool = False
    layer_filter: LayerFilter = dataclasses.field(default_factory=LayerFilter)
    location_field_width: int = 200
    catalog_layer_name: str = "tileindex"

    def filter_for(self, source: SourceSpec) -> LayerFilter:
        """Return the filter that applies to a source dataset."""
        if source.layer_filter is not None:
            return source.layer_filter
        return self.layer_filter

    @classmethod
    def from_settings(
        cls,
        settings: config.Settings,
        output_path: str,
        sources: Sequence[SourceSpec],
        **overrides: Any,
    ) -> IndexOptions:
        """Merge settings defaults with explicit per-run overrides.

        Overrides whose value is None are ignored so callers can pass
        optional CLI or API values straight through.
        """
        values: dict[str, Any] = {
            "output_format": settings.output_format,
            "location_field": settings.location_field,
            "write_absolute_path": settings.write_absolute_path,
            "skip_different_projection": settings.skip_different_projection,
            "accept_different_schemas": settings.accept_different_schemas,
            "location_field_width": settings.location_field_width,
            "catalog_layer_name": settings.catalog_layer_name,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(output_path=output_path, sources=sources, **values)


@dataclasses.dataclass
class IndexReport:
    """Counters describing the outcome of one run."""

    appended: int = 0
    duplicates: int = 0
    projection_mismatches: int = 0
    schema_mismatches: int = 0
    extent_failures: int = 0
    layer_failures: int = 0
    datasets_opened: int = 0
    datasets_failed: int = 0
    existing_entries: int = 0
    status: int = 0
    error: str | None = None
