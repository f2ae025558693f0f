"""Unit tests for the in-memory vector store.

The in-memory store backs most of the test suite, so its contract is
checked here directly: dataset opening and closing, catalog creation
through the driver registry, and catalog layer bookkeeping.

See Also:
    - backend/tileindex/db/store.py for the implementation.
"""

from __future__ import annotations

import pytest
from shapely.geometry import box

from tileindex.core import errors
from tileindex.db import models
from tileindex.db import store


def test_open_unknown_dataset_raises() -> None:
    """Opening a path that was never added fails."""
    vector_store = store.InMemoryVectorStore()
    with pytest.raises(errors.DatasetOpenError) as exc_info:
        vector_store.open("missing.shp")
    assert exc_info.value.path == "missing.shp"
    assert vector_store.opened == ["missing.shp"]


def test_dataset_context_closes() -> None:
    """Leaving the with block closes the dataset."""
    vector_store = store.InMemoryVectorStore()
    vector_store.add_dataset("a.shp", [store.MemoryLayer("a")])
    with vector_store.open("a.shp") as dataset:
        assert dataset.layer_count() == 1
        assert dataset.layer(0) is not None
        assert dataset.layer(1) is None
        assert not dataset.closed
    assert dataset.closed


def test_layer_counts_evaluations() -> None:
    """schema(), spatial_ref() and extent() are each counted."""
    layer = store.MemoryLayer("a", bounds=(0, 0, 1, 1))
    layer.schema()
    layer.spatial_ref()
    layer.extent()
    assert layer.evaluations == 3


def test_layer_without_bounds_has_no_extent() -> None:
    """A layer with no bounds raises ExtentError."""
    with pytest.raises(errors.ExtentError):
        store.MemoryLayer("empty").extent()


def test_spatial_ref_identity() -> None:
    """Definitions compare case-insensitively; clones are equal."""
    srs = store.MemorySpatialRef("EPSG:4326")
    assert srs.is_same(store.MemorySpatialRef("epsg:4326"))
    assert not srs.is_same(store.MemorySpatialRef("EPSG:3857"))
    assert srs.clone() == srs
    assert srs.to_wkt() == "EPSG:4326"


def test_create_catalog_registers_it() -> None:
    """A created catalog can be reopened by path."""
    vector_store = store.InMemoryVectorStore()
    created = vector_store.create_catalog("index.gpkg", "GPKG")
    assert vector_store.open_catalog("index.gpkg") is created
    assert vector_store.open_catalog("other.gpkg") is None


def test_create_catalog_driver_errors() -> None:
    """Unknown, read-only and failing drivers raise fatal errors."""
    vector_store = store.InMemoryVectorStore(
        drivers={"GPKG": True, "CSV": False}
    )
    with pytest.raises(errors.DriverNotFoundError) as exc_info:
        vector_store.create_catalog("index.shp", "ESRI Shapefile")
    assert exc_info.value.available == ("GPKG", "CSV")
    with pytest.raises(errors.DriverCapabilityError):
        vector_store.create_catalog("index.csv", "CSV")
    vector_store.failing_creates.add("index.gpkg")
    with pytest.raises(errors.CatalogCreateError):
        vector_store.create_catalog("index.gpkg", "GPKG")
    assert vector_store.catalogs == {}


def test_ensure_layer_creates_once() -> None:
    """The first call creates the layer, later calls return it."""
    catalog = store.MemoryCatalogDataset("index.shp")
    first = catalog.ensure_layer("tileindex", "LOCATION", 200, None)
    second = catalog.ensure_layer("other", "OTHER", 10, None)
    assert first is second
    assert catalog.layer_count() == 1
    assert first.field_names() == ["LOCATION"]


def test_catalog_layer_rows() -> None:
    """Appended rows are counted and listed in order."""
    layer = store.MemoryCatalogLayer("tileindex", ["LOCATION"])
    layer.append("LOCATION", "a.shp,0", box(0, 0, 1, 1))
    layer.append("LOCATION", "a.shp,1", box(1, 1, 2, 2))
    assert layer.feature_count() == 2
    assert [e.location for e in layer.entries("LOCATION")] == [
        "a.shp,0",
        "a.shp,1",
    ]
    assert isinstance(layer.rows[0], models.CatalogEntry)


def test_unreadable_layer_raises_layer_read_error() -> None:
    """Schema and SRS reads fail on an unreadable layer."""
    layer = store.MemoryLayer("broken", unreadable=True)
    with pytest.raises(errors.LayerReadError):
        layer.schema()
    with pytest.raises(errors.LayerReadError):
        layer.spatial_ref()
    assert not isinstance(errors.LayerReadError("x"), errors.FatalCatalogError)
