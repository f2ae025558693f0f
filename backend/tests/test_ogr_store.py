"""Integration tests for the GDAL/OGR vector store.

Skipped when the GDAL Python bindings are not installed. Source datasets
are written with OGR into a temporary directory, then indexed through
OgrVectorStore into a shapefile catalog.

See Also:
    - backend/tileindex/db/ogr_store.py for the implementation.
"""

from __future__ import annotations

import pathlib

import pytest

ogr = pytest.importorskip("osgeo.ogr")
osr = pytest.importorskip("osgeo.osr")

from tileindex.core import errors  # noqa: E402
from tileindex.db import models  # noqa: E402
from tileindex.db import ogr_store  # noqa: E402
from tileindex.services import assembler  # noqa: E402


def _write_source(
    path: pathlib.Path,
    bounds: tuple[float, float, float, float],
    epsg: int = 4326,
) -> str:
    srs = osr.SpatialReference()
    srs.ImportFromEPSG(epsg)
    driver = ogr.GetDriverByName("ESRI Shapefile")
    datasource = driver.CreateDataSource(str(path))
    layer = datasource.CreateLayer(
        path.stem, srs=srs, geom_type=ogr.wkbPolygon
    )
    field = ogr.FieldDefn("name", ogr.OFTString)
    field.SetWidth(80)
    layer.CreateField(field)
    minx, miny, maxx, maxy = bounds
    ring = ogr.Geometry(ogr.wkbLinearRing)
    for x, y in [
        (minx, miny),
        (minx, maxy),
        (maxx, maxy),
        (maxx, miny),
        (minx, miny),
    ]:
        ring.AddPoint_2D(x, y)
    polygon = ogr.Geometry(ogr.wkbPolygon)
    polygon.AddGeometry(ring)
    feature = ogr.Feature(layer.GetLayerDefn())
    feature.SetField("name", path.stem)
    feature.SetGeometry(polygon)
    layer.CreateFeature(feature)
    datasource = None  # flushes and closes
    return str(path)


@pytest.fixture
def sources(tmp_path: pathlib.Path) -> list[str]:
    """Two adjacent shapefiles in EPSG:4326."""
    return [
        _write_source(tmp_path / "a.shp", (0.0, 0.0, 10.0, 5.0)),
        _write_source(tmp_path / "b.shp", (10.0, 0.0, 20.0, 5.0)),
    ]


def test_layer_handle_reads_schema_and_extent(sources: list[str]) -> None:
    """Schema, SRS and extent are read from the shapefile."""
    store = ogr_store.OgrVectorStore()
    with store.open(sources[0]) as dataset:
        assert dataset.layer_count() == 1
        layer = dataset.layer(0)
        assert layer is not None
        assert layer.name == "a"
        assert [f.name for f in layer.schema()] == ["name"]
        assert layer.extent() == (0.0, 0.0, 10.0, 5.0)
        srs = layer.spatial_ref()
        assert srs is not None
        assert srs.is_same(srs.clone())


def test_open_missing_dataset(tmp_path: pathlib.Path) -> None:
    """A missing dataset raises DatasetOpenError."""
    store = ogr_store.OgrVectorStore()
    with pytest.raises(errors.DatasetOpenError):
        store.open(str(tmp_path / "missing.shp"))
    assert store.open_catalog(str(tmp_path / "missing.shp")) is None


def test_unknown_driver(tmp_path: pathlib.Path) -> None:
    """Unknown drivers are reported with the registered ones."""
    store = ogr_store.OgrVectorStore()
    with pytest.raises(errors.DriverNotFoundError) as exc_info:
        store.create_catalog(str(tmp_path / "index.x"), "No Such Driver")
    assert "ESRI Shapefile" in exc_info.value.available


def test_build_and_rerun(sources: list[str], tmp_path: pathlib.Path) -> None:
    """A shapefile catalog is created, read back and not extended twice."""
    output = str(tmp_path / "index.shp")
    options = models.IndexOptions(
        output_path=output,
        sources=[models.SourceSpec(path) for path in sources],
    )
    store = ogr_store.OgrVectorStore()
    first = assembler.run(options, store)
    assert first.status == 0
    assert first.appended == 2

    second = assembler.run(options, store)
    assert second.appended == 0
    assert second.duplicates == 2

    catalog = store.open_catalog(output)
    assert catalog is not None
    try:
        layer = catalog.ensure_layer("tileindex", "LOCATION", 200, None)
        assert layer.feature_count() == 2
        entries = list(layer.entries("LOCATION"))
        assert [e.location for e in entries] == [
            f"{sources[0]},0",
            f"{sources[1]},0",
        ]
        assert entries[1].geometry is not None
        assert entries[1].geometry.bounds == (10.0, 0.0, 20.0, 5.0)
    finally:
        catalog.close()


def _write_geopackage_with_empty_layer(path: pathlib.Path) -> str:
    srs = osr.SpatialReference()
    srs.ImportFromEPSG(4326)
    datasource = ogr.GetDriverByName("GPKG").CreateDataSource(str(path))
    datasource.CreateLayer("empty", srs=srs, geom_type=ogr.wkbPolygon)
    filled = datasource.CreateLayer(
        "filled", srs=srs, geom_type=ogr.wkbPolygon
    )
    feature = ogr.Feature(filled.GetLayerDefn())
    feature.SetGeometry(
        ogr.CreateGeometryFromWkt("POLYGON ((1 1,1 2,3 2,3 1,1 1))")
    )
    filled.CreateFeature(feature)
    datasource = None  # flushes and closes
    return str(path)


def test_empty_layer_has_no_extent(tmp_path: pathlib.Path) -> None:
    """An empty layer raises ExtentError instead of a zero extent."""
    source = _write_geopackage_with_empty_layer(tmp_path / "mixed.gpkg")
    store = ogr_store.OgrVectorStore()
    with store.open(source) as dataset:
        empty = dataset.layer(0)
        assert empty is not None
        assert empty.name == "empty"
        with pytest.raises(errors.ExtentError):
            empty.extent()


def test_empty_layer_is_not_indexed(tmp_path: pathlib.Path) -> None:
    """Empty layers are counted as extent failures and left out."""
    source = _write_geopackage_with_empty_layer(tmp_path / "mixed.gpkg")
    output = str(tmp_path / "index.shp")
    options = models.IndexOptions(
        output_path=output,
        sources=[models.SourceSpec(source)],
    )
    store = ogr_store.OgrVectorStore()
    report = assembler.run(options, store)
    assert report.status == 0
    assert report.extent_failures == 1
    assert report.appended == 1

    catalog = store.open_catalog(output)
    assert catalog is not None
    try:
        layer = catalog.ensure_layer("tileindex", "LOCATION", 200, None)
        entries = list(layer.entries("LOCATION"))
        assert [e.location for e in entries] == [f"{source},1"]
        assert entries[0].geometry is not None
        assert entries[0].geometry.bounds == (1.0, 1.0, 3.0, 2.0)
    finally:
        catalog.close()
