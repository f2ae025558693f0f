"""GDAL/OGR implementation of the vector store protocols.

Source datasets are opened read-only with ``ogr.Open``; the catalog is
opened for update, or created through the named OGR driver. Geometries
cross the boundary as WKB: catalog polygons are shapely objects on the
Python side and OGR geometries on the GDAL side.

GDAL exceptions are enabled for the bindings. Failures are translated into
the tileindex exception hierarchy so callers never handle raw
``RuntimeError`` from GDAL.

Example:
    Scan the layers of a GeoPackage:
        >>> from tileindex.db.ogr_store import OgrVectorStore
        >>> store = OgrVectorStore()
        >>> with store.open("tiles/a.gpkg") as dataset:
        ...     for i in range(dataset.layer_count()):
        ...         layer = dataset.layer(i)
        ...         print(layer.name, layer.extent())
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

import shapely.wkb
from osgeo import gdal, ogr, osr

from tileindex.core import errors
from tileindex.db import models
from tileindex.db import store as vector_store

if TYPE_CHECKING:
    import types
    from collections.abc import Iterator

    from shapely.geometry import Polygon

ogr.UseExceptions()
osr.UseExceptions()


class OgrSpatialRef:
    """Owned osr.SpatialReference."""

    def __init__(self, srs: osr.SpatialReference) -> None:
        self.srs = srs

    def is_same(self, other: models.SpatialRef) -> bool:
        if not isinstance(other, OgrSpatialRef):
            return False
        return bool(self.srs.IsSame(other.srs))

    def clone(self) -> OgrSpatialRef:
        return OgrSpatialRef(self.srs.Clone())

    def to_wkt(self) -> str:
        return self.srs.ExportToWkt()


class OgrLayerHandle:
    """Read-only handle on one ogr.Layer of an open dataset."""

    def __init__(self, layer: ogr.Layer) -> None:
        self._layer = layer

    @property
    def name(self) -> str:
        return self._layer.GetName()

    def schema(self) -> tuple[models.FieldDef, ...]:
        try:
            defn = self._layer.GetLayerDefn()
            fields = []
            for i in range(defn.GetFieldCount()):
                field = defn.GetFieldDefn(i)
                fields.append(
                    models.FieldDef(
                        name=field.GetName(),
                        type=field.GetTypeName(),
                        width=field.GetWidth(),
                        precision=field.GetPrecision(),
                    )
                )
        except RuntimeError as exc:
            raise errors.LayerReadError(str(exc)) from exc
        return tuple(fields)

    def spatial_ref(self) -> OgrSpatialRef | None:
        try:
            srs = self._layer.GetSpatialRef()
            if srs is None:
                return None
            return OgrSpatialRef(srs.Clone())
        except RuntimeError as exc:
            raise errors.LayerReadError(str(exc)) from exc

    def extent(self) -> models.BBox:
        """Return (minx, miny, maxx, maxy), forcing a scan if needed.

        Raises:
            ExtentError: if OGR cannot compute the extent (e.g. empty layer).
        """
        # Without can_return_null a failed computation reads as (0, 0, 0, 0).
        try:
            extent = self._layer.GetExtent(force=1, can_return_null=True)
        except RuntimeError as exc:
            raise errors.ExtentError(str(exc)) from exc
        if extent is None:
            raise errors.ExtentError(f"no extent for layer {self.name}")
        minx, maxx, miny, maxy = extent
        return (minx, miny, maxx, maxy)


class OgrDataset:
    """Open source dataset; the handle is released on close()."""

    def __init__(self, path: str, datasource: ogr.DataSource) -> None:
        self.path = path
        self._ds: ogr.DataSource | None = datasource

    def layer_count(self) -> int:
        if self._ds is None:
            return 0
        return self._ds.GetLayerCount()

    def layer(self, index: int) -> OgrLayerHandle | None:
        """Return the layer at ``index``, None if there is none.

        Raises:
            LayerReadError: if OGR fails while fetching the layer.
        """
        if self._ds is None:
            return None
        try:
            layer = self._ds.GetLayer(index)
        except RuntimeError as exc:
            raise errors.LayerReadError(str(exc)) from exc
        if layer is None:
            return None
        return OgrLayerHandle(layer)

    def close(self) -> None:
        self._ds = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        self.close()


class OgrCatalogLayer:
    """Catalog layer wrapping an ogr.Layer opened for update."""

    def __init__(self, layer: ogr.Layer) -> None:
        self._layer = layer

    def feature_count(self) -> int:
        return self._layer.GetFeatureCount()

    def field_names(self) -> list[str]:
        defn = self._layer.GetLayerDefn()
        return [
            defn.GetFieldDefn(i).GetName()
            for i in range(defn.GetFieldCount())
        ]

    def entries(self, location_field: str) -> Iterator[models.CatalogEntry]:
        index = self._layer.GetLayerDefn().GetFieldIndex(location_field)
        self._layer.ResetReading()
        for feature in self._layer:
            geometry = feature.GetGeometryRef()
            polygon = None
            if geometry is not None:
                polygon = shapely.wkb.loads(bytes(geometry.ExportToWkb()))
            yield models.CatalogEntry(
                location=feature.GetFieldAsString(index),
                geometry=polygon,
            )

    def append(
        self,
        location_field: str,
        location: models.LocationToken,
        geometry: Polygon,
    ) -> None:
        feature = ogr.Feature(self._layer.GetLayerDefn())
        feature.SetField(location_field, location)
        feature.SetGeometry(ogr.CreateGeometryFromWkb(geometry.wkb))
        try:
            result = self._layer.CreateFeature(feature)
        except RuntimeError as exc:
            raise errors.CatalogWriteError(
                f"Failed to create feature on tile index: {exc}"
            ) from exc
        if result != ogr.OGRERR_NONE:
            raise errors.CatalogWriteError(
                "Failed to create feature on tile index. Terminating."
            )


class OgrCatalogDataset:
    """Catalog dataset; flushes and releases the handle on close()."""

    def __init__(self, path: str, datasource: ogr.DataSource) -> None:
        self.path = path
        self._ds: ogr.DataSource | None = datasource

    def layer_count(self) -> int:
        if self._ds is None:
            return 0
        return self._ds.GetLayerCount()

    def ensure_layer(
        self,
        layer_name: str,
        location_field: str,
        field_width: int,
        spatial_ref: models.SpatialRef | None,
    ) -> OgrCatalogLayer:
        if self._ds is None:
            raise errors.CatalogLayerError("Tile index dataset is closed.")
        if self._ds.GetLayerCount() == 0:
            srs = spatial_ref.srs if isinstance(spatial_ref, OgrSpatialRef) else None
            try:
                layer = self._ds.CreateLayer(
                    layer_name, srs=srs, geom_type=ogr.wkbPolygon
                )
                field = ogr.FieldDefn(location_field, ogr.OFTString)
                field.SetWidth(field_width)
                layer.CreateField(field)
            except RuntimeError as exc:
                raise errors.CatalogLayerError(
                    f"Can't create layer in output tileindex: {exc}"
                ) from exc
        layer = self._ds.GetLayer(0)
        if layer is None:
            raise errors.CatalogLayerError(
                "Can't find any layer in output tileindex!"
            )
        return OgrCatalogLayer(layer)

    def close(self) -> None:
        if self._ds is not None:
            self._ds.FlushCache()
        self._ds = None


class OgrVectorStore(vector_store.VectorStoreProtocol):
    """Vector store backed by the registered OGR drivers."""

    def open(self, path: str) -> OgrDataset:
        try:
            datasource = ogr.Open(path, 0)
        except RuntimeError as exc:
            raise errors.DatasetOpenError(path, str(exc)) from exc
        if datasource is None:
            raise errors.DatasetOpenError(path)
        return OgrDataset(path, datasource)

    def open_catalog(self, path: str) -> OgrCatalogDataset | None:
        try:
            datasource = ogr.Open(path, 1)
        except RuntimeError:
            return None
        if datasource is None:
            return None
        return OgrCatalogDataset(path, datasource)

    def create_catalog(self, path: str, driver_name: str) -> OgrCatalogDataset:
        driver = self._find_driver(driver_name)
        if driver is None:
            raise errors.DriverNotFoundError(driver_name, self.driver_names())
        if driver.GetMetadataItem(gdal.DCAP_CREATE) != "YES":
            raise errors.DriverCapabilityError(driver_name)
        try:
            datasource = driver.CreateDataSource(path)
        except RuntimeError as exc:
            raise errors.CatalogCreateError(driver_name, path) from exc
        if datasource is None:
            raise errors.CatalogCreateError(driver_name, path)
        return OgrCatalogDataset(path, datasource)

    def driver_names(self) -> list[str]:
        return [ogr.GetDriver(i).GetName() for i in range(ogr.GetDriverCount())]

    @staticmethod
    def _find_driver(driver_name: str) -> ogr.Driver | None:
        for i in range(ogr.GetDriverCount()):
            driver = ogr.GetDriver(i)
            if driver.GetName().casefold() == driver_name.casefold():
                return driver
        return None
