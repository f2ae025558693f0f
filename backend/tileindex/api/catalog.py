"""Tile index build and query API endpoints.

This module exposes the assembler over HTTP. Catalogs live in the
configured catalog directory and are addressed by file name; source
datasets are paths (or connection strings) readable by the server.

Example:
    Build a tile index from two shapefiles:
        >>> response = client.post(
        ...     "/api/tileindex/roads.shp/build",
        ...     json={"sources": [{"path": "/data/a.shp"},
        ...                       {"path": "/data/b.shp"}]},
        ... )
        >>> response.json()["appended"]
        2

    Find the datasets covering a region:
        >>> response = client.get(
        ...     "/api/tileindex/roads.shp/entries",
        ...     params={"bbox": "0,0,10,10"},
        ... )
        >>> # Returns: [{"location": "/data/a.shp,0", "path": "/data/a.shp",
        >>> #            "layer_index": 0, "bbox": [0.0, 0.0, 10.0, 5.0]}]
"""

from __future__ import annotations

import dataclasses
import math
import re
from typing import Any

import fastapi
import pydantic
from shapely.geometry import box
from typing_extensions import TypedDict

from tileindex.core import config, errors
from tileindex.db import models
from tileindex.db import store as vector_store
from tileindex.services import assembler, location

router = fastapi.APIRouter(prefix="/api/tileindex", tags=["tileindex"])

_CATALOG_NAME = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


class SourceRequest(pydantic.BaseModel):
    """One source dataset with optional layer numbers/names of its own."""

    path: str = pydantic.Field(min_length=1)
    layer_numbers: list[int] = []
    layer_names: list[str] = []

    def to_spec(self) -> models.SourceSpec:
        layer_filter = None
        if self.layer_numbers or self.layer_names:
            layer_filter = models.LayerFilter.from_lists(
                self.layer_numbers, self.layer_names
            )
        return models.SourceSpec(self.path, layer_filter)


class BuildRequest(pydantic.BaseModel):
    """Body of a build request; unset policies fall back to settings."""

    sources: list[SourceRequest] = pydantic.Field(min_length=1)
    layer_numbers: list[int] = []
    layer_names: list[str] = []
    output_format: str | None = None
    location_field: str | None = None
    write_absolute_path: bool | None = None
    skip_different_projection: bool | None = None
    accept_different_schemas: bool | None = None


class EntryResponse(TypedDict):
    location: str
    path: str | None
    layer_index: int | None
    bbox: list[float] | None


def _get_store(
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> vector_store.VectorStoreProtocol:
    """Resolve the vector store dependency.

    Args:
        settings: Application settings (injected via FastAPI Depends).

    Returns:
        VectorStoreProtocol implementation (OgrVectorStore in production).
    """
    return vector_store.get_vector_store(settings)


def _catalog_path(catalog_name: str, settings: config.Settings) -> str:
    """Map a catalog name onto the catalog directory.

    Raises:
        HTTPException: if the name contains anything but letters, digits,
            dots, dashes and underscores, or starts with a dot.
    """
    if not _CATALOG_NAME.match(catalog_name):
        raise fastapi.HTTPException(
            status_code=400,
            detail="Invalid catalog name",
        )
    return str(settings.catalog_dir / catalog_name)


def _parse_bbox(value: str) -> models.BBox:
    """Parse ``minx,miny,maxx,maxy``.

    Raises:
        HTTPException: if the value is not four finite numbers with
            min <= max.
    """
    try:
        minx, miny, maxx, maxy = (float(part) for part in value.split(","))
    except ValueError as exc:
        raise fastapi.HTTPException(
            status_code=400,
            detail="bbox must be minx,miny,maxx,maxy",
        ) from exc
    if not all(math.isfinite(v) for v in (minx, miny, maxx, maxy)):
        raise fastapi.HTTPException(
            status_code=400,
            detail="bbox values must be finite",
        )
    if minx > maxx or miny > maxy:
        raise fastapi.HTTPException(
            status_code=400,
            detail="bbox minimum exceeds maximum",
        )
    return (minx, miny, maxx, maxy)


def _to_response(entry: models.CatalogEntry) -> EntryResponse:
    try:
        path, layer_index = location.decode(entry.location)
    except errors.MalformedTokenError:
        path, layer_index = None, None
    bounds = list(entry.geometry.bounds) if entry.geometry is not None else None
    return EntryResponse(
        location=entry.location,
        path=path,
        layer_index=layer_index,
        bbox=bounds,
    )


@router.post("/{catalog_name}/build")
def build_catalog(
    catalog_name: str,
    request: BuildRequest,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
    store: vector_store.VectorStoreProtocol = fastapi.Depends(_get_store),  # noqa: B008
) -> dict[str, Any]:
    """Create or extend a tile index from the requested sources.

    Args:
        catalog_name: File name of the catalog inside the catalog directory.
        request: Sources, layer filters and optional policy overrides.
        settings: Application settings (injected via FastAPI Depends).
        store: Vector store (injected via FastAPI Depends).

    Returns:
        The run report: counts of appended layers, duplicates, layers
        skipped for projection, schema or extent reasons, and datasets
        that could not be opened.

    Raises:
        HTTPException: 400 for an invalid catalog name, 422 when the run
            aborts on a fatal catalog error.
    """
    output_path = _catalog_path(catalog_name, settings)
    options = models.IndexOptions.from_settings(
        settings,
        output_path,
        [source.to_spec() for source in request.sources],
        output_format=request.output_format,
        location_field=request.location_field,
        write_absolute_path=request.write_absolute_path,
        skip_different_projection=request.skip_different_projection,
        accept_different_schemas=request.accept_different_schemas,
        layer_filter=models.LayerFilter.from_lists(
            request.layer_numbers, request.layer_names
        ),
    )
    report = assembler.run(options, store)
    if report.status != 0:
        raise fastapi.HTTPException(status_code=422, detail=report.error)
    return dataclasses.asdict(report)


@router.get("/{catalog_name}/entries")
def list_entries(
    catalog_name: str,
    bbox: str | None = None,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
    store: vector_store.VectorStoreProtocol = fastapi.Depends(_get_store),  # noqa: B008
) -> list[EntryResponse]:
    """List tile index entries, optionally only those touching a bbox.

    Args:
        catalog_name: File name of the catalog inside the catalog directory.
        bbox: Optional ``minx,miny,maxx,maxy`` query window, in the
            catalog's coordinate system.
        settings: Application settings (injected via FastAPI Depends).
        store: Vector store (injected via FastAPI Depends).

    Returns:
        Entries in catalog order, each with its location token, the
        decoded dataset path and layer index, and its bounding box.

    Raises:
        HTTPException: 400 for an invalid name or bbox, 404 if the catalog
            does not exist or has no layer, 422 if its layer lacks the
            location field.
    """
    output_path = _catalog_path(catalog_name, settings)
    window = box(*_parse_bbox(bbox)) if bbox else None

    catalog = store.open_catalog(output_path)
    if catalog is None or catalog.layer_count() == 0:
        if catalog is not None:
            catalog.close()
        raise fastapi.HTTPException(
            status_code=404,
            detail="Tile index not found",
        )

    try:
        layer = catalog.ensure_layer(
            settings.catalog_layer_name,
            settings.location_field,
            settings.location_field_width,
            None,
        )
        names = [name.casefold() for name in layer.field_names()]
        if settings.location_field.casefold() not in names:
            missing = errors.LocationFieldError(settings.location_field)
            raise fastapi.HTTPException(status_code=422, detail=str(missing))
        return [
            _to_response(entry)
            for entry in layer.entries(settings.location_field)
            if window is None
            or (entry.geometry is not None and window.intersects(entry.geometry))
        ]
    finally:
        catalog.close()
