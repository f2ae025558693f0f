"""Catalog access: opening or creating it, loading it, appending to it.

The catalog is the tile index dataset itself. Its first layer holds one
feature per indexed source layer, with the location token in a string
field and the layer extent as polygon geometry.

- open_catalog() opens an existing catalog for update, or creates one with
  the configured driver, and returns its layer after checking that the
  location field exists. Every failure here is fatal.
- load_existing() collects the tokens already present and, from the first
  entry, the baseline schema and spatial reference.
- IndexWriter appends entries; an append failure is fatal.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import TYPE_CHECKING

from tileindex.core import errors
from tileindex.db import models
from tileindex.services import location, selection

if TYPE_CHECKING:
    from shapely.geometry import Polygon

    from tileindex.db import store as vector_store

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ExistingCatalog:
    """What the catalog contained before the run."""

    tokens: frozenset[models.LocationToken]
    baseline: models.Baseline | None
    entry_count: int


def _first_requested_spatial_ref(
    store: vector_store.VectorStoreProtocol,
    options: models.IndexOptions,
) -> models.SpatialRef | None:
    """SRS of the first requested layer of the first source dataset."""
    if not options.sources:
        return None
    source = options.sources[0]
    layer_filter = options.filter_for(source)
    try:
        dataset = store.open(source.path)
    except errors.DatasetOpenError:
        return None
    with dataset:
        for index in range(dataset.layer_count()):
            try:
                layer = dataset.layer(index)
                if layer is None:
                    continue
                if not selection.is_requested(
                    layer_filter, index, layer.name
                ):
                    continue
                spatial_ref = layer.spatial_ref()
            except errors.LayerReadError as exc:
                logger.debug(
                    "No SRS from layer %d of %s: %s", index, source.path, exc
                )
                return None
            return spatial_ref.clone() if spatial_ref else None
    return None


def open_catalog(
    store: vector_store.VectorStoreProtocol,
    options: models.IndexOptions,
) -> tuple[vector_store.CatalogDatasetProtocol, vector_store.CatalogLayerProtocol]:
    """Open the catalog for update, creating it if needed.

    A new catalog gets one layer named ``options.catalog_layer_name`` with
    a string location field, in the spatial reference of the first
    requested source layer.

    Returns:
        The catalog dataset (to be closed by the caller) and its layer.

    Raises:
        DriverNotFoundError, DriverCapabilityError, CatalogCreateError:
            if the catalog does not exist and cannot be created.
        CatalogLayerError: if the catalog has no layer and none was created.
        LocationFieldError: if the layer lacks the location field.
    """
    catalog = store.open_catalog(options.output_path)
    spatial_ref = None
    if catalog is None:
        catalog = store.create_catalog(
            options.output_path, options.output_format
        )
        logger.info(
            "Created tile index %s with driver %s",
            options.output_path,
            options.output_format,
        )
        spatial_ref = _first_requested_spatial_ref(store, options)

    try:
        layer = catalog.ensure_layer(
            options.catalog_layer_name,
            options.location_field,
            options.location_field_width,
            spatial_ref,
        )
        names = [name.casefold() for name in layer.field_names()]
        if options.location_field.casefold() not in names:
            raise errors.LocationFieldError(options.location_field)
    except errors.FatalCatalogError:
        catalog.close()
        raise
    return catalog, layer


def _load_baseline(
    store: vector_store.VectorStoreProtocol,
    token: models.LocationToken,
) -> models.Baseline | None:
    """Baseline from the layer referenced by a token, None on any failure."""
    try:
        parts = location.decode(token)
        dataset = store.open(parts.path)
    except (errors.MalformedTokenError, errors.DatasetOpenError) as exc:
        logger.debug("No baseline from first tile index entry: %s", exc)
        return None
    with dataset:
        try:
            layer = dataset.layer(parts.layer_index)
            if layer is None:
                logger.debug(
                    "No layer %d in %s; baseline deferred",
                    parts.layer_index,
                    parts.path,
                )
                return None
            spatial_ref = layer.spatial_ref()
            field_schema = tuple(layer.schema())
        except errors.LayerReadError as exc:
            logger.debug("No baseline from first tile index entry: %s", exc)
            return None
        return models.Baseline(
            field_schema=field_schema,
            spatial_ref=spatial_ref.clone() if spatial_ref else None,
        )


def load_existing(
    store: vector_store.VectorStoreProtocol,
    layer: vector_store.CatalogLayerProtocol,
    location_field: str,
) -> ExistingCatalog:
    """Read the entries already in the catalog.

    Args:
        store: Vector store used to open the dataset of the first entry.
        layer: Catalog layer to read.
        location_field: Field holding location tokens.

    Returns:
        ExistingCatalog with every token, the baseline taken from the
        layer referenced by the first entry (None if it cannot be opened)
        and the entry count.
    """
    tokens: list[models.LocationToken] = []
    baseline = None
    for entry in layer.entries(location_field):
        if not tokens:
            baseline = _load_baseline(store, entry.location)
        tokens.append(entry.location)
    logger.debug("Loaded %d existing tile index entries", len(tokens))
    return ExistingCatalog(frozenset(tokens), baseline, len(tokens))


class IndexWriter:
    """Serialized appends to the catalog layer.

    Attributes:
        written: Number of entries appended through this writer.
    """

    def __init__(
        self,
        layer: vector_store.CatalogLayerProtocol,
        location_field: str,
    ) -> None:
        self._layer = layer
        self._location_field = location_field
        self._lock = threading.Lock()
        self.written = 0

    def append(self, token: models.LocationToken, polygon: Polygon) -> None:
        """Append one entry.

        Raises:
            CatalogWriteError: if the store rejects the feature.
        """
        with self._lock:
            self._layer.append(self._location_field, token, polygon)
            self.written += 1
