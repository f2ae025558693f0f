"""Tile index assembly: the pipeline that grows the catalog.

For each source dataset in order, the dataset is opened, each of its
layers goes through selection, duplicate detection, consistency
validation and extent computation, and the survivors are appended to the
catalog. The dataset is closed before the next one is opened.

Failures of one layer or one dataset are logged and skipped. Failures
that put the catalog itself in doubt (driver missing, creation failure,
missing location field, failed append) raise FatalCatalogError from
assemble() and turn into exit status 1 in run() and build_tile_index().

Example:
    Index every layer of two shapefiles into index.shp:
        >>> from tileindex.db import models
        >>> from tileindex.db.ogr_store import OgrVectorStore
        >>> from tileindex.services import assembler

        >>> options = models.IndexOptions(
        ...     output_path="index.shp",
        ...     sources=[models.SourceSpec("a.shp"), models.SourceSpec("b.shp")],
        ... )
        >>> status = assembler.build_tile_index(options, OgrVectorStore())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tileindex.core import errors
from tileindex.db import models
from tileindex.db import store as vector_store
from tileindex.services import catalog as catalog_service
from tileindex.services import (
    dedup,
    geometry,
    location,
    paths,
    selection,
    validation,
)

if TYPE_CHECKING:
    from tileindex.db.store import DatasetProtocol

logger = logging.getLogger(__name__)


class _RunContext:
    """Per-run state threaded through the dataset loop."""

    def __init__(
        self,
        options: models.IndexOptions,
        guard: dedup.DedupGuard,
        validator: validation.ConsistencyValidator,
        resolver: paths.PathResolver,
        writer: catalog_service.IndexWriter,
        report: models.IndexReport,
    ) -> None:
        self.options = options
        self.guard = guard
        self.validator = validator
        self.resolver = resolver
        self.writer = writer
        self.report = report


def _index_layer(
    dataset: DatasetProtocol,
    index: int,
    source: models.SourceSpec,
    location_path: str,
    ctx: _RunContext,
) -> None:
    report = ctx.report
    handle = dataset.layer(index)
    if handle is None:
        return
    layer_filter = ctx.options.filter_for(source)
    if not selection.is_requested(layer_filter, index, handle.name):
        return

    token = location.encode(location_path, index)
    if ctx.guard.is_duplicate(token):
        logger.warning(
            "Layer %d of %s is already in tileindex. Skipping it.",
            index,
            source.path,
        )
        report.duplicates += 1
        return

    candidate = models.SourceLayer(
        dataset_path=source.path,
        layer_index=index,
        layer_name=handle.name,
        field_schema=tuple(handle.schema()),
        spatial_ref=handle.spatial_ref(),
    )
    outcome = ctx.validator.check(candidate)
    if outcome == validation.Outcome.PROJECTION_MISMATCH:
        report.projection_mismatches += 1
        return
    if outcome == validation.Outcome.SCHEMA_MISMATCH:
        report.schema_mismatches += 1
        return

    try:
        candidate.extent = handle.extent()
    except errors.ExtentError as exc:
        logger.warning(
            "GetExtent() failed on layer %s of %s, skipping. (%s)",
            candidate.layer_name,
            source.path,
            exc,
        )
        report.extent_failures += 1
        return

    ctx.writer.append(token, geometry.extent_to_polygon(candidate.extent))
    logger.debug("Added %s", token)


def _index_layers(
    dataset: DatasetProtocol,
    source: models.SourceSpec,
    ctx: _RunContext,
) -> None:
    location_path = ctx.resolver.resolve(source.path)
    for index in range(dataset.layer_count()):
        try:
            _index_layer(dataset, index, source, location_path, ctx)
        except errors.FatalCatalogError:
            raise
        except errors.TileIndexError as exc:
            logger.warning(
                "Failed to read layer %d of %s, skipping. (%s)",
                index,
                source.path,
                exc,
            )
            ctx.report.layer_failures += 1


def _index_dataset(
    store: vector_store.VectorStoreProtocol,
    source: models.SourceSpec,
    ctx: _RunContext,
) -> None:
    try:
        dataset = store.open(source.path)
    except errors.DatasetOpenError as exc:
        logger.error(
            "Failed to open dataset %s, skipping. (%s)", source.path, exc
        )
        ctx.report.datasets_failed += 1
        return

    ctx.report.datasets_opened += 1
    with dataset:
        _index_layers(dataset, source, ctx)


def assemble(
    options: models.IndexOptions,
    store: vector_store.VectorStoreProtocol,
    report: models.IndexReport | None = None,
) -> models.IndexReport:
    """Add the requested source layers to the catalog.

    Args:
        options: Run configuration.
        store: Vector store used for sources and catalog.
        report: Report to fill in; a new one when omitted. Counters
            reached before a fatal error remain in it.

    Returns:
        IndexReport with the per-category counters of the run.

    Raises:
        FatalCatalogError: if the catalog cannot be created or opened, has
            no usable layer or location field, or an append fails. The
            catalog is closed as written so far.
    """
    if report is None:
        report = models.IndexReport()
    catalog, layer = catalog_service.open_catalog(store, options)
    writer = catalog_service.IndexWriter(layer, options.location_field)
    try:
        existing = catalog_service.load_existing(
            store, layer, options.location_field
        )
        report.existing_entries = existing.entry_count
        ctx = _RunContext(
            options=options,
            guard=dedup.DedupGuard(existing.tokens),
            validator=validation.ConsistencyValidator(
                validation.ValidationPolicy.from_options(options),
                existing.baseline,
            ),
            resolver=paths.PathResolver.capture(options.write_absolute_path),
            writer=writer,
            report=report,
        )
        for source in options.sources:
            _index_dataset(store, source, ctx)
    finally:
        report.appended = writer.written
        catalog.close()

    logger.info(
        "Added %d layer(s) to %s (%d already present)",
        report.appended,
        options.output_path,
        report.existing_entries,
    )
    return report


def run(
    options: models.IndexOptions,
    store: vector_store.VectorStoreProtocol,
) -> models.IndexReport:
    """Run assemble() and record a fatal error in the report instead."""
    report = models.IndexReport()
    try:
        assemble(options, store, report)
    except errors.FatalCatalogError as exc:
        logger.error("%s", exc)
        report.status = 1
        report.error = str(exc)
    return report


def build_tile_index(
    options: models.IndexOptions,
    store: vector_store.VectorStoreProtocol | None = None,
) -> int:
    """Build or extend a tile index and return the process exit status.

    Args:
        options: Run configuration.
        store: Vector store; the GDAL/OGR store when omitted.

    Returns:
        0 on success, 1 if a fatal catalog error aborted the run.
    """
    if store is None:
        store = vector_store.get_vector_store()
    return run(options, store).status
