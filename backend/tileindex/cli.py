"""Command-line entry point: ``tileindex OUTPUT SOURCE...``.

Builds a tile index for a set of vector datasets, or extends an existing
one. Without ``--lnum``/``--lname`` every layer of every source is added as
an independent record; defaults for the format, location field and
policies come from the ``TILEINDEX_*`` settings, and each policy flag has
a ``--no-`` form that switches off a policy the settings turn on.

Example:
    Index layer 0 of every shapefile in a directory into a GeoPackage:
        $ tileindex -f GPKG --lnum 0 index.gpkg tiles/*.shp

    Re-running the same command adds nothing: layers already in the index
    are reported and skipped.
"""

from __future__ import annotations

from typing import Annotated

import typer

from tileindex import __version__
from tileindex.core import config
from tileindex.core import logging as logging_setup
from tileindex.db import models
from tileindex.db import store as vector_store
from tileindex.services import assembler

app = typer.Typer(
    help="Build or extend a tile index of vector datasets.",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tileindex {__version__}")
        raise typer.Exit()


@app.command()
def main(
    output: Annotated[
        str,
        typer.Argument(help="Tile index dataset to create or extend."),
    ],
    sources: Annotated[
        list[str],
        typer.Argument(help="Source vector datasets to index."),
    ],
    lnum: Annotated[
        list[int] | None,
        typer.Option(
            "--lnum",
            help="Add layer number N from each source (repeatable).",
            metavar="N",
        ),
    ] = None,
    lname: Annotated[
        list[str] | None,
        typer.Option(
            "--lname",
            help="Add the layer named NAME from each source (repeatable).",
            metavar="NAME",
        ),
    ] = None,
    output_format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="OGR driver used if the tile index has to be created.",
            metavar="FORMAT",
        ),
    ] = None,
    location_field: Annotated[
        str | None,
        typer.Option(
            "--tileindex",
            help="Name of the field holding dataset locations.",
            metavar="FIELD",
        ),
    ] = None,
    write_absolute_path: Annotated[
        bool | None,
        typer.Option(
            "--write-absolute-path/--no-write-absolute-path",
            help=(
                "Write source paths as absolute paths "
                "[default: from TILEINDEX_WRITE_ABSOLUTE_PATH]."
            ),
        ),
    ] = None,
    skip_different_projection: Annotated[
        bool | None,
        typer.Option(
            "--skip-different-projection/--no-skip-different-projection",
            help=(
                "Only insert layers with the projection of the index "
                "[default: from TILEINDEX_SKIP_DIFFERENT_PROJECTION]."
            ),
        ),
    ] = None,
    accept_different_schemas: Annotated[
        bool | None,
        typer.Option(
            "--accept-different-schemas/--no-accept-different-schemas",
            help=(
                "Do not check that layers share one attribute schema. "
                "The index may then be incompatible with MapServer "
                "[default: from TILEINDEX_ACCEPT_DIFFERENT_SCHEMAS]."
            ),
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level.", metavar="LEVEL"),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = False,
) -> None:
    """Add the layers of SOURCES to the tile index OUTPUT.

    Raises
    ------
    typer.Exit
        Always, with code 0 on success and 1 on a fatal catalog error.
    """
    settings = config.get_settings()
    logging_setup.configure_logging(log_level or settings.log_level)

    options = models.IndexOptions.from_settings(
        settings,
        output,
        [models.SourceSpec(path) for path in sources],
        output_format=output_format,
        location_field=location_field,
        write_absolute_path=write_absolute_path,
        skip_different_projection=skip_different_projection,
        accept_different_schemas=accept_different_schemas,
        layer_filter=models.LayerFilter.from_lists(lnum or (), lname or ()),
    )
    status = assembler.build_tile_index(
        options, vector_store.get_vector_store(settings)
    )
    raise typer.Exit(code=status)


if __name__ == "__main__":
    app()
