"""Tile index builder for collections of vector datasets.

This package builds and incrementally extends a tile index: a catalog
dataset in which every record points at one layer of one source dataset
through a ``<path>,<layer>`` location token and carries the bounding
rectangle of that layer. Map servers such as MapServer read the index to
find which dataset to open for a given map region.

- Layers are selected by number or name, or all layers are taken
- Every layer is checked against the schema and spatial reference of the
  catalog before being added
- Layers already present in the catalog are never indexed twice
- Bad inputs are skipped; only catalog failures abort a run
- Available as the ``tileindex`` command and as a FastAPI service

See README and module sub-docstrings for details on architecture and usage.
"""

__version__ = "0.1.0"
