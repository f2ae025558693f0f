"""Conversion of layer extents into catalog polygons."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shapely.geometry import Polygon

if TYPE_CHECKING:
    from tileindex.db import models

Point = tuple[float, float]


def ring_coordinates(extent: models.BBox) -> list[Point]:
    """Return the closed five-point ring of an extent.

    Vertices run (minx, miny), (minx, maxy), (maxx, maxy), (maxx, miny)
    and back to (minx, miny).
    """
    minx, miny, maxx, maxy = extent
    return [
        (minx, miny),
        (minx, maxy),
        (maxx, maxy),
        (maxx, miny),
        (minx, miny),
    ]


def extent_to_polygon(extent: models.BBox) -> Polygon:
    """Build the rectangular polygon covering an extent.

    Example:
        >>> list(extent_to_polygon((0, 0, 10, 5)).exterior.coords)
        [(0.0, 0.0), (0.0, 5.0), (10.0, 5.0), (10.0, 0.0), (0.0, 0.0)]
    """
    return Polygon(ring_coordinates(extent))
