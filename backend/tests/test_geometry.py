"""Unit tests for extent to polygon conversion.

See Also:
    - backend/tileindex/services/geometry.py for the implementation.
"""

from __future__ import annotations

from tileindex.services import geometry


def test_ring_vertex_order() -> None:
    """The ring runs min/min, min/max, max/max, max/min, min/min."""
    assert geometry.ring_coordinates((0, 0, 10, 5)) == [
        (0, 0),
        (0, 5),
        (10, 5),
        (10, 0),
        (0, 0),
    ]


def test_polygon_keeps_ring_order() -> None:
    """The polygon exterior is exactly the five-point closed ring."""
    polygon = geometry.extent_to_polygon((0, 0, 10, 5))
    assert list(polygon.exterior.coords) == [
        (0.0, 0.0),
        (0.0, 5.0),
        (10.0, 5.0),
        (10.0, 0.0),
        (0.0, 0.0),
    ]
    assert len(polygon.interiors) == 0


def test_polygon_bounds_match_extent() -> None:
    """The polygon bounds equal the input extent."""
    polygon = geometry.extent_to_polygon((-10.5, 20.25, 3.0, 40.0))
    assert polygon.bounds == (-10.5, 20.25, 3.0, 40.0)
    assert polygon.area == 13.5 * 19.75
