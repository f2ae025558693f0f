"""Unit tests for layer selection by number and name.

See Also:
    - backend/tileindex/services/selection.py for the implementation.
"""

from __future__ import annotations

from tileindex.db import models
from tileindex.services import selection


def test_empty_filter_selects_everything() -> None:
    """The wildcard filter requests every layer."""
    layer_filter = models.LayerFilter()
    assert layer_filter.is_wildcard
    assert selection.is_requested(layer_filter, 0, "roads")
    assert selection.is_requested(layer_filter, 7, "rivers")


def test_select_by_index() -> None:
    """Only the layer at the requested position is selected."""
    layer_filter = models.LayerFilter((models.ByIndex(1),))
    assert not selection.is_requested(layer_filter, 0, "roads")
    assert selection.is_requested(layer_filter, 1, "rivers")
    assert not selection.is_requested(layer_filter, 2, "lakes")


def test_select_by_name_ignores_case() -> None:
    """Layer names match case-insensitively."""
    layer_filter = models.LayerFilter((models.ByName("Roads"),))
    assert selection.is_requested(layer_filter, 4, "ROADS")
    assert not selection.is_requested(layer_filter, 0, "rivers")


def test_mixed_selectors_match_any() -> None:
    """A layer is requested if at least one selector matches."""
    layer_filter = models.LayerFilter.from_lists(indices=[2], names=["roads"])
    assert selection.is_requested(layer_filter, 2, "lakes")
    assert selection.is_requested(layer_filter, 0, "roads")
    assert not selection.is_requested(layer_filter, 1, "rivers")
