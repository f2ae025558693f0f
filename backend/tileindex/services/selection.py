"""Layer selection against the configured layer filter."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tileindex.db import models


def is_requested(
    layer_filter: models.LayerFilter,
    layer_index: int,
    layer_name: str,
) -> bool:
    """Return whether a layer is requested by the filter.

    An empty filter requests every layer. Otherwise the layer must match
    at least one selector: a layer number equal to ``layer_index`` or a
    layer name equal to ``layer_name`` ignoring case.
    """
    if layer_filter.is_wildcard:
        return True
    return any(
        selector.selects(layer_index, layer_name)
        for selector in layer_filter.selectors
    )
