"""Location token encoding and decoding.

A location token identifies one layer of one source dataset inside the
catalog: the dataset path and the layer index joined by a comma, e.g.
``/data/tiles/a.shp,0``. Paths may themselves contain commas, layer
indices never do, so decoding splits on the last comma.
"""

from __future__ import annotations

from typing import NamedTuple

from tileindex.core import errors
from tileindex.db import models


class LocationParts(NamedTuple):
    path: str
    layer_index: int


def encode(path: str, layer_index: int) -> models.LocationToken:
    """Join a dataset path and a layer index into a location token."""
    return f"{path},{layer_index}"


def decode(token: models.LocationToken) -> LocationParts:
    """Split a location token on its last comma.

    Args:
        token: Token read from the catalog's location field.

    Returns:
        LocationParts with the dataset path and the layer index.

    Raises:
        MalformedTokenError: if the token has no comma or the part after
            the last comma is not an integer.

    Example:
        >>> decode("/data/x,y/a.shp,2")
        LocationParts(path='/data/x,y/a.shp', layer_index=2)
    """
    path, sep, suffix = token.rpartition(",")
    if not sep:
        raise errors.MalformedTokenError(token)
    try:
        layer_index = int(suffix.strip())
    except ValueError as exc:
        raise errors.MalformedTokenError(token) from exc
    return LocationParts(path, layer_index)
