"""Duplicate detection against entries already in the catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tileindex.db import models


class DedupGuard:
    """Membership test over the location tokens present before the run.

    Tokens are compared case-insensitively. The set is frozen at
    construction: entries appended during the run are not added to it.
    """

    def __init__(self, tokens: Iterable[models.LocationToken] = ()) -> None:
        self._tokens = frozenset(token.casefold() for token in tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and token.casefold() in self._tokens

    def is_duplicate(self, token: models.LocationToken) -> bool:
        """Return True if the token is already indexed."""
        return token in self
