"""Consistency checks of candidate layers against the catalog baseline.

Every layer indexed into one catalog is expected to share the same
attribute schema and spatial reference, so that a consumer such as
MapServer can treat the tiles as one logical layer. The baseline is set
once per run, either from the layer referenced by the first existing
catalog entry or from the first candidate that reaches validation, and is
never reassigned afterwards: when projection mismatches are tolerated,
later layers are still compared against the original baseline.

Two checks run in order:

1. Spatial reference. A mismatch always logs a warning; the layer is
   skipped only with ``skip_different_projection``.
2. Attribute schema. Field count first, then every field pairwise (type,
   width, precision, case-insensitive name). Disabled entirely with
   ``accept_different_schemas``.

The first enforcement failure of a run logs a one-time note about the
override option.

Example:
    >>> validator = ConsistencyValidator(ValidationPolicy())
    >>> validator.validate(first_layer)   # establishes the baseline
    True
    >>> validator.validate(layer_with_extra_field)
    False
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from tileindex.db import models

if TYPE_CHECKING:
    from tileindex.db.models import SpatialRef

logger = logging.getLogger(__name__)

OVERRIDE_HINT = (
    "Note : you can override this behaviour with the "
    "accept_different_schemas option, but this may result in a tileindex "
    "incompatible with MapServer"
)
PROJECTION_HINT = (
    "Note : layers with a different projection are skipped because of the "
    "skip_different_projection option"
)


@dataclasses.dataclass(frozen=True)
class ValidationPolicy:
    """Enforcement settings for the two consistency checks."""

    skip_different_projection: bool = False
    accept_different_schemas: bool = False

    @classmethod
    def from_options(cls, options: models.IndexOptions) -> ValidationPolicy:
        return cls(
            skip_different_projection=options.skip_different_projection,
            accept_different_schemas=options.accept_different_schemas,
        )


class Outcome:
    """Result labels returned by ConsistencyValidator.check()."""

    ACCEPTED = "accepted"
    PROJECTION_MISMATCH = "projection_mismatch"
    SCHEMA_MISMATCH = "schema_mismatch"


def same_spatial_ref(a: SpatialRef | None, b: SpatialRef | None) -> bool:
    """Both absent are equal, one absent differs, else ask the store."""
    if a is None or b is None:
        return a is None and b is None
    return a.is_same(b)


def first_schema_difference(
    baseline: tuple[models.FieldDef, ...],
    candidate: tuple[models.FieldDef, ...],
) -> int | None:
    """Return the position of the first differing field, None if equal.

    Schemas of different lengths are reported at position
    ``min(len(baseline), len(candidate))`` when their common prefix
    matches.
    """
    for position, (expected, actual) in enumerate(zip(baseline, candidate)):
        if not expected.matches(actual):
            return position
    if len(baseline) != len(candidate):
        return min(len(baseline), len(candidate))
    return None


class ConsistencyValidator:
    """Validates candidate layers and owns the run's baseline.

    Attributes:
        policy: Enforcement settings.
        baseline: None until the first layer (or existing entry) sets it.
    """

    def __init__(
        self,
        policy: ValidationPolicy,
        baseline: models.Baseline | None = None,
    ) -> None:
        self.policy = policy
        self.baseline = baseline
        self._hint_emitted = False

    def establish(self, layer: models.SourceLayer) -> models.Baseline:
        """Set the baseline from a layer; only allowed while it is unset."""
        if self.baseline is not None:
            raise RuntimeError("Catalog baseline is already established")
        spatial_ref = layer.spatial_ref
        self.baseline = models.Baseline(
            field_schema=tuple(layer.field_schema),
            spatial_ref=spatial_ref.clone() if spatial_ref else None,
        )
        return self.baseline

    def validate(self, layer: models.SourceLayer) -> bool:
        """Return True if the layer may be added to the catalog."""
        return self.check(layer) == Outcome.ACCEPTED

    def check(self, layer: models.SourceLayer) -> str:
        """Run both checks and return an Outcome label."""
        if self.baseline is None:
            self.establish(layer)
            return Outcome.ACCEPTED

        if not same_spatial_ref(layer.spatial_ref, self.baseline.spatial_ref):
            skip = self.policy.skip_different_projection
            logger.warning(
                "Warning : layer %d of %s is not using the same projection "
                "system as other files in the tileindex. This may cause "
                "problems when using it in MapServer for example.%s",
                layer.layer_index,
                layer.dataset_path,
                " Skipping it" if skip else "",
            )
            if skip:
                self._emit_hint(PROJECTION_HINT)
                return Outcome.PROJECTION_MISMATCH

        if self.policy.accept_different_schemas:
            return Outcome.ACCEPTED

        expected = self.baseline.field_schema
        actual = tuple(layer.field_schema)
        if len(actual) != len(expected):
            logger.warning(
                "Number of attributes of layer %s of %s does not match "
                "(%d instead of %d) ... skipping it.",
                layer.layer_name,
                layer.dataset_path,
                len(actual),
                len(expected),
            )
            self._emit_hint(OVERRIDE_HINT)
            return Outcome.SCHEMA_MISMATCH

        position = first_schema_difference(expected, actual)
        if position is not None:
            logger.warning(
                "Schema of attributes of layer %s of %s does not match "
                "(field %d: %s differs from %s). Skipping it.",
                layer.layer_name,
                layer.dataset_path,
                position,
                _describe(actual[position]),
                _describe(expected[position]),
            )
            self._emit_hint(OVERRIDE_HINT)
            return Outcome.SCHEMA_MISMATCH

        return Outcome.ACCEPTED

    def _emit_hint(self, hint: str) -> None:
        if not self._hint_emitted:
            logger.warning(hint)
            self._hint_emitted = True


def _describe(field: models.FieldDef) -> str:
    return f"{field.name} {field.type}({field.width}.{field.precision})"
