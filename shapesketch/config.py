"""Caps and rendering settings shared by every component of a column profile."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

from shapesketch.shapes.aggregator import DEFAULT_MAX_SHAPES
from shapesketch.shapes.model import DEFAULT_ALTERNATION_THRESHOLD
from shapesketch.shapes.tokens import DEFAULT_MAX_SAMPLE_LENGTH
from shapesketch.sketching.cardinality import DEFAULT_MAX_CARDINALITY

ENV_PREFIX = "SHAPESKETCH_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ProfileConfig:
    """Settings of a ColumnProfile. Profiles merge only under equal configs.

    Attributes:
        max_shapes: Distinct exact shapes retained before the regex widens
            to ``.+``.
        k: Number of smallest and largest distinct values tracked.
        max_cardinality: Distinct values counted exactly.
        max_sample_length: Samples longer than this classify as the ANY shape.
        alternation_threshold: Up to this many distinct lengths of a run are
            rendered as an alternation, more as ``{min,max}``.
        fold_optional_suffixes: Render ``\\d{5}`` and ``\\d{5}-\\d{4}`` as
            ``\\d{5}(-\\d{4})?``.
    """

    max_shapes: int = DEFAULT_MAX_SHAPES
    k: int = 10
    max_cardinality: int = DEFAULT_MAX_CARDINALITY
    max_sample_length: int = DEFAULT_MAX_SAMPLE_LENGTH
    alternation_threshold: int = DEFAULT_ALTERNATION_THRESHOLD
    fold_optional_suffixes: bool = True

    def __post_init__(self) -> None:
        for name in ("max_shapes", "k", "max_cardinality", "max_sample_length", "alternation_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ProfileConfig:
        """Build a config from ``SHAPESKETCH_<FIELD>`` variables.

        Unset variables keep their defaults, e.g. ``SHAPESKETCH_MAX_SHAPES=50``.

        Raises:
            ValueError: If a variable cannot be parsed or is out of range.
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for field in fields(cls):
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None:
                continue
            raw = raw.strip()
            if field.name == "fold_optional_suffixes":
                if raw.lower() in _TRUE:
                    overrides[field.name] = True
                elif raw.lower() in _FALSE:
                    overrides[field.name] = False
                else:
                    raise ValueError(f"{ENV_PREFIX}{field.name.upper()} must be a boolean, got {raw!r}")
            else:
                try:
                    overrides[field.name] = int(raw)
                except ValueError:
                    raise ValueError(
                        f"{ENV_PREFIX}{field.name.upper()} must be an integer, got {raw!r}"
                    ) from None
        return cls(**overrides)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProfileConfig:
        """Rebuild from ``to_dict()`` output. Missing keys take defaults."""
        known = {field.name for field in fields(cls)}
        return cls(**{name: value for name, value in data.items() if name in known})
