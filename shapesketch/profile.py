"""Column profile: everything learned about one column of text samples.

A ColumnProfile routes each raw sample to the components that summarize it:

    raw ──► None ──────────────────────────────► null count
        └─► whitespace only ───────────────────► blank count
        └─► trimmed ─┬─► ShapeAggregator        (regex)
                     ├─► CardinalityTracker     (distinct values)
                     └─► ValueDomain.parse ─┬─► TopBottomK        (extremes)
                                            ├─► MomentAccumulator (numeric domains)
                                            └─► invalid count     (unparsable)

Profiles of shards of the same column are combined with
:func:`shapesketch.merge.merge_profiles`.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from shapesketch.config import ProfileConfig
from shapesketch.shapes.aggregator import ShapeAggregator
from shapesketch.sketching.cardinality import CardinalityTracker
from shapesketch.sketching.domains import DOMAINS, LEXICAL, ValueDomain, get_domain
from shapesketch.sketching.extremal import TopBottomK
from shapesketch.sketching.moments import MomentAccumulator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileFacts:
    """Point-in-time summary of a ColumnProfile.

    ``min_value``/``max_value`` and the K lists hold the original trimmed
    text, ordered by the profile's domain. ``mean``, ``variance`` and ``std``
    are None outside numeric domains.
    """

    name: str
    domain: str
    sample_count: int
    null_count: int
    blank_count: int
    invalid_count: int
    distinct_count: int
    min_value: str | None
    max_value: str | None
    mean: float | None
    variance: float | None
    std: float | None
    min_length: int | None
    max_length: int | None
    min_raw_length: int | None
    max_raw_length: int | None
    leading_whitespace: bool
    trailing_whitespace: bool
    multiline: bool
    regexp: str | None
    tight_regexp: str | None
    bottom_k: tuple[str, ...]
    top_k: tuple[str, ...]
    is_exact: bool
    capped: tuple[str, ...]

    @property
    def valid_count(self) -> int:
        """Samples that were neither null, blank nor invalid."""
        return self.sample_count - self.null_count - self.blank_count - self.invalid_count


class ColumnProfile:
    """Bounded summary of one column.

    Args:
        name: Column name, carried into facts and snapshots.
        config: Caps and rendering settings.
        domain: How values are ordered for min/max and the K lists.

    Example:
        profile = ColumnProfile("zip")
        profile.train_bulk({"94110": 3, "10001-0001": 1, None: 2})
        facts = profile.facts()
        facts.regexp         # '\\d{5}(-\\d{4})?'
        facts.null_count     # 2
    """

    def __init__(
        self,
        name: str,
        config: ProfileConfig | None = None,
        domain: ValueDomain = LEXICAL,
    ):
        self._name = name
        self._config = config or ProfileConfig()
        self._domain = domain

        self._shapes = ShapeAggregator(
            max_shapes=self._config.max_shapes,
            max_sample_length=self._config.max_sample_length,
            alternation_threshold=self._config.alternation_threshold,
            fold_optional_suffixes=self._config.fold_optional_suffixes,
        )
        self._extremes: TopBottomK[str] = TopBottomK(
            k=self._config.k, key=domain.key, order=domain.name
        )
        self._cardinality = CardinalityTracker(max_cardinality=self._config.max_cardinality)
        self._moments = MomentAccumulator()

        self._sample_count = 0
        self._null_count = 0
        self._blank_count = 0
        self._invalid_count = 0
        self._min_length: int | None = None
        self._max_length: int | None = None
        self._min_raw_length: int | None = None
        self._max_raw_length: int | None = None
        self._leading_whitespace = False
        self._trailing_whitespace = False
        self._multiline = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> ProfileConfig:
        return self._config

    @property
    def domain(self) -> ValueDomain:
        return self._domain

    @property
    def shapes(self) -> ShapeAggregator:
        return self._shapes

    @property
    def extremes(self) -> TopBottomK[str]:
        return self._extremes

    @property
    def cardinality(self) -> CardinalityTracker:
        return self._cardinality

    @property
    def moments(self) -> MomentAccumulator:
        """Numeric moments. Empty unless the domain is numeric."""
        return self._moments

    @property
    def sample_count(self) -> int:
        return self._sample_count

    @property
    def null_count(self) -> int:
        return self._null_count

    @property
    def blank_count(self) -> int:
        return self._blank_count

    @property
    def invalid_count(self) -> int:
        return self._invalid_count

    @property
    def is_exact(self) -> bool:
        """False once any capped component has overflowed."""
        return not self.capped_components()

    def capped_components(self) -> list[str]:
        """Names of the components that have given up detail."""
        capped = []
        if self._shapes.is_overflowed:
            capped.append("shapes")
        if self._cardinality.is_overflowed:
            capped.append("cardinality")
        return capped

    def train(self, raw: str | None, count: int = 1) -> None:
        """Account for ``count`` occurrences of one raw sample.

        Raises:
            ValueError: If count is negative.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return

        self._sample_count += count
        if raw is None:
            self._null_count += count
            return

        self._min_raw_length = _smaller(self._min_raw_length, len(raw))
        self._max_raw_length = _larger(self._max_raw_length, len(raw))

        trimmed = raw.strip()
        if not trimmed:
            self._blank_count += count
            return

        if raw[0].isspace():
            self._leading_whitespace = True
        if raw[-1].isspace():
            self._trailing_whitespace = True
        if "\n" in trimmed or "\r" in trimmed:
            self._multiline = True
        self._min_length = _smaller(self._min_length, len(trimmed))
        self._max_length = _larger(self._max_length, len(trimmed))

        self._shapes.track(trimmed, count)
        self._cardinality.add(trimmed, count)

        key = self._domain.parse(trimmed)
        if key is None:
            self._invalid_count += count
            return
        self._extremes.add(trimmed, count)
        if self._domain.numeric:
            self._moments.add(key, count)

    def train_bulk(self, observed: Mapping[str | None, int]) -> None:
        """Train on a mapping of raw sample to occurrence count."""
        for raw, count in observed.items():
            self.train(raw, count)

    def facts(self) -> ProfileFacts:
        """Snapshot of the current summary."""
        numeric = self._domain.numeric
        return ProfileFacts(
            name=self._name,
            domain=self._domain.name,
            sample_count=self._sample_count,
            null_count=self._null_count,
            blank_count=self._blank_count,
            invalid_count=self._invalid_count,
            distinct_count=self._cardinality.distinct_count,
            min_value=self._extremes.min,
            max_value=self._extremes.max,
            mean=self._moments.mean if numeric else None,
            variance=self._moments.variance if numeric else None,
            std=self._moments.std if numeric else None,
            min_length=self._min_length,
            max_length=self._max_length,
            min_raw_length=self._min_raw_length,
            max_raw_length=self._max_raw_length,
            leading_whitespace=self._leading_whitespace,
            trailing_whitespace=self._trailing_whitespace,
            multiline=self._multiline,
            regexp=self._shapes.regexp(),
            tight_regexp=self._shapes.regexp(tightened=True),
            bottom_k=tuple(self._extremes.bottom_k()),
            top_k=tuple(self._extremes.top_k()),
            is_exact=self.is_exact,
            capped=tuple(self.capped_components()),
        )

    def merge(self, other: ColumnProfile) -> None:
        """Merge a profile of another shard of the same column into this one.

        Raises:
            TypeError: If other is not a ColumnProfile.
            ValueError: If other has a different config or domain.
        """
        if not isinstance(other, ColumnProfile):
            raise TypeError(f"Can only merge with ColumnProfile, got {type(other).__name__}")
        if other._config != self._config:
            raise ValueError(
                f"Cannot merge profile {other._name!r} into {self._name!r}: "
                f"configs differ ({other._config} vs {self._config})"
            )
        if other._domain.name != self._domain.name:
            raise ValueError(
                f"Cannot merge profile {other._name!r} into {self._name!r}: "
                f"domain {other._domain.name!r} is not {self._domain.name!r}"
            )

        self._shapes.merge(other._shapes)
        self._extremes.merge(other._extremes)
        self._cardinality.merge(other._cardinality)
        self._moments.merge(other._moments)

        self._sample_count += other._sample_count
        self._null_count += other._null_count
        self._blank_count += other._blank_count
        self._invalid_count += other._invalid_count
        self._min_length = _smaller(self._min_length, other._min_length)
        self._max_length = _larger(self._max_length, other._max_length)
        self._min_raw_length = _smaller(self._min_raw_length, other._min_raw_length)
        self._max_raw_length = _larger(self._max_raw_length, other._max_raw_length)
        self._leading_whitespace |= other._leading_whitespace
        self._trailing_whitespace |= other._trailing_whitespace
        self._multiline |= other._multiline

    def copy(self) -> ColumnProfile:
        """Independent deep copy sharing only the (immutable) domain."""
        return copy.deepcopy(self, memo={id(self._domain): self._domain})

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict."""
        return {
            "type": "ColumnProfile",
            "name": self._name,
            "domain": self._domain.name,
            "config": self._config.to_dict(),
            "counts": {
                "samples": self._sample_count,
                "nulls": self._null_count,
                "blanks": self._blank_count,
                "invalid": self._invalid_count,
            },
            "lengths": {
                "min": self._min_length,
                "max": self._max_length,
                "min_raw": self._min_raw_length,
                "max_raw": self._max_raw_length,
            },
            "flags": {
                "leading_whitespace": self._leading_whitespace,
                "trailing_whitespace": self._trailing_whitespace,
                "multiline": self._multiline,
            },
            "shapes": self._shapes.to_dict(),
            "extremes": self._extremes.to_dict(),
            "cardinality": self._cardinality.to_dict(),
            "moments": self._moments.to_dict(),
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], domains: Mapping[str, ValueDomain] = DOMAINS
    ) -> ColumnProfile:
        """Deserialize from a plain dict.

        Args:
            data: Dict produced by ``to_dict()``.
            domains: Registry used to resolve the domain name.

        Raises:
            ValueError: If the domain is not in ``domains``.
        """
        domain = get_domain(data["domain"], domains)
        profile = cls(data["name"], ProfileConfig.from_dict(data["config"]), domain)

        counts = data["counts"]
        profile._sample_count = counts["samples"]
        profile._null_count = counts["nulls"]
        profile._blank_count = counts["blanks"]
        profile._invalid_count = counts["invalid"]

        lengths = data["lengths"]
        profile._min_length = lengths["min"]
        profile._max_length = lengths["max"]
        profile._min_raw_length = lengths["min_raw"]
        profile._max_raw_length = lengths["max_raw"]

        flags = data["flags"]
        profile._leading_whitespace = flags["leading_whitespace"]
        profile._trailing_whitespace = flags["trailing_whitespace"]
        profile._multiline = flags["multiline"]

        profile._shapes = ShapeAggregator.from_dict(data["shapes"])
        profile._extremes = TopBottomK.from_dict(
            data["extremes"], key=domain.key, order=domain.name
        )
        profile._cardinality = CardinalityTracker.from_dict(data["cardinality"])
        profile._moments = MomentAccumulator.from_dict(data["moments"])
        return profile

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnProfile):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"ColumnProfile(name={self._name!r}, domain={self._domain.name!r}, "
            f"samples={self._sample_count}, exact={self.is_exact})"
        )


def _smaller(current: int | None, candidate: int | None) -> int | None:
    if candidate is None:
        return current
    return candidate if current is None or candidate < current else current


def _larger(current: int | None, candidate: int | None) -> int | None:
    if candidate is None:
        return current
    return candidate if current is None or candidate > current else current
