"""Shape Aggregator: clusters sample shapes and renders one regex for a column.

Every tracked sample is classified into a ShapeKey and folded into the
ShapeModel for its compressed key, so ``"12345"`` and ``"123456"`` share one
cluster while ``"12345-6789"`` gets its own. Memory is bounded by a cap on the
number of distinct exact shapes retained. When a sample would push the count
past the cap, the aggregator gives up: all clusters are dropped and every
query answers the catch-all ``.+`` from then on.

Rendering rules:
- run lengths: one length gives ``{n}``, up to ``alternation_threshold``
  lengths give an alternation ``\\d{7}|\\d{9}``, more give ``{min,max}``
- optional suffixes: a cluster whose key extends another cluster's key by one
  literal plus one class run, with identical lengths on the shared runs, is
  folded into it as ``\\d{5}(-\\d{4})?``
- several clusters are joined by ``|`` in order of their generalized regex

Example:
    agg = ShapeAggregator(max_shapes=20)
    for zip_code in ("94110", "94110-1234", "10001"):
        agg.track(zip_code)
    agg.regexp()                 # '\\d{5}(-\\d{4})?'
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from shapesketch.shapes import regexp
from shapesketch.shapes.model import DEFAULT_ALTERNATION_THRESHOLD, ShapeModel
from shapesketch.shapes.tokens import DEFAULT_MAX_SAMPLE_LENGTH, RunClass, classify
from shapesketch.sketching.base import PatternSketch

logger = logging.getLogger(__name__)

DEFAULT_MAX_SHAPES = 400


class ShapeAggregator(PatternSketch):
    """Bounded clustering of sample shapes.

    Args:
        max_shapes: Maximum number of distinct exact shapes retained before
            overflowing to the catch-all pattern.
        max_sample_length: Samples longer than this count as the ANY shape.
        alternation_threshold: Maximum number of distinct run lengths
            rendered as an alternation rather than a ``{min,max}`` range.
        fold_optional_suffixes: Fold clusters differing by one trailing
            literal-plus-run group into an optional group.
    """

    def __init__(
        self,
        max_shapes: int = DEFAULT_MAX_SHAPES,
        max_sample_length: int = DEFAULT_MAX_SAMPLE_LENGTH,
        alternation_threshold: int = DEFAULT_ALTERNATION_THRESHOLD,
        fold_optional_suffixes: bool = True,
    ):
        """Initialize the aggregator.

        Raises:
            ValueError: If max_shapes, max_sample_length or
                alternation_threshold is not positive.
        """
        if max_shapes <= 0:
            raise ValueError(f"max_shapes must be positive, got {max_shapes}")
        if max_sample_length <= 0:
            raise ValueError(f"max_sample_length must be positive, got {max_sample_length}")
        if alternation_threshold <= 0:
            raise ValueError(
                f"alternation_threshold must be positive, got {alternation_threshold}"
            )

        self._max_shapes = max_shapes
        self._max_sample_length = max_sample_length
        self._alternation_threshold = alternation_threshold
        self._fold_optional_suffixes = fold_optional_suffixes

        self._clusters: dict[str, ShapeModel] = {}
        self._shape_count = 0
        self._overflowed = False
        self._total_count = 0

    @property
    def max_shapes(self) -> int:
        """Cap on distinct exact shapes."""
        return self._max_shapes

    @property
    def max_sample_length(self) -> int:
        return self._max_sample_length

    @property
    def alternation_threshold(self) -> int:
        return self._alternation_threshold

    @property
    def fold_optional_suffixes(self) -> bool:
        return self._fold_optional_suffixes

    @property
    def clusters(self) -> Mapping[str, ShapeModel]:
        """Read-only view of the clusters keyed by compressed shape key."""
        return MappingProxyType(self._clusters)

    @property
    def cluster_count(self) -> int:
        return len(self._clusters)

    @property
    def shape_count(self) -> int:
        """Number of distinct exact shapes currently retained."""
        return self._shape_count

    @property
    def is_overflowed(self) -> bool:
        return self._overflowed

    @property
    def is_full(self) -> bool:
        """True if one more distinct shape would overflow the aggregator."""
        return self._shape_count >= self._max_shapes

    def track(self, sample: str, weight: int = 1) -> None:
        """Fold a sample into its cluster.

        Args:
            sample: The (trimmed) sample. Any string is a valid input.
            weight: Number of occurrences of this sample.

        Raises:
            ValueError: If weight is negative.
        """
        if weight < 0:
            raise ValueError(f"weight must be non-negative, got {weight}")
        if weight == 0:
            return

        self._total_count += weight
        if self._overflowed:
            return

        key = classify(sample, self._max_sample_length)
        cluster = self._clusters.get(key.compressed)
        is_new_shape = cluster is None or key.lengths not in cluster.shape_keys()

        if is_new_shape and self._shape_count >= self._max_shapes:
            self._overflow()
            return

        if cluster is None:
            self._clusters[key.compressed] = ShapeModel.from_key(key, weight)
        else:
            cluster.observe(key, weight)
        if is_new_shape:
            self._shape_count += 1

    def add(self, item: str, count: int = 1) -> None:
        """Alias of :meth:`track` for the Sketch protocol."""
        self.track(item, count)

    def _overflow(self) -> None:
        logger.debug(
            "Shape cap of %d exceeded after %d samples, widening to %s",
            self._max_shapes,
            self._total_count,
            regexp.ANY_PATTERN,
        )
        self._clusters.clear()
        self._shape_count = 0
        self._overflowed = True

    def regexp(self, tightened: bool = False) -> str | None:
        """Single regex describing every retained shape.

        Args:
            tightened: Render observed character ranges per position.

        Returns:
            ``.+`` if overflowed or an over-long sample was seen (``.*`` when
            the empty string was also seen), None if nothing was tracked,
            otherwise the (alternation of) cluster expressions ordered by
            their generalized form.
        """
        if self._overflowed:
            return regexp.ANY_PATTERN
        if not self._clusters:
            return None
        if any(model.is_any for model in self._clusters.values()):
            if "" in self._clusters:
                return regexp.ANY_OR_EMPTY_PATTERN
            return regexp.ANY_PATTERN

        expressions = sorted(self._expressions())
        return regexp.alternation(
            tight if tightened else generalized for generalized, tight in expressions
        )

    def _expressions(self) -> list[tuple[str, str]]:
        """(generalized, tightened) pair for every cluster or folded pair."""
        threshold = self._alternation_threshold
        models = sorted(
            self._clusters.values(),
            key=lambda m: (m.run_count, m.generalized_regexp(threshold)),
        )

        used: set[str] = set()
        result: list[tuple[str, str]] = []
        for model in models:
            if model.key in used:
                continue
            used.add(model.key)

            extension = None
            if self._fold_optional_suffixes:
                extension = next(
                    (other for other in models
                     if other.key not in used and self._folds(model, other)),
                    None,
                )

            if extension is None:
                result.append((
                    model.render(tightened=False, alternation_threshold=threshold),
                    model.render(tightened=True, alternation_threshold=threshold),
                ))
                continue

            used.add(extension.key)
            result.append((
                self._render_folded(model, extension, tightened=False),
                self._render_folded(model, extension, tightened=True),
            ))
        return result

    @staticmethod
    def _folds(base: ShapeModel, extension: ShapeModel) -> bool:
        """True if ``extension`` is ``base`` plus one literal and one class run."""
        n = base.run_count
        if extension.run_count != n + 2:
            return False
        if extension.kinds[:n] != base.kinds or extension.markers[:n] != base.markers:
            return False
        if extension.kinds[n] is not RunClass.LITERAL or not extension.kinds[n + 1].is_class:
            return False
        return all(base.run_lengths(i) == extension.run_lengths(i) for i in range(n))

    def _render_folded(self, base: ShapeModel, extension: ShapeModel, tightened: bool) -> str:
        n = base.run_count
        head = base.copy()
        head.merge(extension.prefix(n))
        threshold = self._alternation_threshold
        body = head.render(tightened, threshold, standalone=False)
        tail = extension.render(tightened, threshold, standalone=False, start=n)
        return body + regexp.optional(tail)

    def shapes(self) -> dict[str, int]:
        """Every retained exact shape signature mapped to its weight."""
        result: dict[str, int] = {}
        for model in self._clusters.values():
            result.update(model.shapes())
        return dict(sorted(result.items()))

    def best(self) -> ShapeModel | None:
        """The cluster with the highest weight (ties go to the smallest key)."""
        if not self._clusters:
            return None
        return min(self._clusters.values(), key=lambda m: (-m.occurrences, m.key))

    def _check_compatible(self, other: ShapeAggregator) -> None:
        if not isinstance(other, ShapeAggregator):
            raise TypeError(f"Can only merge with ShapeAggregator, got {type(other).__name__}")
        mine = (
            self._max_shapes,
            self._max_sample_length,
            self._alternation_threshold,
            self._fold_optional_suffixes,
        )
        theirs = (
            other._max_shapes,
            other._max_sample_length,
            other._alternation_threshold,
            other._fold_optional_suffixes,
        )
        if mine != theirs:
            raise ValueError(
                "Cannot merge ShapeAggregators with different settings "
                f"(max_shapes, max_sample_length, alternation_threshold, "
                f"fold_optional_suffixes): {theirs} into {mine}"
            )

    def merge(self, other: ShapeAggregator) -> None:
        """Merge another aggregator's clusters into this one.

        Clusters with the same compressed key merge their ranges and lengths;
        other clusters are copied. If either side has overflowed, or the union
        holds more distinct shapes than the cap, the result overflows.

        Raises:
            TypeError: If other is not a ShapeAggregator.
            ValueError: If other was built with different settings.
        """
        self._check_compatible(other)

        self._total_count += other._total_count
        if self._overflowed:
            return
        if other._overflowed:
            self._overflow()
            return

        new_shapes = 0
        for key, theirs in other._clusters.items():
            mine = self._clusters.get(key)
            if mine is None:
                new_shapes += theirs.shape_count
            else:
                new_shapes += len(theirs.shape_keys() - mine.shape_keys())

        if self._shape_count + new_shapes > self._max_shapes:
            self._overflow()
            return

        for key, theirs in other._clusters.items():
            mine = self._clusters.get(key)
            if mine is None:
                self._clusters[key] = theirs.copy()
            else:
                mine.merge(theirs)
        self._shape_count += new_shapes

    @property
    def memory_bytes(self) -> int:
        """Estimated memory usage in bytes."""
        # Rough estimate: one RangeSet (~64 bytes) per class position plus
        # ~48 bytes per length vector entry.
        positions = sum(
            len(model.position_ranges(i))
            for model in self._clusters.values()
            for i in range(model.run_count)
        )
        return sys.getsizeof(self._clusters) + positions * 64 + self._shape_count * 48

    @property
    def item_count(self) -> int:
        """Total weight of samples tracked, including after overflow."""
        return self._total_count

    def clear(self) -> None:
        """Reset to the empty, non-overflowed state."""
        self._clusters.clear()
        self._shape_count = 0
        self._overflowed = False
        self._total_count = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict."""
        return {
            "type": "ShapeAggregator",
            "max_shapes": self._max_shapes,
            "max_sample_length": self._max_sample_length,
            "alternation_threshold": self._alternation_threshold,
            "fold_optional_suffixes": self._fold_optional_suffixes,
            "overflowed": self._overflowed,
            "total_count": self._total_count,
            "clusters": [self._clusters[key].to_dict() for key in sorted(self._clusters)],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShapeAggregator:
        """Deserialize from a plain dict.

        Args:
            data: Dict produced by ``to_dict()``.
        """
        aggregator = cls(
            max_shapes=data["max_shapes"],
            max_sample_length=data["max_sample_length"],
            alternation_threshold=data["alternation_threshold"],
            fold_optional_suffixes=data["fold_optional_suffixes"],
        )
        aggregator._overflowed = data["overflowed"]
        aggregator._total_count = data["total_count"]
        for entry in data["clusters"]:
            model = ShapeModel.from_dict(entry)
            aggregator._clusters[model.key] = model
            aggregator._shape_count += model.shape_count
        return aggregator

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ShapeAggregator):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"ShapeAggregator(max_shapes={self._max_shapes}, clusters={len(self._clusters)}, "
            f"shapes={self._shape_count}, overflowed={self._overflowed}, "
            f"total={self._total_count})"
        )
