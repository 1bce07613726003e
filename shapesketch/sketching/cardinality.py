"""Bounded exact counting of distinct values.

CardinalityTracker counts every distinct value exactly until ``max_cardinality``
distinct values are held. After that new values are no longer admitted (their
weight is still counted in :attr:`item_count`) and the tracker is marked as
overflowed, so ``distinct_count`` becomes a lower bound.

Merging sums the per-value counts. If the union holds more than
``max_cardinality`` values, the highest-weight entries are kept (ties go to
the smaller value) and the result is overflowed.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from shapesketch.sketching.base import Sketch

logger = logging.getLogger(__name__)

DEFAULT_MAX_CARDINALITY = 12_000


class CardinalityTracker(Sketch):
    """Per-value counts for up to ``max_cardinality`` distinct values.

    Args:
        max_cardinality: Maximum number of distinct values held.

    Example:
        tracker = CardinalityTracker(max_cardinality=100)
        tracker.add("red", 3)
        tracker.add("blue")
        tracker.distinct_count     # 2
        tracker.most_common(1)     # [('red', 3)]
    """

    def __init__(self, max_cardinality: int = DEFAULT_MAX_CARDINALITY):
        """Initialize the tracker.

        Raises:
            ValueError: If max_cardinality <= 0.
        """
        if max_cardinality <= 0:
            raise ValueError(f"max_cardinality must be positive, got {max_cardinality}")

        self._max_cardinality = max_cardinality
        self._counts: dict[str, int] = {}
        self._overflowed = False
        self._total_count = 0

    @property
    def max_cardinality(self) -> int:
        return self._max_cardinality

    @property
    def is_overflowed(self) -> bool:
        """True once a value was turned away for lack of room."""
        return self._overflowed

    @property
    def distinct_count(self) -> int:
        """Distinct values held. A lower bound once overflowed."""
        return len(self._counts)

    def add(self, item: str, count: int = 1) -> None:
        """Count ``item`` ``count`` times.

        Raises:
            ValueError: If count is negative.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return

        self._total_count += count
        if item in self._counts:
            self._counts[item] += count
        elif len(self._counts) < self._max_cardinality:
            self._counts[item] = count
        elif not self._overflowed:
            logger.debug(
                "Cardinality cap of %d reached, no longer admitting new values",
                self._max_cardinality,
            )
            self._overflowed = True

    def count(self, item: str) -> int:
        """Count held for ``item`` (0 if not held)."""
        return self._counts.get(item, 0)

    def items(self) -> list[tuple[str, int]]:
        """Every held (value, count) pair, sorted by value."""
        return sorted(self._counts.items())

    def most_common(self, n: int | None = None) -> list[tuple[str, int]]:
        """Held values by descending count, ties by ascending value."""
        ranked = sorted(self._counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return ranked if n is None else ranked[:n]

    def merge(self, other: CardinalityTracker) -> None:
        """Merge another tracker into this one.

        Raises:
            TypeError: If other is not a CardinalityTracker.
            ValueError: If other has a different max_cardinality.
        """
        if not isinstance(other, CardinalityTracker):
            raise TypeError(
                f"Can only merge with CardinalityTracker, got {type(other).__name__}"
            )
        if other._max_cardinality != self._max_cardinality:
            raise ValueError(
                f"Cannot merge CardinalityTracker with max_cardinality={other._max_cardinality} "
                f"into max_cardinality={self._max_cardinality}"
            )

        for value, count in other._counts.items():
            self._counts[value] = self._counts.get(value, 0) + count
        self._total_count += other._total_count
        self._overflowed = self._overflowed or other._overflowed

        if len(self._counts) > self._max_cardinality:
            logger.debug(
                "Merged cardinality %d exceeds cap of %d, keeping highest counts",
                len(self._counts),
                self._max_cardinality,
            )
            self._counts = dict(self.most_common(self._max_cardinality))
            self._overflowed = True

    @property
    def memory_bytes(self) -> int:
        """Estimated memory usage in bytes."""
        # Each entry: dict slot (~50) + key string (~50 + length) + int (28)
        held = sum(128 + len(value) for value in self._counts)
        return sys.getsizeof(self._counts) + held

    @property
    def item_count(self) -> int:
        """Total count of values added, admitted or not."""
        return self._total_count

    def clear(self) -> None:
        """Reset to empty state."""
        self._counts.clear()
        self._overflowed = False
        self._total_count = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict."""
        return {
            "type": "CardinalityTracker",
            "max_cardinality": self._max_cardinality,
            "overflowed": self._overflowed,
            "total_count": self._total_count,
            "counts": [[value, count] for value, count in self.items()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CardinalityTracker:
        """Deserialize from a plain dict.

        Args:
            data: Dict produced by ``to_dict()``.
        """
        tracker = cls(max_cardinality=data["max_cardinality"])
        tracker._counts = {value: count for value, count in data["counts"]}
        tracker._overflowed = data["overflowed"]
        tracker._total_count = data["total_count"]
        return tracker

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CardinalityTracker):
            return NotImplemented
        return (
            self._max_cardinality == other._max_cardinality
            and self._counts == other._counts
            and self._overflowed == other._overflowed
            and self._total_count == other._total_count
        )

    def __repr__(self) -> str:
        return (
            f"CardinalityTracker(max_cardinality={self._max_cardinality}, "
            f"distinct={len(self._counts)}, overflowed={self._overflowed})"
        )
