"""Exact tracking of the K smallest and K largest distinct values.

TopBottomK holds at most 2K values at any time. Until 2K distinct values have
been seen it simply keeps all of them in one sorted list. On reaching 2K it
splits into a bottom list (the K smallest) and a top list (the K largest);
from then on a value is only admitted if it beats the boundary of one of the
lists, evicting the boundary value. Anything in between can never be among
the K smallest or largest again, so the answers stay exact.

Ordering is by a caller-supplied key function, so textual values with numeric
or chronological meaning compare semantically:

    sketch = TopBottomK[str](k=3, key=float)
    for text in ("10", "9", "100", "9.5"):
        sketch.observe(text)
    sketch.bottom_k()    # ['9', '9.5', '10']
    sketch.top_k()       # ['100', '10', '9.5']

Distinctness is by key equality. When two values share a key (``"1.0"`` and
``"1.00"`` under ``float``) the first one observed is kept as the
representative.
"""

from __future__ import annotations

import bisect
import sys
from collections.abc import Callable, Hashable, Iterable
from typing import Any, TypeVar

from shapesketch.sketching.base import ExtremalSketch

T = TypeVar("T")


def _identity(value: Any) -> Any:
    return value


def _order_name(key: Callable[[Any], Any] | None) -> str:
    if key is None:
        return "natural"
    name = getattr(key, "__qualname__", type(key).__qualname__)
    module = getattr(key, "__module__", None) or "builtins"
    return f"{module}.{name}"


class _SortedValues:
    """Sorted list of distinct keys with a representative value per key."""

    __slots__ = ("keys", "values")

    def __init__(self) -> None:
        self.keys: list[Hashable] = []
        self.values: dict[Hashable, Any] = {}

    def insert(self, key: Hashable, value: Any) -> bool:
        if key in self.values:
            return False
        bisect.insort(self.keys, key)
        self.values[key] = value
        return True

    def pop_first(self) -> None:
        del self.values[self.keys.pop(0)]

    def pop_last(self) -> None:
        del self.values[self.keys.pop()]

    def ordered(self, keys: Iterable[Hashable]) -> list[Any]:
        return [self.values[k] for k in keys]

    def __len__(self) -> int:
        return len(self.keys)


class TopBottomK(ExtremalSketch[T]):
    """The K smallest and K largest distinct values of a stream.

    Args:
        k: Number of values retained at each end. Must be positive.
        key: Function mapping a value to its sort key. Defaults to the value
            itself.
        order: Name of the ordering, checked on merge. Defaults to
            ``"natural"`` without a key, else the key's qualified name.

    Example:
        sketch = TopBottomK[int](k=10)
        for value in range(21):
            sketch.observe(value)
        sketch.bottom_k()    # [0, 1, ..., 9]
        sketch.top_k()       # [20, 19, ..., 11]
    """

    def __init__(
        self, k: int, key: Callable[[T], Any] | None = None, order: str | None = None
    ):
        """Initialize the sketch.

        Raises:
            ValueError: If k <= 0.
        """
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")

        self._k = k
        self._key = key or _identity
        self._order = order or _order_name(key)
        self._starter = _SortedValues()
        self._bottom: _SortedValues | None = None
        self._top: _SortedValues | None = None
        self._total_count = 0

    @property
    def k(self) -> int:
        """Number of values retained at each end."""
        return self._k

    @property
    def key(self) -> Callable[[T], Any]:
        return self._key

    @property
    def order(self) -> str:
        """Name of the ordering values are ranked by."""
        return self._order

    @property
    def is_split(self) -> bool:
        """True once 2K distinct values have been seen."""
        return self._bottom is not None

    def observe(self, value: T) -> None:
        """Observe one value.

        Values whose key is already held are no-ops.
        """
        self.add(value)

    def add(self, item: T, count: int = 1) -> None:
        """Observe a value ``count`` times.

        Only distinct values matter for the result; ``count`` feeds
        :attr:`item_count`.

        Raises:
            ValueError: If count is negative.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return

        self._total_count += count
        self._admit(self._key(item), item)

    def observe_all(self, values: Iterable[T]) -> None:
        """Observe every value in ``values``."""
        for value in values:
            self.add(value)

    def _admit(self, key: Hashable, value: T) -> None:
        if self._bottom is None or self._top is None:
            self._starter.insert(key, value)
            if len(self._starter) == 2 * self._k:
                self._split()
            return

        if key > self._top.keys[0]:
            if self._top.insert(key, value):
                self._top.pop_first()
        elif key < self._bottom.keys[-1]:
            if self._bottom.insert(key, value):
                self._bottom.pop_last()

    def _split(self) -> None:
        bottom = _SortedValues()
        top = _SortedValues()
        for index, key in enumerate(self._starter.keys):
            target = bottom if index < self._k else top
            target.keys.append(key)
            target.values[key] = self._starter.values[key]
        self._bottom, self._top = bottom, top
        self._starter = _SortedValues()

    def bottom_k(self) -> list[T]:
        """The K smallest distinct values, lowest first."""
        if self._bottom is not None:
            return self._bottom.ordered(self._bottom.keys)
        return self._starter.ordered(self._starter.keys[: self._k])

    def top_k(self) -> list[T]:
        """The K largest distinct values, highest first."""
        if self._top is not None:
            return self._top.ordered(reversed(self._top.keys))
        return self._starter.ordered(reversed(self._starter.keys[-self._k:]))

    def bottom_k_as_strings(self) -> list[str]:
        """:meth:`bottom_k` rendered with ``str``, lowest first."""
        return [str(value) for value in self.bottom_k()]

    def top_k_as_strings(self) -> list[str]:
        """:meth:`top_k` rendered with ``str``, highest first."""
        return [str(value) for value in self.top_k()]

    @property
    def min(self) -> T | None:
        """Smallest value seen, or None if empty."""
        bottom = self.bottom_k()
        return bottom[0] if bottom else None

    @property
    def max(self) -> T | None:
        """Largest value seen, or None if empty."""
        top = self.top_k()
        return top[0] if top else None

    def candidates(self) -> list[T]:
        """Every retained value, in ascending key order."""
        if self._bottom is None or self._top is None:
            return self._starter.ordered(self._starter.keys)
        return self._bottom.ordered(self._bottom.keys) + self._top.ordered(self._top.keys)

    def merge(self, other: TopBottomK[T]) -> None:
        """Merge another sketch into this one.

        Replaying the other sketch's retained values is exact: each side holds
        its true K smallest and K largest, so the union's extremes are among
        them.

        Raises:
            TypeError: If other is not a TopBottomK.
            ValueError: If other has a different k or ordering.
        """
        if not isinstance(other, TopBottomK):
            raise TypeError(f"Can only merge with TopBottomK, got {type(other).__name__}")
        if other._k != self._k:
            raise ValueError(f"Cannot merge TopBottomK with k={other._k} into k={self._k}")
        if other._order != self._order:
            raise ValueError(
                f"Cannot merge TopBottomK ordered by {other._order!r} into {self._order!r}"
            )

        for value in other.candidates():
            self._admit(self._key(value), value)
        self._total_count += other._total_count

    @property
    def memory_bytes(self) -> int:
        """Estimated memory usage in bytes."""
        # Each retained value: list slot (8) + dict entry (~50) + key/value refs (16)
        held = len(self.candidates())
        return sys.getsizeof(self) + held * (8 + 50 + 16)

    @property
    def item_count(self) -> int:
        """Total count of observations."""
        return self._total_count

    def clear(self) -> None:
        """Reset the sketch to empty state."""
        self._starter = _SortedValues()
        self._bottom = None
        self._top = None
        self._total_count = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict.

        Only values are stored; keys are recomputed on load, so the values
        must be serializable by the caller's chosen format.
        """
        return {
            "type": "TopBottomK",
            "k": self._k,
            "order": self._order,
            "total_count": self._total_count,
            "values": self.candidates(),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        key: Callable[[T], Any] | None = None,
        order: str | None = None,
    ) -> TopBottomK[T]:
        """Deserialize from a plain dict.

        Args:
            data: Dict produced by ``to_dict()``.
            key: The sort key the sketch was built with.
            order: Ordering name for dicts written without one.
        """
        sketch = cls(k=data["k"], key=key, order=data.get("order", order))
        for value in data["values"]:
            sketch._admit(sketch._key(value), value)
        sketch._total_count = data["total_count"]
        return sketch

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TopBottomK):
            return NotImplemented
        return (
            self._k == other._k
            and self._order == other._order
            and [self._key(v) for v in self.bottom_k()] == [other._key(v) for v in other.bottom_k()]
            and [self._key(v) for v in self.top_k()] == [other._key(v) for v in other.top_k()]
        )

    def __repr__(self) -> str:
        return (
            f"TopBottomK(k={self._k}, held={len(self.candidates())}, "
            f"split={self.is_split}, total={self._total_count})"
        )
