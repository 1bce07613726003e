"""Character range algebra for observed per-position characters.

A RangeSet records which characters were seen at one position of a run as a
sorted list of disjoint closed intervals over code points. Adjacent intervals
are always coalesced, so the digits 1, 2, 3, 6, 8, 9 are held as three
intervals: 1-3, 6-6 and 8-9.

Rendering follows the usual character class conventions:
- a single character renders as itself (escaped if needed)
- a contiguous interval renders as ``lo-hi``
- disjoint intervals are concatenated in ascending order, ``[1-36-68-9]``
  becomes ``[1-368-9]`` since single characters drop the dash
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

# Characters that must be escaped inside a [...] class.
_CLASS_SPECIALS = frozenset("\\]^-[")


@dataclass(frozen=True, slots=True, order=True)
class CharRange:
    """A closed interval of code points.

    Attributes:
        lo: Lowest code point in the interval.
        hi: Highest code point in the interval (inclusive).
    """

    lo: int
    hi: int

    def __post_init__(self) -> None:
        if self.lo > self.hi:
            raise ValueError(f"Range low bound {self.lo} exceeds high bound {self.hi}")

    @classmethod
    def of(cls, ch: str) -> CharRange:
        """Interval holding exactly one character."""
        point = ord(ch)
        return cls(point, point)

    @property
    def width(self) -> int:
        """Number of characters covered."""
        return self.hi - self.lo + 1

    def render(self) -> str:
        lo = _class_escape(chr(self.lo))
        if self.lo == self.hi:
            return lo
        return f"{lo}-{_class_escape(chr(self.hi))}"

    def __str__(self) -> str:
        return self.render()


def _class_escape(ch: str) -> str:
    return "\\" + ch if ch in _CLASS_SPECIALS else ch


class RangeSet:
    """Sorted, de-duplicated, coalesced set of character intervals.

    Insertion keeps the invariant that no two held intervals overlap or touch.
    Union is set addition followed by interval coalescing, so merging is
    commutative, associative and idempotent.

    Example:
        rs = RangeSet.from_chars("16789")
        rs.add("0")
        str(rs)          # '[0-16-9]'
        "7" in rs        # True
    """

    __slots__ = ("_ranges",)

    def __init__(self, ranges: Iterable[CharRange] = ()):
        self._ranges: list[CharRange] = _coalesce(sorted(ranges))

    @classmethod
    def from_chars(cls, chars: Iterable[str]) -> RangeSet:
        """Build a RangeSet holding every character in ``chars``."""
        return cls(CharRange.of(ch) for ch in chars)

    @property
    def ranges(self) -> tuple[CharRange, ...]:
        """The held intervals in ascending order."""
        return tuple(self._ranges)

    def add(self, ch: str) -> None:
        """Add a single character, coalescing with any neighbouring interval."""
        point = ord(ch)
        ranges = self._ranges
        idx = bisect.bisect_right(ranges, point, key=lambda r: r.lo)

        # idx - 1 is the last interval starting at or before point
        if idx > 0 and ranges[idx - 1].hi >= point:
            return

        joins_left = idx > 0 and ranges[idx - 1].hi == point - 1
        joins_right = idx < len(ranges) and ranges[idx].lo == point + 1

        if joins_left and joins_right:
            ranges[idx - 1] = CharRange(ranges[idx - 1].lo, ranges[idx].hi)
            del ranges[idx]
        elif joins_left:
            ranges[idx - 1] = CharRange(ranges[idx - 1].lo, point)
        elif joins_right:
            ranges[idx] = CharRange(point, ranges[idx].hi)
        else:
            ranges.insert(idx, CharRange(point, point))

    def update(self, other: RangeSet) -> None:
        """In-place union with another RangeSet."""
        if not other._ranges:
            return
        self._ranges = _coalesce(sorted(self._ranges + other._ranges))

    def union(self, other: RangeSet) -> RangeSet:
        """Return a new RangeSet holding the characters of both sets."""
        return RangeSet(self._ranges + other._ranges)

    def copy(self) -> RangeSet:
        result = RangeSet()
        result._ranges = list(self._ranges)
        return result

    @property
    def count(self) -> int:
        """Number of distinct characters held."""
        return sum(r.width for r in self._ranges)

    def is_single(self) -> bool:
        """True if exactly one character is held."""
        return len(self._ranges) == 1 and self._ranges[0].lo == self._ranges[0].hi

    def chars(self) -> Iterator[str]:
        """Iterate the held characters in ascending code point order."""
        for r in self._ranges:
            for point in range(r.lo, r.hi + 1):
                yield chr(point)

    def render(self) -> str:
        """Render as a regex character class.

        A lone character is returned bare (not bracketed, not class-escaped);
        callers escape it as a literal. Anything else is bracketed.
        """
        if not self._ranges:
            return "[]"
        if self.is_single():
            return chr(self._ranges[0].lo)
        return "[" + "".join(r.render() for r in self._ranges) + "]"

    def to_list(self) -> list[list[int]]:
        """Serialize to ``[[lo, hi], ...]``."""
        return [[r.lo, r.hi] for r in self._ranges]

    @classmethod
    def from_list(cls, data: Iterable[Iterable[int]]) -> RangeSet:
        return cls(CharRange(lo, hi) for lo, hi in data)

    def __contains__(self, ch: object) -> bool:
        if not isinstance(ch, str) or len(ch) != 1:
            return False
        point = ord(ch)
        idx = bisect.bisect_right(self._ranges, point, key=lambda r: r.lo)
        return idx > 0 and self._ranges[idx - 1].hi >= point

    def __len__(self) -> int:
        return len(self._ranges)

    def __bool__(self) -> bool:
        return bool(self._ranges)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RangeSet):
            return NotImplemented
        return self._ranges == other._ranges

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"RangeSet({self.render()!r})"


def _coalesce(ranges: list[CharRange]) -> list[CharRange]:
    """Merge overlapping or touching intervals of an already sorted list."""
    merged: list[CharRange] = []
    for r in ranges:
        if merged and r.lo <= merged[-1].hi + 1:
            last = merged[-1]
            if r.hi > last.hi:
                merged[-1] = CharRange(last.lo, r.hi)
        else:
            merged.append(r)
    return merged
