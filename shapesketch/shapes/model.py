"""Shape Model: accumulated knowledge about samples sharing one compressed key.

A ShapeModel starts from a single classified sample and can absorb further
samples (or whole models) with the same compressed key. For every digit or
alpha run it remembers the exact run lengths seen and, per character
position, the set of characters observed (as a RangeSet). That is enough to
render two regular expressions:

- generalized: class and length only, e.g. ``\\d{3}-\\d{4}``
- tightened: observed characters per position, e.g. ``[2-9]0[01]-[0-9]{4}``

Example:
    model = ShapeModel.from_sample("16789")
    model.observe(classify("01338"))
    model.observe(classify("22457"))
    model.generalized_regexp()   # '\\d{5}'
    model.tight_regexp()         # '[0-2][1-26][3-47][358][7-9]'
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from shapesketch.shapes import regexp
from shapesketch.shapes.ranges import RangeSet
from shapesketch.shapes.tokens import (
    DEFAULT_MAX_SAMPLE_LENGTH,
    RunClass,
    ShapeKey,
    classify,
)

DEFAULT_ALTERNATION_THRESHOLD = 2


class ShapeModel:
    """All samples seen for one compressed shape key.

    Args:
        kinds: Run class of each run.
        markers: Compressed key element of each run (literal text for
            LITERAL runs, the class marker otherwise).
    """

    __slots__ = ("_kinds", "_markers", "_shapes", "_positions", "_occurrences")

    def __init__(self, kinds: tuple[RunClass, ...], markers: tuple[str, ...]):
        if len(kinds) != len(markers):
            raise ValueError(f"Got {len(kinds)} run kinds but {len(markers)} markers")
        self._kinds = kinds
        self._markers = markers
        self._shapes: dict[tuple[int, ...], int] = {}
        self._positions: list[list[RangeSet] | None] = [
            [] if kind.is_class else None for kind in kinds
        ]
        self._occurrences = 0

    @classmethod
    def from_key(cls, key: ShapeKey, weight: int = 1) -> ShapeModel:
        """Create a model holding one classified sample."""
        model = cls(
            kinds=tuple(run.kind for run in key.runs),
            markers=tuple(run.marker for run in key.runs),
        )
        model.observe(key, weight)
        return model

    @classmethod
    def from_sample(
        cls, sample: str, weight: int = 1, max_length: int = DEFAULT_MAX_SAMPLE_LENGTH
    ) -> ShapeModel:
        """Classify ``sample`` and create a model holding it."""
        return cls.from_key(classify(sample, max_length), weight)

    @property
    def key(self) -> str:
        """The compressed shape key shared by every sample in this model."""
        if self.is_any:
            return "ANY"
        return "".join(self._markers)

    @property
    def is_any(self) -> bool:
        return self._kinds == (RunClass.ANY,)

    @property
    def kinds(self) -> tuple[RunClass, ...]:
        return self._kinds

    @property
    def markers(self) -> tuple[str, ...]:
        return self._markers

    @property
    def occurrences(self) -> int:
        """Total weight of the samples folded into this model."""
        return self._occurrences

    @property
    def run_count(self) -> int:
        return len(self._kinds)

    @property
    def shape_count(self) -> int:
        """Number of distinct exact shapes (length vectors) seen."""
        return len(self._shapes)

    def shape_keys(self) -> set[tuple[int, ...]]:
        """The distinct length vectors seen."""
        return set(self._shapes)

    def shapes(self) -> dict[str, int]:
        """Exact signature (e.g. ``"99999-9999"``) to weight."""
        result = {}
        for lengths, weight in self._shapes.items():
            result[self._signature(lengths)] = weight
        return dict(sorted(result.items()))

    def _signature(self, lengths: tuple[int, ...]) -> str:
        if self.is_any:
            return "ANY"
        return "".join(
            marker if kind is RunClass.LITERAL else marker * n
            for kind, marker, n in zip(self._kinds, self._markers, lengths)
        )

    def run_lengths(self, index: int) -> set[int]:
        """Distinct lengths observed for the run at ``index``."""
        return {lengths[index] for lengths in self._shapes}

    def run_ranges(self, index: int) -> RangeSet:
        """Union of the characters observed at every position of a run."""
        result = RangeSet()
        for ranges in self._positions[index] or ():
            result.update(ranges)
        return result

    def position_ranges(self, index: int) -> tuple[RangeSet, ...]:
        """Per-position observed characters of the run at ``index``."""
        return tuple(self._positions[index] or ())

    def observe(self, key: ShapeKey, weight: int = 1) -> None:
        """Fold one classified sample into the model.

        Raises:
            ValueError: If the sample's compressed key differs.
        """
        if key.compressed != self.key:
            raise ValueError(
                f"Cannot fold shape '{key.compressed}' into model '{self.key}'"
            )
        self._occurrences += weight
        lengths = key.lengths
        self._shapes[lengths] = self._shapes.get(lengths, 0) + weight

        for run, positions in zip(key.runs, self._positions):
            if positions is None:
                continue
            for offset, ch in enumerate(run.text):
                if offset == len(positions):
                    positions.append(RangeSet.from_chars(ch))
                else:
                    positions[offset].add(ch)

    def merge(self, other: ShapeModel) -> None:
        """Merge another model with the same compressed key into this one.

        Raises:
            TypeError: If other is not a ShapeModel.
            ValueError: If the compressed keys differ.
        """
        if not isinstance(other, ShapeModel):
            raise TypeError(f"Can only merge with ShapeModel, got {type(other).__name__}")
        if other._kinds != self._kinds or other._markers != self._markers:
            raise ValueError(f"Cannot merge model '{other.key}' into '{self.key}'")

        self._occurrences += other._occurrences
        for lengths, weight in other._shapes.items():
            self._shapes[lengths] = self._shapes.get(lengths, 0) + weight

        for mine, theirs in zip(self._positions, other._positions):
            if mine is None or theirs is None:
                continue
            for offset, ranges in enumerate(theirs):
                if offset == len(mine):
                    mine.append(ranges.copy())
                else:
                    mine[offset].update(ranges)

    def copy(self) -> ShapeModel:
        result = ShapeModel(self._kinds, self._markers)
        result.merge(self)
        return result

    def prefix(self, run_count: int) -> ShapeModel:
        """A model restricted to the first ``run_count`` runs.

        Weights of length vectors that collapse onto the same prefix add up.
        """
        result = ShapeModel(self._kinds[:run_count], self._markers[:run_count])
        result._occurrences = self._occurrences
        for lengths, weight in self._shapes.items():
            head = lengths[:run_count]
            result._shapes[head] = result._shapes.get(head, 0) + weight
        result._positions = [
            None if positions is None else [r.copy() for r in positions]
            for positions in self._positions[:run_count]
        ]
        return result

    def generalized_regexp(
        self, alternation_threshold: int = DEFAULT_ALTERNATION_THRESHOLD
    ) -> str:
        """Regex encoding only class and length of each run."""
        return self.render(tightened=False, alternation_threshold=alternation_threshold)

    def tight_regexp(self, alternation_threshold: int = DEFAULT_ALTERNATION_THRESHOLD) -> str:
        """Regex built from the characters observed at each position."""
        return self.render(tightened=True, alternation_threshold=alternation_threshold)

    def render(
        self,
        tightened: bool,
        alternation_threshold: int = DEFAULT_ALTERNATION_THRESHOLD,
        standalone: bool = True,
        start: int = 0,
    ) -> str:
        """Render runs ``start..`` as a regex.

        Args:
            tightened: Use observed character ranges instead of classes.
            alternation_threshold: Maximum number of distinct run lengths
                rendered as an alternation rather than ``{min,max}``.
            standalone: False when the result will be embedded in a larger
                expression, which forces alternations into groups.
            start: Index of the first run to render.
        """
        if self.is_any:
            return regexp.ANY_PATTERN

        indices = range(start, self.run_count)
        alone = standalone and len(indices) == 1
        return "".join(
            regexp.group(self._render_run(i, tightened, alternation_threshold), alone)
            for i in indices
        )

    def _render_run(self, index: int, tightened: bool, threshold: int) -> list[str]:
        kind = self._kinds[index]
        if kind is RunClass.LITERAL:
            return [regexp.escape(self._markers[index])]

        lengths = self.run_lengths(index)
        if not tightened:
            return regexp.render_lengths(kind.pattern, lengths, threshold)

        if len(lengths) == 1:
            length = next(iter(lengths))
            return [_render_positions(self._positions[index][:length])]

        return regexp.render_lengths(_atom(self.run_ranges(index)), lengths, threshold)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict."""
        return {
            "kinds": [kind.name for kind in self._kinds],
            "markers": list(self._markers),
            "occurrences": self._occurrences,
            "shapes": [[list(lengths), weight] for lengths, weight in sorted(self._shapes.items())],
            "positions": [
                None if positions is None else [r.to_list() for r in positions]
                for positions in self._positions
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShapeModel:
        """Deserialize from a plain dict.

        Args:
            data: Dict produced by ``to_dict()``.
        """
        model = cls(
            kinds=tuple(RunClass[name] for name in data["kinds"]),
            markers=tuple(data["markers"]),
        )
        model._occurrences = data["occurrences"]
        model._shapes = {tuple(lengths): weight for lengths, weight in data["shapes"]}
        model._positions = [
            None if positions is None else [RangeSet.from_list(r) for r in positions]
            for positions in data["positions"]
        ]
        return model

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ShapeModel):
            return NotImplemented
        return (
            self._kinds == other._kinds
            and self._markers == other._markers
            and self._occurrences == other._occurrences
            and self._shapes == other._shapes
            and self._positions == other._positions
        )

    def __repr__(self) -> str:
        return (
            f"ShapeModel(key={self.key!r}, shapes={len(self._shapes)}, "
            f"occurrences={self._occurrences})"
        )


def _atom(ranges: RangeSet) -> str:
    if ranges.is_single():
        return regexp.escape(ranges.render())
    return ranges.render()


def _render_positions(positions: Iterable[RangeSet]) -> str:
    """Render one class per position, folding repeats of multi-char classes."""
    parts: list[str] = []
    last: str | None = None
    repeat = 0

    def flush() -> None:
        if last is not None:
            parts.append(last + regexp.qualify(repeat, repeat))

    for ranges in positions:
        if ranges.is_single():
            flush()
            last, repeat = None, 0
            parts.append(regexp.escape(ranges.render()))
            continue
        rendered = ranges.render()
        if rendered == last:
            repeat += 1
        else:
            flush()
            last, repeat = rendered, 1
    flush()
    return "".join(parts)
