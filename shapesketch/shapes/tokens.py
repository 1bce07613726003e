"""Classification of a single sample into a run-length Shape Key.

A sample is scanned left to right and broken into runs:
- a maximal run of decimal digits becomes one DIGIT run
- a maximal run of alphabetic characters becomes one ALPHA run
- every other character is its own LITERAL run

So ``"ICD9-90871"`` becomes ALPHA(3) DIGIT(1) LITERAL('-') DIGIT(5), with the
exact signature ``XXX9-99999`` and the compressed key ``X9-9``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import groupby

from shapesketch.shapes.regexp import ALPHA_CLASS, ANY_PATTERN, DIGIT_CLASS, escape

DEFAULT_MAX_SAMPLE_LENGTH = 65


class RunClass(Enum):
    """Character class of a run, with its key marker and generic regex."""

    DIGIT = ("9", DIGIT_CLASS)
    ALPHA = ("X", ALPHA_CLASS)
    LITERAL = ("S", None)
    ANY = ("W", ANY_PATTERN)

    def __init__(self, marker: str, pattern: str | None):
        self.marker = marker
        self.pattern = pattern

    @property
    def is_class(self) -> bool:
        """True for DIGIT and ALPHA runs, which carry observed ranges."""
        return self in (RunClass.DIGIT, RunClass.ALPHA)


def char_class(ch: str) -> RunClass:
    """Classify one character."""
    if ch.isdecimal():
        return RunClass.DIGIT
    if ch.isalpha():
        return RunClass.ALPHA
    return RunClass.LITERAL


@dataclass(frozen=True, slots=True)
class Run:
    """A maximal span of one character class within a sample.

    Attributes:
        kind: The run's character class.
        text: The characters of the run (one character for LITERAL runs).
    """

    kind: RunClass
    text: str

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def marker(self) -> str:
        """Compressed key element: class marker, or the literal itself."""
        return self.text if self.kind is RunClass.LITERAL else self.kind.marker

    def generalized(self) -> str:
        if self.kind is RunClass.LITERAL:
            return escape(self.text)
        if self.kind is RunClass.ANY:
            return ANY_PATTERN
        n = self.length
        return self.kind.pattern + ("" if n == 1 else f"{{{n}}}")


@dataclass(frozen=True, slots=True)
class ShapeKey:
    """The structural signature of one sample.

    Attributes:
        runs: The sample's runs in order. Empty for the empty string.
        is_any: True for the catch-all shape of over-long samples.
    """

    runs: tuple[Run, ...]
    is_any: bool = False

    @property
    def signature(self) -> str:
        """Exact shape: each class character replaced by its marker.

        ``"12345-6789"`` has signature ``"99999-9999"``.
        """
        if self.is_any:
            return "ANY"
        return "".join(
            run.text if run.kind is RunClass.LITERAL else run.kind.marker * run.length
            for run in self.runs
        )

    @property
    def compressed(self) -> str:
        """Shape with run lengths erased, ``"12345-6789"`` becomes ``"9-9"``."""
        if self.is_any:
            return "ANY"
        return "".join(run.marker for run in self.runs)

    @property
    def lengths(self) -> tuple[int, ...]:
        """Length of every run, in order."""
        return tuple(run.length for run in self.runs)

    def generalized_regexp(self) -> str:
        if self.is_any:
            return ANY_PATTERN
        return "".join(run.generalized() for run in self.runs)

    def __len__(self) -> int:
        return len(self.runs)


ANY_SHAPE = ShapeKey(runs=(Run(RunClass.ANY, ""),), is_any=True)


def classify(sample: str, max_length: int = DEFAULT_MAX_SAMPLE_LENGTH) -> ShapeKey:
    """Break ``sample`` into runs.

    Args:
        sample: The (already trimmed) input.
        max_length: Samples longer than this classify as :data:`ANY_SHAPE`.

    Returns:
        The sample's ShapeKey. The empty string yields an empty key.
    """
    if len(sample) > max_length:
        return ANY_SHAPE

    runs: list[Run] = []
    for kind, chars in groupby(sample, key=char_class):
        text = "".join(chars)
        if kind is RunClass.LITERAL:
            runs.extend(Run(kind, ch) for ch in text)
        else:
            runs.append(Run(kind, text))
    return ShapeKey(runs=tuple(runs))
