"""Base protocols for bounded, mergeable column summaries.

Every summary in shapesketch processes a stream of values one at a time in
bounded memory and can be merged with a summary of another shard of the same
column. This module defines the protocols they share:
- Sketch: Base protocol with common operations (add, merge, clear, snapshot)
- ExtremalSketch: For the K smallest and K largest distinct values
- PatternSketch: For summarizing the shape of text as a regular expression
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Self, TypeVar

T = TypeVar("T")


class Sketch(ABC):
    """Base protocol for all bounded summaries.

    Sketches process a stream of items and answer queries about the stream.
    They support:
    - Adding items (with optional counts)
    - Merging two sketches of the same type and configuration
    - Estimating memory usage
    - Clearing state for reuse
    - Serializing to and from plain dicts
    """

    @abstractmethod
    def add(self, item: Any, count: int = 1) -> None:
        """Add an item to the sketch.

        Args:
            item: The item to add.
            count: Number of occurrences to add (default 1).
        """

    @abstractmethod
    def merge(self, other: Self) -> None:
        """Merge another sketch of the same type into this one.

        After merging, this sketch contains the combined information from
        both sketches, as if all items from both had been added to one sketch
        (up to any documented capacity limits).

        Args:
            other: Another sketch of the same type and configuration.

        Raises:
            TypeError: If other is not the same sketch type.
            ValueError: If other has incompatible configuration.
        """

    @property
    @abstractmethod
    def memory_bytes(self) -> int:
        """Estimated memory usage in bytes."""

    @property
    @abstractmethod
    def item_count(self) -> int:
        """Total count of items added to the sketch.

        Returns:
            Sum of all counts added via add().
        """

    @abstractmethod
    def clear(self) -> None:
        """Reset the sketch to its initial empty state."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Serialize the sketch state to a plain dict."""


class ExtremalSketch(Sketch, Generic[T]):
    """Protocol for sketches that hold the smallest and largest values seen.

    Implementations: TopBottomK
    """

    @property
    @abstractmethod
    def k(self) -> int:
        """Number of values retained at each end."""

    @abstractmethod
    def bottom_k(self) -> list[T]:
        """The K smallest distinct values, lowest first."""

    @abstractmethod
    def top_k(self) -> list[T]:
        """The K largest distinct values, highest first."""


class PatternSketch(Sketch):
    """Protocol for sketches that describe their input as a regular expression.

    Implementations: ShapeAggregator
    """

    @abstractmethod
    def regexp(self, tightened: bool = False) -> str | None:
        """Regular expression matching every retained shape.

        Args:
            tightened: Use observed character ranges instead of generic
                character classes.

        Returns:
            The expression, or None if nothing was tracked.
        """

    @property
    @abstractmethod
    def is_overflowed(self) -> bool:
        """True once the sketch has given up detail and matches anything."""
