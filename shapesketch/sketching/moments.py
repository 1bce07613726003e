"""Streaming mean and variance with exact parallel merge.

MomentAccumulator keeps the weighted count, mean and sum of squared
deviations (M2) of a numeric stream. Single values are folded in with
Welford's update; batches are summarized with numpy and folded in with the
same pairwise combination used to merge two shards (Chan, Golub, LeVeque):

    n     = n_a + n_b
    delta = mean_b - mean_a
    mean  = mean_a + delta * n_b / n
    M2    = M2_a + M2_b + delta**2 * n_a * n_b / n

The result matches a single pass over the union up to floating point
rounding.

Reference:
    Chan, Golub, LeVeque. "Updating Formulae and a Pairwise Algorithm for
    Computing Sample Variances" (1979)
"""

from __future__ import annotations

import math
import sys
from collections.abc import Iterable
from typing import Any

import numpy as np

from shapesketch.sketching.base import Sketch


class MomentAccumulator(Sketch):
    """Weighted count, mean, variance, min and max of a numeric stream.

    Example:
        left, right = MomentAccumulator(), MomentAccumulator()
        left.add_many([1.0, 2.0, 3.0])
        right.add_many([4.0, 5.0])
        left.merge(right)
        left.mean        # 3.0
        left.variance    # 2.0
    """

    def __init__(self) -> None:
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0
        self._min: float | None = None
        self._max: float | None = None

    def add(self, item: float, count: int = 1) -> None:
        """Add a value with weight ``count``.

        Raises:
            ValueError: If count is negative.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return

        value = float(item)
        self._count += count
        delta = value - self._mean
        self._mean += delta * count / self._count
        self._m2 += delta * (value - self._mean) * count
        self._track_extremes(value, value)

    def add_many(self, values: Iterable[float], weights: Iterable[int] | None = None) -> None:
        """Add a batch of values, optionally weighted.

        Raises:
            ValueError: If weights are negative or do not match values in length.
        """
        data = np.asarray(list(values), dtype=float)
        if weights is None:
            w = np.ones_like(data)
        else:
            w = np.asarray(list(weights), dtype=float)
            if w.shape != data.shape:
                raise ValueError(f"Got {w.size} weights for {data.size} values")
            if (w < 0).any():
                raise ValueError("weights must be non-negative")
            data, w = data[w > 0], w[w > 0]

        if data.size == 0:
            return

        count = int(w.sum())
        mean = float(np.average(data, weights=w))
        m2 = float(np.sum(w * (data - mean) ** 2))
        self._combine(count, mean, m2, float(data.min()), float(data.max()))

    def _combine(self, count: int, mean: float, m2: float, low: float, high: float) -> None:
        if count == 0:
            return
        if self._count == 0:
            self._count, self._mean, self._m2 = count, mean, m2
        else:
            total = self._count + count
            delta = mean - self._mean
            self._mean += delta * count / total
            self._m2 += m2 + delta * delta * self._count * count / total
            self._count = total
        self._track_extremes(low, high)

    def _track_extremes(self, low: float, high: float) -> None:
        if self._min is None or low < self._min:
            self._min = low
        if self._max is None or high > self._max:
            self._max = high

    def merge(self, other: MomentAccumulator) -> None:
        """Merge another accumulator into this one (Chan's parallel formula).

        Raises:
            TypeError: If other is not a MomentAccumulator.
        """
        if not isinstance(other, MomentAccumulator):
            raise TypeError(
                f"Can only merge with MomentAccumulator, got {type(other).__name__}"
            )
        if other._count == 0:
            return
        self._combine(other._count, other._mean, other._m2, other._min, other._max)

    @property
    def count(self) -> int:
        return self._count

    @property
    def mean(self) -> float | None:
        """Mean of the values, or None if empty."""
        return self._mean if self._count else None

    @property
    def sum(self) -> float:
        return self._mean * self._count

    @property
    def m2(self) -> float:
        """Sum of squared deviations from the mean."""
        return self._m2

    @property
    def variance(self) -> float | None:
        """Population variance, or None if empty."""
        return self._m2 / self._count if self._count else None

    @property
    def sample_variance(self) -> float | None:
        """Unbiased sample variance, or None with fewer than two values."""
        return self._m2 / (self._count - 1) if self._count > 1 else None

    @property
    def std(self) -> float | None:
        """Population standard deviation, or None if empty."""
        variance = self.variance
        return math.sqrt(variance) if variance is not None else None

    @property
    def min(self) -> float | None:
        return self._min

    @property
    def max(self) -> float | None:
        return self._max

    @property
    def memory_bytes(self) -> int:
        """Estimated memory usage in bytes."""
        return sys.getsizeof(self) + 5 * 8

    @property
    def item_count(self) -> int:
        """Total weight of values added."""
        return self._count

    def clear(self) -> None:
        """Reset to empty state."""
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0
        self._min = None
        self._max = None

    def isclose(self, other: MomentAccumulator, rel_tol: float = 1e-9, abs_tol: float = 1e-9) -> bool:
        """Equal counts and extremes, means and M2 equal up to rounding."""
        return (
            self._count == other._count
            and self._min == other._min
            and self._max == other._max
            and math.isclose(self._mean, other._mean, rel_tol=rel_tol, abs_tol=abs_tol)
            and math.isclose(self._m2, other._m2, rel_tol=rel_tol, abs_tol=abs_tol)
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict."""
        return {
            "type": "MomentAccumulator",
            "count": self._count,
            "mean": self._mean,
            "m2": self._m2,
            "min": self._min,
            "max": self._max,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MomentAccumulator:
        """Deserialize from a plain dict.

        Args:
            data: Dict produced by ``to_dict()``.
        """
        acc = cls()
        acc._count = data["count"]
        acc._mean = data["mean"]
        acc._m2 = data["m2"]
        acc._min = data["min"]
        acc._max = data["max"]
        return acc

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MomentAccumulator):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"MomentAccumulator(count={self._count}, mean={self.mean}, variance={self.variance})"
