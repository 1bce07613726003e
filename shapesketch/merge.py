"""Combine summaries of shards of one logical column.

Every function here returns a new, independent summary and leaves its inputs
untouched, so shard profiles can be merged in any grouping:

    merge_profiles(merge_profiles(a, b), c) == merge_profiles(a, merge_profiles(b, c))

In the exact regime (no cap crossed) the result equals a profile trained on
the union of the shards directly; numeric moments agree up to floating point
rounding. When the union crosses a cap the affected component degrades
exactly as it would under direct training: the regex widens to ``.+`` and
the distinct count becomes a lower bound.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from typing import TypeVar

from shapesketch.profile import ColumnProfile
from shapesketch.shapes.aggregator import ShapeAggregator
from shapesketch.sketching.base import Sketch
from shapesketch.sketching.cardinality import CardinalityTracker
from shapesketch.sketching.extremal import TopBottomK
from shapesketch.sketching.moments import MomentAccumulator

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Sketch)
T = TypeVar("T")


def _merged(a: S, b: S) -> S:
    result = copy.deepcopy(a)
    result.merge(b)
    return result


def merge_aggregators(a: ShapeAggregator, b: ShapeAggregator) -> ShapeAggregator:
    """Union of two aggregators' clusters.

    Raises:
        TypeError: If b is not a ShapeAggregator.
        ValueError: If the aggregators were built with different settings.
    """
    return _merged(a, b)


def merge_sketches(a: TopBottomK[T], b: TopBottomK[T]) -> TopBottomK[T]:
    """K smallest and K largest distinct values of the union of two sketches.

    Raises:
        TypeError: If b is not a TopBottomK.
        ValueError: If the sketches have different k or orderings.
    """
    return _merged(a, b)


def merge_moments(a: MomentAccumulator, b: MomentAccumulator) -> MomentAccumulator:
    """Combined count, mean, variance and extremes (Chan's parallel formula)."""
    return _merged(a, b)


def merge_cardinality(a: CardinalityTracker, b: CardinalityTracker) -> CardinalityTracker:
    """Summed per-value counts, trimmed to the highest counts over the cap.

    Raises:
        TypeError: If b is not a CardinalityTracker.
        ValueError: If the trackers have different caps.
    """
    return _merged(a, b)


def merge_profiles(a: ColumnProfile, b: ColumnProfile) -> ColumnProfile:
    """Profile of the union of two shards.

    Counts are summed, length extremes and whitespace flags combined, and
    each component merged with its own rule. The result keeps ``a``'s name.

    Raises:
        TypeError: If either argument is not a ColumnProfile.
        ValueError: If the profiles have different configs or domains.
    """
    if not isinstance(a, ColumnProfile):
        raise TypeError(f"Can only merge ColumnProfile, got {type(a).__name__}")

    result = a.copy()
    result.merge(b)
    logger.debug(
        "Merged profile %r (%d samples) with %r (%d samples): exact=%s",
        a.name,
        a.sample_count,
        b.name,
        b.sample_count,
        result.is_exact,
    )
    if a.is_exact and b.is_exact and not result.is_exact:
        logger.debug("Merge of %r crossed caps: %s", a.name, ", ".join(result.capped_components()))
    return result


def merge_all(profiles: Sequence[ColumnProfile]) -> ColumnProfile:
    """Merge any number of shard profiles by pairwise reduction.

    Adjacent pairs are merged level by level, so n shards take
    ceil(log2(n)) rounds.

    Raises:
        ValueError: If profiles is empty or the profiles are incompatible.
        TypeError: If an element is not a ColumnProfile.
    """
    if not profiles:
        raise ValueError("merge_all requires at least one profile")

    level = list(profiles)
    if len(level) == 1:
        if not isinstance(level[0], ColumnProfile):
            raise TypeError(f"Can only merge ColumnProfile, got {type(level[0]).__name__}")
        return level[0].copy()

    while len(level) > 1:
        paired = [
            merge_profiles(level[i], level[i + 1]) for i in range(0, len(level) - 1, 2)
        ]
        if len(level) % 2:
            paired.append(level[-1])
        level = paired
    return level[0]

