"""Bounded, mergeable summaries of a column's values.

All summaries share the Sketch protocol: single-pass ``add``, in-place
``merge`` with a summary of another shard, and ``to_dict``/``from_dict``
snapshots.

Quick Reference:
    TopBottomK: Exact K smallest and K largest distinct values
    CardinalityTracker: Exact per-value counts up to a cap
    MomentAccumulator: Count, mean, variance, min and max with exact merge
    ValueDomain: Ordering of textual values (lexical, numeric, chronological)

Example:
    from shapesketch.sketching import NUMERIC, TopBottomK

    sketch = TopBottomK[str](k=3, key=NUMERIC.key)
    sketch.observe_all(["10", "9", "100", "2"])
    sketch.bottom_k()    # ['2', '9', '10']
"""

from shapesketch.sketching.base import ExtremalSketch, PatternSketch, Sketch
from shapesketch.sketching.cardinality import DEFAULT_MAX_CARDINALITY, CardinalityTracker
from shapesketch.sketching.domains import (
    CHRONOLOGICAL,
    DOMAINS,
    LEXICAL,
    NUMERIC,
    ValueDomain,
    get_domain,
)
from shapesketch.sketching.extremal import TopBottomK
from shapesketch.sketching.moments import MomentAccumulator

__all__ = [
    "CHRONOLOGICAL",
    "CardinalityTracker",
    "DEFAULT_MAX_CARDINALITY",
    "DOMAINS",
    "ExtremalSketch",
    "LEXICAL",
    "MomentAccumulator",
    "NUMERIC",
    "PatternSketch",
    "Sketch",
    "TopBottomK",
    "ValueDomain",
    "get_domain",
]
