"""Shape inference: classify samples into runs and render them as regexes.

Quick Reference:
    classify: Split a sample into digit, alpha and literal runs (a ShapeKey)
    ShapeModel: One cluster of samples sharing a compressed key
    ShapeAggregator: Bounded set of clusters rendered as one regex
    RangeSet: Coalesced character ranges observed at one position

Example:
    from shapesketch.shapes import ShapeAggregator

    agg = ShapeAggregator(max_shapes=50)
    for phone in ("415-555-0100", "212-555-0199"):
        agg.track(phone)
    agg.regexp()                  # '\\d{3}-\\d{3}-\\d{4}'
    agg.regexp(tightened=True)    # '[24]1[25]-555-01[09]{2}'
"""

from shapesketch.shapes.aggregator import DEFAULT_MAX_SHAPES, ShapeAggregator
from shapesketch.shapes.model import DEFAULT_ALTERNATION_THRESHOLD, ShapeModel
from shapesketch.shapes.ranges import CharRange, RangeSet
from shapesketch.shapes.tokens import (
    ANY_SHAPE,
    DEFAULT_MAX_SAMPLE_LENGTH,
    Run,
    RunClass,
    ShapeKey,
    classify,
)

__all__ = [
    "ANY_SHAPE",
    "CharRange",
    "DEFAULT_ALTERNATION_THRESHOLD",
    "DEFAULT_MAX_SAMPLE_LENGTH",
    "DEFAULT_MAX_SHAPES",
    "RangeSet",
    "Run",
    "RunClass",
    "ShapeAggregator",
    "ShapeKey",
    "ShapeModel",
    "classify",
]
