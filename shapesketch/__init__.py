"""shapesketch: unsupervised shape inference for columns of text.

Train a profile on the values of a column to learn a regular expression
describing them, the K smallest and largest values, distinct counts and, for
numeric columns, mean and variance. Everything runs in bounded memory, and
profiles of shards of one column merge into the profile of the whole.

Example:
    from shapesketch import ColumnProfile, NUMERIC, merge_profiles

    left, right = ColumnProfile("amount", domain=NUMERIC), ColumnProfile("amount", domain=NUMERIC)
    left.train_bulk({"100": 10, "250": 5})
    right.train_bulk({"75": 3, None: 2})
    merged = merge_profiles(left, right)
    merged.facts().regexp        # '\\d{2}|\\d{3}'
    merged.facts().min_value     # '75'

The library is silent by default; see :mod:`shapesketch.logging_config`.
"""

import logging

from shapesketch.config import ProfileConfig
from shapesketch.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from shapesketch.merge import (
    merge_aggregators,
    merge_all,
    merge_cardinality,
    merge_moments,
    merge_profiles,
    merge_sketches,
)
from shapesketch.profile import ColumnProfile, ProfileFacts
from shapesketch.shapes import ShapeAggregator, ShapeKey, ShapeModel, classify
from shapesketch.sketching import (
    CHRONOLOGICAL,
    DOMAINS,
    LEXICAL,
    NUMERIC,
    CardinalityTracker,
    MomentAccumulator,
    TopBottomK,
    ValueDomain,
    get_domain,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "CHRONOLOGICAL",
    "CardinalityTracker",
    "ColumnProfile",
    "DOMAINS",
    "LEXICAL",
    "MomentAccumulator",
    "NUMERIC",
    "ProfileConfig",
    "ProfileFacts",
    "ShapeAggregator",
    "ShapeKey",
    "ShapeModel",
    "TopBottomK",
    "ValueDomain",
    "classify",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "get_domain",
    "merge_aggregators",
    "merge_all",
    "merge_cardinality",
    "merge_moments",
    "merge_profiles",
    "merge_sketches",
    "set_level",
    "set_module_level",
]
