"""pandas helpers: profile a Series and tabulate facts.

Profiling a Series goes through ``value_counts`` so each distinct value is
trained once with its weight, which is much cheaper than row-by-row training
for low-cardinality columns.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict

import pandas as pd

from shapesketch.config import ProfileConfig
from shapesketch.profile import ColumnProfile
from shapesketch.sketching.domains import LEXICAL, ValueDomain

logger = logging.getLogger(__name__)


def profile_series(
    series: pd.Series,
    config: ProfileConfig | None = None,
    domain: ValueDomain = LEXICAL,
    name: str | None = None,
) -> ColumnProfile:
    """Profile every value of a Series.

    Missing values (None, NaN, NaT, pd.NA) count as nulls; everything else is
    converted with ``str`` before training.

    Args:
        series: Column to profile.
        config: Caps and rendering settings.
        domain: Ordering used for extremes.
        name: Profile name. Defaults to the Series name, or ``"value"``.
    """
    if name is None:
        name = str(series.name) if series.name is not None else "value"
    profile = ColumnProfile(name, config, domain)

    counts = series.value_counts(dropna=False, sort=False)
    for value, count in counts.items():
        raw = None if pd.isna(value) else str(value)
        profile.train(raw, int(count))

    logger.debug(
        "Profiled series %r: %d rows, %d distinct values", name, len(series), len(counts)
    )
    return profile


def profile_frame(
    frame: pd.DataFrame,
    config: ProfileConfig | None = None,
    domains: dict[str, ValueDomain] | None = None,
) -> dict[str, ColumnProfile]:
    """Profile every column of a DataFrame.

    Args:
        frame: Table to profile.
        config: Settings shared by every column.
        domains: Domain per column name. Unlisted columns are lexical.
    """
    domains = domains or {}
    return {
        str(column): profile_series(
            frame[column], config, domains.get(str(column), LEXICAL), name=str(column)
        )
        for column in frame.columns
    }


def facts_frame(profiles: Iterable[ColumnProfile]) -> pd.DataFrame:
    """One row of facts per profile, indexed by profile name."""
    rows = []
    for profile in profiles:
        facts = profile.facts()
        row = asdict(facts)
        row["valid_count"] = facts.valid_count
        row["bottom_k"] = list(row["bottom_k"])
        row["top_k"] = list(row["top_k"])
        row["capped"] = list(row["capped"])
        rows.append(row)
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame(rows).set_index("name")
