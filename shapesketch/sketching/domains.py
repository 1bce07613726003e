"""Value domains: how textual samples are ordered and compared.

A domain turns a trimmed sample into a sort key. The extremal sketch orders
samples by that key, so ``"9"`` sorts before ``"10"`` in the numeric domain
but after it in the lexical one. Samples a domain cannot parse are reported
as invalid by the profile rather than raising.

Domains are looked up by name when a snapshot is loaded, through a read-only
registry that callers may replace with their own.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, slots=True)
class ValueDomain:
    """A named ordering for textual values.

    Attributes:
        name: Identifier recorded in snapshots and checked on merge.
        key: Maps a trimmed sample to its sort key. Raises ValueError if the
            sample does not belong to the domain.
        numeric: True if keys are real numbers that feed moment statistics.
    """

    name: str
    key: Callable[[str], Any]
    numeric: bool = False

    def parse(self, text: str) -> Any | None:
        """Sort key for ``text``, or None if it is outside the domain."""
        try:
            return self.key(text)
        except (ValueError, OverflowError):
            return None


def _lexical(text: str) -> str:
    return text


def _numeric(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Not a finite number: {text!r}")
    return value


def _chronological(text: str) -> datetime:
    moment = datetime.fromisoformat(text)
    # Aware and naive datetimes do not compare; order everything as naive UTC.
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC).replace(tzinfo=None)
    return moment


LEXICAL = ValueDomain("lexical", _lexical)
NUMERIC = ValueDomain("numeric", _numeric, numeric=True)
CHRONOLOGICAL = ValueDomain("chronological", _chronological)

DOMAINS: Mapping[str, ValueDomain] = MappingProxyType({
    domain.name: domain for domain in (LEXICAL, NUMERIC, CHRONOLOGICAL)
})


def get_domain(name: str, domains: Mapping[str, ValueDomain] = DOMAINS) -> ValueDomain:
    """Look up a domain by name.

    Raises:
        ValueError: If no domain of that name is registered.
    """
    try:
        return domains[name]
    except KeyError:
        raise ValueError(
            f"Unknown value domain {name!r}, expected one of {sorted(domains)}"
        ) from None
