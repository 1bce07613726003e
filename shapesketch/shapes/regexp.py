"""Helpers for rendering engine-portable regular expression fragments."""

from __future__ import annotations

from collections.abc import Iterable

DIGIT_CLASS = r"\d"
# Unicode letters in Python's re: word characters that are not digits or '_'.
ALPHA_CLASS = r"[^\W\d_]"
ANY_PATTERN = ".+"
ANY_OR_EMPTY_PATTERN = ".*"

_SPECIALS = frozenset(".+*?^$[](){}|\\")


def is_special(ch: str) -> bool:
    """True if ``ch`` has a meaning outside a character class."""
    return ch in _SPECIALS


def escape(text: str) -> str:
    """Escape regex metacharacters in ``text``.

    Unlike :func:`re.escape` only genuine metacharacters are escaped, so
    ``"12345-6789"`` stays readable.
    """
    return "".join("\\" + ch if ch in _SPECIALS else ch for ch in text)


def qualify(low: int, high: int) -> str:
    """Quantifier for a repeat count between ``low`` and ``high``.

    A single repetition needs no quantifier.

    Examples:
        qualify(1, 1) == ""
        qualify(4, 4) == "{4}"
        qualify(4, 8) == "{4,8}"
    """
    if low == high == 1:
        return ""
    if low == high:
        return f"{{{low}}}"
    return f"{{{low},{high}}}"


def render_lengths(atom: str, lengths: Iterable[int], alternation_threshold: int) -> list[str]:
    """Render ``atom`` repeated by each observed run length.

    Returns one alternative per exact length when the number of distinct
    lengths is at most ``alternation_threshold`` and more than one, otherwise
    a single bounded quantifier.
    """
    distinct = sorted(set(lengths))
    if not distinct:
        return [atom]
    if len(distinct) == 1:
        return [atom + qualify(distinct[0], distinct[0])]
    if len(distinct) <= alternation_threshold:
        return [atom + qualify(n, n) for n in distinct]
    return [atom + qualify(distinct[0], distinct[-1])]


def group(alternatives: list[str], standalone: bool) -> str:
    """Join alternatives, parenthesizing unless the result stands alone."""
    if len(alternatives) == 1:
        return alternatives[0]
    joined = "|".join(alternatives)
    return joined if standalone else f"({joined})"


def optional(fragment: str) -> str:
    """Mark a fragment optional."""
    return f"({fragment})?"


def alternation(patterns: Iterable[str]) -> str:
    """Join whole patterns into one alternation, dropping repeats but keeping order."""
    return "|".join(dict.fromkeys(patterns))
