"""Tests for value domains."""

from datetime import datetime
from types import MappingProxyType

import pytest

from shapesketch.sketching import CHRONOLOGICAL, DOMAINS, LEXICAL, NUMERIC, ValueDomain, get_domain


class TestValueDomains:
    """Tests for parsing and ordering."""

    def test_lexical_accepts_everything(self):
        """Every string is lexical."""
        assert LEXICAL.parse("anything") == "anything"
        assert not LEXICAL.numeric

    def test_numeric_parses_numbers(self):
        """Numeric keys are floats."""
        assert NUMERIC.parse("42") == 42.0
        assert NUMERIC.parse("-1.5e3") == -1500.0
        assert NUMERIC.numeric

    @pytest.mark.parametrize("text", ["abc", "1,000", "", "nan", "NaN", "inf", "-Infinity", "1e400"])
    def test_numeric_rejects(self, text):
        """Non-numbers, NaN and infinities are outside the domain."""
        assert NUMERIC.parse(text) is None

    def test_chronological_orders_mixed_zones(self):
        """Aware timestamps are normalized to naive UTC."""
        aware = CHRONOLOGICAL.parse("2024-01-01T02:00:00+02:00")
        naive = CHRONOLOGICAL.parse("2024-01-01T01:00:00")

        assert aware == datetime(2024, 1, 1, 0, 0)
        assert aware < naive

    def test_chronological_rejects(self):
        """Non-dates are outside the domain."""
        assert CHRONOLOGICAL.parse("yesterday") is None


class TestDomainRegistry:
    """Tests for looking up domains by name."""

    def test_registry_is_read_only(self):
        """The default registry cannot be modified."""
        assert isinstance(DOMAINS, MappingProxyType)
        with pytest.raises(TypeError):
            DOMAINS["custom"] = LEXICAL

    def test_get_domain(self):
        """Known names resolve."""
        assert get_domain("numeric") is NUMERIC
        assert get_domain("chronological") is CHRONOLOGICAL

    def test_get_domain_unknown(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown value domain"):
            get_domain("roman")

    def test_custom_registry(self):
        """Callers can supply their own registry."""
        by_length = ValueDomain("length", len)

        assert get_domain("length", {"length": by_length}) is by_length
