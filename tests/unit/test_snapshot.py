"""Tests for JSON snapshots."""

import json

import pytest

from shapesketch import CHRONOLOGICAL, NUMERIC, ColumnProfile, ProfileConfig, ValueDomain, merge_profiles, snapshot


def trained(samples, **kwargs) -> ColumnProfile:
    profile = ColumnProfile("col", ProfileConfig(max_shapes=10, k=3, max_cardinality=5), **kwargs)
    for sample in samples:
        profile.train(sample)
    return profile


class TestSnapshotRoundTrip:
    """Tests for dumps/loads."""

    def test_lexical_roundtrip(self):
        """Regexes, extremes and counts survive a round trip."""
        profile = trained(["94110", "94110-1234", None, " ", "AB-12", "zz"])
        restored = snapshot.loads(snapshot.dumps(profile))

        assert restored == profile
        assert restored.facts() == profile.facts()

    def test_numeric_roundtrip(self):
        """Moments and numeric ordering survive a round trip."""
        profile = trained(["0.1", "10", "9", "-3", "x", "2.5"], domain=NUMERIC)
        restored = snapshot.loads(snapshot.dumps(profile))

        assert restored.domain is NUMERIC
        assert restored.facts() == profile.facts()
        assert restored.facts().bottom_k == ("-3", "0.1", "2.5")

    def test_chronological_roundtrip(self):
        """Dates are stored as their original text."""
        profile = trained(["2024-01-02", "2023-07-08T10:00:00"], domain=CHRONOLOGICAL)
        restored = snapshot.loads(snapshot.dumps(profile))

        assert restored.facts().min_value == "2023-07-08T10:00:00"

    def test_overflowed_roundtrip(self):
        """Capped components stay capped."""
        profile = trained(["a" * n for n in range(1, 20)])
        restored = snapshot.loads(snapshot.dumps(profile))

        assert restored.capped_components() == ["shapes", "cardinality"]
        assert restored.facts().regexp == ".+"

    def test_restored_profile_keeps_merging(self):
        """A restored snapshot merges like the original."""
        left = trained(["12345"])
        right = trained(["12345-6789"])

        restored = snapshot.loads(snapshot.dumps(left))

        assert merge_profiles(restored, right) == merge_profiles(left, right)
        assert merge_profiles(restored, right).facts().regexp == "\\d{5}(-\\d{4})?"

    def test_unicode_text(self):
        """Non-ASCII samples are written verbatim."""
        profile = trained(["Zürich", "Köln"])
        text = snapshot.dumps(profile)

        assert "Zürich" in text
        assert snapshot.loads(text) == profile

    def test_file_roundtrip(self, tmp_path):
        """save/load go through a file."""
        profile = trained(["1", "22", "333"])
        path = snapshot.save(profile, tmp_path / "shards" / "col.json")

        assert path.exists()
        assert snapshot.load(path) == profile


class TestSnapshotDomains:
    """Tests for domain resolution on load."""

    def test_unknown_domain_rejected(self):
        """A domain missing from the registry fails loudly."""
        by_length = ValueDomain("length", len)
        text = snapshot.dumps(trained(["a", "bb"], domain=by_length))

        with pytest.raises(ValueError, match="Unknown value domain"):
            snapshot.loads(text)

    def test_injected_registry(self):
        """A caller-supplied registry resolves custom domains."""
        by_length = ValueDomain("length", len)
        profile = trained(["ccc", "a", "bb"], domain=by_length)

        restored = snapshot.loads(snapshot.dumps(profile), domains={"length": by_length})

        assert restored.facts().bottom_k == ("a", "bb", "ccc")


class TestSnapshotValidation:
    """Tests for malformed input."""

    def test_rejects_other_json(self):
        """JSON that is not a snapshot is rejected."""
        with pytest.raises(ValueError, match="Not a shapesketch snapshot"):
            snapshot.loads(json.dumps([1, 2, 3]))

    def test_rejects_unknown_version(self):
        """Future versions are rejected."""
        data = json.loads(snapshot.dumps(trained(["1"])))
        data["version"] = 99

        with pytest.raises(ValueError, match="Unsupported snapshot version"):
            snapshot.loads(json.dumps(data))
