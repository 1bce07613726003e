"""Tests for ShapeModel clusters."""

import re

import pytest

from shapesketch.shapes import ShapeModel, classify


def model_of(*samples: str) -> ShapeModel:
    model = ShapeModel.from_sample(samples[0])
    for sample in samples[1:]:
        model.observe(classify(sample))
    return model


class TestShapeModelCreation:
    """Tests for building a model from samples."""

    def test_from_sample(self):
        """A model remembers the key, one shape and its weight."""
        model = ShapeModel.from_sample("12345-6789", weight=3)

        assert model.key == "9-9"
        assert model.run_count == 3
        assert model.occurrences == 3
        assert model.shapes() == {"99999-9999": 3}

    def test_observe_rejects_other_key(self):
        """A sample of another compressed key cannot be folded in."""
        model = ShapeModel.from_sample("12345")

        with pytest.raises(ValueError, match="Cannot fold"):
            model.observe(classify("ABC"))

    def test_observe_tracks_lengths_and_weights(self):
        """Distinct length vectors are counted separately."""
        model = model_of("1234567", "123456789", "7654321")

        assert model.shape_count == 2
        assert model.run_lengths(0) == {7, 9}
        assert model.shapes() == {"9999999": 2, "999999999": 1}


class TestShapeModelRendering:
    """Tests for generalized and tightened regexes."""

    def test_scenario_digit_positions(self):
        """Each digit position renders its observed characters."""
        model = model_of("16789", "01338", "22457")

        assert model.generalized_regexp() == "\\d{5}"
        assert model.tight_regexp() == "[0-2][1-26][3-47][358][7-9]"

    def test_single_observation_tight_is_literal(self):
        """One sample renders as the escaped sample."""
        model = ShapeModel.from_sample("ab.12")

        assert model.tight_regexp() == "ab\\.12"
        assert model.generalized_regexp() == "[^\\W\\d_]{2}\\.\\d{2}"

    def test_repeated_classes_coalesce(self):
        """Adjacent identical multi-character classes get a quantifier."""
        model = model_of("100", "199", "109")

        assert model.tight_regexp() == "1[09]{2}"

    def test_single_length_omits_quantifier(self):
        """A run of length one has no quantifier."""
        assert ShapeModel.from_sample("A-1").generalized_regexp() == "[^\\W\\d_]-\\d"

    def test_two_lengths_alternate(self):
        """Two distinct lengths render as an alternation."""
        model = model_of("1234567", "123456789")

        assert model.generalized_regexp() == "\\d{7}|\\d{9}"

    def test_embedded_alternation_is_grouped(self):
        """An alternation inside a longer key is parenthesized."""
        model = model_of("1234567-1", "123456789-1")

        assert model.generalized_regexp() == "(\\d{7}|\\d{9})-\\d"

    def test_many_lengths_use_range(self):
        """More lengths than the threshold render as {min,max}."""
        model = model_of("12", "1234", "123456")

        assert model.generalized_regexp() == "\\d{2,6}"
        assert model.generalized_regexp(alternation_threshold=3) == "\\d{2}|\\d{4}|\\d{6}"

    def test_variable_length_tight_uses_union(self):
        """A run of varying length renders the union of its positions."""
        model = model_of("12", "3456", "789012")

        assert model.tight_regexp() == "[0-9]{2,6}"

    def test_empty_model(self):
        """The empty key renders as the empty regex."""
        model = ShapeModel.from_sample("")

        assert model.key == ""
        assert model.generalized_regexp() == ""
        assert model.tight_regexp() == ""

    def test_any_model(self):
        """Over-long samples render the catch-all."""
        model = ShapeModel.from_sample("x" * 100)

        assert model.is_any
        assert model.key == "ANY"
        assert model.tight_regexp() == ".+"

    def test_rendered_regexes_match_every_sample(self):
        """Both forms accept every sample folded into the model."""
        samples = ("AB-12", "CD-3", "ZZ-987", "AA-45")
        model = model_of(*samples)

        for tightened in (False, True):
            pattern = model.render(tightened)
            for sample in samples:
                assert re.fullmatch(pattern, sample), (pattern, sample)


class TestShapeModelMerge:
    """Tests for merging models."""

    def test_merge_equals_direct(self):
        """Merging two models equals observing all samples in one."""
        left = model_of("16789", "01338")
        right = model_of("22457")

        left.merge(right)

        assert left == model_of("16789", "01338", "22457")

    def test_merge_rejects_other_key(self):
        """Models of different keys do not merge."""
        with pytest.raises(ValueError, match="Cannot merge"):
            ShapeModel.from_sample("123").merge(ShapeModel.from_sample("1-2"))

    def test_merge_rejects_other_type(self):
        """Only models merge with models."""
        with pytest.raises(TypeError, match="Can only merge with ShapeModel"):
            ShapeModel.from_sample("123").merge("123")

    def test_copy_is_independent(self):
        """Mutating a copy leaves the original alone."""
        model = model_of("111")
        clone = model.copy()
        clone.observe(classify("999"))

        assert model.tight_regexp() == "111"
        assert clone.tight_regexp() == "[19]{3}"

    def test_roundtrip(self):
        """to_dict/from_dict preserve the model."""
        model = model_of("AB-12", "CD-3", "ZZ-987")
        restored = ShapeModel.from_dict(model.to_dict())

        assert restored == model
        assert restored.tight_regexp() == model.tight_regexp()
