"""Tests for MomentAccumulator and Chan's parallel merge."""

import math

import numpy as np
import pytest

from shapesketch.sketching import MomentAccumulator


def accumulate(values) -> MomentAccumulator:
    acc = MomentAccumulator()
    for value in values:
        acc.add(value)
    return acc


class TestMomentAccumulatorBasics:
    """Tests for single-value accumulation."""

    def test_empty(self):
        """An empty accumulator has no statistics."""
        acc = MomentAccumulator()

        assert acc.count == 0
        assert acc.mean is None
        assert acc.variance is None
        assert acc.sample_variance is None
        assert acc.std is None
        assert acc.min is None
        assert acc.max is None
        assert acc.sum == 0.0

    def test_known_values(self):
        """Mean and population variance of a small set."""
        acc = accumulate([2, 4, 4, 4, 5, 5, 7, 9])

        assert acc.count == 8
        assert acc.mean == pytest.approx(5.0)
        assert acc.variance == pytest.approx(4.0)
        assert acc.std == pytest.approx(2.0)
        assert acc.sample_variance == pytest.approx(32 / 7)
        assert acc.min == 2
        assert acc.max == 9
        assert acc.sum == pytest.approx(40.0)

    def test_weighted_add(self):
        """A weight of n equals adding the value n times."""
        weighted = MomentAccumulator()
        weighted.add(3.0, count=4)
        weighted.add(7.0, count=2)

        assert weighted.isclose(accumulate([3.0] * 4 + [7.0] * 2))

    def test_rejects_negative_count(self):
        """Negative weights are rejected."""
        with pytest.raises(ValueError, match="non-negative"):
            MomentAccumulator().add(1.0, count=-2)

    def test_zero_count_is_noop(self):
        """Weight zero changes nothing."""
        acc = MomentAccumulator()
        acc.add(5.0, count=0)

        assert acc.count == 0
        assert acc.min is None


class TestMomentAccumulatorBatch:
    """Tests for numpy batch accumulation."""

    def test_add_many_matches_numpy(self):
        """Batch statistics agree with numpy."""
        data = np.random.default_rng(42).normal(100.0, 15.0, size=5000)
        acc = MomentAccumulator()
        acc.add_many(data)

        assert acc.count == 5000
        assert acc.mean == pytest.approx(float(np.mean(data)))
        assert acc.variance == pytest.approx(float(np.var(data)))
        assert acc.min == float(data.min())
        assert acc.max == float(data.max())

    def test_add_many_equals_single_adds(self):
        """Batches and single values can be mixed."""
        batched = MomentAccumulator()
        batched.add(1.0)
        batched.add_many([2.0, 3.0, 4.0])
        batched.add(10.0)

        assert batched.isclose(accumulate([1.0, 2.0, 3.0, 4.0, 10.0]))

    def test_add_many_weights(self):
        """Weighted batches match repeated values."""
        acc = MomentAccumulator()
        acc.add_many([1.0, 2.0, 3.0], weights=[2, 0, 3])

        assert acc.isclose(accumulate([1.0, 1.0, 3.0, 3.0, 3.0]))

    def test_add_many_rejects_mismatched_weights(self):
        """Weights must align with values."""
        with pytest.raises(ValueError, match="weights"):
            MomentAccumulator().add_many([1.0, 2.0], weights=[1])

    def test_add_many_rejects_negative_weights(self):
        """Negative weights are rejected."""
        with pytest.raises(ValueError, match="non-negative"):
            MomentAccumulator().add_many([1.0, 2.0], weights=[1, -1])

    def test_add_many_empty(self):
        """An empty batch is a no-op."""
        acc = MomentAccumulator()
        acc.add_many([])

        assert acc.count == 0


class TestMomentAccumulatorMerge:
    """Tests for Chan's parallel merge."""

    def test_merge_equals_direct(self):
        """Merged shards agree with a single pass over the union."""
        rng = np.random.default_rng(7)
        shards = [rng.exponential(3.0, size=n) for n in (10, 500, 1, 77)]

        merged = MomentAccumulator()
        for shard in shards:
            part = MomentAccumulator()
            part.add_many(shard)
            merged.merge(part)

        direct = MomentAccumulator()
        direct.add_many(np.concatenate(shards))

        assert merged.isclose(direct)

    def test_merge_commutative(self):
        """a+b and b+a agree up to rounding."""
        a = accumulate([1.0, 2.0, 3.0])
        b = accumulate([100.0, 200.0])

        ab = accumulate([1.0, 2.0, 3.0])
        ab.merge(b)
        ba = accumulate([100.0, 200.0])
        ba.merge(a)

        assert ab.isclose(ba)
        assert ab.mean == pytest.approx(61.2)

    def test_merge_with_empty(self):
        """Empty accumulators are the identity of merge."""
        acc = accumulate([1.0, 5.0])
        acc.merge(MomentAccumulator())
        empty = MomentAccumulator()
        empty.merge(accumulate([1.0, 5.0]))

        assert acc == accumulate([1.0, 5.0])
        assert empty.isclose(acc)

    def test_merge_rejects_other_type(self):
        """Only accumulators merge with accumulators."""
        with pytest.raises(TypeError, match="Can only merge with MomentAccumulator"):
            MomentAccumulator().merge(3.0)

    def test_large_offset_stability(self):
        """Values far from zero keep an accurate variance."""
        base = 1e9
        acc = accumulate([base + 4, base + 7, base + 13, base + 16])

        assert acc.variance == pytest.approx(22.5)
        assert not math.isnan(acc.std)

    def test_roundtrip(self):
        """to_dict/from_dict reproduce the accumulator exactly."""
        acc = accumulate([0.1, 0.2, 0.7])
        restored = MomentAccumulator.from_dict(acc.to_dict())

        assert restored == acc
        assert restored.variance == acc.variance

    def test_clear(self):
        """clear() empties the accumulator."""
        acc = accumulate([1.0, 2.0])
        acc.clear()

        assert acc == MomentAccumulator()
