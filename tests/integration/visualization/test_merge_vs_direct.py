"""Integration tests comparing merged shard profiles with direct profiles.

These tests profile the same column across a range of shard counts and
caps, check the merged results against single-pass profiles and exact
statistics, and plot how they compare.
"""

import random
from pathlib import Path

import numpy as np

from shapesketch import NUMERIC, ColumnProfile, ProfileConfig, ShapeAggregator, merge_all


def latency_column(count: int, seed: int = 42) -> list[str]:
    """Request latencies in milliseconds with a heavy tail."""
    rng = np.random.default_rng(seed)
    values = rng.lognormal(mean=3.0, sigma=1.2, size=count)
    return [f"{value:.3f}" for value in values]


def product_codes(count: int, seed: int = 11) -> list[str]:
    """Product codes like 'AB-1234' or 'XYZ123' with many distinct shapes."""
    rng = random.Random(seed)
    letters = "ABCDEFGHJKLMNPQRSTUVWXYZ"
    codes = []
    for _ in range(count):
        prefix = "".join(rng.choice(letters) for _ in range(rng.randint(1, 4)))
        digits = "".join(rng.choice("0123456789") for _ in range(rng.randint(1, 6)))
        separator = "-" if rng.random() < 0.5 else ""
        codes.append(f"{prefix}{separator}{digits}")
    return codes


def profile_shards(column: list[str], shard_count: int, config: ProfileConfig, **kwargs) -> ColumnProfile:
    shards = []
    for i in range(shard_count):
        profile = ColumnProfile("column", config, **kwargs)
        for value in column[i::shard_count]:
            profile.train(value)
        shards.append(profile)
    return merge_all(shards)


class TestMomentsAcrossShardCounts:
    """Merged mean and variance stay exact however the column is split."""

    def test_variance_error_vs_shard_count(self, test_output_dir: Path):
        """Relative error of merged moments stays at rounding level."""
        column = latency_column(20_000)
        exact = np.array([float(v) for v in column])
        exact_mean = float(np.mean(exact))
        exact_var = float(np.var(exact))

        shard_counts = [1, 2, 4, 8, 16, 32, 64, 128]
        mean_errors = []
        var_errors = []
        for shard_count in shard_counts:
            facts = profile_shards(column, shard_count, ProfileConfig(), domain=NUMERIC).facts()
            mean_errors.append(abs(facts.mean - exact_mean) / exact_mean)
            var_errors.append(abs(facts.variance - exact_var) / exact_var)

        assert max(mean_errors) < 1e-9, f"Mean error {max(mean_errors):.2e} too high"
        assert max(var_errors) < 1e-9, f"Variance error {max(var_errors):.2e} too high"

        # Visualize if matplotlib available
        try:
            import matplotlib

            matplotlib.use("Agg")
            import matplotlib.pyplot as plt

            _fig, ax = plt.subplots(figsize=(8, 5))
            floor = np.finfo(float).eps
            ax.plot(shard_counts, [max(e, floor) for e in mean_errors], "o-", label="mean")
            ax.plot(shard_counts, [max(e, floor) for e in var_errors], "s-", label="variance")
            ax.axhline(1e-9, color="r", linestyle="--", label="tolerance")
            ax.set_xscale("log", base=2)
            ax.set_yscale("log")
            ax.set_xlabel("Shard count")
            ax.set_ylabel("Relative error vs numpy")
            ax.set_title(f"Merged moments over {len(column):,} latencies")
            ax.legend()

            plt.tight_layout()
            plt.savefig(test_output_dir / "moment_error_vs_shards.png", dpi=150)
            plt.close()
        except ImportError:
            pass


class TestShapeCapSweep:
    """The merged regex matches direct training at every cap."""

    def test_regex_vs_shape_cap(self, test_output_dir: Path):
        """Below the shape count the column overflows, at or above it stays exact."""
        column = product_codes(3_000)

        reference = ShapeAggregator(max_shapes=10_000)
        for code in column:
            reference.track(code)
        shape_total = reference.shape_count
        assert not reference.is_overflowed

        caps = sorted({max(1, shape_total // 4), max(1, shape_total // 2), shape_total - 1,
                       shape_total, shape_total * 2})
        cluster_counts = []
        regex_lengths = []
        for cap in caps:
            config = ProfileConfig(max_shapes=cap)
            merged = profile_shards(column, 8, config)
            direct = profile_shards(column, 1, config)

            assert merged.facts().regexp == direct.facts().regexp
            assert merged.shapes.is_overflowed == (cap < shape_total)
            if cap < shape_total:
                assert merged.facts().regexp == ".+"
            else:
                assert merged.shapes.shape_count == shape_total
                assert merged.facts().regexp == reference.regexp()

            cluster_counts.append(merged.shapes.cluster_count)
            regex_lengths.append(len(merged.facts().regexp))

        # Visualize if matplotlib available
        try:
            import matplotlib

            matplotlib.use("Agg")
            import matplotlib.pyplot as plt

            _fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))

            ax1.plot(caps, cluster_counts, "o-")
            ax1.axvline(shape_total, color="r", linestyle="--", label=f"{shape_total} shapes")
            ax1.set_xlabel("max_shapes")
            ax1.set_ylabel("Clusters retained")
            ax1.set_title("Clusters after merging 8 shards")
            ax1.legend()

            ax2.bar([str(cap) for cap in caps], regex_lengths)
            ax2.set_xlabel("max_shapes")
            ax2.set_ylabel("Regex length (chars)")
            ax2.set_title("Inferred regex size")

            plt.tight_layout()
            plt.savefig(test_output_dir / "regex_vs_shape_cap.png", dpi=150)
            plt.close()
        except ImportError:
            pass
