"""
Tests for transformed distributions.

Test RandDistribution's lazily sampled histogram, the compounding transforms
and the sample distributions built from them.
"""

from __future__ import annotations

import math
import threading
import time

import numpy as np
import pytest

from pyparfait.buckets import Buckets
from pyparfait.distributions import (
    Distribution,
    Normal,
    RandDistribution,
    SampleDistribution,
    Transform,
    compound_rand_distribution,
    compound_sample_distribution,
    fast_compound_rand_distribution,
    fast_compound_sample_distribution,
)
from pyparfait.exceptions import TransformError
from pyparfait.parallel import ParallelSamplingConfig, default_workers


class CountingDistribution(Distribution):
    """Deterministic 'distribution' yielding 1, 2, 3, ... from rand()."""

    def __init__(self, start=1.0):
        super().__init__()
        self.next = start

    def rand(self):
        x = self.next
        self.next += 1.0
        return x

    def quantile(self, q):
        return q

    def prob(self, x):
        return 0.0

    def mean(self):
        return 0.0

    def mad(self):
        return 0.0

    def variance(self):
        return 0.0

    def cdf(self, x):
        return 0.0

    def copy(self):
        return CountingDistribution(self.next)


def identity():
    def init_state():
        return None

    def fn(d, state):
        return d.rand(), state

    return Transform(init_state, fn)


@pytest.fixture
def config():
    return ParallelSamplingConfig.model_validate(
        {"samples": 1000, "workers": 1, "buckets": {"n": 4, "min": -2, "max": 2}}
    )


@pytest.fixture
def rand_distribution(config, seed):
    source = SampleDistribution([-2.0, 0.0, 0.0, 2.0], config.buckets)
    d = RandDistribution(source, identity(), config)
    d.seed(seed)
    return d


class TestRandDistribution:
    """Tests for the histogram of a transformed distribution."""

    def test_copy_before_histogram(self, rand_distribution, config):
        """Test that a copy computes its own histogram of the same size."""
        c = rand_distribution.copy()
        assert c.histogram().counts_total == config.samples

    def test_copy_shares_histogram(self, rand_distribution):
        """Test that a copy shares an already computed histogram."""
        h = rand_distribution.histogram()
        assert rand_distribution.copy().histogram() is h
        assert rand_distribution.histogram() is h

    def test_samples(self, rand_distribution, config):
        """Test that the histogram uses the configured number of samples."""
        assert rand_distribution.histogram().counts_total == config.samples

    def test_statistics(self, rand_distribution):
        """Test statistics of the identity transform of [-2, 0, 0, 2]."""
        d = rand_distribution
        # Half the samples are in the wide [0..1) bucket, so the median is in its middle.
        assert d.quantile(0.5) == pytest.approx(0.5, abs=0.1)
        assert d.prob(0.0) == pytest.approx(0.5, abs=0.05)
        assert d.mean() == pytest.approx(0.0, abs=0.15)
        assert d.mad() == pytest.approx(1.0, abs=0.1)
        assert d.variance() == pytest.approx(2.0, abs=0.2)
        assert d.cdf(0.5) == pytest.approx(0.5, abs=0.05)

    def test_rand(self, rand_distribution):
        """Test that rand applies the transform to the source."""
        for _ in range(10):
            assert rand_distribution.rand() in (-2.0, 0.0, 2.0)

    def test_default_config(self):
        """Test that the default configuration selects the worker count."""
        d = RandDistribution(Normal(0.0, 1.0), identity())
        assert d.config.workers == default_workers()
        assert d.config.workers >= 2
        assert d.config.samples == 10000

    def test_default_config_is_threaded(self):
        """Test that the default worker count samples batches on pool threads."""
        threads = set()

        def fn(d, state):
            threads.add(threading.current_thread().name)
            time.sleep(0.001)
            return d.rand(), state

        cfg = ParallelSamplingConfig(samples=200)
        d = RandDistribution(Normal(0.0, 1.0, seed=1), Transform(lambda: None, fn), cfg)
        assert d.histogram().counts_total == 200
        assert len(threads) >= 2
        assert all(name.startswith("pyparfait") for name in threads)

    def test_seed_is_reproducible(self, config):
        """Test that the configured seed makes the histogram reproducible."""
        cfg = config.model_copy(update={"seed": 7})
        d1 = RandDistribution(Normal(0.0, 1.0, seed=1), identity(), cfg)
        d2 = RandDistribution(Normal(0.0, 1.0, seed=2), identity(), cfg)
        np.testing.assert_array_equal(d1.histogram().counts, d2.histogram().counts)

    def test_threaded_is_reproducible(self, config, seed):
        """Test that parallel batches are reproducible for a seeded source."""
        cfg = ParallelSamplingConfig(
            samples=2000, workers=4, batch_size_min=10, buckets=config.buckets
        )
        hs = []
        for _ in range(2):
            d = RandDistribution(Normal(0.0, 1.0), identity(), cfg)
            d.seed(seed)
            hs.append(d.histogram())
        np.testing.assert_array_equal(hs[0].counts, hs[1].counts)
        assert hs[0].counts_total == 2000
        assert hs[0].mean() == pytest.approx(hs[1].mean())

    @pytest.mark.parametrize("workers", [1, 3])
    def test_nan(self, config, workers):
        """Test that a transform producing NaN fails loudly."""

        def fn(d, state):
            return math.nan, state

        cfg = config.model_copy(update={"workers": workers, "batch_size_max": 100})
        d = RandDistribution(Normal(0.0, 1.0), Transform(lambda: None, fn), cfg)
        with pytest.raises(TransformError, match="NaN"):
            d.rand()
        with pytest.raises(TransformError, match="NaN"):
            d.histogram()

    def test_sequence(self):
        """Test that a sequence threads the state through the transform."""

        def fn(d, total):
            total += d.rand()
            return total, total

        d = RandDistribution(CountingDistribution(), Transform(lambda: 0.0, fn))
        np.testing.assert_array_equal(d.sequence(4), [1.0, 3.0, 6.0, 10.0])


class TestCompounding:
    """Tests for the compounding transforms."""

    def test_compound_sequence(self):
        """Test that each compounded sample sums n fresh source samples."""
        d = compound_rand_distribution(CountingDistribution(), 3)
        np.testing.assert_array_equal(d.sequence(3), [6.0, 15.0, 24.0])

    def test_fast_compound_sequence(self):
        """Test that fast compounding sums a sliding window of n source samples."""
        d = fast_compound_rand_distribution(CountingDistribution(), 3)
        np.testing.assert_array_equal(d.sequence(4), [6.0, 9.0, 12.0, 15.0])

    def test_fast_compound_n_one(self):
        """Test that a window of one is the source sequence itself."""
        d = fast_compound_rand_distribution(CountingDistribution(), 1)
        np.testing.assert_array_equal(d.sequence(3), [1.0, 2.0, 3.0])

    def test_fast_compound_rand_uses_fresh_state(self):
        """Test that rand starts a new window every time."""
        d = fast_compound_rand_distribution(CountingDistribution(), 2)
        assert d.rand() == 3.0
        assert d.rand() == 7.0

    @pytest.mark.parametrize(
        "compound", [compound_rand_distribution, fast_compound_rand_distribution]
    )
    def test_invalid_n(self, compound):
        """Test that at least one sample must be compounded."""
        with pytest.raises(ValueError, match="n=0 must be >= 1"):
            compound(Normal(0.0, 1.0), 0)

    @pytest.fixture
    def compound_config(self):
        return ParallelSamplingConfig(
            samples=3000, workers=1, buckets=Buckets(n=200, min=-50.0, max=150.0)
        )

    def test_compound(self, compound_config, seed):
        """Test that compounding Normal 16 times scales the mean by 16 and the MAD by 4."""
        d = Normal.from_mad(2.0, 3.0, seed=seed)
        d2 = compound_rand_distribution(d, 16, compound_config)
        assert d2.mean() == pytest.approx(32.0, abs=1.5)
        assert d2.mad() == pytest.approx(12.0, rel=0.1)

    def test_fast_compound(self, compound_config, seed):
        """Test that fast compounding converges to the same mean and MAD."""
        d = Normal.from_mad(2.0, 3.0, seed=seed)
        d2 = fast_compound_rand_distribution(d, 16, compound_config)
        assert d2.mean() == pytest.approx(32.0, abs=4.0)
        assert d2.mad() == pytest.approx(12.0, rel=0.2)


class TestCompoundSampleDistribution:
    """Tests for sample distributions of compounded sources."""

    @pytest.fixture
    def compound_config(self):
        return ParallelSamplingConfig(
            samples=5000, workers=1, buckets=Buckets(n=200, min=-50.0, max=150.0)
        )

    def test_compound(self, compound_config, seed):
        """Test the moments of direct compounding."""
        d = Normal.from_mad(2.0, 3.0, seed=seed)
        d2 = compound_sample_distribution(d, 16, compound_config)
        assert isinstance(d2, SampleDistribution)
        assert len(d2.sample) == compound_config.samples
        assert d2.mean() == pytest.approx(32.0, abs=1.5)
        assert d2.mad() == pytest.approx(12.0, rel=0.1)
        assert d2.variance() == pytest.approx(16 * d.variance(), rel=0.15)

    def test_fast_compound(self, compound_config, seed):
        """Test sample moments of sliding-window compounding."""
        d = Normal.from_mad(2.0, 3.0, seed=seed)
        d2 = fast_compound_sample_distribution(d, 16, compound_config)
        assert len(d2.sample) == compound_config.samples
        assert d2.mean() == pytest.approx(32.0, abs=4.0)
        assert d2.mad() == pytest.approx(12.0, rel=0.2)

    @pytest.mark.slow
    def test_fast_matches_plain(self, seed):
        """Test that both compounding methods agree with a large sample budget."""
        cfg = ParallelSamplingConfig(
            samples=100000, workers=4, buckets=Buckets(n=200, min=-50.0, max=150.0)
        )
        d = Normal.from_mad(2.0, 3.0, seed=seed)
        plain = compound_rand_distribution(d, 16, cfg)
        fast = fast_compound_rand_distribution(d, 16, cfg)
        for d2 in (plain, fast):
            assert d2.mean() == pytest.approx(32.0, abs=1.0)
            assert d2.mad() == pytest.approx(12.0, rel=0.05)
        assert fast.mad() == pytest.approx(plain.mad(), rel=0.05)

    def test_from_rand_distribution(self):
        """Test that the sample is one stateful sequence of the transform."""
        d = fast_compound_rand_distribution(CountingDistribution(), 2)
        s = SampleDistribution.from_rand_distribution(d, 3, Buckets())
        np.testing.assert_array_equal(s.sample.data, [3.0, 5.0, 7.0])
