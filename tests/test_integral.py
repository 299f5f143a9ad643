"""
Tests for integral module.

Test the precision stopping rule, the Monte-Carlo expectation integrator and
the importance-sampling variable substitution.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from pyparfait.distributions import Normal
from pyparfait.integral import expectation_mc, precise_enough, var_prime, var_subst


class TestPreciseEnough:
    """Tests for the precision test."""

    @pytest.mark.parametrize(
        ("x", "deviation", "epsilon", "expected"),
        [
            (3.1415, 0.0314, 0.01, True),
            (3.1415, 0.0315, 0.01, False),
            (0.31415, 0.011, 0.01, False),
            (0.31415, 0.01, 0.011, True),
        ],
    )
    def test_relative(self, x, deviation, epsilon, expected):
        """Test the relative precision, absolute for |x| < 1."""
        assert precise_enough(x, deviation, epsilon) is expected

    def test_absolute(self):
        """Test the absolute precision ignores the magnitude of x."""
        assert not precise_enough(3.1415, 0.0314, 0.01, relative=False)
        assert precise_enough(3.1415, 0.009, 0.01, relative=False)

    def test_degenerate(self):
        """Test zero deviation and zero epsilon."""
        assert precise_enough(1.0, 0.0, 0.0)
        assert not precise_enough(1.0, 0.1, 0.0)


class Counter:
    """Sampler wrapper which counts its calls."""

    def __init__(self, d):
        self.d = d
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.d.rand()


class TestExpectationMC:
    """Tests for the Monte-Carlo expectation integrator."""

    def test_full_range(self):
        """Test that a density integrates to 1 over the real line."""
        sampler = Counter(Normal(0.0, 1.0, seed=42))
        res = expectation_mc(
            lambda _: 1.0, sampler, min_iter=100, max_iter=1000, precision=0.001
        )
        assert res == pytest.approx(1.0)
        assert 100 <= sampler.calls <= 1000

    def test_min_iter(self):
        """Test that at least min_iter samples are drawn."""
        sampler = Counter(Normal(0.0, 1.0, seed=42))
        expectation_mc(lambda _: 1.0, sampler, min_iter=500, max_iter=1000)
        assert sampler.calls == 500

    def test_max_iter(self):
        """Test that at most max_iter samples are drawn."""
        sampler = Counter(Normal(0.0, 1.0, seed=42))
        expectation_mc(lambda x: x, sampler, min_iter=10, max_iter=50, precision=1e-9)
        assert sampler.calls == 50

    def test_partial_range(self):
        """Test a partial expectation over [-1, 1]."""
        d = Normal(0.0, 1.0, seed=42)
        res = expectation_mc(
            lambda _: 1.0,
            d.rand,
            low=-1.0,
            high=1.0,
            min_iter=5000,
            max_iter=10000,
            precision=0.00001,
        )
        assert res == pytest.approx(0.6827, abs=0.03)

    def test_mean(self):
        """Test the expectation of x, i.e. the mean."""
        d = Normal(2.0, 1.0, seed=42)
        res = expectation_mc(
            lambda x: x, d.rand, min_iter=5000, max_iter=10000, precision=0.00001
        )
        assert res == pytest.approx(2.0, abs=0.1)


class TestVarSubst:
    """Tests for the importance-sampling variable substitution."""

    def test_values(self):
        """Test known values of the substitution."""
        assert var_subst(0.5, 5.0, 2.0) == pytest.approx(2.5 / (1.0 - 0.0625))
        assert var_subst(0.999, 5.0, 2.0) == pytest.approx(1250.0, rel=0.01)
        assert var_subst(0.0, 5.0, 2.0) == 0.0

    def test_odd(self):
        """Test that the substitution is odd, including for fractional powers."""
        t = np.array([0.1, 0.5, 0.9])
        for b in (1.0, 2.0, 2.5):
            np.testing.assert_allclose(var_subst(-t, 3.0, b), -var_subst(t, 3.0, b))
            assert np.all(np.isfinite(var_subst(-t, 3.0, b)))

    def test_monotonic(self):
        """Test that the substitution is increasing on (-1, 1)."""
        t = np.linspace(-0.99, 0.99, 101)
        assert np.all(np.diff(var_subst(t, 2.0, 3.0)) > 0)

    @pytest.mark.parametrize("t", [-0.9, -0.3, 0.0, 0.2, 0.75])
    def test_prime_is_derivative(self, t):
        """Test var_prime against a numerical derivative of var_subst."""
        h = 1e-6
        numeric = (var_subst(t + h, 5.0, 2.0) - var_subst(t - h, 5.0, 2.0)) / (2 * h)
        assert var_prime(t, 5.0, 2.0) == pytest.approx(numeric, rel=1e-5)

    def test_prime_integrates(self):
        """Test that integrating a density through the substitution preserves its mass."""
        d = Normal(0.0, 1.0)
        t = np.linspace(-1.0, 1.0, 20001)[1:-1]
        dt = t[1] - t[0]
        mass = np.sum(d.probs(var_subst(t, 2.0, 2.0)) * var_prime(t, 2.0, 2.0)) * dt
        assert mass == pytest.approx(1.0, abs=1e-3)
        assert math.isfinite(mass)
