"""
Core distribution classes and utilities.

Provides the base Distribution class shared by the analytic, empirical,
histogram-backed and transformed distribution implementations.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np
import numpy.typing as npt

from pyparfait.histogram import Histogram


def safe_log(x: float) -> float:
    """Natural logarithm which returns -inf for ``x <= 0``."""
    if x <= 0:
        return -math.inf
    return math.log(x)


class Distribution(ABC):
    """
    Base class for probability distributions.

    Every distribution owns its own random stream. :meth:`copy` must return a
    distribution with a new, independent stream, so that copies can be
    sampled in parallel.

    Subclasses implement sampling, quantiles, the p.d.f., the c.d.f. and the
    moments. The vectorized helpers :meth:`rands` and :meth:`probs` default to
    loops over the scalar methods and may be overridden.

    Args:
        seed: optional seed of the random stream
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = np.random.default_rng(seed)

    def seed(self, seed: int) -> None:
        """Reset the random stream with a fixed seed. Mostly used in tests."""
        self._rng = np.random.default_rng(seed)

    def _spawn_rng(self) -> np.random.Generator:
        """New random stream, independent of (and derived from) this one."""
        return self._rng.spawn(1)[0]

    @abstractmethod
    def rand(self) -> float:
        """A random sample from the distribution."""

    @abstractmethod
    def quantile(self, q: float) -> float:
        """Inverse of the c.d.f."""

    @abstractmethod
    def prob(self, x: float) -> float:
        """The p.d.f. value at ``x``."""

    @abstractmethod
    def mean(self) -> float: ...

    @abstractmethod
    def mad(self) -> float:
        """Mean absolute deviation."""

    @abstractmethod
    def variance(self) -> float: ...

    @abstractmethod
    def cdf(self, x: float) -> float:
        """Cumulative probability at or below ``x``."""

    @abstractmethod
    def copy(self) -> Distribution:
        """Shallow copy with a new, independent random stream."""

    def sigma(self) -> float:
        return math.sqrt(self.variance())

    def rands(self, size: int) -> npt.NDArray[np.float64]:
        """``size`` random samples."""
        return np.fromiter((self.rand() for _ in range(size)), np.float64, count=size)

    def probs(self, xs: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """P.d.f. values at every point of ``xs``, preserving its shape."""
        values = np.asarray(xs, dtype=np.float64)
        flat = np.fromiter(
            (self.prob(float(x)) for x in values.ravel()),
            np.float64,
            count=values.size,
        )
        return flat.reshape(values.shape)


class DistributionWithHistogram(Distribution):
    """
    Distribution whose statistics are derived from a Histogram.
    """

    @abstractmethod
    def histogram(self) -> Histogram:
        """The underlying histogram; callers must not modify it."""


__all__ = [
    "Distribution",
    "DistributionWithHistogram",
    "safe_log",
]
