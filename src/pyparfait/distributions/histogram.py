"""
Histogram-backed distribution.
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from pyparfait.distributions.core import DistributionWithHistogram
from pyparfait.histogram import Histogram


class HistogramDistribution(DistributionWithHistogram):
    """
    Distribution defined by a Histogram.

    The histogram is stored by reference, never copied, including by
    :meth:`copy`. The caller must not modify it after creating the
    distribution. Random samples are drawn by inverse transform sampling,
    ``histogram.quantile(uniform())``.

    Args:
        h: the histogram
        seed: optional seed of the random stream
    """

    def __init__(self, h: Histogram, seed: int | None = None) -> None:
        super().__init__(seed)
        self._h = h

    def __repr__(self) -> str:
        return f"HistogramDistribution({self._h!r})"

    def histogram(self) -> Histogram:
        return self._h

    def rand(self) -> float:
        return self._h.quantile(float(self._rng.random()))

    def rands(self, size: int) -> npt.NDArray[np.float64]:
        qs = self._rng.random(size)
        return np.fromiter((self._h.quantile(q) for q in qs), np.float64, count=size)

    def quantile(self, q: float) -> float:
        return self._h.quantile(q)

    def prob(self, x: float) -> float:
        return self._h.prob(x)

    def cdf(self, x: float) -> float:
        return self._h.cdf(x)

    def mean(self) -> float:
        return self._h.mean()

    def mad(self) -> float:
        return self._h.mad()

    def variance(self) -> float:
        return self._h.variance()

    def copy(self) -> HistogramDistribution:
        other = HistogramDistribution(self._h)
        other._rng = self._spawn_rng()
        return other


__all__ = ["HistogramDistribution"]
