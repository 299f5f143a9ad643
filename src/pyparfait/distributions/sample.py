"""
Empirical distribution of a finite sample.

Provides ``SampleDistribution``, which bootstraps from a sorted sample and
estimates its p.d.f. with a lazily built Histogram.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, ConfigDict, Field

from pyparfait.buckets import Buckets
from pyparfait.distributions.core import DistributionWithHistogram
from pyparfait.histogram import Histogram
from pyparfait.sample import Sample

if TYPE_CHECKING:
    from pyparfait.distributions.core import Distribution
    from pyparfait.distributions.transformed import RandDistribution

log = logging.getLogger(__name__)


class SampleDistribution(DistributionWithHistogram):
    """
    Distribution of a finite sample.

    The sample is copied and sorted on construction. :meth:`rand` draws
    uniformly from the sample (bootstrap), :meth:`quantile` indexes directly
    into the sorted sample and :meth:`cdf` binary-searches it. The p.d.f. and
    the moments are read off a Histogram over ``buckets``, which is built once
    on first use; if the buckets have ``auto_bounds`` set, they are first
    fitted to the sample. The p.d.f. is the step function of the histogram
    buckets, zero outside their range. The exact sample moments remain
    available from :attr:`sample`.

    Args:
        data: the sample, in any order
        buckets: buckets of the p.d.f. histogram
        seed: optional seed of the random stream

    Raises:
        ValueError: if the sample is empty
    """

    def __init__(
        self,
        data: npt.ArrayLike,
        buckets: Buckets,
        seed: int | None = None,
    ) -> None:
        super().__init__(seed)
        values = np.sort(np.asarray(data, dtype=np.float64).ravel())
        if values.size == 0:
            msg = "cannot create a distribution of an empty sample"
            raise ValueError(msg)
        values.flags.writeable = False
        self._sample = Sample(values)
        self._buckets = buckets
        self._histogram: Histogram | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_rand(
        cls,
        d: Distribution,
        samples: int,
        buckets: Buckets,
        seed: int | None = None,
    ) -> SampleDistribution:
        """Sample distribution of ``samples`` draws from ``d``."""
        return cls(d.rands(samples), buckets, seed=seed)

    @classmethod
    def from_rand_distribution(
        cls,
        d: RandDistribution,
        samples: int,
        buckets: Buckets,
        seed: int | None = None,
    ) -> SampleDistribution:
        """
        Sample distribution of ``samples`` draws from ``d``.

        Unlike :meth:`from_rand`, the draws form a single stateful sequence of
        the transform (see :meth:`RandDistribution.sequence`), which is much
        faster for sliding-window compounding.
        """
        return cls(d.sequence(samples), buckets, seed=seed)

    def __repr__(self) -> str:
        return f"SampleDistribution(size={len(self._sample)}, buckets={self._buckets})"

    @property
    def sample(self) -> Sample:
        """The sorted sample backing this distribution."""
        return self._sample

    def histogram(self) -> Histogram:
        if self._histogram is None:
            with self._lock:
                if self._histogram is None:
                    data = self._sample.data
                    buckets = self._buckets
                    if buckets.auto_bounds:
                        buckets = buckets.fit_to(data)
                        log.debug("fitted buckets to the sample: %s", buckets)
                    h = Histogram(buckets)
                    h.add(data)
                    self._histogram = h
        return self._histogram

    def _index(self, q: float) -> int:
        size = len(self._sample)
        return min(max(math.floor(q * size), 0), size - 1)

    def rand(self) -> float:
        data = self._sample.data
        return float(data[self._rng.integers(data.size)])

    def rands(self, size: int) -> npt.NDArray[np.float64]:
        data = self._sample.data
        return data[self._rng.integers(data.size, size=size)]

    def quantile(self, q: float) -> float:
        """Sample value at the ``q``'th quantile; ``q`` is clamped to [0, 1]."""
        return float(self._sample.data[self._index(q)])

    def prob(self, x: float) -> float:
        return float(self.histogram().step_probs(x))

    def probs(self, xs: npt.ArrayLike) -> npt.NDArray[np.float64]:
        return self.histogram().step_probs(xs)

    def cdf(self, x: float) -> float:
        """
        Fraction of the sample strictly below ``x``, and 1 at or above the maximum.

        At a sample point the mass of the point itself is excluded, e.g. for
        the sample ``[1, 2, 3, 4]``, ``cdf(1.0) == 0`` and ``cdf(2.0) == 0.25``.
        """
        data = self._sample.data
        if x >= data[-1]:
            return 1.0
        return float(np.searchsorted(data, x, side="left") / data.size)

    def mean(self) -> float:
        return self.histogram().mean()

    def mad(self) -> float:
        return self.histogram().mad()

    def variance(self) -> float:
        return self.histogram().variance()

    def copy(self) -> SampleDistribution:
        other = object.__new__(SampleDistribution)
        other._rng = self._spawn_rng()
        other._sample = self._sample
        other._buckets = self._buckets
        other._histogram = self._histogram
        other._lock = threading.Lock()
        return other


class SampleConfig(BaseModel):
    """
    Configuration of a sample distribution given by its data.

    Attributes:
        type: Discriminator, always ``"sample"``
        data: The sample values, at least one
        buckets: Buckets of the p.d.f. histogram
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["sample"] = "sample"
    data: list[float] = Field(min_length=1)
    buckets: Buckets = Field(default_factory=Buckets)

    def build(self, seed: int | None = None) -> SampleDistribution:
        return SampleDistribution(self.data, self.buckets, seed=seed)


# Registry of distribution configurations defined in this module
distributions: dict[str, type[BaseModel]] = {
    "sample": SampleConfig,
}

__all__ = [
    "SampleConfig",
    "SampleDistribution",
    "distributions",
]
