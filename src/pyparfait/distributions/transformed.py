"""
Distributions defined by a stateful transform of another distribution.

Provides ``RandDistribution``, whose statistics are estimated from a histogram
sampled in parallel batches, and the compounding constructors built on it.
"""

from __future__ import annotations

import logging
import math
import threading
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from functools import partial
from typing import Generic, TypeVar

import numpy as np
import numpy.typing as npt

from pyparfait.distributions.core import Distribution, DistributionWithHistogram
from pyparfait.distributions.sample import SampleDistribution
from pyparfait.exceptions import TransformError
from pyparfait.histogram import Histogram
from pyparfait.parallel import ParallelSamplingConfig, reduce_histograms

log = logging.getLogger(__name__)

State = TypeVar("State")


@dataclass(frozen=True)
class Transform(Generic[State]):
    """
    A stateful transform of a source distribution.

    Attributes:
        init_state: Creates the state at the start of every sample sequence
        fn: Computes the next sample from the source and the current state,
            returning the sample and the updated state
    """

    init_state: Callable[[], State]
    fn: Callable[[Distribution, State], tuple[float, State]]


class RandDistribution(DistributionWithHistogram, Generic[State]):
    """
    Distribution of the values of a transform applied to a source distribution.

    The source is copied on construction. :meth:`rand` applies one step of the
    transform from a fresh state. All the other statistics come from a
    histogram of ``config.samples`` transformed values, which is computed once
    on first use: the samples are split into batches (see
    :meth:`ParallelSamplingConfig.batch_sizes`), and each batch runs its own
    state sequence over its own copy of the source on a worker thread.

    Seeding the distribution (or setting ``config.seed``) seeds the source
    before it is copied for the batches, which makes the histogram
    reproducible for a fixed batch plan.

    Args:
        source: the source distribution
        transform: the transform
        config: sampling configuration; defaults to ``ParallelSamplingConfig()``

    Raises:
        TransformError: when the transform produces NaN
    """

    def __init__(
        self,
        source: Distribution,
        transform: Transform[State],
        config: ParallelSamplingConfig | None = None,
    ) -> None:
        super().__init__()
        self._config = config if config is not None else ParallelSamplingConfig()
        self._source = source.copy()
        if self._config.seed is not None:
            self._source.seed(self._config.seed)
        self._transform = transform
        self._histogram: Histogram | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"RandDistribution(source={self._source!r}, samples={self._config.samples})"

    @property
    def config(self) -> ParallelSamplingConfig:
        return self._config

    @property
    def source(self) -> Distribution:
        """This distribution's own copy of the source."""
        return self._source

    def seed(self, seed: int) -> None:
        """Seed the source distribution."""
        self._source.seed(seed)

    def _step(self, source: Distribution, state: State) -> tuple[float, State]:
        x, state = self._transform.fn(source, state)
        if math.isnan(x):
            msg = f"transform of {source!r} produced NaN"
            raise TransformError(msg)
        return x, state

    def _sequence(self, source: Distribution, size: int) -> npt.NDArray[np.float64]:
        out = np.empty(size, dtype=np.float64)
        state = self._transform.init_state()
        for i in range(size):
            out[i], state = self._step(source, state)
        return out

    def sequence(self, size: int) -> npt.NDArray[np.float64]:
        """
        A single sequence of ``size`` transformed samples starting from a fresh state.

        Consecutive samples are generally not independent; e.g. sliding-window
        compounding reuses all but one source sample between steps.
        """
        return self._sequence(self._source, size)

    def rand(self) -> float:
        x, _ = self._step(self._source, self._transform.init_state())
        return x

    def _batch(self, source: Distribution, size: int) -> Histogram:
        h = Histogram(self._config.buckets)
        h.add(self._sequence(source, size))
        return h

    def _jobs(self) -> Iterator[Callable[[], Histogram]]:
        for size in self._config.batch_sizes():
            yield partial(self._batch, self._source.copy(), size)

    def histogram(self) -> Histogram:
        if self._histogram is None:
            with self._lock:
                if self._histogram is None:
                    log.info(
                        "sampling %d values of %r on %d workers",
                        self._config.samples,
                        self._source,
                        self._config.workers,
                    )
                    self._histogram = reduce_histograms(
                        self._config.buckets, self._jobs(), self._config.workers
                    )
        return self._histogram

    def quantile(self, q: float) -> float:
        return self.histogram().quantile(q)

    def prob(self, x: float) -> float:
        return float(self.histogram().step_probs(x))

    def probs(self, xs: npt.ArrayLike) -> npt.NDArray[np.float64]:
        return self.histogram().step_probs(xs)

    def cdf(self, x: float) -> float:
        return self.histogram().cdf(x)

    def mean(self) -> float:
        return self.histogram().mean()

    def mad(self) -> float:
        return self.histogram().mad()

    def variance(self) -> float:
        return self.histogram().variance()

    def copy(self) -> RandDistribution[State]:
        """Copy with a copied source, sharing the histogram if it is already computed."""
        other: RandDistribution[State] = object.__new__(RandDistribution)
        other._rng = self._spawn_rng()
        other._config = self._config
        other._source = self._source.copy()
        other._transform = self._transform
        other._histogram = self._histogram
        other._lock = threading.Lock()
        return other


def _check_n(n: int) -> None:
    if n < 1:
        msg = f"n={n} must be >= 1"
        raise ValueError(msg)


def compound_rand_distribution(
    source: Distribution, n: int, config: ParallelSamplingConfig | None = None
) -> RandDistribution[None]:
    """
    Distribution of the sum of ``n`` independent samples of ``source``.

    Every sample costs ``n`` source samples.
    """
    _check_n(n)

    def init_state() -> None:
        return None

    def fn(d: Distribution, state: None) -> tuple[float, None]:
        return float(d.rands(n).sum()), state

    return RandDistribution(source, Transform(init_state, fn), config)


def fast_compound_rand_distribution(
    source: Distribution, n: int, config: ParallelSamplingConfig | None = None
) -> RandDistribution[deque[float]]:
    """
    Distribution of the sum of ``n`` samples of ``source``, as a sliding window.

    A sequence of samples is the sequence of sums of a sliding window of size
    ``n`` over a single sequence of source samples. Generating ``m`` samples
    costs ``n + m`` source samples instead of ``n * m``. The window sums are
    not independent, but for a stationary i.i.d. source their distribution
    approaches that of :func:`compound_rand_distribution`.
    """
    _check_n(n)

    def init_state() -> deque[float]:
        # Partial sums of the source samples; the last n + 1 span a window of n.
        return deque([0.0], maxlen=n + 1)

    def fn(d: Distribution, sums: deque[float]) -> tuple[float, deque[float]]:
        sums.append(sums[-1] + d.rand())
        while len(sums) < n + 1:
            sums.append(sums[-1] + d.rand())
        return sums[-1] - sums[0], sums

    return RandDistribution(source, Transform(init_state, fn), config)


def compound_sample_distribution(
    source: Distribution, n: int, config: ParallelSamplingConfig | None = None
) -> SampleDistribution:
    """
    Sample distribution of ``config.samples`` sums of ``n`` source samples.

    See :func:`compound_rand_distribution`.
    """
    config = config if config is not None else ParallelSamplingConfig()
    d = compound_rand_distribution(source, n, config)
    return SampleDistribution.from_rand(d, config.samples, config.buckets)


def fast_compound_sample_distribution(
    source: Distribution, n: int, config: ParallelSamplingConfig | None = None
) -> SampleDistribution:
    """
    Sample distribution of ``config.samples`` sliding-window sums of ``n`` source samples.

    See :func:`fast_compound_rand_distribution`.
    """
    config = config if config is not None else ParallelSamplingConfig()
    d = fast_compound_rand_distribution(source, n, config)
    return SampleDistribution.from_rand_distribution(d, config.samples, config.buckets)


__all__ = [
    "RandDistribution",
    "Transform",
    "compound_rand_distribution",
    "compound_sample_distribution",
    "fast_compound_rand_distribution",
    "fast_compound_sample_distribution",
]
