"""
Importance-sampled histograms of compounded distributions.

Provides ``compound_histogram``, which estimates the p.d.f. of the sum of ``n``
i.i.d. samples of a source distribution from its density alone, by sampling
the support of the sum with a bias toward the tails and weighting every
sample by the source densities and the Jacobian of the substitution.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from functools import partial

import numpy as np

from pyparfait.buckets import Buckets, Spacing
from pyparfait.distributions.core import Distribution, DistributionWithHistogram
from pyparfait.histogram import Histogram
from pyparfait.integral import var_prime, var_subst
from pyparfait.parallel import ParallelSamplingConfig, reduce_histograms

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportanceSamplingBias:
    r"""
    Parameters of the substitution :math:`x(t) = shift + scale \cdot t / (1 - |t|^{2 \cdot power})`.

    Attributes:
        shift: Center of the sampled values of a single source sample
        scale: Width of the central region of a single source sample
        power: Steepness of the tails; larger values sample the tails less
    """

    shift: float
    scale: float
    power: float

    @classmethod
    def for_buckets(cls, buckets: Buckets, n: int) -> ImportanceSamplingBias:
        """
        Default bias for a sum of ``n`` samples landing in ``buckets``.

        The scale is ``max(|bounds|) / sqrt(n)`` and the power is
        ``ceil(sqrt(n))``. The shift is 0 for symmetric exponential buckets,
        and otherwise ``1 / n`` of the middle of the buckets' interval.
        """
        bounds = buckets.bounds
        low, high = float(bounds[0]), float(bounds[-1])
        if buckets.spacing == Spacing.SYMMETRIC_EXPONENTIAL:
            shift = 0.0
        else:
            shift = (low + high) / 2.0 / n
        return cls(
            shift=shift,
            scale=max(abs(low), abs(high)) / math.sqrt(n),
            power=float(math.ceil(math.sqrt(n))),
        )

    @classmethod
    def from_config(cls, config: ParallelSamplingConfig, n: int) -> ImportanceSamplingBias:
        """Bias from ``config``, with the defaults of :meth:`for_buckets` for unset values."""
        default = cls.for_buckets(config.buckets, n)
        return cls(
            shift=default.shift if config.bias_shift is None else config.bias_shift,
            scale=default.scale if config.bias_scale is None else config.bias_scale,
            power=default.power if config.bias_power is None else config.bias_power,
        )


def _batch(
    source: Distribution,
    n: int,
    size: int,
    bias: ImportanceSamplingBias,
    buckets: Buckets,
    seed: np.random.SeedSequence,
) -> Histogram:
    rng = np.random.default_rng(seed)
    # t in the open interval (-1, 1)
    t = rng.uniform(np.nextafter(-1.0, 0.0), 1.0, size=(size, n))
    xs = bias.shift + var_subst(t, bias.scale, bias.power)
    weights = np.prod(
        source.probs(xs) * var_prime(t, bias.scale, bias.power), axis=1
    )
    # 0 * inf in the far tails
    weights = np.where(np.isfinite(weights), weights, 0.0)
    h = Histogram(buckets)
    h.add_with_weights(xs.sum(axis=1), weights)
    return h


def compound_histogram(
    source: Distribution, n: int, config: ParallelSamplingConfig | None = None
) -> Histogram:
    r"""
    Histogram of the sum of ``n`` i.i.d. samples of ``source``, by importance sampling.

    Every histogram sample is the sum :math:`y = \sum_j x_j` of ``n`` values
    :math:`x_j = x(t_j)` (see :class:`ImportanceSamplingBias`) for uniformly
    drawn :math:`t_j \in (-1, 1)`, added with the weight
    :math:`w = \prod_j p(x_j) \, x'(t_j)`, where :math:`p` is
    ``source.prob``. Only the density of the source is used; ``source.rand``
    is never called.

    The ``config.samples`` samples are computed in parallel batches, each with
    its own copy of the source and its own child of
    ``SeedSequence(config.seed)``. The per-bucket standard errors of the
    result (:meth:`Histogram.std_error`) estimate the sampling noise.

    Args:
        source: the distribution to compound
        n: the number of summed samples
        config: sampling configuration; defaults to ``ParallelSamplingConfig()``

    Returns:
        Histogram: the weighted histogram over ``config.buckets``

    Raises:
        ValueError: if ``n < 1``
    """
    if n < 1:
        msg = f"n={n} must be >= 1"
        raise ValueError(msg)
    config = config if config is not None else ParallelSamplingConfig()
    bias = ImportanceSamplingBias.from_config(config, n)
    if isinstance(source, DistributionWithHistogram):
        # Copies share an already computed histogram.
        source.histogram()
    seeds = np.random.SeedSequence(config.seed)

    def jobs() -> Iterator[Callable[[], Histogram]]:
        for size in config.batch_sizes():
            yield partial(
                _batch,
                source.copy(),
                n,
                size,
                bias,
                config.buckets,
                seeds.spawn(1)[0],
            )

    log.info(
        "compounding %r %d times: %d samples on %d workers, %s",
        source,
        n,
        config.samples,
        config.workers,
        bias,
    )
    return reduce_histograms(config.buckets, jobs(), config.workers)


__all__ = [
    "ImportanceSamplingBias",
    "compound_histogram",
]
