"""
Weighted histograms over Buckets.

Provides the ``Histogram`` accumulator which collects (possibly importance
weighted) samples into buckets and derives approximate statistics: mean, MAD,
variance, quantiles, c.d.f. and p.d.f. Histograms over identical buckets can be
merged, which is how partial results of parallel batches are reduced.
"""

from __future__ import annotations

import math

import numpy as np
import numpy.typing as npt

from pyparfait.buckets import Buckets
from pyparfait.exceptions import HistogramMergeError, ShapeMismatchError
from pyparfait.standard_error import StandardError


def _read_only(a: npt.NDArray[np.generic]) -> npt.NDArray[np.generic]:
    view = a.view()
    view.flags.writeable = False
    return view


class Histogram:
    """
    Histogram of weighted samples.

    Each bucket keeps the raw sample count (for judging statistical
    significance), the accumulated weight (the probability mass, equal to the
    count for unweighted samples) and the weighted sum of its samples (for the
    per-bucket mean). Every bucket also tracks a :class:`StandardError` of the
    per-sample weight contributions, which estimates the noise of its mass.

    A Histogram is not thread safe; parallel producers should each fill their
    own instance and merge them with :meth:`add_histogram`.

    Args:
        buckets: bucket definition, shared and never modified
    """

    def __init__(self, buckets: Buckets) -> None:
        if buckets is None:
            msg = "buckets cannot be None"
            raise TypeError(msg)
        self._buckets = buckets
        n = buckets.n
        self._counts = np.zeros(n, dtype=np.int64)
        self._weights = np.zeros(n, dtype=np.float64)
        self._sums = np.zeros(n, dtype=np.float64)
        self._size = 0.0
        self._sum_total = 0.0
        # Number of sampling events; each event contributes to one or more buckets.
        self._events = 0
        self._errors = [StandardError() for _ in range(n)]

    def __repr__(self) -> str:
        return f"Histogram({self._buckets}, counts_total={self.counts_total}, weights_total={self._size:g})"

    @property
    def buckets(self) -> Buckets:
        return self._buckets

    @property
    def counts(self) -> npt.NDArray[np.int64]:
        """Actual (possibly biased) sample counts. For p.d.f. estimates use weights."""
        return _read_only(self._counts)

    @property
    def weights(self) -> npt.NDArray[np.float64]:
        """Bucket weights, the probability mass in the traditional histogram sense."""
        return _read_only(self._weights)

    @property
    def sums(self) -> npt.NDArray[np.float64]:
        """Weighted sums of samples per bucket."""
        return _read_only(self._sums)

    def count(self, i: int) -> int:
        if i < 0 or i >= self._buckets.n:
            return 0
        return int(self._counts[i])

    def weight(self, i: int) -> float:
        if i < 0 or i >= self._buckets.n:
            return 0.0
        return float(self._weights[i])

    def sum(self, i: int) -> float:
        if i < 0 or i >= self._buckets.n:
            return 0.0
        return float(self._sums[i])

    @property
    def counts_total(self) -> int:
        return int(self._counts.sum())

    @property
    def weights_total(self) -> float:
        """Total weight of all the samples (the histogram's size)."""
        return self._size

    @property
    def sum_total(self) -> float:
        return self._sum_total

    def _accumulate(
        self, values: npt.NDArray[np.float64], weights: npt.NDArray[np.float64]
    ) -> None:
        if values.size == 0:
            return
        n = self._buckets.n
        idx = self._buckets.bucket_indices(values)
        xw = values * weights
        self._counts += np.bincount(idx, minlength=n)
        self._weights += np.bincount(idx, weights=weights, minlength=n)
        self._sums += np.bincount(idx, weights=xw, minlength=n)
        self._size += float(weights.sum())
        self._sum_total += float(xw.sum())
        self._events += int(values.size)

        order = np.argsort(idx, kind="stable")
        hit, starts = np.unique(idx[order], return_index=True)
        for i, chunk in zip(hit, np.split(weights[order], starts[1:])):
            self._errors[i].merge(StandardError.from_samples(chunk))

    def add(self, *xs: float | npt.ArrayLike) -> None:
        """
        Add unit-weight samples.

        Samples may be passed as individual values or as a single array.
        """
        values = np.asarray(xs, dtype=np.float64).ravel()
        self._accumulate(values, np.ones_like(values))

    def add_with_weight(self, x: float, weight: float) -> None:
        """
        Add an importance-weighted sample.

        The bucket count grows by 1, while its weight and the totals grow by
        ``weight`` and ``x * weight``.
        """
        self._accumulate(
            np.array([x], dtype=np.float64), np.array([weight], dtype=np.float64)
        )

    def add_with_weights(self, xs: npt.ArrayLike, weights: npt.ArrayLike) -> None:
        """Vectorized version of :meth:`add_with_weight`."""
        values = np.asarray(xs, dtype=np.float64).ravel()
        ws = np.asarray(weights, dtype=np.float64).ravel()
        if values.shape != ws.shape:
            msg = f"len(xs)={values.size} != len(weights)={ws.size}"
            raise ShapeMismatchError(msg)
        self._accumulate(values, ws)

    def add_weights(self, weights: npt.ArrayLike) -> None:
        """
        Add weights to the buckets directly, e.g. from an externally computed density.

        Each bucket's count is incremented by one and its sum by the weight
        times the bucket's logical middle.

        Raises:
            ShapeMismatchError: if ``len(weights) != buckets.n``
        """
        ws = np.asarray(weights, dtype=np.float64).ravel()
        if ws.size != self._buckets.n:
            msg = f"len(weights)={ws.size} != buckets.n={self._buckets.n}"
            raise ShapeMismatchError(msg)
        sums = self._buckets.xs(0.5) * ws
        self._weights += ws
        self._counts += 1
        self._sums += sums
        self._size += float(ws.sum())
        self._sum_total += float(sums.sum())
        self._events += 1
        for err, w in zip(self._errors, ws):
            err.add(float(w))

    def add_histogram(self, other: Histogram) -> None:
        """
        Merge ``other`` into this histogram.

        Merging is commutative and associative, so partial histograms can be
        reduced in any order.

        Raises:
            HistogramMergeError: if the buckets are not the same
        """
        if not self._buckets.same_as(other.buckets):
            msg = f"cannot merge histograms with different buckets: {self._buckets} != {other.buckets}"
            raise HistogramMergeError(msg)
        self._counts += other._counts
        self._weights += other._weights
        self._sums += other._sums
        self._size += other._size
        self._sum_total += other._sum_total
        self._events += other._events
        for err, other_err in zip(self._errors, other._errors):
            err.merge(other_err)

    def x(self, i: int) -> float:
        """
        Mean value of the samples in the ``i``'th bucket.

        Empty buckets return their logical middle rather than zero.
        """
        if self._weights[i] == 0:
            return self._buckets.x(i, 0.5)
        return float(self._sums[i] / self._weights[i])

    def xs(self) -> npt.NDArray[np.float64]:
        """Mean values of all the buckets, always a newly allocated array."""
        res = self._buckets.xs(0.5)
        np.divide(self._sums, self._weights, out=res, where=self._weights != 0)
        return res

    def mean(self) -> float:
        if self._size == 0:
            return 0.0
        return self._sum_total / self._size

    def mad(self) -> float:
        """Approximate mean absolute deviation."""
        if self._size == 0:
            return 0.0
        dev = np.abs(self.xs() - self.mean())
        return float(np.sum(dev * self._weights) / self._size)

    def variance(self) -> float:
        """Approximate variance; its accuracy improves with finer buckets."""
        if self._size == 0:
            return 0.0
        dev = self.xs() - self.mean()
        return float(np.sum(dev * dev * self._weights) / self._size)

    def sigma(self) -> float:
        return math.sqrt(self.variance())

    def quantile(self, q: float) -> float:
        """
        Approximate ``q``'th quantile, e.g. ``q=0.5`` is the median.

        The position within the boundary bucket is interpolated
        proportionally to the remaining weight.

        Raises:
            ValueError: if ``q`` is not within [0, 1]
        """
        if not 0.0 <= q <= 1.0:
            msg = f"q={q} not in [0..1]"
            raise ValueError(msg)
        if self._size == 0:
            return 0.0
        nonempty = self._weights > 0
        if not nonempty.any():
            return 0.0
        acc = np.cumsum(self._weights)
        q_weight = q * self._size
        hits = np.flatnonzero((acc >= q_weight) & nonempty)
        idx = int(hits[0]) if hits.size else int(np.flatnonzero(nonempty)[-1])
        shift = 1.0 - (acc[idx] - q_weight) / self._weights[idx]
        return self._buckets.x(idx, min(max(float(shift), 0.0), 1.0))

    def cdf(self, x: float) -> float:
        """
        C.d.f. at ``x``, approximately the inverse of :meth:`quantile`.

        Saturates to 0 and 1 outside the buckets' range, and interpolates
        linearly within the bucket containing ``x``.
        """
        bounds = self._buckets.bounds
        if x >= bounds[-1]:
            return 1.0
        if x <= bounds[0] or self._size == 0:
            return 0.0
        i = self._buckets.bucket(x)
        weight_low = float(self._weights[:i].sum())
        coeff = (x - bounds[i]) / self._buckets.size(i)
        return float((weight_low + coeff * self._weights[i]) / self._size)

    def prob(self, x: float) -> float:
        """
        P.d.f. at ``x``, linearly interpolated between the nearest bucket centers.
        """
        bounds = self._buckets.bounds
        if x >= bounds[-1] or x <= bounds[0]:
            return 0.0
        i = self._buckets.bucket(x)
        shift = (x - self._buckets.x(i, 0.5)) / self._buckets.size(i)
        if shift >= 0:
            low, high = self.pdf(i), self.pdf(i + 1)
        else:
            low, high = self.pdf(i - 1), self.pdf(i)
            shift += 1.0
        return low + shift * (high - low)

    def pdf(self, i: int) -> float:
        """
        P.d.f. value of the ``i``'th bucket, 0 when out of range.

        Integrates to 1 with ``dx = buckets.size(i)``.
        """
        if i < 0 or i >= self._buckets.n or self._size == 0:
            return 0.0
        return float(self._weights[i] / self._size / self._buckets.size(i))

    def pdfs(self) -> npt.NDArray[np.float64]:
        """P.d.f. values of all the buckets, suitable for plotting against :meth:`xs`."""
        if self._size == 0:
            return np.zeros(self._buckets.n)
        return self._weights / self._size / self._buckets.sizes()

    def step_probs(self, xs: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """
        Step p.d.f. at every point of ``xs``: the p.d.f. of the bucket containing it.

        Points outside the buckets' range have zero density.
        """
        values = np.asarray(xs, dtype=np.float64)
        bounds = self._buckets.bounds
        inside = (values >= bounds[0]) & (values <= bounds[-1])
        res = self.pdfs()[self._buckets.bucket_indices(values)]
        return np.where(inside, res, 0.0)

    def std_error(self, i: int) -> float:
        """
        Standard error of the ``i``'th bucket's share of the total mass.

        Returns 0 for an out of range index or an empty histogram.
        """
        if i < 0 or i >= self._buckets.n or self._events == 0 or self._size == 0:
            return 0.0
        err = self._errors[i].copy()
        err.add_zeros(self._events - err.n)
        return err.sigma() * self._events / self._size

    def std_errors(self) -> npt.NDArray[np.float64]:
        return np.array([self.std_error(i) for i in range(self._buckets.n)])


__all__ = ["Histogram"]
