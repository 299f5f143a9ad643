"""
Online estimation of the standard error of a mean.

The accumulator keeps ``(n, sum, sum of squared deviations)`` and is updated
with the Youngs-Cramer recurrence, which stays numerically stable for long
sequences. Two accumulators merge exactly, so partial results computed in
parallel batches can be combined in any order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt


@dataclass
class StandardError:
    """
    Mergeable running mean / variance accumulator.

    The zero value represents an empty sample.

    Attributes:
        n: Number of accumulated samples
        sum: Sum of the samples
        sum_squares: Sum of squared deviations from the running mean
    """

    n: int = 0
    sum: float = 0.0
    sum_squares: float = 0.0

    @classmethod
    def from_samples(cls, xs: npt.ArrayLike) -> StandardError:
        """Create an accumulator directly from a batch of samples."""
        values = np.asarray(xs, dtype=np.float64).ravel()
        if values.size == 0:
            return cls()
        total = float(values.sum())
        mean = total / values.size
        return cls(
            n=int(values.size),
            sum=total,
            sum_squares=float(np.sum((values - mean) ** 2)),
        )

    def add(self, x: float) -> None:
        """Add a single sample."""
        self.n += 1
        self.sum += x
        if self.n > 1:
            dev = self.n * x - self.sum
            self.sum_squares += dev * dev / (self.n * (self.n - 1))

    def add_zeros(self, k: int) -> None:
        """Add ``k`` zero-valued samples at once."""
        if k <= 0:
            return
        if self.n > 0:
            self.sum_squares += k * self.sum * self.sum / (self.n * (self.n + k))
        self.n += k

    def merge(self, other: StandardError) -> None:
        """
        Merge ``other`` into this accumulator.

        The result is the same (up to rounding) as accumulating the union of
        both samples from scratch, and does not depend on the merge order.
        """
        if other.n == 0:
            return
        if self.n == 0:
            self.n, self.sum, self.sum_squares = other.n, other.sum, other.sum_squares
            return
        n1, n2 = self.n, other.n
        dev = (n2 / n1) * self.sum - other.sum
        self.sum_squares += other.sum_squares + n1 / (n2 * (n1 + n2)) * dev * dev
        self.sum += other.sum
        self.n = n1 + n2

    def copy(self) -> StandardError:
        return StandardError(n=self.n, sum=self.sum, sum_squares=self.sum_squares)

    def mean(self) -> float:
        if self.n == 0:
            return 0.0
        return self.sum / self.n

    def variance(self) -> float:
        """Variance of the accumulated samples."""
        if self.n == 0:
            return 0.0
        return self.sum_squares / self.n

    def sigma(self) -> float:
        """Standard error of the mean, ``sqrt(variance / n)``."""
        if self.n == 0:
            return 0.0
        return math.sqrt(self.variance() / self.n)


__all__ = ["StandardError"]
