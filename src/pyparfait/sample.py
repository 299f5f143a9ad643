"""
Statistics over a finite numeric sample.
"""

from __future__ import annotations

import math
from functools import cached_property

import numpy as np
import numpy.typing as npt

from pyparfait.exceptions import NormalizationError


class Sample:
    """
    Unordered set of numeric data with cached summary statistics.

    The data array is stored as given, without copying; use :meth:`copy` to
    decouple the Sample from the caller's array. Moments of an empty sample
    are 0.

    Args:
        data: the sample values
    """

    def __init__(self, data: npt.ArrayLike) -> None:
        self._data = np.asarray(data, dtype=np.float64)

    def __len__(self) -> int:
        return int(self._data.size)

    def __repr__(self) -> str:
        return f"Sample(size={len(self)}, mean={self.mean():g}, mad={self.mad():g})"

    @property
    def data(self) -> npt.NDArray[np.float64]:
        return self._data

    def copy(self) -> Sample:
        """Deep copy of the Sample, keeping the computed statistics."""
        other = Sample(self._data.copy())
        for name in ("sum", "sum_dev", "sum_squared_dev"):
            if name in self.__dict__:
                other.__dict__[name] = self.__dict__[name]
        return other

    @cached_property
    def sum(self) -> float:
        return float(self._data.sum())

    def mean(self) -> float:
        if len(self) == 0:
            return 0.0
        return self.sum / len(self)

    @cached_property
    def sum_dev(self) -> float:
        """Sum of absolute deviations from the mean."""
        return float(np.abs(self._data - self.mean()).sum())

    def mad(self) -> float:
        """Mean absolute deviation."""
        if len(self) == 0:
            return 0.0
        return self.sum_dev / len(self)

    @cached_property
    def sum_squared_dev(self) -> float:
        dev = self._data - self.mean()
        return float((dev * dev).sum())

    def variance(self) -> float:
        if len(self) == 0:
            return 0.0
        return self.sum_squared_dev / len(self)

    def sigma(self) -> float:
        return math.sqrt(self.variance())

    def normalize(self) -> Sample:
        """
        New Sample of ``(x - mean) / MAD``, whose mean is 0 and MAD is 1.

        Raises:
            NormalizationError: if MAD is zero or infinite
        """
        mad = self.mad()
        if mad == 0.0 or not math.isfinite(mad):
            msg = f"MAD={mad:g} must be non-zero and finite"
            raise NormalizationError(msg)
        return Sample((self._data - self.mean()) / mad)


__all__ = ["Sample"]
