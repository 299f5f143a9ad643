"""
Histogram bucket definitions.

Provides the Pydantic ``Buckets`` model which partitions a real interval into
``n`` ordered cells using linear, exponential or symmetric exponential spacing,
and converts between sample values and cell indices.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum
from typing import Annotated

import numpy as np
import numpy.typing as npt
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    model_validator,
)

from pyparfait.exceptions import custom_error_msg


class Spacing(str, Enum):
    """
    Ways the buckets are spaced out.

    - ``LINEAR`` divides the interval into n equal parts.
    - ``EXPONENTIAL`` divides the log-space interval into n equal parts, thus the
      buckets grow exponentially away from zero. Requires ``min > 0``.
    - ``SYMMETRIC_EXPONENTIAL`` makes the exponential spacing symmetric around
      zero: the middle bucket spans ``[-min..min]`` and the actual interval is
      ``[-max..max]``. Requires ``min > 0`` and an odd ``n >= 3``.
    """

    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    SYMMETRIC_EXPONENTIAL = "symmetric exponential"

    def __str__(self) -> str:
        return self.value


SpacingType = Annotated[
    Spacing,
    custom_error_msg(
        {
            "enum": "unsupported spacing '{input}'; expected one of 'linear', 'exponential', 'symmetric exponential'",
        }
    ),
]


def _linear_values(
    n: int, i: npt.ArrayLike, shift: npt.ArrayLike, lo: float, hi: float
) -> npt.NDArray[np.float64]:
    step = (hi - lo) / n
    return lo + (np.asarray(i, dtype=np.float64) + shift) * step


def _exponential_values(
    n: int, i: npt.ArrayLike, shift: npt.ArrayLike, lo: float, hi: float
) -> npt.NDArray[np.float64]:
    return np.power(
        10.0, _linear_values(n, i, shift, math.log10(lo), math.log10(hi))
    )


def _symmetric_exponential_values(
    n: int, i: npt.ArrayLike, shift: npt.ArrayLike, lo: float, hi: float
) -> npt.NDArray[np.float64]:
    half_n = (n - 1) // 2
    symm_i = np.asarray(i) - half_n  # symmetric around 0
    shift = np.asarray(shift, dtype=np.float64)
    negative = symm_i < 0
    abs_i = np.where(negative, -symm_i, symm_i - 1)
    tail = _exponential_values(half_n, abs_i, np.where(negative, -shift, shift), lo, hi)
    return np.where(
        symm_i == 0,
        lo * (-1.0 + 2.0 * shift),
        np.where(negative, -tail, tail),
    )


_VALUE_FUNCTIONS = {
    Spacing.LINEAR: _linear_values,
    Spacing.EXPONENTIAL: _exponential_values,
    Spacing.SYMMETRIC_EXPONENTIAL: _symmetric_exponential_values,
}


class Buckets(BaseModel):
    """
    Bucket configuration for histograms.

    Buckets are immutable once constructed and are safe to share between
    threads. The ``n + 1`` bucket boundaries are derived from the other fields.

    Attributes:
        n: Number of buckets
        spacing: Spacing law of the bucket boundaries
        min: Lower bound (for symmetric spacing, the half-width of the middle bucket)
        max: Upper bound
        auto_bounds: Whether spacing, min and max may be fitted to data
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    n: int = 101
    spacing: SpacingType = Spacing.LINEAR
    min: float = -50.0
    max: float = 50.0
    auto_bounds: bool = Field(default=False, alias="auto bounds")

    # Cached bounds keyed by the definition they were computed from; model_copy
    # carries private attributes over to copies with updated fields.
    _bounds: tuple[tuple[int, Spacing, float, float], npt.NDArray[np.float64]] | None = (
        PrivateAttr(default=None)
    )

    @model_validator(mode="after")
    def check_values(self) -> Buckets:
        """Validate the interval, the number of buckets and the spacing constraints."""
        if self.min >= self.max:
            msg = f"invalid interval: min={self.min:g} >= max={self.max:g}"
            raise ValueError(msg)
        if self.n <= 0:
            msg = f"n={self.n} must be > 0"
            raise ValueError(msg)
        if self.spacing != Spacing.LINEAR and self.min <= 0.0:
            msg = f"min={self.min:g} must be > 0 for {self.spacing} spacing"
            raise ValueError(msg)
        if self.spacing == Spacing.SYMMETRIC_EXPONENTIAL and not (
            self.n >= 3 and self.n % 2 == 1
        ):
            msg = f"symmetric exponential spacing requires n={self.n} to be odd and >= 3"
            raise ValueError(msg)
        return self

    def __str__(self) -> str:
        return f"Buckets{{N: {self.n}, Spacing: {self.spacing}, Min: {self.min:g}, Max: {self.max:g}}}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Buckets):
            return NotImplemented
        return self.same_as(other) and self.auto_bounds == other.auto_bounds

    def __hash__(self) -> int:
        return hash((self.n, self.spacing, self.min, self.max, self.auto_bounds))

    def same_as(self, other: Buckets) -> bool:
        """Check if ``other`` defines the same buckets (n, spacing, min and max)."""
        return (
            self.n == other.n
            and self.spacing == other.spacing
            and self.min == other.min
            and self.max == other.max
        )

    @property
    def bounds(self) -> npt.NDArray[np.float64]:
        """
        The ``n + 1`` bucket boundaries in ascending order, including the upper bound.

        Returns:
            Read-only array of boundaries.
        """
        key = (self.n, self.spacing, self.min, self.max)
        if self._bounds is None or self._bounds[0] != key:
            bounds = self._values(np.arange(self.n + 1), 0.0)
            bounds.flags.writeable = False
            self._bounds = (key, bounds)
        return self._bounds[1]

    def _values(
        self, i: npt.ArrayLike, shift: npt.ArrayLike
    ) -> npt.NDArray[np.float64]:
        return _VALUE_FUNCTIONS[self.spacing](self.n, i, shift, self.min, self.max)

    def x(self, i: int, shift: float = 0.0) -> float:
        """
        Representative value of the ``i``'th bucket.

        Args:
            i: Bucket index
            shift: Relative shift within the bucket; 0.0 is the lower boundary,
                0.5 the logical middle and 1.0 the next boundary

        Returns:
            The value at the requested position.
        """
        return float(self._values(i, shift))

    def xs(self, shift: float = 0.0) -> npt.NDArray[np.float64]:
        """Representative values of all the buckets, always a newly allocated array."""
        return self._values(np.arange(self.n), shift)

    def bucket(self, x: float) -> int:
        """
        Index of the bucket containing ``x``.

        Values below the lowest boundary saturate to bucket 0, and values at or
        above the last bucket's lower boundary saturate to bucket ``n - 1``.
        """
        return int(self.bucket_indices(x))

    def bucket_indices(self, xs: npt.ArrayLike) -> npt.NDArray[np.intp]:
        """Vectorized version of :meth:`bucket`."""
        idx = np.searchsorted(self.bounds, xs, side="right") - 1
        return np.clip(idx, 0, self.n - 1)

    def size(self, i: int) -> float:
        """Width of the ``i``'th bucket, 0 for an out of range index."""
        if i < 0 or i >= self.n:
            return 0.0
        return float(self.bounds[i + 1] - self.bounds[i])

    def sizes(self) -> npt.NDArray[np.float64]:
        """Widths of all the buckets."""
        return np.diff(self.bounds)

    def _refit(self, spacing: Spacing, lo: float, hi: float) -> Buckets:
        return type(self)(
            n=self.n,
            spacing=spacing,
            min=float(lo),
            max=float(hi),
            auto_bounds=self.auto_bounds,
        )

    def fit_to(self, data: Sequence[float] | npt.ArrayLike) -> Buckets:
        """
        Fit spacing, min and max to a sample sorted in ascending order.

        Exponential spacing degrades to linear when the data is not strictly
        positive, and symmetric exponential spacing degrades to exponential for
        non-negative data, or to linear when the data has too few distinct
        magnitudes.

        Args:
            data: Sample sorted in ascending order

        Returns:
            Buckets: A new, fitted instance; ``self`` is not modified.

        Raises:
            ValueError: if the data is empty or spans an empty interval
        """
        values = np.asarray(data, dtype=np.float64)
        if values.size == 0:
            msg = "cannot fit buckets to an empty sample"
            raise ValueError(msg)
        lowest, highest = float(values[0]), float(values[-1])

        spacing = self.spacing
        if spacing == Spacing.SYMMETRIC_EXPONENTIAL:
            if lowest >= 0.0:
                spacing = Spacing.EXPONENTIAL
            else:
                hi = max(abs(lowest), abs(highest))
                magnitudes = np.abs(values[values != 0.0])
                lo = float(magnitudes.min()) if magnitudes.size else hi
                if lo < hi:
                    return self._refit(spacing, lo, hi)
                spacing = Spacing.LINEAR

        if spacing == Spacing.EXPONENTIAL:
            if lowest < 0.0 or highest <= 0.0:
                spacing = Spacing.LINEAR
            else:
                lo = float(values[values > 0.0][0])
                if lo < highest:
                    return self._refit(spacing, lo, highest)
                spacing = Spacing.LINEAR

        return self._refit(Spacing.LINEAR, lowest, highest)


__all__ = [
    "Buckets",
    "Spacing",
]
