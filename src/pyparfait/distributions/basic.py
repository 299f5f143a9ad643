"""
Analytic distribution implementations.

Provides the Normal and Student's t distributions, parameterized by their mean
and MAD (mean absolute deviation), together with the Pydantic configuration
models used to build them from structured input.
"""

from __future__ import annotations

import math
from typing import Literal

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, ConfigDict, Field
from scipy import special, stats

from pyparfait.distributions.core import Distribution

NORMAL_MAD = math.sqrt(2.0 / math.pi)
"""MAD of the standard normal distribution."""


def students_t_mad(alpha: float) -> float:
    r"""
    MAD of the unscaled Student's t distribution with ``alpha`` degrees of freedom.

    .. math::

        \mathrm{MAD}(\alpha) = \frac{2\sqrt{\alpha}}{(\alpha - 1) B(\alpha/2, 1/2)}

    Defined for ``alpha > 1``.
    """
    return 2.0 * math.sqrt(alpha) / ((alpha - 1.0) * special.beta(alpha / 2.0, 0.5))


class Normal(Distribution):
    r"""
    Normal (Gaussian) distribution.

    .. math::

        f(x; \mu, \sigma) = \frac{1}{\sigma\sqrt{2\pi}} \exp\left(-\frac{(x-\mu)^2}{2\sigma^2}\right)

    Args:
        mu: the mean
        sigma: the standard deviation
        seed: optional seed of the random stream
    """

    def __init__(self, mu: float, sigma: float, seed: int | None = None) -> None:
        super().__init__(seed)
        self.mu = float(mu)
        self.scale = float(sigma)
        self._dist = stats.norm(loc=self.mu, scale=self.scale)

    @classmethod
    def from_mad(cls, mean: float, mad: float, seed: int | None = None) -> Normal:
        """Normal distribution with the given mean and MAD."""
        return cls(mean, mad / NORMAL_MAD, seed=seed)

    def __repr__(self) -> str:
        return f"Normal(mu={self.mu:g}, sigma={self.scale:g})"

    def rand(self) -> float:
        return float(self._rng.normal(self.mu, self.scale))

    def rands(self, size: int) -> npt.NDArray[np.float64]:
        return self._rng.normal(self.mu, self.scale, size)

    def quantile(self, q: float) -> float:
        return float(self._dist.ppf(q))

    def prob(self, x: float) -> float:
        return float(self._dist.pdf(x))

    def probs(self, xs: npt.ArrayLike) -> npt.NDArray[np.float64]:
        return np.asarray(self._dist.pdf(xs), dtype=np.float64)

    def cdf(self, x: float) -> float:
        return float(self._dist.cdf(x))

    def mean(self) -> float:
        return self.mu

    def mad(self) -> float:
        return self.scale * NORMAL_MAD

    def variance(self) -> float:
        return self.scale * self.scale

    def sigma(self) -> float:
        return self.scale

    def copy(self) -> Normal:
        other = Normal(self.mu, self.scale)
        other._rng = self._spawn_rng()
        return other


class StudentsT(Distribution):
    r"""
    Student's t distribution, scaled by ``sigma`` and shifted by ``mu``.

    .. math::

        f(x; \nu, \mu, \sigma) = \frac{\Gamma(\frac{\nu+1}{2})}{\sigma\sqrt{\nu\pi}\,\Gamma(\frac{\nu}{2})}
            \left(1 + \frac{1}{\nu}\left(\frac{x-\mu}{\sigma}\right)^2\right)^{-\frac{\nu+1}{2}}

    Note:
        ``sigma`` is the scale parameter, not the standard deviation. The
        variance is ``sigma^2 * nu / (nu - 2)`` for ``nu > 2``, infinite for
        ``1 < nu <= 2`` and undefined (NaN) otherwise.

    Args:
        nu: degrees of freedom (the tail exponent alpha)
        mu: location
        sigma: scale
        seed: optional seed of the random stream
    """

    def __init__(
        self, nu: float, mu: float, sigma: float, seed: int | None = None
    ) -> None:
        super().__init__(seed)
        self.nu = float(nu)
        self.mu = float(mu)
        self.scale = float(sigma)
        self._dist = stats.t(df=self.nu, loc=self.mu, scale=self.scale)

    @classmethod
    def from_mad(
        cls, alpha: float, mean: float, mad: float, seed: int | None = None
    ) -> StudentsT:
        """Student's t distribution with ``alpha`` degrees of freedom, the given mean and MAD."""
        return cls(alpha, mean, mad / students_t_mad(alpha), seed=seed)

    def __repr__(self) -> str:
        return f"StudentsT(nu={self.nu:g}, mu={self.mu:g}, sigma={self.scale:g})"

    def rand(self) -> float:
        return float(self.mu + self.scale * self._rng.standard_t(self.nu))

    def rands(self, size: int) -> npt.NDArray[np.float64]:
        return self.mu + self.scale * self._rng.standard_t(self.nu, size)

    def quantile(self, q: float) -> float:
        return float(self._dist.ppf(q))

    def prob(self, x: float) -> float:
        return float(self._dist.pdf(x))

    def probs(self, xs: npt.ArrayLike) -> npt.NDArray[np.float64]:
        return np.asarray(self._dist.pdf(xs), dtype=np.float64)

    def cdf(self, x: float) -> float:
        return float(self._dist.cdf(x))

    def mean(self) -> float:
        return self.mu

    def mad(self) -> float:
        return self.scale * students_t_mad(self.nu)

    def variance(self) -> float:
        if self.nu > 2.0:
            return self.scale * self.scale * self.nu / (self.nu - 2.0)
        if self.nu > 1.0:
            return math.inf
        return math.nan

    def copy(self) -> StudentsT:
        other = StudentsT(self.nu, self.mu, self.scale)
        other._rng = self._spawn_rng()
        return other


class NormalConfig(BaseModel):
    """
    Configuration of a Normal distribution.

    Attributes:
        type: Discriminator, always ``"normal"``
        mean: The mean
        mad: The mean absolute deviation
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["normal"] = "normal"
    mean: float = 0.0
    mad: float = Field(default=1.0, gt=0)

    def build(self, seed: int | None = None) -> Normal:
        return Normal.from_mad(self.mean, self.mad, seed=seed)


class StudentsTConfig(BaseModel):
    """
    Configuration of a Student's t distribution.

    Attributes:
        type: Discriminator, always ``"students_t"``
        alpha: Degrees of freedom, must be > 1 for a finite MAD
        mean: The mean
        mad: The mean absolute deviation
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["students_t"] = "students_t"
    alpha: float = Field(default=3.0, gt=1)
    mean: float = 0.0
    mad: float = Field(default=1.0, gt=0)

    def build(self, seed: int | None = None) -> StudentsT:
        return StudentsT.from_mad(self.alpha, self.mean, self.mad, seed=seed)


# Registry of distribution configurations defined in this module
distributions: dict[str, type[BaseModel]] = {
    "normal": NormalConfig,
    "students_t": StudentsTConfig,
}

__all__ = [
    "NORMAL_MAD",
    "Normal",
    "NormalConfig",
    "StudentsT",
    "StudentsTConfig",
    "distributions",
    "students_t_mad",
]
