"""
Monte-Carlo integration helpers.

Provides the adaptive ``expectation_mc`` integrator, the precision test used
as its stopping rule, and the variable substitution which maps the open
interval (-1, 1) onto the real line for importance sampling.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

import numpy as np
import numpy.typing as npt

from pyparfait.standard_error import StandardError

log = logging.getLogger(__name__)


def precise_enough(
    x: float, deviation: float, epsilon: float, relative: bool = True
) -> bool:
    """
    Check whether ``x`` with an estimated deviation is within ``epsilon`` of its true value.

    This can be used as a termination criteria in iterative approximation
    methods. For the relative precision, the true value is assumed to be within
    ``[x - deviation, x + deviation]`` and the precision is reached when
    ``deviation < epsilon * max(1, |x|)``. Otherwise ``deviation < epsilon``.

    Args:
        x: the current estimate
        deviation: the estimated deviation of x
        epsilon: the required precision
        relative: whether the precision is relative to |x| (for |x| >= 1)

    Returns:
        bool: True when the precision is reached
    """
    if deviation <= 0:
        return True
    if epsilon <= 0:
        return False
    if not relative:
        return deviation < epsilon
    return deviation < epsilon * max(1.0, abs(x))


def expectation_mc(
    f: Callable[[float], float],
    sampler: Callable[[], float],
    low: float = -math.inf,
    high: float = math.inf,
    min_iter: int = 100,
    max_iter: int = 10000,
    precision: float = 0.001,
    relative: bool = True,
) -> float:
    r"""
    Monte-Carlo estimate of a (potentially partial) expectation.

    .. math::

        \int_{low}^{high} f(x) \, p(x) \, dx

    where samples ``x ~ p`` come from ``sampler``. The bounds are inclusive and
    may be infinite. After each sample the running estimate is fed into a
    :class:`StandardError`, measuring the volatility of the estimate itself.
    The iteration stops once at least ``min_iter`` samples were drawn and the
    estimate is precise enough, or after ``max_iter`` samples.

    Args:
        f: the integrand
        sampler: random sample generator, e.g. ``Distribution.rand``
        low: lower bound of the integral
        high: upper bound of the integral
        min_iter: minimum number of samples
        max_iter: maximum number of samples
        precision: required absolute or relative precision
        relative: see :func:`precise_enough`

    Returns:
        float: the estimated expectation
    """
    total = 0.0
    result = 0.0
    err = StandardError()
    for i in range(1, max_iter + 1):
        x = sampler()
        if low <= x <= high:
            total += f(x)
        result = total / i
        err.add(result)
        if i >= min_iter and precise_enough(result, err.sigma(), precision, relative):
            log.debug("expectation_mc converged after %d samples: %g", i, result)
            break
    return result


def var_subst(t: npt.ArrayLike, r: float, b: float) -> npt.NDArray[np.float64]:
    """
    Variable substitution ``x(t) = r * t / (1 - t^(2b))``.

    Maps ``t`` in the open interval (-1, 1) onto the whole real line, where
    ``t -> ±1`` yields ``x -> ±inf``. The power is taken of ``|t|``, so
    that any ``b > 0`` keeps the substitution odd.
    """
    t = np.asarray(t, dtype=np.float64)
    return r * t / (1.0 - np.power(np.abs(t), 2.0 * b))


def var_prime(t: npt.ArrayLike, r: float, b: float) -> npt.NDArray[np.float64]:
    """The derivative ``x'(t)`` of :func:`var_subst`."""
    t2b = np.power(np.abs(np.asarray(t, dtype=np.float64)), 2.0 * b)
    return r * (1.0 + (2.0 * b - 1.0) * t2b) / ((1.0 - t2b) * (1.0 - t2b))


__all__ = [
    "expectation_mc",
    "precise_enough",
    "var_prime",
    "var_subst",
]
