"""
Distribution implementations.

Provides the analytic Normal and Student's t distributions, the empirical
sample distribution, histogram-backed and transform-defined distributions,
and the importance-sampled compounding of a distribution's density.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, TypeAdapter

# Import modules instead of individual classes
from pyparfait.distributions import (
    basic,
    compound,
    histogram,
    sample,
    transformed,
)
from pyparfait.distributions.core import (
    Distribution,
    DistributionWithHistogram,
    safe_log,
)
from pyparfait.exceptions import custom_error_msg

# Analytic distributions
Normal = basic.Normal
StudentsT = basic.StudentsT
NormalConfig = basic.NormalConfig
StudentsTConfig = basic.StudentsTConfig
NORMAL_MAD = basic.NORMAL_MAD
students_t_mad = basic.students_t_mad

# Empirical distributions
SampleDistribution = sample.SampleDistribution
SampleConfig = sample.SampleConfig
HistogramDistribution = histogram.HistogramDistribution

# Transformed distributions
Transform = transformed.Transform
RandDistribution = transformed.RandDistribution
compound_rand_distribution = transformed.compound_rand_distribution
fast_compound_rand_distribution = transformed.fast_compound_rand_distribution
compound_sample_distribution = transformed.compound_sample_distribution
fast_compound_sample_distribution = transformed.fast_compound_sample_distribution

# Importance sampling
ImportanceSamplingBias = compound.ImportanceSamplingBias
compound_histogram = compound.compound_histogram

__all__ = [
    "NORMAL_MAD",
    "Distribution",
    "DistributionConfigType",
    "DistributionWithHistogram",
    "HistogramDistribution",
    "ImportanceSamplingBias",
    "Normal",
    "NormalConfig",
    "RandDistribution",
    "SampleConfig",
    "SampleDistribution",
    "StudentsT",
    "StudentsTConfig",
    "Transform",
    "build_distribution",
    "compound_histogram",
    "compound_rand_distribution",
    "compound_sample_distribution",
    "fast_compound_rand_distribution",
    "fast_compound_sample_distribution",
    "registered_distributions",
    "safe_log",
    "students_t_mad",
]

# Combine all distribution config registries
registered_distributions: dict[str, type[BaseModel]] = {
    **basic.distributions,
    **sample.distributions,
}

# Type alias for all distribution configs using discriminated union
DistributionConfigType = Annotated[
    Annotated[
        basic.NormalConfig | basic.StudentsTConfig | sample.SampleConfig,
        Field(discriminator="type"),
    ],
    custom_error_msg(
        {
            "union_tag_invalid": "Unknown distribution type '{tag}' does not match any of the expected distributions: {expected_tags}"
        }
    ),
]

_config_adapter: TypeAdapter[
    basic.NormalConfig | basic.StudentsTConfig | sample.SampleConfig
] = TypeAdapter(DistributionConfigType)


def build_distribution(config: object, seed: int | None = None) -> Distribution:
    """
    Build a distribution from its configuration.

    Args:
        config: a config model instance, or a dict with a ``type`` key naming
            one of :data:`registered_distributions`
        seed: optional seed of the distribution's random stream

    Returns:
        Distribution: the configured distribution

    Raises:
        pydantic.ValidationError: if the configuration is invalid
    """
    return _config_adapter.validate_python(config).build(seed=seed)
