"""
Copyright (c) 2022 Stock Parfait. All rights reserved.

pyparfait: statistical distributions, weighted histograms and Monte-Carlo compounding
"""

from __future__ import annotations

from pyparfait._version import version as __version__
from pyparfait.buckets import Buckets, Spacing
from pyparfait.distributions import (
    Distribution,
    HistogramDistribution,
    Normal,
    RandDistribution,
    SampleDistribution,
    StudentsT,
    build_distribution,
    compound_histogram,
)
from pyparfait.histogram import Histogram
from pyparfait.integral import expectation_mc
from pyparfait.parallel import ParallelSamplingConfig
from pyparfait.sample import Sample
from pyparfait.standard_error import StandardError

__all__ = [
    "Buckets",
    "Distribution",
    "Histogram",
    "HistogramDistribution",
    "Normal",
    "ParallelSamplingConfig",
    "RandDistribution",
    "Sample",
    "SampleDistribution",
    "Spacing",
    "StandardError",
    "StudentsT",
    "__version__",
    "build_distribution",
    "compound_histogram",
    "expectation_mc",
]
