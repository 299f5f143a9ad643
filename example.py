#!/usr/bin/env python3
"""
Example usage of pyparfait: compounding a heavy-tailed daily return distribution.

This script demonstrates:
1. Building a distribution from a configuration dictionary
2. Compounding it by plain Monte-Carlo sampling on a thread pool
3. Compounding it by importance sampling, with per-bucket standard errors
4. A Monte-Carlo partial expectation of the compounded distribution
"""

from __future__ import annotations

import time
from contextlib import contextmanager

import pyparfait
import pyparfait.logging
from pyparfait.distributions import compound_histogram, compound_rand_distribution


@contextmanager
def time_block(label):
    start = time.perf_counter()
    yield
    end = time.perf_counter()
    print(f"{label}: {end - start:.4f} seconds")


def main():
    """Main example function demonstrating pyparfait features."""
    pyparfait.logging.setup()
    print("=== pyparfait example: compounding daily returns ===\n")

    daily = pyparfait.build_distribution(
        {"type": "students_t", "alpha": 3.0, "mean": 0.0005, "mad": 0.01}, seed=42
    )
    print(f"Daily distribution: {daily}")
    print(f"  mean={daily.mean():.5f} mad={daily.mad():.5f}\n")

    days = 20
    config = pyparfait.ParallelSamplingConfig.model_validate(
        {
            "samples": 200000,
            "batch size min": 1000,
            "buckets": {"n": 101, "min": -0.5, "max": 0.5},
            "seed": 42,
        }
    )

    print(f"1. Plain Monte-Carlo compounding over {days} days")
    print("=" * 40)
    with time_block("Sampling"):
        monthly = compound_rand_distribution(daily, days, config)
        h = monthly.histogram()
    print(f"  mean={h.mean():.5f} mad={h.mad():.5f}")
    print(f"  5% quantile={h.quantile(0.05):.4f} 95% quantile={h.quantile(0.95):.4f}\n")

    print(f"2. Importance-sampled compounding over {days} days")
    print("=" * 40)
    with time_block("Sampling"):
        h_is = compound_histogram(daily, days, config)
    print(f"  mean={h_is.mean():.5f} mad={h_is.mad():.5f}")
    worst = int(h_is.std_errors().argmax())
    print(f"  noisiest bucket: {worst} at x={h_is.x(worst):.4f}, error={h_is.std_error(worst):.2e}\n")

    print("3. Expected loss beyond -10%")
    print("=" * 40)
    loss = pyparfait.expectation_mc(
        lambda x: x, monthly.rand, high=-0.1, min_iter=1000, max_iter=100000
    )
    print(f"  E[X; X <= -0.1] = {loss:.6f}")


if __name__ == "__main__":
    main()
