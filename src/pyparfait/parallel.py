"""
Parallel batch-and-reduce sampling.

Provides the Pydantic ``ParallelSamplingConfig`` and the machinery which splits
a fixed sample budget into batches, runs them on a thread pool and reduces
their partial histograms on the calling thread.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pyparfait.buckets import Buckets
from pyparfait.histogram import Histogram

log = logging.getLogger(__name__)

T = TypeVar("T")


def default_workers() -> int:
    """Default size of the worker pool: twice the number of CPUs."""
    return 2 * (os.cpu_count() or 1)


class ParallelSamplingConfig(BaseModel):
    """
    Configuration of parallel sampling into a histogram.

    Attributes:
        samples: Total sample budget
        batch_size_min: Lower bound of a batch size
        batch_size_max: Upper bound of a batch size
        workers: Number of worker threads; 0 selects :func:`default_workers`
        buckets: Buckets of the resulting histogram
        seed: Optional fixed seed for reproducible runs
        bias_shift: Importance sampling shift (see :func:`pyparfait.distributions.compound_histogram`)
        bias_scale: Importance sampling scale
        bias_power: Importance sampling power
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    samples: int = Field(default=10000, ge=1)
    batch_size_min: int = Field(default=10, alias="batch size min", ge=1)
    batch_size_max: int = Field(default=10000, alias="batch size max")
    workers: int = Field(default=0, ge=0, validate_default=True)
    buckets: Buckets = Field(default_factory=Buckets)
    seed: int | None = Field(default=None, ge=0)
    bias_shift: float | None = Field(default=None, alias="bias shift")
    bias_scale: float | None = Field(default=None, alias="bias scale", gt=0)
    bias_power: float | None = Field(default=None, alias="bias power", gt=0)

    @field_validator("workers")
    @classmethod
    def resolve_workers(cls, v: int) -> int:
        """Replace the unset worker count with the default."""
        return v if v > 0 else default_workers()

    @model_validator(mode="after")
    def check_batch_sizes(self) -> ParallelSamplingConfig:
        """Validate that batch_size_max >= batch_size_min."""
        if self.batch_size_max < self.batch_size_min:
            msg = f"batch size max={self.batch_size_max} must be >= batch size min={self.batch_size_min}"
            raise ValueError(msg)
        return self

    def batch_sizes(self) -> Iterator[int]:
        """Batch plan for this configuration, see :func:`batch_sizes`."""
        return batch_sizes(
            self.samples, self.workers, self.batch_size_min, self.batch_size_max
        )


def batch_sizes(
    total: int, workers: int, batch_min: int, batch_max: int
) -> Iterator[int]:
    """
    Split ``total`` samples into batches.

    Each batch has ``clamp(total / workers, batch_min, batch_max)`` samples,
    except the last one which takes the remainder.
    """
    size = min(max(total // max(workers, 1), batch_min), batch_max)
    done = 0
    while done < total:
        batch = min(size, total - done)
        done += batch
        yield batch


def parallel_map(jobs: Iterable[Callable[[], T]], workers: int) -> Iterator[T]:
    """
    Run ``jobs`` on a pool of ``workers`` threads and yield their results.

    Jobs are pulled from the iterable on the calling thread, and at most
    ``workers`` of them are in flight at any time. Results are yielded in
    completion order. With ``workers <= 1`` the jobs run serially on the
    calling thread. An exception raised by a job cancels the jobs not yet
    started and propagates to the caller.
    """
    if workers <= 1:
        for job in jobs:
            yield job()
        return

    with ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="pyparfait"
    ) as pool:
        pending: set[Future[T]] = set()
        try:
            for job in jobs:
                if len(pending) >= workers:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        yield future.result()
                pending.add(pool.submit(job))
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    yield future.result()
        except BaseException:
            for future in pending:
                future.cancel()
            raise


def reduce_histograms(
    buckets: Buckets, jobs: Iterable[Callable[[], Histogram]], workers: int
) -> Histogram:
    """
    Merge the partial histograms produced by ``jobs`` into a new Histogram.

    The merge happens exclusively on the calling thread.
    """
    total = Histogram(buckets)
    batches = 0
    for partial in parallel_map(jobs, workers):
        total.add_histogram(partial)
        batches += 1
        log.debug(
            "merged batch %d: %d samples so far", batches, total.counts_total
        )
    return total


__all__ = [
    "ParallelSamplingConfig",
    "batch_sizes",
    "default_workers",
    "parallel_map",
    "reduce_histograms",
]
