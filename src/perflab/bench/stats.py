"""Aggregate statistics for benchmark trials.

Implements exactly the measures reported for a run: arithmetic mean,
median, extrema, population standard deviation, and throughput.  The
formulas are fixed so that results from different machines and runs are
directly comparable:

- Order statistics are taken from a sorted copy; the caller's sequence
  keeps execution order.
- Median of an even-length sample is the mean of the two middle values.
- Standard deviation divides by ``n``, not ``n - 1``.
- Throughput is ``1000 / average`` with the average in milliseconds.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from perflab.bench.results import BenchmarkResult


# ---------------------------------------------------------------------------
# Trial statistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrialStats:
    """Summary statistics for a sequence of trial times (milliseconds)."""

    n: int
    average: float
    median: float
    min: float
    max: float
    standard_deviation: float
    ops_per_second: float


def summarize(times: Sequence[float]) -> TrialStats:
    """Compute the aggregate measures for a sequence of trial times.

    Args:
        times: Per-trial times in milliseconds, in any order.

    Returns:
        TrialStats for the sample.

    Raises:
        ValueError: If *times* is empty.
    """
    if not times:
        raise ValueError("Cannot summarize an empty sequence of trial times")

    sorted_t = sorted(times)
    n = len(sorted_t)

    # statistics.mean is correctly rounded, so min <= average <= max holds
    # even when every trial time is identical.
    average = statistics.mean(sorted_t)
    median = _median(sorted_t)
    stdev = statistics.pstdev(sorted_t, mu=average)

    return TrialStats(
        n=n,
        average=average,
        median=median,
        min=sorted_t[0],
        max=sorted_t[-1],
        standard_deviation=stdev,
        ops_per_second=ops_per_second(average),
    )


def _median(sorted_values: list[float]) -> float:
    """Median of an already sorted, non-empty list."""
    n = len(sorted_values)
    mid = n // 2
    if n % 2 == 0:
        return (sorted_values[mid - 1] + sorted_values[mid]) / 2
    return sorted_values[mid]


def ops_per_second(average_ms: float) -> float:
    """Throughput for an average single-operation latency in milliseconds.

    A zero average (only possible with a synthetic clock) yields ``inf``.
    """
    if average_ms == 0:
        return float("inf")
    return 1000 / average_ms


def mean_memory(samples: Sequence[float]) -> float:
    """Arithmetic mean of per-trial memory deltas.

    Deltas may be negative when the host reclaims memory during a trial;
    they are not clamped.
    """
    if not samples:
        raise ValueError("Cannot average an empty sequence of memory samples")
    return statistics.mean(samples)


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def rank_by_average(results: Sequence[BenchmarkResult]) -> list[BenchmarkResult]:
    """Return *results* sorted fastest first (ascending average).

    The sort is stable, so results with equal averages keep their
    original relative order.
    """
    return sorted(results, key=lambda r: r.average)


def speedup_factor(results: Sequence[BenchmarkResult]) -> float | None:
    """Ratio of the slowest average to the fastest.

    Returns None when fewer than two results are available.
    """
    if len(results) < 2:
        return None
    ranked = rank_by_average(results)
    fastest = ranked[0].average
    slowest = ranked[-1].average
    if fastest == 0:
        return float("inf") if slowest > 0 else 1.0
    return slowest / fastest
