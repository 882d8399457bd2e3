"""Terminal display formatting for benchmark results.

Produces aligned tables and summaries.  No external dependencies.
"""

from __future__ import annotations

import math
from typing import Sequence

from perflab.bench.results import BenchmarkResult, TrialProgress
from perflab.bench.stats import rank_by_average, speedup_factor

_RULE_WIDTH = 80


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------


def _format_ms(value: float, precision: int = 3) -> str:
    if math.isnan(value):
        return "N/A"
    return f"{value:.{precision}f}"


def _format_ops(value: float) -> str:
    if math.isinf(value):
        return "inf"
    return f"{value:,.0f}"


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


# ---------------------------------------------------------------------------
# Ranked report
# ---------------------------------------------------------------------------


def format_report(results: Sequence[BenchmarkResult]) -> str:
    """Format results as a ranked table, fastest first.

    With two or more results a closing line states how much faster the
    fastest benchmark is than the slowest.
    """
    if not results:
        return "No benchmark results."

    ranked = rank_by_average(results)

    lines: list[str] = []
    lines.append("=" * _RULE_WIDTH)
    lines.append("BENCHMARK REPORT")
    lines.append("=" * _RULE_WIDTH)
    lines.append(
        f"{'Rank':>4s} | {'Benchmark':<27s} | {'Avg (ms)':>9s} | {'Median':>9s} | "
        f"{'Ops/sec':>10s} | {'Memory (MB)':>11s}"
    )
    lines.append("-" * _RULE_WIDTH)

    for rank, r in enumerate(ranked, start=1):
        lines.append(
            f"{rank:>4d} | {_truncate(r.name, 27):<27s} | {_format_ms(r.average):>9s} | "
            f"{_format_ms(r.median):>9s} | {_format_ops(r.ops_per_second):>10s} | "
            f"{r.memory_used_mb:>11.2f}"
        )

    speedup = speedup_factor(ranked)
    if speedup is not None:
        lines.append("=" * _RULE_WIDTH)
        lines.append(f"{ranked[0].name} is {speedup:.1f}x faster than {ranked[-1].name}")
        lines.append("=" * _RULE_WIDTH)

    return "\n".join(lines)


def format_result(result: BenchmarkResult) -> str:
    """Format a single result as a detail block."""
    lines = [
        result.name,
        "─" * len(result.name),
        f"  Trials:     {len(result.times)}",
        f"  Average:    {_format_ms(result.average)} ms",
        f"  Median:     {_format_ms(result.median)} ms",
        f"  Min / Max:  {_format_ms(result.min)} / {_format_ms(result.max)} ms",
        f"  Std. dev.:  {_format_ms(result.standard_deviation)} ms",
        f"  Ops/sec:    {_format_ops(result.ops_per_second)}",
        f"  Memory:     {result.memory_used_mb:+.2f} MB",
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


def format_progress(progress: TrialProgress) -> str:
    """One-line description of a measured trial."""
    return (
        f"  {progress.name}: Run {progress.trial_index}/{progress.total_trials}"
        f" - {progress.trial_time:.2f}ms"
    )
