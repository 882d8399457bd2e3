"""Serialize benchmark results to JSON and CSV.

Both serializers return bytes and never touch the filesystem; choosing a
path and writing the file is the caller's job.  Values are written at
full floating-point precision.

CSV format: one fixed header row, then one row per result.  The
benchmark name is double-quoted; numbers are unquoted.

JSON format: see :mod:`perflab.bench.results`.  Output is strict JSON; an
infinite throughput is written as ``null``.  CSV writes it as ``inf``.
"""

from __future__ import annotations

import csv
import io
import json
import time
from typing import Sequence

from perflab.bench.results import BenchmarkResult, HostInfo
from perflab.errors import UnsupportedFormat

SUPPORTED_FORMATS = ("json", "csv")

CSV_HEADER = [
    "Benchmark",
    "Average(ms)",
    "Median(ms)",
    "Min(ms)",
    "Max(ms)",
    "StdDev(ms)",
    "Ops/sec",
    "Memory(MB)",
]


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string."""
    return time.strftime("%Y-%m-%dT%H:%M:%S+00:00", time.gmtime())


def normalize_format(fmt: str) -> str:
    """Validate an export format name.

    Returns:
        The lower-cased format name.

    Raises:
        UnsupportedFormat: If *fmt* is not ``json`` or ``csv``.
    """
    normalized = fmt.strip().lower() if isinstance(fmt, str) else ""
    if normalized not in SUPPORTED_FORMATS:
        raise UnsupportedFormat(str(fmt))
    return normalized


# ---------------------------------------------------------------------------
# JSON export
# ---------------------------------------------------------------------------


def export_json(
    results: Sequence[BenchmarkResult],
    *,
    host: HostInfo | None = None,
    timestamp: str | None = None,
) -> bytes:
    """Export results as a JSON document.

    Args:
        results: Results in the order they should appear.
        host: Caller-supplied host descriptors.
        timestamp: ISO-8601 timestamp; defaults to the current UTC time.
    """
    doc = {
        "timestamp": timestamp or utc_timestamp(),
        "host": (host or HostInfo()).to_dict(),
        "benchmarks": [r.to_dict() for r in results],
    }
    return (json.dumps(doc, indent=2, allow_nan=False) + "\n").encode("utf-8")


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def export_csv(results: Sequence[BenchmarkResult]) -> bytes:
    """Export results as CSV, one row per result."""
    output = io.StringIO()

    # The header is written unquoted; data rows quote only the name.
    csv.writer(output, lineterminator="\n").writerow(CSV_HEADER)
    writer = csv.writer(output, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")

    for r in results:
        writer.writerow(
            [
                r.name,
                r.average,
                r.median,
                r.min,
                r.max,
                r.standard_deviation,
                r.ops_per_second,
                r.memory_used_mb,
            ]
        )

    return output.getvalue().encode("utf-8")


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def export_results(
    fmt: str,
    results: Sequence[BenchmarkResult],
    *,
    host: HostInfo | None = None,
    timestamp: str | None = None,
) -> bytes:
    """Serialize *results* in the requested format.

    The format is validated before anything is serialized.

    Raises:
        UnsupportedFormat: If *fmt* is not ``json`` or ``csv``.
    """
    normalized = normalize_format(fmt)
    if normalized == "json":
        return export_json(results, host=host, timestamp=timestamp)
    return export_csv(results)
