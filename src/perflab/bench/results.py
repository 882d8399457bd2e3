"""Benchmark result data structures and serialization.

Records::

    BenchmarkResult  — one completed, named run (immutable)
    TrialProgress    — progress notification for one measured trial
    HostInfo         — caller-supplied descriptors for export headers
    ExportMeta       — header of a JSON export (timestamp + host)

JSON export layout::

    {
      "timestamp": "2026-01-01T00:00:00+00:00",
      "host": {"platform": ..., "architecture": ..., ...},
      "benchmarks": [BenchmarkResult.to_dict(), ...]
    }
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Sequence

from perflab.bench.stats import mean_memory, summarize
from perflab.logging import get_logger

log = get_logger("results")


# ---------------------------------------------------------------------------
# BenchmarkResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchmarkResult:
    """Statistics for one completed benchmark run.

    All times are in milliseconds.  ``times`` holds one entry per
    measured trial, in execution order.
    """

    name: str
    times: tuple[float, ...]
    average: float
    median: float
    min: float
    max: float
    standard_deviation: float
    ops_per_second: float
    memory_used_mb: float

    @classmethod
    def from_samples(
        cls,
        name: str,
        times: Sequence[float],
        memory_samples_mb: Sequence[float],
    ) -> BenchmarkResult:
        """Build a result from raw trial times and memory deltas (MB)."""
        stats = summarize(times)
        return cls(
            name=name,
            times=tuple(times),
            average=stats.average,
            median=stats.median,
            min=stats.min,
            max=stats.max,
            standard_deviation=stats.standard_deviation,
            ops_per_second=stats.ops_per_second,
            memory_used_mb=mean_memory(memory_samples_mb),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict (full float precision).

        An infinite ``ops_per_second`` is written as None.
        """
        return {
            "name": self.name,
            "times": list(self.times),
            "average": self.average,
            "median": self.median,
            "min": self.min,
            "max": self.max,
            "standard_deviation": self.standard_deviation,
            # Only a zero average gives inf, which strict JSON cannot hold.
            "ops_per_second": self.ops_per_second if math.isfinite(self.ops_per_second) else None,
            "memory_used_mb": self.memory_used_mb,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchmarkResult:
        """Deserialize from a dict, ignoring unknown fields."""
        return cls(
            name=data["name"],
            times=tuple(float(t) for t in data["times"]),
            average=float(data["average"]),
            median=float(data["median"]),
            min=float(data["min"]),
            max=float(data["max"]),
            standard_deviation=float(data["standard_deviation"]),
            ops_per_second=_ops_from_json(data["ops_per_second"]),
            memory_used_mb=float(data["memory_used_mb"]),
        )


def _ops_from_json(value: Any) -> float:
    """Inverse of the None mapping in BenchmarkResult.to_dict."""
    if value is None:
        return math.inf
    return float(value)


# ---------------------------------------------------------------------------
# Progress notification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrialProgress:
    """Progress info passed to progress listeners after each measured trial."""

    name: str
    trial_index: int  # 1-based
    total_trials: int
    trial_time: float  # ms


# ---------------------------------------------------------------------------
# Host descriptors and export metadata
# ---------------------------------------------------------------------------


@dataclass
class HostInfo:
    """Opaque host descriptors supplied by the caller.

    The harness never inspects the machine itself; whatever strings the
    caller provides are copied into JSON exports verbatim.
    """

    platform: str = ""
    architecture: str = ""
    runtime: str = ""
    cpus: str = ""
    extra: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict (sparse: omits empty fields)."""
        d: dict[str, Any] = {}
        if self.platform:
            d["platform"] = self.platform
        if self.architecture:
            d["architecture"] = self.architecture
        if self.runtime:
            d["runtime"] = self.runtime
        if self.cpus:
            d["cpus"] = self.cpus
        if self.extra:
            d["extra"] = dict(self.extra)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HostInfo:
        """Deserialize from a dict.  Values are coerced to strings."""
        extra = data.get("extra") or {}
        if not isinstance(extra, dict):
            raise ValueError(f"Host 'extra' must be a mapping, got {type(extra).__name__}")
        return cls(
            platform=str(data.get("platform", "")),
            architecture=str(data.get("architecture", "")),
            runtime=str(data.get("runtime", "")),
            cpus=str(data.get("cpus", "")),
            extra={str(k): str(v) for k, v in extra.items()},
        )


@dataclass
class ExportMeta:
    """Header of a JSON export."""

    timestamp: str
    host: HostInfo = field(default_factory=HostInfo)


# ---------------------------------------------------------------------------
# Loading exports
# ---------------------------------------------------------------------------


def load_export(data: bytes | str) -> tuple[ExportMeta, list[BenchmarkResult]]:
    """Parse a JSON export produced by the harness.

    Args:
        data: The serialized export, as bytes or text.

    Returns:
        Tuple of (ExportMeta, list of BenchmarkResult) in file order.

    Raises:
        ValueError: If the document is not a valid export.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    try:
        doc = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Export is not valid JSON: {exc}") from exc

    if not isinstance(doc, dict):
        raise ValueError(f"Export must be a JSON object, got {type(doc).__name__}")

    benchmarks = doc.get("benchmarks", [])
    if not isinstance(benchmarks, list):
        raise ValueError("Export 'benchmarks' must be a list")

    meta = ExportMeta(
        timestamp=str(doc.get("timestamp", "")),
        host=HostInfo.from_dict(doc.get("host") or {}),
    )

    results: list[BenchmarkResult] = []
    for i, entry in enumerate(benchmarks):
        try:
            results.append(BenchmarkResult.from_dict(entry))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed benchmark entry #{i + 1}: {exc}") from exc

    log.debug("Loaded %d benchmark results from export", len(results))
    return meta, results
