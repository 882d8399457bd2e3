"""Exception hierarchy for perflab.

All harness failures derive from :class:`HarnessError` and are chained to
the exception raised by the user's hook or workload.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perflab.bench.results import BenchmarkResult


class PerflabError(Exception):
    """Base class for all perflab errors."""


class HarnessError(PerflabError):
    """A benchmark run or export could not be completed."""


class SetupFailed(HarnessError):
    """The setup hook raised; no result was recorded."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Setup failed for benchmark '{name}'")
        self.name = name


class WorkloadFailed(HarnessError):
    """The workload raised during warmup or measurement; no result was recorded."""

    def __init__(self, name: str, phase: str, trial: int) -> None:
        super().__init__(f"Workload failed for benchmark '{name}' during {phase} run {trial}")
        self.name = name
        self.phase = phase  # "warmup" or "measurement"
        self.trial = trial  # 1-based


class TeardownFailed(HarnessError):
    """The teardown hook raised after measurement completed.

    The result was already stored; it is available as :attr:`result`.
    """

    def __init__(self, name: str, result: BenchmarkResult | None = None) -> None:
        super().__init__(f"Teardown failed for benchmark '{name}'")
        self.name = name
        self.result = result


class UnsupportedFormat(HarnessError, ValueError):
    """Export was requested in a format other than json or csv."""

    def __init__(self, fmt: str) -> None:
        super().__init__(f"Unsupported export format: '{fmt}' (expected 'json' or 'csv')")
        self.format = fmt
