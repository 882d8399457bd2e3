"""Shared test fixtures for harness tests."""

from __future__ import annotations

from perflab.bench.results import BenchmarkResult


class FakeEnvironment:
    """Environment with a manually advanced clock and scripted memory.

    Workloads call :meth:`advance` to simulate elapsed time.  Memory
    readings are popped from *memory_readings* in order; once exhausted,
    :attr:`memory` is returned.
    """

    def __init__(
        self,
        *,
        start: float = 0.0,
        memory: int = 0,
        memory_readings: list[int] | None = None,
    ) -> None:
        self.clock = start
        self.memory = memory
        self.memory_readings = list(memory_readings or [])
        self.compactions = 0
        self.events: list[str] = []

    def advance(self, ms: float) -> None:
        self.clock += ms

    def now(self) -> float:
        self.events.append("now")
        return self.clock

    def memory_used(self) -> int:
        self.events.append("memory")
        if self.memory_readings:
            return self.memory_readings.pop(0)
        return self.memory

    def try_compact(self) -> bool:
        self.events.append("compact")
        self.compactions += 1
        return True


def fixed_cost(env: FakeEnvironment, ms: float):
    """Workload that advances *env* by *ms* per execution."""

    def workload() -> None:
        env.advance(ms)

    return workload


def make_result(
    name: str,
    times: list[float],
    *,
    memory_mb: list[float] | None = None,
) -> BenchmarkResult:
    """Create a BenchmarkResult from trial times."""
    return BenchmarkResult.from_samples(name, times, memory_mb or [0.0] * len(times))
