"""Benchmark execution engine.

Runs one named unit of work through a fixed protocol:

1. Setup hook (untimed)
2. Warm-up executions (untimed, discarded)
3. Measured trials, each optionally batching several executions
4. Teardown hook (untimed)
5. Statistics, storage, and completion notification

Workloads and hooks may be plain callables or return awaitables.  The
protocol is written once, as a generator that yields each awaitable it
meets; :meth:`BenchmarkHarness.arun` awaits them on the caller's loop and
:meth:`BenchmarkHarness.run` resolves them on a private loop.  Under
``run``, synchronous code is never called from inside a running loop, so a
plain workload may drive its own event loop.  An asynchronous workload's
suspension time counts toward its measured cost.

A harness instance has a single writer: ``run``/``arun`` must not be
invoked concurrently on the same instance, and listeners must not call
back into the harness while a run is in progress.  Neither condition is
guarded against.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Generator

from perflab.bench.config import HarnessConfig, check_config
from perflab.bench.display import format_progress
from perflab.bench.export import export_results
from perflab.bench.results import BenchmarkResult, TrialProgress
from perflab.bench.stats import rank_by_average, speedup_factor
from perflab.bench.timing import Environment, SystemEnvironment, bytes_to_mb
from perflab.errors import SetupFailed, TeardownFailed, WorkloadFailed
from perflab.logging import get_logger

log = get_logger("runner")

# A zero-argument unit of work.  The return value is discarded; if it is
# awaitable it is awaited first.
Workload = Callable[[], Any | Awaitable[Any]]
Hook = Callable[[], None | Awaitable[None]]

ProgressCallback = Callable[[TrialProgress], None]
CompleteCallback = Callable[[BenchmarkResult], None]

# Yields awaitables, receives their results, returns the step's value.
Steps = Generator[Awaitable[Any], Any, Any]


# ---------------------------------------------------------------------------
# Step execution
# ---------------------------------------------------------------------------


def _call(fn: Callable[[], Any]) -> Steps:
    """Call *fn*; if it returns an awaitable, hand it to the driver."""
    result = fn()
    if inspect.isawaitable(result):
        result = yield result
    return result


async def _as_coroutine(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _drive(steps: Steps) -> Any:
    """Run *steps* to completion without an ambient event loop.

    Awaitables are resolved on a loop private to this call, created on
    first use and closed before returning.  Between awaitables no loop is
    running.
    """
    loop: asyncio.AbstractEventLoop | None = None
    value: Any = None
    error: Exception | None = None
    try:
        while True:
            try:
                awaitable = steps.throw(error) if error is not None else steps.send(value)
            except StopIteration as stop:
                return stop.value
            if loop is None:
                loop = asyncio.new_event_loop()
            try:
                value, error = loop.run_until_complete(_as_coroutine(awaitable)), None
            except Exception as exc:
                value, error = None, exc
    finally:
        steps.close()
        if loop is not None:
            try:
                loop.run_until_complete(loop.shutdown_asyncgens())
            finally:
                loop.close()


async def _adrive(steps: Steps) -> Any:
    """Run *steps* to completion, awaiting on the running loop."""
    value: Any = None
    error: Exception | None = None
    while True:
        try:
            awaitable = steps.throw(error) if error is not None else steps.send(value)
        except StopIteration as stop:
            return stop.value
        try:
            value, error = await awaitable, None
        except Exception as exc:
            value, error = None, exc


def _check_run_args(name: str, iterations_per_trial: int) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError("Benchmark name must be a non-empty string.")
    if (
        not isinstance(iterations_per_trial, int)
        or isinstance(iterations_per_trial, bool)
        or iterations_per_trial < 1
    ):
        raise ValueError(
            f"iterations_per_trial must be a positive integer (got {iterations_per_trial!r})."
        )


# ---------------------------------------------------------------------------
# BenchmarkHarness
# ---------------------------------------------------------------------------


class BenchmarkHarness:
    """Measures named workloads and keeps the latest result for each name.

    Usage::

        harness = BenchmarkHarness(HarnessConfig(warmup_runs=2, measurement_runs=5))
        harness.run("list append", lambda: [i for i in range(10_000)])
        print(format_report(harness.report()))
        payload = harness.export("csv")
    """

    def __init__(
        self,
        config: HarnessConfig | None = None,
        *,
        environment: Environment | None = None,
        progress_callback: ProgressCallback | None = None,
        complete_callback: CompleteCallback | None = None,
    ) -> None:
        # HarnessConfig is frozen, so validating once here covers every run.
        self.config = config or HarnessConfig()
        check_config(self.config)
        self.environment: Environment = environment or SystemEnvironment()
        self._progress_listeners: list[ProgressCallback] = []
        self._complete_listeners: list[CompleteCallback] = []
        if progress_callback is not None:
            self._progress_listeners.append(progress_callback)
        if complete_callback is not None:
            self._complete_listeners.append(complete_callback)
        self._results: dict[str, BenchmarkResult] = {}

    # -- Listeners ----------------------------------------------------------

    def add_progress_listener(self, callback: ProgressCallback) -> None:
        """Register a callback invoked after every measured trial."""
        self._progress_listeners.append(callback)

    def add_complete_listener(self, callback: CompleteCallback) -> None:
        """Register a callback invoked once per successful run."""
        self._complete_listeners.append(callback)

    def _emit_progress(self, progress: TrialProgress) -> None:
        if not self._progress_listeners:
            self._default_progress(progress)
            return
        for callback in self._progress_listeners:
            callback(progress)

    def _emit_complete(self, result: BenchmarkResult) -> None:
        for callback in self._complete_listeners:
            callback(result)

    # -- Running ------------------------------------------------------------

    def run(
        self,
        name: str,
        workload: Workload,
        *,
        setup: Hook | None = None,
        teardown: Hook | None = None,
        iterations_per_trial: int = 1,
    ) -> BenchmarkResult:
        """Benchmark *workload* and store the result under *name*.

        Synchronous entry point.  Plain callables are called directly;
        awaitables they return are run on an event loop owned by this
        call.  Use :meth:`arun` when already inside a running loop.

        Raises:
            ValueError: If *name* is empty or *iterations_per_trial* < 1.
            SetupFailed: If the setup hook raises.
            WorkloadFailed: If the workload raises during warmup or
                measurement.
            TeardownFailed: If the teardown hook raises; the result has
                already been stored and is attached to the exception.
            RuntimeError: If called from inside a running event loop.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError(
                "BenchmarkHarness.run() cannot be called from a running event loop; "
                "use 'await harness.arun(...)' instead."
            )
        _check_run_args(name, iterations_per_trial)
        return _drive(self._protocol(name, workload, setup, teardown, iterations_per_trial))

    async def arun(
        self,
        name: str,
        workload: Workload,
        *,
        setup: Hook | None = None,
        teardown: Hook | None = None,
        iterations_per_trial: int = 1,
    ) -> BenchmarkResult:
        """Benchmark *workload* and store the result under *name*.

        Args:
            name: Non-empty label; an existing result with the same name
                is replaced.
            workload: Zero-argument callable, sync or async.
            setup: Hook run once before any execution, untimed.
            teardown: Hook run once after all trials, untimed.
            iterations_per_trial: Executions per measured trial; the
                trial time is the batch time divided by this count.

        Returns:
            The stored BenchmarkResult.
        """
        _check_run_args(name, iterations_per_trial)
        return await _adrive(
            self._protocol(name, workload, setup, teardown, iterations_per_trial)
        )

    def _protocol(
        self,
        name: str,
        workload: Workload,
        setup: Hook | None,
        teardown: Hook | None,
        iterations_per_trial: int,
    ) -> Steps:
        log.info("Benchmarking: %s", name)

        # Phase 1: Setup.
        if setup is not None:
            try:
                yield from _call(setup)
            except Exception as exc:
                log.error("Setup failed for '%s': %s", name, exc)
                raise SetupFailed(name) from exc

        # Phases 2-3: Warm-up and measurement.  Teardown runs whatever
        # interrupts them, but an interrupted run never reaches the store.
        try:
            result = yield from self._measure(name, workload, iterations_per_trial)
        except Exception:
            if teardown is not None:
                yield from self._teardown_after_failure(name, teardown)
            raise

        # Phase 4: Teardown.  Measurement is complete, so a failure here is
        # reported alongside a stored result rather than instead of one.
        teardown_error: Exception | None = None
        if teardown is not None:
            log.debug("%s: teardown", name)
            try:
                yield from _call(teardown)
            except Exception as exc:
                log.error("Teardown failed for '%s': %s", name, exc)
                teardown_error = exc

        # Phase 5: Store and notify.
        self._results[name] = result
        log.info(
            "%s: avg %.3fms, median %.3fms, %.0f ops/sec",
            name,
            result.average,
            result.median,
            result.ops_per_second,
        )
        self._emit_complete(result)

        if teardown_error is not None:
            raise TeardownFailed(name, result) from teardown_error
        return result

    def _measure(
        self,
        name: str,
        workload: Workload,
        iterations_per_trial: int,
    ) -> Steps:
        """Run warm-up and measured trials; return the computed result."""
        env = self.environment
        total = self.config.measurement_runs

        log.debug("%s: %d warm-up runs", name, self.config.warmup_runs)
        for i in range(self.config.warmup_runs):
            try:
                yield from _call(workload)
            except Exception as exc:
                log.error("Workload failed for '%s' (warmup %d): %s", name, i + 1, exc)
                raise WorkloadFailed(name, "warmup", i + 1) from exc

        times: list[float] = []
        memory_samples: list[float] = []

        for i in range(total):
            if self.config.collect_garbage:
                env.try_compact()

            memory_before = env.memory_used()
            start = env.now()
            try:
                for _ in range(iterations_per_trial):
                    yield from _call(workload)
            except Exception as exc:
                log.error("Workload failed for '%s' (trial %d): %s", name, i + 1, exc)
                raise WorkloadFailed(name, "measurement", i + 1) from exc
            end = env.now()
            memory_after = env.memory_used()

            trial_time = (end - start) / iterations_per_trial
            times.append(trial_time)
            memory_samples.append(bytes_to_mb(memory_after - memory_before))

            self._emit_progress(
                TrialProgress(
                    name=name,
                    trial_index=i + 1,
                    total_trials=total,
                    trial_time=trial_time,
                )
            )

        return BenchmarkResult.from_samples(name, times, memory_samples)

    def _teardown_after_failure(self, name: str, teardown: Hook) -> Steps:
        """Run teardown after an interrupted run, logging its own failure."""
        try:
            yield from _call(teardown)
        except Exception:
            log.exception("Teardown also failed for '%s' after run failure", name)

    # -- Results ------------------------------------------------------------

    @property
    def results(self) -> dict[str, BenchmarkResult]:
        """Copy of the result store, in insertion order."""
        return dict(self._results)

    def get(self, name: str) -> BenchmarkResult | None:
        """The latest result stored under *name*, if any."""
        return self._results.get(name)

    def clear(self) -> None:
        """Discard all stored results."""
        self._results.clear()

    def report(self) -> list[BenchmarkResult]:
        """All stored results, fastest (lowest average) first."""
        return rank_by_average(list(self._results.values()))

    def speedup(self) -> float | None:
        """Slowest average over fastest; None with fewer than 2 results."""
        return speedup_factor(list(self._results.values()))

    def export(self, fmt: str, *, timestamp: str | None = None) -> bytes:
        """Serialize all stored results as ``json`` or ``csv``.

        Results appear in store order, not ranked.

        Raises:
            UnsupportedFormat: For any other format.
        """
        return export_results(
            fmt,
            list(self._results.values()),
            host=self.config.host,
            timestamp=timestamp,
        )

    @staticmethod
    def _default_progress(progress: TrialProgress) -> None:
        """Default progress callback: log at debug level."""
        log.debug(format_progress(progress))
