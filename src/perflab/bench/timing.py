"""Clock, memory, and garbage-collection access for benchmark trials.

The harness never reads the host directly.  It talks to an
:class:`Environment`, which supplies a high-resolution clock, a memory
reading, and an optional compaction hook.  :class:`SystemEnvironment` is
the real implementation; tests substitute a fake clock.
"""

from __future__ import annotations

import gc
import os
import sys
import time
import tracemalloc
from pathlib import Path
from typing import Protocol

from perflab.logging import get_logger

log = get_logger("timing")

BYTES_PER_MB = 1024 * 1024


# ---------------------------------------------------------------------------
# Environment capability
# ---------------------------------------------------------------------------


class Environment(Protocol):
    """Host capabilities used while measuring a trial."""

    def now(self) -> float:
        """High-resolution timestamp in milliseconds."""
        ...

    def memory_used(self) -> int:
        """Current memory usage in bytes."""
        ...

    def try_compact(self) -> bool:
        """Run a manual garbage collection if available.

        Returns True if a collection was performed.
        """
        ...


def bytes_to_mb(value: float) -> float:
    """Convert a byte count (or byte delta) to megabytes."""
    return value / BYTES_PER_MB


# ---------------------------------------------------------------------------
# SystemEnvironment
# ---------------------------------------------------------------------------


class SystemEnvironment:
    """Environment backed by the running interpreter.

    Memory is read from the first available source:

    1. ``tracemalloc`` traced bytes, when tracing has been started by the
       caller (most precise: Python heap only).
    2. Resident set size from ``/proc/self/statm`` (Linux).
    3. Peak RSS from ``resource.getrusage`` (monotonic, so deltas are a
       lower bound).  Without it (Windows, untraced) memory reads as 0.
    """

    def __init__(self, *, statm_path: Path = Path("/proc/self/statm")) -> None:
        self._statm_path = statm_path
        self._page_size = os.sysconf("SC_PAGE_SIZE") if hasattr(os, "sysconf") else 4096

    def now(self) -> float:
        return time.perf_counter() * 1000

    def memory_used(self) -> int:
        if tracemalloc.is_tracing():
            current, _peak = tracemalloc.get_traced_memory()
            return current
        rss = self._read_statm_rss()
        if rss is not None:
            return rss
        return _rusage_peak_bytes()

    def try_compact(self) -> bool:
        gc.collect()
        return True

    def _read_statm_rss(self) -> int | None:
        """Resident pages from statm, in bytes.  None if unavailable."""
        try:
            fields = self._statm_path.read_text().split()
        except OSError:
            return None
        if len(fields) < 2:
            return None
        try:
            return int(fields[1]) * self._page_size
        except ValueError:
            log.debug("Unparseable statm contents: %r", fields)
            return None


def _rusage_peak_bytes() -> int:
    """Peak RSS of this process in bytes, or 0 where getrusage is missing.

    On Linux, ru_maxrss is in KB.  On macOS, ru_maxrss is in bytes.
    """
    try:
        import resource
    except ImportError:  # Windows
        return 0
    maxrss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    if sys.platform == "darwin":
        return maxrss
    return maxrss * 1024
