"""Lightweight instrumentation: interval timer and per-step wall time + RSS.

Usage:
    from multires_mask.profiling import Timer, step

    timer = Timer()
    timer.start()
    metric.initialize()
    timer.stop()
    log.info("took %d ms", timer.elapsed_millis())

    with step("before registration"):
        lifecycle.before_registration()

Step output format (nesting indents):
    [before registration] 12 ms | RSS 140 MB (+3 MB) | peak 152 MB
"""

import logging
import resource
import threading
import time
from contextlib import contextmanager

logger = logging.getLogger(__name__)

_depth = threading.local()


# ---------------------------------------------------------------------------
# Interval timer
# ---------------------------------------------------------------------------
class Timer:
    """Monotonic start/stop timer.  Call start() again to reuse."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._t_start = None
        self._t_stop = None

    def start(self):
        self._t_start = self._clock()
        self._t_stop = None

    def stop(self):
        if self._t_start is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._t_stop = self._clock()

    def elapsed_seconds(self):
        if self._t_start is None:
            return 0.0
        end = self._t_stop if self._t_stop is not None else self._clock()
        return max(0.0, end - self._t_start)

    def elapsed_millis(self):
        """Elapsed whole milliseconds, truncated, never negative."""
        return int(self.elapsed_seconds() * 1000)


# ---------------------------------------------------------------------------
# Memory helpers
# ---------------------------------------------------------------------------
def _get_depth():
    """Get current nesting depth (thread-local)."""
    return getattr(_depth, "value", 0)


def _set_depth(d):
    _depth.value = d


def _get_rss_mb():
    """Current RSS in MB via /proc/self/status (Linux) or getrusage fallback."""
    try:
        with open("/proc/self/status") as f:
            for line in f:
                if line.startswith("VmRSS:"):
                    return int(line.split()[1]) / 1024  # kB -> MB
    except (OSError, ValueError):
        pass
    # ru_maxrss is peak, not current
    return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024


def _get_peak_mb():
    """Peak RSS in MB (lifetime high-water mark)."""
    return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024


def _fmt_mb(mb):
    if mb >= 1024:
        return f"{mb / 1024:.2f} GB"
    return f"{mb:.0f} MB"


def _fmt_delta(delta_mb):
    sign = "+" if delta_mb >= 0 else ""
    if abs(delta_mb) >= 1024:
        return f"{sign}{delta_mb / 1024:.2f} GB"
    return f"{sign}{delta_mb:.0f} MB"


@contextmanager
def step(name, log=None):
    """Context manager that logs wall time and RSS memory for a named step.

    Yields the running Timer.  Nests cleanly with indentation.
    """
    log = log or logger
    depth = _get_depth()
    _set_depth(depth + 1)

    rss_start = _get_rss_mb()
    timer = Timer()
    timer.start()

    try:
        yield timer
    finally:
        timer.stop()
        rss_end = _get_rss_mb()
        delta = rss_end - rss_start

        indent = "  " * depth
        log.info(f"{indent}[{name}] {timer.elapsed_millis()} ms"
                 f" | RSS {_fmt_mb(rss_end)} ({_fmt_delta(delta)})"
                 f" | peak {_fmt_mb(_get_peak_mb())}")

        _set_depth(depth)
