"""CPU utilization derived from consecutive ``/proc/stat`` samples."""

from __future__ import annotations

from typing import NamedTuple


class CpuSample(NamedTuple):
    """Cumulative jiffy counters from one read of ``/proc/stat``."""

    total: int
    idle: int


class CpuUsageTracker:
    """Computes CPU usage as the busy share of the delta between two samples.

    The tracker has no opinion about where samples come from; it must be
    fed from a single thread (the owning collector's polling loop).
    The first sample after construction or :meth:`reset` yields ``None``.
    """

    def __init__(self) -> None:
        self._previous: CpuSample | None = None

    @property
    def has_previous(self) -> bool:
        return self._previous is not None

    def update(self, total: int, idle: int) -> int | None:
        """Record a sample and return integer usage percent, or ``None``."""
        current = CpuSample(total, idle)
        previous, self._previous = self._previous, current
        if previous is None:
            return None

        diff_total = current.total - previous.total
        diff_idle = current.idle - previous.idle
        if diff_total <= 0:
            # counters went backwards (reset) or did not move
            return 0
        return (diff_total - diff_idle) * 100 // diff_total

    def reset(self) -> None:
        self._previous = None


def format_cpu_usage(usage: int | None) -> str:
    if usage is None:
        return "CPU: N/A"
    return f"CPU: {usage}%"
