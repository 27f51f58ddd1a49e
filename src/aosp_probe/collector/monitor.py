"""Raw CPU, memory and per-process counters from the native provider."""

from __future__ import annotations

import logging
import os

from ..models import NativeSnapshot
from ..parser.proc import cpu_totals, parse_cpu_stat, parse_meminfo, parse_process_status
from .base import BaseCollector
from .cpu import CpuUsageTracker
from .native import TelemetryProvider, get_provider

logger = logging.getLogger(__name__)


def _is_error(payload: str) -> bool:
    return payload.startswith("Error:")


class NativeMonitorCollector(BaseCollector[NativeSnapshot]):
    """Collects a :class:`NativeSnapshot` for the whole system and one process.

    *pid* defaults to the current process, as a probe running on the device
    reports on itself.
    """

    synthetic_source = "monitor"

    def __init__(self, provider: TelemetryProvider | None = None, pid: int = 0) -> None:
        super().__init__()
        self._provider = provider
        self._pid = pid or os.getpid()
        self._tracker = CpuUsageTracker()

    @property
    def name(self) -> str:
        return "monitor"

    @property
    def pid(self) -> int:
        return self._pid

    def is_empty(self, snapshot: NativeSnapshot) -> bool:
        return not (snapshot.cpu or snapshot.memory or snapshot.process)

    def collect(self) -> NativeSnapshot:
        provider = self._provider or get_provider()

        raw_cpu = provider.cpu_info()
        cpu = {} if _is_error(raw_cpu) else parse_cpu_stat(raw_cpu)
        usage = self._tracker.update(*cpu_totals(cpu)) if cpu else None

        raw_mem = provider.mem_info()
        memory = {} if _is_error(raw_mem) else parse_meminfo(raw_mem)

        raw_proc = provider.process_info(self._pid)
        if _is_error(raw_proc):
            logger.debug("No status for pid %d: %s", self._pid, raw_proc)
            process: dict[str, str] = {}
        else:
            process = parse_process_status(raw_proc)

        return NativeSnapshot(cpu=cpu, cpu_usage=usage, memory=memory, process=process)
