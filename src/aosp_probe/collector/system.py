"""Headline device status: CPU, memory, battery and connectivity."""

from __future__ import annotations

import logging

import psutil

from ..models import SystemInfo
from ..parser.proc import cpu_totals, parse_cpu_stat
from .base import BaseCollector
from .cpu import CpuUsageTracker, format_cpu_usage
from .executor import CommandRunner
from .native import TelemetryProvider, get_provider

logger = logging.getLogger(__name__)

# Interface name prefixes by transport, checked in order.
TRANSPORT_PREFIXES = (
    ("WIFI", ("wlan", "wifi", "swlan")),
    ("Cellular", ("rmnet", "ccmni", "wwan", "radio", "seth")),
    ("Ethernet", ("eth", "en")),
)


def classify_transport(names: list[str]) -> str:
    """Pick the connectivity label for the set of interfaces that are up."""
    for label, prefixes in TRANSPORT_PREFIXES:
        if any(name.startswith(prefixes) for name in names):
            return f"Connected: {label}"
    return "Connected: Other" if names else "Not connected"


class SystemInfoCollector(BaseCollector[SystemInfo]):
    """Collects a :class:`SystemInfo` once per tick.

    CPU usage is the delta between this tick's ``/proc/stat`` sample and
    the previous one, so the first tick always reports ``CPU: N/A``.
    """

    def __init__(
        self,
        provider: TelemetryProvider | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        super().__init__(runner)
        self._provider = provider
        self._tracker = CpuUsageTracker()

    @property
    def name(self) -> str:
        return "system"

    def is_empty(self, snapshot: SystemInfo) -> bool:
        return False

    def collect(self) -> SystemInfo:
        return SystemInfo(
            cpu_usage=self._read_cpu_usage(),
            memory_usage=self._read_memory(),
            battery_status=self._read_battery(),
            network_status=self._read_network(),
        )

    def _read_cpu_usage(self) -> str:
        provider = self._provider or get_provider()
        fields = parse_cpu_stat(provider.cpu_info())
        if len(fields) < 4:
            return format_cpu_usage(None)
        total, idle = cpu_totals(fields)
        return format_cpu_usage(self._tracker.update(total, idle))

    def _read_memory(self) -> str:
        try:
            available = psutil.virtual_memory().available
        except (OSError, RuntimeError) as exc:
            logger.debug("virtual_memory unavailable: %s", exc)
            return "Memory: N/A"
        return f"Available Memory: {available // (1024 * 1024)} MB"

    def _read_battery(self) -> str:
        try:
            battery = psutil.sensors_battery()
        except (OSError, RuntimeError, AttributeError) as exc:
            logger.debug("sensors_battery unavailable: %s", exc)
            battery = None
        if battery is None:
            return "Battery: N/A"
        return f"Battery: {int(battery.percent)}%"

    def _read_network(self) -> str:
        try:
            stats = psutil.net_if_stats()
        except OSError as exc:
            logger.debug("net_if_stats unavailable: %s", exc)
            return "Network: N/A"
        up = sorted(name for name, st in stats.items() if st.isup and name != "lo")
        return classify_transport(up)
