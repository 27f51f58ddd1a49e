"""Native telemetry provider and its process-wide initialization.

The provider hands back pre-formatted strings exactly as the on-device
native library does: the aggregate ``/proc/stat`` line, the first lines of
``/proc/meminfo``, a ``/proc/<pid>/status`` dump, and JSON documents for
interface counters and the TCP table. Failures are reported in-band as
strings starting with ``Error:``; the parsers treat those as no data.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol

from ..parser.native import encode_network_stats, encode_tcp_connections
from ..parser.proc import parse_net_dev, parse_tcp_table

logger = logging.getLogger(__name__)

MEMINFO_LINES = 5


class TelemetryProvider(Protocol):
    """String interface of the native telemetry provider."""

    def cpu_info(self) -> str: ...

    def mem_info(self) -> str: ...

    def process_info(self, pid: int) -> str: ...

    def network_stats(self) -> str: ...

    def tcp_connections(self) -> str: ...


class ProcfsTelemetryProvider:
    """Default provider reading a procfs tree rooted at *root*."""

    def __init__(self, root: str | Path = "/proc") -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _read(self, *parts: str) -> str | None:
        path = self._root.joinpath(*parts)
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug("Failed to read %s: %s", path, exc)
            return None

    def cpu_info(self) -> str:
        text = self._read("stat")
        if text is None:
            return "Error: Failed to read CPU information"
        return text.splitlines()[0] if text else ""

    def mem_info(self) -> str:
        text = self._read("meminfo")
        if text is None:
            return "Error: Failed to read memory information"
        return "".join(f"{line}\n" for line in text.splitlines()[:MEMINFO_LINES])

    def process_info(self, pid: int) -> str:
        text = self._read(str(pid), "status")
        if text is None:
            return "Error: Process not found or permission denied"
        return text

    def network_stats(self) -> str:
        text = self._read("net", "dev")
        if text is None:
            return "Error: Failed to read network statistics"
        return encode_network_stats(parse_net_dev(text))

    def tcp_connections(self) -> str:
        text = self._read("net", "tcp")
        if text is None:
            return "Error: Failed to read TCP connections"
        return encode_tcp_connections(parse_tcp_table(text))


_init_lock = threading.Lock()
_provider: TelemetryProvider | None = None


def initialize_provider(provider: TelemetryProvider | None = None, *, proc_root: str | Path = "/proc") -> TelemetryProvider:
    """Install the process-wide provider once; later calls return it unchanged."""
    global _provider
    with _init_lock:
        if _provider is None:
            _provider = provider if provider is not None else ProcfsTelemetryProvider(proc_root)
            logger.info("Native telemetry provider initialized (%s)", type(_provider).__name__)
        return _provider


def get_provider() -> TelemetryProvider:
    """Return the provider, initializing the default one on first use."""
    provider = _provider
    if provider is None:
        provider = initialize_provider()
    return provider


def reset_provider() -> None:
    """Forget the installed provider (used by tests)."""
    global _provider
    with _init_lock:
        _provider = None
