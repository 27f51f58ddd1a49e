"""Shared fixtures: canned command output and a fake procfs tree."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from aosp_probe.collector import native
from aosp_probe.collector.executor import CommandRunner

PROC_STAT = (
    "cpu  4705 356 584 3699 23 23 0 0 0 0\n"
    "cpu0 1393 280 228 1056 3 2 0 0 0 0\n"
    "intr 114930548 113199788 3 0 5 263 0 4 [... lots more numbers ...]\n"
)

PROC_MEMINFO = (
    "MemTotal:        3903488 kB\n"
    "MemFree:          102400 kB\n"
    "MemAvailable:    1536000 kB\n"
    "Buffers:           12344 kB\n"
    "Cached:           987654 kB\n"
    "SwapCached:            0 kB\n"
)

PROC_STATUS = (
    "Name:\tcom.aoscoremonitor\n"
    "State:\tS (sleeping)\n"
    "Tgid:\t4242\n"
    "Pid:\t4242\n"
    "VmRSS:\t  81234 kB\n"
)

PROC_NET_DEV = (
    "Inter-|   Receive                                                |  Transmit\n"
    " face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed\n"
    "    lo:   12345     100    0    0    0     0          0         0    12345     100    0    0    0     0       0          0\n"
    " wlan0: 52428800   1500    2    0    0     0          0         0 10485760     800    0    1    0     0       0          0\n"
    "rmnet0: 1024       10      0    0    0     0          0         0 2048          20    0    0    0     0       0          0\n"
)

PROC_NET_TCP = (
    "  sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode\n"
    "   0: 0100007F:1F90 00000000:0000 0A 00000000:00000000 00:00000000 00000000  1000        0 12345 1 0000000000000000 100 0 0 10 0\n"
    "   1: 0F02000A:A2C4 5DB8D822:01BB 01 00000000:00000000 00:00000000 00000000 10123        0 23456 1 0000000000000000 20 4 30 10 -1\n"
)


class FakeRunner(CommandRunner):
    """CommandRunner returning canned output keyed by command string."""

    def __init__(self, outputs: dict[str, str] | None = None) -> None:
        super().__init__()
        self.outputs = outputs or {}
        self.calls: list[str] = []

    def run(self, command: str | Sequence[str]) -> list[str]:
        key = command if isinstance(command, str) else " ".join(command)
        self.calls.append(key)
        return self.outputs.get(key, "").splitlines()

    def first_line(self, command: str | Sequence[str]) -> str:
        lines = self.run(command)
        return lines[0] if lines else ""


class StaticProvider:
    """TelemetryProvider serving fixed strings."""

    def __init__(self, **payloads: str) -> None:
        self.payloads = payloads
        self.pids: list[int] = []

    def cpu_info(self) -> str:
        return self.payloads.get("cpu", "")

    def mem_info(self) -> str:
        return self.payloads.get("mem", "")

    def process_info(self, pid: int) -> str:
        self.pids.append(pid)
        return self.payloads.get("process", "")

    def network_stats(self) -> str:
        return self.payloads.get("network", "")

    def tcp_connections(self) -> str:
        return self.payloads.get("tcp", "")


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    root = tmp_path / "proc"
    (root / "net").mkdir(parents=True)
    (root / "4242").mkdir()
    (root / "stat").write_text(PROC_STAT)
    (root / "meminfo").write_text(PROC_MEMINFO)
    (root / "4242" / "status").write_text(PROC_STATUS)
    (root / "net" / "dev").write_text(PROC_NET_DEV)
    (root / "net" / "tcp").write_text(PROC_NET_TCP)
    return root


@pytest.fixture(autouse=True)
def _reset_provider():
    native.reset_provider()
    yield
    native.reset_provider()
