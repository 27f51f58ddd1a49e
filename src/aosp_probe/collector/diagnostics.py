"""Process list, memory headroom, screen state and the raw meminfo dump."""

from __future__ import annotations

import logging

import psutil

from ..models import DiagnosticsInfo
from ..parser.dumpsys import parse_screen_on
from .base import BaseCollector
from .executor import CommandRunner

logger = logging.getLogger(__name__)


def running_process_names() -> list[str]:
    """Names of all visible processes, skipping ones that vanish mid-scan."""
    names: list[str] = []
    for proc in psutil.process_iter(["name"]):
        try:
            name = proc.info.get("name")
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
        if name:
            names.append(name)
    return names


class DiagnosticsCollector(BaseCollector[DiagnosticsInfo]):
    """Collects a :class:`DiagnosticsInfo` from psutil and ``dumpsys``."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        super().__init__(runner)

    @property
    def name(self) -> str:
        return "diagnostics"

    def is_empty(self, snapshot: DiagnosticsInfo) -> bool:
        return False

    def collect(self) -> DiagnosticsInfo:
        try:
            processes = running_process_names()
        except OSError as exc:
            logger.debug("Process scan failed: %s", exc)
            processes = []

        try:
            available = f"Available: {psutil.virtual_memory().available // (1024 * 1024)} MB"
        except (OSError, RuntimeError):
            available = "Memory: N/A"

        screen_on = parse_screen_on("\n".join(self.runner.run("dumpsys power")))

        dump = self.runner.run("dumpsys meminfo")
        dumpsys_result = "\n".join(dump) if dump else "Error reading dumpsys: no output"

        return DiagnosticsInfo(
            running_processes=tuple(processes),
            available_memory=available,
            screen_on=screen_on,
            dumpsys_result=dumpsys_result,
        )
