"""Collector manager that wires sources to schedulers from configuration."""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..config import SOURCES, ProbeConfig
from .base import BaseCollector
from .bus import DeliveryContext
from .diagnostics import DiagnosticsCollector
from .executor import CommandRunner
from .framework import FrameworkCollector
from .hal import HalCollector
from .log import LogCollector
from .monitor import NativeMonitorCollector
from .native import TelemetryProvider, initialize_provider
from .network import NetworkStatsCollector, TcpConnectionsCollector
from .scheduler import CollectorScheduler
from .security import SecurityCollector
from .system import SystemInfoCollector

logger = logging.getLogger(__name__)


def build_collector(
    name: str,
    config: ProbeConfig,
    provider: TelemetryProvider | None = None,
) -> BaseCollector[Any]:
    """Create a fresh collector for source *name*.

    A fresh collector has fresh state: its CPU tracker starts over.
    """
    timeout = config.executor.command_timeout_seconds or None
    runner = CommandRunner(prefix=config.executor.shell_prefix, timeout=timeout)

    if name == "system":
        return SystemInfoCollector(provider, runner)
    if name == "diagnostics":
        return DiagnosticsCollector(runner)
    if name == "security":
        return SecurityCollector(runner)
    if name == "framework":
        return FrameworkCollector(runner)
    if name == "hal":
        return HalCollector(runner)
    if name == "monitor":
        return NativeMonitorCollector(provider, pid=config.native.pid)
    if name == "network":
        return NetworkStatsCollector(provider)
    if name == "tcp":
        return TcpConnectionsCollector(provider)
    if name == "log":
        return LogCollector(runner)
    raise ValueError(f"Unknown source {name!r}; expected one of {', '.join(SOURCES)}")


class CollectorManager:
    """Owns one scheduler per subscribed source.

    Instantiate with a :class:`ProbeConfig`, register a callback per source
    via :meth:`subscribe`, then call :meth:`start` / :meth:`stop`. Sources
    disabled in the configuration are never started.
    """

    def __init__(
        self,
        config: ProbeConfig,
        *,
        provider: TelemetryProvider | None = None,
        context: DeliveryContext | None = None,
    ) -> None:
        self._config = config
        self._provider = provider or initialize_provider(proc_root=config.native.proc_root)
        self._context = context
        self._schedulers: dict[str, CollectorScheduler[Any]] = {}

    @property
    def schedulers(self) -> dict[str, CollectorScheduler[Any]]:
        return dict(self._schedulers)

    def subscribe(self, source: str, callback: Callable[[Any], None]) -> CollectorScheduler[Any]:
        """Attach *callback* to *source*, replacing any earlier subscription."""
        previous = self._schedulers.pop(source, None)
        if previous is not None:
            previous.stop()
        scheduler: CollectorScheduler[Any] = CollectorScheduler(
            build_collector(source, self._config, self._provider),
            callback,
            self._config.collector(source).interval_seconds,
            context=self._context,
        )
        self._schedulers[source] = scheduler
        return scheduler

    def unsubscribe(self, source: str) -> None:
        scheduler = self._schedulers.pop(source, None)
        if scheduler is not None:
            scheduler.stop()

    def collect_once(self, source: str) -> Any:
        """Run one cycle of *source* with a throwaway collector."""
        scheduler = self._schedulers.get(source)
        if scheduler is not None:
            return scheduler.collect_once()
        collector = build_collector(source, self._config, self._provider)
        try:
            return CollectorScheduler(collector, lambda _snapshot: None, 0).collect_once()
        finally:
            # kills anything the throwaway collector left running
            collector.cancel()

    def start(self) -> None:
        """Start every subscribed, enabled source."""
        for name, scheduler in self._schedulers.items():
            if not self._config.collector(name).enabled:
                logger.info("Collector %s disabled, not starting", name)
                continue
            scheduler.start()

    def stop(self) -> None:
        for scheduler in self._schedulers.values():
            scheduler.stop()
        logger.info("CollectorManager stopped")
