"""Periodic runner that drives one collector and delivers its snapshots."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

from .base import BaseCollector
from .bus import DeliveryContext, SnapshotBus

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CollectorScheduler(Generic[T]):
    """Runs a collector on a background thread at a fixed interval.

    Each tick collects, substitutes the synthetic fallback when the result
    is empty, and publishes to a :class:`SnapshotBus`. A failing tick is
    logged and the loop carries on at the next one, since individual
    sources are expected to fail intermittently.

    ``start`` is idempotent. ``stop`` kills the collector's in-flight
    commands, waits for the loop to leave its current step and closes the
    bus, so no delivery happens after it returns.

    Unless the collector's runner already has one, each command is bounded
    by the poll interval and killed on overrun.
    """

    def __init__(
        self,
        collector: BaseCollector[T],
        callback: Callable[[T], None],
        interval_seconds: float = 2.0,
        *,
        context: DeliveryContext | None = None,
    ) -> None:
        self._collector = collector
        self._bus: SnapshotBus[T] = SnapshotBus(callback, context)
        self._interval = interval_seconds
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        if collector.runner.timeout is None and interval_seconds > 0:
            collector.runner.timeout = interval_seconds

    @property
    def name(self) -> str:
        return self._collector.name

    @property
    def collector(self) -> BaseCollector[T]:
        return self._collector

    @property
    def bus(self) -> SnapshotBus[T]:
        return self._bus

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def collect_once(self) -> T:
        """Run one cycle synchronously, fallback included, without delivering."""
        snapshot = self._collector.collect()
        if self._collector.is_empty(snapshot) and self._collector.has_fallback():
            logger.debug("Collector %s returned no data, using synthetic fallback", self.name)
            snapshot = self._collector.fallback()
        return snapshot

    def _run(self, stop_event: threading.Event) -> None:
        """Background thread loop."""
        while not stop_event.is_set():
            try:
                snapshot = self.collect_once()
                if not stop_event.is_set():
                    self._bus.publish(snapshot)
            except Exception:
                logger.exception("Collector %s failed", self.name)
            stop_event.wait(self._interval)

    def start(self) -> None:
        """Start polling in the background; no-op if already running."""
        with self._lock:
            if self.is_running:
                return
            # a fresh event per run so a straggling old loop stays stopped
            self._stop_event = threading.Event()
            self._collector.resume()
            self._bus.open()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                daemon=True,
                name=f"collector-{self.name}",
            )
            self._thread.start()
        logger.info("Collector %s started (interval=%.1fs)", self.name, self._interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop polling and release any running command."""
        with self._lock:
            self._stop_event.set()
            self._collector.cancel()
            thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Collector %s did not stop within %.1fs", self.name, timeout or 0)
        self._bus.close()
        logger.info("Collector %s stopped", self.name)
