"""Latest-value delivery of snapshots from a polling thread to a consumer.

A :class:`SnapshotBus` connects one collector to one callback. Publishing
overwrites whatever is still waiting: there is no queue and no
backpressure, so a slow consumer only ever sees the newest snapshot.
Callbacks run on a :class:`DeliveryContext`, a single dedicated thread
shared by all buses unless one is given explicitly.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DeliveryContext:
    """A single-threaded executor on which snapshot callbacks run."""

    def __init__(self, name: str = "snapshot-delivery") -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._ident: int | None = None

    def submit(self, fn: Callable[[], None]) -> Future[None]:
        return self._executor.submit(self._run, fn)

    def _run(self, fn: Callable[[], None]) -> None:
        self._ident = threading.get_ident()
        fn()

    def in_context(self) -> bool:
        """True when called from the delivery thread itself."""
        return self._ident == threading.get_ident()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_default_lock = threading.Lock()
_default_context: DeliveryContext | None = None


def default_context() -> DeliveryContext:
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = DeliveryContext()
        return _default_context


class SnapshotBus(Generic[T]):
    """Single-slot, overwrite-on-publish channel to one callback."""

    def __init__(
        self,
        callback: Callable[[T], None],
        context: DeliveryContext | None = None,
    ) -> None:
        self._callback = callback
        self._context = context if context is not None else default_context()
        self._lock = threading.Lock()
        # held for the duration of a callback so close() can wait it out
        self._delivery_lock = threading.Lock()
        self._pending: T | None = None
        self._has_pending = False
        self._scheduled = False
        self._closed = False
        self._latest: T | None = None
        self._delivered = 0

    @property
    def latest(self) -> T | None:
        """The most recently delivered snapshot."""
        return self._latest

    @property
    def delivered_count(self) -> int:
        return self._delivered

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, snapshot: T) -> bool:
        """Replace the pending snapshot. Returns False once the bus is closed."""
        with self._lock:
            if self._closed:
                return False
            self._pending = snapshot
            self._has_pending = True
            if self._scheduled:
                return True
            self._scheduled = True
        try:
            self._context.submit(self._drain)
        except RuntimeError:
            logger.warning("Delivery context is shut down, dropping snapshot")
            with self._lock:
                self._scheduled = False
            return False
        return True

    def _drain(self) -> None:
        with self._delivery_lock:
            with self._lock:
                self._scheduled = False
                if self._closed or not self._has_pending:
                    return
                snapshot = self._pending
                self._pending = None
                self._has_pending = False
            try:
                self._callback(snapshot)  # type: ignore[arg-type]
            except Exception:
                logger.exception("Snapshot callback failed")
            self._latest = snapshot
            self._delivered += 1

    def open(self) -> None:
        with self._lock:
            self._closed = False

    def close(self) -> None:
        """Drop anything pending and wait for an in-flight callback to finish."""
        with self._lock:
            self._closed = True
            self._pending = None
            self._has_pending = False
        if not self._context.in_context():
            with self._delivery_lock:
                pass
