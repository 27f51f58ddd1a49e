"""Tail of the system log stream."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Sequence

from .base import BaseCollector
from .executor import CommandExecutor, CommandRunner

logger = logging.getLogger(__name__)

DEFAULT_TAIL_LINES = 200


class LogCollector(BaseCollector[tuple[str, ...]]):
    """Keeps ``logcat`` running and snapshots the newest lines each tick.

    The stream is read by a background thread into a bounded tail, so the
    command is exempt from the runner's per-invocation timeout. It is
    registered with the runner, and :meth:`cancel` therefore kills it. A
    stream that ends on its own (tool missing, device gone) is relaunched
    on the next tick.

    An empty tail is a valid snapshot; there is no placeholder log.
    """

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        command: str | Sequence[str] = "logcat",
        tail_lines: int = DEFAULT_TAIL_LINES,
    ) -> None:
        super().__init__(runner)
        self._command = command
        self._tail: deque[str] = deque(maxlen=tail_lines)
        self._lock = threading.Lock()
        self._reader: threading.Thread | None = None
        self._reader_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "log"

    @property
    def streaming(self) -> bool:
        return self._reader is not None and self._reader.is_alive()

    def is_empty(self, snapshot: tuple[str, ...]) -> bool:
        return False

    def collect(self) -> tuple[str, ...]:
        self._ensure_reader()
        with self._lock:
            return tuple(self._tail)

    def _ensure_reader(self) -> None:
        with self._reader_lock:
            if self.streaming or self.runner.cancelled:
                return
            self._reader = threading.Thread(target=self._read, daemon=True, name="log-reader")
            self._reader.start()

    def _read(self) -> None:
        executor = CommandExecutor(self._command, prefix=self.runner.prefix, owner=self.runner)
        with executor as ex:
            for line in ex.lines():
                with self._lock:
                    self._tail.append(line)
        logger.debug("Log stream %r ended", executor.argv)

    def cancel(self) -> None:
        super().cancel()
        with self._reader_lock:
            reader, self._reader = self._reader, None
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=5.0)

    def resume(self) -> None:
        super().resume()
        with self._lock:
            self._tail.clear()
