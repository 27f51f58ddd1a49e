"""Scoped execution of external diagnostic commands.

A :class:`CommandExecutor` owns exactly one child process and guarantees it
is killed and reaped when the ``with`` block exits, whatever the reason:
normal completion, a parser exception, a timeout, or cancellation from
another thread through :meth:`CommandRunner.cancel`.

Commands that cannot be launched (tool missing, permission denied) produce
no output rather than an exception, so the calling collector falls back to
its synthetic dataset.
"""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import threading
from typing import Iterator, Sequence

logger = logging.getLogger(__name__)


def _to_argv(command: str | Sequence[str]) -> list[str]:
    if isinstance(command, str):
        return shlex.split(command)
    return list(command)


class CommandExecutor:
    """Runs one command and exposes its stdout as a sequence of lines."""

    def __init__(
        self,
        command: str | Sequence[str],
        *,
        timeout: float | None = None,
        prefix: Sequence[str] = (),
        owner: CommandRunner | None = None,
    ) -> None:
        self._argv = [*prefix, *_to_argv(command)]
        self._timeout = timeout
        self._owner = owner
        self._proc: subprocess.Popen[str] | None = None
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self.timed_out = False

    @property
    def argv(self) -> list[str]:
        return list(self._argv)

    @property
    def running(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def __enter__(self) -> CommandExecutor:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self) -> None:
        """Launch the process. A launch failure leaves the executor empty."""
        if self._owner is not None and not self._owner.register(self):
            logger.debug("Runner cancelled, not starting %s", self._argv[0] if self._argv else "")
            return
        try:
            self._proc = subprocess.Popen(
                self._argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                errors="replace",
                # own process group so a kill reaches shell-spawned children
                start_new_session=True,
            )
        except (OSError, ValueError) as exc:
            logger.debug("Command %r unavailable: %s", " ".join(self._argv), exc)
            self._proc = None
            return

        if self._owner is not None and self._owner.cancelled:
            # cancelled while launching
            self.terminate()
            return
        if self._timeout:
            self._timer = threading.Timer(self._timeout, self._on_timeout)
            self._timer.daemon = True
            self._timer.start()

    def lines(self) -> Iterator[str]:
        """Yield stdout lines without their trailing newline.

        Iteration ends early if the process is killed; a partially read
        line may be lost.
        """
        if self._proc is None or self._proc.stdout is None:
            return
        try:
            for line in self._proc.stdout:
                yield line.rstrip("\r\n")
        except (OSError, ValueError):
            # stdout closed by close() on another thread
            return

    def read_text(self) -> str:
        return "\n".join(self.lines())

    def first_line(self) -> str:
        for line in self.lines():
            return line
        return ""

    def _on_timeout(self) -> None:
        if self.running:
            self.timed_out = True
            logger.warning(
                "Command %r exceeded %.1fs, killing it",
                " ".join(self._argv),
                self._timeout,
            )
        self.terminate()

    def terminate(self) -> None:
        """Kill the process and everything it spawned. Safe from any thread."""
        with self._lock:
            if self._proc is None:
                return
            try:
                os.killpg(self._proc.pid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                # group already gone
                pass
            if self._proc.poll() is None:
                self._proc.kill()

    def close(self) -> None:
        """Release the process: cancel the watchdog, kill, reap."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        proc = self._proc
        if proc is not None:
            self.terminate()
            if proc.stdout is not None:
                proc.stdout.close()
            proc.wait()
        if self._owner is not None:
            self._owner.unregister(self)


class CommandRunner:
    """Factory for executors that share a prefix, a timeout and a kill switch.

    Each collector owns one runner. :meth:`cancel` kills every live
    process and refuses new launches until :meth:`reset` is called.
    """

    def __init__(
        self,
        prefix: Sequence[str] = (),
        timeout: float | None = None,
    ) -> None:
        self.prefix = tuple(prefix)
        self.timeout = timeout
        self._live: set[CommandExecutor] = set()
        self._lock = threading.Lock()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def executor(self, command: str | Sequence[str]) -> CommandExecutor:
        return CommandExecutor(
            command,
            timeout=self.timeout,
            prefix=self.prefix,
            owner=self,
        )

    def run(self, command: str | Sequence[str]) -> list[str]:
        """Run *command* to completion and return its stdout lines."""
        with self.executor(command) as ex:
            return list(ex.lines())

    def first_line(self, command: str | Sequence[str]) -> str:
        with self.executor(command) as ex:
            return ex.first_line()

    def register(self, executor: CommandExecutor) -> bool:
        with self._lock:
            if self._cancelled:
                return False
            self._live.add(executor)
            return True

    def unregister(self, executor: CommandExecutor) -> None:
        with self._lock:
            self._live.discard(executor)

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._live)

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            live = list(self._live)
        for executor in live:
            executor.terminate()

    def reset(self) -> None:
        with self._lock:
            self._cancelled = False


def run_command(command: str | Sequence[str], timeout: float | None = None) -> list[str]:
    """Run a one-off command and return its stdout lines."""
    with CommandExecutor(command, timeout=timeout) as ex:
        return list(ex.lines())
