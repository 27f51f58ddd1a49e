"""Base interface for diagnostic source collectors."""

from __future__ import annotations

import abc
from typing import Generic, TypeVar

from .executor import CommandRunner
from .synthetic import SyntheticDataProvider

T = TypeVar("T")


class BaseCollector(abc.ABC, Generic[T]):
    """One diagnostic source: how to collect it and what to show if it is empty.

    A collector owns a :class:`CommandRunner` so that a scheduler can kill
    any command it has in flight. Collectors keep per-instance state (the
    CPU tracker for example) and are driven by a single polling thread.
    """

    #: key into :class:`SyntheticDataProvider`, ``None`` if the source has no placeholder
    synthetic_source: str | None = None

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner if runner is not None else CommandRunner()

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Source name used in configuration and output."""

    @abc.abstractmethod
    def collect(self) -> T:
        """Run one collection cycle against the real source."""

    def is_empty(self, snapshot: T) -> bool:
        return not snapshot

    def fallback(self) -> T:
        if self.synthetic_source is None:
            raise LookupError(f"{self.name} has no synthetic dataset")
        return SyntheticDataProvider.fallback_for(self.synthetic_source)

    def has_fallback(self) -> bool:
        return self.synthetic_source is not None

    def cancel(self) -> None:
        """Kill in-flight commands and refuse new ones."""
        self.runner.cancel()

    def resume(self) -> None:
        self.runner.reset()
