"""Configuration loading and validation for aosp_probe."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Source name -> default poll interval in seconds.
DEFAULT_INTERVALS: dict[str, float] = {
    "system": 1.0,
    "diagnostics": 2.0,
    "framework": 2.0,
    "security": 5.0,
    "hal": 5.0,
    "monitor": 1.0,
    "network": 3.0,
    "tcp": 3.0,
    "log": 1.0,
}

SOURCES = tuple(DEFAULT_INTERVALS)


@dataclass
class CollectorConfig:
    """Scheduling settings for one source."""

    enabled: bool = True
    interval_seconds: float = 2.0


@dataclass
class ExecutorConfig:
    """External command settings.

    ``command_timeout_seconds`` of 0 bounds each command by its collector's
    poll interval. ``shell_prefix`` is prepended to every command, e.g.
    ``["adb", "shell"]`` to probe a tethered device from a workstation.
    """

    command_timeout_seconds: float = 0.0
    shell_prefix: list[str] = field(default_factory=list)


@dataclass
class NativeConfig:
    """Native telemetry provider settings."""

    proc_root: str = "/proc"
    pid: int = 0


def _default_collectors() -> dict[str, CollectorConfig]:
    return {
        name: CollectorConfig(interval_seconds=interval)
        for name, interval in DEFAULT_INTERVALS.items()
    }


@dataclass
class ProbeConfig:
    """Top-level aosp_probe configuration."""

    collectors: dict[str, CollectorConfig] = field(default_factory=_default_collectors)
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    native: NativeConfig = field(default_factory=NativeConfig)

    def collector(self, name: str) -> CollectorConfig:
        return self.collectors.get(name) or CollectorConfig(
            interval_seconds=DEFAULT_INTERVALS.get(name, 2.0)
        )


def _merge_dict(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *source* into *target*."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_dict(target[key], value)
        else:
            target[key] = value
    return target


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using AOSP_PROBE_ prefix."""
    env_map: dict[str, tuple[str, ...]] = {
        "AOSP_PROBE_PROC_ROOT": ("native", "proc_root"),
        "AOSP_PROBE_PID": ("native", "pid"),
        "AOSP_PROBE_COMMAND_TIMEOUT": ("executor", "command_timeout_seconds"),
        "AOSP_PROBE_SHELL_PREFIX": ("executor", "shell_prefix"),
    }
    for source in SOURCES:
        env_map[f"AOSP_PROBE_{source.upper()}_INTERVAL"] = ("collectors", source, "interval_seconds")

    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        obj = data
        for part in path[:-1]:
            obj = obj.setdefault(part, {})
        final_key = path[-1]
        # coerce typed values
        if final_key in ("interval_seconds", "command_timeout_seconds"):
            obj[final_key] = float(value)
        elif final_key == "pid":
            obj[final_key] = int(value)
        elif final_key == "shell_prefix":
            obj[final_key] = shlex.split(value)
        else:
            obj[final_key] = value
    return data


def _dict_to_config(data: dict[str, Any]) -> ProbeConfig:
    """Convert a raw dictionary to a ProbeConfig dataclass."""
    collectors = _default_collectors()
    for name, entry in (data.get("collectors") or {}).items():
        if not isinstance(entry, dict):
            continue
        base = collectors.get(name, CollectorConfig())
        collectors[name] = CollectorConfig(**{
            **base.__dict__,
            **{k: v for k, v in entry.items() if k in CollectorConfig.__dataclass_fields__},
        })

    executor_data = data.get("executor", {})
    native_data = data.get("native", {})
    executor = ExecutorConfig(**{
        k: v for k, v in executor_data.items()
        if k in ExecutorConfig.__dataclass_fields__
    })
    if isinstance(executor.shell_prefix, str):
        executor.shell_prefix = shlex.split(executor.shell_prefix)

    return ProbeConfig(
        collectors=collectors,
        executor=executor,
        native=NativeConfig(**{
            k: v for k, v in native_data.items()
            if k in NativeConfig.__dataclass_fields__
        }),
    )


def load_config(path: str | Path | None = None, overrides: dict[str, Any] | None = None) -> ProbeConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``aosp_probe.yaml`` in the current directory if *path* is None.
    *overrides* are merged over the file before environment variables.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("aosp_probe.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    if overrides:
        _merge_dict(data, overrides)
    data = _apply_env_overrides(data)
    return _dict_to_config(data)
