"""Parsers for HAL tooling: ``lshal``, ``service list`` and VNDK properties."""

from __future__ import annotations

import re
from typing import Iterable

from ..models import HalInterface, HwService

_VERSION_RE = re.compile(r"\d+\.\d+")

DEFAULT_SERVER = "system_server"
DEFAULT_CLIENTS = ("com.android.systemui", "com.android.settings")


def classify_interface(name: str) -> str:
    """HIDL names carry an ``@<version>`` token; AIDL names do not."""
    return "HIDL" if "@" in name else "AIDL"


def parse_lshal(lines: Iterable[str]) -> list[HalInterface]:
    """Parse the ``lshal`` table.

    Rows before the header (the line naming both ``Interface`` and
    ``Transport``) are ignored. Each row needs at least five columns; the
    first is the fully qualified name and the third the implementation.
    """
    interfaces: list[HalInterface] = []
    in_table = False
    for line in lines:
        if not in_table:
            if "Interface" in line and "Transport" in line:
                in_table = True
            continue

        parts = line.split()
        if len(parts) < 5:
            continue
        name = parts[0]
        version = _VERSION_RE.search(name)
        interfaces.append(HalInterface(
            name=name,
            version=version.group(0) if version else "Unknown",
            type=classify_interface(name),
            implementation=parts[2],
            status="Running" if "running" in parts[-1] else "Stopped",
        ))
    return interfaces


def parse_service_list(lines: Iterable[str]) -> list[HwService]:
    """Parse ``service list`` rows such as ``12\\tpower: [android.os.IPowerManager]``.

    ``service list`` does not report hosting process or clients, so those
    take the defaults.
    """
    services: list[HwService] = []
    for line in lines:
        if ": [" not in line:
            continue
        head = line.split(": [", 1)[0].strip()
        # drop the leading index column
        name = head.split(None, 1)[-1] if head[:1].isdigit() else head
        if not name:
            continue
        services.append(HwService(
            name=name,
            server=DEFAULT_SERVER,
            clients=DEFAULT_CLIENTS,
        ))
    return services


def parse_vndk_version(line: str) -> str:
    version = line.strip()
    return version or "Unknown"
