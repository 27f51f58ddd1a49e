"""Parsers for framework-level dumps: ``dumpsys``, ``pm`` and ``getenforce``.

The dump formats are not stable across Android releases. Each parser looks
for a small set of anchors (a line prefix that opens a block, then a few
regex-extracted tokens) and substitutes documented defaults whenever a token
is missing.
"""

from __future__ import annotations

import re
import time
from typing import Iterable

from ..models import (
    ApiCallInfo,
    AppPermissionInfo,
    BinderTransaction,
    ServiceManagerData,
)

BINDER_HISTORY_LIMIT = 50

_CODE_RE = re.compile(r"code (0x[0-9a-fA-F]+|\d+)")
_DEST_RE = re.compile(r"to ([0-9a-fx]+)")
_SIZE_RE = re.compile(r"data: (\d+) bytes")
_CLIENT_RE = re.compile(r"client=([^\s}]+)")
_SERVICE_RE = re.compile(r"ServiceRecord\{\S+\s+(?:u\d+\s+)?([^\s}]+)")
_API_RE = re.compile(
    r"API calls:?\s*(?P<api>[\w.$]+)?"
    r"(?:\s+from\s+(?P<pkg>\S+))?"
    r"(?:\s+took\s+(?P<dur>\d+)\s*ms)?"
)
_PACKAGE_RE = re.compile(r"^\s*Package \[([^\]]+)\]")
_PERMISSION_RE = re.compile(r"^\s*(android\.permission\.[A-Z0-9_]+): granted=(true|false)")

DEFAULT_API_NAME = "android.app.ActivityManager.getRunningAppProcesses"
DEFAULT_API_CALLER = "com.android.settings"
DEFAULT_API_DURATION_MS = 5

# Runtime permissions with protectionLevel=dangerous in the platform manifest.
DANGEROUS_PERMISSIONS = frozenset(
    f"android.permission.{name}"
    for name in (
        "ACCEPT_HANDOVER", "ACCESS_BACKGROUND_LOCATION", "ACCESS_COARSE_LOCATION",
        "ACCESS_FINE_LOCATION", "ACCESS_MEDIA_LOCATION", "ACTIVITY_RECOGNITION",
        "ADD_VOICEMAIL", "ANSWER_PHONE_CALLS", "BLUETOOTH_ADVERTISE",
        "BLUETOOTH_CONNECT", "BLUETOOTH_SCAN", "BODY_SENSORS",
        "BODY_SENSORS_BACKGROUND", "CALL_PHONE", "CAMERA", "GET_ACCOUNTS",
        "NEARBY_WIFI_DEVICES", "POST_NOTIFICATIONS", "PROCESS_OUTGOING_CALLS",
        "READ_CALENDAR", "READ_CALL_LOG", "READ_CONTACTS",
        "READ_EXTERNAL_STORAGE", "READ_MEDIA_AUDIO", "READ_MEDIA_IMAGES",
        "READ_MEDIA_VIDEO", "READ_PHONE_NUMBERS", "READ_PHONE_STATE",
        "READ_SMS", "RECEIVE_MMS", "RECEIVE_SMS", "RECEIVE_WAP_PUSH",
        "RECORD_AUDIO", "SEND_SMS", "USE_SIP", "UWB_RANGING",
        "WRITE_CALENDAR", "WRITE_CALL_LOG", "WRITE_CONTACTS",
        "WRITE_EXTERNAL_STORAGE",
    )
)


def _parse_code(token: str) -> int:
    return int(token, 16) if token.lower().startswith("0x") else int(token)


# ---------------------------------------------------------------------------
# dumpsys binder_txns
# ---------------------------------------------------------------------------

def parse_binder_transactions(
    lines: Iterable[str],
    *,
    now: float | None = None,
    limit: int = BINDER_HISTORY_LIMIT,
) -> list[BinderTransaction]:
    """Extract transactions grouped under ``Process <pid>: <name>`` headers.

    Transaction lines look like
    ``transaction 0x123 to 0x456 code 0x5f (data: 1024 bytes)``. Lines
    without a code, or before any process header, are skipped. Only the
    most recent *limit* transactions are returned.
    """
    timestamp = time.time() if now is None else now
    transactions: list[BinderTransaction] = []
    current_pid = -1
    current_process = ""

    for line in lines:
        stripped = line.strip()
        if stripped.startswith("Process"):
            parts = stripped.split()
            if len(parts) >= 2:
                try:
                    current_pid = int(parts[1].replace(":", ""))
                except ValueError:
                    current_pid = -1
                current_process = parts[2] if len(parts) > 2 else ""
            continue

        if "transaction" not in stripped or current_pid <= 0:
            continue

        code_match = _CODE_RE.search(stripped)
        if code_match is None:
            continue
        dest_match = _DEST_RE.search(stripped)
        size_match = _SIZE_RE.search(stripped)
        transactions.append(BinderTransaction(
            pid=current_pid,
            process=current_process,
            transaction_code=_parse_code(code_match.group(1)),
            destination=dest_match.group(1) if dest_match else "unknown",
            data_size=int(size_match.group(1)) if size_match else 0,
            timestamp=timestamp,
        ))

    return transactions[-limit:] if limit > 0 else transactions


# ---------------------------------------------------------------------------
# dumpsys activity asm
# ---------------------------------------------------------------------------

def parse_api_calls(lines: Iterable[str], *, now: float | None = None) -> list[ApiCallInfo]:
    """One :class:`ApiCallInfo` per line mentioning ``API calls``.

    Recognises ``API calls: <api> from <package> took <n>ms``; any part
    that is absent takes the module defaults.
    """
    timestamp = time.time() if now is None else now
    calls: list[ApiCallInfo] = []
    for line in lines:
        if "API calls" not in line:
            continue
        match = _API_RE.search(line)
        api = pkg = dur = None
        if match is not None:
            api, pkg, dur = match.group("api"), match.group("pkg"), match.group("dur")
        calls.append(ApiCallInfo(
            api_name=api or DEFAULT_API_NAME,
            caller_package=pkg or DEFAULT_API_CALLER,
            timestamp=timestamp,
            duration_ms=int(dur) if dur else DEFAULT_API_DURATION_MS,
        ))
    return calls


# ---------------------------------------------------------------------------
# dumpsys activity services
# ---------------------------------------------------------------------------

def parse_service_records(lines: Iterable[str]) -> ServiceManagerData:
    """Collect service states and client connections.

    A ``* ServiceRecord{<hash> u0 <component>}`` line opens a block. The
    service counts as running when the header mentions ``running`` or the
    block carries an ``app=ProcessRecord{`` line. ``ConnectionRecord{``
    lines with ``client=<pkg>`` attach a client to the open service.
    """
    services: dict[str, str] = {}
    connections: list[tuple[str, str]] = []
    current = ""

    for line in lines:
        if "* ServiceRecord{" in line:
            match = _SERVICE_RE.search(line)
            current = match.group(1) if match else ""
            if current:
                services[current] = "Running" if "running" in line else "Stopped"
        elif "app=ProcessRecord{" in line and current:
            services[current] = "Running"
        elif "ConnectionRecord{" in line and current:
            client = _CLIENT_RE.search(line)
            if client:
                connections.append((client.group(1), current))

    return ServiceManagerData(
        running_services=services,
        service_connections=tuple(connections),
    )


# ---------------------------------------------------------------------------
# dumpsys power
# ---------------------------------------------------------------------------

def parse_screen_on(text: str) -> bool:
    return "mWakefulness=Awake" in text or "Display Power: state=ON" in text


# ---------------------------------------------------------------------------
# dumpsys package / pm list features / getenforce
# ---------------------------------------------------------------------------

def parse_package_permissions(
    lines: Iterable[str],
    *,
    include_system: bool = False,
) -> dict[str, tuple[AppPermissionInfo, ...]]:
    """Map package name to its ``android.permission.*`` grant states.

    System packages (``pkgFlags=[ SYSTEM ...]``) are skipped unless
    *include_system* is set. Packages without platform permissions are
    left out.
    """
    result: dict[str, tuple[AppPermissionInfo, ...]] = {}
    package = ""
    grants: dict[str, bool] = {}
    is_system = False

    def flush() -> None:
        if package and grants and (include_system or not is_system):
            result[package] = tuple(
                AppPermissionInfo(
                    permission_name=name,
                    is_granted=granted,
                    is_protection_dangerous=name in DANGEROUS_PERMISSIONS,
                )
                for name, granted in grants.items()
            )

    for line in lines:
        pkg_match = _PACKAGE_RE.match(line)
        if pkg_match:
            flush()
            package, grants, is_system = pkg_match.group(1), {}, False
            continue
        if not package:
            continue
        if "pkgFlags=[" in line and " SYSTEM " in line:
            is_system = True
            continue
        perm_match = _PERMISSION_RE.match(line)
        if perm_match:
            grants[perm_match.group(1)] = perm_match.group(2) == "true"
    flush()
    return result


def parse_features(lines: Iterable[str]) -> set[str]:
    """``pm list features`` output as a set of bare feature names."""
    features: set[str] = set()
    for line in lines:
        line = line.strip()
        if line.startswith("feature:"):
            features.add(line[len("feature:"):].split("=", 1)[0])
    return features


def parse_selinux(line: str) -> tuple[str, str]:
    """Return ``(status, mode)`` from the first line of ``getenforce``."""
    mode = line.strip()
    if not mode:
        return "Unknown", "Unknown"
    if mode == "Disabled":
        return "Disabled", mode
    return "Enabled", mode
