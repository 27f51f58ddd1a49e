"""Parsers for procfs pseudo-files and the strings the native provider returns.

Every function here is tolerant: malformed tokens degrade to zero or are
skipped, and nothing raises on unexpected input.
"""

from __future__ import annotations

import logging
from typing import Iterable

from ..models import InterfaceStats, TcpConnection

logger = logging.getLogger(__name__)

CPU_FIELDS = ("user", "nice", "system", "idle", "iowait", "irq", "softirq")

# st column of /proc/net/tcp, see include/net/tcp_states.h
TCP_STATES = {
    "01": "ESTABLISHED",
    "02": "SYN_SENT",
    "03": "SYN_RECV",
    "04": "FIN_WAIT1",
    "05": "FIN_WAIT2",
    "06": "TIME_WAIT",
    "07": "CLOSE",
    "08": "CLOSE_WAIT",
    "09": "LAST_ACK",
    "0A": "LISTEN",
    "0B": "CLOSING",
    "0C": "NEW_SYN_RECV",
}


def _to_int(token: str) -> int:
    try:
        return int(token)
    except ValueError:
        return 0


def parse_cpu_stat(line: str) -> dict[str, int]:
    """Parse the aggregate ``cpu`` line of ``/proc/stat``.

    Returns an empty dict when fewer than seven counters follow the label.
    """
    tokens = line.split()
    if len(tokens) < len(CPU_FIELDS) + 1:
        return {}
    return {name: _to_int(tok) for name, tok in zip(CPU_FIELDS, tokens[1:])}


def cpu_totals(fields: dict[str, int]) -> tuple[int, int]:
    """Return ``(total, idle)`` for :class:`CpuUsageTracker`.

    The total covers user, nice, system and idle time only.
    """
    total = sum(fields.get(k, 0) for k in ("user", "nice", "system", "idle"))
    return total, fields.get("idle", 0)


def parse_key_value(text: str | Iterable[str], *, numeric: bool = True) -> dict[str, int | str]:
    """Parse ``key: value[ unit]`` lines such as ``/proc/meminfo``.

    The first colon splits key from value. With *numeric* set, a value
    whose first token is an integer is stored as that integer and any
    unit is dropped; other values are kept as the stripped string.
    """
    lines = text.splitlines() if isinstance(text, str) else text
    result: dict[str, int | str] = {}
    for line in lines:
        if not line.strip():
            continue
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            continue
        value = value.strip()
        if numeric:
            first = value.split(maxsplit=1)[0] if value else ""
            try:
                result[key] = int(first)
                continue
            except ValueError:
                pass
        result[key] = value
    return result


def parse_meminfo(text: str) -> dict[str, int]:
    """Numeric-only view of ``/proc/meminfo``; non-numeric values become 0."""
    return {
        key: value if isinstance(value, int) else 0
        for key, value in parse_key_value(text).items()
    }


def parse_process_status(text: str) -> dict[str, str]:
    """``/proc/<pid>/status`` as raw strings, e.g. ``{"State": "S (sleeping)"}``."""
    return {k: str(v) for k, v in parse_key_value(text, numeric=False).items()}


def parse_net_dev(text: str) -> dict[str, InterfaceStats]:
    """Parse ``/proc/net/dev``, skipping the two header lines and ``lo``."""
    stats: dict[str, InterfaceStats] = {}
    for line in text.splitlines()[2:]:
        name, sep, rest = line.partition(":")
        name = name.strip()
        if not sep or not name or name == "lo":
            continue
        values = [_to_int(tok) for tok in rest.split()]
        if len(values) < 12:
            logger.debug("Short /proc/net/dev row for %s", name)
            values += [0] * (12 - len(values))
        stats[name] = InterfaceStats(
            rx_bytes=values[0],
            rx_packets=values[1],
            rx_errors=values[2],
            rx_dropped=values[3],
            tx_bytes=values[8],
            tx_packets=values[9],
            tx_errors=values[10],
            tx_dropped=values[11],
        )
    return stats


def parse_tcp_table(text: str) -> list[TcpConnection]:
    """Parse ``/proc/net/tcp`` rows, keeping addresses kernel-encoded."""
    connections: list[TcpConnection] = []
    for line in text.splitlines():
        tokens = line.split()
        # header row starts with "sl"; data rows start with "N:"
        if len(tokens) < 8 or not tokens[0].endswith(":"):
            continue
        connections.append(TcpConnection(
            local_address=tokens[1],
            remote_address=tokens[2],
            status=TCP_STATES.get(tokens[3].upper(), "UNKNOWN"),
            uid=_to_int(tokens[7]),
        ))
    return connections
