"""Typed decoding of the native provider's JSON payloads.

Each payload is checked against a fixed schema. A field that is missing or
of the wrong type takes its default; a payload that is not valid JSON, or
not the expected container, decodes to an empty result.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import fields
from typing import Any

from ..models import InterfaceStats, TcpConnection

logger = logging.getLogger(__name__)

INTERFACE_FIELDS = tuple(f.name for f in fields(InterfaceStats))


def _load(payload: str) -> Any:
    try:
        return json.loads(payload)
    except (json.JSONDecodeError, TypeError):
        logger.debug("Undecodable native payload: %.60r", payload)
        return None


def _int_field(obj: dict[str, Any], key: str) -> int:
    value = obj.get(key, 0)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # json.loads accepts Infinity, NaN and overflowing literals
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return 0
    return 0


def decode_network_stats(payload: str) -> dict[str, InterfaceStats]:
    """Decode ``{"wlan0": {"rx_bytes": ..., ...}, ...}``."""
    data = _load(payload)
    if not isinstance(data, dict):
        return {}
    stats: dict[str, InterfaceStats] = {}
    for name, entry in data.items():
        if not isinstance(entry, dict):
            continue
        stats[str(name)] = InterfaceStats(
            **{key: _int_field(entry, key) for key in INTERFACE_FIELDS}
        )
    return stats


def decode_tcp_connections(payload: str) -> list[TcpConnection]:
    """Decode ``[{"local_address": ..., "remote_address": ..., "status": ..., "uid": ...}]``."""
    data = _load(payload)
    if not isinstance(data, list):
        return []
    connections: list[TcpConnection] = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        connections.append(TcpConnection(
            local_address=str(entry.get("local_address", "")),
            remote_address=str(entry.get("remote_address", "")),
            status=str(entry.get("status", "")),
            uid=_int_field(entry, "uid"),
        ))
    return connections


def encode_network_stats(stats: dict[str, InterfaceStats]) -> str:
    return json.dumps({
        name: {key: getattr(s, key) for key in INTERFACE_FIELDS}
        for name, s in stats.items()
    })


def encode_tcp_connections(connections: list[TcpConnection]) -> str:
    return json.dumps([
        {
            "local_address": c.local_address,
            "remote_address": c.remote_address,
            "status": c.status,
            "uid": c.uid,
        }
        for c in connections
    ])
