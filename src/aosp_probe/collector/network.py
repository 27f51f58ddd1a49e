"""Interface counters and the TCP connection table."""

from __future__ import annotations

from ..models import InterfaceStats, TcpConnection
from ..parser.native import decode_network_stats, decode_tcp_connections
from .base import BaseCollector
from .native import TelemetryProvider, get_provider


class NetworkStatsCollector(BaseCollector[dict[str, InterfaceStats]]):
    """Per-interface counters, loopback excluded."""

    synthetic_source = "network"

    def __init__(self, provider: TelemetryProvider | None = None) -> None:
        super().__init__()
        self._provider = provider

    @property
    def name(self) -> str:
        return "network"

    def collect(self) -> dict[str, InterfaceStats]:
        provider = self._provider or get_provider()
        return decode_network_stats(provider.network_stats())


class TcpConnectionsCollector(BaseCollector[list[TcpConnection]]):
    """IPv4 TCP sockets with kernel-encoded addresses."""

    synthetic_source = "tcp"

    def __init__(self, provider: TelemetryProvider | None = None) -> None:
        super().__init__()
        self._provider = provider

    @property
    def name(self) -> str:
        return "tcp"

    def collect(self) -> list[TcpConnection]:
        provider = self._provider or get_provider()
        return decode_tcp_connections(provider.tcp_connections())
