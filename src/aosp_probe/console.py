"""Rich rendering of snapshots for the developer console."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .collector.synthetic import SyntheticDataProvider
from .models import InterfaceStats, TcpConnection


def _cell(value: Any) -> str:
    if isinstance(value, (tuple, list)):
        if len(value) > 8:
            return ", ".join(map(str, value[:8])) + f" … (+{len(value) - 8})"
        return ", ".join(map(str, value))
    if isinstance(value, dict):
        return f"{len(value)} entries"
    text = str(value)
    return text if len(text) <= 120 else text[:117] + "..."


def network_table(stats: dict[str, InterfaceStats]) -> Table:
    title = "Network Interfaces"
    if SyntheticDataProvider.is_synthetic("network", stats):
        title += " (sample data)"
    table = Table(title=title, show_lines=False)
    table.add_column("Interface", style="cyan")
    table.add_column("RX", justify="right", style="green")
    table.add_column("RX pkts", justify="right")
    table.add_column("RX err/drop", justify="right")
    table.add_column("TX", justify="right", style="magenta")
    table.add_column("TX pkts", justify="right")
    table.add_column("TX err/drop", justify="right")
    for name, s in sorted(stats.items()):
        table.add_row(
            name,
            s.formatted_rx_bytes,
            str(s.rx_packets),
            f"{s.rx_errors}/{s.rx_dropped}",
            s.formatted_tx_bytes,
            str(s.tx_packets),
            f"{s.tx_errors}/{s.tx_dropped}",
        )
    return table


def tcp_table(connections: list[TcpConnection]) -> Table:
    established = sum(1 for c in connections if c.status == "ESTABLISHED")
    listening = sum(1 for c in connections if c.status == "LISTEN")
    waiting = sum(1 for c in connections if c.status in ("TIME_WAIT", "CLOSE_WAIT"))
    title = (
        f"TCP Connections: {established} established, {listening} listening, "
        f"{waiting} waiting, {len(connections)} total"
    )
    if SyntheticDataProvider.is_synthetic("tcp", connections):
        title += " (sample data)"
    table = Table(title=title)
    table.add_column("Status", style="bold")
    table.add_column("Local", style="cyan")
    table.add_column("Remote", style="green")
    table.add_column("UID", justify="right")
    for c in connections:
        table.add_row(c.status, c.formatted_local_address, c.formatted_remote_address, str(c.uid))
    return table


def log_table(lines: tuple[str, ...], limit: int = 40) -> Table:
    shown = lines[-limit:]
    table = Table(title=f"System Logs ({len(shown)} of {len(lines)} lines)", show_header=False)
    table.add_column("Line", overflow="fold")
    for line in shown:
        table.add_row(Text(line))
    return table


def record_table(title: str, snapshot: Any) -> Table:
    """Two-column field/value table for any dataclass snapshot."""
    table = Table(title=title, show_lines=True)
    table.add_column("Field", style="cyan", width=24)
    table.add_column("Value", style="green")
    if is_dataclass(snapshot):
        for f in fields(snapshot):
            value = getattr(snapshot, f.name)
            if is_dataclass(value):
                for sub in fields(value):
                    table.add_row(f"{f.name}.{sub.name}", _cell(getattr(value, sub.name)))
            else:
                table.add_row(f.name, _cell(value))
    else:
        table.add_row("value", _cell(snapshot))
    return table


def snapshot_table(source: str, snapshot: Any) -> Table:
    if source == "network":
        return network_table(snapshot)
    if source == "tcp":
        return tcp_table(snapshot)
    if source == "log":
        return log_table(snapshot)
    return record_table(source, snapshot)


def print_snapshot(source: str, snapshot: Any, console: Console | None = None) -> None:
    (console or Console()).print(snapshot_table(source, snapshot))
