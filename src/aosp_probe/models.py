"""Immutable snapshot records produced by the collectors."""

from __future__ import annotations

from dataclasses import dataclass, field

from .collector.codec import decode_address


def format_bytes(num: int) -> str:
    """Render a byte count as B/KB/MB/GB using whole-unit division."""
    if num < 1024:
        return f"{num} B"
    if num < 1024 * 1024:
        return f"{num // 1024} KB"
    if num < 1024 * 1024 * 1024:
        return f"{num // (1024 * 1024)} MB"
    return f"{num // (1024 * 1024 * 1024)} GB"


@dataclass(frozen=True)
class SystemInfo:
    """Headline device status, one string per area."""

    cpu_usage: str
    memory_usage: str
    battery_status: str
    network_status: str


@dataclass(frozen=True)
class DiagnosticsInfo:
    running_processes: tuple[str, ...]
    available_memory: str
    screen_on: bool
    dumpsys_result: str


@dataclass(frozen=True)
class AppPermissionInfo:
    permission_name: str
    is_granted: bool
    is_protection_dangerous: bool


@dataclass(frozen=True)
class HardwareSecurityInfo:
    hardware_backed_keystore: bool = False
    strongbox_keystore: bool = False
    fingerprint: bool = False
    biometric: bool = False
    tee: bool = False
    keystore_version: str = "Unknown"


@dataclass(frozen=True)
class SecurityInfo:
    selinux_status: str
    selinux_mode: str
    permission_map: dict[str, tuple[AppPermissionInfo, ...]]
    hardware_security: HardwareSecurityInfo


@dataclass(frozen=True)
class BinderTransaction:
    """One binder transaction line attributed to its owning process."""

    pid: int
    process: str
    transaction_code: int
    destination: str
    data_size: int
    timestamp: float


@dataclass(frozen=True)
class ApiCallInfo:
    api_name: str
    caller_package: str
    timestamp: float
    duration_ms: int


@dataclass(frozen=True)
class ServiceManagerData:
    running_services: dict[str, str] = field(default_factory=dict)
    service_connections: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class FrameworkData:
    binder_transactions: tuple[BinderTransaction, ...]
    api_calls: tuple[ApiCallInfo, ...]
    service_data: ServiceManagerData


@dataclass(frozen=True)
class HalInterface:
    name: str
    version: str
    type: str  # "HIDL" or "AIDL"
    implementation: str
    status: str


@dataclass(frozen=True)
class HwService:
    name: str
    server: str
    clients: tuple[str, ...]


@dataclass(frozen=True)
class VndkInfo:
    version: str
    libraries: tuple[str, ...]


@dataclass(frozen=True)
class HalData:
    hal_interfaces: tuple[HalInterface, ...]
    hw_services: tuple[HwService, ...]
    vndk_info: VndkInfo


@dataclass(frozen=True)
class NativeSnapshot:
    """Raw counters returned by the native telemetry provider.

    ``cpu_usage`` is ``None`` until two CPU samples have been seen.
    """

    cpu: dict[str, int]
    cpu_usage: int | None
    memory: dict[str, int]
    process: dict[str, str]


@dataclass(frozen=True)
class InterfaceStats:
    """Per-interface counters as reported by ``/proc/net/dev``."""

    rx_bytes: int = 0
    rx_packets: int = 0
    rx_errors: int = 0
    rx_dropped: int = 0
    tx_bytes: int = 0
    tx_packets: int = 0
    tx_errors: int = 0
    tx_dropped: int = 0

    @property
    def formatted_rx_bytes(self) -> str:
        return format_bytes(self.rx_bytes)

    @property
    def formatted_tx_bytes(self) -> str:
        return format_bytes(self.tx_bytes)


@dataclass(frozen=True)
class TcpConnection:
    """A TCP socket with kernel-encoded ``HEXADDR:HEXPORT`` endpoints."""

    local_address: str
    remote_address: str
    status: str
    uid: int = 0

    @property
    def formatted_local_address(self) -> str:
        return decode_address(self.local_address)

    @property
    def formatted_remote_address(self) -> str:
        return decode_address(self.remote_address)
