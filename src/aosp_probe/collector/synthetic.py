"""Placeholder datasets substituted when a real source yields nothing.

Each dataset is a fixed set of clearly fabricated literals (``dummy:``
interface names, documentation-style TCP tuples, well-known AOSP service
names). Consumers can tell placeholder data from real data only by comparing
against these exact values, see :func:`is_synthetic`. Real data that happens
to equal a placeholder is misclassified.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..models import (
    ApiCallInfo,
    HalInterface,
    HwService,
    InterfaceStats,
    NativeSnapshot,
    ServiceManagerData,
    TcpConnection,
    VndkInfo,
)

logger = logging.getLogger(__name__)

MB = 1024 * 1024

PLACEHOLDER_CALLER = "com.aoscoremonitor"


def network_stats() -> dict[str, InterfaceStats]:
    return {
        "dummy:wlan0": InterfaceStats(
            rx_bytes=50 * MB, rx_packets=1500, rx_errors=2, rx_dropped=0,
            tx_bytes=10 * MB, tx_packets=800, tx_errors=0, tx_dropped=1,
        ),
        "dummy:eth0": InterfaceStats(
            rx_bytes=25 * MB, rx_packets=1200, rx_errors=1, rx_dropped=0,
            tx_bytes=5 * MB, tx_packets=600, tx_errors=0, tx_dropped=0,
        ),
        "dummy:rmnet0": InterfaceStats(
            rx_bytes=120 * MB, rx_packets=3500, rx_errors=5, rx_dropped=2,
            tx_bytes=30 * MB, tx_packets=2200, tx_errors=1, tx_dropped=3,
        ),
    }


def tcp_connections() -> list[TcpConnection]:
    return [
        # 127.0.0.1:8080 listening
        TcpConnection("0100007F:1F90", "00000000:0000", "LISTEN", 1000),
        # 10.0.2.15:41668 -> 34.216.184.93:443
        TcpConnection("0F02000A:A2C4", "5DB8D822:01BB", "ESTABLISHED", 10123),
        # 10.0.2.15:45552 -> 8.8.8.8:53
        TcpConnection("0F02000A:B1F0", "08080808:0035", "TIME_WAIT", 10045),
        # 192.168.1.10:5228 -> 34.216.184.93:443
        TcpConnection("0A01A8C0:146C", "5DB8D822:01BB", "CLOSE_WAIT", 10087),
    ]


def api_calls() -> list[ApiCallInfo]:
    return [
        ApiCallInfo(
            api_name="android.app.ActivityManager.getRunningAppProcesses",
            caller_package=PLACEHOLDER_CALLER,
            timestamp=0.0,
            duration_ms=3,
        ),
        ApiCallInfo(
            api_name="android.content.pm.PackageManager.getInstalledPackages",
            caller_package=PLACEHOLDER_CALLER,
            timestamp=0.0,
            duration_ms=120,
        ),
    ]


def running_services() -> dict[str, str]:
    return {
        "com.android.systemui/.SystemUIService": "Running",
        "com.android.phone/.TelephonyDebugService": "Running",
        "android/com.android.server.telecom.TelecomLoaderService": "Running",
    }


def service_connections() -> tuple[tuple[str, str], ...]:
    return ((PLACEHOLDER_CALLER, "com.android.systemui/.SystemUIService"),)


def service_data() -> ServiceManagerData:
    return ServiceManagerData(
        running_services=running_services(),
        service_connections=service_connections(),
    )


def hal_interfaces() -> list[HalInterface]:
    return [
        HalInterface("android.hardware.audio@7.0::IDevicesFactory", "7.0", "HIDL", "default", "Running"),
        HalInterface("android.hardware.camera@2.5::ICameraProvider", "2.5", "HIDL", "qcom", "Running"),
        HalInterface("android.hardware.bluetooth@1.1::IBluetoothHci", "1.1", "HIDL", "default", "Running"),
        HalInterface("android.hardware.sensors@2.1::ISensors", "2.1", "HIDL", "default", "Running"),
        HalInterface("android.hardware.nfc@1.2::INfc", "1.2", "HIDL", "default", "Running"),
    ]


def hw_services() -> list[HwService]:
    return [
        HwService("SurfaceFlinger", "surfaceflinger", ("system_server", "com.android.systemui")),
        HwService("audio", "audioserver", ("com.android.music", "com.spotify.music")),
        HwService("camera", "cameraserver", ("com.android.camera",)),
        HwService("power", "system_server", ("com.android.systemui", "com.android.settings")),
    ]


VNDK_LIBRARIES = ("libc++.so", "libhardware.so", "libhidlbase.so", "libutils.so", "libcutils.so")


def vndk_info() -> VndkInfo:
    # Android 11
    return VndkInfo(version="30", libraries=VNDK_LIBRARIES + ("libui.so", "libgui.so"))


def native_snapshot() -> NativeSnapshot:
    return NativeSnapshot(
        cpu={
            "user": 4200, "nice": 120, "system": 2100, "idle": 36000,
            "iowait": 300, "irq": 40, "softirq": 25,
        },
        cpu_usage=None,
        memory={"MemTotal": 3903488, "MemFree": 102400, "MemAvailable": 1536000},
        process={"Name": "dummy", "State": "S (sleeping)", "Pid": "0"},
    )


class SyntheticDataProvider:
    """Lookup of placeholder datasets by source name."""

    _DATASETS: dict[str, Callable[[], Any]] = {
        "network": network_stats,
        "tcp": tcp_connections,
        "api_calls": api_calls,
        "services": service_data,
        "hal_interfaces": hal_interfaces,
        "hw_services": hw_services,
        "vndk": vndk_info,
        "monitor": native_snapshot,
    }

    @classmethod
    def sources(cls) -> list[str]:
        return sorted(cls._DATASETS)

    @classmethod
    def fallback_for(cls, source: str) -> Any:
        try:
            factory = cls._DATASETS[source]
        except KeyError:
            raise KeyError(f"No synthetic dataset for source {source!r}") from None
        logger.debug("Substituting synthetic data for %s", source)
        return factory()

    @classmethod
    def is_synthetic(cls, source: str, value: Any) -> bool:
        """Exact-value comparison against the placeholder for *source*."""
        factory = cls._DATASETS.get(source)
        return factory is not None and value == factory()
