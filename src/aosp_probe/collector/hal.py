"""HAL interfaces, binder services and VNDK information."""

from __future__ import annotations

from ..models import HalData, VndkInfo
from ..parser.hal import parse_lshal, parse_service_list, parse_vndk_version
from .base import BaseCollector
from .executor import CommandRunner
from .synthetic import VNDK_LIBRARIES, SyntheticDataProvider


class HalCollector(BaseCollector[HalData]):
    """Collects :class:`HalData`, each part falling back on its own."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        super().__init__(runner)

    @property
    def name(self) -> str:
        return "hal"

    def is_empty(self, snapshot: HalData) -> bool:
        return False

    def collect(self) -> HalData:
        interfaces = parse_lshal(self.runner.run("lshal"))
        if not interfaces:
            interfaces = SyntheticDataProvider.fallback_for("hal_interfaces")
        services = parse_service_list(self.runner.run("service list"))
        if not services:
            services = SyntheticDataProvider.fallback_for("hw_services")

        version = parse_vndk_version(self.runner.first_line("getprop ro.vndk.version"))
        if version == "Unknown":
            vndk = SyntheticDataProvider.fallback_for("vndk")
        else:
            # listing /system/lib*/vndk-* needs root
            vndk = VndkInfo(version=version, libraries=VNDK_LIBRARIES)

        return HalData(
            hal_interfaces=tuple(interfaces),
            hw_services=tuple(services),
            vndk_info=vndk,
        )
