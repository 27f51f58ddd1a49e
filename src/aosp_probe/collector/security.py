"""SELinux state, third-party app permissions and hardware security features."""

from __future__ import annotations

from ..models import HardwareSecurityInfo, SecurityInfo
from ..parser.dumpsys import parse_features, parse_package_permissions, parse_selinux
from .base import BaseCollector
from .executor import CommandRunner


FEATURE_STRONGBOX = "android.hardware.strongbox_keystore"
FEATURE_HARDWARE_KEYSTORE = "android.hardware.hardware_keystore"
FEATURE_FINGERPRINT = "android.hardware.fingerprint"
BIOMETRIC_FEATURES = (
    FEATURE_FINGERPRINT,
    "android.hardware.biometrics.face",
    "android.hardware.biometrics.iris",
)


def hardware_security(features: set[str], keystore: str) -> HardwareSecurityInfo:
    """Derive hardware security flags from ``pm list features`` and the keystore property.

    TEE presence is inferred from fingerprint support, which requires it.
    """
    keystore = keystore.strip()
    fingerprint = FEATURE_FINGERPRINT in features
    return HardwareSecurityInfo(
        hardware_backed_keystore=bool(keystore) or FEATURE_HARDWARE_KEYSTORE in features,
        strongbox_keystore=FEATURE_STRONGBOX in features,
        fingerprint=fingerprint,
        biometric=any(f in features for f in BIOMETRIC_FEATURES),
        tee=fingerprint,
        keystore_version=keystore or "Unknown",
    )


class SecurityCollector(BaseCollector[SecurityInfo]):
    def __init__(self, runner: CommandRunner | None = None, *, include_system_apps: bool = False) -> None:
        super().__init__(runner)
        self._include_system = include_system_apps

    @property
    def name(self) -> str:
        return "security"

    def is_empty(self, snapshot: SecurityInfo) -> bool:
        return False

    def collect(self) -> SecurityInfo:
        status, mode = parse_selinux(self.runner.first_line("getenforce"))
        permissions = parse_package_permissions(
            self.runner.run("dumpsys package"),
            include_system=self._include_system,
        )
        features = parse_features(self.runner.run("pm list features"))
        keystore = self.runner.first_line("getprop ro.hardware.keystore")
        return SecurityInfo(
            selinux_status=status,
            selinux_mode=mode,
            permission_map=permissions,
            hardware_security=hardware_security(features, keystore),
        )
