"""Tests for the per-source collectors and the collector manager."""

import os
import time
from types import SimpleNamespace

import pytest
from conftest import (
    PROC_MEMINFO,
    PROC_NET_DEV,
    PROC_NET_TCP,
    PROC_STAT,
    PROC_STATUS,
    FakeRunner,
    StaticProvider,
)

from aosp_probe.collector import diagnostics, synthetic, system
from aosp_probe.collector.diagnostics import DiagnosticsCollector
from aosp_probe.collector.framework import FrameworkCollector
from aosp_probe.collector.hal import HalCollector
from aosp_probe.collector.manager import CollectorManager, build_collector
from aosp_probe.collector.monitor import NativeMonitorCollector
from aosp_probe.collector.network import NetworkStatsCollector, TcpConnectionsCollector
from aosp_probe.collector.scheduler import CollectorScheduler
from aosp_probe.collector.security import SecurityCollector, hardware_security
from aosp_probe.collector.synthetic import SyntheticDataProvider
from aosp_probe.collector.system import SystemInfoCollector, classify_transport
from aosp_probe.config import ProbeConfig
from aosp_probe.models import HardwareSecurityInfo
from aosp_probe.parser.native import encode_network_stats, encode_tcp_connections
from aosp_probe.parser.proc import parse_net_dev, parse_tcp_table

MB = 1024 * 1024
CPU_LINE = PROC_STAT.splitlines()[0]


@pytest.fixture
def fake_psutil(monkeypatch):
    monkeypatch.setattr(system.psutil, "virtual_memory", lambda: SimpleNamespace(available=512 * MB))
    monkeypatch.setattr(system.psutil, "sensors_battery", lambda: SimpleNamespace(percent=87.6))
    monkeypatch.setattr(system.psutil, "net_if_stats", lambda: {
        "lo": SimpleNamespace(isup=True),
        "wlan0": SimpleNamespace(isup=True),
        "eth0": SimpleNamespace(isup=False),
    })


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


# ---------------------------------------------------------------------------
# system
# ---------------------------------------------------------------------------

class TestSystemInfoCollector:
    def test_cpu_unavailable_then_percentage(self, fake_psutil):
        provider = StaticProvider(cpu=CPU_LINE)
        collector = SystemInfoCollector(provider)

        first = collector.collect()
        assert first.cpu_usage == "CPU: N/A"
        assert first.memory_usage == "Available Memory: 512 MB"
        assert first.battery_status == "Battery: 87%"
        assert first.network_status == "Connected: WIFI"

        # +200 jiffies total, +100 idle
        provider.payloads["cpu"] = "cpu  4805 356 584 3799 23 23 0 0 0 0"
        assert collector.collect().cpu_usage == "CPU: 50%"

    def test_unreadable_cpu_line(self, fake_psutil):
        collector = SystemInfoCollector(StaticProvider(cpu="Error: Failed to read CPU information"))
        assert collector.collect().cpu_usage == "CPU: N/A"

    def test_missing_battery(self, fake_psutil, monkeypatch):
        monkeypatch.setattr(system.psutil, "sensors_battery", lambda: None)
        assert SystemInfoCollector(StaticProvider()).collect().battery_status == "Battery: N/A"

    def test_classify_transport(self):
        assert classify_transport(["rmnet_data0", "wlan0"]) == "Connected: WIFI"
        assert classify_transport(["rmnet0"]) == "Connected: Cellular"
        assert classify_transport(["eth0"]) == "Connected: Ethernet"
        assert classify_transport(["tun0"]) == "Connected: Other"
        assert classify_transport([]) == "Not connected"


# ---------------------------------------------------------------------------
# diagnostics
# ---------------------------------------------------------------------------

class TestDiagnosticsCollector:
    def test_collect(self, fake_psutil, monkeypatch):
        monkeypatch.setattr(diagnostics, "running_process_names", lambda: ["init", "zygote64"])
        monkeypatch.setattr(diagnostics.psutil, "virtual_memory", lambda: SimpleNamespace(available=256 * MB))
        runner = FakeRunner({
            "dumpsys power": "Power Manager State:\n  mWakefulness=Awake\n",
            "dumpsys meminfo": "Applications Memory Usage (in Kilobytes):\nTotal RAM: 3,903,488K\n",
        })
        info = DiagnosticsCollector(runner).collect()
        assert info.running_processes == ("init", "zygote64")
        assert info.available_memory == "Available: 256 MB"
        assert info.screen_on is True
        assert info.dumpsys_result.endswith("Total RAM: 3,903,488K")
        assert runner.calls == ["dumpsys power", "dumpsys meminfo"]

    def test_no_dumpsys_output(self, monkeypatch):
        monkeypatch.setattr(diagnostics, "running_process_names", lambda: [])
        info = DiagnosticsCollector(FakeRunner()).collect()
        assert info.screen_on is False
        assert info.dumpsys_result == "Error reading dumpsys: no output"

    def test_process_names_from_psutil(self):
        assert isinstance(diagnostics.running_process_names(), list)


# ---------------------------------------------------------------------------
# security
# ---------------------------------------------------------------------------

PACKAGE_DUMP = """\
Packages:
  Package [com.example.camera] (4b2a1c):
    userId=10123
    pkgFlags=[ HAS_CODE ALLOW_CLEAR_USER_DATA ]
    runtime permissions:
      android.permission.CAMERA: granted=true, flags=[ USER_SET ]
      android.permission.RECORD_AUDIO: granted=false, flags=[ USER_SET ]
    install permissions:
      android.permission.INTERNET: granted=true
  Package [com.android.phone] (9f00aa):
    pkgFlags=[ SYSTEM HAS_CODE PERSISTENT ]
    install permissions:
      android.permission.READ_PHONE_STATE: granted=true
"""

FEATURES = """\
feature:android.hardware.fingerprint
feature:android.hardware.strongbox_keystore
feature:reqGlEsVersion=0x30002
"""


class TestSecurityCollector:
    def test_collect(self):
        runner = FakeRunner({
            "getenforce": "Enforcing\n",
            "dumpsys package": PACKAGE_DUMP,
            "pm list features": FEATURES,
            "getprop ro.hardware.keystore": "mdfpp\n",
        })
        info = SecurityCollector(runner).collect()
        assert (info.selinux_status, info.selinux_mode) == ("Enabled", "Enforcing")
        assert list(info.permission_map) == ["com.example.camera"]
        perms = {p.permission_name: p for p in info.permission_map["com.example.camera"]}
        assert perms["android.permission.CAMERA"].is_granted
        assert perms["android.permission.CAMERA"].is_protection_dangerous
        assert not perms["android.permission.RECORD_AUDIO"].is_granted
        assert not perms["android.permission.INTERNET"].is_protection_dangerous

        hw = info.hardware_security
        assert hw.hardware_backed_keystore and hw.strongbox_keystore
        assert hw.fingerprint and hw.biometric and hw.tee
        assert hw.keystore_version == "mdfpp"

    def test_system_apps_included_on_request(self):
        runner = FakeRunner({"dumpsys package": PACKAGE_DUMP})
        info = SecurityCollector(runner, include_system_apps=True).collect()
        assert set(info.permission_map) == {"com.example.camera", "com.android.phone"}

    def test_nothing_available(self):
        info = SecurityCollector(FakeRunner()).collect()
        assert (info.selinux_status, info.selinux_mode) == ("Unknown", "Unknown")
        assert info.permission_map == {}
        assert info.hardware_security == HardwareSecurityInfo()

    def test_hardware_security_without_tee(self):
        hw = hardware_security({"android.hardware.biometrics.face"}, "")
        assert hw.biometric and not hw.fingerprint and not hw.tee
        assert hw.keystore_version == "Unknown"


# ---------------------------------------------------------------------------
# framework
# ---------------------------------------------------------------------------

BINDER_DUMP = """\
Process 1234: system_server
  transaction 0x1 to 0x2a code 0x5f (data: 1024 bytes)
  transaction 0x2 to 0x2b code 7 (data: 16 bytes)
"""

ASM_DUMP = "  API calls: android.os.PowerManager.isInteractive from com.foo took 12ms\n"

SERVICES_DUMP = """\
ACTIVITY MANAGER SERVICES (dumpsys activity services)
  * ServiceRecord{1a2b3c u0 com.foo/.SyncService}
    app=ProcessRecord{4d5e 1234:com.foo/u0a123}
    ConnectionRecord{7f8 u0 CR com.foo/.SyncService:@9ab client=com.bar}
"""


class TestFrameworkCollector:
    def test_collect(self):
        runner = FakeRunner({
            "dumpsys binder_txns": BINDER_DUMP,
            "dumpsys activity asm": ASM_DUMP,
            "dumpsys activity services": SERVICES_DUMP,
        })
        data = FrameworkCollector(runner).collect()

        assert [(t.pid, t.transaction_code, t.destination, t.data_size)
                for t in data.binder_transactions] == [
            (1234, 0x5F, "0x2a", 1024),
            (1234, 7, "0x2b", 16),
        ]
        (call,) = data.api_calls
        assert (call.api_name, call.caller_package, call.duration_ms) == (
            "android.os.PowerManager.isInteractive", "com.foo", 12,
        )
        assert data.service_data.running_services == {"com.foo/.SyncService": "Running"}
        assert data.service_data.service_connections == (("com.bar", "com.foo/.SyncService"),)

    def test_each_part_falls_back_independently(self):
        data = FrameworkCollector(FakeRunner({"dumpsys activity asm": ASM_DUMP})).collect()
        assert data.binder_transactions == ()
        assert len(data.api_calls) == 1
        assert data.service_data.running_services == synthetic.running_services()
        assert data.service_data.service_connections == synthetic.service_connections()

    def test_all_placeholders_when_dumpsys_unavailable(self):
        data = FrameworkCollector(FakeRunner()).collect()
        assert data.api_calls == tuple(synthetic.api_calls())
        assert data.service_data == synthetic.service_data()


# ---------------------------------------------------------------------------
# hal
# ---------------------------------------------------------------------------

LSHAL = """\
Interface Transport Arch Thread Use Server Clients
android.hardware.audio@7.0::IDevicesFactory/default   hwbinder  default  64  1/2  617  running
"""


class TestHalCollector:
    def test_collect(self):
        runner = FakeRunner({
            "lshal": LSHAL,
            "service list": "Found 1 services:\n0\tpower: [android.os.IPowerManager]\n",
            "getprop ro.vndk.version": "33\n",
        })
        data = HalCollector(runner).collect()
        assert [i.name for i in data.hal_interfaces] == [
            "android.hardware.audio@7.0::IDevicesFactory/default",
        ]
        assert [s.name for s in data.hw_services] == ["power"]
        assert data.vndk_info.version == "33"
        assert data.vndk_info.libraries == synthetic.VNDK_LIBRARIES

    def test_fallbacks(self):
        data = HalCollector(FakeRunner()).collect()
        assert list(data.hal_interfaces) == synthetic.hal_interfaces()
        assert list(data.hw_services) == synthetic.hw_services()
        assert data.vndk_info == synthetic.vndk_info()


# ---------------------------------------------------------------------------
# monitor
# ---------------------------------------------------------------------------

class TestNativeMonitorCollector:
    def test_collect(self):
        provider = StaticProvider(cpu=CPU_LINE, mem=PROC_MEMINFO, process=PROC_STATUS)
        collector = NativeMonitorCollector(provider, pid=4242)

        snapshot = collector.collect()
        assert snapshot.cpu["user"] == 4705
        assert snapshot.cpu_usage is None
        assert snapshot.memory["MemAvailable"] == 1536000
        assert snapshot.process["Name"] == "com.aoscoremonitor"
        assert provider.pids == [4242]

        provider.payloads["cpu"] = "cpu  4805 356 584 3799 23 23 0 0 0 0"
        assert collector.collect().cpu_usage == 50

    def test_pid_defaults_to_current_process(self):
        assert NativeMonitorCollector(StaticProvider()).pid == os.getpid()

    def test_error_strings_mean_no_data(self):
        provider = StaticProvider(
            cpu="Error: Failed to read CPU information",
            mem="Error: Failed to read memory information",
            process="Error: Process not found or permission denied",
        )
        collector = NativeMonitorCollector(provider, pid=1)
        snapshot = collector.collect()
        assert collector.is_empty(snapshot)
        scheduler = CollectorScheduler(collector, lambda _s: None, 1.0)
        assert scheduler.collect_once() == synthetic.native_snapshot()

    def test_partial_data_is_kept(self):
        provider = StaticProvider(cpu="Error: Failed to read CPU information", mem=PROC_MEMINFO)
        collector = NativeMonitorCollector(provider, pid=1)
        snapshot = collector.collect()
        assert not collector.is_empty(snapshot)
        assert snapshot.cpu == {}
        assert snapshot.memory["MemTotal"] == 3903488


# ---------------------------------------------------------------------------
# network / tcp
# ---------------------------------------------------------------------------

def _network_payload():
    return encode_network_stats(parse_net_dev(PROC_NET_DEV))


def _tcp_payload():
    return encode_tcp_connections(parse_tcp_table(PROC_NET_TCP))


class TestNetworkCollectors:
    def test_network_stats(self):
        stats = NetworkStatsCollector(StaticProvider(network=_network_payload())).collect()
        assert set(stats) == {"wlan0", "rmnet0"}
        assert stats["wlan0"].rx_bytes == 52428800
        assert stats["wlan0"].tx_dropped == 1

    def test_network_error_falls_back(self):
        collector = NetworkStatsCollector(StaticProvider(network="Error: Failed to read network statistics"))
        assert collector.collect() == {}
        assert CollectorScheduler(collector, lambda _s: None, 1.0).collect_once() == synthetic.network_stats()

    def test_tcp_connections(self):
        connections = TcpConnectionsCollector(StaticProvider(tcp=_tcp_payload())).collect()
        assert [(c.status, c.formatted_local_address, c.uid) for c in connections] == [
            ("LISTEN", "127.0.0.1:8080", 1000),
            ("ESTABLISHED", "10.0.2.15:41668", 10123),
        ]

    def test_tcp_empty_falls_back(self):
        collector = TcpConnectionsCollector(StaticProvider(tcp="[]"))
        assert CollectorScheduler(collector, lambda _s: None, 1.0).collect_once() == synthetic.tcp_connections()


# ---------------------------------------------------------------------------
# manager
# ---------------------------------------------------------------------------

class TestCollectorManager:
    def _provider(self):
        return StaticProvider(cpu=CPU_LINE, network=_network_payload(), tcp=_tcp_payload())

    def test_build_collector_applies_executor_config(self):
        cfg = ProbeConfig()
        cfg.executor.shell_prefix = ["adb", "shell"]
        cfg.executor.command_timeout_seconds = 1.5
        collector = build_collector("security", cfg, self._provider())
        assert isinstance(collector, SecurityCollector)
        assert collector.runner.prefix == ("adb", "shell")
        assert collector.runner.timeout == 1.5

    def test_build_every_source(self):
        cfg = ProbeConfig()
        for name in cfg.collectors:
            assert build_collector(name, cfg, self._provider()).name == name

    def test_unknown_source(self):
        with pytest.raises(ValueError, match="Unknown source"):
            build_collector("battery", ProbeConfig())

    def test_collect_once(self):
        manager = CollectorManager(ProbeConfig(), provider=self._provider())
        assert set(manager.collect_once("network")) == {"wlan0", "rmnet0"}

    def test_subscribe_start_stop(self):
        cfg = ProbeConfig()
        cfg.collectors["network"].interval_seconds = 0.05
        manager = CollectorManager(cfg, provider=self._provider())
        seen = []
        manager.subscribe("network", seen.append)
        manager.start()
        try:
            assert wait_for(lambda: len(seen) >= 1)
        finally:
            manager.stop()
        assert not manager.schedulers["network"].is_running
        assert set(seen[0]) == {"wlan0", "rmnet0"}

    def test_disabled_source_is_not_started(self):
        cfg = ProbeConfig()
        cfg.collectors["tcp"].enabled = False
        manager = CollectorManager(cfg, provider=self._provider())
        scheduler = manager.subscribe("tcp", lambda _s: None)
        manager.start()
        try:
            assert not scheduler.is_running
        finally:
            manager.stop()

    def test_resubscribe_replaces_scheduler(self):
        manager = CollectorManager(ProbeConfig(), provider=self._provider())
        first = manager.subscribe("tcp", lambda _s: None)
        second = manager.subscribe("tcp", lambda _s: None)
        assert first is not second
        assert manager.schedulers["tcp"] is second
        manager.unsubscribe("tcp")
        assert "tcp" not in manager.schedulers


@pytest.fixture
def placeholder_requests(monkeypatch):
    requested = []
    lookup = SyntheticDataProvider.fallback_for.__func__

    def recording(cls, source):
        requested.append(source)
        return lookup(cls, source)

    monkeypatch.setattr(SyntheticDataProvider, "fallback_for", classmethod(recording))
    return requested


def test_placeholders_are_looked_up_through_provider(placeholder_requests):
    FrameworkCollector(FakeRunner()).collect()
    HalCollector(FakeRunner()).collect()
    assert placeholder_requests == ["api_calls", "services", "hal_interfaces", "hw_services", "vndk"]


def test_complete_service_registry_needs_no_placeholder(placeholder_requests):
    runner = FakeRunner({"dumpsys activity asm": ASM_DUMP, "dumpsys activity services": SERVICES_DUMP})
    FrameworkCollector(runner).collect()
    assert placeholder_requests == []
