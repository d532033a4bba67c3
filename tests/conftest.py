from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from rackctl.models import SnmpV2Credentials, SnmpV3Credentials, Switch, WakeDevice
from rackctl.services.switches.base import SwitchResult


class FakePortClient:
    """Records calls and answers every port (or only ``answering`` ports)."""

    def __init__(self, status: str = "on", answering: set[int] | None = None):
        self.status = status
        self.answering = answering
        self.calls: list[tuple] = []

    def _results(self, ports, status):
        return [
            SwitchResult(port=p, status=status)
            for p in ports
            if self.answering is None or p in self.answering
        ]

    def get(self, switch, ports):
        self.calls.append(("get", switch.name, list(ports)))
        return self._results(ports, self.status)

    def set(self, switch, ports, value):
        self.calls.append(("set", switch.name, list(ports), value))
        return self._results(ports, "on" if value == 1 else "off")


@pytest.fixture
def v2_switch() -> Switch:
    return Switch(
        name="rack-a",
        address="10.0.0.5",
        vendor="Netgear",
        port_count=8,
        credentials=SnmpV2Credentials(community="private"),
    )


@pytest.fixture
def v3_switch() -> Switch:
    return Switch(
        name="rack-b",
        address="10.0.0.6:1161",
        vendor="Netgear",
        port_count=24,
        credentials=SnmpV3Credentials(
            username="admin",
            auth_protocol="sha",
            auth_password="authpass123",
            privacy_protocol="aes",
            privacy_password="privpass123",
        ),
    )


@pytest.fixture
def wake_device() -> WakeDevice:
    return WakeDevice(name="nas", mac="AA:BB:CC:DD:EE:FF")


@pytest.fixture
def fake_client() -> FakePortClient:
    return FakePortClient()


@pytest.fixture
def inventory_path(tmp_path: Path) -> Path:
    return tmp_path / "rackctl" / "inventory.json"


@pytest.fixture
def make_client():
    return FakePortClient
