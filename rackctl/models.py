from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Annotated, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field, field_validator, model_validator

from rackctl.core.errors import UnsupportedOperationError
from rackctl.observability.metrics import switch_ops_total
from rackctl.services import wol
from rackctl.services.port_ranges import normalize_ports, parse_ports
from rackctl.services.switches.base import PortClient, SwitchResult
from rackctl.services.switches.oids import get_vendor

if TYPE_CHECKING:
    from rackctl.schemas import SwitchUpdate, WakeDeviceUpdate

logger = logging.getLogger(__name__)

MAC_RE = re.compile(r"^([0-9A-Fa-f]{2}[:-]){5}([0-9A-Fa-f]{2})$")

PortSelection = str | Iterable[int] | None

_PROTOCOL_LABELS: dict[str, str] = {
    "none": "None",
    "md5": "MD5",
    "sha": "SHA",
    "des": "DES",
    "aes": "AES",
}


def _validate_name(v: str) -> str:
    v = v.strip()
    if not v or len(v) > 255:
        raise ValueError("name must be 1-255 characters")
    return v


def _validate_address(v: str) -> str:
    v = v.strip()
    if not v or len(v) > 255:
        raise ValueError("address must be 1-255 characters")
    if any(ch.isspace() for ch in v):
        raise ValueError("address must not contain whitespace")
    return v


def _validate_mac(v: str) -> str:
    v = v.strip()
    if not MAC_RE.match(v):
        raise ValueError("Invalid MAC address")
    return v


# ── SNMP credentials ───────────────────────────────────────────────────────


class SnmpV2Credentials(BaseModel):
    version: Literal["v2"] = "v2"
    community: str

    @field_validator("community")
    @classmethod
    def validate_community(cls, v: str) -> str:
        if not v or len(v) > 255:
            raise ValueError("community must be 1-255 characters")
        return v


class SnmpV3Credentials(BaseModel):
    version: Literal["v3"] = "v3"
    username: str
    auth_protocol: Literal["none", "md5", "sha"] = "none"
    # Empty with an auth protocol set means "ask for it at run time".
    auth_password: str = ""
    privacy_protocol: Literal["none", "des", "aes"] = "none"
    privacy_password: str = ""

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 255:
            raise ValueError("username must be 1-255 characters")
        return v

    @model_validator(mode="after")
    def validate_security_level(self) -> SnmpV3Credentials:
        if self.auth_protocol == "none" and self.auth_password:
            raise ValueError("auth_password is set but auth_protocol is 'none'")
        if self.privacy_protocol != "none":
            if self.auth_protocol == "none":
                raise ValueError("SNMPv3 privacy requires an authentication protocol")
            if not self.privacy_password:
                raise ValueError("privacy_password is required when privacy_protocol is set")
        elif self.privacy_password:
            raise ValueError("privacy_password is set but privacy_protocol is 'none'")
        return self

    @property
    def needs_auth_password(self) -> bool:
        return self.auth_protocol != "none" and not self.auth_password

    def with_auth_password(self, password: str) -> SnmpV3Credentials:
        return self.model_copy(update={"auth_password": password})


SnmpCredentials = Annotated[
    SnmpV2Credentials | SnmpV3Credentials,
    Field(discriminator="version"),
]


# ── Devices ────────────────────────────────────────────────────────────────


@runtime_checkable
class Device(Protocol):
    name: str

    def enable(self): ...

    def disable(self): ...

    def status(self): ...

    def update(self, changes) -> None: ...


def _default_client() -> PortClient:
    from rackctl.services.switches.snmp_provider import SnmpPortClient

    return SnmpPortClient()


class Switch(BaseModel):
    name: str
    address: str
    vendor: str
    port_count: int
    credentials: SnmpCredentials

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_name(v)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return _validate_address(v)

    @field_validator("port_count")
    @classmethod
    def validate_port_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError("port_count must be a positive integer")
        return v

    @property
    def version(self) -> str:
        return self.credentials.version

    def select_ports(self, ports: PortSelection = None) -> list[int]:
        """Resolve a port selection; ``None`` means every port of the switch."""
        if ports is None:
            return list(range(1, self.port_count + 1))
        if isinstance(ports, str):
            return parse_ports(ports)
        return normalize_ports(ports)

    def enable(self, ports: PortSelection = None, *, client: PortClient | None = None) -> list[SwitchResult]:
        return self._set("enable", get_vendor(self.vendor).on_value, ports, client)

    def disable(self, ports: PortSelection = None, *, client: PortClient | None = None) -> list[SwitchResult]:
        return self._set("disable", get_vendor(self.vendor).off_value, ports, client)

    def status(self, ports: PortSelection = None, *, client: PortClient | None = None) -> list[SwitchResult]:
        get_vendor(self.vendor)  # unknown vendor fails before any I/O
        selected = self.select_ports(ports)
        results = (client or _default_client()).get(self, selected)
        self._record("status", selected, results)
        return results

    def _set(
        self,
        operation: str,
        value: int,
        ports: PortSelection,
        client: PortClient | None,
    ) -> list[SwitchResult]:
        selected = self.select_ports(ports)
        logger.debug("%s %s ports %s (value=%d)", operation, self.name, selected, value)
        results = (client or _default_client()).set(self, selected, value)
        self._record(operation, selected, results)
        return results

    def _record(self, operation: str, requested: list[int], results: list[SwitchResult]) -> None:
        if len(results) == len(requested):
            outcome = "success"
        elif results:
            outcome = "partial"
        else:
            outcome = "error"
        switch_ops_total.labels(operation=operation, result=outcome).inc()
        if outcome != "success":
            logger.warning(
                "%s on %s: %d of %d ports answered",
                operation, self.name, len(results), len(requested),
            )

    def update(self, changes: SwitchUpdate) -> None:
        """Replace every mutable attribute at once; on a validation error nothing changes."""
        validated = Switch.model_validate({"name": self.name, **changes.model_dump()})
        for field in ("address", "vendor", "port_count", "credentials"):
            setattr(self, field, getattr(validated, field))

    def describe(self) -> str:
        lines = [
            f"  Name: {self.name}",
            f"  Addr: {self.address}",
            f"  Brand: {self.vendor}",
            f"  Ports: {self.port_count}",
            f"  Version: {self.version}",
        ]
        creds = self.credentials
        if isinstance(creds, SnmpV2Credentials):
            lines.append(f"  Community: {creds.community}")
        else:
            lines.append(f"  Username: {creds.username}")
            lines.append(f"  Auth: {_PROTOCOL_LABELS[creds.auth_protocol]}")
            lines.append(f"  Encryption: {_PROTOCOL_LABELS[creds.privacy_protocol]}")
        return "\n".join(lines) + "\n"


class WakeDevice(BaseModel):
    name: str
    mac: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_name(v)

    @field_validator("mac")
    @classmethod
    def validate_mac(cls, v: str) -> str:
        return _validate_mac(v)

    def enable(self) -> None:
        wol.send_magic_packet(self.mac)
        logger.info("Sent Wake-on-LAN packet to %s", self.name)

    def disable(self) -> None:
        raise UnsupportedOperationError("Wake-on-LAN", "disable")

    def status(self) -> None:
        raise UnsupportedOperationError("Wake-on-LAN", "status")

    def update(self, changes: WakeDeviceUpdate) -> None:
        validated = WakeDevice.model_validate({"name": self.name, **changes.model_dump()})
        self.mac = validated.mac

    def describe(self) -> str:
        return f"  Name: {self.name}\n  MAC: {self.mac}\n"


AnyDevice = Switch | WakeDevice
