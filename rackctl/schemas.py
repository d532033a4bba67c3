from pydantic import BaseModel, field_validator

from rackctl.models import (
    SnmpCredentials,
    Switch,
    WakeDevice,
    _validate_address,
    _validate_mac,
    _validate_name,
)
from rackctl.services.switches.oids import vendor_names

# ── Switch schemas ───────────────────────────────────────────────


class SwitchUpdate(BaseModel):
    """The full set of mutable switch attributes."""

    address: str
    vendor: str
    port_count: int
    credentials: SnmpCredentials

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return _validate_address(v)

    @field_validator("vendor")
    @classmethod
    def validate_vendor(cls, v: str) -> str:
        known = vendor_names()
        if v not in known:
            raise ValueError(f"Unknown vendor {v!r} (expected one of: {', '.join(known)})")
        return v

    @field_validator("port_count")
    @classmethod
    def validate_port_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError("port_count must be a positive integer")
        return v


class SwitchCreate(SwitchUpdate):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_name(v)

    def to_switch(self) -> Switch:
        return Switch.model_validate(self.model_dump())


# ── Wake-on-LAN schemas ──────────────────────────────────────────


class WakeDeviceUpdate(BaseModel):
    mac: str

    @field_validator("mac")
    @classmethod
    def validate_mac(cls, v: str) -> str:
        return _validate_mac(v)


class WakeDeviceCreate(WakeDeviceUpdate):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_name(v)

    def to_device(self) -> WakeDevice:
        return WakeDevice.model_validate(self.model_dump())
