"""Per-vendor PoE control OIDs.

Vendor differences are data only: a base OID whose last component is the
port number, and the two integers the switch uses for "on" and "off".
Adding a vendor means adding a row to ``VENDOR_OIDS``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from rackctl.core.errors import UnexpectedValueError, UnknownVendorError

PortStatus = Literal["on", "off"]


def _oid(dotted: str) -> tuple[int, ...]:
    return tuple(int(part) for part in dotted.split("."))


@dataclass(frozen=True)
class VendorOid:
    name: str
    base_oid: tuple[int, ...]
    on_value: int
    off_value: int

    def target_oid(self, port: int) -> tuple[int, ...]:
        return self.base_oid + (port,)

    def oid_string(self, port: int) -> str:
        return ".".join(str(part) for part in self.target_oid(port))

    def status_for(self, value: int) -> PortStatus:
        if value == self.on_value:
            return "on"
        if value == self.off_value:
            return "off"
        raise UnexpectedValueError(self.name, value)


VENDOR_OIDS: tuple[VendorOid, ...] = (
    # POWER-ETHERNET-MIB pethPsePortAdminEnable, group 1: true(1) / false(2)
    VendorOid("Netgear", _oid("1.3.6.1.2.1.105.1.1.1.3.1"), on_value=1, off_value=2),
)

_BY_NAME: dict[str, VendorOid] = {entry.name: entry for entry in VENDOR_OIDS}


def vendor_names() -> list[str]:
    return [entry.name for entry in VENDOR_OIDS]


def find_vendor(name: str) -> VendorOid | None:
    return _BY_NAME.get(name)


def get_vendor(name: str) -> VendorOid:
    entry = _BY_NAME.get(name)
    if entry is None:
        raise UnknownVendorError(name)
    return entry


def base_oid(name: str) -> tuple[int, ...] | None:
    entry = _BY_NAME.get(name)
    return entry.base_oid if entry else None


def on_value(name: str) -> int | None:
    entry = _BY_NAME.get(name)
    return entry.on_value if entry else None


def off_value(name: str) -> int | None:
    entry = _BY_NAME.get(name)
    return entry.off_value if entry else None
