"""Exception hierarchy shared by the device, protocol and inventory layers."""

from __future__ import annotations


class RackctlError(Exception):
    """Base class for every error raised by rackctl itself."""


# ── Input errors ────────────────────────────────────────────────────────────


class PortRangeError(RackctlError, ValueError):
    """Raised when a port specification does not follow the range grammar."""

    def __init__(self, spec: str) -> None:
        super().__init__(f"Invalid port range: {spec}")
        self.spec = spec


class DuplicateDeviceError(RackctlError, ValueError):
    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} '{name}' already exists")
        self.kind = kind
        self.name = name


class DeviceNotFoundError(RackctlError, LookupError):
    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} '{name}' not found")
        self.kind = kind
        self.name = name


# ── Configuration integrity ─────────────────────────────────────────────────


class ConfigurationError(RackctlError):
    """Stored device data cannot be used as-is. Fatal for that device's operation."""


class UnknownVendorError(ConfigurationError, LookupError):
    def __init__(self, vendor: str) -> None:
        super().__init__(f"Unknown switch vendor: {vendor!r}")
        self.vendor = vendor


class InventoryError(ConfigurationError):
    """Raised when the inventory file exists but cannot be read back."""


# ── Per-port protocol errors ────────────────────────────────────────────────


class SnmpExchangeError(RackctlError):
    """A single SNMP get/set failed at the transport or protocol level."""


class UnexpectedValueError(SnmpExchangeError):
    def __init__(self, vendor: str, value: object) -> None:
        super().__init__(f"Invalid value for {vendor}: {value!r}")
        self.vendor = vendor
        self.value = value


# ── Unsupported operations and programming invariants ──────────────────────


class UnsupportedOperationError(RackctlError, NotImplementedError):
    def __init__(self, kind: str, operation: str) -> None:
        super().__init__(f"{kind} devices do not support '{operation}'")
        self.kind = kind
        self.operation = operation


class MagicPacketError(AssertionError):
    """The magic packet does not have its fixed size. Indicates a bug, never sent."""
