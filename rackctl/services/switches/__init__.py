from rackctl.services.switches.base import PortClient, SwitchResult
from rackctl.services.switches.oids import VENDOR_OIDS, VendorOid, get_vendor, vendor_names
from rackctl.services.switches.snmp_provider import SnmpPortClient

__all__ = [
    "VENDOR_OIDS",
    "PortClient",
    "SnmpPortClient",
    "SwitchResult",
    "VendorOid",
    "get_vendor",
    "vendor_names",
]
