import pytest

from rackctl.core.errors import UnexpectedValueError, UnknownVendorError
from rackctl.services.switches import oids


def test_netgear_entry_values():
    netgear = oids.get_vendor("Netgear")
    assert netgear.base_oid == (1, 3, 6, 1, 2, 1, 105, 1, 1, 1, 3, 1)
    assert netgear.on_value == 1
    assert netgear.off_value == 2


def test_target_oid_appends_port():
    netgear = oids.get_vendor("Netgear")
    assert netgear.target_oid(7) == netgear.base_oid + (7,)
    assert netgear.oid_string(12) == "1.3.6.1.2.1.105.1.1.1.3.1.12"


def test_status_for_maps_on_and_off():
    netgear = oids.get_vendor("Netgear")
    assert netgear.status_for(1) == "on"
    assert netgear.status_for(2) == "off"


def test_status_for_rejects_other_values():
    with pytest.raises(UnexpectedValueError) as excinfo:
        oids.get_vendor("Netgear").status_for(3)
    assert excinfo.value.value == 3


def test_lookups_for_unknown_vendor():
    assert oids.find_vendor("Acme") is None
    assert oids.base_oid("Acme") is None
    assert oids.on_value("Acme") is None
    assert oids.off_value("Acme") is None
    with pytest.raises(UnknownVendorError):
        oids.get_vendor("Acme")


def test_lookup_is_case_sensitive():
    assert oids.find_vendor("netgear") is None


def test_vendor_names_lists_table():
    assert oids.vendor_names() == ["Netgear"]
    assert oids.on_value("Netgear") == 1
    assert oids.off_value("Netgear") == 2
