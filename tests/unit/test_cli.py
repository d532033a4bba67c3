import json

import pytest

from rackctl import cli
from rackctl.services.inventory import load_inventory

SWITCH_ARGS = ["--address", "10.0.0.5", "--vendor", "Netgear", "--ports", "8"]


@pytest.fixture
def run(inventory_path):
    def _run(*argv):
        return cli.main(["--inventory", str(inventory_path), *argv])

    return _run


@pytest.fixture
def client(monkeypatch, make_client):
    instance = make_client()
    monkeypatch.setattr("rackctl.models._default_client", lambda: instance)
    return instance


def test_list_on_first_run_creates_inventory(run, inventory_path, capsys):
    assert run("list") == 0

    out = capsys.readouterr().out
    assert "No Switches configured" in out
    assert "No Wake-on-Lan devices configured" in out
    assert inventory_path.exists()


def test_switch_add_and_list(run, capsys):
    assert run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private") == 0
    assert run("switch", "list") == 0

    out = capsys.readouterr().out
    assert "Added switch rack-a" in out
    assert "  Name: rack-a\n  Addr: 10.0.0.5\n  Brand: Netgear\n  Ports: 8\n  Version: v2\n  Community: private" in out


def test_switch_add_duplicate_is_input_error(run, capsys):
    run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private")

    assert run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "other") == 2
    assert "already exists" in capsys.readouterr().err


def test_switch_add_rejects_mixed_credential_flags(run, inventory_path):
    code = run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "c", "--username", "u")

    assert code == 2
    assert load_inventory(inventory_path).switches == []


def test_switch_add_v3_without_username_is_input_error(run):
    assert run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--version", "v3", "--auth", "sha") == 2


def test_switch_enable_prints_results(run, client, capsys):
    run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private")
    capsys.readouterr()

    assert run("switch", "enable", "rack-a", "--ports", "1-2,10") == 0

    assert client.calls == [("set", "rack-a", [1, 2, 10], 1)]
    assert capsys.readouterr().out == "Status for rack-a:\n\tPort: 1  - on\n\tPort: 2  - on\n\tPort: 10 - on\n"


def test_switch_disable_defaults_to_all_ports(run, client):
    run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private")

    assert run("switch", "disable", "rack-a") == 0
    assert client.calls == [("set", "rack-a", list(range(1, 9)), 2)]


def test_switch_status_bad_port_spec(run, client, capsys):
    run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private")

    assert run("switch", "status", "rack-a", "--ports", "3-1") == 2
    assert "Invalid port range: 3-1" in capsys.readouterr().err
    assert client.calls == []


def test_switch_status_with_no_answers_fails(run, monkeypatch, make_client, capsys):
    silent = make_client(answering=set())
    monkeypatch.setattr("rackctl.models._default_client", lambda: silent)
    run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private")
    capsys.readouterr()

    assert run("switch", "status", "rack-a") == 1
    assert capsys.readouterr().out == "Status for rack-a:\n"


def test_unknown_switch_is_input_error(run, capsys):
    assert run("switch", "status", "missing") == 2
    assert "not found" in capsys.readouterr().err


def test_v3_password_is_prompted_and_not_stored(run, inventory_path, monkeypatch):
    seen = []

    class Recorder:
        def get(self, switch, ports):
            seen.append(switch.credentials.auth_password)
            return []

    monkeypatch.setattr("rackctl.models._default_client", Recorder)
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "typed-secret")
    run("switch", "add", "--name", "core", *SWITCH_ARGS, "--version", "v3", "--username", "ops", "--auth", "sha")

    run("switch", "status", "core", "--ports", "1")

    assert seen == ["typed-secret"]
    stored = json.loads(inventory_path.read_text())["switches"][0]["credentials"]
    assert stored["auth_password"] == ""


def test_switch_update_merges_flags(run, inventory_path):
    run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private")

    assert run("switch", "update", "rack-a", "--ports", "24") == 0
    switch = load_inventory(inventory_path).get_switch("rack-a")
    assert (switch.address, switch.port_count, switch.credentials.community) == ("10.0.0.5", 24, "private")

    assert run(
        "switch", "update", "rack-a", "--version", "v3", "--username", "ops",
        "--auth", "md5", "--auth-password", "secret123",
    ) == 0
    switch = load_inventory(inventory_path).get_switch("rack-a")
    assert switch.version == "v3"
    assert switch.credentials.auth_protocol == "md5"


def test_switch_update_invalid_leaves_inventory_untouched(run, inventory_path):
    run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private")
    before = inventory_path.read_text()

    assert run("switch", "update", "rack-a", "--address", "10.0.0.9", "--ports", "0") == 2
    assert inventory_path.read_text() == before


def test_switch_update_with_stale_vendor_asks_for_vendor(run, inventory_path, capsys):
    run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private")
    data = json.loads(inventory_path.read_text())
    data["switches"][0]["vendor"] = "Acme"
    inventory_path.write_text(json.dumps(data))
    before = inventory_path.read_text()

    assert run("switch", "update", "rack-a", "--address", "10.0.0.9") == 2
    err = capsys.readouterr().err
    assert "unknown vendor 'Acme'" in err
    assert "--vendor" in err
    assert inventory_path.read_text() == before

    assert run("switch", "update", "rack-a", "--address", "10.0.0.9", "--vendor", "Netgear") == 0
    switch = load_inventory(inventory_path).get_switch("rack-a")
    assert (switch.address, switch.vendor) == ("10.0.0.9", "Netgear")


def test_switch_delete_asks_for_confirmation(run, inventory_path, monkeypatch):
    run("switch", "add", "--name", "rack-a", *SWITCH_ARGS, "--community", "private")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    assert run("switch", "delete", "rack-a") == 0
    assert load_inventory(inventory_path).switch_names() == ["rack-a"]

    assert run("switch", "delete", "rack-a", "--yes") == 0
    assert load_inventory(inventory_path).switch_names() == []


def test_wol_add_enable_delete(run, inventory_path, monkeypatch, capsys):
    sent = []
    monkeypatch.setattr("rackctl.services.wol.send_magic_packet", lambda mac: sent.append(mac))

    assert run("wol", "add", "--name", "nas", "--mac", "AA:BB:CC:DD:EE:FF") == 0
    assert run("wol", "enable", "nas") == 0
    assert sent == ["AA:BB:CC:DD:EE:FF"]
    assert "Sent Wake-on-LAN packet to nas" in capsys.readouterr().out

    assert run("wol", "update", "nas", "--mac", "11:22:33:44:55:66") == 0
    assert load_inventory(inventory_path).get_wol("nas").mac == "11:22:33:44:55:66"

    assert run("wol", "delete", "nas", "-y") == 0
    assert load_inventory(inventory_path).wols == []


def test_wol_add_invalid_mac(run, capsys):
    assert run("wol", "add", "--name", "nas", "--mac", "AA:BB:CC") == 2
    assert "Invalid MAC address" in capsys.readouterr().err


def test_wol_send_failure_is_io_error(run, monkeypatch):
    def refuse(mac):
        raise PermissionError("broadcast not permitted")

    monkeypatch.setattr("rackctl.services.wol.send_magic_packet", refuse)
    run("wol", "add", "--name", "nas", "--mac", "AA:BB:CC:DD:EE:FF")

    assert run("wol", "enable", "nas") == 1


def test_corrupt_inventory_is_reported(run, inventory_path, capsys):
    inventory_path.parent.mkdir(parents=True)
    inventory_path.write_text("[]")

    assert run("list") == 2
    assert "Invalid inventory" in capsys.readouterr().err


def test_v3_flags_select_v3_without_version(run, inventory_path):
    assert run(
        "switch", "add", "--name", "core", *SWITCH_ARGS,
        "--username", "ops", "--auth", "sha", "--auth-password", "secret123",
        "--privacy", "aes", "--privacy-password", "privpass123",
    ) == 0

    switch = load_inventory(inventory_path).get_switch("core")
    assert switch.version == "v3"
    assert "  Auth: SHA\n  Encryption: AES\n" in switch.describe()
