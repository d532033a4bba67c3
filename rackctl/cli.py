from __future__ import annotations

import argparse
import getpass
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from rackctl.core.config import settings
from rackctl.core.errors import RackctlError
from rackctl.models import SnmpV3Credentials, Switch
from rackctl.schemas import SwitchCreate, SwitchUpdate, WakeDeviceCreate, WakeDeviceUpdate
from rackctl.services.inventory import Inventory, load_inventory, save_inventory
from rackctl.services.switches.base import SwitchResult
from rackctl.services.switches.oids import find_vendor, vendor_names

logger = logging.getLogger(__name__)

_V3_FLAGS = ("username", "auth", "auth_password", "privacy", "privacy_password")


class CliError(RackctlError):
    """Invalid combination of command-line flags."""


# ── helpers ──────────────────────────────────────────────────────


def _load(args: argparse.Namespace) -> Inventory:
    return load_inventory(args.inventory)


def _save(args: argparse.Namespace, inventory: Inventory) -> None:
    save_inventory(inventory, args.inventory)


def _confirm(args: argparse.Namespace, prompt: str) -> bool:
    if args.yes:
        return True
    return input(f"{prompt} [y/N] ").strip().lower() in ("y", "yes")


def _credentials_from_args(args: argparse.Namespace, current=None) -> dict:
    """Build the credential payload from flags, keeping unset values from ``current``.

    Without ``--version`` the SNMP version follows the flags given: any v3
    flag selects v3, ``--community`` selects v2, otherwise it is unchanged.
    """
    if args.version:
        version = args.version
    elif any(getattr(args, flag) is not None for flag in _V3_FLAGS):
        version = "v3"
    elif args.community is not None:
        version = "v2"
    else:
        version = current.version if current is not None else "v2"
    previous = current if current is not None and current.version == version else None

    if version == "v2":
        if any(getattr(args, flag) is not None for flag in _V3_FLAGS):
            raise CliError("--username/--auth/--privacy options only apply to SNMP v3")
        community = args.community if args.community is not None else getattr(previous, "community", None)
        if not community:
            raise CliError("--community is required for SNMP v2")
        return {"version": "v2", "community": community}

    if args.community is not None:
        raise CliError("--community only applies to SNMP v2")
    data = previous.model_dump() if previous is not None else {"version": "v3"}
    for field, value in (
        ("username", args.username),
        ("auth_protocol", args.auth),
        ("auth_password", args.auth_password),
        ("privacy_protocol", args.privacy),
        ("privacy_password", args.privacy_password),
    ):
        if value is not None:
            data[field] = value
    if data.get("auth_protocol", "none") == "none":
        data["auth_password"] = ""
    if data.get("privacy_protocol", "none") == "none":
        data["privacy_password"] = ""
    if not data.get("username"):
        raise CliError("--username is required for SNMP v3")
    return data


def _with_runtime_password(switch: Switch) -> Switch:
    creds = switch.credentials
    if isinstance(creds, SnmpV3Credentials) and creds.needs_auth_password:
        password = getpass.getpass(f"SNMPv3 password for {creds.username}@{switch.name}: ")
        return switch.model_copy(update={"credentials": creds.with_auth_password(password)})
    return switch


def format_results(name: str, results: Sequence[SwitchResult]) -> str:
    lines = [f"Status for {name}:"]
    lines.extend(f"\t{result}" for result in sorted(results, key=lambda r: r.port))
    return "\n".join(lines)


def _print_switches(inventory: Inventory) -> None:
    print("Switches:")
    if not inventory.switches:
        print("  No Switches configured\n")
        return
    for switch in inventory.switches:
        print(switch.describe())


def _print_wols(inventory: Inventory) -> None:
    print("Wols:")
    if not inventory.wols:
        print("  No Wake-on-Lan devices configured")
        return
    for wol in inventory.wols:
        print(wol.describe())


# ── commands ─────────────────────────────────────────────────────


def cmd_list(args: argparse.Namespace) -> int:
    inventory = _load(args)
    _print_switches(inventory)
    _print_wols(inventory)
    return 0


def cmd_switch_list(args: argparse.Namespace) -> int:
    _print_switches(_load(args))
    return 0


def cmd_switch_add(args: argparse.Namespace) -> int:
    inventory = _load(args)
    create = SwitchCreate(
        name=args.name,
        address=args.address,
        vendor=args.vendor,
        port_count=args.port_count,
        credentials=_credentials_from_args(args),
    )
    inventory.add_switch(create.to_switch())
    _save(args, inventory)
    print(f"Added switch {create.name}")
    return 0


def cmd_switch_update(args: argparse.Namespace) -> int:
    inventory = _load(args)
    switch = inventory.get_switch(args.name)
    if args.vendor is None and find_vendor(switch.vendor) is None:
        raise CliError(
            f"Switch '{switch.name}' uses unknown vendor '{switch.vendor}'; "
            f"pass --vendor ({', '.join(vendor_names())})"
        )
    changes = SwitchUpdate(
        address=switch.address if args.address is None else args.address,
        vendor=switch.vendor if args.vendor is None else args.vendor,
        port_count=switch.port_count if args.port_count is None else args.port_count,
        credentials=_credentials_from_args(args, switch.credentials),
    )
    switch.update(changes)
    _save(args, inventory)
    print(f"Updated switch {switch.name}")
    return 0


def cmd_switch_delete(args: argparse.Namespace) -> int:
    inventory = _load(args)
    inventory.get_switch(args.name)
    if not _confirm(args, f"Are you sure you want to delete {args.name}?"):
        return 0
    inventory.remove_switch(args.name)
    _save(args, inventory)
    print(f"Deleted switch {args.name}")
    return 0


def cmd_switch_action(args: argparse.Namespace) -> int:
    switch = _with_runtime_password(_load(args).get_switch(args.name))
    operation = {
        "enable": switch.enable,
        "disable": switch.disable,
        "status": switch.status,
    }[args.switch_command]
    results = operation(args.ports)
    print(format_results(switch.name, results))
    return 0 if results else 1


def cmd_wol_list(args: argparse.Namespace) -> int:
    _print_wols(_load(args))
    return 0


def cmd_wol_add(args: argparse.Namespace) -> int:
    inventory = _load(args)
    create = WakeDeviceCreate(name=args.name, mac=args.mac)
    inventory.add_wol(create.to_device())
    _save(args, inventory)
    print(f"Added Wake-on-LAN device {create.name}")
    return 0


def cmd_wol_update(args: argparse.Namespace) -> int:
    inventory = _load(args)
    device = inventory.get_wol(args.name)
    device.update(WakeDeviceUpdate(mac=args.mac))
    _save(args, inventory)
    print(f"Updated Wake-on-LAN device {device.name}")
    return 0


def cmd_wol_delete(args: argparse.Namespace) -> int:
    inventory = _load(args)
    inventory.get_wol(args.name)
    if not _confirm(args, f"Are you sure you want to delete {args.name}?"):
        return 0
    inventory.remove_wol(args.name)
    _save(args, inventory)
    print(f"Deleted Wake-on-LAN device {args.name}")
    return 0


def cmd_wol_enable(args: argparse.Namespace) -> int:
    device = _load(args).get_wol(args.name)
    device.enable()
    print(f"Sent Wake-on-LAN packet to {device.name}")
    return 0


# ── parser ───────────────────────────────────────────────────────


def _add_switch_fields(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--address", required=required, help="IP or host, optionally host:port")
    vendor_help = None if required else "Switch vendor (required when the stored vendor is no longer known)"
    parser.add_argument("--vendor", required=required, choices=vendor_names(), help=vendor_help)
    parser.add_argument("--ports", dest="port_count", type=int, required=required, help="Number of ports")
    parser.add_argument("--version", choices=("v2", "v3"), help="SNMP version (default: inferred from the credential flags)")
    parser.add_argument("--community", help="SNMP v2 community string")
    parser.add_argument("--username", help="SNMP v3 user")
    parser.add_argument("--auth", choices=("none", "md5", "sha"), help="SNMP v3 authentication protocol")
    parser.add_argument("--auth-password", help="SNMP v3 auth password (omit to prompt each time)")
    parser.add_argument("--privacy", choices=("none", "des", "aes"), help="SNMP v3 privacy protocol")
    parser.add_argument("--privacy-password", help="SNMP v3 privacy password")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rackctl", description="Control PoE switch ports and Wake-on-LAN devices")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--inventory", type=Path, default=None, help="Inventory file path")
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List all devices")
    list_cmd.set_defaults(handler=cmd_list)

    # switch
    switch = commands.add_parser("switch", help="Manage switches")
    switch_cmds = switch.add_subparsers(dest="switch_command", required=True)

    add = switch_cmds.add_parser("add", help="Add a new switch")
    add.add_argument("--name", required=True)
    _add_switch_fields(add, required=True)
    add.set_defaults(handler=cmd_switch_add)

    update = switch_cmds.add_parser("update", help="Update a switch")
    update.add_argument("name")
    _add_switch_fields(update, required=False)
    update.set_defaults(handler=cmd_switch_update)

    delete = switch_cmds.add_parser("delete", help="Delete a switch")
    delete.add_argument("name")
    delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    delete.set_defaults(handler=cmd_switch_delete)

    switch_cmds.add_parser("list", help="List switches").set_defaults(handler=cmd_switch_list)

    for action, help_text in (
        ("enable", "Turn PoE on for the selected ports"),
        ("disable", "Turn PoE off for the selected ports"),
        ("status", "Show PoE state of the selected ports"),
    ):
        sub = switch_cmds.add_parser(action, help=help_text)
        sub.add_argument("name")
        sub.add_argument("--ports", default=None, help="Port list, e.g. 1-6,8,10-12 (default: all)")
        sub.set_defaults(handler=cmd_switch_action)

    # wol
    wol = commands.add_parser("wol", help="Manage Wake-on-LAN devices")
    wol_cmds = wol.add_subparsers(dest="wol_command", required=True)

    add = wol_cmds.add_parser("add", help="Add a new Wake-on-LAN device")
    add.add_argument("--name", required=True)
    add.add_argument("--mac", required=True)
    add.set_defaults(handler=cmd_wol_add)

    update = wol_cmds.add_parser("update", help="Update a Wake-on-LAN device")
    update.add_argument("name")
    update.add_argument("--mac", required=True)
    update.set_defaults(handler=cmd_wol_update)

    delete = wol_cmds.add_parser("delete", help="Delete a Wake-on-LAN device")
    delete.add_argument("name")
    delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    delete.set_defaults(handler=cmd_wol_delete)

    wol_cmds.add_parser("list", help="List Wake-on-LAN devices").set_defaults(handler=cmd_wol_list)

    enable = wol_cmds.add_parser("enable", help="Send a magic packet")
    enable.add_argument("name")
    enable.set_defaults(handler=cmd_wol_enable)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.debug else settings.LOG_LEVEL
    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(message)s")

    try:
        return args.handler(args)
    except (RackctlError, ValidationError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        logger.error("I/O error: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
