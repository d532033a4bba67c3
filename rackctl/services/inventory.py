"""Persisted inventory of switches and Wake-on-LAN devices (JSON file)."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from rackctl.core.config import settings
from rackctl.core.errors import DeviceNotFoundError, DuplicateDeviceError, InventoryError
from rackctl.models import Switch, WakeDevice

logger = logging.getLogger(__name__)


class Inventory(BaseModel):
    switches: list[Switch] = Field(default_factory=list)
    wols: list[WakeDevice] = Field(default_factory=list)

    # ── switches ──

    def switch_names(self) -> list[str]:
        return sorted(switch.name for switch in self.switches)

    def get_switch(self, name: str) -> Switch:
        for switch in self.switches:
            if switch.name == name:
                return switch
        raise DeviceNotFoundError("Switch", name)

    def add_switch(self, switch: Switch) -> None:
        if any(existing.name == switch.name for existing in self.switches):
            raise DuplicateDeviceError("Switch", switch.name)
        self.switches.append(switch)

    def remove_switch(self, name: str) -> Switch:
        switch = self.get_switch(name)
        self.switches.remove(switch)
        return switch

    # ── wake-on-lan devices ──

    def wol_names(self) -> list[str]:
        return sorted(wol.name for wol in self.wols)

    def get_wol(self, name: str) -> WakeDevice:
        for wol in self.wols:
            if wol.name == name:
                return wol
        raise DeviceNotFoundError("Wake-on-LAN device", name)

    def add_wol(self, wol: WakeDevice) -> None:
        if any(existing.name == wol.name for existing in self.wols):
            raise DuplicateDeviceError("Wake-on-LAN device", wol.name)
        self.wols.append(wol)

    def remove_wol(self, name: str) -> WakeDevice:
        wol = self.get_wol(name)
        self.wols.remove(wol)
        return wol


def load_inventory(path: Path | None = None) -> Inventory:
    """Load the inventory, creating an empty one on first use.

    An existing file that cannot be parsed raises ``InventoryError`` rather
    than being replaced.
    """
    inventory_path = path or settings.INVENTORY_PATH
    try:
        raw = inventory_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("No inventory found at %s, creating one", inventory_path)
        inventory = Inventory()
        save_inventory(inventory, inventory_path)
        return inventory
    except OSError as err:
        raise InventoryError(f"Cannot read inventory {inventory_path}: {err}") from err

    try:
        return Inventory.model_validate_json(raw)
    except ValidationError as err:
        raise InventoryError(f"Invalid inventory {inventory_path}: {err}") from err


def save_inventory(inventory: Inventory, path: Path | None = None) -> None:
    inventory_path = path or settings.INVENTORY_PATH
    inventory_path.parent.mkdir(parents=True, exist_ok=True)

    payload = inventory.model_dump_json(indent=4)
    fd, tmp_name = tempfile.mkstemp(prefix=".inventory-", suffix=".json", dir=inventory_path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        os.replace(tmp_name, inventory_path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("Inventory saved to %s", inventory_path)
