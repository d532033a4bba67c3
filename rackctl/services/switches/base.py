from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from rackctl.services.switches.oids import PortStatus

if TYPE_CHECKING:
    from rackctl.models import Switch


@dataclass(frozen=True)
class SwitchResult:
    port: int
    status: PortStatus

    def __str__(self) -> str:
        pad = "  " if self.port < 10 else " "
        return f"Port: {self.port}{pad}- {self.status}"


class PortClient(Protocol):
    def get(self, switch: Switch, ports: Sequence[int]) -> list[SwitchResult]: ...

    def set(self, switch: Switch, ports: Sequence[int], value: int) -> list[SwitchResult]: ...
