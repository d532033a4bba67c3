"""Wake-on-LAN magic packets.

A magic packet is six 0xFF bytes followed by the target MAC address repeated
sixteen times, sent as a single UDP broadcast. There is no reply: success
only means the local stack accepted the datagram.
"""

from __future__ import annotations

import logging
import re
import socket

from rackctl.core.config import settings
from rackctl.core.errors import MagicPacketError
from rackctl.observability.metrics import wol_packets_total

logger = logging.getLogger(__name__)

MAGIC_PACKET_SIZE = 102
_SYNC_STREAM = b"\xff" * 6
_MAC_REPETITIONS = 16
_OCTET_SPLIT_RE = re.compile(r"[:-]")
_OCTET_RE = re.compile(r"[0-9A-Fa-f]{2}")


def mac_octets(mac: str) -> bytes:
    """Return the six octets of a colon- or hyphen-delimited MAC address."""
    parts = _OCTET_SPLIT_RE.split(mac.strip())
    if len(parts) != 6 or not all(_OCTET_RE.fullmatch(part) for part in parts):
        raise ValueError(f"Invalid MAC address: {mac}")
    return bytes.fromhex("".join(parts))


def build_magic_packet(mac: str) -> bytes:
    packet = _SYNC_STREAM + mac_octets(mac) * _MAC_REPETITIONS
    if len(packet) != MAGIC_PACKET_SIZE:
        raise MagicPacketError(f"Magic packet is {len(packet)} bytes, expected {MAGIC_PACKET_SIZE}")
    return packet


def send_magic_packet(mac: str, broadcast: str | None = None, port: int | None = None) -> None:
    """Broadcast a magic packet for ``mac``. ``OSError`` from the socket propagates."""
    packet = build_magic_packet(mac)
    destination = (broadcast or settings.WOL_BROADCAST_ADDRESS, port or settings.WOL_PORT)

    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind(("0.0.0.0", 0))
            sock.sendto(packet, destination)
    except OSError:
        wol_packets_total.labels(result="error").inc()
        raise

    wol_packets_total.labels(result="sent").inc()
    logger.debug("Magic packet for %s sent to %s:%d", mac, *destination)
