"""Port range grammar: ``1-6,8,10-12`` <-> ``[1, 2, 3, 4, 5, 6, 8, 10, 11, 12]``."""

from __future__ import annotations

import re
from collections.abc import Iterable

from rackctl.core.errors import PortRangeError

_NUMBER_RE = re.compile(r"[0-9]+")

MAX_PORT = 65535


def _parse_port(part: str, spec: str) -> int:
    # int() alone would also accept "+3", "3_0" and non-ASCII digits.
    if not _NUMBER_RE.fullmatch(part):
        raise PortRangeError(spec)
    port = int(part)
    if not 1 <= port <= MAX_PORT:
        raise PortRangeError(spec)
    return port


def parse_ports(spec: str) -> list[int]:
    """Parse a comma-separated list of ports and inclusive ``start-end`` ranges.

    The result is sorted and deduplicated. Whitespace anywhere, a range with
    more than two bounds, a non-numeric part, a port outside 1-65535 or a
    reversed range (``start > end``) rejects the whole input.
    """
    if not spec or any(ch.isspace() for ch in spec):
        raise PortRangeError(spec)

    ports: set[int] = set()
    for token in spec.split(","):
        if "-" in token:
            bounds = token.split("-")
            if len(bounds) != 2:
                raise PortRangeError(spec)
            start = _parse_port(bounds[0], spec)
            end = _parse_port(bounds[1], spec)
            if start > end:
                raise PortRangeError(spec)
            ports.update(range(start, end + 1))
        else:
            ports.add(_parse_port(token, spec))
    return sorted(ports)


def normalize_ports(ports: Iterable[int]) -> list[int]:
    """Canonicalize an explicit port list the same way ``parse_ports`` does."""
    requested = list(ports)
    out: set[int] = set()
    for port in requested:
        if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= MAX_PORT:
            raise PortRangeError(",".join(str(p) for p in requested))
        out.add(port)
    return sorted(out)


def format_ports(ports: Iterable[int]) -> str:
    """Render a port set back into the range grammar, collapsing runs."""
    ordered = sorted(set(ports))
    if not ordered:
        return ""

    chunks: list[str] = []
    start = prev = ordered[0]
    for port in ordered[1:]:
        if port == prev + 1:
            prev = port
            continue
        chunks.append(str(start) if start == prev else f"{start}-{prev}")
        start = prev = port
    chunks.append(str(start) if start == prev else f"{start}-{prev}")
    return ",".join(chunks)
