from __future__ import annotations

from contextlib import contextmanager
from time import perf_counter

from prometheus_client import Counter, Histogram

snmp_operations_total = Counter(
    "rackctl_snmp_operations_total",
    "Per-port SNMP exchange outcomes.",
    ["operation", "result", "reason"],
)

snmp_exchange_duration_seconds = Histogram(
    "rackctl_snmp_exchange_duration_seconds",
    "Duration of a full per-switch SNMP fan-out.",
    ["operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)

switch_ops_total = Counter(
    "rackctl_switch_ops_total",
    "Switch capability operation outcomes.",
    ["operation", "result"],
)

wol_packets_total = Counter(
    "rackctl_wol_packets_total",
    "Wake-on-LAN magic packet send outcomes.",
    ["result"],
)


@contextmanager
def observe_duration(metric):
    start = perf_counter()
    try:
        yield
    finally:
        metric.observe(max(perf_counter() - start, 0))
