from __future__ import annotations

import asyncio
import concurrent.futures
import ipaddress
import logging
from collections.abc import Coroutine, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    Udp6TransportTarget,
    UdpTransportTarget,
    USM_AUTH_HMAC96_MD5,
    USM_AUTH_HMAC96_SHA,
    USM_AUTH_NONE,
    USM_PRIV_CBC56_DES,
    USM_PRIV_CFB128_AES,
    USM_PRIV_NONE,
    UsmUserData,
    get_cmd,
    set_cmd,
)
from pyasn1.error import PyAsn1Error
from pysnmp.proto.rfc1902 import Integer
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from rackctl.core.config import settings
from rackctl.core.errors import ConfigurationError, SnmpExchangeError, UnexpectedValueError
from rackctl.observability.metrics import (
    observe_duration,
    snmp_exchange_duration_seconds,
    snmp_operations_total,
)
from rackctl.services.switches.base import SwitchResult
from rackctl.services.switches.oids import VendorOid, get_vendor

if TYPE_CHECKING:
    from rackctl.models import Switch

logger = logging.getLogger(__name__)

T = TypeVar("T")

_AUTH_PROTOCOLS = {
    "none": USM_AUTH_NONE,
    "md5": USM_AUTH_HMAC96_MD5,
    "sha": USM_AUTH_HMAC96_SHA,
}
_PRIV_PROTOCOLS = {
    "none": USM_PRIV_NONE,
    "des": USM_PRIV_CBC56_DES,
    "aes": USM_PRIV_CFB128_AES,
}


def split_host_port(address: str, default_port: int = 161) -> tuple[str, int]:
    """Split ``host``, ``host:port`` or ``[v6-host]:port``; bare IPv6 keeps the default port."""
    host, port_text = address, None
    if address.startswith("["):
        end = address.find("]")
        if end == -1:
            raise ConfigurationError(f"Invalid switch address: {address!r}")
        host, rest = address[1:end], address[end + 1:]
        if rest:
            if not rest.startswith(":"):
                raise ConfigurationError(f"Invalid switch address: {address!r}")
            port_text = rest[1:]
    elif address.count(":") == 1:
        host, port_text = address.split(":")

    if not host:
        raise ConfigurationError(f"Invalid switch address: {address!r}")
    if port_text is None:
        return host, default_port
    if not port_text.isdigit() or not 1 <= int(port_text) <= 65535:
        raise ConfigurationError(f"Invalid SNMP port in address {address!r}")
    return host, int(port_text)


def build_auth_data(credentials) -> CommunityData | UsmUserData:
    if credentials.version == "v2":
        return CommunityData(credentials.community, mpModel=1)
    if credentials.version == "v3":
        if credentials.needs_auth_password:
            raise ConfigurationError(f"SNMPv3 user {credentials.username!r} has no auth password")
        return UsmUserData(
            credentials.username,
            authKey=credentials.auth_password or None,
            privKey=credentials.privacy_password or None,
            authProtocol=_AUTH_PROTOCOLS[credentials.auth_protocol],
            privProtocol=_PRIV_PROTOCOLS[credentials.privacy_protocol],
        )
    raise ConfigurationError(f"Unsupported SNMP version: {credentials.version!r}")


def _int_from_response(oid: str, error_indication, error_status, var_binds) -> int:
    if error_indication:
        raise SnmpExchangeError(f"{oid}: {error_indication}")
    if error_status:
        raise SnmpExchangeError(f"{oid}: error status {error_status}")
    for _oid, val in var_binds:
        if isinstance(val, (NoSuchObject, NoSuchInstance, EndOfMibView)):
            raise SnmpExchangeError(f"{oid}: {val.prettyPrint()}")
        try:
            return int(val)
        except (TypeError, ValueError, PyAsn1Error) as exc:
            raise SnmpExchangeError(f"{oid}: non-integer value {val!r}") from exc
    raise SnmpExchangeError(f"{oid}: empty response")


async def _snmp_get(engine: SnmpEngine, auth, target, oid: str) -> int:
    error_indication, error_status, _error_index, var_binds = await get_cmd(
        engine,
        auth,
        target,
        ContextData(),
        ObjectType(ObjectIdentity(oid)),
    )
    return _int_from_response(oid, error_indication, error_status, var_binds)


async def _snmp_set(engine: SnmpEngine, auth, target, oid: str, value: int) -> int:
    error_indication, error_status, _error_index, var_binds = await set_cmd(
        engine,
        auth,
        target,
        ContextData(),
        ObjectType(ObjectIdentity(oid), Integer(value)),
    )
    return _int_from_response(oid, error_indication, error_status, var_binds)


def _failure_reason(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError | asyncio.TimeoutError):
        return "timeout"
    if isinstance(exc, UnexpectedValueError):
        return "unexpected_value"
    if isinstance(exc, SnmpExchangeError):
        return "protocol"
    if isinstance(exc, OSError):
        return "transport"
    return "exception"


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion from synchronous code, even inside a running loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()
    return asyncio.run(coro)


@dataclass(frozen=True)
class _Request:
    switch: Switch
    vendor: VendorOid
    auth: CommunityData | UsmUserData
    host: str
    port: int
    semaphore: asyncio.Semaphore


class SnmpPortClient:
    """Concurrent per-port SNMP get/set against a single switch.

    Every requested port is its own task with its own engine and transport.
    A port whose session or exchange fails is logged and left out of the
    result; it never affects sibling ports and is never retried.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        retries: int | None = None,
        concurrency: int | None = None,
    ) -> None:
        self.timeout = settings.SNMP_TIMEOUT if timeout is None else timeout
        self.retries = settings.SNMP_RETRIES if retries is None else retries
        self.concurrency = max(settings.SNMP_CONCURRENCY if concurrency is None else concurrency, 1)

    @property
    def exchange_deadline(self) -> float:
        # Outer bound in case the transport never reports its own timeout.
        return self.timeout * (self.retries + 1) + 1.0

    def get(self, switch: Switch, ports: Sequence[int]) -> list[SwitchResult]:
        return run_sync(self.get_async(switch, ports))

    def set(self, switch: Switch, ports: Sequence[int], value: int) -> list[SwitchResult]:
        return run_sync(self.set_async(switch, ports, value))

    async def get_async(self, switch: Switch, ports: Sequence[int]) -> list[SwitchResult]:
        return await self._fan_out("get", switch, ports, None)

    async def set_async(self, switch: Switch, ports: Sequence[int], value: int) -> list[SwitchResult]:
        return await self._fan_out("set", switch, ports, value)

    async def _fan_out(
        self,
        operation: str,
        switch: Switch,
        ports: Sequence[int],
        value: int | None,
    ) -> list[SwitchResult]:
        vendor = get_vendor(switch.vendor)
        auth = build_auth_data(switch.credentials)
        host, port = split_host_port(switch.address, settings.SNMP_PORT)
        requested = sorted(set(ports))
        if not requested:
            return []

        request = _Request(
            switch=switch,
            vendor=vendor,
            auth=auth,
            host=host,
            port=port,
            semaphore=asyncio.Semaphore(self.concurrency),
        )
        with observe_duration(snmp_exchange_duration_seconds.labels(operation=operation)):
            results = await asyncio.gather(
                *(self._exchange(operation, request, p, value) for p in requested)
            )

        return [result for result in results if result is not None]

    async def _exchange(
        self,
        operation: str,
        request: _Request,
        port: int,
        value: int | None,
    ) -> SwitchResult | None:
        oid = request.vendor.oid_string(port)
        try:
            async with request.semaphore:
                raw = await asyncio.wait_for(
                    self._port_call(request, oid, value), timeout=self.exchange_deadline
                )
            status = request.vendor.status_for(raw)
        except Exception as exc:
            reason = _failure_reason(exc)
            logger.warning(
                "SNMP %s failed for %s port %d (%s): %s",
                operation, request.switch.address, port, reason, str(exc) or type(exc).__name__,
            )
            snmp_operations_total.labels(operation=operation, result="error", reason=reason).inc()
            return None

        snmp_operations_total.labels(operation=operation, result="success", reason="ok").inc()
        logger.debug("SNMP %s %s %s = %d (%s)", operation, request.switch.address, oid, raw, status)
        return SwitchResult(port=port, status=status)

    async def _port_call(self, request: _Request, oid: str, value: int | None) -> int:
        engine = SnmpEngine()
        try:
            target = await self._create_transport_target(
                request.host, request.port, timeout=self.timeout, retries=self.retries
            )
            if value is None:
                return await _snmp_get(engine, request.auth, target, oid)
            return await _snmp_set(engine, request.auth, target, oid, value)
        finally:
            # Also runs when wait_for cancels the exchange.
            engine.close_dispatcher()

    async def _create_transport_target(
        self,
        host: str,
        port: int,
        *,
        timeout: float,
        retries: int,
    ):
        """Support both modern and legacy pysnmp async transport APIs."""
        transport = Udp6TransportTarget if _is_ipv6(host) else UdpTransportTarget
        create = getattr(transport, "create", None)
        if callable(create):
            return await create((host, port), timeout=timeout, retries=retries)
        return transport((host, port), timeout=timeout, retries=retries)


def _is_ipv6(host: str) -> bool:
    try:
        return ipaddress.ip_address(host).version == 6
    except ValueError:
        return False
