# pyright: reportAttributeAccessIssue=false, reportCallIssue=false
"""Protocol session used by the resolvers.

The resolvers only depend on the ``ProtocolSession`` contract:

  • get(ctx, oid)   -> list of SnmpResponse (one row)
  • walk(ctx, oid)  -> list of SnmpResponse (one row per object in the subtree)

Both raise NotFoundError when the object is not present on the device and
another DevClassError for every other failure.

``PysnmpSession`` implements the contract on top of the PySNMP 7.x async
HLAPI. Calls run synchronously on a background event loop owned by the
session, so the SnmpEngine is reused across every call of one resolution
pass. The session is not safe for concurrent use.
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Protocol, Tuple, Union

from pyasn1.type import univ
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    UsmUserData,
    get_cmd,
    next_cmd,
)
from pysnmp.proto import rfc1902
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from devclass.errors import (
    ContextCancelledError,
    DeadlineExceededError,
    DevClassError,
    NotFoundError,
    SnmpSessionError,
)
from devclass.oid_utils import is_under, oid_str_to_tuple, oid_tuple_to_str

if TYPE_CHECKING:
    from devclass.context import RequestContext

AuthData = Union[CommunityData, UsmUserData]


# ============================================================================
# Response rows
# ============================================================================


@dataclass(frozen=True)
class SnmpGetConfiguration:
    """How a response value is turned into a string."""

    use_raw_result: bool = False


DEFAULT_GET_CONFIGURATION = SnmpGetConfiguration()


def _printable_or_hex(data: bytes) -> str:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        text = None
    if text is not None and all(ch.isprintable() or ch in "\r\n\t" for ch in text):
        return text
    return " ".join(f"{octet:02X}" for octet in data)


@dataclass(frozen=True)
class SnmpResponse:
    """One response row: the fully-qualified OID and a Python primitive value.

    ``value`` is bytes for OCTET STRING, int for the integer family and str
    for OBJECT IDENTIFIER and IpAddress.
    """

    oid: str
    value: Any

    def value_by_configuration(
        self, config: SnmpGetConfiguration = DEFAULT_GET_CONFIGURATION
    ) -> str:
        value = self.value
        if value is None:
            return ""
        if isinstance(value, (bytes, bytearray)):
            if config.use_raw_result:
                return bytes(value).decode("latin-1")
            return _printable_or_hex(bytes(value))
        return str(value)


class ProtocolSession(Protocol):
    """Contract consumed by the resolvers."""

    def get(self, ctx: "RequestContext", oid: str) -> List[SnmpResponse]:
        ...

    def walk(self, ctx: "RequestContext", oid: str) -> List[SnmpResponse]:
        ...


# ============================================================================
# PySNMP value conversion
# ============================================================================


def _to_python(value: Any) -> Any:
    """Convert a PySNMP value into the primitive stored in SnmpResponse."""
    if isinstance(value, rfc1902.IpAddress):
        return value.prettyPrint()
    if isinstance(value, univ.OctetString):
        return value.asOctets()
    if isinstance(value, univ.Integer):
        return int(value)
    if isinstance(value, univ.ObjectIdentifier):
        return "." + oid_tuple_to_str(tuple(value))
    return value.prettyPrint()


def _is_missing(value: Any) -> bool:
    return isinstance(value, (NoSuchObject, NoSuchInstance, EndOfMibView))


def _oid_tuple(name: Any) -> Tuple[int, ...]:
    get_oid = getattr(name, "getOid", None)
    if get_oid is not None:
        name = get_oid()
    return tuple(int(x) for x in name)


def _numeric_oid(oid: str) -> Tuple[int, ...]:
    try:
        return oid_str_to_tuple(oid)
    except ValueError as err:
        raise SnmpSessionError(f"invalid numeric oid '{oid}'") from err


def _raise_on_error(error_indication: Any, error_status: Any, error_index: Any) -> None:
    """Raise if SNMP operation failed."""
    if error_indication:
        raise SnmpSessionError(f"SNMP error: {error_indication}")
    if error_status:
        status = error_status.prettyPrint()
        if status == "noSuchName":
            raise NotFoundError(f"{status} at varbind index {int(error_index or 0)}")
        idx = int(error_index) if error_index else 0
        raise SnmpSessionError(f"{status} at varbind index {idx}")


# ============================================================================
# Background loop
# ============================================================================


class _LoopThread(threading.Thread):
    """Background thread with a persistent event loop for engine reuse."""

    def __init__(self) -> None:
        super().__init__(daemon=True)
        self.loop: asyncio.AbstractEventLoop = asyncio.new_event_loop()
        self.start()

    def run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def stop(self) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)


# ============================================================================
# Session
# ============================================================================


@dataclass
class PysnmpSession:
    """SNMP session for one device backed by a reused SnmpEngine.

    Example:
        with PysnmpSession(
            auth=CommunityData("public", mpModel=1),
            address=("192.168.1.1", 161),
        ) as session:
            ctx = RequestContext(session=session, timeout=30)
            rows = session.walk(ctx, ".1.3.6.1.2.1.2.2.1.2")
    """

    auth: AuthData
    address: Tuple[str, int]
    timeout: float = 1.0
    retries: int = 3
    max_walk_iterations: int = 10000
    poll_interval: float = 0.1
    context: ContextData = field(default_factory=ContextData)
    _engine: Optional[SnmpEngine] = field(default=None, init=False, repr=False)
    _loop_thread: Optional[_LoopThread] = field(default=None, init=False, repr=False)

    def __enter__(self) -> "PysnmpSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _ensure_engine(self) -> SnmpEngine:
        if self._engine is None:
            self._engine = SnmpEngine()
        return self._engine

    def _ensure_loop(self) -> _LoopThread:
        if self._loop_thread is None:
            self._loop_thread = _LoopThread()
        return self._loop_thread

    def close(self) -> None:
        """Stop the background loop and drop the engine."""
        if self._loop_thread is not None:
            self._loop_thread.stop()
            self._loop_thread = None
        self._engine = None

    def _run(self, ctx: "RequestContext", coro_factory: Any, oid: str) -> Any:
        """Run one request on the loop thread, polling the context while it is pending."""
        ctx.check()
        coro = coro_factory(oid)
        future: Future[Any] = asyncio.run_coroutine_threadsafe(
            coro, self._ensure_loop().loop
        )
        while True:
            remaining = ctx.remaining()
            if remaining is not None and remaining <= 0:
                future.cancel()
                raise DeadlineExceededError("context deadline exceeded during SNMP request")
            if ctx.cancelled:
                future.cancel()
                raise ContextCancelledError("context cancelled during SNMP request")

            wait = self.poll_interval if remaining is None else min(self.poll_interval, remaining)
            try:
                return future.result(timeout=wait)
            except FutureTimeoutError as err:
                if not future.done():
                    continue
                raise SnmpSessionError(f"SNMP request for {oid} failed: {err}") from err
            except DevClassError:
                raise
            except Exception as err:
                raise SnmpSessionError(f"SNMP request for {oid} failed: {err}") from err

    async def _get_async(self, oid: str) -> Tuple[Any, Any, Any, Any]:
        target = await UdpTransportTarget.create(
            self.address, timeout=self.timeout, retries=self.retries
        )
        return await get_cmd(
            self._ensure_engine(),
            self.auth,
            target,
            self.context,
            ObjectType(ObjectIdentity(oid)),
        )

    async def _next_async(self, oid: str) -> Tuple[Any, Any, Any, Any]:
        target = await UdpTransportTarget.create(
            self.address, timeout=self.timeout, retries=self.retries
        )
        return await next_cmd(
            self._ensure_engine(),
            self.auth,
            target,
            self.context,
            ObjectType(ObjectIdentity(oid)),
        )

    def get(self, ctx: "RequestContext", oid: str) -> List[SnmpResponse]:
        """Synchronous GET of a single object."""
        numeric = oid_tuple_to_str(_numeric_oid(oid))
        error_indication, error_status, error_index, var_binds = self._run(
            ctx, self._get_async, numeric
        )
        _raise_on_error(error_indication, error_status, error_index)
        if not var_binds:
            raise NotFoundError(f"no response for oid {oid}")

        name, value = var_binds[0][0], var_binds[0][1]
        if _is_missing(value):
            raise NotFoundError(f"oid {oid} not found on device")
        return [SnmpResponse(oid="." + oid_tuple_to_str(_oid_tuple(name)), value=_to_python(value))]

    def walk(self, ctx: "RequestContext", oid: str) -> List[SnmpResponse]:
        """Synchronous subtree walk via GET-NEXT until leaving the subtree."""
        base = _numeric_oid(oid)
        current = oid_tuple_to_str(base)
        rows: List[SnmpResponse] = []

        for _ in range(self.max_walk_iterations):
            error_indication, error_status, error_index, var_binds = self._run(
                ctx, self._next_async, current
            )
            _raise_on_error(error_indication, error_status, error_index)
            if not var_binds:
                break

            name, value = var_binds[0][0], var_binds[0][1]
            name_tuple = _oid_tuple(name)
            if _is_missing(value) or not is_under(name_tuple, base):
                break

            current = oid_tuple_to_str(name_tuple)
            rows.append(SnmpResponse(oid="." + current, value=_to_python(value)))
        else:
            raise SnmpSessionError(
                f"walk of {oid} exceeded {self.max_walk_iterations} iterations"
            )

        if not rows:
            raise NotFoundError(f"oid {oid} not found on device")
        return rows


def session_from_config(
    snmp_cfg: Any,
    host: str,
    community: Optional[str] = None,
    port: Optional[int] = None,
) -> PysnmpSession:
    """Build a PysnmpSession from the ``snmp`` config section."""
    snmp_cfg = snmp_cfg or {}
    version = str(snmp_cfg.get("version", "2c"))
    mp_model = 0 if version == "1" else 1
    return PysnmpSession(
        auth=CommunityData(community or snmp_cfg.get("community", "public"), mpModel=mp_model),
        address=(host, int(port or snmp_cfg.get("port", 161))),
        timeout=float(snmp_cfg.get("timeout", 1.0)),
        retries=int(snmp_cfg.get("retries", 3)),
        max_walk_iterations=int(snmp_cfg.get("max_walk_iterations", 10000)),
    )
