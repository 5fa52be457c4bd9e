"""
Property Definitions: ordered readers that produce one scalar Value.

A property is declared as a list of readers. They are tried in declaration
order and the first one that produces a value wins, which lets a device class
say "read this OID, and if the device does not have it use that one".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Tuple

from devclass.errors import (
    ContextCancelledError,
    DevClassError,
    PropertyNotFoundError,
    SessionUnavailableError,
)
from devclass.operators import OperatorChain
from devclass.snmp_session import DEFAULT_GET_CONFIGURATION, SnmpGetConfiguration
from devclass.value import Value

if TYPE_CHECKING:
    from devclass.context import RequestContext


class PropertyReader:
    """Base class for property sources."""

    detection = ""

    operators: OperatorChain

    def read(self, ctx: "RequestContext") -> Value:
        raw = self._read_raw(ctx)
        return self.operators.apply(ctx, raw)

    def _read_raw(self, ctx: "RequestContext") -> Value:
        raise NotImplementedError


@dataclass(frozen=True)
class SnmpGetPropertyReader(PropertyReader):
    """Reads a scalar with a single SNMP GET."""

    oid: str
    get_configuration: SnmpGetConfiguration = DEFAULT_GET_CONFIGURATION
    operators: OperatorChain = field(default_factory=OperatorChain)

    detection = "snmpget"

    def _read_raw(self, ctx: "RequestContext") -> Value:
        session = ctx.session
        if session is None:
            ctx.logger.trace("snmp client is empty")
            raise SessionUnavailableError("snmp client is empty")

        ctx.check()
        responses = session.get(ctx, self.oid)
        if not responses:
            raise PropertyNotFoundError(f"no response for oid {self.oid}")
        return Value(responses[0].value_by_configuration(self.get_configuration))


@dataclass(frozen=True)
class ConstantPropertyReader(PropertyReader):
    """Returns a fixed value from the device class file."""

    value: Any
    operators: OperatorChain = field(default_factory=OperatorChain)

    detection = "constant"

    def _read_raw(self, ctx: "RequestContext") -> Value:
        return Value(self.value)


@dataclass(frozen=True)
class PropertyDefinition:
    """One declared scalar capability: readers tried in order."""

    readers: Tuple[PropertyReader, ...]

    def get_property(self, ctx: "RequestContext") -> Value:
        last_error: Optional[Exception] = None
        for reader in self.readers:
            try:
                value = reader.read(ctx)
            except (SessionUnavailableError, ContextCancelledError):
                raise
            except DevClassError as err:
                ctx.logger.trace(f"{reader.detection} reader failed: {err}")
                last_error = err
                continue
            ctx.logger.trace(f"{reader.detection} reader returned '{value}'")
            return value

        raise PropertyNotFoundError("none of the property readers returned a value") from last_error
