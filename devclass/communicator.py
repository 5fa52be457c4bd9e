"""
Device class communicator.

Resolves the capabilities of one device class against one device. Every
accessor raises NotImplementedCapabilityError when the class does not declare
the capability (without touching the session), and a ResolveError subclass
when fetching or converting fails.

Base interface tables are always built through ``head``, the communicator of
the root class of the hierarchy. Specialised classes pass only their own type
override groups on top of that table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Optional, TypeVar

from devclass.errors import (
    ContextCancelledError,
    DevClassError,
    NotFoundError,
    NotImplementedCapabilityError,
    PropertyResolveError,
    ResolveError,
    SessionUnavailableError,
    ValueConversionError,
)
from devclass.interfaces import Interface, apply_interface_types, build_if_table
from devclass.value import Value

if TYPE_CHECKING:
    from devclass.context import RequestContext
    from devclass.definition import DeviceClass
    from devclass.property_reader import PropertyDefinition
    from devclass.snmp_session import ProtocolSession

T = TypeVar("T")


def _as_trimmed_string(value: Value) -> str:
    return value.to_string().strip()


class DeviceClassCommunicator:
    """Capability accessors for one device class."""

    def __init__(
        self,
        device_class: "DeviceClass",
        head: Optional["DeviceClassCommunicator"] = None,
    ) -> None:
        self.device_class = device_class
        if head is not None:
            self.head = head
        elif device_class.is_root:
            self.head = self
        else:
            self.head = DeviceClassCommunicator(device_class.root())

    def __repr__(self) -> str:
        return f"DeviceClassCommunicator({self.device_class.name})"

    # ------------------------------------------------------------------
    # Scalar properties
    # ------------------------------------------------------------------

    def _resolve_property(
        self,
        ctx: "RequestContext",
        name: str,
        definition: Optional["PropertyDefinition"],
        convert: Callable[[Value], T],
        type_name: str,
    ) -> T:
        if definition is None:
            ctx.logger.with_fields(property=name).trace("no detection information available")
            raise NotImplementedCapabilityError("no detection information available")

        prop_ctx = ctx.with_fields(property=name)
        try:
            value = definition.get_property(prop_ctx)
        except (DevClassError, ValueError) as err:
            prop_ctx.logger.trace(f"failed to get property: {err}")
            raise PropertyResolveError(f"failed to get {name}", name=name) from err

        try:
            return convert(value)
        except ValueConversionError as err:
            raise PropertyResolveError(
                f"failed to convert value '{value}' to {type_name}", name=name
            ) from err

    def _resolve_string(self, ctx: "RequestContext", name: str, definition: Any) -> str:
        return self._resolve_property(ctx, name, definition, _as_trimmed_string, "string")

    def _resolve_ups(self, ctx: "RequestContext", attribute: str, convert: Callable[[Value], T], type_name: str) -> T:
        ups = self.device_class.components.ups
        definition = getattr(ups, attribute) if ups is not None else None
        return self._resolve_property(ctx, f"ups.{attribute}", definition, convert, type_name)

    def get_vendor(self, ctx: "RequestContext") -> str:
        return self._resolve_string(ctx, "vendor", self.device_class.identify.vendor)

    def get_model(self, ctx: "RequestContext") -> str:
        return self._resolve_string(ctx, "model", self.device_class.identify.model)

    def get_model_series(self, ctx: "RequestContext") -> str:
        return self._resolve_string(ctx, "model_series", self.device_class.identify.model_series)

    def get_serial_number(self, ctx: "RequestContext") -> str:
        return self._resolve_string(ctx, "serial_number", self.device_class.identify.serial_number)

    def get_os_version(self, ctx: "RequestContext") -> str:
        return self._resolve_string(ctx, "os_version", self.device_class.identify.os_version)

    def get_ups_component_alarm_low_voltage_disconnect(self, ctx: "RequestContext") -> int:
        return self._resolve_ups(ctx, "alarm_low_voltage_disconnect", Value.to_int, "int")

    def get_ups_component_battery_amperage(self, ctx: "RequestContext") -> float:
        return self._resolve_ups(ctx, "battery_amperage", Value.to_float, "float")

    def get_ups_component_battery_capacity(self, ctx: "RequestContext") -> float:
        return self._resolve_ups(ctx, "battery_capacity", Value.to_float, "float")

    def get_ups_component_battery_current(self, ctx: "RequestContext") -> float:
        return self._resolve_ups(ctx, "battery_current", Value.to_float, "float")

    def get_ups_component_battery_remaining_time(self, ctx: "RequestContext") -> float:
        return self._resolve_ups(ctx, "battery_remaining_time", Value.to_float, "float")

    def get_ups_component_battery_temperature(self, ctx: "RequestContext") -> float:
        return self._resolve_ups(ctx, "battery_temperature", Value.to_float, "float")

    def get_ups_component_battery_voltage(self, ctx: "RequestContext") -> float:
        return self._resolve_ups(ctx, "battery_voltage", Value.to_float, "float")

    def get_ups_component_current_load(self, ctx: "RequestContext") -> float:
        return self._resolve_ups(ctx, "current_load", Value.to_float, "float")

    def get_ups_component_mains_voltage_applied(self, ctx: "RequestContext") -> bool:
        return self._resolve_ups(ctx, "mains_voltage_applied", Value.to_bool, "bool")

    def get_ups_component_rectifier_current(self, ctx: "RequestContext") -> float:
        return self._resolve_ups(ctx, "rectifier_current", Value.to_float, "float")

    def get_ups_component_system_voltage(self, ctx: "RequestContext") -> float:
        return self._resolve_ups(ctx, "system_voltage", Value.to_float, "float")

    # ------------------------------------------------------------------
    # Interfaces
    # ------------------------------------------------------------------

    def get_if_table(self, ctx: "RequestContext") -> List[Interface]:
        """Base interface table of this class, sorted by ifIndex."""
        interfaces = self.device_class.components.interfaces
        if interfaces is None or interfaces.if_table is None:
            ctx.logger.with_fields(property="interfaces").trace("no interface information available")
            raise NotImplementedCapabilityError("not implemented")

        return build_if_table(ctx.with_fields(property="if_table"), interfaces.if_table)

    def get_interfaces(self, ctx: "RequestContext") -> List[Interface]:
        """Base table from the root class merged with this class's type overrides."""
        interfaces = self.device_class.components.interfaces
        if interfaces is None or (interfaces.if_table is None and not interfaces.types):
            ctx.logger.with_fields(property="interfaces").trace("no interface information available")
            raise NotImplementedCapabilityError("not implemented")

        try:
            network_interfaces = self.head.get_if_table(ctx)
        except NotImplementedCapabilityError:
            raise
        except DevClassError as err:
            ctx.logger.trace(f"failed to get ifTable: {err}")
            raise ResolveError("failed to get ifTable", name="if_table") from err

        return apply_interface_types(
            ctx.with_fields(property="interfaces"), network_interfaces, interfaces.types
        )

    def get_count_interfaces(self, ctx: "RequestContext") -> int:
        """Interface count from the count OID, or by counting the interface table."""
        interfaces = self.device_class.components.interfaces
        if interfaces is None or not interfaces.count:
            ctx.logger.trace("no interface count information available")
            raise NotImplementedCapabilityError("not implemented")

        session = ctx.session
        if session is None:
            ctx.logger.trace("snmp client is empty")
            raise SessionUnavailableError("snmp client is empty")

        count_ctx = ctx.with_fields(property="interface_count")
        try:
            return self._fetch_count(count_ctx, session, interfaces.count)
        except ContextCancelledError:
            raise
        except Exception as err:
            count_ctx.logger.trace(f"count oid failed, counting interfaces instead: {err}")

        try:
            network_interfaces = self.head.get_interfaces(count_ctx)
        except DevClassError as err:
            count_ctx.logger.trace(f"failed to read out interfaces: {err}")
            raise PropertyResolveError("failed to read out interfaces", name="interface_count") from err

        return len(network_interfaces)

    @staticmethod
    def _fetch_count(ctx: "RequestContext", session: "ProtocolSession", oid: str) -> int:
        ctx.check()
        responses = session.get(ctx, oid)
        if not responses:
            raise NotFoundError("response is empty")
        raw = responses[0].value
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        raise ValueConversionError(
            f"could not parse response to int, response has type {type(raw).__name__}"
        )
