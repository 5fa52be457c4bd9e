"""
Device Class Definition: what a class of device exposes and how to fetch it.

Definitions are immutable once loaded. Every leaf is optional; an absent leaf
means the device class does not implement that capability. Classes form a
hierarchy through ``parent`` links ending in one generic root class.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from devclass.operators import OperatorChain
from devclass.property_reader import PropertyDefinition
from devclass.snmp_session import DEFAULT_GET_CONFIGURATION, SnmpGetConfiguration


@dataclass(frozen=True)
class OIDDefinition:
    """One walkable column: OID, response interpretation and operators."""

    oid: str
    get_configuration: SnmpGetConfiguration = DEFAULT_GET_CONFIGURATION
    operators: OperatorChain = field(default_factory=OperatorChain)


# field name -> OID definition, e.g. {"ifDescr": OIDDefinition(".1.3.6.1.2.1.2.2.1.2")}
NamedOIDGroup = Mapping[str, OIDDefinition]


@dataclass(frozen=True)
class InterfaceTypeDefinition:
    """Type-specific override columns merged into the base interface table."""

    name: str
    values: NamedOIDGroup


@dataclass(frozen=True)
class InterfacesDefinition:
    if_table: Optional[NamedOIDGroup] = None
    types: Tuple[InterfaceTypeDefinition, ...] = ()
    count: str = ""


@dataclass(frozen=True)
class UPSDefinition:
    alarm_low_voltage_disconnect: Optional[PropertyDefinition] = None
    battery_amperage: Optional[PropertyDefinition] = None
    battery_capacity: Optional[PropertyDefinition] = None
    battery_current: Optional[PropertyDefinition] = None
    battery_remaining_time: Optional[PropertyDefinition] = None
    battery_temperature: Optional[PropertyDefinition] = None
    battery_voltage: Optional[PropertyDefinition] = None
    current_load: Optional[PropertyDefinition] = None
    mains_voltage_applied: Optional[PropertyDefinition] = None
    rectifier_current: Optional[PropertyDefinition] = None
    system_voltage: Optional[PropertyDefinition] = None


@dataclass(frozen=True)
class IdentifyProperties:
    vendor: Optional[PropertyDefinition] = None
    model: Optional[PropertyDefinition] = None
    model_series: Optional[PropertyDefinition] = None
    serial_number: Optional[PropertyDefinition] = None
    os_version: Optional[PropertyDefinition] = None


@dataclass(frozen=True)
class ComponentsDefinition:
    interfaces: Optional[InterfacesDefinition] = None
    ups: Optional[UPSDefinition] = None


@dataclass(frozen=True)
class DeviceClass:
    """A node in the device class hierarchy."""

    name: str
    identify: IdentifyProperties = field(default_factory=IdentifyProperties)
    components: ComponentsDefinition = field(default_factory=ComponentsDefinition)
    parent: Optional["DeviceClass"] = field(default=None, repr=False, compare=False)

    def root(self) -> "DeviceClass":
        """Return the generic class at the top of the hierarchy."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def is_root(self) -> bool:
        return self.parent is None
