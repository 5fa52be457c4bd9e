"""Read every capability of a device class into one report dictionary."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Tuple

from devclass.errors import DevClassError, NotImplementedCapabilityError

if TYPE_CHECKING:
    from devclass.communicator import DeviceClassCommunicator
    from devclass.context import RequestContext

logger = logging.getLogger(__name__)

IDENTITY_ACCESSORS: List[Tuple[str, str]] = [
    ("vendor", "get_vendor"),
    ("model", "get_model"),
    ("model_series", "get_model_series"),
    ("serial_number", "get_serial_number"),
    ("os_version", "get_os_version"),
]

UPS_ACCESSORS: List[Tuple[str, str]] = [
    ("alarm_low_voltage_disconnect", "get_ups_component_alarm_low_voltage_disconnect"),
    ("battery_amperage", "get_ups_component_battery_amperage"),
    ("battery_capacity", "get_ups_component_battery_capacity"),
    ("battery_current", "get_ups_component_battery_current"),
    ("battery_remaining_time", "get_ups_component_battery_remaining_time"),
    ("battery_temperature", "get_ups_component_battery_temperature"),
    ("battery_voltage", "get_ups_component_battery_voltage"),
    ("current_load", "get_ups_component_current_load"),
    ("mains_voltage_applied", "get_ups_component_mains_voltage_applied"),
    ("rectifier_current", "get_ups_component_rectifier_current"),
    ("system_voltage", "get_ups_component_system_voltage"),
]


def _read(
    ctx: "RequestContext",
    accessor: Callable[["RequestContext"], Any],
    key: str,
    section: Dict[str, Any],
    errors: Dict[str, str],
) -> None:
    try:
        section[key] = accessor(ctx)
    except NotImplementedCapabilityError:
        return
    except DevClassError as err:
        logger.warning(f"Could not read {key}: {err}")
        errors[key] = str(err)


def read_device_report(ctx: "RequestContext", communicator: "DeviceClassCommunicator") -> Dict[str, Any]:
    """Resolve every capability independently.

    Unsupported capabilities are omitted. A hard failure is recorded under
    ``errors`` and never stops the remaining capabilities from being read.
    """
    identity: Dict[str, Any] = {}
    ups: Dict[str, Any] = {}
    components: Dict[str, Any] = {}
    errors: Dict[str, str] = {}

    for key, method in IDENTITY_ACCESSORS:
        _read(ctx, getattr(communicator, method), key, identity, errors)

    for key, method in UPS_ACCESSORS:
        _read(ctx, getattr(communicator, method), f"ups.{key}", ups, errors)

    _read(ctx, communicator.get_count_interfaces, "interface_count", components, errors)
    _read(ctx, communicator.get_interfaces, "interfaces", components, errors)
    if "interfaces" in components:
        components["interfaces"] = [iface.to_dict() for iface in components["interfaces"]]

    report: Dict[str, Any] = {"device_class": communicator.device_class.name}
    if identity:
        report["identity"] = identity
    if ups:
        report["ups"] = {key.split(".", 1)[1]: value for key, value in ups.items()}
    if components:
        report["components"] = components
    if errors:
        report["errors"] = errors
    return report
