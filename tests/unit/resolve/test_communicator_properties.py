"""Tests for scalar capability accessors of DeviceClassCommunicator."""

from dataclasses import fields

import pytest
from conftest import FakeSession

from devclass.communicator import DeviceClassCommunicator
from devclass.context import RequestContext
from devclass.definition import ComponentsDefinition, DeviceClass, IdentifyProperties, UPSDefinition
from devclass.errors import (
    NotImplementedCapabilityError,
    PropertyNotFoundError,
    PropertyResolveError,
    SessionUnavailableError,
    ValueConversionError,
)
from devclass.property_reader import ConstantPropertyReader, PropertyDefinition, SnmpGetPropertyReader

VENDOR_OID = ".1.3.6.1.4.1.99999.1.0"
BATTERY_OID = ".1.3.6.1.4.1.99999.2.1.0"
MAINS_OID = ".1.3.6.1.4.1.99999.2.5.0"
ALARM_OID = ".1.3.6.1.4.1.99999.2.6.0"


def snmpget(oid: str) -> PropertyDefinition:
    return PropertyDefinition(readers=(SnmpGetPropertyReader(oid=oid),))


def constant(value: object) -> PropertyDefinition:
    return PropertyDefinition(readers=(ConstantPropertyReader(value=value),))


IDENTITY_METHODS = ["get_vendor", "get_model", "get_model_series", "get_serial_number", "get_os_version"]
UPS_METHODS = [f"get_ups_component_{f.name}" for f in fields(UPSDefinition)]


@pytest.mark.parametrize("method", IDENTITY_METHODS + UPS_METHODS)
def test_unsupported_capability_makes_no_protocol_calls(
    method: str, fake_session: FakeSession, ctx: RequestContext
) -> None:
    communicator = DeviceClassCommunicator(DeviceClass(name="empty"))

    with pytest.raises(NotImplementedCapabilityError):
        getattr(communicator, method)(ctx)

    assert fake_session.calls == 0


def test_vendor_is_trimmed(fake_session: FakeSession, ctx: RequestContext) -> None:
    fake_session.gets[VENDOR_OID] = b"  Acme Corp  "
    communicator = DeviceClassCommunicator(
        DeviceClass(name="acme", identify=IdentifyProperties(vendor=snmpget(VENDOR_OID)))
    )

    assert communicator.get_vendor(ctx) == "Acme Corp"
    assert fake_session.get_calls == [VENDOR_OID]


def test_identity_from_constants(ctx: RequestContext) -> None:
    communicator = DeviceClassCommunicator(
        DeviceClass(
            name="acme",
            identify=IdentifyProperties(
                model=constant("X100"),
                model_series=constant("X"),
                serial_number=constant(12345),
                os_version=constant(" 1.2.3 "),
            ),
        )
    )

    assert communicator.get_model(ctx) == "X100"
    assert communicator.get_model_series(ctx) == "X"
    assert communicator.get_serial_number(ctx) == "12345"
    assert communicator.get_os_version(ctx) == "1.2.3"


def test_fetch_failure_is_wrapped(fake_session: FakeSession, ctx: RequestContext) -> None:
    communicator = DeviceClassCommunicator(
        DeviceClass(name="acme", identify=IdentifyProperties(vendor=snmpget(VENDOR_OID)))
    )

    with pytest.raises(PropertyResolveError) as excinfo:
        communicator.get_vendor(ctx)

    assert excinfo.value.name == "vendor"
    assert str(excinfo.value).startswith("failed to get vendor")
    assert isinstance(excinfo.value.__cause__, PropertyNotFoundError)


def test_missing_session_is_wrapped() -> None:
    communicator = DeviceClassCommunicator(
        DeviceClass(name="acme", identify=IdentifyProperties(vendor=snmpget(VENDOR_OID)))
    )

    with pytest.raises(PropertyResolveError) as excinfo:
        communicator.get_vendor(RequestContext())

    assert isinstance(excinfo.value.__cause__, SessionUnavailableError)


def ups_class(**definitions: PropertyDefinition) -> DeviceClass:
    return DeviceClass(name="ups", components=ComponentsDefinition(ups=UPSDefinition(**definitions)))


def test_ups_float_metric(fake_session: FakeSession, ctx: RequestContext) -> None:
    fake_session.gets[BATTERY_OID] = b"54.2"
    communicator = DeviceClassCommunicator(ups_class(battery_voltage=snmpget(BATTERY_OID)))

    assert communicator.get_ups_component_battery_voltage(ctx) == pytest.approx(54.2)


def test_ups_int_and_bool_metrics(fake_session: FakeSession, ctx: RequestContext) -> None:
    fake_session.gets[ALARM_OID] = 2
    fake_session.gets[MAINS_OID] = b"true"
    communicator = DeviceClassCommunicator(
        ups_class(alarm_low_voltage_disconnect=snmpget(ALARM_OID), mains_voltage_applied=snmpget(MAINS_OID))
    )

    assert communicator.get_ups_component_alarm_low_voltage_disconnect(ctx) == 2
    assert communicator.get_ups_component_mains_voltage_applied(ctx) is True


def test_ups_conversion_failure(fake_session: FakeSession, ctx: RequestContext) -> None:
    fake_session.gets[BATTERY_OID] = b"n/a"
    communicator = DeviceClassCommunicator(ups_class(battery_capacity=snmpget(BATTERY_OID)))

    with pytest.raises(PropertyResolveError) as excinfo:
        communicator.get_ups_component_battery_capacity(ctx)

    assert "failed to convert value 'n/a' to float" in str(excinfo.value)
    assert excinfo.value.name == "ups.battery_capacity"
    assert isinstance(excinfo.value.__cause__, ValueConversionError)


def test_ups_bool_conversion_failure(fake_session: FakeSession, ctx: RequestContext) -> None:
    fake_session.gets[MAINS_OID] = b"maybe"
    communicator = DeviceClassCommunicator(ups_class(mains_voltage_applied=snmpget(MAINS_OID)))

    with pytest.raises(PropertyResolveError, match="to bool"):
        communicator.get_ups_component_mains_voltage_applied(ctx)


def test_ups_other_metrics_unsupported(ctx: RequestContext) -> None:
    communicator = DeviceClassCommunicator(ups_class(battery_voltage=constant(12)))

    assert communicator.get_ups_component_battery_voltage(ctx) == 12.0
    with pytest.raises(NotImplementedCapabilityError):
        communicator.get_ups_component_system_voltage(ctx)
