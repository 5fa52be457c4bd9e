from conftest import FakeSession, column

from devclass.communicator import DeviceClassCommunicator
from devclass.context import RequestContext
from devclass.definition import (
    ComponentsDefinition,
    DeviceClass,
    IdentifyProperties,
    InterfacesDefinition,
    OIDDefinition,
    UPSDefinition,
)
from devclass.errors import SnmpSessionError
from devclass.property_reader import ConstantPropertyReader, PropertyDefinition, SnmpGetPropertyReader
from devclass.report import read_device_report

IF_DESCR = ".1.3.6.1.2.1.2.2.1.2"
IF_NUMBER = ".1.3.6.1.2.1.2.1.0"
SERIAL_OID = ".1.3.6.1.2.1.47.1.1.1.1.11.1"


def test_report_collects_supported_capabilities(fake_session: FakeSession, ctx: RequestContext) -> None:
    fake_session.gets[IF_NUMBER] = 2
    fake_session.gets[SERIAL_OID] = SnmpSessionError("request timed out")
    fake_session.walks[IF_DESCR] = column(IF_DESCR, {1: b"eth0", 2: b"eth1"})
    device_class = DeviceClass(
        name="acme",
        identify=IdentifyProperties(
            vendor=PropertyDefinition(readers=(ConstantPropertyReader(value=" Acme "),)),
            serial_number=PropertyDefinition(readers=(SnmpGetPropertyReader(oid=SERIAL_OID),)),
        ),
        components=ComponentsDefinition(
            interfaces=InterfacesDefinition(if_table={"ifDescr": OIDDefinition(IF_DESCR)}, count=IF_NUMBER),
            ups=UPSDefinition(battery_voltage=PropertyDefinition(readers=(ConstantPropertyReader(value="54.5"),))),
        ),
    )

    report = read_device_report(ctx, DeviceClassCommunicator(device_class))

    assert report["device_class"] == "acme"
    assert report["identity"] == {"vendor": "Acme"}
    assert report["ups"] == {"battery_voltage": 54.5}
    assert report["components"]["interface_count"] == 2
    assert report["components"]["interfaces"] == [
        {"ifIndex": 1, "ifDescr": "eth0"},
        {"ifIndex": 2, "ifDescr": "eth1"},
    ]
    assert list(report["errors"]) == ["serial_number"]
    assert report["errors"]["serial_number"].startswith("failed to get serial_number")


def test_report_of_empty_class(fake_session: FakeSession, ctx: RequestContext) -> None:
    report = read_device_report(ctx, DeviceClassCommunicator(DeviceClass(name="empty")))

    assert report == {"device_class": "empty"}
    assert fake_session.calls == 0


def test_report_survives_table_failure(fake_session: FakeSession, ctx: RequestContext) -> None:
    fake_session.walks[IF_DESCR] = OSError("socket error")
    device_class = DeviceClass(
        name="acme",
        identify=IdentifyProperties(vendor=PropertyDefinition(readers=(ConstantPropertyReader(value="Acme"),))),
        components=ComponentsDefinition(interfaces=InterfacesDefinition(if_table={"ifDescr": OIDDefinition(IF_DESCR)})),
    )

    report = read_device_report(ctx, DeviceClassCommunicator(device_class))

    assert report["identity"] == {"vendor": "Acme"}
    assert "components" not in report
    assert report["errors"]["interfaces"].startswith("failed to get ifTable")
