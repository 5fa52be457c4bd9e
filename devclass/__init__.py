"""Device class property resolution and interface table assembly over SNMP."""

from devclass.communicator import DeviceClassCommunicator
from devclass.context import RequestContext
from devclass.definition import DeviceClass
from devclass.interfaces import Interface
from devclass.loader import load_device_class, load_device_class_chain, load_device_class_file
from devclass.value import Value

__all__ = [
    "DeviceClass",
    "DeviceClassCommunicator",
    "Interface",
    "RequestContext",
    "Value",
    "load_device_class",
    "load_device_class_chain",
    "load_device_class_file",
]
