"""
Build frozen device class definitions from YAML files.

Only the shape of one file is handled here. Parent definitions are linked, not
merged into the child: a class that does not declare a capability does not
have it.

Example file::

    name: acme-ups
    identify:
      properties:
        vendor:
          - detection: constant
            value: Acme
    components:
      interfaces:
        types:
          fiber:
            values:
              ifSpeed:
                oid: .1.3.6.1.4.1.99999.1.2.1.5
      ups:
        battery_voltage:
          - detection: snmpget
            oid: .1.3.6.1.4.1.99999.2.1.0
            operators:
              - type: modify
                modify_method: divide
                value: 10
"""

from __future__ import annotations

import logging
import re
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from devclass.definition import (
    ComponentsDefinition,
    DeviceClass,
    IdentifyProperties,
    InterfacesDefinition,
    InterfaceTypeDefinition,
    NamedOIDGroup,
    OIDDefinition,
    UPSDefinition,
)
from devclass.errors import DefinitionError
from devclass.oid_utils import is_numeric_oid
from devclass.operators import OperatorChain
from devclass.property_reader import (
    ConstantPropertyReader,
    PropertyDefinition,
    PropertyReader,
    SnmpGetPropertyReader,
)
from devclass.snmp_session import SnmpGetConfiguration

logger = logging.getLogger(__name__)


def _operators(config: Mapping[str, Any], where: str) -> OperatorChain:
    try:
        return OperatorChain.from_config(config.get("operators"))
    except (KeyError, TypeError, ValueError, re.error) as err:
        raise DefinitionError(f"invalid operators in {where}: {err}") from err


def _oid(value: Any, where: str) -> str:
    oid = str(value).strip()
    if not is_numeric_oid(oid):
        raise DefinitionError(f"{where} has a non-numeric oid '{oid}'")
    return oid


def _get_configuration(config: Mapping[str, Any]) -> SnmpGetConfiguration:
    return SnmpGetConfiguration(use_raw_result=bool(config.get("use_raw_result", False)))


def _property_reader(config: Mapping[str, Any], where: str) -> PropertyReader:
    detection = config.get("detection")
    if detection == "snmpget":
        if not config.get("oid"):
            raise DefinitionError(f"snmpget reader in {where} has no oid")
        return SnmpGetPropertyReader(
            oid=_oid(config["oid"], where),
            get_configuration=_get_configuration(config),
            operators=_operators(config, where),
        )
    if detection == "constant":
        if "value" not in config:
            raise DefinitionError(f"constant reader in {where} has no value")
        return ConstantPropertyReader(value=config["value"], operators=_operators(config, where))
    raise DefinitionError(f"unknown detection '{detection}' in {where}")


def _property_definition(config: Any, where: str) -> Optional[PropertyDefinition]:
    if config is None:
        return None
    if isinstance(config, Mapping):
        config = [config]
    if not isinstance(config, list) or not config:
        raise DefinitionError(f"{where} must be a non-empty list of readers")
    return PropertyDefinition(
        readers=tuple(_property_reader(reader, where) for reader in config)
    )


def _named_oid_group(config: Any, where: str) -> NamedOIDGroup:
    if not isinstance(config, Mapping):
        raise DefinitionError(f"{where} must map field names to oids")
    group: Dict[str, OIDDefinition] = {}
    for name, oid_config in config.items():
        if isinstance(oid_config, str):
            oid_config = {"oid": oid_config}
        if not isinstance(oid_config, Mapping) or not oid_config.get("oid"):
            raise DefinitionError(f"{where}.{name} has no oid")
        group[str(name)] = OIDDefinition(
            oid=_oid(oid_config["oid"], f"{where}.{name}"),
            get_configuration=_get_configuration(oid_config),
            operators=_operators(oid_config, f"{where}.{name}"),
        )
    return group


def _interfaces(config: Optional[Mapping[str, Any]]) -> Optional[InterfacesDefinition]:
    if config is None:
        return None
    if_table = config.get("ifTable")
    types: List[InterfaceTypeDefinition] = []
    for type_name, type_config in (config.get("types") or {}).items():
        values = (type_config or {}).get("values")
        types.append(
            InterfaceTypeDefinition(
                name=str(type_name),
                values=_named_oid_group(values, f"interfaces.types.{type_name}.values"),
            )
        )
    return InterfacesDefinition(
        if_table=_named_oid_group(if_table, "interfaces.ifTable") if if_table is not None else None,
        types=tuple(types),
        count=_oid(config["count"], "interfaces.count") if config.get("count") else "",
    )


def _ups(config: Optional[Mapping[str, Any]]) -> Optional[UPSDefinition]:
    if config is None:
        return None
    known = {f.name for f in fields(UPSDefinition)}
    for key in config:
        if key not in known:
            logger.warning(f"Ignoring unknown ups property '{key}'")
    return UPSDefinition(
        **{
            name: _property_definition(config.get(name), f"ups.{name}")
            for name in known
        }
    )


def _identify(config: Optional[Mapping[str, Any]]) -> IdentifyProperties:
    properties = (config or {}).get("properties") or {}
    return IdentifyProperties(
        **{
            f.name: _property_definition(properties.get(f.name), f"identify.properties.{f.name}")
            for f in fields(IdentifyProperties)
        }
    )


def load_device_class(
    mapping: Mapping[str, Any],
    name: Optional[str] = None,
    parent: Optional[DeviceClass] = None,
) -> DeviceClass:
    """Build a DeviceClass from an already parsed mapping."""
    if not isinstance(mapping, Mapping):
        raise DefinitionError("device class must be a mapping")
    class_name = name or mapping.get("name")
    if not class_name:
        raise DefinitionError("device class has no name")

    components = mapping.get("components") or {}
    device_class = DeviceClass(
        name=str(class_name),
        identify=_identify(mapping.get("identify")),
        components=ComponentsDefinition(
            interfaces=_interfaces(components.get("interfaces")),
            ups=_ups(components.get("ups")),
        ),
        parent=parent,
    )
    logger.debug(f"Loaded device class {device_class.name}")
    return device_class


def load_device_class_file(
    path: Union[str, Path],
    parent: Optional[DeviceClass] = None,
) -> DeviceClass:
    """Load one YAML device class file; the name defaults to the file stem."""
    file_path = Path(path)
    with open(file_path, "r", encoding="utf-8") as f:
        try:
            mapping = yaml.safe_load(f)
        except yaml.YAMLError as err:
            raise DefinitionError(f"invalid YAML in {file_path}: {err}") from err
    if not isinstance(mapping, Mapping):
        raise DefinitionError(f"{file_path} does not contain a device class mapping")
    return load_device_class(mapping, name=mapping.get("name") or file_path.stem, parent=parent)


def load_device_class_chain(paths: List[Union[str, Path]]) -> DeviceClass:
    """Load files root first; each file becomes the child of the previous one."""
    if not paths:
        raise DefinitionError("no device class files given")
    device_class = load_device_class_file(paths[0])
    for path in paths[1:]:
        device_class = load_device_class_file(path, parent=device_class)
    return device_class
