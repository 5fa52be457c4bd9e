"""
Interface records and the table assembly algorithm.

Raw walked values are decoded through ``INTERFACE_FIELDS``, a static map from
the column name used in device class files to the record attribute and the
coercion applied to it. Unknown column names are ignored and columns that were
not walked stay ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence

from devclass.errors import InterfaceDecodeError, ValueConversionError
from devclass.value import Value
from devclass.walker import GroupedRawTable, get_values_by_snmp_walk

if TYPE_CHECKING:
    from devclass.context import RequestContext
    from devclass.definition import InterfaceTypeDefinition, NamedOIDGroup


@dataclass
class Interface:
    """One network interface, identified by ``if_index``."""

    if_index: int
    # IF-MIB ifTable
    if_descr: Optional[str] = None
    if_type: Optional[str] = None
    if_mtu: Optional[int] = None
    if_speed: Optional[int] = None
    if_phys_address: Optional[str] = None
    if_admin_status: Optional[str] = None
    if_oper_status: Optional[str] = None
    if_last_change: Optional[int] = None
    if_in_octets: Optional[int] = None
    if_in_ucast_pkts: Optional[int] = None
    if_in_nucast_pkts: Optional[int] = None
    if_in_discards: Optional[int] = None
    if_in_errors: Optional[int] = None
    if_in_unknown_protos: Optional[int] = None
    if_out_octets: Optional[int] = None
    if_out_ucast_pkts: Optional[int] = None
    if_out_nucast_pkts: Optional[int] = None
    if_out_discards: Optional[int] = None
    if_out_errors: Optional[int] = None
    if_out_qlen: Optional[int] = None
    if_specific: Optional[str] = None
    # IF-MIB ifXTable
    if_name: Optional[str] = None
    if_in_multicast_pkts: Optional[int] = None
    if_in_broadcast_pkts: Optional[int] = None
    if_out_multicast_pkts: Optional[int] = None
    if_out_broadcast_pkts: Optional[int] = None
    if_hc_in_octets: Optional[int] = None
    if_hc_in_ucast_pkts: Optional[int] = None
    if_hc_in_multicast_pkts: Optional[int] = None
    if_hc_in_broadcast_pkts: Optional[int] = None
    if_hc_out_octets: Optional[int] = None
    if_hc_out_ucast_pkts: Optional[int] = None
    if_hc_out_multicast_pkts: Optional[int] = None
    if_hc_out_broadcast_pkts: Optional[int] = None
    if_high_speed: Optional[int] = None
    if_alias: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Populated fields keyed by their column names."""
        result: Dict[str, Any] = {}
        for column, mapping in INTERFACE_FIELDS.items():
            value = getattr(self, mapping.attribute)
            if value is not None:
                result[column] = value
        return result


def _as_int(value: Any) -> int:
    return Value(value).to_int()


def _as_str(value: Any) -> str:
    return str(value)


class FieldMapping(NamedTuple):
    attribute: str
    coerce: Callable[[Any], Any]


INTERFACE_FIELDS: Dict[str, FieldMapping] = {
    "ifIndex": FieldMapping("if_index", _as_int),
    "ifDescr": FieldMapping("if_descr", _as_str),
    "ifType": FieldMapping("if_type", _as_str),
    "ifMtu": FieldMapping("if_mtu", _as_int),
    "ifSpeed": FieldMapping("if_speed", _as_int),
    "ifPhysAddress": FieldMapping("if_phys_address", _as_str),
    "ifAdminStatus": FieldMapping("if_admin_status", _as_str),
    "ifOperStatus": FieldMapping("if_oper_status", _as_str),
    "ifLastChange": FieldMapping("if_last_change", _as_int),
    "ifInOctets": FieldMapping("if_in_octets", _as_int),
    "ifInUcastPkts": FieldMapping("if_in_ucast_pkts", _as_int),
    "ifInNUcastPkts": FieldMapping("if_in_nucast_pkts", _as_int),
    "ifInDiscards": FieldMapping("if_in_discards", _as_int),
    "ifInErrors": FieldMapping("if_in_errors", _as_int),
    "ifInUnknownProtos": FieldMapping("if_in_unknown_protos", _as_int),
    "ifOutOctets": FieldMapping("if_out_octets", _as_int),
    "ifOutUcastPkts": FieldMapping("if_out_ucast_pkts", _as_int),
    "ifOutNUcastPkts": FieldMapping("if_out_nucast_pkts", _as_int),
    "ifOutDiscards": FieldMapping("if_out_discards", _as_int),
    "ifOutErrors": FieldMapping("if_out_errors", _as_int),
    "ifOutQLen": FieldMapping("if_out_qlen", _as_int),
    "ifSpecific": FieldMapping("if_specific", _as_str),
    "ifName": FieldMapping("if_name", _as_str),
    "ifInMulticastPkts": FieldMapping("if_in_multicast_pkts", _as_int),
    "ifInBroadcastPkts": FieldMapping("if_in_broadcast_pkts", _as_int),
    "ifOutMulticastPkts": FieldMapping("if_out_multicast_pkts", _as_int),
    "ifOutBroadcastPkts": FieldMapping("if_out_broadcast_pkts", _as_int),
    "ifHCInOctets": FieldMapping("if_hc_in_octets", _as_int),
    "ifHCInUcastPkts": FieldMapping("if_hc_in_ucast_pkts", _as_int),
    "ifHCInMulticastPkts": FieldMapping("if_hc_in_multicast_pkts", _as_int),
    "ifHCInBroadcastPkts": FieldMapping("if_hc_in_broadcast_pkts", _as_int),
    "ifHCOutOctets": FieldMapping("if_hc_out_octets", _as_int),
    "ifHCOutUcastPkts": FieldMapping("if_hc_out_ucast_pkts", _as_int),
    "ifHCOutMulticastPkts": FieldMapping("if_hc_out_multicast_pkts", _as_int),
    "ifHCOutBroadcastPkts": FieldMapping("if_hc_out_broadcast_pkts", _as_int),
    "ifHighSpeed": FieldMapping("if_high_speed", _as_int),
    "ifAlias": FieldMapping("if_alias", _as_str),
}


def _decode_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    decoded: Dict[str, Any] = {}
    for column, raw_value in raw.items():
        mapping = INTERFACE_FIELDS.get(column)
        if mapping is None:
            continue
        try:
            decoded[mapping.attribute] = mapping.coerce(raw_value)
        except ValueConversionError as err:
            raise InterfaceDecodeError(
                f"can't parse value '{raw_value}' of {column} into interface", name=column
            ) from err
    return decoded


def decode_interface(index: str, raw: Mapping[str, Any]) -> Interface:
    """Decode one grouped row into a fresh Interface.

    ``if_index`` comes from the ``ifIndex`` column when it was walked and from
    the row index otherwise.
    """
    decoded = _decode_fields(raw)
    if "if_index" not in decoded:
        try:
            decoded["if_index"] = int(index)
        except ValueError as err:
            raise InterfaceDecodeError(
                f"can't determine ifIndex of row '{index}'", name="ifIndex"
            ) from err
    return Interface(**decoded)


def merge_interface(record: Interface, raw: Mapping[str, Any]) -> None:
    """Overwrite only the fields present in ``raw``; ``if_index`` is kept."""
    for attribute, value in _decode_fields(raw).items():
        if attribute == "if_index":
            continue
        setattr(record, attribute, value)


def decode_if_table(raw_table: GroupedRawTable) -> List[Interface]:
    """Decode every grouped row and sort by numeric ``if_index``."""
    interfaces: List[Interface] = []
    seen: Dict[int, str] = {}
    for index, raw in raw_table.items():
        interface = decode_interface(index, raw)
        if interface.if_index in seen:
            raise InterfaceDecodeError(
                f"ifIndex {interface.if_index} reported by rows '{seen[interface.if_index]}' and '{index}'",
                name="ifIndex",
            )
        seen[interface.if_index] = index
        interfaces.append(interface)

    interfaces.sort(key=lambda interface: interface.if_index)
    return interfaces


def build_if_table(ctx: "RequestContext", if_table: "NamedOIDGroup") -> List[Interface]:
    """Walk the base interface table and decode it."""
    raw_table = get_values_by_snmp_walk(ctx, if_table)
    return decode_if_table(raw_table)


def apply_interface_types(
    ctx: "RequestContext",
    interfaces: List[Interface],
    types: Sequence["InterfaceTypeDefinition"],
) -> List[Interface]:
    """Merge each type override group into ``interfaces`` in declaration order."""
    for type_def in types:
        type_ctx = ctx.with_fields(interface_type=type_def.name)
        special_raw = get_values_by_snmp_walk(type_ctx, type_def.values)
        for interface in interfaces:
            special_values = special_raw.get(str(interface.if_index))
            if special_values is not None:
                merge_interface(interface, special_values)
    return interfaces
