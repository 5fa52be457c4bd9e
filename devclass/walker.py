"""
Indexed table walker.

Walks every column of a named OID group and groups the results by the
device-local index (the last component of each response OID)::

    {"1": {"ifDescr": Value("eth0"), "ifSpeed": Value("1000")},
     "2": {"ifDescr": Value("eth1")}}

Columns that the device does not have are skipped; any other failure aborts
the whole walk. Empty values are never stored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from devclass.errors import (
    ContextCancelledError,
    DevClassError,
    NotFoundError,
    SessionUnavailableError,
    TableWalkError,
)
from devclass.oid_utils import oid_index
from devclass.value import Value

if TYPE_CHECKING:
    from devclass.context import RequestContext
    from devclass.definition import NamedOIDGroup

GroupedRawTable = Dict[str, Dict[str, Value]]


def get_values_by_snmp_walk(ctx: "RequestContext", oids: "NamedOIDGroup") -> GroupedRawTable:
    """Walk each named OID and group the normalized values by row index."""
    table: GroupedRawTable = {}

    session = ctx.session
    if session is None:
        ctx.logger.trace("snmp client is empty")
        raise SessionUnavailableError("snmp client is empty")

    for name, oid_def in oids.items():
        ctx.check()
        try:
            responses = session.walk(ctx, oid_def.oid)
        except NotFoundError as err:
            ctx.logger.trace(f"oid {oid_def.oid} ({name}) not found on device: {err}")
            continue
        except ContextCancelledError:
            raise
        except Exception as err:
            ctx.logger.trace(f"failed to walk oid {oid_def.oid} ({name}): {err}")
            raise TableWalkError(f"failed to get oid value of {name}", name=name) from err

        for response in responses:
            res = response.value_by_configuration(oid_def.get_configuration)
            if res == "":
                continue
            try:
                normalized = oid_def.operators.apply(ctx, Value(res))
            except (DevClassError, ValueError) as err:
                ctx.logger.trace(f"response of {name} couldn't be normalized: {err}")
                raise TableWalkError(f"response of {name} couldn't be normalized", name=name) from err
            if normalized.is_empty():
                continue

            table.setdefault(oid_index(response.oid), {})[name] = normalized

    return table
