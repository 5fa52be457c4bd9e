"""Shared fixtures: an in-memory protocol session and request contexts."""

import os
import sys
import warnings
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pytest

# Silence noisy DeprecationWarnings from the pysnmp package
warnings.filterwarnings("ignore", category=DeprecationWarning, module=r"pysnmp.*")

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from devclass.context import RequestContext  # noqa: E402
from devclass.errors import NotFoundError  # noqa: E402
from devclass.snmp_session import SnmpResponse  # noqa: E402

GetResult = Union[Any, Exception, List[SnmpResponse]]
WalkResult = Union[List[Tuple[str, Any]], Exception]


class FakeSession:
    """In-memory ProtocolSession that records every call.

    ``gets`` maps an OID to a value, a prepared response list or an exception.
    ``walks`` maps a column OID to ``(oid, value)`` rows or an exception.
    Unknown OIDs raise NotFoundError like a device without the object.
    """

    def __init__(
        self,
        gets: Optional[Dict[str, GetResult]] = None,
        walks: Optional[Dict[str, WalkResult]] = None,
    ) -> None:
        self.gets = dict(gets or {})
        self.walks = dict(walks or {})
        self.get_calls: List[str] = []
        self.walk_calls: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.get_calls) + len(self.walk_calls)

    def get(self, ctx: Any, oid: str) -> List[SnmpResponse]:
        self.get_calls.append(oid)
        if oid not in self.gets:
            raise NotFoundError(f"oid {oid} not found on device")
        result = self.gets[oid]
        if isinstance(result, Exception):
            raise result
        if isinstance(result, list):
            return result
        return [SnmpResponse(oid=oid, value=result)]

    def walk(self, ctx: Any, oid: str) -> List[SnmpResponse]:
        self.walk_calls.append(oid)
        if oid not in self.walks:
            raise NotFoundError(f"oid {oid} not found on device")
        result = self.walks[oid]
        if isinstance(result, Exception):
            raise result
        return [SnmpResponse(oid=row_oid, value=value) for row_oid, value in result]


def column(oid: str, rows: Mapping[Any, Any]) -> List[Tuple[str, Any]]:
    """Build walk rows ``{index: value}`` under a column OID."""
    return [(f"{oid}.{index}", value) for index, value in rows.items()]


def rows_in_order(oid: str, items: Iterable[Tuple[Any, Any]]) -> List[Tuple[str, Any]]:
    return [(f"{oid}.{index}", value) for index, value in items]


@pytest.fixture
def fake_session() -> FakeSession:
    """Provide an empty FakeSession; tests fill ``gets`` and ``walks``."""
    return FakeSession()


@pytest.fixture
def ctx(fake_session: FakeSession) -> RequestContext:
    """Provide a RequestContext bound to the fake session."""
    return RequestContext(session=fake_session)
