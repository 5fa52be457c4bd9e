"""OID utility functions for consistent OID handling across the package.

OIDs arrive from device class files as dotted strings (often with a leading
dot) and from pysnmp as ObjectIdentity/ObjectName instances. These helpers
convert between the forms and extract the device-local row index.
"""

from typing import List, Tuple, Union


def oid_str_to_tuple(oid_str: str) -> Tuple[int, ...]:
    """Convert OID string to tuple of integers.

    Examples:
        >>> oid_str_to_tuple(".1.3.6.1.2.1.1.1.0")
        (1, 3, 6, 1, 2, 1, 1, 1, 0)
        >>> oid_str_to_tuple("")
        ()
    """
    oid_str = oid_str.strip()
    if oid_str.startswith("."):
        oid_str = oid_str[1:]
    if not oid_str:
        return tuple()
    return tuple(int(x) for x in oid_str.split("."))


def oid_tuple_to_str(oid_tuple: Tuple[int, ...]) -> str:
    """Convert OID tuple to dot-separated string without a leading dot."""
    return ".".join(str(x) for x in oid_tuple)


def normalize_oid(oid: Union[str, Tuple[int, ...], List[int]]) -> Tuple[int, ...]:
    """Normalize OID to tuple format regardless of input type."""
    if isinstance(oid, str):
        return oid_str_to_tuple(oid)
    elif isinstance(oid, list):
        return tuple(oid)
    elif isinstance(oid, tuple):
        return oid
    else:
        raise TypeError(f"OID must be string, tuple, or list, got {type(oid)}")


def oid_index(oid: str) -> str:
    """Return the trailing index component of a fully-qualified OID.

    Examples:
        >>> oid_index(".1.3.6.1.2.1.2.2.1.2.10101")
        '10101'
    """
    return oid.rsplit(".", 1)[-1]


def is_under(oid: Tuple[int, ...], prefix: Tuple[int, ...]) -> bool:
    """True if ``oid`` lies strictly inside the subtree rooted at ``prefix``."""
    return len(oid) > len(prefix) and oid[: len(prefix)] == prefix


def is_numeric_oid(oid: str) -> bool:
    """True for a dotted numeric OID such as ``.1.3.6.1.2.1.1.1.0``."""
    try:
        components = oid_str_to_tuple(oid)
    except ValueError:
        return False
    return bool(components) and all(x >= 0 for x in components)
