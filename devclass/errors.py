"""
Error taxonomy for device class resolution.

Callers branch on three kinds of failure:

- NotImplementedCapabilityError: the device class does not declare the
  capability. Expected and quiet; ask another device class or omit it.
- NotFoundError: the object is not present on this particular device.
  Skipped per entry while walking tables.
- ResolveError (and everything else): a hard failure. Wrappers keep the
  original exception as ``__cause__`` and name the capability that failed.
"""

from __future__ import annotations

from typing import Optional


class DevClassError(Exception):
    """Base class for all errors raised by this package."""


class NotImplementedCapabilityError(DevClassError):
    """The device class does not define the requested capability."""


class NotFoundError(DevClassError):
    """The requested object does not exist on the device."""


class PropertyNotFoundError(NotFoundError):
    """None of the property readers produced a value."""


class FilterMatchedError(NotFoundError):
    """A filter operator discarded the value."""


class ValueConversionError(DevClassError, ValueError):
    """A typed value could not be coerced to the requested type."""


class DefinitionError(DevClassError, ValueError):
    """A device class file is malformed."""


class SnmpSessionError(DevClassError):
    """Transport or PDU level SNMP failure."""


class ContextCancelledError(DevClassError):
    """The request context was cancelled."""


class DeadlineExceededError(ContextCancelledError):
    """The request context deadline expired."""


class ResolveError(DevClassError):
    """Hard failure while resolving a named capability or field.

    ``str()`` renders the message followed by the chained cause, so the
    capability name and the underlying reason show up in one log line.
    """

    def __init__(self, message: str, name: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.name = name

    def __str__(self) -> str:
        cause = self.__cause__
        if cause is None:
            return self.message
        return f"{self.message}: {cause}"


class PropertyResolveError(ResolveError):
    """A scalar property could not be fetched or converted."""


class SessionUnavailableError(ResolveError):
    """No protocol session is attached to the request context."""


class TableWalkError(ResolveError):
    """A table walk failed for a reason other than a missing object."""


class InterfaceDecodeError(ResolveError):
    """Raw table values could not be decoded into an interface record."""
