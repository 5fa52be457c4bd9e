"""
Request-scoped context for one resolution pass against one device.

The context carries the protocol session, a cancellation flag, an optional
deadline and a field-tagged logger. Deriving a context with ``with_fields``
shares the session, flag and deadline but tags log lines differently.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any, Optional

from devclass.app_logger import FieldLoggerAdapter
from devclass.errors import ContextCancelledError, DeadlineExceededError

if TYPE_CHECKING:
    from devclass.snmp_session import ProtocolSession


class RequestContext:
    """Cancellable, deadline-aware context passed to every resolver call."""

    def __init__(
        self,
        session: Optional["ProtocolSession"] = None,
        timeout: Optional[float] = None,
        logger: Optional[FieldLoggerAdapter] = None,
        *,
        _cancel_event: Optional[threading.Event] = None,
        _deadline: Optional[float] = None,
    ) -> None:
        self.session = session
        self.logger = logger or FieldLoggerAdapter(logging.getLogger("devclass"))
        self._cancel_event = _cancel_event or threading.Event()
        if _deadline is not None:
            self._deadline: Optional[float] = _deadline
        elif timeout is not None:
            self._deadline = time.monotonic() + timeout
        else:
            self._deadline = None

    def with_fields(self, **fields: Any) -> "RequestContext":
        """Derive a context whose logger carries additional fields."""
        return RequestContext(
            session=self.session,
            logger=self.logger.with_fields(**fields),
            _cancel_event=self._cancel_event,
            _deadline=self._deadline,
        )

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise if the context was cancelled or its deadline has passed."""
        if self._cancel_event.is_set():
            raise ContextCancelledError("context cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise DeadlineExceededError("context deadline exceeded")
