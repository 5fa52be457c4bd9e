"""
Typed Value: an opaque scalar produced by a property reader or a walk.

Values start out as whatever the session or a constant delivered and are
coerced on demand. Every coercion raises ValueConversionError when the
content does not fit.
"""

from __future__ import annotations

from typing import Any

from devclass.errors import ValueConversionError

_TRUE_STRINGS = {"1", "t", "true", "yes", "y", "on"}
_FALSE_STRINGS = {"0", "f", "false", "no", "n", "off"}


class Value:
    """Scalar wrapper with fallible string/int/float/bool coercions."""

    __slots__ = ("_raw",)

    def __init__(self, raw: Any) -> None:
        if isinstance(raw, Value):
            raw = raw.raw
        self._raw = raw

    @property
    def raw(self) -> Any:
        return self._raw

    def __str__(self) -> str:
        if self._raw is None:
            return ""
        if isinstance(self._raw, bool):
            return "true" if self._raw else "false"
        if isinstance(self._raw, float) and self._raw.is_integer():
            return str(int(self._raw))
        return str(self._raw)

    def __repr__(self) -> str:
        return f"Value({self._raw!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Value):
            return str(self) == str(other)
        if isinstance(other, str):
            return str(self) == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))

    def is_empty(self) -> bool:
        return str(self) == ""

    def to_string(self) -> str:
        return str(self)

    def to_int(self) -> int:
        raw = self._raw
        if isinstance(raw, bool):
            return int(raw)
        if isinstance(raw, int):
            return raw
        if isinstance(raw, float):
            if raw.is_integer():
                return int(raw)
            raise ValueConversionError(f"value '{self}' is not an integer")
        text = str(self).strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            as_float = float(text)
        except ValueError as err:
            raise ValueConversionError(f"value '{self}' is not an integer") from err
        if not as_float.is_integer():
            raise ValueConversionError(f"value '{self}' is not an integer")
        return int(as_float)

    def to_float(self) -> float:
        raw = self._raw
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)
        try:
            return float(str(self).strip())
        except ValueError as err:
            raise ValueConversionError(f"value '{self}' is not a float") from err

    def to_bool(self) -> bool:
        raw = self._raw
        if isinstance(raw, bool):
            return raw
        text = str(self).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueConversionError(f"value '{self}' is not a boolean")
