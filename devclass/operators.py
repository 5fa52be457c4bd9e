"""
Operator chains applied to raw values before typed coercion.

A chain is built from declarative config, for example::

    operators:
      - type: modify
        modify_method: regexExtract
        regex: "^Acme (.+)$"
        extract_value: "1"
      - type: filter
        filter_method: equals
        value: "unknown"

Operator factories are registered with ``register_operator`` in the same way
default value plugins are registered: a name maps to a function that receives
the operator config and returns a callable ``(ctx, value) -> value``.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional

from devclass.errors import FilterMatchedError, ValueConversionError
from devclass.value import Value

if TYPE_CHECKING:
    from devclass.context import RequestContext

logger = logging.getLogger(__name__)

Operator = Callable[["RequestContext", Value], Value]
OperatorFactory = Callable[[Mapping[str, Any]], Operator]


class OperatorRegistry:
    """Registry mapping ``<type>:<method>`` keys to operator factories."""

    def __init__(self) -> None:
        self._factories: Dict[str, OperatorFactory] = {}

    def register(self, key: str, factory: OperatorFactory) -> None:
        if key in self._factories and self._factories[key] is not factory:
            logger.warning(f"Operator '{key}' already registered, replacing")
        self._factories[key] = factory
        logger.debug(f"Registered operator: {key}")

    def build(self, config: Mapping[str, Any]) -> Operator:
        op_type = config.get("type")
        if op_type == "modify":
            method = config.get("modify_method")
        elif op_type == "filter":
            method = config.get("filter_method")
        else:
            raise ValueError(f"unknown operator type '{op_type}'")
        key = f"{op_type}:{method}"
        factory = self._factories.get(key)
        if factory is None:
            raise ValueError(f"unknown {op_type} method '{method}'")
        return factory(config)

    def list_operators(self) -> List[str]:
        return list(self._factories.keys())


_registry = OperatorRegistry()


def register_operator(key: str) -> Callable[[OperatorFactory], OperatorFactory]:
    """Decorator to register an operator factory under ``<type>:<method>``."""

    def decorator(func: OperatorFactory) -> OperatorFactory:
        _registry.register(key, func)
        return func

    return decorator


def get_registry() -> OperatorRegistry:
    return _registry


class OperatorChain:
    """Ordered sequence of operators; an empty chain returns values unchanged."""

    def __init__(self, operators: Optional[Iterable[Operator]] = None) -> None:
        self._operators: List[Operator] = list(operators or [])

    @classmethod
    def from_config(cls, configs: Optional[Iterable[Mapping[str, Any]]]) -> "OperatorChain":
        return cls(_registry.build(cfg) for cfg in (configs or []))

    def __len__(self) -> int:
        return len(self._operators)

    def apply(self, ctx: "RequestContext", value: Value) -> Value:
        for operator in self._operators:
            value = operator(ctx, value)
        return value


# ---------------------------------------------------------------------------
# Modify operators
# ---------------------------------------------------------------------------


@register_operator("modify:regexReplace")
def _regex_replace(config: Mapping[str, Any]) -> Operator:
    pattern = re.compile(config["regex"])
    replacement = str(config.get("replace", ""))
    # Go-style $1 references become Python group references
    replacement = re.sub(r"\$(\d+)", r"\\\1", replacement)

    def apply(ctx: "RequestContext", value: Value) -> Value:
        return Value(pattern.sub(replacement, str(value)))

    return apply


@register_operator("modify:regexExtract")
def _regex_extract(config: Mapping[str, Any]) -> Operator:
    pattern = re.compile(config["regex"])
    extract = str(config.get("extract_value", "0"))
    return_on_mismatch = bool(config.get("return_on_mismatch", False))

    def apply(ctx: "RequestContext", value: Value) -> Value:
        match = pattern.search(str(value))
        if match is None:
            if return_on_mismatch:
                return value
            ctx.logger.trace(f"regex '{pattern.pattern}' did not match '{value}'")
            raise FilterMatchedError(f"regex '{pattern.pattern}' did not match value '{value}'")
        group: Any = int(extract) if extract.isdigit() else extract
        try:
            return Value(match.group(group))
        except IndexError as err:
            raise ValueError(f"regex has no group '{extract}'") from err

    return apply


@register_operator("modify:toUpperCase")
def _to_upper(config: Mapping[str, Any]) -> Operator:
    return lambda ctx, value: Value(str(value).upper())


@register_operator("modify:toLowerCase")
def _to_lower(config: Mapping[str, Any]) -> Operator:
    return lambda ctx, value: Value(str(value).lower())


@register_operator("modify:overwrite")
def _overwrite(config: Mapping[str, Any]) -> Operator:
    replacement = Value(config.get("overwrite_string", config.get("value", "")))
    return lambda ctx, value: replacement


@register_operator("modify:addPrefix")
def _add_prefix(config: Mapping[str, Any]) -> Operator:
    prefix = str(config.get("string", ""))
    return lambda ctx, value: Value(f"{prefix}{value}")


@register_operator("modify:addSuffix")
def _add_suffix(config: Mapping[str, Any]) -> Operator:
    suffix = str(config.get("string", ""))
    return lambda ctx, value: Value(f"{value}{suffix}")


@register_operator("modify:map")
def _map(config: Mapping[str, Any]) -> Operator:
    mappings = {str(k): v for k, v in (config.get("mappings") or {}).items()}
    ignore_if_not_found = bool(config.get("ignore_if_not_found", False))

    def apply(ctx: "RequestContext", value: Value) -> Value:
        key = str(value)
        if key in mappings:
            return Value(mappings[key])
        if ignore_if_not_found:
            return value
        raise FilterMatchedError(f"no mapping for value '{key}'")

    return apply


def _arithmetic(config: Mapping[str, Any], func: Callable[[float, float], float]) -> Operator:
    operand = Value(config.get("value")).to_float()

    def apply(ctx: "RequestContext", value: Value) -> Value:
        try:
            number = value.to_float()
        except ValueConversionError as err:
            raise ValueConversionError(f"cannot apply arithmetic to value '{value}'") from err
        return Value(func(number, operand))

    return apply


@register_operator("modify:multiply")
def _multiply(config: Mapping[str, Any]) -> Operator:
    return _arithmetic(config, lambda a, b: a * b)


@register_operator("modify:divide")
def _divide(config: Mapping[str, Any]) -> Operator:
    if Value(config.get("value")).to_float() == 0:
        raise ValueError("divide operator with value 0")
    return _arithmetic(config, lambda a, b: a / b)


# ---------------------------------------------------------------------------
# Filter operators
# ---------------------------------------------------------------------------


def _filter(config: Mapping[str, Any], matches: Callable[[str, str], bool]) -> Operator:
    needle = str(config.get("value", ""))
    invert = bool(config.get("return_on_mismatch", False))

    def apply(ctx: "RequestContext", value: Value) -> Value:
        hit = matches(str(value), needle)
        if hit != invert:
            ctx.logger.trace(f"value '{value}' filtered out")
            raise FilterMatchedError(f"value '{value}' was filtered out")
        return value

    return apply


@register_operator("filter:contains")
def _filter_contains(config: Mapping[str, Any]) -> Operator:
    return _filter(config, lambda text, needle: needle in text)


@register_operator("filter:equals")
def _filter_equals(config: Mapping[str, Any]) -> Operator:
    return _filter(config, lambda text, needle: text == needle)


@register_operator("filter:startsWith")
def _filter_starts_with(config: Mapping[str, Any]) -> Operator:
    return _filter(config, lambda text, needle: text.startswith(needle))


@register_operator("filter:regex")
def _filter_regex(config: Mapping[str, Any]) -> Operator:
    pattern = re.compile(str(config.get("value", "")))
    return _filter(config, lambda text, _needle: pattern.search(text) is not None)
