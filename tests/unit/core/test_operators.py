"""
Tests for the operator registry and operator chains.
"""

from typing import Any, Dict, List

import pytest

from devclass.context import RequestContext
from devclass.errors import FilterMatchedError, ValueConversionError
from devclass.operators import OperatorChain, OperatorRegistry, get_registry, register_operator
from devclass.value import Value


def apply(configs: List[Dict[str, Any]], raw: Any) -> Value:
    return OperatorChain.from_config(configs).apply(RequestContext(), Value(raw))


class TestOperatorRegistry:
    """Test the OperatorRegistry class."""

    def test_register_and_list(self) -> None:
        registry = OperatorRegistry()
        registry.register("modify:noop", lambda config: lambda ctx, value: value)
        assert registry.list_operators() == ["modify:noop"]

    def test_register_duplicate_replaces(self, caplog: pytest.LogCaptureFixture) -> None:
        """Registering a key twice keeps the last factory and warns."""
        registry = OperatorRegistry()
        registry.register("modify:x", lambda config: lambda ctx, value: Value("a"))
        with caplog.at_level("WARNING"):
            registry.register("modify:x", lambda config: lambda ctx, value: Value("b"))

        assert "Operator 'modify:x' already registered, replacing" in caplog.text
        op = registry.build({"type": "modify", "modify_method": "x"})
        assert op(RequestContext(), Value("")) == "b"

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            get_registry().build({"type": "transform"})

    def test_unknown_method(self) -> None:
        with pytest.raises(ValueError):
            get_registry().build({"type": "modify", "modify_method": "reverse"})

    def test_register_operator_decorator(self) -> None:
        @register_operator("modify:testReverse")
        def _reverse(config: Any) -> Any:
            return lambda ctx, value: Value(str(value)[::-1])

        assert "modify:testReverse" in get_registry().list_operators()
        assert apply([{"type": "modify", "modify_method": "testReverse"}], "abc") == "cba"


class TestModifyOperators:
    def test_empty_chain_is_identity(self) -> None:
        chain = OperatorChain.from_config(None)
        assert len(chain) == 0
        assert chain.apply(RequestContext(), Value("x")) == "x"

    def test_regex_replace_with_dollar_groups(self) -> None:
        result = apply(
            [{"type": "modify", "modify_method": "regexReplace", "regex": r"^(\w+) (\w+)$", "replace": "$2 $1"}],
            "hello world",
        )
        assert result == "world hello"

    def test_regex_extract_group(self) -> None:
        result = apply(
            [{"type": "modify", "modify_method": "regexExtract", "regex": r"V(\d+\.\d+)", "extract_value": "1"}],
            "Firmware V2.14 build 7",
        )
        assert result == "2.14"

    def test_regex_extract_mismatch_filters(self) -> None:
        with pytest.raises(FilterMatchedError):
            apply([{"type": "modify", "modify_method": "regexExtract", "regex": r"\d+"}], "none")

    def test_regex_extract_mismatch_returns_value(self) -> None:
        result = apply(
            [{"type": "modify", "modify_method": "regexExtract", "regex": r"\d+", "return_on_mismatch": True}],
            "none",
        )
        assert result == "none"

    def test_regex_extract_missing_group(self) -> None:
        with pytest.raises(ValueError):
            apply(
                [{"type": "modify", "modify_method": "regexExtract", "regex": r"(\d+)", "extract_value": "3"}],
                "12",
            )

    def test_case_and_affixes(self) -> None:
        configs = [
            {"type": "modify", "modify_method": "toUpperCase"},
            {"type": "modify", "modify_method": "addPrefix", "string": "<"},
            {"type": "modify", "modify_method": "addSuffix", "string": ">"},
        ]
        assert apply(configs, "abc") == "<ABC>"
        assert apply([{"type": "modify", "modify_method": "toLowerCase"}], "ABC") == "abc"

    def test_overwrite(self) -> None:
        assert apply([{"type": "modify", "modify_method": "overwrite", "overwrite_string": "fixed"}], "x") == "fixed"

    def test_map(self) -> None:
        config = {"type": "modify", "modify_method": "map", "mappings": {1: "up", 2: "down"}}
        assert apply([config], "1") == "up"
        with pytest.raises(FilterMatchedError):
            apply([config], "3")
        assert apply([dict(config, ignore_if_not_found=True)], "3") == "3"

    def test_arithmetic(self) -> None:
        assert apply([{"type": "modify", "modify_method": "divide", "value": 10}], "125") == "12.5"
        assert apply([{"type": "modify", "modify_method": "multiply", "value": 1000}], "2") == "2000"

    def test_arithmetic_on_text_fails(self) -> None:
        with pytest.raises(ValueConversionError):
            apply([{"type": "modify", "modify_method": "multiply", "value": 2}], "n/a")

    def test_divide_by_zero_rejected_at_build(self) -> None:
        with pytest.raises(ValueError):
            OperatorChain.from_config([{"type": "modify", "modify_method": "divide", "value": 0}])


class TestFilterOperators:
    @pytest.mark.parametrize(
        "method, needle, raw",
        [
            ("contains", "loop", "loopback0"),
            ("equals", "unknown", "unknown"),
            ("startsWith", "Null", "Null0"),
            ("regex", r"^vlan\d+$", "vlan12"),
        ],
    )
    def test_match_discards_value(self, method: str, needle: str, raw: str) -> None:
        with pytest.raises(FilterMatchedError):
            apply([{"type": "filter", "filter_method": method, "value": needle}], raw)

    def test_no_match_passes_value_through(self) -> None:
        assert apply([{"type": "filter", "filter_method": "contains", "value": "loop"}], "eth0") == "eth0"

    def test_return_on_mismatch_inverts(self) -> None:
        config = {"type": "filter", "filter_method": "startsWith", "value": "eth", "return_on_mismatch": True}
        assert apply([config], "eth0") == "eth0"
        with pytest.raises(FilterMatchedError):
            apply([config], "lo")
