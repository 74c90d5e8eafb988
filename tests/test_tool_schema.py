"""Tests for tool-schema conversion and the schema transforms behind it."""

from __future__ import annotations

import copy

import pytest

from llmwire.config import SchemaConfig
from llmwire.errors import SchemaConversionError
from llmwire.llm.converters import (
    AnthropicToolConverter,
    GoogleToolConverter,
    OpenAIChatToolConverter,
    OpenAIResponsesToolConverter,
)
from llmwire.llm.schema import (
    GOOGLE_UNSUPPORTED_KEYWORDS,
    contains_keywords,
    is_strict_schema,
    schema_depth,
    strip_keywords,
    to_strict_schema,
)
from llmwire.llm.types import GenericTool

ALL_CONVERTERS = [
    OpenAIChatToolConverter,
    OpenAIResponsesToolConverter,
    AnthropicToolConverter,
    GoogleToolConverter,
]

WEATHER = {
    "id": "get_weather",
    "description": "Current weather for a city",
    "parameters": {
        "type": "object",
        "properties": {"location": {"type": "string"}},
        "required": ["location"],
    },
}

NESTED = {
    "type": "object",
    "properties": {
        "filters": {
            "type": "object",
            "properties": {
                "tags": {"type": "array", "items": {
                    "type": "object",
                    "properties": {"name": {"type": "string"}, "weight": {"type": "number"}},
                }},
                "range": {"anyOf": [
                    {"type": "object", "properties": {"from": {"type": "integer"}}},
                    {"type": "null"},
                ]},
            },
            "additionalProperties": True,
        },
        "limit": {"type": "integer", "exclusiveMinimum": 0},
    },
    "$defs": {"point": {"type": "object", "properties": {"x": {"type": "number"}}}},
    "$schema": "https://json-schema.org/draft/2020-12/schema",
}


def _function_count(tools: list[dict]) -> int:
    """Count vendor tools, expanding Gemini's grouped declarations."""
    total = 0
    for tool in tools:
        total += len(tool["functionDeclarations"]) if "functionDeclarations" in tool else 1
    return total


# ---------------------------------------------------------------------------
# Schema transforms
# ---------------------------------------------------------------------------

class TestStrictSchema:
    def test_every_object_level_is_strict(self):
        strict = to_strict_schema(NESTED)
        assert is_strict_schema(strict)
        filters = strict["properties"]["filters"]
        assert filters["required"] == ["tags", "range"]
        assert filters["additionalProperties"] is False
        item = filters["properties"]["tags"]["items"]
        assert item["required"] == ["name", "weight"]
        assert filters["properties"]["range"]["anyOf"][0]["additionalProperties"] is False
        assert strict["$defs"]["point"]["required"] == ["x"]

    def test_input_not_mutated(self):
        before = copy.deepcopy(NESTED)
        to_strict_schema(NESTED)
        assert NESTED == before

    def test_non_strict_detected(self):
        assert not is_strict_schema(NESTED)


class TestStripKeywords:
    def test_keywords_removed_at_every_level(self):
        stripped = strip_keywords(NESTED, GOOGLE_UNSUPPORTED_KEYWORDS)
        assert not contains_keywords(stripped, GOOGLE_UNSUPPORTED_KEYWORDS)
        assert "$schema" not in stripped
        assert "exclusiveMinimum" not in stripped["properties"]["limit"]

    def test_property_names_survive(self):
        schema = {
            "type": "object",
            "properties": {"additionalProperties": {"type": "string"}},
            "additionalProperties": False,
        }
        stripped = strip_keywords(schema, GOOGLE_UNSUPPORTED_KEYWORDS)
        assert stripped == {"type": "object", "properties": {"additionalProperties": {"type": "string"}}}

    def test_input_not_mutated(self):
        before = copy.deepcopy(NESTED)
        strip_keywords(NESTED, GOOGLE_UNSUPPORTED_KEYWORDS)
        assert NESTED == before


def test_schema_depth():
    assert schema_depth({"type": "object"}) == 1
    assert schema_depth(WEATHER["parameters"]) == 2


# ---------------------------------------------------------------------------
# Converter contract (all vendors)
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("converter_cls", ALL_CONVERTERS)
class TestConverterContract:
    def test_output_passes_vendor_validity(self, converter_cls):
        conv = converter_cls()
        tools = conv.convert([WEATHER, {"id": "search_docs", "description": "", "parameters": NESTED}])
        assert tools
        assert all(conv.is_valid_vendor_tool(t) for t in tools)

    def test_double_conversion_is_an_error(self, converter_cls):
        conv = converter_cls()
        once = conv.convert([WEATHER])
        with pytest.raises(SchemaConversionError, match="vendor format"):
            conv.convert(once)

    def test_invalid_name_rejected(self, converter_cls):
        with pytest.raises(SchemaConversionError) as exc_info:
            converter_cls().convert([{"id": "get weather!", "parameters": {"type": "object"}}])
        assert exc_info.value.tool_id == "get weather!"

    def test_long_name_rejected(self, converter_cls):
        with pytest.raises(SchemaConversionError):
            converter_cls().convert([{"id": "x" * 129, "parameters": {"type": "object"}}])

    def test_duplicate_names_rejected(self, converter_cls):
        with pytest.raises(SchemaConversionError, match="Duplicate"):
            converter_cls().convert([WEATHER, WEATHER])

    def test_non_object_schema_rejected(self, converter_cls):
        with pytest.raises(SchemaConversionError, match="object schema"):
            converter_cls().convert([{"id": "f", "parameters": {"type": "string"}}])

    def test_invalid_json_schema_rejected(self, converter_cls):
        bad = {"type": "object", "properties": {"a": {"type": "strnig"}}}
        with pytest.raises(SchemaConversionError, match="Invalid JSON schema"):
            converter_cls().convert([{"id": "f", "parameters": bad}])

    def test_depth_limit_from_config(self, converter_cls):
        conv = converter_cls(SchemaConfig(max_depth=2))
        with pytest.raises(SchemaConversionError, match="depth"):
            conv.convert([{"id": "f", "parameters": NESTED}])

    def test_property_limit_from_config(self, converter_cls):
        conv = converter_cls(SchemaConfig(max_properties=1))
        with pytest.raises(SchemaConversionError, match="properties"):
            conv.convert([{"id": "f", "parameters": NESTED}])

    def test_caller_tools_not_mutated(self, converter_cls):
        tools = [copy.deepcopy(WEATHER), {"id": "n", "parameters": copy.deepcopy(NESTED)}]
        before = copy.deepcopy(tools)
        converter_cls().convert(tools)
        assert tools == before

    def test_foreign_provider_tag_dropped(self, converter_cls):
        tools = [WEATHER, {"id": "vendor_only", "provider": "someone-else", "parameters": {"type": "object"}}]
        assert _function_count(converter_cls().convert(tools)) == 1

    def test_untagged_special_tool_dropped(self, converter_cls):
        tools = [WEATHER, {"id": "magicTool", "isSpecialTool": True}]
        assert _function_count(converter_cls().convert(tools)) == 1


# ---------------------------------------------------------------------------
# Web-search de-duplication
# ---------------------------------------------------------------------------

GENERIC_SEARCH = [
    {"id": "braveSearch", "parameters": {"type": "object", "properties": {"q": {"type": "string"}}}},
    {"id": "tavilySearch", "parameters": {"type": "object", "properties": {"q": {"type": "string"}}}},
    {"id": "my_search", "webSearch": True, "parameters": {"type": "object"}},
]
OTHER_TOOLS = [
    WEATHER,
    {"id": "calculator", "parameters": {"type": "object", "properties": {"expr": {"type": "string"}}}},
]


@pytest.mark.parametrize(
    "converter_cls,native",
    [
        (OpenAIResponsesToolConverter, {"id": "webSearch", "isSpecialTool": True}),
        (GoogleToolConverter, {"id": "googleSearch", "isSpecialTool": True, "provider": "google"}),
    ],
)
class TestWebSearchDedup:
    def test_native_search_replaces_generic(self, converter_cls, native):
        tools = converter_cls().convert([*GENERIC_SEARCH, *OTHER_TOOLS, native])
        assert _function_count(tools) == 1 + len(OTHER_TOOLS)

    def test_without_native_all_kept(self, converter_cls, native):
        tools = converter_cls().convert([*GENERIC_SEARCH, *OTHER_TOOLS])
        assert _function_count(tools) == len(GENERIC_SEARCH) + len(OTHER_TOOLS)


@pytest.mark.parametrize("converter_cls", [OpenAIChatToolConverter, AnthropicToolConverter])
def test_vendors_without_native_search_keep_generic(converter_cls):
    tools = converter_cls().convert([*GENERIC_SEARCH, *OTHER_TOOLS])
    assert len(tools) == len(GENERIC_SEARCH) + len(OTHER_TOOLS)


# ---------------------------------------------------------------------------
# Vendor specifics
# ---------------------------------------------------------------------------

class TestOpenAIResponsesConverter:
    def test_get_weather_strict_example(self):
        [tool] = OpenAIResponsesToolConverter().convert([WEATHER])
        assert tool["type"] == "function"
        assert tool["name"] == "get_weather"
        assert tool["strict"] is True
        assert tool["parameters"]["additionalProperties"] is False
        assert tool["parameters"]["required"] == ["location"]
        assert tool["parameters"]["properties"] == {"location": {"type": "string"}}

    def test_native_web_search(self):
        tools = OpenAIResponsesToolConverter().convert([{"id": "webSearch", "isSpecialTool": True}])
        assert tools == [{"type": "web_search"}]


class TestAnthropicConverter:
    def test_localized_name_never_sent(self):
        [tool] = AnthropicToolConverter().convert([{
            "id": "webContentExtractor",
            "name": "Web-Inhalts-Extraktor",
            "description": "Extracts page content",
            "parameters": {"type": "object", "properties": {"url": {"type": "string"}}},
        }])
        assert tool["name"] == "webContentExtractor"
        assert tool["input_schema"]["properties"] == {"url": {"type": "string"}}

    def test_reserved_json_name(self):
        with pytest.raises(SchemaConversionError, match="reserved"):
            AnthropicToolConverter().convert([{"id": "json", "parameters": {"type": "object"}}])

    def test_schema_passed_through(self):
        [tool] = AnthropicToolConverter().convert([{"id": "n", "parameters": NESTED}])
        assert tool["input_schema"] == NESTED


class TestGoogleConverter:
    def test_functions_grouped_and_stripped(self):
        tools = GoogleToolConverter().convert([WEATHER, {"id": "nested", "parameters": NESTED}])
        assert len(tools) == 1
        decls = tools[0]["functionDeclarations"]
        assert [d["name"] for d in decls] == ["get_weather", "nested"]
        assert not contains_keywords(decls[1]["parameters"], GOOGLE_UNSUPPORTED_KEYWORDS)

    def test_native_search_comes_first(self):
        tools = GoogleToolConverter().convert([
            WEATHER,
            {"id": "googleSearch", "isSpecialTool": True, "provider": "google"},
        ])
        assert tools[0] == {"google_search": {}}
        assert tools[1]["functionDeclarations"][0]["name"] == "get_weather"

    def test_empty_input(self):
        assert GoogleToolConverter().convert([]) == []


class TestOpenAIChatConverter:
    def test_function_wrapper(self):
        [tool] = OpenAIChatToolConverter().convert([GenericTool.from_dict(WEATHER)])
        assert tool == {
            "type": "function",
            "function": {
                "name": "get_weather",
                "description": "Current weather for a city",
                "parameters": WEATHER["parameters"],
            },
        }
