"""Tool conversion for the Anthropic Messages API."""

from __future__ import annotations

from typing import Any

from llmwire.errors import SchemaConversionError
from llmwire.llm.converters.base import ToolSchemaConverter
from llmwire.llm.types import TOOL_NAME_PATTERN, GenericTool

# Tool name used to carry structured output.
STRUCTURED_OUTPUT_TOOL = "json"


class AnthropicToolConverter(ToolSchemaConverter):
    """``{name, description, input_schema}``; schemas pass through as-is."""

    vendor = "anthropic"
    provider_tags = frozenset({"anthropic"})

    def check_name(self, tool: GenericTool) -> str:
        name = super().check_name(tool)
        if name == STRUCTURED_OUTPUT_TOOL:
            raise SchemaConversionError(
                f"Tool name {STRUCTURED_OUTPUT_TOOL!r} is reserved for structured output",
                tool_id=name,
                vendor=self.vendor,
            )
        return name

    def convert_function(self, tool: GenericTool, name: str) -> dict:
        return {
            "name": name,
            "description": tool.description,
            "input_schema": dict(tool.parameters),
        }

    def is_valid_vendor_tool(self, tool: Any) -> bool:
        if not isinstance(tool, dict) or "type" in tool:
            return False
        schema = tool.get("input_schema")
        return (
            bool(TOOL_NAME_PATTERN.match(tool.get("name") or ""))
            and isinstance(schema, dict)
            and schema.get("type") == "object"
        )
