"""Tool conversion for the OpenAI Chat Completions API."""

from __future__ import annotations

from typing import Any

from llmwire.llm.converters.base import ToolSchemaConverter
from llmwire.llm.types import TOOL_NAME_PATTERN, GenericTool


class OpenAIChatToolConverter(ToolSchemaConverter):
    """``{type: function, function: {name, description, parameters}}``"""

    vendor = "openai"
    provider_tags = frozenset({"openai"})

    def convert_function(self, tool: GenericTool, name: str) -> dict:
        return {
            "type": "function",
            "function": {
                "name": name,
                "description": tool.description,
                "parameters": dict(tool.parameters),
            },
        }

    def is_valid_vendor_tool(self, tool: Any) -> bool:
        if not isinstance(tool, dict) or tool.get("type") != "function":
            return False
        fn = tool.get("function")
        if not isinstance(fn, dict):
            return False
        return (
            bool(TOOL_NAME_PATTERN.match(fn.get("name") or ""))
            and isinstance(fn.get("parameters"), dict)
            and fn["parameters"].get("type") == "object"
        )
