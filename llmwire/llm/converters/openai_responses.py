"""
Tool conversion for the OpenAI Responses API.

Function tools are always sent in strict mode, so every parameter schema is
rewritten with ``to_strict_schema``.  The built-in ``webSearch`` tool maps to
the vendor's ``web_search`` tool.
"""

from __future__ import annotations

from typing import Any

from llmwire.llm.converters.base import ToolSchemaConverter
from llmwire.llm.schema import is_strict_schema, to_strict_schema
from llmwire.llm.types import TOOL_NAME_PATTERN, GenericTool


class OpenAIResponsesToolConverter(ToolSchemaConverter):
    vendor = "openai-responses"
    provider_tags = frozenset({"openai", "openai-responses"})
    native_tools = {"webSearch": {"type": "web_search"}}
    native_search_ids = frozenset({"webSearch"})

    def convert_function(self, tool: GenericTool, name: str) -> dict:
        return {
            "type": "function",
            "name": name,
            "description": tool.description,
            "parameters": to_strict_schema(tool.parameters),
            "strict": True,
        }

    def is_valid_vendor_tool(self, tool: Any) -> bool:
        if not isinstance(tool, dict):
            return False
        if tool in self.native_tools.values():
            return True
        return (
            tool.get("type") == "function"
            and bool(TOOL_NAME_PATTERN.match(tool.get("name") or ""))
            and tool.get("strict") is True
            and isinstance(tool.get("parameters"), dict)
            and is_strict_schema(tool["parameters"])
        )
