"""
Tool conversion for the Google Gemini API.

Gemini groups all functions into one ``functionDeclarations`` entry and
rejects several JSON-schema keywords, which are stripped from a copy of each
parameter schema.
"""

from __future__ import annotations

from typing import Any

from llmwire.llm.converters.base import ToolSchemaConverter
from llmwire.llm.schema import (
    GOOGLE_UNSUPPORTED_KEYWORDS,
    contains_keywords,
    strip_keywords,
)
from llmwire.llm.types import TOOL_NAME_PATTERN, GenericTool


class GoogleToolConverter(ToolSchemaConverter):
    vendor = "google"
    provider_tags = frozenset({"google"})
    native_tools = {"googleSearch": {"google_search": {}}}
    native_search_ids = frozenset({"googleSearch"})

    def convert_function(self, tool: GenericTool, name: str) -> dict:
        return {
            "name": name,
            "description": tool.description,
            "parameters": strip_keywords(tool.parameters, GOOGLE_UNSUPPORTED_KEYWORDS),
        }

    def assemble(self, natives: list[dict], functions: list[dict]) -> list[dict]:
        tools = list(natives)
        if functions:
            tools.append({"functionDeclarations": functions})
        return tools

    def is_valid_vendor_tool(self, tool: Any) -> bool:
        if not isinstance(tool, dict):
            return False
        if tool in self.native_tools.values():
            return True
        decls = tool.get("functionDeclarations")
        if set(tool) != {"functionDeclarations"} or not isinstance(decls, list) or not decls:
            return False
        for decl in decls:
            if not TOOL_NAME_PATTERN.match(decl.get("name") or ""):
                return False
            if contains_keywords(decl.get("parameters", {}), GOOGLE_UNSUPPORTED_KEYWORDS):
                return False
        return True
