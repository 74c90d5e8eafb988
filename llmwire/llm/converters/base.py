"""Abstract base class for tool-schema converters."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from llmwire.config import SchemaConfig
from llmwire.errors import SchemaConversionError
from llmwire.llm.schema import check_tool_schema
from llmwire.llm.types import TOOL_NAME_PATTERN, GenericTool

logger = logging.getLogger(__name__)

# Keys that only appear on tools already in some vendor's format.
_VENDOR_SHAPE_KEYS = ("function", "input_schema", "functionDeclarations", "google_search")


def is_vendor_shaped(raw: Mapping[str, Any]) -> bool:
    """True when *raw* looks like an already-converted vendor tool."""
    if any(key in raw for key in _VENDOR_SHAPE_KEYS):
        return True
    return raw.get("type") in ("function", "web_search")


class ToolSchemaConverter(ABC):
    """
    Maps generic tools to one vendor's tool format.

    Subclasses declare:
      - ``vendor``: the provider key used in errors and logs.
      - ``provider_tags``: ``GenericTool.provider`` values that belong here.
      - ``native_tools``: tool id -> vendor entry for built-in vendor tools.
      - ``native_search_ids``: the subset of ``native_tools`` that are web search.
    """

    vendor: str = ""
    provider_tags: frozenset[str] = frozenset()
    native_tools: dict[str, dict] = {}
    native_search_ids: frozenset[str] = frozenset()

    def __init__(self, schema_config: SchemaConfig | None = None) -> None:
        self._schema_config = schema_config or SchemaConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert(self, generic_tools: Sequence[GenericTool | Mapping[str, Any]]) -> list[dict]:
        """
        Convert *generic_tools* into this vendor's tool list.

        Raises ``SchemaConversionError`` for vendor-shaped input, invalid
        names or schemas, and duplicate outbound names.
        """
        tools = [self._coerce(t) for t in generic_tools]
        natives: list[dict] = []
        functions: list[dict] = []
        seen: set[str] = set()

        for tool in self.select(tools):
            if tool.id in self.native_tools:
                natives.append(dict(self.native_tools[tool.id]))
                continue
            name = self.check_name(tool)
            if name in seen:
                raise SchemaConversionError(
                    f"Duplicate tool name {name!r}", tool_id=name, vendor=self.vendor
                )
            seen.add(name)
            check_tool_schema(
                tool.parameters,
                max_depth=self._schema_config.max_depth,
                max_properties=self._schema_config.max_properties,
                tool_id=name,
                vendor=self.vendor,
            )
            functions.append(self.convert_function(tool, name))

        return self.assemble(natives, functions)

    def select(self, tools: list[GenericTool]) -> list[GenericTool]:
        """
        Apply provider filtering and web-search de-duplication.

        Tools tagged for another vendor are dropped, as are special tools
        with no tag that this vendor does not provide natively.  When the
        vendor's own search is present, generic web-search tools go.
        """
        kept: list[GenericTool] = []
        for tool in tools:
            if tool.provider and tool.provider not in self.provider_tags:
                logger.warning(
                    "Dropping tool %s: tagged for provider %s, not %s",
                    tool.wire_name, tool.provider, self.vendor,
                )
                continue
            if tool.is_special_tool and not tool.provider and tool.id not in self.native_tools:
                logger.warning(
                    "Dropping special tool %s: not supported by %s", tool.wire_name, self.vendor
                )
                continue
            kept.append(tool)

        if any(t.id in self.native_search_ids for t in kept):
            before = len(kept)
            kept = [
                t for t in kept
                if t.id in self.native_tools or not t.is_generic_web_search
            ]
            if len(kept) != before:
                logger.info(
                    "Dropped %d generic web-search tool(s) in favour of native %s search",
                    before - len(kept), self.vendor,
                )
        return kept

    def check_name(self, tool: GenericTool) -> str:
        name = tool.wire_name
        if not TOOL_NAME_PATTERN.match(name or ""):
            raise SchemaConversionError(
                f"Tool name {name!r} must match {TOOL_NAME_PATTERN.pattern}",
                tool_id=tool.id or tool.name or None,
                vendor=self.vendor,
            )
        return name

    def assemble(self, natives: list[dict], functions: list[dict]) -> list[dict]:
        """Combine native and function entries into the final tool list."""
        return natives + functions

    @abstractmethod
    def convert_function(self, tool: GenericTool, name: str) -> dict:
        """Build the vendor entry for one function tool."""
        ...

    @abstractmethod
    def is_valid_vendor_tool(self, tool: Any) -> bool:
        """True when *tool* is a well-formed entry of this vendor's tool list."""
        ...

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _coerce(self, tool: GenericTool | Mapping[str, Any]) -> GenericTool:
        if isinstance(tool, GenericTool):
            return tool
        if not isinstance(tool, Mapping):
            raise SchemaConversionError(
                f"Expected a generic tool, got {type(tool).__name__}", vendor=self.vendor
            )
        if is_vendor_shaped(tool):
            raise SchemaConversionError(
                "Tool is already in a vendor format",
                tool_id=tool.get("id") or tool.get("name"),
                vendor=self.vendor,
            )
        return GenericTool.from_dict(tool)
