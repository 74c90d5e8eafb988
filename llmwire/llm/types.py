"""Core types for the adapter layer."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from llmwire.errors import ParseError

ROLES = ("system", "user", "assistant", "tool")

# Tool names accepted by every supported vendor.
TOOL_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")

# Ids of third-party search tools that duplicate a vendor's native search.
GENERIC_WEB_SEARCH_IDS = frozenset({"braveSearch", "tavilySearch", "enhancedWebSearch"})

_DATA_URL_PREFIX = re.compile(r"^data:[^;,]*;base64,")


class FinishReason:
    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    ERROR = "error"

    ALL = frozenset({STOP, LENGTH, TOOL_CALLS, CONTENT_FILTER, ERROR})


def clean_base64(data: str) -> str:
    """Strip a ``data:<mime>;base64,`` prefix and surrounding whitespace."""
    return _DATA_URL_PREFIX.sub("", data.strip())


def _pick(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


def decode_arguments(raw_args: str | Mapping[str, Any] | None, *, vendor: str | None = None) -> dict:
    """
    Decode a vendor argument payload into a dict.

    Raises ``ParseError`` for anything that is not a JSON object.
    """
    if raw_args is None or raw_args == "":
        return {}
    if isinstance(raw_args, Mapping):
        return dict(raw_args)
    try:
        args = json.loads(raw_args)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ParseError(
            f"Tool-call arguments are not valid JSON: {exc}",
            fragment=str(raw_args)[:200],
            vendor=vendor,
        ) from exc
    if not isinstance(args, dict):
        raise ParseError(
            f"Tool-call arguments must be a JSON object, got {type(args).__name__}",
            fragment=str(raw_args)[:200],
            vendor=vendor,
        )
    return args


@dataclass
class ImageData:
    """An inline image, base64 encoded."""

    mime_type: str
    data: str
    thought_signature: str | None = None  # Gemini, echoed back on later turns

    def __post_init__(self) -> None:
        self.data = clean_base64(self.data)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ImageData:
        return cls(
            mime_type=_pick(raw, "mime_type", "mimeType", "fileType", default="image/jpeg"),
            data=_pick(raw, "data", "base64", default=""),
            thought_signature=_pick(raw, "thought_signature", "thoughtSignature"),
        )

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass
class ToolCall:
    """
    A finished tool call.

    ``arguments`` is always a decoded JSON object, whatever shape the vendor
    used on the wire.  ``thought_signature`` is Gemini's opaque reasoning
    token; it must be sent back with the call on the next turn.
    """

    id: str | None
    name: str
    arguments: dict = field(default_factory=dict)
    thought_signature: str | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ToolCall:
        """Accept the flat shape or the OpenAI ``{"function": {...}}`` shape."""
        function = raw.get("function") or {}
        return cls(
            id=raw.get("id"),
            name=raw.get("name") or function.get("name") or "",
            arguments=decode_arguments(_pick(raw, "arguments", "args", default=function.get("arguments"))),
            thought_signature=_pick(raw, "thought_signature", "thoughtSignature"),
        )


@dataclass
class RawToolDelta:
    """
    An incremental fragment of a streamed tool call.

    Normalizers emit these as vendor fragments arrive.  The ToolCallAssembler
    accumulates them and produces finished ToolCall objects.
    """

    call_index: int
    id: str | None = None
    name_delta: str = ""
    args_delta: str = ""
    done: bool = False


@dataclass
class GenericMessage:
    """A single message in a conversation."""

    role: str  # "system", "user", "assistant", "tool"
    content: str = ""
    images: list[ImageData] = field(default_factory=list)
    tool_call_id: str | None = None
    tool_calls: list[ToolCall] | None = None
    name: str | None = None  # tool name on tool-result turns

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unsupported message role: {self.role!r}")
        if self.content is None:
            self.content = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> GenericMessage:
        images = [
            img if isinstance(img, ImageData) else ImageData.from_dict(img)
            for img in _pick(raw, "images", "imageData", default=[]) or []
        ]
        tool_calls = None
        raw_calls = _pick(raw, "tool_calls", "toolCalls")
        if raw_calls:
            tool_calls = [
                tc if isinstance(tc, ToolCall) else ToolCall.from_dict(tc)
                for tc in raw_calls
            ]
        return cls(
            role=raw["role"],
            content=raw.get("content") or "",
            images=images,
            tool_call_id=_pick(raw, "tool_call_id", "toolCallId"),
            tool_calls=tool_calls,
            name=raw.get("name"),
        )


def as_messages(messages: Sequence[GenericMessage | Mapping[str, Any]]) -> list[GenericMessage]:
    """Coerce a mixed list of messages and plain mappings into ``GenericMessage``."""
    return [m if isinstance(m, GenericMessage) else GenericMessage.from_dict(m) for m in messages]


@dataclass
class GenericTool:
    """
    Provider-agnostic tool declaration.

    *id* is the machine identifier sent to vendors.  *name* may be a
    localized display string and is only used as a fallback when *id* is
    empty.
    """

    id: str
    name: str = ""
    description: str = ""
    parameters: dict = field(default_factory=lambda: {"type": "object", "properties": {}})
    provider: str | None = None
    is_special_tool: bool = False
    web_search: bool = False

    @property
    def wire_name(self) -> str:
        return self.id or self.name

    @property
    def is_generic_web_search(self) -> bool:
        return self.web_search or self.id in GENERIC_WEB_SEARCH_IDS

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> GenericTool:
        return cls(
            id=raw.get("id") or "",
            name=raw.get("name") or "",
            description=raw.get("description") or "",
            parameters=raw.get("parameters") or {"type": "object", "properties": {}},
            provider=raw.get("provider"),
            is_special_tool=bool(_pick(raw, "is_special_tool", "isSpecialTool", default=False)),
            web_search=bool(_pick(raw, "web_search", "webSearch", default=False)),
        )


@dataclass
class ModelDescriptor:
    """Model metadata supplied by the model registry."""

    model_id: str
    provider: str
    url: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ModelDescriptor:
        return cls(
            model_id=_pick(raw, "model_id", "modelId"),
            provider=raw["provider"],
            url=raw.get("url") or "",
        )


_OPTION_ALIASES = {
    "tools": "tools",
    "temperature": "temperature",
    "max_tokens": "max_tokens",
    "maxTokens": "max_tokens",
    "response_format": "response_format",
    "responseFormat": "response_format",
    "response_schema": "response_schema",
    "responseSchema": "response_schema",
    "stream": "stream",
    "tool_choice": "tool_choice",
    "toolChoice": "tool_choice",
    "thinking_enabled": "thinking_enabled",
    "thinkingEnabled": "thinking_enabled",
    "thinking_budget": "thinking_budget",
    "thinkingBudget": "thinking_budget",
    "thinking_thoughts": "thinking_thoughts",
    "thinkingThoughts": "thinking_thoughts",
}


@dataclass
class GenericCompletionRequest:
    """One conversational turn, before vendor mapping."""

    model: ModelDescriptor
    messages: list[GenericMessage]
    tools: list[GenericTool] = field(default_factory=list)
    temperature: float | None = None
    max_tokens: int | None = None
    response_format: str | None = None  # "json" or None
    response_schema: dict | None = None
    stream: bool = False
    tool_choice: Any = None
    thinking_enabled: bool | None = None
    thinking_budget: int | None = None  # -1 means dynamic
    thinking_thoughts: bool | None = None

    def __post_init__(self) -> None:
        if self.response_format not in (None, "json"):
            raise ValueError(f"Unsupported response_format: {self.response_format!r}")

    @property
    def wants_json(self) -> bool:
        return self.response_schema is not None or self.response_format == "json"

    @property
    def wants_thinking_config(self) -> bool:
        return any(
            v is not None
            for v in (self.thinking_enabled, self.thinking_budget, self.thinking_thoughts)
        )

    @classmethod
    def from_options(
        cls,
        model: ModelDescriptor,
        messages: Sequence[GenericMessage | Mapping[str, Any]],
        options: Mapping[str, Any] | None = None,
    ) -> GenericCompletionRequest:
        kwargs: dict[str, Any] = {}
        for key, value in (options or {}).items():
            if key not in _OPTION_ALIASES:
                raise ValueError(f"Unknown completion option: {key!r}")
            kwargs[_OPTION_ALIASES[key]] = value
        tools = [
            t if isinstance(t, GenericTool) else GenericTool.from_dict(t)
            for t in kwargs.pop("tools", None) or []
        ]
        return cls(model=model, messages=as_messages(messages), tools=tools, **kwargs)


@dataclass
class HttpRequest:
    """A vendor HTTP request, ready for the transport."""

    url: str
    method: str
    headers: dict[str, str]
    body: dict
    model: str | None = None  # model id, for error context


@dataclass
class GenericCompletionResult:
    """
    A canonical completion result, or one delta of a streamed result.

    Deltas from one stream are accumulated with ``extend``; list fields only
    ever grow and ``complete`` never reverts.
    """

    content: list[str] = field(default_factory=list)
    images: list[ImageData] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    thinking: list[str] = field(default_factory=list)
    grounding_metadata: Any = None
    complete: bool = False
    finish_reason: str | None = None
    error: str | None = None

    @property
    def text(self) -> str:
        return "".join(self.content)

    def is_empty(self) -> bool:
        return not (
            self.content
            or self.images
            or self.tool_calls
            or self.thinking
            or self.grounding_metadata is not None
            or self.complete
            or self.error
        )

    def extend(self, delta: GenericCompletionResult) -> GenericCompletionResult:
        """Append *delta* to this result in place and return ``self``."""
        self.content.extend(delta.content)
        self.images.extend(delta.images)
        self.tool_calls.extend(delta.tool_calls)
        self.thinking.extend(delta.thinking)
        if delta.grounding_metadata is not None:
            self.grounding_metadata = delta.grounding_metadata
        if delta.error:
            self.error = delta.error
        if delta.complete and not self.complete:
            self.complete = True
            self.finish_reason = delta.finish_reason
        elif delta.finish_reason and not self.complete:
            self.finish_reason = delta.finish_reason
        return self
