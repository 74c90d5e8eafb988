"""Abstract base class for provider adapters."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

import httpx

from llmwire.config import LLMWireConfig
from llmwire.errors import LLMWireError, ParseError
from llmwire.llm.converters.base import ToolSchemaConverter
from llmwire.llm.normalizers.base import ResponseNormalizer
from llmwire.llm.schema import check_tool_schema
from llmwire.llm.streaming import StreamingReassembler
from llmwire.llm.types import (
    GenericCompletionRequest,
    GenericCompletionResult,
    GenericMessage,
    HttpRequest,
    ModelDescriptor,
)

logger = logging.getLogger(__name__)

AZURE_HOST_SUFFIXES = (
    ".openai.azure.com",
    ".cognitiveservices.azure.com",
    ".azure-api.net",
)


def is_azure_url(url: str) -> bool:
    try:
        host = httpx.URL(url).host
    except httpx.InvalidURL:
        return False
    return any(host.endswith(suffix) for suffix in AZURE_HOST_SUFFIXES)


def apply_azure_auth(url: str, headers: Mapping[str, str], api_key: str) -> dict[str, str]:
    """
    Return *headers* adjusted for Azure-hosted OpenAI endpoints.

    Azure authenticates with an ``api-key`` header instead of a bearer
    token.  Non-Azure URLs get an unchanged copy.
    """
    out = dict(headers)
    if is_azure_url(url):
        out.pop("Authorization", None)
        out["api-key"] = api_key
    return out


def mask_key(api_key: str) -> str:
    if not api_key:
        return "(none)"
    return f"{api_key[:4]}..." if len(api_key) > 8 else "***"


def split_system(messages: Sequence[GenericMessage]) -> tuple[str, list[GenericMessage]]:
    """Separate system messages (joined with newlines) from the rest."""
    system = [m.content for m in messages if m.role == "system" and m.content]
    rest = [m for m in messages if m.role != "system"]
    return "\n".join(system), rest


def decode_body(payload: bytes | str | Mapping[str, Any], vendor: str) -> dict:
    """Decode a complete non-streaming response body."""
    if isinstance(payload, Mapping):
        return dict(payload)
    if isinstance(payload, (bytes, bytearray)):
        payload = bytes(payload).decode("utf-8", errors="replace")
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Malformed response body: {exc}", fragment=payload[:200], vendor=vendor
        ) from exc
    if not isinstance(data, dict):
        raise ParseError("Response body is not a JSON object", fragment=payload[:200], vendor=vendor)
    return data


class ProviderAdapter(ABC):
    """
    Builds vendor requests and normalizes vendor responses.

    Adapters are stateless and may be shared; per-request stream state lives
    in the reassembler returned by ``create_reassembler``.

    Subclasses set ``provider_key``, ``default_url``, ``converter_class`` and
    ``normalizer_class`` and implement ``build_body`` and ``build_headers``.
    """

    provider_key: str = ""
    framing: str = "sse"
    default_url: str = ""
    converter_class: type[ToolSchemaConverter]
    normalizer_class: type[ResponseNormalizer]

    def __init__(self, config: LLMWireConfig | None = None) -> None:
        self.config = config or LLMWireConfig()
        self.converter = self.converter_class(self.config.schema)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def create_completion_request(
        self,
        model: ModelDescriptor | Mapping[str, Any],
        messages: Sequence[GenericMessage | Mapping[str, Any]],
        api_key: str,
        options: Mapping[str, Any] | None = None,
    ) -> HttpRequest:
        """
        Build the vendor HTTP request for one turn.

        Raises ``SchemaConversionError`` before anything is sent if a tool or
        response schema cannot be mapped.
        """
        descriptor = model if isinstance(model, ModelDescriptor) else ModelDescriptor.from_dict(model)
        try:
            request = GenericCompletionRequest.from_options(descriptor, messages, options)
            body = self.build_body(request)
        except LLMWireError as exc:
            exc.vendor = exc.vendor or self.provider_key
            exc.model = exc.model or descriptor.model_id
            raise

        url = self.build_url(request)
        headers = self.build_headers(api_key, url)
        logger.info(
            "REQUEST: vendor=%s model=%s tools=%d messages=%d stream=%s api_key=%s",
            self.provider_key,
            descriptor.model_id,
            len(request.tools),
            len(request.messages),
            request.stream,
            mask_key(api_key),
        )
        return HttpRequest(
            url=url, method="POST", headers=headers, body=body, model=descriptor.model_id
        )

    def build_url(self, request: GenericCompletionRequest) -> str:
        return request.model.url or self.default_url.format(model=request.model.model_id)

    @abstractmethod
    def build_body(self, request: GenericCompletionRequest) -> dict:
        """Map a generic request onto the vendor body."""
        ...

    @abstractmethod
    def build_headers(self, api_key: str, url: str) -> dict[str, str]:
        ...

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def process_response_buffer(
        self,
        payload: bytes | str | Mapping[str, Any],
        reassembler: StreamingReassembler | None = None,
        *,
        model: str | None = None,
    ) -> GenericCompletionResult:
        """
        Normalize a response.

        With a *reassembler*, *payload* is the next stream fragment and the
        returned value is the delta it completed.  Without one, *payload* is
        a complete non-streaming body; malformed JSON raises ``ParseError``
        carrying *model*.
        """
        if reassembler is not None:
            return reassembler.feed(payload)

        normalizer = self.create_normalizer()
        try:
            result = normalizer.normalize(decode_body(payload, self.provider_key))
            if normalizer.errors:
                raise normalizer.errors[0]
        except ParseError as exc:
            exc.model = exc.model or model
            raise
        return result

    def create_normalizer(self) -> ResponseNormalizer:
        return self.normalizer_class()

    def create_reassembler(self, model: str | None = None) -> StreamingReassembler:
        return StreamingReassembler(
            self.create_normalizer(), framing=self.framing, vendor=self.provider_key, model=model
        )

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def convert_tools(self, request: GenericCompletionRequest) -> list[dict]:
        return self.converter.convert(request.tools) if request.tools else []

    def checked_response_schema(
        self, request: GenericCompletionRequest, *, require_object: bool = True
    ) -> dict | None:
        """
        Return the request's response schema after validating it.

        Strict-mode and tool-based structured output need an object root;
        vendors that accept array or scalar roots pass ``require_object=False``.
        """
        if request.response_schema is None:
            return None
        check_tool_schema(
            request.response_schema,
            max_depth=self.config.schema.max_depth,
            max_properties=self.config.schema.max_properties,
            tool_id="response",
            vendor=self.provider_key,
            require_object=require_object,
            subject="Response schema",
        )
        return request.response_schema
