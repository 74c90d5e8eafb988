"""
Anthropic Messages API adapter.

The ``anthropic-version`` header and the default ``max_tokens`` (which the
API requires) come from the ``request`` configuration section.

Structured output is requested by adding a tool named ``json`` whose input
schema is the response schema and forcing the model to call it.
"""

from __future__ import annotations

from llmwire.llm.converters.anthropic import STRUCTURED_OUTPUT_TOOL, AnthropicToolConverter
from llmwire.llm.normalizers.anthropic import AnthropicNormalizer
from llmwire.llm.providers.base import ProviderAdapter, split_system
from llmwire.llm.types import GenericCompletionRequest, GenericMessage

_TOOL_CHOICE = {
    "auto": {"type": "auto"},
    "required": {"type": "any"},
    "any": {"type": "any"},
    "none": {"type": "none"},
}


class AnthropicAdapter(ProviderAdapter):
    provider_key = "anthropic"
    default_url = "https://api.anthropic.com/v1/messages"
    converter_class = AnthropicToolConverter
    normalizer_class = AnthropicNormalizer

    def build_headers(self, api_key: str, url: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self.config.request.anthropic_version,
        }

    def build_body(self, request: GenericCompletionRequest) -> dict:
        system, turns = split_system(request.messages)
        body: dict = {
            "model": request.model.model_id,
            "messages": self._map_messages(turns),
            "max_tokens": request.max_tokens or self.config.request.max_tokens,
            "stream": request.stream,
        }
        if system:
            body["system"] = system
        if request.temperature is not None:
            body["temperature"] = request.temperature

        tools = self.convert_tools(request)
        if request.tool_choice is not None:
            choice = request.tool_choice
            body["tool_choice"] = _TOOL_CHOICE.get(choice, choice) if isinstance(choice, str) else choice

        if request.wants_json:
            schema = self.checked_response_schema(request) or {"type": "object"}
            tools.append(
                {
                    "name": STRUCTURED_OUTPUT_TOOL,
                    "description": "Respond with a JSON object matching this schema.",
                    "input_schema": schema,
                }
            )
            body["tool_choice"] = {"type": "tool", "name": STRUCTURED_OUTPUT_TOOL}
        if tools:
            body["tools"] = tools
        return body

    @staticmethod
    def _map_messages(messages: list[GenericMessage]) -> list[dict]:
        """Map turns to content blocks, merging consecutive same-role turns."""
        out: list[dict] = []
        for msg in messages:
            if msg.role == "tool":
                role = "user"
                blocks = [
                    {
                        "type": "tool_result",
                        "tool_use_id": msg.tool_call_id,
                        "content": msg.content,
                    }
                ]
            else:
                role = msg.role
                blocks = [
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": img.mime_type, "data": img.data},
                    }
                    for img in msg.images
                ]
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls or []:
                    blocks.append({"type": "tool_use", "id": tc.id, "name": tc.name, "input": tc.arguments})

            if out and out[-1]["role"] == role:
                out[-1]["content"].extend(blocks)
            else:
                out.append({"role": role, "content": blocks})
        return out
