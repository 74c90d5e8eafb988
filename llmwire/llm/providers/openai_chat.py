"""
OpenAI Chat Completions adapter.

Works with any endpoint that speaks the ``/v1/chat/completions`` wire
protocol: OpenAI itself, Azure OpenAI, vLLM, LM Studio and the like.
"""

from __future__ import annotations

import json

from llmwire.llm.converters.openai_chat import OpenAIChatToolConverter
from llmwire.llm.normalizers.openai_chat import OpenAIChatNormalizer
from llmwire.llm.providers.base import ProviderAdapter, apply_azure_auth
from llmwire.llm.schema import to_strict_schema
from llmwire.llm.types import GenericCompletionRequest, GenericMessage


def openai_headers(api_key: str, url: str) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return apply_azure_auth(url, headers, api_key)


class OpenAIChatAdapter(ProviderAdapter):
    provider_key = "openai"
    default_url = "https://api.openai.com/v1/chat/completions"
    converter_class = OpenAIChatToolConverter
    normalizer_class = OpenAIChatNormalizer

    def build_headers(self, api_key: str, url: str) -> dict[str, str]:
        return openai_headers(api_key, url)

    def build_body(self, request: GenericCompletionRequest) -> dict:
        body: dict = {
            "model": request.model.model_id,
            "messages": [self._map_message(m) for m in request.messages],
            "stream": request.stream,
        }
        tools = self.convert_tools(request)
        if tools:
            body["tools"] = tools
        if request.tool_choice is not None:
            body["tool_choice"] = request.tool_choice
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.max_tokens is not None:
            body["max_tokens"] = request.max_tokens

        schema = self.checked_response_schema(request)
        if schema is not None:
            body["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": "response",
                    "schema": to_strict_schema(schema),
                    "strict": True,
                },
            }
        elif request.response_format == "json":
            body["response_format"] = {"type": "json_object"}
        return body

    @staticmethod
    def _map_message(msg: GenericMessage) -> dict:
        if msg.role == "tool":
            return {"role": "tool", "tool_call_id": msg.tool_call_id, "content": msg.content}

        if msg.images:
            content: str | list | None = [{"type": "text", "text": msg.content}] if msg.content else []
            content.extend(
                {"type": "image_url", "image_url": {"url": img.data_url()}} for img in msg.images
            )
        else:
            content = msg.content

        m: dict = {"role": msg.role, "content": content}
        if msg.tool_calls:
            m["content"] = content or None
            m["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.name,
                        "arguments": json.dumps(tc.arguments),
                    },
                }
                for tc in msg.tool_calls
            ]
        return m
