"""
OpenAI Responses API adapter.

System messages become the top-level ``instructions``; the remaining turns
are sent as ``input`` items, with tool calls and tool results as
``function_call`` / ``function_call_output`` items.  Structured output uses
``text.format`` in strict mode.

Thinking options map onto ``reasoning.effort`` (by budget) and
``text.verbosity``; neither is sent unless the caller asks for thinking.
"""

from __future__ import annotations

import json

from llmwire.llm.converters.openai_responses import OpenAIResponsesToolConverter
from llmwire.llm.normalizers.openai_responses import OpenAIResponsesNormalizer
from llmwire.llm.providers.base import ProviderAdapter, split_system
from llmwire.llm.providers.openai_chat import openai_headers
from llmwire.llm.schema import to_strict_schema
from llmwire.llm.types import GenericCompletionRequest, GenericMessage


def reasoning_effort(enabled: bool | None, budget: int | None) -> str:
    """Map a thinking budget in tokens (-1 for dynamic) onto ``reasoning.effort``."""
    budget = -1 if budget is None else budget
    if enabled is False or budget == 0:
        return "minimal"
    if budget == -1:
        return "medium"
    if 0 < budget <= 100:
        return "low"
    if budget <= 500:
        return "medium"
    return "high"


class OpenAIResponsesAdapter(ProviderAdapter):
    provider_key = "openai-responses"
    default_url = "https://api.openai.com/v1/responses"
    converter_class = OpenAIResponsesToolConverter
    normalizer_class = OpenAIResponsesNormalizer

    def build_headers(self, api_key: str, url: str) -> dict[str, str]:
        return openai_headers(api_key, url)

    def build_body(self, request: GenericCompletionRequest) -> dict:
        instructions, turns = split_system(request.messages)
        items: list[dict] = []
        for msg in turns:
            items.extend(self._map_message(msg))

        body: dict = {
            "model": request.model.model_id,
            "input": items,
            "store": self.config.request.store,
            "stream": request.stream,
        }
        if instructions:
            body["instructions"] = instructions
        tools = self.convert_tools(request)
        if tools:
            body["tools"] = tools
        if request.tool_choice is not None:
            body["tool_choice"] = request.tool_choice
        if request.max_tokens is not None:
            body["max_output_tokens"] = request.max_tokens

        text: dict = {}
        schema = self.checked_response_schema(request)
        if schema is not None:
            text["format"] = {
                "type": "json_schema",
                "name": "response",
                "schema": to_strict_schema(schema),
                "strict": True,
            }
        elif request.response_format == "json":
            text["format"] = {"type": "json_object"}

        if request.wants_thinking_config:
            body["reasoning"] = {
                "effort": reasoning_effort(request.thinking_enabled, request.thinking_budget)
            }
            text["verbosity"] = "high" if request.thinking_thoughts else "medium"
        if text:
            body["text"] = text
        return body

    @staticmethod
    def _map_message(msg: GenericMessage) -> list[dict]:
        if msg.role == "tool":
            return [
                {
                    "type": "function_call_output",
                    "call_id": msg.tool_call_id,
                    "output": msg.content,
                }
            ]

        items: list[dict] = []
        if msg.role == "user" and msg.images:
            parts: list[dict] = [{"type": "input_text", "text": msg.content}] if msg.content else []
            parts.extend({"type": "input_image", "image_url": img.data_url()} for img in msg.images)
            items.append({"role": "user", "content": parts})
        elif msg.content or not msg.tool_calls:
            items.append({"role": msg.role, "content": msg.content})

        for tc in msg.tool_calls or []:
            items.append(
                {
                    "type": "function_call",
                    "call_id": tc.id,
                    "name": tc.name,
                    "arguments": json.dumps(tc.arguments),
                }
            )
        return items
