"""
Google Gemini adapter.

System messages become ``systemInstruction``.  Streaming requests switch the
endpoint from ``:generateContent`` to ``:streamGenerateContent?alt=sse`` so
the response arrives as Server-Sent Events.
"""

from __future__ import annotations

import json

from llmwire.llm.converters.google import GoogleToolConverter
from llmwire.llm.normalizers.google import GoogleNormalizer
from llmwire.llm.providers.base import ProviderAdapter, split_system
from llmwire.llm.schema import GOOGLE_UNSUPPORTED_KEYWORDS, strip_keywords
from llmwire.llm.types import GenericCompletionRequest, GenericMessage

_TOOL_MODES = {
    "auto": "AUTO",
    "required": "ANY",
    "any": "ANY",
    "none": "NONE",
}


def _tool_response(msg: GenericMessage) -> dict:
    """Gemini wants function responses as objects."""
    try:
        decoded = json.loads(msg.content)
    except (json.JSONDecodeError, TypeError):
        decoded = None
    if isinstance(decoded, dict):
        return decoded
    return {"result": msg.content}



def _with_signature(part: dict, signature: str | None) -> dict:
    """Gemini thinking models require the signature next to the part it came with."""
    if signature:
        part["thoughtSignature"] = signature
    return part

class GoogleAdapter(ProviderAdapter):
    provider_key = "google"
    default_url = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
    converter_class = GoogleToolConverter
    normalizer_class = GoogleNormalizer

    def build_url(self, request: GenericCompletionRequest) -> str:
        url = super().build_url(request)
        if not request.stream:
            return url
        url = url.replace(":generateContent", ":streamGenerateContent")
        if "alt=sse" not in url:
            url += "&alt=sse" if "?" in url else "?alt=sse"
        return url

    def build_headers(self, api_key: str, url: str) -> dict[str, str]:
        return {"Content-Type": "application/json", "x-goog-api-key": api_key}

    def build_body(self, request: GenericCompletionRequest) -> dict:
        system, turns = split_system(request.messages)
        body: dict = {"contents": self._map_messages(turns)}
        if system:
            body["systemInstruction"] = {"parts": [{"text": system}]}

        tools = self.convert_tools(request)
        if tools:
            body["tools"] = tools
        if isinstance(request.tool_choice, str) and request.tool_choice in _TOOL_MODES:
            body["toolConfig"] = {
                "functionCallingConfig": {"mode": _TOOL_MODES[request.tool_choice]}
            }

        generation: dict = {}
        if request.temperature is not None:
            generation["temperature"] = request.temperature
        if request.max_tokens is not None:
            generation["maxOutputTokens"] = request.max_tokens
        if request.wants_json:
            generation["responseMimeType"] = "application/json"
            schema = self.checked_response_schema(request, require_object=False)
            if schema is not None:
                generation["response_schema"] = strip_keywords(schema, GOOGLE_UNSUPPORTED_KEYWORDS)
        if generation:
            body["generationConfig"] = generation
        return body

    @staticmethod
    def _map_messages(messages: list[GenericMessage]) -> list[dict]:
        """Map turns to Gemini contents, merging consecutive same-role turns."""
        contents: list[dict] = []
        for msg in messages:
            if msg.role == "tool":
                role = "user"
                parts = [
                    {
                        "functionResponse": {
                            "name": msg.name or msg.tool_call_id or "",
                            "response": _tool_response(msg),
                        }
                    }
                ]
            else:
                role = "model" if msg.role == "assistant" else "user"
                parts = [{"text": msg.content}] if msg.content else []
                parts.extend(
                    _with_signature({"inlineData": {"mimeType": img.mime_type, "data": img.data}}, img.thought_signature)
                    for img in msg.images
                )
                parts.extend(
                    _with_signature({"functionCall": {"name": tc.name, "args": tc.arguments}}, tc.thought_signature)
                    for tc in msg.tool_calls or []
                )
            if not parts:
                continue
            if contents and contents[-1]["role"] == role:
                contents[-1]["parts"].extend(parts)
            else:
                contents.append({"role": role, "parts": parts})
        return contents
