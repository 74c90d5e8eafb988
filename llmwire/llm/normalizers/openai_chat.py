"""
Normalizer for OpenAI Chat Completions payloads.

Handles both the non-streaming body (``choices[0].message``) and streaming
chunks (``choices[0].delta``).  ``reasoning_content``, as sent by
OpenAI-compatible reasoning servers, is routed to ``thinking``.
"""

from __future__ import annotations

import json
import logging

from llmwire.llm.normalizers.base import (
    ResponseNormalizer,
    error_message,
    error_result,
    map_finish_reason,
)
from llmwire.llm.types import GenericCompletionResult, RawToolDelta

logger = logging.getLogger(__name__)


class OpenAIChatNormalizer(ResponseNormalizer):
    vendor = "openai"

    def normalize(self, event: dict) -> GenericCompletionResult:
        if event.get("error"):
            return error_result(error_message(event["error"]))

        result = GenericCompletionResult()
        choices = event.get("choices")
        if not choices:
            # Usage-only or prompt-filter chunks.
            return result

        choice = choices[0]
        streaming = "delta" in choice
        message = choice.get("delta") if streaming else choice.get("message")
        message = message or {}

        reasoning = message.get("reasoning_content") or message.get("reasoning")
        if isinstance(reasoning, str) and reasoning:
            result.thinking.append(reasoning)

        content = message.get("content")
        if isinstance(content, str) and content:
            result.content.append(content)
        elif isinstance(content, list):
            for part in content:
                if isinstance(part, dict) and part.get("type") == "text" and part.get("text"):
                    result.content.append(part["text"])

        if message.get("refusal"):
            result.content.append(message["refusal"])

        for position, raw_tc in enumerate(message.get("tool_calls") or []):
            func = raw_tc.get("function") or {}
            arguments = func.get("arguments") or ""
            if isinstance(arguments, dict):
                # Some compatible servers send decoded arguments.
                arguments = json.dumps(arguments)
            self._add_calls(
                result,
                self._assembler.feed(
                    RawToolDelta(
                        call_index=raw_tc.get("index", position),
                        id=raw_tc.get("id"),
                        name_delta=func.get("name") or "",
                        args_delta=arguments,
                        done=not streaming,
                    )
                )
            )

        finish = choice.get("finish_reason")
        if finish:
            self._complete(result, map_finish_reason(finish, self.vendor))
        elif not streaming:
            # A full body without a finish reason is still a complete answer.
            self._complete(result, map_finish_reason(None, self.vendor))
        return result
