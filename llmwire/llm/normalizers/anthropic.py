"""
Normalizer for Anthropic Messages API payloads.

Streaming tool input arrives as ``input_json_delta`` fragments between
``content_block_start`` and ``content_block_stop``; the stop reason is
announced in ``message_delta`` and applied on ``message_stop``.  A
``tool_use`` block named ``json`` carries structured output and is surfaced
as compact JSON text.
"""

from __future__ import annotations

import json
import logging

from llmwire.llm.converters.anthropic import STRUCTURED_OUTPUT_TOOL
from llmwire.llm.normalizers.base import (
    ResponseNormalizer,
    error_message,
    error_result,
    map_finish_reason,
)
from llmwire.llm.types import FinishReason, GenericCompletionResult, RawToolDelta, ToolCall

logger = logging.getLogger(__name__)


def _compact(arguments: dict) -> str:
    return json.dumps(arguments, separators=(",", ":"), ensure_ascii=False)


class AnthropicNormalizer(ResponseNormalizer):
    vendor = "anthropic"

    def __init__(self) -> None:
        super().__init__()
        self._tool_blocks: set[int] = set()
        self._stop_reason: str | None = None
        self._structured_only = False

    def normalize(self, event: dict) -> GenericCompletionResult:
        kind = event.get("type")
        if kind == "error":
            return error_result(error_message(event.get("error")))
        if kind == "message" and "content" in event:
            return self._normalize_body(event)

        result = GenericCompletionResult()
        index = event.get("index", 0)

        if kind == "content_block_start":
            block = event.get("content_block") or {}
            btype = block.get("type")
            if btype == "tool_use":
                self._tool_blocks.add(index)
                self._assembler.feed(
                    RawToolDelta(call_index=index, id=block.get("id"), name_delta=block.get("name") or "")
                )
            elif btype == "text" and block.get("text"):
                result.content.append(block["text"])
            elif btype == "thinking" and block.get("thinking"):
                result.thinking.append(block["thinking"])
        elif kind == "content_block_delta":
            delta = event.get("delta") or {}
            dtype = delta.get("type")
            if dtype == "text_delta" and delta.get("text"):
                result.content.append(delta["text"])
            elif dtype == "thinking_delta" and delta.get("thinking"):
                result.thinking.append(delta["thinking"])
            elif dtype == "input_json_delta" and index in self._tool_blocks:
                self._assembler.feed(
                    RawToolDelta(call_index=index, args_delta=delta.get("partial_json") or "")
                )
        elif kind == "content_block_stop":
            if index in self._tool_blocks:
                self._tool_blocks.discard(index)
                for call in self._assembler.feed(RawToolDelta(call_index=index, done=True)):
                    self._emit_tool_call(result, call)
        elif kind == "message_delta":
            stop_reason = (event.get("delta") or {}).get("stop_reason")
            if stop_reason:
                self._stop_reason = stop_reason
        elif kind == "message_stop":
            for call in self._assembler.flush():
                self._emit_tool_call(result, call)
            self._complete(result, self._finish_reason())
        else:
            logger.debug("Ignoring anthropic event %s", kind)
        return result

    def end_of_stream(self) -> GenericCompletionResult:
        result = GenericCompletionResult()
        for call in self._assembler.flush():
            self._emit_tool_call(result, call)
        return self._synthesized_stop(result)

    # ------------------------------------------------------------------
    # Non-streaming body
    # ------------------------------------------------------------------

    def _normalize_body(self, body: dict) -> GenericCompletionResult:
        result = GenericCompletionResult()
        for position, block in enumerate(body.get("content") or []):
            btype = block.get("type")
            if btype == "text" and block.get("text"):
                result.content.append(block["text"])
            elif btype == "thinking" and block.get("thinking"):
                result.thinking.append(block["thinking"])
            elif btype == "tool_use":
                arguments = block.get("input") or {}
                for call in self._assembler.feed(
                    RawToolDelta(
                        call_index=position,
                        id=block.get("id"),
                        name_delta=block.get("name") or "",
                        args_delta=json.dumps(arguments) if arguments else "",
                        done=True,
                    )
                ):
                    self._emit_tool_call(result, call)
        self._stop_reason = body.get("stop_reason")
        return self._complete(result, self._finish_reason())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _emit_tool_call(self, result: GenericCompletionResult, call: ToolCall) -> None:
        if call.name == STRUCTURED_OUTPUT_TOOL:
            result.content.append(_compact(call.arguments))
            self._structured_only = not self._saw_tool_calls
            return
        self._saw_tool_calls = True
        self._structured_only = False
        result.tool_calls.append(call)

    def _finish_reason(self) -> str:
        if self._stop_reason == "tool_use" and self._structured_only:
            return FinishReason.STOP
        return map_finish_reason(self._stop_reason, self.vendor)
