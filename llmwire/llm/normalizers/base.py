"""
Abstract base class for response normalizers.

A normalizer turns one decoded vendor payload (a full response body or one
streaming event) into a ``GenericCompletionResult`` delta.  Instances carry
per-stream state and must not be shared between requests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from llmwire.errors import ParseError
from llmwire.llm.tool_call_assembler import ToolCallAssembler
from llmwire.llm.types import FinishReason, GenericCompletionResult

logger = logging.getLogger(__name__)

_FINISH_REASONS: dict[str, str] = {
    # stop
    "stop": FinishReason.STOP,
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "pause_turn": FinishReason.STOP,
    "completed": FinishReason.STOP,
    # length
    "length": FinishReason.LENGTH,
    "max_tokens": FinishReason.LENGTH,
    "max_output_tokens": FinishReason.LENGTH,
    # tool calls
    "tool_calls": FinishReason.TOOL_CALLS,
    "tool_use": FinishReason.TOOL_CALLS,
    "function_call": FinishReason.TOOL_CALLS,
    # content filter
    "content_filter": FinishReason.CONTENT_FILTER,
    "safety": FinishReason.CONTENT_FILTER,
    "recitation": FinishReason.CONTENT_FILTER,
    "refusal": FinishReason.CONTENT_FILTER,
    "blocklist": FinishReason.CONTENT_FILTER,
    "prohibited_content": FinishReason.CONTENT_FILTER,
    "spii": FinishReason.CONTENT_FILTER,
    "image_safety": FinishReason.CONTENT_FILTER,
}


def map_finish_reason(raw: str | None, vendor: str = "") -> str:
    """Map a vendor finish reason onto the closed ``FinishReason`` set."""
    if not raw:
        return FinishReason.STOP
    mapped = _FINISH_REASONS.get(str(raw).lower())
    if mapped is None:
        logger.warning("Unknown %s finish reason %r, reporting error", vendor, raw)
        return FinishReason.ERROR
    return mapped


def error_result(message: str) -> GenericCompletionResult:
    return GenericCompletionResult(
        error=message, complete=True, finish_reason=FinishReason.ERROR
    )


def error_message(payload: Any, default: str = "Unknown vendor error") -> str:
    """Pull a readable message out of a vendor error object."""
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("type") or payload.get("status") or default)
    if payload:
        return str(payload)
    return default


class ResponseNormalizer(ABC):
    """Maps one vendor's payloads onto ``GenericCompletionResult``."""

    vendor: str = ""

    def __init__(self) -> None:
        self._assembler = ToolCallAssembler(vendor=self.vendor)
        self._saw_tool_calls = False

    @property
    def errors(self) -> list[ParseError]:
        """Parse errors recorded while assembling tool calls."""
        return self._assembler.errors

    @abstractmethod
    def normalize(self, event: dict) -> GenericCompletionResult:
        """Normalize one decoded payload into a result delta."""
        ...

    def end_of_stream(self) -> GenericCompletionResult:
        """
        Close out a stream that ended without a vendor stop signal.

        Pending tool calls are flushed; the finish reason is always ``stop``,
        even when tool calls were seen.
        """
        result = GenericCompletionResult()
        self._add_calls(result, self._assembler.flush())
        return self._synthesized_stop(result)

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _add_calls(self, result: GenericCompletionResult, calls: list) -> None:
        if calls:
            result.tool_calls.extend(calls)
            self._saw_tool_calls = True

    def _synthesized_stop(self, result: GenericCompletionResult) -> GenericCompletionResult:
        result.complete = True
        result.finish_reason = FinishReason.STOP
        return result

    def _complete(self, result: GenericCompletionResult, finish_reason: str) -> GenericCompletionResult:
        """Flush pending tool calls and mark *result* complete."""
        self._add_calls(result, self._assembler.flush())
        if finish_reason == FinishReason.STOP and self._saw_tool_calls:
            finish_reason = FinishReason.TOOL_CALLS
        result.complete = True
        result.finish_reason = finish_reason
        return result
