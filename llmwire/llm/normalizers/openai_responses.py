"""
Normalizer for OpenAI Responses API payloads.

Streaming events are dispatched on their ``type``; a non-streaming body is
recognised by ``object == "response"`` and walked item by item.  URL
citations are surfaced as grounding metadata of the form
``{"annotations": [...]}``, always carrying every citation seen so far.
"""

from __future__ import annotations

import logging

from llmwire.llm.normalizers.base import (
    ResponseNormalizer,
    error_message,
    error_result,
    map_finish_reason,
)
from llmwire.llm.types import FinishReason, GenericCompletionResult, RawToolDelta

logger = logging.getLogger(__name__)

_THINKING_DELTAS = (
    "response.reasoning_summary_text.delta",
    "response.reasoning_text.delta",
)


class OpenAIResponsesNormalizer(ResponseNormalizer):
    vendor = "openai-responses"

    def __init__(self) -> None:
        super().__init__()
        self._annotations: list[dict] = []
        self._started: set[int] = set()
        self._args_streamed: set[int] = set()

    def normalize(self, event: dict) -> GenericCompletionResult:
        if "type" not in event and event.get("object") == "response":
            return self._normalize_body(event)

        kind = event.get("type", "")
        result = GenericCompletionResult()

        if kind == "response.output_text.delta":
            if event.get("delta"):
                result.content.append(event["delta"])
        elif kind in _THINKING_DELTAS:
            if event.get("delta"):
                result.thinking.append(event["delta"])
        elif kind == "response.output_text.annotation.added":
            self._add_annotations(result, [event.get("annotation") or {}])
        elif kind == "response.output_item.added":
            item = event.get("item") or {}
            if item.get("type") == "function_call":
                index = event.get("output_index", 0)
                self._started.add(index)
                self._assembler.feed(
                    RawToolDelta(
                        call_index=index,
                        id=item.get("call_id") or item.get("id"),
                        name_delta=item.get("name") or "",
                    )
                )
        elif kind == "response.function_call_arguments.delta":
            index = event.get("output_index", 0)
            self._args_streamed.add(index)
            self._assembler.feed(
                RawToolDelta(call_index=index, args_delta=event.get("delta") or "")
            )
        elif kind == "response.output_item.done":
            item = event.get("item") or {}
            if item.get("type") == "function_call":
                index = event.get("output_index", 0)
                args = "" if index in self._args_streamed else item.get("arguments") or ""
                self._add_calls(
                    result,
                    self._assembler.feed(
                        RawToolDelta(
                            call_index=index,
                            id=item.get("call_id") or item.get("id"),
                            name_delta="" if index in self._started else item.get("name") or "",
                            args_delta=args,
                            done=True,
                        )
                    )
                )
        elif kind in ("response.completed", "response.incomplete"):
            self._complete(result, self._finish_from(event.get("response") or {}))
        elif kind == "response.failed":
            response = event.get("response") or {}
            return error_result(error_message(response.get("error"), "Response failed"))
        elif kind == "error":
            return error_result(error_message(event.get("error") or event))
        else:
            logger.debug("Ignoring responses event %s", kind)
        return result

    # ------------------------------------------------------------------
    # Non-streaming body
    # ------------------------------------------------------------------

    def _normalize_body(self, body: dict) -> GenericCompletionResult:
        if body.get("status") == "failed" or body.get("error"):
            return error_result(error_message(body.get("error"), "Response failed"))

        result = GenericCompletionResult()
        for position, item in enumerate(body.get("output") or []):
            kind = item.get("type")
            if kind == "message":
                for part in item.get("content") or []:
                    if part.get("type") == "output_text" and part.get("text"):
                        result.content.append(part["text"])
                    if part.get("annotations"):
                        self._add_annotations(result, part["annotations"])
            elif kind == "reasoning":
                for summary in item.get("summary") or []:
                    if summary.get("text"):
                        result.thinking.append(summary["text"])
            elif kind == "function_call":
                self._add_calls(
                    result,
                    self._assembler.feed(
                        RawToolDelta(
                            call_index=position,
                            id=item.get("call_id") or item.get("id"),
                            name_delta=item.get("name") or "",
                            args_delta=item.get("arguments") or "",
                            done=True,
                        )
                    )
                )
        return self._complete(result, self._finish_from(body))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finish_from(self, response: dict) -> str:
        status = response.get("status") or "completed"
        if status == "incomplete":
            reason = (response.get("incomplete_details") or {}).get("reason")
            return map_finish_reason(reason or "length", self.vendor)
        if status == "completed":
            return FinishReason.STOP
        return map_finish_reason(status, self.vendor)

    def _add_annotations(self, result: GenericCompletionResult, annotations: list) -> None:
        added = [a for a in annotations if isinstance(a, dict) and a.get("type") == "url_citation"]
        if not added:
            return
        self._annotations.extend(added)
        result.grounding_metadata = {"annotations": list(self._annotations)}
