"""
Normalizer for Google Gemini ``generateContent`` payloads.

Streamed chunks and full bodies share one shape, so a single code path
handles both.  Gemini sends function calls whole and without ids; ids are
generated as ``call_<n>`` in arrival order.  Gemini also reports ``STOP``
when the turn ends in function calls, which is reported as ``tool_calls``.
"""

from __future__ import annotations

import logging

from llmwire.errors import ParseError
from llmwire.llm.normalizers.base import (
    ResponseNormalizer,
    error_message,
    error_result,
    map_finish_reason,
)
from llmwire.llm.types import (
    FinishReason,
    GenericCompletionResult,
    ImageData,
    ToolCall,
    decode_arguments,
)

logger = logging.getLogger(__name__)


class GoogleNormalizer(ResponseNormalizer):
    vendor = "google"

    def __init__(self) -> None:
        super().__init__()
        self._call_count = 0

    def normalize(self, event: dict) -> GenericCompletionResult:
        if event.get("error"):
            return error_result(error_message(event["error"]))

        result = GenericCompletionResult()
        candidates = event.get("candidates") or []

        if not candidates:
            block_reason = (event.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                result.error = f"Prompt blocked: {block_reason}"
                return self._complete(result, FinishReason.CONTENT_FILTER)
            return result

        candidate = candidates[0]
        for part in (candidate.get("content") or {}).get("parts") or []:
            self._add_part(result, part)

        grounding = candidate.get("groundingMetadata") or event.get("groundingMetadata")
        if grounding is not None:
            result.grounding_metadata = grounding

        finish = candidate.get("finishReason")
        if finish:
            self._complete(result, map_finish_reason(finish, self.vendor))
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _add_part(self, result: GenericCompletionResult, part: dict) -> None:
        thought = part.get("thought") is True
        signature = part.get("thoughtSignature")

        text = part.get("text")
        if text:
            (result.thinking if thought else result.content).append(text)

        inline = part.get("inlineData") or {}
        mime_type = inline.get("mimeType") or ""
        if mime_type.startswith("image/") and not thought:
            result.images.append(
                ImageData(mime_type=mime_type, data=inline.get("data") or "", thought_signature=signature)
            )
        elif inline and not mime_type.startswith("image/"):
            logger.debug("Ignoring non-image inline data (%s)", mime_type or "no mime type")

        call = part.get("functionCall")
        if call:
            if not call.get("name"):
                logger.debug("Ignoring partial function call without name: %s", call)
                return
            try:
                arguments = decode_arguments(call.get("args"), vendor=self.vendor)
            except ParseError as exc:
                logger.warning("Dropping function call %s: %s", call.get("name"), exc.message)
                self.errors.append(exc)
                return
            result.tool_calls.append(
                ToolCall(
                    id=f"call_{self._call_count}",
                    name=call["name"],
                    arguments=arguments,
                    thought_signature=signature,
                )
            )
            self._call_count += 1
            self._saw_tool_calls = True
