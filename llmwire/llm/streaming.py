"""
Streaming reassembly of vendor response bodies.

A ``StreamingReassembler`` accepts arbitrary byte (or text) fragments of a
vendor stream, cuts them into complete events with a framer, normalizes each
event and returns the merged delta of whatever new output the fragment
completed.  The result of accumulating every delta does not depend on where
the transport happened to split the stream.

Two framings are supported:

  - ``"sse"``: Server-Sent Events.  Events end at a blank line; ``data:``
    lines are joined with newlines; ``:`` comment lines and other fields
    are ignored; CRLF line endings are tolerated.
  - ``"ndjson"``: one JSON document per line.

One reassembler serves exactly one request and is discarded afterwards.
"""

from __future__ import annotations

import codecs
import enum
import json
import logging

from llmwire.errors import ParseError
from llmwire.llm.normalizers.base import ResponseNormalizer
from llmwire.llm.types import FinishReason, GenericCompletionResult

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


class StreamState(enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class SSEFramer:
    """Splits a text stream into SSE ``data`` payloads."""

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> list[str]:
        self._buffer = (self._buffer + text).replace("\r\n", "\n")
        payloads: list[str] = []
        while "\n\n" in self._buffer:
            block, self._buffer = self._buffer.split("\n\n", 1)
            payload = self._parse_block(block)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def flush(self) -> list[str]:
        """Return the trailing event if the stream ended without a blank line."""
        block, self._buffer = self._buffer.rstrip("\r\n"), ""
        payload = self._parse_block(block) if block.strip() else None
        return [payload] if payload is not None else []

    def clear(self) -> None:
        self._buffer = ""

    @staticmethod
    def _parse_block(block: str) -> str | None:
        data_lines: list[str] = []
        for line in block.split("\n"):
            if not line or line.startswith(":"):
                continue
            if line.startswith("data:"):
                value = line[len("data:"):]
                data_lines.append(value[1:] if value.startswith(" ") else value)
            # event:, id: and retry: carry nothing the normalizers need.
        if not data_lines:
            return None
        return "\n".join(data_lines)


class NDJSONFramer:
    """Splits a text stream into newline-delimited JSON documents."""

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> list[str]:
        self._buffer += text
        payloads: list[str] = []
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            line = line.strip()
            if line:
                payloads.append(line)
        return payloads

    def flush(self) -> list[str]:
        line, self._buffer = self._buffer.strip(), ""
        return [line] if line else []

    def clear(self) -> None:
        self._buffer = ""


FRAMERS = {
    "sse": SSEFramer,
    "ndjson": NDJSONFramer,
}


class StreamingReassembler:
    """
    Buffers one vendor stream and emits ``GenericCompletionResult`` deltas.

    Parameters
    ----------
    normalizer:
        A fresh normalizer for the vendor; owned by this reassembler.
    framing:
        ``"sse"`` or ``"ndjson"``.
    vendor:
        Provider key used in errors and logs.
    model:
        Model id attached to recorded errors.
    """

    def __init__(
        self,
        normalizer: ResponseNormalizer,
        framing: str = "sse",
        vendor: str | None = None,
        model: str | None = None,
    ) -> None:
        if framing not in FRAMERS:
            raise ValueError(f"Unknown framing {framing!r}. Known: {sorted(FRAMERS)}")
        self._normalizer = normalizer
        self._framer = FRAMERS[framing]()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._vendor = vendor or normalizer.vendor
        self._model = model
        self._state = StreamState.OPEN
        self._normalizer_errors_seen = 0
        self.errors: list[ParseError] = []

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is StreamState.CLOSED

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def feed(self, fragment: bytes | str) -> GenericCompletionResult:
        """
        Feed one fragment and return the delta it completed.

        Input after the stream has closed is ignored.
        """
        if self.closed:
            return GenericCompletionResult()
        if isinstance(fragment, (bytes, bytearray)):
            text = self._decoder.decode(bytes(fragment))
        else:
            text = fragment
        return self._process(self._framer.feed(text))

    def finish(self) -> GenericCompletionResult:
        """
        Signal end of input.

        A trailing unterminated event is processed; if the vendor never sent
        a stop signal, completion is synthesized with ``stop`` (or ``error``
        when parse errors were recorded).
        """
        if self.closed:
            return GenericCompletionResult()
        tail = self._decoder.decode(b"", final=True)
        payloads = self._framer.feed(tail) if tail else []
        payloads.extend(self._framer.flush())
        delta = self._process(payloads)
        if not self.closed:
            delta.extend(self._close_out(self._normalizer.end_of_stream()))
        return delta

    def close(self) -> None:
        """Cancel the stream and drop any buffered input."""
        if not self.closed:
            logger.debug("Stream for %s cancelled", self._vendor)
        self._framer.clear()
        self._state = StreamState.CLOSED

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _process(self, payloads: list[str]) -> GenericCompletionResult:
        delta = GenericCompletionResult()
        for payload in payloads:
            if self.closed:
                break
            if payload.strip() == DONE_SENTINEL:
                delta.extend(self._close_out(self._normalizer.end_of_stream()))
                break
            try:
                event = json.loads(payload)
            except json.JSONDecodeError as exc:
                logger.warning("Failed to parse stream data: %s", payload[:200])
                self.errors.append(
                    ParseError(
                        f"Malformed stream event: {exc}",
                        fragment=payload[:200],
                        vendor=self._vendor,
                        model=self._model,
                    )
                )
                continue
            if not isinstance(event, dict):
                logger.warning("Ignoring non-object stream data: %s", payload[:200])
                self.errors.append(
                    ParseError(
                        "Stream event is not a JSON object",
                        fragment=payload[:200],
                        vendor=self._vendor,
                        model=self._model,
                    )
                )
                continue
            part = self._normalizer.normalize(event)
            self._collect_normalizer_errors()
            if part.complete:
                part = self._close_out(part)
            delta.extend(part)
        return delta

    def _collect_normalizer_errors(self) -> None:
        errors = self._normalizer.errors
        if len(errors) > self._normalizer_errors_seen:
            for err in errors[self._normalizer_errors_seen:]:
                err.model = err.model or self._model
                self.errors.append(err)
            self._normalizer_errors_seen = len(errors)

    def _close_out(self, part: GenericCompletionResult) -> GenericCompletionResult:
        """Apply recorded errors to a completing delta and close the stream."""
        self._collect_normalizer_errors()
        if self.errors and part.finish_reason != FinishReason.ERROR:
            part.finish_reason = FinishReason.ERROR
            part.error = part.error or str(self.errors[-1])
        self._state = StreamState.CLOSED
        return part
