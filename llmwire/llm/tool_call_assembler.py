"""
Assembles streamed tool-call fragments into complete ToolCall objects.

Behaviour:
  - Accumulate ``RawToolDelta`` fragments keyed by ``call_index``.
  - On ``done=True`` (or an explicit ``flush()``), decode the accumulated
    argument string.  An empty string decodes to ``{}``.
  - If decoding fails, or the arguments are not a JSON object, the call is
    *dropped* and a ``ParseError`` is appended to ``self.errors``.
"""

from __future__ import annotations

import logging

from llmwire.errors import ParseError
from llmwire.llm.types import RawToolDelta, ToolCall, decode_arguments

logger = logging.getLogger(__name__)


class ToolCallAssembler:
    """Buffers raw tool-call deltas and emits finished ``ToolCall`` objects."""

    def __init__(self, vendor: str | None = None) -> None:
        self._vendor = vendor
        self._buf: dict[int, dict] = {}
        self.errors: list[ParseError] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def feed(self, delta: RawToolDelta) -> list[ToolCall]:
        """
        Feed a single ``RawToolDelta`` into the assembler.

        Returns a (possibly empty) list of completed ``ToolCall`` objects.
        A call is finalized when its delta has ``done=True``.
        """
        buf = self._buf.setdefault(
            delta.call_index, {"id": None, "name": "", "args": ""}
        )

        if delta.id and not buf["id"]:
            buf["id"] = delta.id

        if delta.name_delta:
            buf["name"] += delta.name_delta

        if delta.args_delta:
            buf["args"] += delta.args_delta

        if delta.done:
            return self._finalize(delta.call_index)

        return []

    def flush(self) -> list[ToolCall]:
        """
        Finalize *all* remaining buffers, in index order, whether or not a
        ``done`` delta was received.
        """
        calls: list[ToolCall] = []
        for idx in sorted(self._buf.keys()):
            calls.extend(self._finalize(idx))
        return calls

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finalize(self, idx: int) -> list[ToolCall]:
        buf = self._buf.pop(idx, None)
        if buf is None:
            return []

        try:
            args = decode_arguments(buf["args"], vendor=self._vendor)
        except ParseError as exc:
            logger.warning(
                "Dropping tool call idx=%d name=%s: %s", idx, buf["name"], exc.message
            )
            self.errors.append(exc)
            return []

        call_id = buf["id"] or f"call_{idx}"
        return [ToolCall(id=call_id, name=buf["name"].strip(), arguments=args)]
