"""Tests for llmwire.llm.transport.Transport using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from llmwire.errors import ParseError, TransportError
from llmwire.llm.providers.anthropic import AnthropicAdapter
from llmwire.llm.providers.openai_chat import OpenAIChatAdapter
from llmwire.llm.streaming import StreamState
from llmwire.llm.transport import Transport
from llmwire.llm.types import FinishReason, GenericCompletionResult, GenericMessage, ModelDescriptor
from tests.vendor_payloads import ANTHROPIC_STREAM, OPENAI_CHAT_BODY


class _EventStream(httpx.AsyncByteStream):
    """Serves an SSE capture one event per chunk and records closing."""

    def __init__(self, raw: bytes) -> None:
        self.chunks = [event + b"\n\n" for event in raw.split(b"\n\n") if event]
        self.sent = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            self.sent += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def _transport(handler) -> Transport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Transport(client=client)


def _request(adapter, stream: bool = False):
    return adapter.create_completion_request(
        ModelDescriptor(model_id="m", provider=adapter.provider_key),
        [GenericMessage(role="user", content="hi")],
        "secret",
        {"stream": stream},
    )


@pytest.mark.asyncio
class TestSend:
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=OPENAI_CHAT_BODY)

        adapter = OpenAIChatAdapter()
        result = await _transport(handler).send(_request(adapter), adapter)
        assert seen["auth"] == "Bearer secret"
        assert seen["body"]["model"] == "m"
        assert result.finish_reason == FinishReason.TOOL_CALLS

    async def test_http_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, text="slow down")

        adapter = OpenAIChatAdapter()
        with pytest.raises(TransportError) as exc_info:
            await _transport(handler).send(_request(adapter), adapter, model="m")
        err = exc_info.value
        assert err.status == 429
        assert err.body == "slow down"
        assert err.vendor == "openai"
        assert err.model == "m"

    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        adapter = OpenAIChatAdapter()
        with pytest.raises(TransportError) as exc_info:
            await _transport(handler).send(_request(adapter), adapter)
        assert exc_info.value.status is None


@pytest.mark.asyncio
class TestStream:
    async def test_deltas_accumulate(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=ANTHROPIC_STREAM)

        adapter = AnthropicAdapter()
        total = GenericCompletionResult()
        deltas = 0
        async for delta in _transport(handler).stream(_request(adapter, stream=True), adapter):
            assert not delta.is_empty()
            total.extend(delta)
            deltas += 1
        assert deltas >= 1
        assert total.complete
        assert total.text == "Let me check."
        assert total.finish_reason == FinishReason.TOOL_CALLS

    async def test_stream_http_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        adapter = AnthropicAdapter()
        with pytest.raises(TransportError) as exc_info:
            async for _ in _transport(handler).stream(_request(adapter, stream=True), adapter):
                pass
        assert exc_info.value.status == 500
        assert exc_info.value.body == "boom"

    async def test_stream_without_terminal_event(self):
        chunk = b'data: {"choices": [{"delta": {"content": "cut"}, "finish_reason": null}]}\n\n'

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=chunk)

        adapter = OpenAIChatAdapter()
        deltas = [d async for d in _transport(handler).stream(_request(adapter, stream=True), adapter)]
        assert deltas[0].content == ["cut"]
        assert deltas[-1].complete
        assert deltas[-1].finish_reason == FinishReason.STOP

    async def test_early_close_cancels_stream(self):
        body = _EventStream(ANTHROPIC_STREAM)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=body)

        adapter = AnthropicAdapter()
        created = []
        original = adapter.create_reassembler

        def tracking_reassembler(model=None):
            reassembler = original(model)
            created.append(reassembler)
            return reassembler

        adapter.create_reassembler = tracking_reassembler
        gen = _transport(handler).stream(_request(adapter, stream=True), adapter)
        first = await gen.__anext__()
        assert first.thinking == ["User wants weather."]
        await gen.aclose()

        assert created[0].state is StreamState.CLOSED
        assert body.closed
        assert body.sent < len(body.chunks)


@pytest.mark.asyncio
class TestErrorContext:
    async def test_transport_error_uses_request_model(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        adapter = OpenAIChatAdapter()
        with pytest.raises(TransportError) as exc_info:
            await _transport(handler).send(_request(adapter), adapter)
        assert exc_info.value.model == "m"

    async def test_malformed_body_error_carries_model(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"{truncated")

        adapter = OpenAIChatAdapter()
        with pytest.raises(ParseError) as exc_info:
            await _transport(handler).send(_request(adapter), adapter)
        assert exc_info.value.model == "m"
        assert exc_info.value.vendor == "openai"

    async def test_stream_parse_error_carries_model(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"data: {broken\n\n")

        adapter = OpenAIChatAdapter()
        deltas = [d async for d in _transport(handler).stream(_request(adapter, stream=True), adapter)]
        assert deltas[-1].finish_reason == FinishReason.ERROR
        assert "model=m" in deltas[-1].error
