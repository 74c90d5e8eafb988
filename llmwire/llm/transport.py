"""
Thin ``httpx`` executor for adapter-built requests.

The transport sends an ``HttpRequest``, maps non-2xx responses and network
failures to ``TransportError`` and, for streams, drives the adapter's
reassembler over the response bytes.  Nothing is retried; retry policy
belongs to the caller.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from llmwire.config import TransportConfig
from llmwire.errors import TransportError
from llmwire.llm.providers.base import ProviderAdapter
from llmwire.llm.types import GenericCompletionResult, HttpRequest

logger = logging.getLogger(__name__)


class Transport:
    """
    Executes vendor requests.

    Parameters
    ----------
    config:
        Transport settings; only ``timeout_seconds`` is used.
    client:
        Optional shared ``httpx.AsyncClient``.  When omitted a client is
        created (and closed) per call.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or TransportConfig()
        self._client = client

    # ------------------------------------------------------------------
    # Non-streaming
    # ------------------------------------------------------------------

    async def send(
        self,
        request: HttpRequest,
        adapter: ProviderAdapter,
        *,
        model: str | None = None,
    ) -> GenericCompletionResult:
        """
        Send *request* and normalize the complete response body.

        Errors carry *model*, defaulting to the model id on *request*.
        """
        model = model or request.model
        try:
            async with self._session() as client:
                resp = await client.request(
                    request.method, request.url, json=request.body, headers=request.headers
                )
        except httpx.TransportError as exc:
            raise self._network_error(exc, adapter, model) from exc

        if not resp.is_success:
            raise self._status_error(resp.status_code, resp.text, adapter, model)
        return adapter.process_response_buffer(resp.content, model=model)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def stream(
        self,
        request: HttpRequest,
        adapter: ProviderAdapter,
        *,
        model: str | None = None,
    ) -> AsyncIterator[GenericCompletionResult]:
        """
        Yield non-empty result deltas as the response streams in.

        Closing the generator early cancels the stream.
        """
        model = model or request.model
        reassembler = adapter.create_reassembler(model)
        try:
            async with self._session() as client:
                async with client.stream(
                    request.method, request.url, json=request.body, headers=request.headers
                ) as response:
                    if not response.is_success:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        raise self._status_error(response.status_code, body, adapter, model)

                    async for raw_bytes in response.aiter_bytes():
                        delta = adapter.process_response_buffer(raw_bytes, reassembler)
                        if not delta.is_empty():
                            yield delta
                        if reassembler.closed:
                            return

            final = reassembler.finish()
            if not final.is_empty():
                yield final
        except httpx.TransportError as exc:
            raise self._network_error(exc, adapter, model) from exc
        finally:
            reassembler.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
            yield client

    @staticmethod
    def _status_error(
        status: int, body: str, adapter: ProviderAdapter, model: str | None
    ) -> TransportError:
        logger.warning("HTTP %d from %s: %s", status, adapter.provider_key, body[:200])
        return TransportError(
            f"HTTP {status}", status=status, body=body, vendor=adapter.provider_key, model=model
        )

    @staticmethod
    def _network_error(
        exc: httpx.TransportError, adapter: ProviderAdapter, model: str | None
    ) -> TransportError:
        logger.warning("Network error talking to %s: %s", adapter.provider_key, exc)
        return TransportError(
            f"Network error: {exc}", status=None, vendor=adapter.provider_key, model=model
        )
