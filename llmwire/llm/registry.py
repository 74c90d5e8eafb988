"""
Adapter registry -- maps provider keys to provider adapters.

The registry is the only entry point the orchestrator needs: it looks up an
adapter by the model's provider key and then calls
``create_completion_request`` and ``process_response_buffer`` on it.
"""

from __future__ import annotations

import logging

from llmwire.config import LLMWireConfig
from llmwire.errors import UnknownProviderError
from llmwire.llm.providers.anthropic import AnthropicAdapter
from llmwire.llm.providers.base import ProviderAdapter
from llmwire.llm.providers.google import GoogleAdapter
from llmwire.llm.providers.openai_chat import OpenAIChatAdapter
from llmwire.llm.providers.openai_responses import OpenAIResponsesAdapter

logger = logging.getLogger(__name__)

DEFAULT_ADAPTERS: tuple[type[ProviderAdapter], ...] = (
    OpenAIChatAdapter,
    OpenAIResponsesAdapter,
    AnthropicAdapter,
    GoogleAdapter,
)


class AdapterRegistry:
    """Looks up provider adapters by key."""

    def __init__(self) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}

    @classmethod
    def default(cls, config: LLMWireConfig | None = None) -> AdapterRegistry:
        """Registry with the built-in OpenAI, Responses, Anthropic and Google adapters."""
        registry = cls()
        for adapter_cls in DEFAULT_ADAPTERS:
            registry.register(adapter_cls.provider_key, adapter_cls(config))
        return registry

    # ------------------------------------------------------------------
    # Adapter management
    # ------------------------------------------------------------------

    def register(self, key: str, adapter: ProviderAdapter, *, overwrite: bool = False) -> None:
        """
        Register *adapter* under *key*.

        Raises ``ValueError`` if *key* is taken and *overwrite* is false.
        """
        if key in self._adapters and not overwrite:
            raise ValueError(f"Provider already registered: {key}")
        self._adapters[key] = adapter
        logger.debug("Registered adapter %s for %s", type(adapter).__name__, key)

    def get(self, provider_key: str) -> ProviderAdapter:
        """
        Return the adapter for *provider_key*.

        Raises ``UnknownProviderError`` if nothing is registered under it.
        """
        try:
            return self._adapters[provider_key]
        except KeyError:
            raise UnknownProviderError(provider_key, self.provider_names) from None

    @property
    def provider_names(self) -> list[str]:
        """Return the list of registered provider keys."""
        return list(self._adapters)

    def __contains__(self, key: object) -> bool:
        return key in self._adapters
