"""
Error taxonomy for the adapter layer.

Every error carries the vendor (provider key) and model identifier it was
raised for, so callers can log failures without threading extra context.
"""

from __future__ import annotations


class LLMWireError(Exception):
    """Base class for all adapter-layer errors."""

    def __init__(
        self,
        message: str,
        *,
        vendor: str | None = None,
        model: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.vendor = vendor
        self.model = model

    def __str__(self) -> str:
        context = []
        if self.vendor:
            context.append(f"vendor={self.vendor}")
        if self.model:
            context.append(f"model={self.model}")
        if not context:
            return self.message
        return f"{self.message} ({' '.join(context)})"


class UnknownProviderError(LLMWireError):
    """No adapter is registered under the requested provider key."""

    def __init__(self, provider_key: str, registered: list[str] | None = None) -> None:
        known = ", ".join(registered or []) or "none"
        super().__init__(
            f"Unknown provider {provider_key!r}. Registered: {known}",
            vendor=provider_key,
        )
        self.provider_key = provider_key


class TransportError(LLMWireError):
    """
    Non-2xx HTTP response or network failure.

    ``status`` is ``None`` when no response was received at all.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        body: str = "",
        vendor: str | None = None,
        model: str | None = None,
    ) -> None:
        super().__init__(message, vendor=vendor, model=model)
        self.status = status
        self.body = body


class ParseError(LLMWireError):
    """A payload fragment could not be decoded."""

    def __init__(
        self,
        message: str,
        *,
        fragment: str = "",
        vendor: str | None = None,
        model: str | None = None,
    ) -> None:
        super().__init__(message, vendor=vendor, model=model)
        self.fragment = fragment


class SchemaConversionError(LLMWireError):
    """A tool or response schema cannot be made vendor-compliant."""

    def __init__(
        self,
        message: str,
        *,
        tool_id: str | None = None,
        vendor: str | None = None,
        model: str | None = None,
    ) -> None:
        super().__init__(message, vendor=vendor, model=model)
        self.tool_id = tool_id
