"""Per-vendor response normalizers."""

from llmwire.llm.normalizers.anthropic import AnthropicNormalizer
from llmwire.llm.normalizers.base import ResponseNormalizer, map_finish_reason
from llmwire.llm.normalizers.google import GoogleNormalizer
from llmwire.llm.normalizers.openai_chat import OpenAIChatNormalizer
from llmwire.llm.normalizers.openai_responses import OpenAIResponsesNormalizer

__all__ = [
    "AnthropicNormalizer",
    "GoogleNormalizer",
    "OpenAIChatNormalizer",
    "OpenAIResponsesNormalizer",
    "ResponseNormalizer",
    "map_finish_reason",
]
