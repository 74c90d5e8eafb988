"""Per-vendor tool-schema converters."""

from llmwire.llm.converters.anthropic import AnthropicToolConverter
from llmwire.llm.converters.base import ToolSchemaConverter
from llmwire.llm.converters.google import GoogleToolConverter
from llmwire.llm.converters.openai_chat import OpenAIChatToolConverter
from llmwire.llm.converters.openai_responses import OpenAIResponsesToolConverter

__all__ = [
    "AnthropicToolConverter",
    "GoogleToolConverter",
    "OpenAIChatToolConverter",
    "OpenAIResponsesToolConverter",
    "ToolSchemaConverter",
]
