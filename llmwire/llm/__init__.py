"""LLM adapter subsystem -- vendor request mapping, normalization and stream reassembly."""

from llmwire.llm.types import (
    FinishReason,
    GenericCompletionRequest,
    GenericCompletionResult,
    GenericMessage,
    GenericTool,
    HttpRequest,
    ImageData,
    ModelDescriptor,
    RawToolDelta,
    ToolCall,
)
from llmwire.llm.registry import AdapterRegistry
from llmwire.llm.streaming import StreamingReassembler, StreamState
from llmwire.llm.tool_call_assembler import ToolCallAssembler
from llmwire.llm.transport import Transport

__all__ = [
    "AdapterRegistry",
    "FinishReason",
    "GenericCompletionRequest",
    "GenericCompletionResult",
    "GenericMessage",
    "GenericTool",
    "HttpRequest",
    "ImageData",
    "ModelDescriptor",
    "RawToolDelta",
    "StreamState",
    "StreamingReassembler",
    "ToolCall",
    "ToolCallAssembler",
    "Transport",
]
