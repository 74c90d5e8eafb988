"""Tests for llmwire.llm.types."""

from __future__ import annotations

import pytest

from llmwire.errors import ParseError
from llmwire.llm.types import (
    FinishReason,
    GenericCompletionRequest,
    GenericCompletionResult,
    GenericMessage,
    GenericTool,
    ImageData,
    ModelDescriptor,
    ToolCall,
)


class TestGenericMessage:
    def test_invalid_role_rejected(self):
        with pytest.raises(ValueError, match="role"):
            GenericMessage(role="robot", content="hi")

    def test_none_content_becomes_empty(self):
        assert GenericMessage(role="assistant", content=None).content == ""

    def test_from_dict_camel_case(self):
        msg = GenericMessage.from_dict({
            "role": "tool",
            "content": "42",
            "toolCallId": "call_1",
            "name": "calc",
        })
        assert msg.tool_call_id == "call_1"
        assert msg.name == "calc"

    def test_from_dict_tool_calls(self):
        msg = GenericMessage.from_dict({
            "role": "assistant",
            "tool_calls": [{"id": "c1", "name": "f", "arguments": {"a": 1}}],
        })
        assert msg.tool_calls == [ToolCall(id="c1", name="f", arguments={"a": 1})]

    def test_from_dict_decodes_string_arguments(self):
        msg = GenericMessage.from_dict({
            "role": "assistant",
            "toolCalls": [{"id": "c1", "name": "f", "arguments": '{"a": 1}'}],
        })
        assert msg.tool_calls[0].arguments == {"a": 1}

    def test_from_dict_openai_function_shape(self):
        msg = GenericMessage.from_dict({
            "role": "assistant",
            "tool_calls": [{
                "id": "call_9",
                "type": "function",
                "function": {"name": "get_weather", "arguments": '{"city": "Oslo"}'},
            }],
        })
        call = msg.tool_calls[0]
        assert call.id == "call_9"
        assert call.name == "get_weather"
        assert call.arguments == {"city": "Oslo"}

    def test_from_dict_bad_arguments(self):
        with pytest.raises(ParseError):
            GenericMessage.from_dict({
                "role": "assistant",
                "tool_calls": [{"id": "c1", "name": "f", "arguments": "{not json"}],
            })

    def test_from_dict_keeps_thought_signature(self):
        msg = GenericMessage.from_dict({
            "role": "assistant",
            "tool_calls": [{"name": "f", "args": {}, "thoughtSignature": "sig-1"}],
        })
        assert msg.tool_calls[0].thought_signature == "sig-1"


class TestImageData:
    def test_data_url_prefix_stripped(self):
        img = ImageData(mime_type="image/png", data="data:image/png;base64,AAAA")
        assert img.data == "AAAA"

    def test_data_url_roundtrip(self):
        assert ImageData("image/jpeg", "QUJD").data_url() == "data:image/jpeg;base64,QUJD"


class TestGenericTool:
    def test_wire_name_prefers_id(self):
        tool = GenericTool(id="webContentExtractor", name="Web-Inhalts-Extraktor")
        assert tool.wire_name == "webContentExtractor"

    def test_wire_name_falls_back_to_name(self):
        assert GenericTool(id="", name="lookup").wire_name == "lookup"

    def test_known_search_ids_are_generic_search(self):
        assert GenericTool(id="braveSearch").is_generic_web_search
        assert not GenericTool(id="calculator").is_generic_web_search

    def test_web_search_flag(self):
        assert GenericTool(id="mySearch", web_search=True).is_generic_web_search

    def test_from_dict_camel_case_flags(self):
        tool = GenericTool.from_dict({"id": "googleSearch", "isSpecialTool": True, "provider": "google"})
        assert tool.is_special_tool
        assert tool.provider == "google"
        assert tool.parameters == {"type": "object", "properties": {}}


class TestGenericCompletionRequest:
    def test_from_options_maps_aliases(self):
        model = ModelDescriptor(model_id="gpt-4o", provider="openai")
        req = GenericCompletionRequest.from_options(
            model,
            [{"role": "user", "content": "hi"}],
            {"maxTokens": 100, "responseFormat": "json", "tools": [{"id": "t1"}]},
        )
        assert req.max_tokens == 100
        assert req.response_format == "json"
        assert req.tools[0].id == "t1"
        assert isinstance(req.messages[0], GenericMessage)

    def test_unknown_option_rejected(self):
        model = ModelDescriptor(model_id="m", provider="openai")
        with pytest.raises(ValueError, match="Unknown completion option"):
            GenericCompletionRequest.from_options(model, [], {"temprature": 0.2})

    def test_bad_response_format_rejected(self):
        model = ModelDescriptor(model_id="m", provider="openai")
        with pytest.raises(ValueError):
            GenericCompletionRequest(model=model, messages=[], response_format="xml")

    def test_wants_json(self):
        model = ModelDescriptor(model_id="m", provider="openai")
        assert GenericCompletionRequest(model=model, messages=[], response_schema={"type": "object"}).wants_json
        assert not GenericCompletionRequest(model=model, messages=[]).wants_json


class TestGenericCompletionResult:
    def test_extend_appends_in_order(self):
        total = GenericCompletionResult(content=["a"], thinking=["x"])
        total.extend(GenericCompletionResult(content=["b"], thinking=["y"]))
        assert total.content == ["a", "b"]
        assert total.thinking == ["x", "y"]
        assert total.text == "ab"

    def test_completion_is_sticky(self):
        total = GenericCompletionResult()
        total.extend(GenericCompletionResult(complete=True, finish_reason=FinishReason.STOP))
        total.extend(GenericCompletionResult(complete=True, finish_reason=FinishReason.ERROR))
        assert total.complete
        assert total.finish_reason == FinishReason.STOP

    def test_grounding_replaced(self):
        total = GenericCompletionResult(grounding_metadata={"a": 1})
        total.extend(GenericCompletionResult(grounding_metadata={"b": 2}))
        assert total.grounding_metadata == {"b": 2}

    def test_is_empty(self):
        assert GenericCompletionResult().is_empty()
        assert not GenericCompletionResult(content=["x"]).is_empty()
        assert not GenericCompletionResult(complete=True).is_empty()

    def test_finish_reason_set_is_closed(self):
        assert FinishReason.ALL == {"stop", "length", "tool_calls", "content_filter", "error"}
