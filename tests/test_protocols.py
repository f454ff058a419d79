"""Tests for the core data types: ToolCall, Message, TokenUsage, ChatResponse."""

from __future__ import annotations

import json

import pytest

from toolloop.protocols import ChatResponse, Message, TokenUsage, ToolCall


class TestToolCall:
    def test_from_openai_parses_arguments(self):
        tc = ToolCall.from_openai({
            "id": "call_1",
            "type": "function",
            "function": {"name": "calculate", "arguments": '{"expression": "25 * 4"}'},
        })
        assert tc.id == "call_1"
        assert tc.name == "calculate"
        assert tc.arguments == {"expression": "25 * 4"}
        assert tc.raw_arguments == '{"expression": "25 * 4"}'

    def test_argument_key_order_preserved(self):
        tc = ToolCall.from_openai({
            "id": "c",
            "function": {"name": "weather", "arguments": '{"lon": 13.41, "lat": 52.52}'},
        })
        assert list(tc.arguments) == ["lon", "lat"]

    def test_malformed_arguments_become_empty(self, caplog):
        tc = ToolCall.from_openai({
            "id": "c",
            "function": {"name": "calculate", "arguments": "{not json"},
        })
        assert tc.arguments == {}
        assert tc.raw_arguments == "{not json"
        assert "Malformed JSON" in caplog.text

    def test_non_object_arguments_become_empty(self):
        tc = ToolCall.from_openai({"id": "c", "function": {"name": "x", "arguments": "[1, 2]"}})
        assert tc.arguments == {}

    def test_missing_arguments_default_to_empty_object(self):
        tc = ToolCall.from_openai({"id": "c", "function": {"name": "x"}})
        assert tc.arguments == {}
        assert tc.raw_arguments == "{}"

    def test_dict_arguments_accepted(self):
        tc = ToolCall.from_openai({"id": "c", "function": {"name": "x", "arguments": {"a": 1}}})
        assert tc.arguments == {"a": 1}
        assert json.loads(tc.raw_arguments) == {"a": 1}

    def test_to_openai_echoes_raw_arguments(self):
        raw = '{"b": 2,   "a": 1}'
        tc = ToolCall.from_openai({"id": "c", "function": {"name": "x", "arguments": raw}})
        assert tc.to_openai() == {
            "id": "c",
            "type": "function",
            "function": {"name": "x", "arguments": raw},
        }

    def test_frozen(self):
        tc = ToolCall(id="c", name="x")
        with pytest.raises(AttributeError):
            tc.name = "y"  # type: ignore[misc]


class TestMessage:
    def test_user_message(self):
        assert Message.user("hi").to_openai() == {"role": "user", "content": "hi"}

    def test_tool_message_carries_call_id(self):
        assert Message.tool("call_9", "100").to_openai() == {
            "role": "tool",
            "content": "100",
            "tool_call_id": "call_9",
        }

    def test_assistant_with_tool_calls(self):
        tc = ToolCall(id="c1", name="calculate", arguments={"expression": "1+1"},
                      raw_arguments='{"expression": "1+1"}')
        msg = Message.assistant("", (tc,)).to_openai()
        assert msg["role"] == "assistant"
        assert msg["content"] == ""
        assert msg["tool_calls"][0]["id"] == "c1"
        assert "tool_call_id" not in msg

    def test_assistant_without_tool_calls_has_no_key(self):
        assert "tool_calls" not in Message.assistant("done").to_openai()


class TestTokenUsage:
    def test_missing_fields_are_zero(self):
        usage = TokenUsage.from_openai({"prompt_tokens": 7})
        assert usage == TokenUsage(prompt_tokens=7, completion_tokens=0, total_tokens=7)

    def test_total_recomputed(self):
        usage = TokenUsage.from_openai({"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 99})
        assert usage.total_tokens == 7

    def test_none_when_absent(self):
        assert TokenUsage.from_openai(None) is None


class TestChatResponse:
    def test_content_only(self):
        resp = ChatResponse.from_openai({
            "choices": [{"message": {"role": "assistant", "content": "Paris"}}],
            "usage": {"prompt_tokens": 1, "completion_tokens": 2},
        })
        assert not resp.is_error
        assert resp.content == "Paris"
        assert resp.tool_calls == ()
        assert resp.usage.total_tokens == 3

    def test_tool_calls_in_order(self):
        resp = ChatResponse.from_openai({
            "choices": [{"message": {"content": None, "tool_calls": [
                {"id": "a", "function": {"name": "t1", "arguments": "{}"}},
                {"id": "b", "function": {"name": "t2", "arguments": "{}"}},
            ]}}],
        })
        assert [tc.id for tc in resp.tool_calls] == ["a", "b"]
        assert resp.content == ""

    def test_error_object(self):
        resp = ChatResponse.from_openai({"error": {"message": "rate limited"}})
        assert resp.is_error
        assert resp.error == "rate limited"
        assert resp.content == ""

    def test_error_string(self):
        assert ChatResponse.from_openai({"error": "model not loaded"}).error == "model not loaded"

    def test_error_without_message(self):
        assert ChatResponse.from_openai({"error": {"code": 500}}).error == "Unknown error"

    def test_error_wins_over_choices(self):
        resp = ChatResponse.from_openai({
            "error": {"message": "boom"},
            "choices": [{"message": {"content": "ignored"}}],
        })
        assert resp.is_error
        assert resp.content == ""

    def test_empty_body(self):
        resp = ChatResponse.from_openai({})
        assert not resp.is_error
        assert resp.content == ""
        assert resp.tool_calls == ()
        assert resp.usage is None

    def test_to_message(self):
        resp = ChatResponse.from_openai({
            "choices": [{"message": {"content": "checking", "tool_calls": [
                {"id": "a", "function": {"name": "t1", "arguments": '{"x": 1}'}},
            ]}}],
        })
        msg = resp.to_message()
        assert msg.role == "assistant"
        assert msg.content == "checking"
        assert msg.tool_calls[0].name == "t1"


class TestMalformedBodies:
    @pytest.mark.parametrize(
        "body",
        [
            {"choices": [{"message": "oops"}]},
            {"choices": ["oops"]},
            {"choices": {"message": {}}},
            {"choices": [{"message": {"content": ["part"]}}]},
            {"choices": [{"message": {"tool_calls": "calculate"}}]},
            {"choices": [{"message": {"tool_calls": [{"id": "c", "function": "calculate"}]}}]},
        ],
    )
    def test_wrong_shape_raises_value_error(self, body):
        with pytest.raises(ValueError):
            ChatResponse.from_openai(body)

    @pytest.mark.parametrize("count", ["n/a", [], {"n": 1}, True, float("inf"), -5])
    def test_bad_usage_counts_become_zero(self, count):
        usage = TokenUsage.from_openai({"prompt_tokens": count, "completion_tokens": 4})
        assert usage == TokenUsage(prompt_tokens=0, completion_tokens=4, total_tokens=4)

    def test_numeric_string_counts_accepted(self):
        assert TokenUsage.from_openai({"prompt_tokens": "12"}).prompt_tokens == 12
