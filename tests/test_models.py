"""Tests for data models."""

import json
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from aurora.config import ModelCandidate
from aurora.models.chats import ChatSummary, ExchangeRequest
from aurora.models.conversation import (
    ChatWithToolsRequest,
    ChatWithToolsResponse,
    ErrorResponse,
    HealthResponse,
    TitleRequest,
)
from aurora.models.llm import (
    ChatMessage,
    Completion,
    FunctionCall,
    ImagePart,
    TextPart,
    ToolCall,
    ToolErrorKind,
    ToolFailure,
    ToolResult,
    ToolSuccess,
    has_images,
)
from aurora.models.session import Session, UserIdentity
from aurora.models.toolkits import Connection, ConnectionStatus, ToolDescriptor, ToolkitDescriptor


class TestChatMessage:
    """Tests for the chat message model."""

    def test_plain_text(self):
        message = ChatMessage(role="user", content="Hello")

        assert message.text == "Hello"
        assert message.has_image is False

    def test_content_parts_from_json(self):
        """Test that content parts are parsed by their type tag."""
        data = json.loads(
            '{"role": "user", "content": ['
            '{"type": "text", "text": "What is "},'
            '{"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},'
            '{"type": "text", "text": "this?"}]}'
        )

        message = ChatMessage.model_validate(data)

        assert isinstance(message.content[0], TextPart)
        assert isinstance(message.content[1], ImagePart)
        assert message.has_image is True
        assert message.text == "What is this?"
        assert has_images([ChatMessage(role="user", content="hi"), message]) is True

    def test_unknown_part_type_is_rejected(self):
        with pytest.raises(ValidationError):
            ChatMessage.model_validate({"role": "user", "content": [{"type": "audio", "data": "x"}]})

    def test_unknown_role_is_rejected(self):
        with pytest.raises(ValidationError):
            ChatMessage(role="moderator", content="Hi")

    def test_provider_dict_omits_unset_fields(self):
        """Test the wire shape sent to providers."""
        message = ChatMessage(
            role="assistant",
            content="",
            tool_calls=[ToolCall(id="call_1", function=FunctionCall(name="lookup", arguments='{"q": 1}'))],
        )

        assert message.to_provider_dict() == {
            "role": "assistant",
            "content": "",
            "tool_calls": [
                {"id": "call_1", "type": "function", "function": {"name": "lookup", "arguments": '{"q": 1}'}}
            ],
        }
        assert ChatMessage(role="user", content="Hi").to_provider_dict() == {"role": "user", "content": "Hi"}


class TestToolResult:
    """Tests for tool result construction."""

    def test_success_content_is_json(self):
        outcome = ToolSuccess(value={"data": {"temp": 21}, "successful": True})

        result = ToolResult.from_outcome("call_1", "WEATHERMAP_WEATHER", outcome)

        assert json.loads(result.content) == {"data": {"temp": 21}, "successful": True}
        assert result.is_error is False

    def test_failure_content(self):
        outcome = ToolFailure(error=ToolErrorKind.EXECUTION, message="timeout")

        result = ToolResult.from_outcome("call_1", "WEATHERMAP_WEATHER", outcome)

        assert json.loads(result.content) == {"error": "timeout"}
        assert result.is_error is True

    def test_non_json_values_are_stringified(self):
        stamp = datetime(2024, 5, 1, tzinfo=UTC)

        result = ToolResult.from_outcome("call_1", "CLOCK", ToolSuccess(value={"now": stamp}))

        assert json.loads(result.content) == {"now": str(stamp)}

    def test_to_message(self):
        result = ToolResult(tool_call_id="call_1", name="lookup", content="{}")

        message = result.to_message()

        assert message.role == "tool"
        assert message.tool_call_id == "call_1"
        assert message.name == "lookup"


class TestCompletion:
    def test_missing_content_is_empty_text(self):
        completion = Completion(model="m", provider="groq")

        assert completion.text == ""
        assert completion.to_assistant_message() == ChatMessage(role="assistant", content="")


class TestConversationModels:
    """Tests for request and response models."""

    def test_chat_with_tools_request_alias(self):
        request = ChatWithToolsRequest.model_validate(
            {"messages": [{"role": "user", "content": "Hi"}], "enabledToolkits": ["GITHUB"]}
        )

        assert request.enabled_toolkits == ["GITHUB"]

    def test_chat_with_tools_request_without_toolkits(self):
        request = ChatWithToolsRequest.model_validate({"messages": [{"role": "user", "content": "Hi"}]})

        assert request.enabled_toolkits is None

    def test_response_uses_camel_case(self):
        response = ChatWithToolsResponse(content="Hi", model="m", available_toolkits=["HACKERNEWS"])

        assert response.model_dump(by_alias=True, exclude_none=True) == {
            "content": "Hi",
            "model": "m",
            "availableToolkits": ["HACKERNEWS"],
        }

    def test_error_response_omits_missing_tool_work(self):
        assert ErrorResponse(error="boom").model_dump(by_alias=True, exclude_none=True) == {"error": "boom"}

    def test_title_request_requires_text(self):
        with pytest.raises(ValidationError):
            TitleRequest(message="")

    def test_health_response_valid(self):
        """Test valid health response."""
        now = datetime.now(UTC)
        response = HealthResponse(status="healthy", timestamp=now, version="1.0.0")
        assert response.status == "healthy"
        assert response.providers == []

    def test_exchange_request_alias(self):
        request = ExchangeRequest.model_validate({"userContent": "Hi", "assistantContent": "Hello"})

        assert request.chat_id is None
        assert request.user_content == "Hi"

    def test_chat_summary_dump(self):
        now = datetime.now(UTC)
        summary = ChatSummary(id="c1", title="T", created_at=now, updated_at=now)

        assert set(summary.model_dump(by_alias=True)) == {"id", "title", "createdAt", "updatedAt"}


class TestToolkitModels:
    """Tests for toolkit and connection models."""

    def test_toolkit_defaults(self):
        toolkit = ToolkitDescriptor(id="gmail", toolkit="gmail")

        assert toolkit.requires_auth is True
        assert toolkit.allowed_tools == []
        assert toolkit.enabled is True
        assert toolkit.slug_key == "GMAIL"

    def test_toolkit_slug_required(self):
        with pytest.raises(ValidationError):
            ToolkitDescriptor(id="empty", toolkit="")

    def test_connection_activity(self):
        assert Connection(id="ca_1", toolkit="GITHUB", status=ConnectionStatus.ACTIVE).is_active is True
        assert Connection(id="ca_2", toolkit="GITHUB", status="EXPIRED").is_active is False

    def test_openai_tool_shape(self):
        tool = ToolDescriptor(
            name="lookup",
            description="Look things up",
            parameters={"type": "object", "properties": {"q": {"type": "string"}}},
        )

        assert tool.to_openai_tool() == {
            "type": "function",
            "function": {
                "name": "lookup",
                "description": "Look things up",
                "parameters": {"type": "object", "properties": {"q": {"type": "string"}}},
            },
        }


class TestMiscModels:
    def test_candidate_label(self):
        assert str(ModelCandidate("groq", "qwen/qwen3-32b")) == "groq:qwen/qwen3-32b"

    def test_session_activity(self):
        """Test that activity updates move the timestamp forward."""
        session = Session(session_id="s1", user=UserIdentity(id="user-1"))
        before = session.last_activity

        session.update_activity()

        assert session.user_id == "user-1"
        assert session.last_activity >= before
