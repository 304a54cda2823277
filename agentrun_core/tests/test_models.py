"""Tests for messages and data models."""

from datetime import UTC, datetime

import pytest

from agentrun_core.messages import (
    Message,
    TodoItem,
    content_text,
    fresh_message_id,
    normalize_role,
)
from agentrun_core.models.events import StreamEventKind
from agentrun_core.models.run import RunRequest, RunStatus
from agentrun_core.models.state import SessionState
from agentrun_core.models.interrupts import InterruptDescriptor
from agentrun_core.payload import parse_json_text, stringify


class TestMessage:
    """Test Message parsing and rendering."""

    @pytest.mark.parametrize(
        "tag,role",
        [
            ("human", "human"),
            ("user", "human"),
            ("HumanMessageChunk", "human"),
            ("ai", "ai"),
            ("assistant", "ai"),
            ("AIMessageChunk", "ai"),
            ("tool", "tool"),
            ("ToolMessage", "tool"),
            ("system", "system"),
            ("SystemMessageChunk", "system"),
            ("function", "human"),
            ("", "human"),
        ],
    )
    def test_normalize_role(self, tag: str, role: str) -> None:
        """Wire role tags map onto the four roles."""
        assert normalize_role(tag) == role

    def test_from_payload(self) -> None:
        """All known fields are read from a wire record."""
        message = Message.from_payload(
            {
                "id": "a1",
                "type": "AIMessageChunk",
                "content": [{"type": "text", "text": "Hi"}],
                "tool_calls": [{"id": "c1", "name": "search", "args": {}}, "junk"],
                "additional_kwargs": {"tool_calls": []},
                "name": "agent",
            },
            fallback_id="msg-0",
        )

        assert message.id == "a1"
        assert message.role == "ai"
        assert message.text == "Hi"
        assert message.tool_calls == [{"id": "c1", "name": "search", "args": {}}]
        assert message.additional_kwargs == {"tool_calls": []}
        assert message.name == "agent"

    def test_from_payload_role_key_and_defaults(self) -> None:
        """role is read when type is absent; malformed fields get defaults."""
        message = Message.from_payload(
            {"role": "assistant", "content": 12, "tool_call_id": 5}, fallback_id="msg-3"
        )

        assert message.id == "msg-3"
        assert message.role == "ai"
        assert message.content == ""
        assert message.tool_call_id is None
        assert message.tool_calls is None

    def test_content_text(self) -> None:
        """Text blocks and string blocks concatenate with no separator."""
        content = ["a", {"type": "text", "text": "b"}, {"type": "image_url"}, {"type": "text"}]

        assert content_text(content) == "ab"
        assert content_text("plain") == "plain"
        assert content_text(None) == ""

    def test_to_input(self) -> None:
        """Run input records carry id, type and content."""
        message = Message(id="h1", role="human", content="hello")

        assert message.to_input() == {"id": "h1", "type": "human", "content": "hello"}

    def test_fresh_message_id(self) -> None:
        """Fresh ids avoid every taken id."""
        assert fresh_message_id([]) == "msg-0"
        assert fresh_message_id(["x"]) == "msg-1"
        assert fresh_message_id(["msg-1", "msg-2"]) == "msg-3"


class TestTodoItem:
    """Test TodoItem parsing."""

    def test_from_payload(self) -> None:
        """updatedAt is read as epoch milliseconds."""
        todo = TodoItem.from_payload(
            {"id": "t1", "content": "ship", "status": "completed", "updatedAt": 1700000000000}
        )

        assert todo.status == "completed"
        assert todo.updated_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)

    def test_unknown_status(self) -> None:
        """Unknown statuses fall back to pending."""
        todo = TodoItem.from_payload({"id": "t1", "status": "blocked", "updatedAt": "x"})

        assert todo.status == "pending"
        assert todo.updated_at is None


class TestRunRequest:
    """Test RunRequest body rendering."""

    def test_minimal_body(self) -> None:
        """Only set fields are sent."""
        body = RunRequest(assistant_id="agent").to_body(["values"])

        assert body == {
            "assistant_id": "agent",
            "stream_mode": ["values"],
            "on_disconnect": "cancel",
        }

    def test_full_body(self) -> None:
        """Every optional field maps to its wire key."""
        request = RunRequest(
            assistant_id="agent",
            input={"messages": []},
            config={"recursion_limit": 100},
            command={"resume": "ok"},
            checkpoint_id="cp-1",
            interrupt_before=["tools"],
            interrupt_after=["agent"],
            metadata={"source": "cli"},
            multitask_strategy="interrupt",
            stream_mode=["updates"],
        )

        body = request.to_body(["values"], on_disconnect="continue")

        assert body == {
            "assistant_id": "agent",
            "stream_mode": ["updates"],
            "on_disconnect": "continue",
            "input": {"messages": []},
            "config": {"recursion_limit": 100},
            "command": {"resume": "ok"},
            "checkpoint": {"checkpoint_id": "cp-1"},
            "interrupt_before": ["tools"],
            "interrupt_after": ["agent"],
            "metadata": {"source": "cli"},
            "multitask_strategy": "interrupt",
        }


class TestEnums:
    """Test event kinds and run statuses."""

    def test_from_wire(self) -> None:
        """Known names map to kinds, unknown names to UNKNOWN."""
        assert StreamEventKind.from_wire("updates") is StreamEventKind.UPDATES
        assert StreamEventKind.from_wire("messages_tuple") is StreamEventKind.MESSAGES_TUPLE
        assert StreamEventKind.from_wire("events") is StreamEventKind.UNKNOWN

    def test_terminal_statuses(self) -> None:
        """Only finished, cancelled and failed are terminal."""
        terminal = {s for s in RunStatus if s.is_terminal}

        assert terminal == {RunStatus.FINISHED, RunStatus.CANCELLED, RunStatus.FAILED}


class TestSessionState:
    """Test SessionState accessors."""

    def test_accessors(self) -> None:
        """message_ids, ui and is_interrupted reflect the fields."""
        state = SessionState(
            messages=[Message(id="a"), Message(id="b")],
            side_channel={"ui": [1]},
            interrupt=InterruptDescriptor(value="x"),
        )

        assert state.message_ids == ["a", "b"]
        assert state.ui == [1]
        assert state.is_interrupted
        assert not SessionState().is_interrupted


class TestPayloadHelpers:
    """Test lenient payload helpers."""

    def test_stringify(self) -> None:
        """Strings pass through, None is empty, anything else is JSON."""
        assert stringify("text") == "text"
        assert stringify(None) == ""
        assert stringify({"a": "é"}) == '{"a": "é"}'
        assert stringify([1, 2]) == "[1, 2]"

    def test_parse_json_text(self) -> None:
        """Parse results report success separately from the value."""
        assert parse_json_text("null") == (True, None)
        assert parse_json_text("{bad") == (False, None)
