"""Message representation for agent run threads.

Messages arrive from the agent server as LangChain-style JSON records
(``{"id", "type", "content", ...}``). ``Message.from_payload`` is the lenient
decode boundary; everything downstream works with the typed model.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from agentrun_core.payload import as_dict, as_str, opt_str

MessageRole = Literal["human", "ai", "tool", "system"]

_ROLE_ALIASES: dict[str, MessageRole] = {
    "human": "human",
    "user": "human",
    "humanmessage": "human",
    "humanmessagechunk": "human",
    "ai": "ai",
    "assistant": "ai",
    "aimessage": "ai",
    "aimessagechunk": "ai",
    "tool": "tool",
    "toolmessage": "tool",
    "toolmessagechunk": "tool",
    "system": "system",
    "systemmessage": "system",
    "systemmessagechunk": "system",
}


def normalize_role(tag: str) -> MessageRole:
    """Map a wire role tag to a MessageRole. Unknown tags are treated as human."""
    return _ROLE_ALIASES.get(tag.strip().lower(), "human")


def fresh_message_id(taken: Iterable[str]) -> str:
    """Return a deterministic id not present in ``taken``."""
    used = set(taken)
    n = len(used)
    while f"msg-{n}" in used:
        n += 1
    return f"msg-{n}"


def content_text(content: Any) -> str:
    """Extract displayable text from message content.

    Bare strings are returned as-is. For content block lists, string blocks and
    ``{"type": "text"}`` blocks are concatenated in order.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(as_str(block.get("text")))
        return "".join(parts)
    return ""


class ToolCall(BaseModel):
    """A tool invocation reconstructed from an AI message.

    Never transmitted on its own: derived from a message's tool-call records
    plus any later tool message answering it.
    """

    id: str
    name: str
    args: Any = Field(default_factory=dict)
    result: str | None = None
    status: Literal["pending", "completed", "error", "interrupted"] = "pending"


class Message(BaseModel):
    """A single message in a thread.

    Attributes:
        id: Message identity. Unique within a session's message sequence.
        role: The role of the message sender (human, ai, tool, system).
        content: Raw string content or an ordered list of content blocks.
        tool_call_id: ID of the tool call this message responds to (tool messages).
        tool_calls: Opaque tool-call records (AI messages).
        additional_kwargs: Provider-specific extras, kept verbatim.
        name: Optional sender name (tool name for tool messages).
    """

    id: str
    role: MessageRole = "human"
    content: str | list[Any] = ""
    tool_call_id: str | None = None
    tool_calls: list[dict[str, Any]] | None = None
    additional_kwargs: dict[str, Any] | None = None
    name: str | None = None

    @property
    def text(self) -> str:
        """Displayable text of the message."""
        return content_text(self.content)

    @classmethod
    def from_payload(cls, payload: Any, fallback_id: str) -> "Message":
        """Build a Message from a wire record, defaulting malformed fields.

        Args:
            payload: Decoded JSON record.
            fallback_id: Id used when the record carries none.
        """
        data = as_dict(payload)
        raw_content = data.get("content")
        if isinstance(raw_content, (str, list)):
            content: str | list[Any] = raw_content
        else:
            content = ""

        raw_calls = data.get("tool_calls")
        tool_calls = None
        if isinstance(raw_calls, list):
            tool_calls = [tc for tc in raw_calls if isinstance(tc, dict)]

        kwargs = data.get("additional_kwargs")
        return cls(
            id=as_str(data.get("id")) or fallback_id,
            role=normalize_role(as_str(data.get("type")) or as_str(data.get("role"))),
            content=content,
            tool_call_id=opt_str(data.get("tool_call_id")),
            tool_calls=tool_calls,
            additional_kwargs=kwargs if isinstance(kwargs, dict) else None,
            name=opt_str(data.get("name")),
        )

    def to_input(self) -> dict[str, Any]:
        """Render the message for a run's ``input.messages`` list."""
        return {"id": self.id, "type": self.role, "content": self.content}


class TodoItem(BaseModel):
    """An entry of the agent's todo list."""

    id: str
    content: str = ""
    status: Literal["pending", "in_progress", "completed"] = "pending"
    updated_at: datetime | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "TodoItem":
        """Build a TodoItem from a wire record (``updatedAt`` is epoch millis)."""
        data = as_dict(payload)
        status = as_str(data.get("status"))
        if status not in ("pending", "in_progress", "completed"):
            status = "pending"
        updated = data.get("updatedAt")
        updated_at = None
        if isinstance(updated, (int, float)) and not isinstance(updated, bool):
            try:
                updated_at = datetime.fromtimestamp(updated / 1000, tz=UTC)
            except (OverflowError, OSError, ValueError):
                # NaN or out of the platform's range
                updated_at = None
        return cls(
            id=as_str(data.get("id")),
            content=as_str(data.get("content")),
            status=status,
            updated_at=updated_at,
        )
