from typing import Any

from pydantic import BaseModel, Field

from agentrun_core.messages import Message, TodoItem
from agentrun_core.models.interrupts import InterruptDescriptor

INTERRUPT_KEY = "__interrupt__"

# Snapshot keys with a dedicated SessionState field; everything else is side-channel.
STATE_KEYS = frozenset({"messages", "todos", "files", INTERRUPT_KEY})


class SessionState(BaseModel):
    """Conversation state of one thread, as published by the orchestrator.

    Attributes:
        messages: Ordered messages, unique by id.
        todos: The agent's todo list.
        files: Virtual file system, path to content.
        side_channel: Any other state keys (``ui``, ``email``, ...), kept verbatim.
        interrupt: Active interrupt, if the thread is waiting on a human.
        error: Last error reported by the server inside the stream.
    """

    messages: list[Message] = Field(default_factory=list)
    todos: list[TodoItem] = Field(default_factory=list)
    files: dict[str, str] = Field(default_factory=dict)
    side_channel: dict[str, Any] = Field(default_factory=dict)
    interrupt: InterruptDescriptor | None = None
    error: str | None = None

    @property
    def message_ids(self) -> list[str]:
        return [message.id for message in self.messages]

    @property
    def ui(self) -> Any:
        return self.side_channel.get("ui")

    @property
    def is_interrupted(self) -> bool:
        return self.interrupt is not None
