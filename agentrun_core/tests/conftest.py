import asyncio
import json
from typing import Any

import pytest

from agentrun_core.config import AgentRunConfig
from agentrun_core.models.state import SessionState
from agentrun_core.models.events import StreamEvent
from agentrun_core.observers import BaseRunObserver


def sse(event: str, data: Any, newline: str = "\n") -> bytes:
    """Encode one SSE frame."""
    body = data if isinstance(data, str) else json.dumps(data)
    return f"event: {event}{newline}data: {body}{newline}{newline}".encode()


class FakeAgentServer:
    """In-memory AgentServer.

    Each ``stream_run`` call consumes the next script passed to :meth:`script`.
    Script items are yielded in order: bytes are body chunks, an asyncio.Event
    is awaited before continuing, and an exception is raised.
    """

    def __init__(self) -> None:
        self._scripts: list[list[Any]] = []
        self._next_thread = 0
        self.thread_id_response: dict[str, Any] | None = None
        self.created_threads: list[str] = []
        self.stream_calls: list[tuple[str, dict[str, Any]]] = []
        self.cancelled: list[tuple[str, str]] = []
        self.history: dict[str, list[dict[str, Any]]] = {}
        self.state_updates: list[tuple[str, dict[str, Any], str | None]] = []
        self.closed_streams = 0

    def script(self, *items: Any) -> None:
        self._scripts.append(list(items))

    async def create_thread(
        self,
        thread_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if self.thread_id_response is not None:
            return self.thread_id_response
        self._next_thread += 1
        created = thread_id or f"thread-{self._next_thread}"
        self.created_threads.append(created)
        return {"thread_id": created}

    async def stream_run(self, thread_id: str, body: dict[str, Any]):
        self.stream_calls.append((thread_id, body))
        items = self._scripts.pop(0) if self._scripts else []
        try:
            for item in items:
                if isinstance(item, asyncio.Event):
                    await item.wait()
                elif isinstance(item, BaseException):
                    raise item
                else:
                    yield item
        finally:
            self.closed_streams += 1

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        self.cancelled.append((thread_id, run_id))

    async def get_history(self, thread_id: str, limit: int = 10) -> list[dict[str, Any]]:
        return self.history.get(thread_id, [])[:limit]

    async def update_state(
        self,
        thread_id: str,
        values: dict[str, Any],
        as_node: str | None = None,
    ) -> dict[str, Any]:
        self.state_updates.append((thread_id, values, as_node))
        return {"checkpoint": {"checkpoint_id": "cp-1"}}


class RecordingObserver(BaseRunObserver):
    """Observer that records every notification in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.states: list[SessionState] = []
        self.events: list[StreamEvent | None] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def on_thread_id_change(self, thread_id: str | None) -> None:
        self.calls.append(("thread_id_change", thread_id))

    def on_thread_created(self, thread_id: str) -> None:
        self.calls.append(("thread_created", thread_id))

    def on_state_change(self, state: SessionState, event: StreamEvent | None) -> None:
        self.calls.append(("state_change", event.kind if event else None))
        self.states.append(state)
        self.events.append(event)

    def on_finish(self) -> None:
        self.calls.append(("finish", None))

    def on_error(self, error: BaseException) -> None:
        self.calls.append(("error", error))


@pytest.fixture
def fake_server() -> FakeAgentServer:
    """Provide an in-memory agent server."""
    return FakeAgentServer()


@pytest.fixture
def recorder() -> RecordingObserver:
    """Provide an observer that records notifications."""
    return RecordingObserver()


@pytest.fixture
def config() -> AgentRunConfig:
    """Provide a config that ignores the environment's .env file."""
    return AgentRunConfig(_env_file=None, api_url="http://agent.test", api_key=None)
