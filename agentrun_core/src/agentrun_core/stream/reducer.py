"""Pure reduction of stream events into session state.

``reduce(state, event)`` never mutates its input and never raises on malformed
payloads: a payload of the wrong shape leaves the state unchanged.

Event handling:

- ``values``: full snapshot replace, including the interrupt descriptor.
- ``updates``: partial merge, messages upserted by id.
- ``messages`` / ``messages-tuple``: token streaming. AI chunks carry a fresh
  id per token, so their text is appended to the most recent AI message
  (wherever it sits in the sequence) instead of being matched by id.
- ``custom``: ``ui`` merged into the side channel.
- ``error``: recorded on the state.
- everything else: no change.
"""

from collections.abc import Callable
from typing import Any

from agentrun_core.messages import Message, TodoItem, content_text, fresh_message_id
from agentrun_core.models.events import StreamEvent, StreamEventKind
from agentrun_core.models.interrupts import InterruptDescriptor
from agentrun_core.models.state import INTERRUPT_KEY, STATE_KEYS, SessionState
from agentrun_core.payload import as_str, stringify

# Id prefixes the server assigns to streamed LLM output
AI_RUN_ID_PREFIXES = ("run-", "lc_run")

DEFAULT_ERROR_MESSAGE = "Unknown error"


def is_ai_chunk(chunk: dict[str, Any]) -> bool:
    """Whether a streamed message chunk is a fragment of an AI reply.

    This is a heuristic: the protocol has no chunk-to-message correlation id,
    so the role tag (``AIMessageChunk``, ``ai``, ``assistant``) and the run id
    prefix of the chunk id are all that identify AI output.
    """
    role = as_str(chunk.get("type")) or as_str(chunk.get("role"))
    chunk_id = as_str(chunk.get("id"))
    return (
        "ai" in role.lower()
        or role == "assistant"
        or chunk_id.startswith(AI_RUN_ID_PREFIXES)
    )


def upsert_messages(messages: list[Message], payloads: list[Any]) -> list[Message]:
    """Upsert wire message records by id.

    Existing ids are replaced in place, new ids are appended in payload order.
    Non-object records are skipped.
    """
    result = list(messages)
    positions = {message.id: i for i, message in enumerate(result)}
    for payload in payloads:
        if not isinstance(payload, dict):
            continue
        message = Message.from_payload(payload, fallback_id=fresh_message_id(positions))
        position = positions.get(message.id)
        if position is None:
            positions[message.id] = len(result)
            result.append(message)
        else:
            result[position] = message
    return result


def _append_text(message: Message, text: str) -> Message:
    if isinstance(message.content, list):
        content: str | list[Any] = [*message.content, {"type": "text", "text": text}]
    else:
        content = message.content + text
    return message.model_copy(update={"content": content})


def _append_ai_chunk(
    messages: list[Message], chunk: dict[str, Any], text: str
) -> list[Message]:
    # Most recent AI-role message, not necessarily the last message
    for position in range(len(messages) - 1, -1, -1):
        if messages[position].role == "ai":
            result = list(messages)
            result[position] = _append_text(result[position], text)
            return result

    ids = [message.id for message in messages]
    chunk_id = as_str(chunk.get("id"))
    if chunk_id in ids:
        chunk_id = ""
    new_message = Message(id=chunk_id or fresh_message_id(ids), role="ai", content=text)
    return [*messages, new_message]


def _todos(payload: Any) -> list[TodoItem]:
    return [TodoItem.from_payload(item) for item in payload if isinstance(item, dict)]


def _files(payload: dict[str, Any]) -> dict[str, str]:
    return {str(path): stringify(content) for path, content in payload.items()}


def _interrupt(payload: Any) -> InterruptDescriptor | None:
    if isinstance(payload, list) and payload:
        return InterruptDescriptor.from_payload(payload[0])
    return None


def _reduce_values(state: SessionState, payload: Any) -> SessionState:
    if not isinstance(payload, dict):
        return state

    raw_messages = payload.get("messages")
    raw_todos = payload.get("todos")
    raw_files = payload.get("files")
    return SessionState(
        messages=upsert_messages([], raw_messages if isinstance(raw_messages, list) else []),
        todos=_todos(raw_todos) if isinstance(raw_todos, list) else [],
        files=_files(raw_files) if isinstance(raw_files, dict) else {},
        side_channel={k: v for k, v in payload.items() if k not in STATE_KEYS},
        interrupt=_interrupt(payload.get(INTERRUPT_KEY)),
        error=state.error,
    )


def _reduce_updates(state: SessionState, payload: Any) -> SessionState:
    if not isinstance(payload, dict):
        return state

    update: dict[str, Any] = {}
    if isinstance(payload.get("messages"), list):
        update["messages"] = upsert_messages(state.messages, payload["messages"])
    if isinstance(payload.get("todos"), list):
        update["todos"] = _todos(payload["todos"])
    if isinstance(payload.get("files"), dict):
        update["files"] = _files(payload["files"])
    if not update:
        return state
    return state.model_copy(update=update)


def _reduce_messages(state: SessionState, payload: Any) -> SessionState:
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        return state

    messages = state.messages
    for item in payload:
        # [chunk, metadata] tuple or a bare chunk
        chunk = item[0] if isinstance(item, list) and item else item
        if not isinstance(chunk, dict):
            continue
        text = content_text(chunk.get("content"))
        if not text:
            continue
        if is_ai_chunk(chunk):
            messages = _append_ai_chunk(messages, chunk, text)
        elif as_str(chunk.get("id")):
            messages = upsert_messages(messages, [chunk])

    if messages is state.messages:
        return state
    return state.model_copy(update={"messages": messages})


def _reduce_custom(state: SessionState, payload: Any) -> SessionState:
    if not isinstance(payload, dict) or "ui" not in payload:
        return state
    side_channel = {**state.side_channel, "ui": payload["ui"]}
    return state.model_copy(update={"side_channel": side_channel})


def _reduce_error(state: SessionState, payload: Any) -> SessionState:
    message = DEFAULT_ERROR_MESSAGE
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        message = payload["message"]
    return state.model_copy(update={"error": message})


_REDUCERS: dict[StreamEventKind, Callable[[SessionState, Any], SessionState]] = {
    StreamEventKind.VALUES: _reduce_values,
    StreamEventKind.UPDATES: _reduce_updates,
    StreamEventKind.MESSAGES: _reduce_messages,
    StreamEventKind.MESSAGES_TUPLE: _reduce_messages,
    StreamEventKind.CUSTOM: _reduce_custom,
    StreamEventKind.ERROR: _reduce_error,
}


def reduce(state: SessionState, event: StreamEvent) -> SessionState:
    """Apply one stream event to the session state.

    Args:
        state: Current state. Not modified.
        event: Decoded stream event.

    Returns:
        The new state (the same object when the event changes nothing).
    """
    reducer = _REDUCERS.get(event.kind)
    if reducer is None:
        return state
    return reducer(state, event.payload)
