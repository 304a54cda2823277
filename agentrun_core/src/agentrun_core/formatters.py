"""Plain-text rendering of thread messages, e.g. as context for another LLM."""

import json
from typing import Any

from agentrun_core.messages import Message

_ROLE_LABELS = {
    "human": "Human",
    "ai": "Assistant",
    "tool": "Tool Result",
    "system": "System",
}

TASK_TOOL_NAME = "task"

CONVERSATION_SEPARATOR = "\n\n---\n\n"


def _text_parts(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, str):
                parts.append(text)
    return "\n\n".join(parts).strip(" ")


def format_message_for_llm(message: Message) -> str:
    """Format a single message as ``Role (id prefix): content``.

    Args:
        message: Message to render.

    Returns:
        One block of text. AI tool calls follow the content as
        ``[Tool Call: name]`` sections; tool results are labelled with the
        tool name and call id.
    """
    role = _ROLE_LABELS[message.role]
    marker = f" ({message.id[:8]})" if message.id else ""

    if message.role == "tool":
        role = f"Tool Result [{message.name or 'unknown_tool'}]"
        if message.tool_call_id:
            role += f" (call_id: {message.tool_call_id[:8]})"

    parts: list[str] = []
    text = _text_parts(message.content)
    if text:
        parts.append(text)

    if message.role == "ai":
        for call in message.tool_calls or []:
            name = call.get("name") or "unknown_tool"
            args = json.dumps(call.get("args", {}), indent=2, ensure_ascii=False)
            parts.append(f"[Tool Call: {name}]\nArguments: {args}")

    if not parts:
        return f"{role}{marker}: [Empty message]"
    if len(parts) == 1:
        return f"{role}{marker}: {parts[0]}"
    return f"{role}{marker}:\n" + "\n\n".join(parts)


def format_conversation_for_llm(messages: list[Message]) -> str:
    """Format messages in order, separated by horizontal rules."""
    return CONVERSATION_SEPARATOR.join(format_message_for_llm(m) for m in messages)


def extract_sub_agent_content(data: Any) -> str:
    """Short display text of a subagent's input or output.

    Strings are returned as-is. Objects yield their ``description``,
    ``prompt`` or ``result`` field (first found), else pretty-printed JSON.
    """
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        for key in ("description", "prompt", "result"):
            value = data.get(key)
            if isinstance(value, str):
                return value
        return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)
    if data is None:
        return ""
    return json.dumps(data, ensure_ascii=False)


def is_preparing_to_call_task_tool(messages: list[Message]) -> bool:
    """Whether the last message is an AI message calling the task (subagent) tool."""
    if not messages:
        return False
    last = messages[-1]
    if last.role != "ai":
        return False
    return any(call.get("name") == TASK_TOOL_NAME for call in last.tool_calls or [])
