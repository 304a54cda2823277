"""Derivation of tool calls and their results from a message sequence."""

from typing import Any

from pydantic import BaseModel, Field

from agentrun_core.messages import Message, ToolCall
from agentrun_core.payload import as_dict, as_str, parse_json_text


class ProcessedMessage(BaseModel):
    """A displayable message with the tool calls it issued."""

    message: Message
    tool_calls: list[ToolCall] = Field(default_factory=list)
    is_last_message: bool = False

    @property
    def id(self) -> str:
        return self.message.id


def _function_args(arguments: Any) -> Any:
    # OpenAI-style records carry arguments as a JSON string
    if isinstance(arguments, str):
        ok, parsed = parse_json_text(arguments)
        return parsed if ok else arguments
    return arguments if arguments is not None else {}


def extract_tool_calls(message: Message, interrupted: bool = False) -> list[ToolCall]:
    """Collect the tool calls of an AI message.

    Three record shapes are read, in order: ``additional_kwargs.tool_calls``
    (``function.name`` / ``function.arguments``), ``tool_calls``
    (``name`` / ``args``) and ``tool_use`` content blocks (``name`` / ``input``).
    The first record seen for an id wins; records without an id are skipped.

    Args:
        message: The AI message.
        interrupted: Whether the thread is waiting on a human, which makes
            every call ``interrupted`` instead of ``pending``.
    """
    status = "interrupted" if interrupted else "pending"
    calls: dict[str, ToolCall] = {}

    kwargs = message.additional_kwargs or {}
    raw_calls = kwargs.get("tool_calls")
    if isinstance(raw_calls, list):
        for raw in raw_calls:
            record = as_dict(raw)
            call_id = as_str(record.get("id"))
            if call_id and call_id not in calls:
                function = as_dict(record.get("function"))
                calls[call_id] = ToolCall(
                    id=call_id,
                    name=as_str(function.get("name")),
                    args=_function_args(function.get("arguments")),
                    status=status,
                )

    for record in message.tool_calls or []:
        call_id = as_str(record.get("id"))
        name = as_str(record.get("name"))
        if name and call_id and call_id not in calls:
            args = record.get("args")
            calls[call_id] = ToolCall(
                id=call_id,
                name=name,
                args=args if args is not None else {},
                status=status,
            )

    if isinstance(message.content, list):
        for block in message.content:
            record = as_dict(block)
            if record.get("type") != "tool_use":
                continue
            call_id = as_str(record.get("id"))
            if call_id and call_id not in calls:
                block_input = record.get("input")
                calls[call_id] = ToolCall(
                    id=call_id,
                    name=as_str(record.get("name")),
                    args=block_input if block_input is not None else {},
                    status=status,
                )

    return list(calls.values())


def process_messages(messages: list[Message], interrupted: bool = False) -> list[ProcessedMessage]:
    """Pair AI messages with their tool calls and tool results.

    Tool messages are folded into the call they answer (status ``completed``,
    ``result`` set to the tool message text) and do not appear on their own.
    System messages and tool messages answering no known call are skipped.

    Args:
        messages: Thread messages in order.
        interrupted: Whether the thread is currently interrupted.

    Returns:
        Human and AI messages in order, the final one flagged ``is_last_message``.
    """
    processed: list[ProcessedMessage] = []

    for message in messages:
        if message.role == "ai":
            processed.append(
                ProcessedMessage(
                    message=message,
                    tool_calls=extract_tool_calls(message, interrupted=interrupted),
                )
            )
        elif message.role == "human":
            processed.append(ProcessedMessage(message=message))
        elif message.role == "tool" and message.tool_call_id:
            _complete_tool_call(processed, message)

    if processed:
        processed[-1].is_last_message = True
    return processed


def _complete_tool_call(processed: list[ProcessedMessage], result: Message) -> None:
    for entry in processed:
        for call in entry.tool_calls:
            if call.id == result.tool_call_id:
                call.status = "completed"
                call.result = result.text
                return
