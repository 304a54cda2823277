"""LangChain message adapter.

Converts LangChain messages (HumanMessage, AIMessage, ToolMessage, etc.) to
agentrun's Message and back. ``langchain_core`` is imported lazily so the
rest of the package works without it.
"""

from typing import TYPE_CHECKING, Any

from agentrun_core.messages import Message, fresh_message_id

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage


class LangChainAdapter:
    """Converts between LangChain messages and Message.

    Usage:
        ```python
        from langchain_core.messages import HumanMessage, AIMessage
        from agentrun_core.adapters.langchain import LangChainAdapter

        adapter = LangChainAdapter()
        messages = adapter.convert([
            HumanMessage(content="Read auth.py"),
            AIMessage(content="Here's the file...", tool_calls=[...]),
        ])
        lc_messages = adapter.to_langchain(chat.messages)
        ```
    """

    def convert(self, messages: list["BaseMessage"]) -> list[Message]:
        """Convert a list of LangChain messages.

        Args:
            messages: LangChain BaseMessage objects.

        Returns:
            Messages in the same order. Messages without an id get a
            deterministic ``msg-<n>`` id.
        """
        converted: list[Message] = []
        for lc_message in messages:
            fallback = fresh_message_id(m.id for m in converted)
            converted.append(self.convert_single(lc_message, fallback_id=fallback))
        return converted

    def convert_single(self, message: "BaseMessage", fallback_id: str = "msg-0") -> Message:
        """Convert a single LangChain message.

        Args:
            message: A LangChain BaseMessage object.
            fallback_id: Id used when the message has none.

        Returns:
            The converted Message. Unknown message classes become human messages.
        """
        from langchain_core.messages import (
            AIMessage,
            HumanMessage,
            SystemMessage,
            ToolMessage,
        )

        message_id = message.id or fallback_id
        content = self._content(message)
        kwargs = dict(message.additional_kwargs) if message.additional_kwargs else None

        if isinstance(message, AIMessage):
            tool_calls = [
                {"id": tc.get("id") or "", "name": tc.get("name", ""), "args": tc.get("args", {})}
                for tc in (message.tool_calls or [])
            ]
            return Message(
                id=message_id,
                role="ai",
                content=content,
                tool_calls=tool_calls or None,
                additional_kwargs=kwargs,
                name=message.name,
            )

        elif isinstance(message, ToolMessage):
            return Message(
                id=message_id,
                role="tool",
                content=content,
                tool_call_id=message.tool_call_id,
                name=message.name,
            )

        elif isinstance(message, SystemMessage):
            return Message(id=message_id, role="system", content=content)

        elif isinstance(message, HumanMessage):
            return Message(id=message_id, role="human", content=content, name=message.name)

        else:
            return Message(id=message_id, role="human", content=content)

    def to_langchain(self, messages: list[Message]) -> list["BaseMessage"]:
        """Convert Messages to LangChain messages, keeping ids.

        Args:
            messages: Messages to convert.

        Returns:
            LangChain messages. Tool-call records without a name are dropped.
        """
        from langchain_core.messages import (
            AIMessage,
            HumanMessage,
            SystemMessage,
            ToolMessage,
        )

        converted: list["BaseMessage"] = []
        for message in messages:
            if message.role == "ai":
                converted.append(
                    AIMessage(
                        id=message.id,
                        content=message.content,
                        tool_calls=self._lc_tool_calls(message.tool_calls or []),
                        additional_kwargs=message.additional_kwargs or {},
                    )
                )
            elif message.role == "tool":
                converted.append(
                    ToolMessage(
                        id=message.id,
                        content=message.content,
                        tool_call_id=message.tool_call_id or "",
                        name=message.name,
                    )
                )
            elif message.role == "system":
                converted.append(SystemMessage(id=message.id, content=message.content))
            else:
                converted.append(HumanMessage(id=message.id, content=message.content))
        return converted

    def _content(self, message: "BaseMessage") -> str | list[Any]:
        """Keep string content and content block lists as-is.

        Args:
            message: A LangChain BaseMessage object.

        Returns:
            The content, or its string form for any other type.
        """
        if isinstance(message.content, (str, list)):
            return message.content
        return str(message.content)

    def _lc_tool_calls(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        calls: list[dict[str, Any]] = []
        for record in records:
            name = record.get("name")
            if not name:
                continue
            args = record.get("args")
            calls.append(
                {
                    "id": record.get("id") or None,
                    "name": name,
                    "args": args if isinstance(args, dict) else {},
                }
            )
        return calls
