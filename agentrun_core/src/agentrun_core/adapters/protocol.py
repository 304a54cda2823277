"""Protocol for message adapters."""

from typing import Any, Protocol

from agentrun_core.messages import Message


class MessageAdapter(Protocol):
    """Protocol for converting framework messages to and from Message.

    Converted messages can be sent as run input (``Message.to_input``) or
    rendered with the formatters.
    """

    def convert(self, messages: list[Any]) -> list[Message]:
        """Convert framework messages, assigning fresh ids where missing.

        Args:
            messages: Framework-specific message objects.

        Returns:
            Messages with ids unique within the returned list.
        """
        ...

    def convert_single(self, message: Any, fallback_id: str) -> Message:
        """Convert one framework message.

        Args:
            message: A framework-specific message object.
            fallback_id: Id used when the message carries none.
        """
        ...
