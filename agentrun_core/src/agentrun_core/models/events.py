from enum import Enum
from typing import Any

from pydantic import BaseModel


class StreamEventKind(str, Enum):
    """Event types a run stream can carry."""

    VALUES = "values"
    UPDATES = "updates"
    MESSAGES = "messages"
    MESSAGES_TUPLE = "messages-tuple"
    CUSTOM = "custom"
    ERROR = "error"
    END = "end"
    METADATA = "metadata"
    DEBUG = "debug"
    PENDING = "pending"
    MESSAGE = "message"  # Default SSE event type
    UNKNOWN = "unknown"  # Unrecognized or undecodable frames

    @classmethod
    def from_wire(cls, tag: str) -> "StreamEventKind":
        """Map a wire event name to a kind, falling back to UNKNOWN."""
        if tag == "messages_tuple":
            return cls.MESSAGES_TUPLE
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


class RawFrame(BaseModel):
    """One SSE frame: the event name and the concatenated data lines."""

    event: str = "message"
    data: str = ""


class StreamEvent(BaseModel):
    """A decoded stream event.

    Attributes:
        kind: Event kind.
        payload: Decoded JSON payload (None if the frame was not valid JSON).
        event: Event name as it appeared on the wire.
    """

    kind: StreamEventKind
    payload: Any = None
    event: str = ""
