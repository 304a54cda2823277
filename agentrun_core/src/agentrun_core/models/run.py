from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class RunStatus(str, Enum):
    """Lifecycle of one submitted run."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    STREAMING = "streaming"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.FINISHED, RunStatus.CANCELLED, RunStatus.FAILED)


class RunRequest(BaseModel):
    """A run submission.

    A ``thread_id`` of None means the orchestrator's current thread is used,
    or a new thread is created first if there is none.

    A request with ``checkpoint_id`` and no ``input`` re-enters the graph from
    that checkpoint. A request with ``command`` (e.g. ``{"resume": value}``)
    answers a pending interrupt instead of advancing with fresh input.
    """

    assistant_id: str
    thread_id: str | None = None
    input: Any = None
    config: dict[str, Any] | None = None
    command: dict[str, Any] | None = None
    checkpoint_id: str | None = None
    interrupt_before: list[str] | None = None
    interrupt_after: list[str] | None = None
    metadata: dict[str, Any] | None = None
    multitask_strategy: str | None = None
    stream_mode: list[str] | None = Field(
        default=None, description="Overrides the configured stream modes."
    )

    def to_body(
        self,
        stream_mode: list[str],
        on_disconnect: str = "cancel",
    ) -> dict[str, Any]:
        """Build the JSON body of ``POST /threads/{id}/runs/stream``.

        Args:
            stream_mode: Stream modes used when the request sets none.
            on_disconnect: Server behavior when the client disconnects.
        """
        body: dict[str, Any] = {
            "assistant_id": self.assistant_id,
            "stream_mode": self.stream_mode or stream_mode,
            "on_disconnect": on_disconnect,
        }
        if self.input is not None:
            body["input"] = self.input
        if self.config is not None:
            body["config"] = self.config
        if self.command is not None:
            body["command"] = self.command
        if self.checkpoint_id is not None:
            body["checkpoint"] = {"checkpoint_id": self.checkpoint_id}
        if self.interrupt_before is not None:
            body["interrupt_before"] = self.interrupt_before
        if self.interrupt_after is not None:
            body["interrupt_after"] = self.interrupt_after
        if self.metadata is not None:
            body["metadata"] = self.metadata
        if self.multitask_strategy is not None:
            body["multitask_strategy"] = self.multitask_strategy
        return body
