from typing import Protocol

from agentrun_core.models.events import StreamEvent
from agentrun_core.models.state import SessionState


class RunObserver(Protocol):
    """Protocol for receiving run lifecycle notifications.

    Notifications are delivered on the event loop, in order, from the task
    that drives the run. An exception raised by an observer while the run is
    in flight fails the run. Exceptions from ``on_finish`` and ``on_error``
    arrive after the run has ended; they are logged and the remaining
    observers are still notified.
    """

    def on_thread_id_change(self, thread_id: str | None) -> None:
        """The tracked thread changed (created, loaded, or reset)."""
        ...

    def on_thread_created(self, thread_id: str) -> None:
        """A new thread was created for a submission."""
        ...

    def on_state_change(self, state: SessionState, event: StreamEvent | None) -> None:
        """State was published.

        Args:
            state: The new session state.
            event: The stream event that produced it, or None for optimistic
                updates, history loads and local state writes.
        """
        ...

    def on_finish(self) -> None:
        """The run's stream was consumed to the end."""
        ...

    def on_error(self, error: BaseException) -> None:
        """The run failed."""
        ...


class BaseRunObserver:
    """No-op RunObserver. Subclass and override the notifications you need."""

    def on_thread_id_change(self, thread_id: str | None) -> None:
        pass

    def on_thread_created(self, thread_id: str) -> None:
        pass

    def on_state_change(self, state: SessionState, event: StreamEvent | None) -> None:
        pass

    def on_finish(self) -> None:
        pass

    def on_error(self, error: BaseException) -> None:
        pass
