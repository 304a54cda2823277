from collections.abc import AsyncIterator
from typing import Any, Protocol


class AgentServer(Protocol):
    """Protocol for the agent server endpoints the orchestrator depends on."""

    async def create_thread(
        self,
        thread_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a thread. The response carries ``thread_id``."""
        ...

    def stream_run(self, thread_id: str, body: dict[str, Any]) -> AsyncIterator[bytes]:
        """Start a run and yield the raw SSE response body as it arrives."""
        ...

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        """Cancel a run server-side."""
        ...

    async def get_history(self, thread_id: str, limit: int = 10) -> list[dict[str, Any]]:
        """Return state checkpoints of a thread, most recent first."""
        ...

    async def update_state(
        self,
        thread_id: str,
        values: dict[str, Any],
        as_node: str | None = None,
    ) -> dict[str, Any]:
        """Write values to the thread state outside of a run."""
        ...
