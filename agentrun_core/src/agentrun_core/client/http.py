"""HTTP client for the agent server REST and streaming endpoints."""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from agentrun_core.config import AgentRunConfig
from agentrun_core.errors import (
    AgentServerConnectionError,
    AgentServerError,
    AgentServerHTTPError,
)

logger = logging.getLogger(__name__)


class AgentServerClient:
    """Async client for an agent server deployment.

    Thin wrapper over ``httpx.AsyncClient``: every method maps to one endpoint.
    Non-2xx responses raise AgentServerHTTPError, connection and read failures
    raise AgentServerConnectionError.

    Example:
        ```python
        async with AgentServerClient(AgentRunConfig(api_url="http://localhost:2024")) as client:
            thread = await client.create_thread()
            body = {"assistant_id": "agent", "input": {...}, "stream_mode": ["values"]}
            async for chunk in client.stream_run(thread["thread_id"], body):
                ...
        ```
    """

    def __init__(
        self,
        config: AgentRunConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Connection settings. Uses defaults if not provided.
            http_client: Preconfigured httpx client (e.g. with a mock
                transport). Built from config if not provided.
        """
        self._config = config or AgentRunConfig()
        self._stream_timeout = httpx.Timeout(
            self._config.request_timeout_seconds,
            read=self._config.stream_timeout_seconds,
        )
        if http_client is not None:
            self._client = http_client
        else:
            self._client = httpx.AsyncClient(
                base_url=self._config.get_base_url(),
                headers=self._config.get_headers(),
                timeout=self._config.request_timeout_seconds,
            )

    async def __aenter__(self) -> "AgentServerClient":
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        logger.debug("request method=%s path=%s", method, path)
        try:
            response = await self._client.request(method, path, json=body, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AgentServerHTTPError(
                e.response.status_code, e.response.text or e.response.reason_phrase
            ) from e
        except httpx.TransportError as e:
            raise AgentServerConnectionError(f"{method} {path} failed: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise AgentServerError(f"Invalid response from {method} {path}") from e

    # Threads

    async def create_thread(
        self,
        thread_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a thread (``POST /threads``)."""
        body: dict[str, Any] = {}
        if thread_id is not None:
            body["thread_id"] = thread_id
        if metadata is not None:
            body["metadata"] = metadata
        result = await self._request("POST", "/threads", body=body)
        return result if isinstance(result, dict) else {}

    async def get_thread(self, thread_id: str) -> dict[str, Any]:
        result = await self._request("GET", f"/threads/{thread_id}")
        return result if isinstance(result, dict) else {}

    async def get_state(self, thread_id: str) -> dict[str, Any]:
        result = await self._request("GET", f"/threads/{thread_id}/state")
        return result if isinstance(result, dict) else {}

    async def get_history(self, thread_id: str, limit: int = 10) -> list[dict[str, Any]]:
        """Fetch state checkpoints of a thread, most recent first."""
        result = await self._request(
            "GET", f"/threads/{thread_id}/history", params={"limit": limit}
        )
        if not isinstance(result, list):
            return []
        return [entry for entry in result if isinstance(entry, dict)]

    async def update_state(
        self,
        thread_id: str,
        values: dict[str, Any],
        as_node: str | None = None,
    ) -> dict[str, Any]:
        """Write values to a thread's state (``POST /threads/{id}/state``)."""
        body: dict[str, Any] = {"values": values}
        if as_node is not None:
            body["as_node"] = as_node
        result = await self._request("POST", f"/threads/{thread_id}/state", body=body)
        return result if isinstance(result, dict) else {}

    async def search_threads(
        self,
        limit: int = 20,
        offset: int = 0,
        status: str | None = None,
        metadata: dict[str, Any] | None = None,
        sort_by: str = "updated_at",
        sort_order: str = "desc",
    ) -> list[dict[str, Any]]:
        """Search threads (``POST /threads/search``)."""
        body: dict[str, Any] = {
            "limit": limit,
            "offset": offset,
            "sort_by": sort_by,
            "sort_order": sort_order,
        }
        if status is not None:
            body["status"] = status
        if metadata is not None:
            body["metadata"] = metadata
        result = await self._request("POST", "/threads/search", body=body)
        if not isinstance(result, list):
            return []
        return [thread for thread in result if isinstance(thread, dict)]

    # Runs

    async def stream_run(self, thread_id: str, body: dict[str, Any]) -> AsyncIterator[bytes]:
        """Start a run and yield the SSE response body chunk by chunk.

        The connection is closed when the generator is closed, including when
        the consuming task is cancelled.
        """
        path = f"/threads/{thread_id}/runs/stream"
        logger.debug(
            "stream_run thread_id=%s assistant_id=%s stream_mode=%s",
            thread_id,
            body.get("assistant_id"),
            body.get("stream_mode"),
        )
        try:
            async with self._client.stream(
                "POST",
                path,
                json=body,
                headers={"Accept": "text/event-stream"},
                timeout=self._stream_timeout,
            ) as response:
                if response.is_error:
                    detail = (await response.aread()).decode("utf-8", errors="replace")
                    raise AgentServerHTTPError(
                        response.status_code, detail or response.reason_phrase
                    )
                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.TransportError as e:
            raise AgentServerConnectionError(f"POST {path} failed: {e}") from e

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        """Cancel a run server-side."""
        await self._request("POST", f"/threads/{thread_id}/runs/{run_id}/cancel")
