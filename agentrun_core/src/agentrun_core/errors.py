"""Exceptions raised by the agent run client.

Transport failures surface as AgentServerError subclasses and move the run to
the failed state. Decode and schema problems are never raised: corrupt frames
become no-op events and malformed interrupts become the improper schema
sentinel.
"""


class AgentRunError(Exception):
    """Base class for all agentrun_core errors."""


class AgentServerError(AgentRunError):
    """The agent server could not be reached or rejected a request."""


class AgentServerHTTPError(AgentServerError):
    """The agent server answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP error {status_code}: {message}")


class AgentServerConnectionError(AgentServerError):
    """Connecting to, or reading from, the agent server failed."""


class ThreadCreationError(AgentRunError):
    """Thread creation succeeded at the HTTP level but returned no thread id."""
