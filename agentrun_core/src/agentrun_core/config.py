from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AgentRunConfig(BaseSettings):
    """Configuration for the agent run client.

    Settings can be provided via environment variables with AGENTRUN_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTRUN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Agent server deployment
    api_url: str = "http://localhost:2024"
    api_key: str | None = None

    # Assistant (or graph id) runs are submitted against
    assistant_id: str = "agent"

    # HTTP timeouts, owned by the transport
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    stream_timeout_seconds: float = Field(default=300.0, gt=0)

    # Run stream options sent with every submission
    stream_mode: list[str] = Field(
        default_factory=lambda: ["values", "messages-tuple"]
    )
    on_disconnect: Literal["cancel", "continue"] = "cancel"

    # Number of checkpoints fetched when replaying a thread
    history_limit: int = Field(default=10, ge=1)

    # Injected into run config by the chat session
    recursion_limit: int = Field(default=100, ge=1)

    # Emit a trailing frame that lacks its closing blank line
    flush_incomplete_frame: bool = False

    def get_base_url(self) -> str:
        """Get the deployment URL without trailing slashes."""
        return self.api_url.rstrip("/")

    def get_headers(self) -> dict[str, str]:
        """Get the default headers for every request."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        return headers
