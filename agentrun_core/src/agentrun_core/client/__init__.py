from agentrun_core.client.http import AgentServerClient
from agentrun_core.client.protocol import AgentServer

__all__ = [
    "AgentServer",
    "AgentServerClient",
]
