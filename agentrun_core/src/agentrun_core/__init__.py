from agentrun_core.client import AgentServer, AgentServerClient
from agentrun_core.config import AgentRunConfig
from agentrun_core.errors import (
    AgentRunError,
    AgentServerConnectionError,
    AgentServerError,
    AgentServerHTTPError,
    ThreadCreationError,
)
from agentrun_core.interrupts import (
    default_human_responses,
    extract_interrupts,
    have_args_changed,
    improper_schema_interrupt,
)
from agentrun_core.messages import Message, TodoItem, ToolCall
from agentrun_core.models import (
    ActionRequest,
    HumanInterrupt,
    HumanResponse,
    HumanResponseWithEdits,
    InterruptConfig,
    InterruptDescriptor,
    RawFrame,
    RunRequest,
    RunStatus,
    SessionState,
    StreamEvent,
    StreamEventKind,
    ToolApprovalRequest,
)
from agentrun_core.observers import BaseRunObserver, RunObserver
from agentrun_core.orchestrator import RunHandle, RunOrchestrator
from agentrun_core.session import ChatSession, create_chat_session
from agentrun_core.stream import (
    FrameParser,
    decode_frame,
    is_ai_chunk,
    iter_events,
    iter_frames,
    reduce,
)
from agentrun_core.tool_calls import ProcessedMessage, process_messages

__all__ = [
    # Orchestration
    "RunOrchestrator",
    "RunHandle",
    "RunObserver",
    "BaseRunObserver",
    "ChatSession",
    "create_chat_session",
    # Config
    "AgentRunConfig",
    # Client
    "AgentServer",
    "AgentServerClient",
    # Errors
    "AgentRunError",
    "AgentServerError",
    "AgentServerHTTPError",
    "AgentServerConnectionError",
    "ThreadCreationError",
    # Messages
    "Message",
    "ToolCall",
    "TodoItem",
    "ProcessedMessage",
    "process_messages",
    # Models - Stream
    "RawFrame",
    "StreamEvent",
    "StreamEventKind",
    "SessionState",
    # Models - Runs
    "RunRequest",
    "RunStatus",
    # Models - Interrupts
    "ActionRequest",
    "InterruptConfig",
    "HumanInterrupt",
    "InterruptDescriptor",
    "ToolApprovalRequest",
    "HumanResponse",
    "HumanResponseWithEdits",
    # Stream engine
    "FrameParser",
    "iter_frames",
    "decode_frame",
    "iter_events",
    "reduce",
    "is_ai_chunk",
    # Interrupts
    "extract_interrupts",
    "improper_schema_interrupt",
    "default_human_responses",
    "have_args_changed",
]
