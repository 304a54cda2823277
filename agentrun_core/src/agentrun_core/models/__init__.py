from agentrun_core.models.events import RawFrame, StreamEvent, StreamEventKind
from agentrun_core.models.interrupts import (
    IMPROPER_SCHEMA,
    ActionRequest,
    HumanInterrupt,
    HumanResponse,
    HumanResponseWithEdits,
    InterruptConfig,
    InterruptDescriptor,
    ReviewConfig,
    ToolApprovalRequest,
)
from agentrun_core.models.run import RunRequest, RunStatus
from agentrun_core.models.state import INTERRUPT_KEY, SessionState

__all__ = [
    "ActionRequest",
    "HumanInterrupt",
    "HumanResponse",
    "HumanResponseWithEdits",
    "IMPROPER_SCHEMA",
    "INTERRUPT_KEY",
    "InterruptConfig",
    "InterruptDescriptor",
    "RawFrame",
    "ReviewConfig",
    "RunRequest",
    "RunStatus",
    "SessionState",
    "StreamEvent",
    "StreamEventKind",
    "ToolApprovalRequest",
]
