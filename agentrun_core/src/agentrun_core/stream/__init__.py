"""Stream protocol engine: bytes to frames to events to state.

Each stage is a pure (or incremental) transform; the run orchestrator composes
them and owns the resulting state.
"""

from agentrun_core.stream.decoder import decode_frame, iter_events
from agentrun_core.stream.reducer import is_ai_chunk, reduce, upsert_messages
from agentrun_core.stream.sse import FrameParser, iter_frames, parse_frames

__all__ = [
    "FrameParser",
    "decode_frame",
    "is_ai_chunk",
    "iter_events",
    "iter_frames",
    "parse_frames",
    "reduce",
    "upsert_messages",
]
