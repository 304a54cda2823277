"""Decoding of raw SSE frames into typed stream events."""

import logging
from collections.abc import AsyncIterable, AsyncIterator

from agentrun_core.models.events import RawFrame, StreamEvent, StreamEventKind
from agentrun_core.payload import parse_json_text
from agentrun_core.stream.sse import iter_frames

logger = logging.getLogger(__name__)


def decode_frame(frame: RawFrame) -> StreamEvent:
    """Decode one frame. Never raises.

    Empty data decodes to ``{}``. Data that is not valid JSON yields an
    ``unknown`` event with a None payload, so one corrupt frame is a no-op
    rather than the end of the stream.
    """
    if not frame.data.strip():
        return StreamEvent(
            kind=StreamEventKind.from_wire(frame.event), payload={}, event=frame.event
        )

    ok, payload = parse_json_text(frame.data)
    if not ok:
        logger.warning(
            "decode_frame event=%s dropped malformed payload (%d chars)",
            frame.event,
            len(frame.data),
        )
        return StreamEvent(kind=StreamEventKind.UNKNOWN, payload=None, event=frame.event)

    return StreamEvent(
        kind=StreamEventKind.from_wire(frame.event), payload=payload, event=frame.event
    )


async def iter_events(
    chunks: AsyncIterable[bytes],
    flush_incomplete: bool = False,
) -> AsyncIterator[StreamEvent]:
    """Parse and decode an SSE byte stream into stream events."""
    async for frame in iter_frames(chunks, flush_incomplete=flush_incomplete):
        yield decode_frame(frame)
