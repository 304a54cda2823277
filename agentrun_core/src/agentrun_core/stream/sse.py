"""Incremental Server-Sent-Events frame parser.

Bytes arrive in arbitrary chunks from the network. The parser reassembles them
into lines, accepting ``\\n``, ``\\r\\n`` and a bare ``\\r`` as terminators, and
groups lines into frames closed by a blank line:

    event: values
    data: {"messages": []}

A ``\\r`` that ends a chunk is held back until the next chunk shows whether it
starts a ``\\r\\n`` pair, so a CRLF split across two reads is one line break.
"""

import codecs
import re
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator

from agentrun_core.models.events import RawFrame

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

DEFAULT_EVENT = "message"


class FrameParser:
    """Push-style SSE parser.

    Feed it raw bytes with :meth:`feed`; each call returns the frames completed
    by that chunk. Call :meth:`close` at end of stream.

    Example:
        ```python
        parser = FrameParser()
        frames = parser.feed(b"event: values\\r\\ndata: {}\\r\\n\\r\\n")
        assert frames == [RawFrame(event="values", data="{}")]
        ```
    """

    def __init__(self, flush_incomplete: bool = False) -> None:
        """Initialize the parser.

        Args:
            flush_incomplete: Emit a final frame that lacks its closing blank
                line when the stream closes. By default such a frame is dropped.
        """
        self._flush_incomplete = flush_incomplete
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._event: str | None = None
        self._data: list[str] = []
        self._has_fields = False

    def feed(self, chunk: bytes) -> list[RawFrame]:
        """Consume a chunk of bytes and return the frames it completed."""
        self._buffer += self._decoder.decode(chunk)
        return self._drain_lines(final=False)

    def close(self) -> list[RawFrame]:
        """Signal end of stream and return any frames still pending."""
        self._buffer += self._decoder.decode(b"", final=True)
        frames = self._drain_lines(final=True)
        if self._buffer:
            # Last line had no terminator
            line, self._buffer = self._buffer, ""
            self._process_line(line)
        if self._flush_incomplete and self._has_fields:
            frames.append(self._take_frame())
        self._reset_frame()
        return frames

    def _drain_lines(self, final: bool) -> list[RawFrame]:
        frames: list[RawFrame] = []
        buffer = self._buffer
        start = 0
        for match in _LINE_BREAK.finditer(buffer):
            if match.group() == "\r" and match.end() == len(buffer) and not final:
                break
            frame = self._process_line(buffer[start : match.start()])
            if frame is not None:
                frames.append(frame)
            start = match.end()
        self._buffer = buffer[start:]
        return frames

    def _process_line(self, line: str) -> RawFrame | None:
        if not line:
            if not self._has_fields:
                return None
            return self._take_frame()

        if line.startswith(":"):
            # Comment / keep-alive
            return None

        self._has_fields = True
        if line.startswith("event:"):
            self._event = line[len("event:") :].strip()
        elif line.startswith("data:"):
            value = line[len("data:") :]
            if value.startswith(" "):
                value = value[1:]
            self._data.append(value)
        # id:, retry: and unknown fields are ignored
        return None

    def _take_frame(self) -> RawFrame:
        frame = RawFrame(event=self._event or DEFAULT_EVENT, data="".join(self._data))
        self._reset_frame()
        return frame

    def _reset_frame(self) -> None:
        self._event = None
        self._data = []
        self._has_fields = False


def parse_frames(chunks: Iterable[bytes], flush_incomplete: bool = False) -> Iterator[RawFrame]:
    """Parse frames from a synchronous iterable of byte chunks."""
    parser = FrameParser(flush_incomplete=flush_incomplete)
    for chunk in chunks:
        yield from parser.feed(chunk)
    yield from parser.close()


async def iter_frames(
    chunks: AsyncIterable[bytes],
    flush_incomplete: bool = False,
) -> AsyncIterator[RawFrame]:
    """Lazily parse frames from an async byte stream.

    One network read can complete several frames; they are yielded in order
    before the next read is awaited.

    Args:
        chunks: Raw response body chunks.
        flush_incomplete: Emit an unterminated trailing frame at end of stream.
    """
    parser = FrameParser(flush_incomplete=flush_incomplete)
    async for chunk in chunks:
        for frame in parser.feed(chunk):
            yield frame
    for frame in parser.close():
        yield frame
