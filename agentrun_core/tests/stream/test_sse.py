"""Tests for the SSE frame parser."""

import pytest

from agentrun_core.models.events import RawFrame
from agentrun_core.stream.sse import FrameParser, iter_frames, parse_frames


async def _chunks(*chunks: bytes):
    for chunk in chunks:
        yield chunk


class TestFrameParser:
    """Test FrameParser line and frame handling."""

    def test_single_frame(self) -> None:
        """Parse one complete frame."""
        frames = list(parse_frames([b'event: values\ndata: {"a": 1}\n\n']))

        assert frames == [RawFrame(event="values", data='{"a": 1}')]

    def test_crlf_and_lf_are_equivalent(self) -> None:
        """CRLF, LF and bare CR terminated streams yield the same frames."""
        lf = b"event: values\ndata: {}\n\nevent: end\ndata: \n\n"
        crlf = lf.replace(b"\n", b"\r\n")
        cr = lf.replace(b"\n", b"\r")

        expected = list(parse_frames([lf]))
        assert list(parse_frames([crlf])) == expected
        assert list(parse_frames([cr])) == expected
        assert [f.event for f in expected] == ["values", "end"]

    def test_crlf_split_across_reads(self) -> None:
        """A CR at the end of one read and LF at the start of the next is one break."""
        chunks = [b"event: values\r", b"\ndata: {}\r", b"\n\r", b"\n"]

        frames = list(parse_frames(chunks))

        assert frames == [RawFrame(event="values", data="{}")]

    def test_frames_split_at_every_byte(self) -> None:
        """Byte-at-a-time delivery gives the same frames as one read."""
        body = b'event: updates\r\ndata: {"x": "y"}\r\n\r\ndata: 1\r\n\r\n'

        whole = list(parse_frames([body]))
        split = list(parse_frames([body[i : i + 1] for i in range(len(body))]))

        assert split == whole
        assert len(whole) == 2

    def test_multibyte_character_split_across_reads(self) -> None:
        """UTF-8 sequences split between chunks are reassembled."""
        body = 'data: {"text": "héllo ✓"}\n\n'.encode()
        cut = body.index("✓".encode()) + 1

        frames = list(parse_frames([body[:cut], body[cut:]]))

        assert frames[0].data == '{"text": "héllo ✓"}'

    def test_invalid_utf8_is_replaced(self) -> None:
        """Invalid bytes become replacement characters instead of raising."""
        frames = list(parse_frames([b"data: \xff\xfe\n\n"]))

        assert frames[0].data == "\ufffd\ufffd"

    def test_default_event_type(self) -> None:
        """A frame without an event line is a message frame."""
        frames = list(parse_frames([b"data: hi\n\n"]))

        assert frames == [RawFrame(event="message", data="hi")]

    def test_event_name_is_trimmed(self) -> None:
        """Whitespace around the event name is removed."""
        frames = list(parse_frames([b"event:   values  \ndata: {}\n\n"]))

        assert frames[0].event == "values"

    def test_data_lines_concatenate_without_separator(self) -> None:
        """Multiple data lines are joined with no separator."""
        frames = list(parse_frames([b'data: {"a":\ndata:  1}\n\n']))

        # Only one leading space is stripped per line
        assert frames[0].data == '{"a": 1}'

    def test_data_without_space(self) -> None:
        """The space after the colon is optional."""
        frames = list(parse_frames([b"data:{}\n\n"]))

        assert frames[0].data == "{}"

    def test_blank_lines_without_fields_emit_nothing(self) -> None:
        """Consecutive blank lines do not produce empty frames."""
        frames = list(parse_frames([b"\n\n\ndata: 1\n\n\n\n"]))

        assert frames == [RawFrame(event="message", data="1")]

    def test_comment_lines_are_ignored(self) -> None:
        """Keep-alive comments neither start nor alter a frame."""
        frames = list(parse_frames([b": ping\n\n: ping\nevent: values\ndata: {}\n\n"]))

        assert frames == [RawFrame(event="values", data="{}")]

    def test_id_and_retry_fields_keep_frame_alive(self) -> None:
        """Ignored fields still make a frame."""
        frames = list(parse_frames([b"id: 7\nretry: 1000\n\n"]))

        assert frames == [RawFrame(event="message", data="")]

    def test_unterminated_frame_dropped_by_default(self) -> None:
        """A trailing frame without its blank line is discarded at close."""
        frames = list(parse_frames([b"data: 1\n\nevent: values\ndata: {}\n"]))

        assert frames == [RawFrame(event="message", data="1")]

    def test_unterminated_frame_flushed_when_enabled(self) -> None:
        """flush_incomplete emits the trailing frame at close."""
        frames = list(
            parse_frames([b"data: 1\n\nevent: values\ndata: {}"], flush_incomplete=True)
        )

        assert frames == [
            RawFrame(event="message", data="1"),
            RawFrame(event="values", data="{}"),
        ]

    def test_trailing_cr_resolved_at_close(self) -> None:
        """A held-back CR is treated as a line break at end of stream."""
        parser = FrameParser()

        assert parser.feed(b"data: 1\r\r") == []
        assert parser.close() == [RawFrame(event="message", data="1")]

    def test_feed_returns_completed_frames_only(self) -> None:
        """feed returns frames as soon as their blank line arrives."""
        parser = FrameParser()

        assert parser.feed(b"event: values\ndata: {}\n") == []
        assert parser.feed(b"\nevent: end\n") == [RawFrame(event="values", data="{}")]
        assert parser.close() == []


class TestIterFrames:
    """Test the async frame iterator."""

    @pytest.mark.asyncio
    async def test_iter_frames(self) -> None:
        """Frames are yielded lazily from an async byte stream."""
        stream = _chunks(b"event: values\n", b"data: {}\n\nevent: end\n", b"data: \n\n")

        frames = [frame async for frame in iter_frames(stream)]

        assert frames == [
            RawFrame(event="values", data="{}"),
            RawFrame(event="end", data=""),
        ]

    @pytest.mark.asyncio
    async def test_iter_frames_flush_incomplete(self) -> None:
        """The flush option is honored by the async iterator."""
        frames = [
            frame
            async for frame in iter_frames(_chunks(b"data: 1"), flush_incomplete=True)
        ]

        assert frames == [RawFrame(event="message", data="1")]
