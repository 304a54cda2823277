"""Tests for the stream event decoder."""

import logging

import pytest

from agentrun_core.models.events import RawFrame, StreamEventKind
from agentrun_core.stream.decoder import decode_frame, iter_events


class TestDecodeFrame:
    """Test decode_frame."""

    def test_decodes_known_kind(self) -> None:
        """A values frame decodes to a values event with its JSON payload."""
        event = decode_frame(RawFrame(event="values", data='{"messages": []}'))

        assert event.kind is StreamEventKind.VALUES
        assert event.payload == {"messages": []}
        assert event.event == "values"

    def test_empty_data_is_empty_object(self) -> None:
        """Empty data decodes to {}."""
        event = decode_frame(RawFrame(event="end", data=""))

        assert event.kind is StreamEventKind.END
        assert event.payload == {}

    def test_malformed_json_is_unknown(self, caplog: pytest.LogCaptureFixture) -> None:
        """Invalid JSON yields an unknown event with no payload and a warning."""
        with caplog.at_level(logging.WARNING, logger="agentrun_core.stream.decoder"):
            event = decode_frame(RawFrame(event="values", data='{"messages": ['))

        assert event.kind is StreamEventKind.UNKNOWN
        assert event.payload is None
        assert event.event == "values"
        assert "malformed" in caplog.text

    def test_unknown_event_name(self) -> None:
        """Unrecognized event names map to unknown but keep the payload."""
        event = decode_frame(RawFrame(event="tasks", data="[1]"))

        assert event.kind is StreamEventKind.UNKNOWN
        assert event.payload == [1]
        assert event.event == "tasks"

    def test_default_message_kind(self) -> None:
        """Frames without an event line decode as message events."""
        event = decode_frame(RawFrame(data='"hi"'))

        assert event.kind is StreamEventKind.MESSAGE
        assert event.payload == "hi"

    @pytest.mark.parametrize("name", ["messages-tuple", "messages_tuple"])
    def test_messages_tuple_aliases(self, name: str) -> None:
        """Both spellings of the tuple stream mode are accepted."""
        event = decode_frame(RawFrame(event=name, data="[]"))

        assert event.kind is StreamEventKind.MESSAGES_TUPLE

    def test_scalar_payload(self) -> None:
        """Any JSON value is a valid payload."""
        event = decode_frame(RawFrame(event="custom", data="42"))

        assert event.kind is StreamEventKind.CUSTOM
        assert event.payload == 42


class TestIterEvents:
    """Test the composed byte-to-event pipeline."""

    @pytest.mark.asyncio
    async def test_iter_events(self) -> None:
        """Bytes are parsed and decoded in order."""

        async def chunks():
            yield b'event: metadata\ndata: {"run_id": "r1"}\n\n'
            yield b"event: values\ndata: not json\n\n"
            yield b"event: end\n\n"

        events = [event async for event in iter_events(chunks())]

        assert [e.kind for e in events] == [
            StreamEventKind.METADATA,
            StreamEventKind.UNKNOWN,
            StreamEventKind.END,
        ]
        assert events[0].payload == {"run_id": "r1"}
