from __future__ import annotations

from typing import AsyncIterator, List, Sequence, Tuple

import httpx
import pytest

from statebridge_ai.errors import ProviderTransportError, StreamClosedError
from statebridge_ai.transport import (
    SseEvent,
    SseEventParser,
    handle_event_stream,
    iter_sse_events,
    parse_event_block,
)

STREAM = (
    "data: Hello\n\n"
    "event: suggestion\ndata: Try\ndata: asking\ndata: about cafés\n\n"
    ": keep-alive comment\n\n"
    "event: metadata\ndata: {\"model\":\"m\"}\n\n"
    "data: multi\ndata: line\n\n"
    "event: done\ndata:\n\n"
).encode("utf-8")

EXPECTED = [
    ("message", "Hello"),
    ("suggestion", "Try asking about cafés"),
    ("metadata", '{"model":"m"}'),
    ("message", "multiline"),
    ("done", ""),
]


class _ChunkedStream(httpx.AsyncByteStream):
    def __init__(self, chunks: Sequence[bytes]) -> None:
        self._chunks = list(chunks)
        self.reads = 0

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            self.reads += 1
            yield chunk


def _response(chunks: Sequence[bytes], status_code: int = 200) -> Tuple[httpx.Response, _ChunkedStream]:
    stream = _ChunkedStream(chunks)
    response = httpx.Response(
        status_code,
        headers={"Content-Type": "text/event-stream"},
        stream=stream,
        request=httpx.Request("POST", "http://mock/stream"),
    )
    return response, stream


async def _collect(chunks: Sequence[bytes]) -> List[Tuple[str, str]]:
    response, _ = _response(chunks)
    return [(e.event, e.data) for e in [event async for event in iter_sse_events(response)]]


class TestParseEventBlock:
    def test_unlabeled_event_defaults_to_message(self) -> None:
        assert parse_event_block("data: hi") == SseEvent(event="message", data="hi")

    def test_suggestion_lines_joined_with_spaces(self) -> None:
        event = parse_event_block("event: suggestion\ndata: one\ndata: two\ndata: three")

        assert event == SseEvent(event="suggestion", data="one two three")

    def test_other_events_joined_without_separator(self) -> None:
        event = parse_event_block("event: chunk\ndata: {\"a\":\ndata: 1}")

        assert event == SseEvent(event="chunk", data='{"a":1}')

    def test_only_one_leading_space_is_stripped(self) -> None:
        assert parse_event_block("data:   indented").data == "  indented"
        assert parse_event_block("data:tight").data == "tight"

    def test_comment_only_block_is_skipped(self) -> None:
        assert parse_event_block(": ping") is None

    def test_id_and_retry_fields_are_ignored(self) -> None:
        assert parse_event_block("id: 7\nretry: 100\ndata: x") == SseEvent(event="message", data="x")

    def test_labeled_event_without_data(self) -> None:
        assert parse_event_block("event: done") == SseEvent(event="done", data="")

    def test_malformed_block_is_skipped(self) -> None:
        assert parse_event_block("this is not a field line") is None


class TestSseEventParser:
    def test_buffers_partial_events(self) -> None:
        parser = SseEventParser()

        assert parser.feed("data: hel") == []
        assert parser.pending == "data: hel"
        assert parser.feed("lo\n\ndata: next") == [SseEvent(event="message", data="hello")]
        assert parser.pending == "data: next"

    def test_crlf_split_across_chunks(self) -> None:
        parser = SseEventParser()

        events = parser.feed_bytes(b"data: a\r\n\r") + parser.feed_bytes(b"\ndata: b\r\n\r\n")

        assert events == [SseEvent(event="message", data="a"), SseEvent(event="message", data="b")]

    def test_multibyte_character_split_across_chunks(self) -> None:
        parser = SseEventParser()
        raw = "data: café\n\n".encode("utf-8")
        cut = raw.index(b"\xc3") + 1

        events = parser.feed_bytes(raw[:cut]) + parser.feed_bytes(raw[cut:])

        assert events == [SseEvent(event="message", data="café")]


class TestIterSseEvents:
    @pytest.mark.asyncio
    async def test_single_chunk(self) -> None:
        assert await _collect([STREAM]) == EXPECTED

    @pytest.mark.asyncio
    async def test_same_events_for_every_single_split_point(self) -> None:
        for offset in range(1, len(STREAM)):
            assert await _collect([STREAM[:offset], STREAM[offset:]]) == EXPECTED, offset

    @pytest.mark.asyncio
    async def test_same_events_for_byte_by_byte_delivery(self) -> None:
        chunks = [STREAM[i : i + 1] for i in range(len(STREAM))]

        assert await _collect(chunks) == EXPECTED

    @pytest.mark.asyncio
    async def test_same_events_for_irregular_chunk_sizes(self) -> None:
        sizes = [3, 1, 7, 2, 11, 5]
        chunks: List[bytes] = []
        pos = 0
        index = 0
        while pos < len(STREAM):
            size = sizes[index % len(sizes)]
            chunks.append(STREAM[pos : pos + size])
            pos += size
            index += 1

        assert await _collect(chunks) == EXPECTED

    @pytest.mark.asyncio
    async def test_done_stops_reading_even_with_bytes_buffered(self) -> None:
        response, stream = _response(
            [b"data: a\n\nevent: done\ndata:\n\ndata: after done\n\n", b"data: never read\n\n"]
        )

        events = [(e.event, e.data) async for e in iter_sse_events(response)]

        assert events == [("message", "a"), ("done", "")]
        assert stream.reads == 1

    @pytest.mark.asyncio
    async def test_eof_without_done_raises(self) -> None:
        response, _ = _response([b"data: a\n\n", b"data: partial"])
        seen: List[str] = []

        with pytest.raises(StreamClosedError):
            async for event in iter_sse_events(response):
                seen.append(event.data)

        assert seen == ["a"]

    @pytest.mark.asyncio
    async def test_non_ok_status_fails_before_reading(self) -> None:
        response, stream = _response([b"data: a\n\n"], status_code=502)

        with pytest.raises(ProviderTransportError) as exc_info:
            async for _ in iter_sse_events(response):
                pass

        assert exc_info.value.status_code == 502
        assert stream.reads == 0

    @pytest.mark.asyncio
    async def test_missing_body_fails(self) -> None:
        response, _ = _response([])
        response.stream = None

        with pytest.raises(ProviderTransportError):
            async for _ in iter_sse_events(response):
                pass


class TestHandleEventStream:
    @pytest.mark.asyncio
    async def test_callbacks_receive_raw_data_then_done_once(self) -> None:
        response, _ = _response([STREAM])
        messages: List[str] = []
        done_calls: List[bool] = []

        await handle_event_stream(response, messages.append, lambda: done_calls.append(True))

        assert messages == ["Hello", "Try asking about cafés", '{"model":"m"}', "multiline"]
        assert done_calls == [True]

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self) -> None:
        response, _ = _response([b"data: x\n\nevent: done\n\n"])
        messages: List[str] = []
        done_calls: List[bool] = []

        async def on_message(data: str) -> None:
            messages.append(data)

        async def on_done() -> None:
            done_calls.append(True)

        await handle_event_stream(response, on_message, on_done)

        assert messages == ["x"]
        assert done_calls == [True]
