"""Server-Sent Events (SSE) codec and transport utilities.

Provides an incremental ``text/event-stream`` parser, an async iterator over
parsed events of an ``httpx`` streaming response, a callback-style driver,
and a minimal transport built on ``httpx.AsyncClient`` that opens the POST
stream used by provider adapters.

Protocol rules:

- Events are separated by a blank line (``\\n\\n``); ``\\r\\n`` is normalised.
- ``event:`` names the event; unlabeled events are ``message``.
- ``data:`` lines of a ``suggestion`` event are joined with single spaces,
  all other events join them with no separator.
- An event of type ``done`` ends the stream; bytes after it are discarded.
- A body that ends without ``done`` is an abnormal end (``StreamClosedError``).
"""

from __future__ import annotations

import codecs
import inspect
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Union

import httpx

from ..errors import ProviderTransportError, StreamClosedError

logger = logging.getLogger(__name__)

DEFAULT_EVENT = "message"
DONE_EVENT = "done"
SUGGESTION_EVENT = "suggestion"


@dataclass(frozen=True)
class SseEvent:
    """One parsed event block."""

    event: str
    data: str


def parse_event_block(raw: str) -> Optional[SseEvent]:
    """Parse one event block (without its terminating blank line).

    Returns:
        The parsed event, or ``None`` for blocks carrying only comments or
        ignored fields, or for malformed blocks (which are logged).
    """
    event_type = DEFAULT_EVENT
    data_lines: List[str] = []
    labeled = False
    for line in raw.split("\n"):
        if not line or line.startswith(":"):
            continue
        field, sep, value = line.partition(":")
        if not sep and field not in ("data", "event", "id", "retry"):
            logger.debug("Skipping malformed SSE block: %r", raw)
            return None
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            event_type = value.strip() or DEFAULT_EVENT
            labeled = True
        elif field == "data":
            data_lines.append(value)
        # id/retry and unknown fields are ignored
    if not data_lines and not labeled:
        return None
    joiner = " " if event_type == SUGGESTION_EVENT else ""
    return SseEvent(event=event_type, data=joiner.join(data_lines))


class SseEventParser:
    """Incremental ``text/event-stream`` parser.

    Bytes may be split at arbitrary offsets (including inside a multi-byte
    character or a ``\\r\\n`` pair); the parser buffers partial input and only
    emits complete events.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Buffered text that has not formed a complete event yet."""
        return self._buffer

    def feed_bytes(self, chunk: bytes) -> List[SseEvent]:
        return self.feed(self._decoder.decode(chunk))

    def feed(self, text: str) -> List[SseEvent]:
        """Add decoded text and return every event completed by it, in order."""
        self._buffer = (self._buffer + text).replace("\r\n", "\n")
        events: List[SseEvent] = []
        while True:
            idx = self._buffer.find("\n\n")
            if idx == -1:
                break
            raw = self._buffer[:idx]
            self._buffer = self._buffer[idx + 2 :]
            if not raw.strip():
                continue
            event = parse_event_block(raw)
            if event is not None:
                events.append(event)
        return events


def _ensure_streamable(response: httpx.Response) -> None:
    if not response.is_success:
        raise ProviderTransportError(
            f"HTTP error! status: {response.status_code}", status_code=response.status_code
        )
    if getattr(response, "stream", None) is None:
        raise ProviderTransportError("Response has no body", status_code=response.status_code)


async def iter_sse_events(response: httpx.Response) -> AsyncIterator[SseEvent]:
    """Yield parsed events from a streaming response until ``done``.

    The ``done`` event itself is yielded last so callers can observe it.

    Raises:
        ProviderTransportError: If the response is non-OK or has no body (nothing is read).
        StreamClosedError: If the body ends before a ``done`` event.
    """
    _ensure_streamable(response)
    parser = SseEventParser()
    async for chunk in response.aiter_bytes():
        for event in parser.feed_bytes(chunk):
            yield event
            if event.event == DONE_EVENT:
                return
    if parser.pending.strip():
        logger.debug("Discarding incomplete trailing SSE data: %r", parser.pending)
    raise StreamClosedError()


MessageCallback = Callable[[str], Union[None, Awaitable[None]]]
DoneCallback = Callable[[], Union[None, Awaitable[None]]]


async def _maybe_await(value: Any) -> None:
    if inspect.isawaitable(value):
        await value


async def handle_event_stream(
    response: httpx.Response,
    on_message: MessageCallback,
    on_done: DoneCallback,
) -> None:
    """Drive a streaming response through callbacks.

    ``on_message`` receives the raw data string of every non-``done`` event;
    ``on_done`` is invoked once when ``done`` arrives. Callbacks may be
    coroutine functions.
    """
    async for event in iter_sse_events(response):
        if event.event == DONE_EVENT:
            await _maybe_await(on_done())
            return
        await _maybe_await(on_message(event.data))


class BasicSseTransport:
    """Minimal SSE transport using httpx.AsyncClient.

    - connect(url, json): issue a streamed POST request
    - aiter_events(): yield parsed events until ``done``
    - close(): close the underlying response (and the client if owned)

    Usage guidelines:
    - Pass the gateway's shared AsyncClient so connection pooling and test
      transports apply; a private client is created otherwise.
    - Cancellation is cooperative: cancelling the awaiting task ends the read.
    """

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 60.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._extra_headers = dict(headers or {})
        self._response: Optional[httpx.Response] = None
        self._logger = logging.getLogger(__name__)

    def _headers(self) -> dict[str, str]:
        """Build headers for SSE requests.

        Returns:
            A dictionary with JSON content type, ``Accept: text/event-stream``
            and any caller-provided headers (e.g. authorization).
        """
        h = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        h.update(self._extra_headers)
        return h

    async def connect(self, url: str, json: Optional[dict[str, Any]] = None) -> httpx.Response:
        """Open the streaming POST request.

        Raises:
            ProviderTransportError: For transport-level failures; a non-OK
                status is reported when events are iterated.
        """
        self._logger.debug("SSE connect: POST %s", url)
        req = self._client.build_request("POST", url, headers=self._headers(), json=json)
        try:
            self._response = await self._client.send(req, stream=True)
        except httpx.TransportError as e:
            raise ProviderTransportError(f"Connection to {url} failed: {e}") from e
        return self._response

    async def aiter_events(self) -> AsyncIterator[SseEvent]:
        if self._response is None:
            raise RuntimeError("SSE not connected. Call connect() first.")
        try:
            async for event in iter_sse_events(self._response):
                yield event
        except httpx.TransportError as e:
            self._logger.error("SSE stream error", exc_info=True)
            raise ProviderTransportError(f"Event stream interrupted: {e}") from e

    async def close(self) -> None:
        """Close the current SSE response (if any) and the client when owned."""
        if self._response is not None:
            await self._response.aclose()
            self._response = None
        if self._owns_client:
            await self._client.aclose()
