"""Transport interfaces for provider streaming.

  Defines the lightweight Protocol provider adapters use to abstract the
  event stream transport, and re-exports the concrete SSE codec and
  transport living in ``sse.py``.
  """

from __future__ import annotations

from typing import Any, AsyncIterator, Optional, Protocol

import httpx

from .sse import (
    BasicSseTransport,
    SseEvent,
    SseEventParser,
    handle_event_stream,
    iter_sse_events,
    parse_event_block,
)


class SseTransport(Protocol):
    """Protocol for async Server-Sent Events (SSE) transports.

    Implementations manage the lifecycle of one streamed HTTP request
    delivering text/event-stream data to an adapter.

    Examples:
        >>> await transport.connect("https://example/v1/chat/stream", json={"prompt": "hi"})
        >>> async for event in transport.aiter_events():
        ...     print(event.event, event.data)
        >>> await transport.close()
    """

    async def connect(self, url: str, json: Optional[dict[str, Any]] = None) -> httpx.Response:
        """Open a streaming request.

        Args:
            url: Absolute URL of the streaming endpoint.
            json: JSON request body.

        Raises:
            Exception: If the connection cannot be established.
        """
        ...

    def aiter_events(self) -> AsyncIterator[SseEvent]:
        """Iterate parsed events until the terminal ``done`` event."""
        ...

    async def close(self) -> None:
        """Close the current streaming connection and release resources."""
        ...


__all__ = [
    "BasicSseTransport",
    "SseEvent",
    "SseEventParser",
    "SseTransport",
    "handle_event_stream",
    "iter_sse_events",
    "parse_event_block",
]
