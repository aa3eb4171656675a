"""Base abstraction for provider adapters.

An adapter turns ``LLMParams`` plus a ``ProviderConfig`` variant into an HTTP
request for one vendor kind, and turns the vendor's response envelope or
stream events back into the internal ``LLMResponse`` / ``StreamEvent`` shape.
The HTTP mechanics (single-shot POST, SSE streaming, error mapping) are shared
here so adapters only describe wire formats.
"""

from __future__ import annotations

import inspect
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import httpx

from ...errors import ProviderTransportError
from ...transport.sse import DONE_EVENT, BasicSseTransport, SseEvent
from ..types import (
    DoneEvent,
    LLMParams,
    LLMResponse,
    ProviderKind,
    StreamEvent,
    StreamHandler,
    Usage,
    is_terminal,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpRequestSpec:
    """Fully resolved outbound request."""

    url: str
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


async def emit(handler: StreamHandler, event: StreamEvent) -> None:
    """Deliver one event to a sync or async handler."""
    outcome = handler(event)
    if inspect.isawaitable(outcome):
        await outcome


def drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def decode_json(data: str) -> Optional[Any]:
    """Decode a JSON event payload, returning ``None`` (and logging) when malformed."""
    try:
        return json.loads(data)
    except ValueError:
        logger.debug("Skipping undecodable stream payload: %r", data[:200])
        return None


def usage_from(data: Any) -> Optional[Usage]:
    if not isinstance(data, dict):
        return None
    return Usage.model_validate(data)


class ProviderAdapter(ABC):
    """Abstract base class for all provider adapters.

    Subclasses must implement:
    - build_request(): vendor request body, URL and headers
    - parse_response(): vendor JSON envelope to ``LLMResponse``
    - translate_event(): vendor SSE event to ``StreamEvent`` (or ``None`` to skip)

    They may override validate_params() to reject calls before any I/O, and
    resolve() to hand the call to another adapter (multi-vendor routing).
    """

    kind: ProviderKind

    def validate_params(self, params: LLMParams, config: Any) -> None:
        """Raise ``ProviderConfigurationError`` when ``params`` miss what this kind requires."""

    def resolve(self, params: LLMParams, config: Any) -> Tuple["ProviderAdapter", LLMParams, Any]:
        """Return the adapter, params and config that actually serve the call."""
        return self, params, config

    @abstractmethod
    def build_request(self, params: LLMParams, config: Any, *, stream: bool) -> HttpRequestSpec:
        """Build the outbound request for a single-shot or streaming call."""

    @abstractmethod
    def parse_response(self, data: Dict[str, Any]) -> LLMResponse:
        """Normalise a single-shot JSON response."""

    @abstractmethod
    def translate_event(self, event: SseEvent) -> Optional[StreamEvent]:
        """Translate one SSE event into the internal event union."""

    async def call(self, params: LLMParams, config: Any, client: httpx.AsyncClient) -> LLMResponse:
        """Perform a single-shot call.

        Raises:
            ProviderTransportError: On connection failure, non-OK status or a
                body that is not a JSON object.
        """
        adapter, params, config = self.resolve(params, config)
        spec = adapter.build_request(params, config, stream=False)
        headers = {"Content-Type": "application/json", **spec.headers}
        logger.debug("%s call: POST %s", adapter.kind, spec.url)
        try:
            r = await client.post(spec.url, headers=headers, json=spec.body)
        except httpx.TransportError as e:
            raise ProviderTransportError(f"Connection to {spec.url} failed: {e}") from e
        if not r.is_success:
            raise ProviderTransportError(
                f"HTTP error! status: {r.status_code}", status_code=r.status_code, details=r.text
            )
        try:
            data = r.json()
        except ValueError as e:
            raise ProviderTransportError(
                "Response body is not valid JSON", status_code=r.status_code, details=r.text
            ) from e
        if not isinstance(data, dict):
            raise ProviderTransportError("Unexpected response shape", status_code=r.status_code, details=data)
        return adapter.parse_response(data)

    async def run_stream(
        self,
        params: LLMParams,
        config: Any,
        client: httpx.AsyncClient,
        handler: StreamHandler,
    ) -> None:
        """Stream a call, delivering translated events to ``handler``.

        Returns after the first terminal event has been delivered. Transport
        failures propagate to the caller, which reports them as an error event.
        """
        adapter, params, config = self.resolve(params, config)
        spec = adapter.build_request(params, config, stream=True)
        transport = BasicSseTransport(client=client, headers=spec.headers)
        try:
            await transport.connect(spec.url, json=spec.body)
            async for sse in transport.aiter_events():
                if sse.event == DONE_EVENT:
                    await emit(handler, DoneEvent())
                    return
                event = adapter.translate_event(sse)
                if event is None:
                    continue
                await emit(handler, event)
                if is_terminal(event):
                    return
        finally:
            await transport.close()
