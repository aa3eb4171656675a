"""Agent backend ("mastra") adapter.

The backend exposes one POST route per agent function; the streaming variant
lives at ``{route}/stream``. Stream payloads are raw text fragments and are
delivered as chunks without JSON decoding.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ...errors import ProviderConfigurationError
from ...transport.sse import SseEvent
from ..types import ChunkEvent, ErrorEvent, LLMParams, LLMResponse, MetadataEvent, ProviderKind, StreamEvent
from .base import HttpRequestSpec, ProviderAdapter, decode_json, drop_none, usage_from

logger = logging.getLogger(__name__)


class MastraAdapter(ProviderAdapter):
    kind = ProviderKind.MASTRA

    def validate_params(self, params: LLMParams, config: Any) -> None:
        if not params.route:
            raise ProviderConfigurationError(f"Route is required for the {self.kind} provider")

    def build_request(self, params: LLMParams, config: Any, *, stream: bool) -> HttpRequestSpec:
        headers: Dict[str, str] = {}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        route = params.route or ""
        if not route.startswith("/"):
            route = f"/{route}"
        url = f"{config.base_url.rstrip('/')}{route}"
        if stream:
            url = f"{url}/stream"
        body: Dict[str, Any] = drop_none(
            {
                "prompt": params.prompt,
                "systemPrompt": params.system_prompt,
                "temperature": params.temperature,
                "maxTokens": params.max_tokens,
                "model": params.model,
            }
        )
        body.update(params.extra_fields())
        return HttpRequestSpec(url=url, body=body, headers=headers)

    def parse_response(self, data: Dict[str, Any]) -> LLMResponse:
        return LLMResponse(
            content=data.get("text") or data.get("content") or "",
            usage=usage_from(data.get("usage")),
            metadata=drop_none({"model": data.get("model"), "id": data.get("id")}),
            object=data.get("object"),
        )

    def translate_event(self, event: SseEvent) -> Optional[StreamEvent]:
        if event.event == "metadata":
            payload = decode_json(event.data)
            return MetadataEvent(data=payload if payload is not None else event.data)
        if event.event == "error":
            return ErrorEvent(error=RuntimeError(event.data or "Agent backend reported an error"))
        if not event.data:
            return None
        return ChunkEvent(content=event.data)
