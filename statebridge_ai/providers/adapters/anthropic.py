"""Anthropic messages API adapter."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ...errors import ProviderConfigurationError
from ...transport.sse import SseEvent
from ..types import (
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    LLMParams,
    LLMResponse,
    MetadataEvent,
    ProviderKind,
    StreamEvent,
    Usage,
)
from .base import HttpRequestSpec, ProviderAdapter, decode_json, drop_none

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 1024
DEFAULT_API_VERSION = "2023-06-01"


class AnthropicAdapter(ProviderAdapter):
    kind = ProviderKind.ANTHROPIC

    def validate_params(self, params: LLMParams, config: Any) -> None:
        if not params.model:
            raise ProviderConfigurationError(f"Model is required for the {self.kind} provider")

    def build_request(self, params: LLMParams, config: Any, *, stream: bool) -> HttpRequestSpec:
        headers = {
            "x-api-key": config.api_key,
            "anthropic-version": getattr(config, "api_version", None) or DEFAULT_API_VERSION,
        }
        body: Dict[str, Any] = drop_none(
            {
                "model": params.model,
                "system": params.system_prompt,
                "messages": [{"role": "user", "content": params.prompt}],
                "max_tokens": params.max_tokens or DEFAULT_MAX_TOKENS,
                "temperature": params.temperature,
            }
        )
        body.update(params.extra_fields())
        if stream:
            body["stream"] = True
        base_url = (config.base_url or "https://api.anthropic.com/v1").rstrip("/")
        return HttpRequestSpec(url=f"{base_url}/messages", body=body, headers=headers)

    def parse_response(self, data: Dict[str, Any]) -> LLMResponse:
        blocks = data.get("content") or []
        content = "".join(b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text")
        usage: Optional[Usage] = None
        raw_usage = data.get("usage")
        if isinstance(raw_usage, dict):
            prompt_tokens = raw_usage.get("input_tokens", 0)
            completion_tokens = raw_usage.get("output_tokens", 0)
            usage = Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            )
        metadata = drop_none(
            {"model": data.get("model"), "id": data.get("id"), "stop_reason": data.get("stop_reason")}
        )
        return LLMResponse(content=content, usage=usage, metadata=metadata)

    def translate_event(self, event: SseEvent) -> Optional[StreamEvent]:
        if event.event == "message_stop":
            return DoneEvent()
        payload = decode_json(event.data) if event.data else None
        if event.event == "error":
            error = payload.get("error") if isinstance(payload, dict) else None
            message = error.get("message") if isinstance(error, dict) else event.data
            return ErrorEvent(error=RuntimeError(message or "Provider reported an error"))
        if not isinstance(payload, dict):
            return None
        if event.event == "content_block_delta":
            delta = payload.get("delta") or {}
            text = delta.get("text")
            return ChunkEvent(content=text) if text else None
        if event.event == "message_start":
            return MetadataEvent(data=payload.get("message") or payload)
        # ping, content_block_start/stop, message_delta carry nothing to emit
        return None
