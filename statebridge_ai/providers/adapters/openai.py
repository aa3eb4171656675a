"""OpenAI chat-completions adapter.

Also the base of every OpenAI-compatible endpoint (custom endpoints and the
routed vendors of the ai-sdk kind), which only differ in where the connection
settings come from.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ...errors import ProviderConfigurationError
from ...transport.sse import SseEvent
from ..types import ChunkEvent, DoneEvent, ErrorEvent, LLMParams, LLMResponse, ProviderKind, StreamEvent, Usage
from .base import HttpRequestSpec, ProviderAdapter, decode_json, drop_none

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


def chat_messages(params: LLMParams) -> List[Dict[str, str]]:
    messages: List[Dict[str, str]] = []
    if params.system_prompt:
        messages.append({"role": "system", "content": params.system_prompt})
    messages.append({"role": "user", "content": params.prompt})
    return messages


class OpenAIAdapter(ProviderAdapter):
    kind = ProviderKind.OPENAI
    default_path = "/chat/completions"

    def validate_params(self, params: LLMParams, config: Any) -> None:
        if not params.model:
            raise ProviderConfigurationError(f"Model is required for the {self.kind} provider")

    def _connection(self, config: Any) -> Tuple[str, Dict[str, str]]:
        """Return the endpoint URL and auth headers for ``config``."""
        headers = {"Authorization": f"Bearer {config.api_key}"}
        return f"{config.base_url.rstrip('/')}{self.default_path}", headers

    def build_request(self, params: LLMParams, config: Any, *, stream: bool) -> HttpRequestSpec:
        url, headers = self._connection(config)
        body: Dict[str, Any] = drop_none(
            {
                "model": params.model,
                "messages": chat_messages(params),
                "temperature": params.temperature,
                "max_tokens": params.max_tokens,
            }
        )
        body.update(params.extra_fields())
        if stream:
            body["stream"] = True
        return HttpRequestSpec(url=url, body=body, headers=headers)

    def parse_response(self, data: Dict[str, Any]) -> LLMResponse:
        choices = data.get("choices") or []
        content = ""
        if choices:
            message = choices[0].get("message") or {}
            content = message.get("content") or ""
        usage: Optional[Usage] = None
        raw_usage = data.get("usage")
        if isinstance(raw_usage, dict):
            usage = Usage(
                prompt_tokens=raw_usage.get("prompt_tokens", 0),
                completion_tokens=raw_usage.get("completion_tokens", 0),
                total_tokens=raw_usage.get("total_tokens", 0),
            )
        metadata = drop_none({"model": data.get("model"), "id": data.get("id")})
        return LLMResponse(content=content, usage=usage, metadata=metadata)

    def translate_event(self, event: SseEvent) -> Optional[StreamEvent]:
        if event.data.strip() == DONE_SENTINEL:
            return DoneEvent()
        payload = decode_json(event.data)
        if not isinstance(payload, dict):
            return None
        if "error" in payload:
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            return ErrorEvent(error=RuntimeError(message or "Provider reported an error"))
        choices = payload.get("choices") or []
        if not choices:
            return None
        delta = choices[0].get("delta") or {}
        content = delta.get("content")
        if not content:
            return None
        return ChunkEvent(content=content)
