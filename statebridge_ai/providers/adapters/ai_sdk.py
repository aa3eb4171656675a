"""Multi-vendor routed ("ai-sdk") adapter.

The model is addressed as ``"vendor/model"`` (for example
``"openai/gpt-4o-mini"`` or ``"anthropic/claude-3-5-sonnet-latest"``). The
vendor part selects the credentials from the config's ``providers`` map and the
adapter that serves the call: Anthropic models go to the Anthropic messages
API, every other supported vendor to its OpenAI-compatible endpoint.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from ...errors import ProviderConfigurationError
from ...transport.sse import SseEvent
from ..types import (
    AnthropicProviderConfig,
    LLMParams,
    LLMResponse,
    OpenAIProviderConfig,
    ProviderKind,
    StreamEvent,
)
from .anthropic import AnthropicAdapter
from .base import HttpRequestSpec, ProviderAdapter
from .openai import OpenAIAdapter

logger = logging.getLogger(__name__)

VENDOR_ENDPOINTS: Dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "google": "https://generativelanguage.googleapis.com/v1beta/openai",
    "mistral": "https://api.mistral.ai/v1",
    "groq": "https://api.groq.com/openai/v1",
    "anthropic": "https://api.anthropic.com/v1",
}


def parse_model_string(model: str) -> Tuple[str, str]:
    """Split ``"vendor/model"``; the model part may itself contain slashes."""
    vendor, _, name = model.partition("/")
    if not vendor or not name:
        raise ProviderConfigurationError(
            f'Invalid model format: {model}. Expected format: "provider/model" (e.g., "openai/gpt-4o")'
        )
    return vendor, name


class _RoutedResponseAdapter(ProviderAdapter):
    """Wraps a vendor adapter so responses report the full routed model string."""

    def __init__(self, inner: ProviderAdapter, model: str) -> None:
        self.kind = inner.kind
        self._inner = inner
        self._model = model

    def build_request(self, params: LLMParams, config: Any, *, stream: bool) -> HttpRequestSpec:
        return self._inner.build_request(params, config, stream=stream)

    def parse_response(self, data: Dict[str, Any]) -> LLMResponse:
        response = self._inner.parse_response(data)
        response.metadata["model"] = self._model
        return response

    def translate_event(self, event: SseEvent) -> Optional[StreamEvent]:
        return self._inner.translate_event(event)


class AISDKAdapter(ProviderAdapter):
    kind = ProviderKind.AI_SDK

    def __init__(self) -> None:
        self._openai = OpenAIAdapter()
        self._anthropic = AnthropicAdapter()

    def validate_params(self, params: LLMParams, config: Any) -> None:
        if not params.model:
            raise ProviderConfigurationError(f"Model is required for the {self.kind} provider")
        self._route(params.model, config)

    def _route(self, model: str, config: Any) -> Tuple[str, str, Any]:
        vendor, name = parse_model_string(model)
        credentials = config.providers.get(vendor)
        if credentials is None:
            available = ", ".join(sorted(config.providers)) or "none"
            raise ProviderConfigurationError(
                f"Provider {vendor} not configured. Available providers: {available}"
            )
        if vendor not in VENDOR_ENDPOINTS:
            raise ProviderConfigurationError(
                f"Provider {vendor} not supported. Supported providers: {', '.join(VENDOR_ENDPOINTS)}"
            )
        return vendor, name, credentials

    def resolve(self, params: LLMParams, config: Any) -> Tuple[ProviderAdapter, LLMParams, Any]:
        self.validate_params(params, config)
        vendor, name, credentials = self._route(params.model or "", config)
        base_url = credentials.base_url or VENDOR_ENDPOINTS[vendor]
        routed_params = params.model_copy(update={"model": name})
        inner: ProviderAdapter
        if vendor == "anthropic":
            inner = self._anthropic
            vendor_config: Any = AnthropicProviderConfig(api_key=credentials.api_key, base_url=base_url)
        else:
            inner = self._openai
            vendor_config = OpenAIProviderConfig(api_key=credentials.api_key, base_url=base_url)
        logger.debug("Routing %s to %s at %s", params.model, vendor, base_url)
        return _RoutedResponseAdapter(inner, params.model or ""), routed_params, vendor_config

    def build_request(self, params: LLMParams, config: Any, *, stream: bool) -> HttpRequestSpec:
        adapter, params, config = self.resolve(params, config)
        return adapter.build_request(params, config, stream=stream)

    def parse_response(self, data: Dict[str, Any]) -> LLMResponse:
        """Not reached: ``resolve`` hands every call to the vendor adapter.

        The payload shape depends on the vendor, which only the routed model
        string in the call parameters tells apart, so the gateway always
        parses through the adapter returned by ``resolve``.
        """
        raise NotImplementedError("Routed responses are parsed by the adapter returned from resolve()")

    def translate_event(self, event: SseEvent) -> Optional[StreamEvent]:
        """Not reached: streamed events are translated by the adapter returned from ``resolve``."""
        raise NotImplementedError("Routed events are translated by the adapter returned from resolve()")
