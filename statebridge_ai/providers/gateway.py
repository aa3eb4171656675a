"""Provider gateway.

Single entry point for LLM calls. Holds the active ``ProviderConfig`` and a
shared ``httpx.AsyncClient``, dispatches each call to the adapter registered
for the config's kind, and tracks the one authoritative in-flight stream.

Usage:
    >>> gateway = ProviderGateway({"provider": "openai", "apiKey": "sk-..."})
    >>> response = await gateway.call(LLMParams(prompt="hi", model="gpt-4o-mini"))
    >>> handle = gateway.stream(LLMParams(prompt="hi", model="gpt-4o-mini"), print)
    >>> await handle.completion
    >>> await gateway.aclose()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from ..core import config as core_config
from ..errors import ProviderConfigurationError
from .adapters import (
    AISDKAdapter,
    AnthropicAdapter,
    CustomAdapter,
    MastraAdapter,
    OpenAIAdapter,
    ProviderAdapter,
)
from .adapters.base import emit
from .types import (
    AISDKProviderConfig,
    AnthropicProviderConfig,
    ErrorEvent,
    LLMParams,
    LLMResponse,
    MastraProviderConfig,
    OpenAIProviderConfig,
    ProviderConfig,
    ProviderKind,
    StreamEvent,
    StreamHandle,
    StreamHandler,
    VendorCredentials,
    is_terminal,
    parse_provider_config,
)

logger = logging.getLogger(__name__)

PROVIDER_ADAPTERS: Dict[ProviderKind, ProviderAdapter] = {
    ProviderKind.OPENAI: OpenAIAdapter(),
    ProviderKind.ANTHROPIC: AnthropicAdapter(),
    ProviderKind.MASTRA: MastraAdapter(),
    ProviderKind.AI_SDK: AISDKAdapter(),
    ProviderKind.CUSTOM: CustomAdapter(),
}

_unhandled = set(ProviderKind) - set(PROVIDER_ADAPTERS)
if _unhandled:
    raise RuntimeError(f"No adapter registered for provider kinds: {sorted(k.value for k in _unhandled)}")

ParamsLike = Union[LLMParams, Mapping[str, Any]]
ConfigLike = Union[ProviderConfig, Mapping[str, Any]]


def get_adapter(kind: Union[ProviderKind, str]) -> ProviderAdapter:
    return PROVIDER_ADAPTERS[ProviderKind(kind)]


def _secret(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.get_secret_value() if hasattr(value, "get_secret_value") else str(value)


def provider_config_from_settings(
    kind: Union[ProviderKind, str], settings: Optional[core_config.Settings] = None
) -> ProviderConfig:
    """Build a ``ProviderConfig`` for ``kind`` from environment-backed settings.

    Raises:
        ProviderConfigurationError: If a credential the kind requires is not set,
            or for the custom kind, which has no settings-backed form.
    """
    settings = settings or core_config.settings
    kind = ProviderKind(kind)
    if kind is ProviderKind.OPENAI:
        api_key = _secret(settings.openai.api_key)
        if not api_key:
            raise ProviderConfigurationError("OPENAI_API_KEY is not set")
        return OpenAIProviderConfig(api_key=api_key, base_url=settings.openai.base_url)
    if kind is ProviderKind.ANTHROPIC:
        api_key = _secret(settings.anthropic.api_key)
        if not api_key:
            raise ProviderConfigurationError("ANTHROPIC_API_KEY is not set")
        return AnthropicProviderConfig(
            api_key=api_key, base_url=settings.anthropic.base_url, api_version=settings.anthropic.api_version
        )
    if kind is ProviderKind.MASTRA:
        return MastraProviderConfig(base_url=settings.mastra.base_url, api_key=_secret(settings.mastra.api_key))
    if kind is ProviderKind.AI_SDK:
        ai_sdk = settings.ai_sdk
        keys = {
            "openai": ai_sdk.openai_api_key,
            "anthropic": ai_sdk.anthropic_api_key,
            "google": ai_sdk.google_api_key,
            "mistral": ai_sdk.mistral_api_key,
            "groq": ai_sdk.groq_api_key,
        }
        providers = {
            vendor: VendorCredentials(api_key=_secret(key)) for vendor, key in keys.items() if _secret(key)
        }
        if not providers:
            raise ProviderConfigurationError("No vendor API key is set for the ai-sdk provider")
        return AISDKProviderConfig(providers=providers)
    raise ProviderConfigurationError("The custom provider must be configured explicitly")


class _TerminalGuard:
    """Forwards events to a handler until the first terminal event, then drops the rest."""

    def __init__(self, handler: StreamHandler) -> None:
        self._handler = handler
        self.terminated = False

    async def __call__(self, event: StreamEvent) -> None:
        if self.terminated:
            logger.debug("Dropping %s event after stream termination", event.type)
            return
        if is_terminal(event):
            self.terminated = True
        await emit(self._handler, event)


class ProviderGateway:
    """Provider-agnostic LLM gateway with single-shot and streaming calls."""

    def __init__(
        self,
        config: Optional[ConfigLike] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._config: Optional[ProviderConfig] = parse_provider_config(config) if config is not None else None
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._is_connected = False
        self._current_stream: Optional[StreamHandle] = None

    # ------------------------------------------------------------------
    # Configuration and connection state
    # ------------------------------------------------------------------
    @property
    def provider_config(self) -> Optional[ProviderConfig]:
        return self._config

    def set_provider_config(self, config: Optional[ConfigLike]) -> None:
        """Replace the whole provider config; ``None`` unsets it."""
        self._config = parse_provider_config(config) if config is not None else None
        if self._config is not None:
            logger.info("Provider set to %s", self._config.provider)

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @property
    def is_streaming(self) -> bool:
        return self._current_stream is not None and not self._current_stream.done

    @property
    def current_stream(self) -> Optional[StreamHandle]:
        return self._current_stream

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            timeout = self._timeout if self._timeout is not None else core_config.settings.http_timeout
            self._client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
            self._owns_client = True
        return self._client

    async def connect(self) -> None:
        self._http()
        self._is_connected = True

    async def disconnect(self) -> None:
        self.cancel_stream()
        self._is_connected = False

    async def aclose(self) -> None:
        """Cancel any stream and close the HTTP client when the gateway created it."""
        await self.disconnect()
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ProviderGateway":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------
    def _prepare(self, params: ParamsLike, config: Optional[ConfigLike]) -> tuple[ProviderAdapter, LLMParams, Any]:
        cfg = parse_provider_config(config) if config is not None else self._config
        if cfg is None:
            raise ProviderConfigurationError("No LLM provider configured")
        llm_params = params if isinstance(params, LLMParams) else LLMParams.model_validate(dict(params))
        adapter = get_adapter(cfg.provider)
        adapter.validate_params(llm_params, cfg)
        return adapter, llm_params, cfg

    async def call(self, params: ParamsLike, *, config: Optional[ConfigLike] = None) -> LLMResponse:
        """Single-shot call.

        Raises:
            ProviderConfigurationError: Before any I/O when the config is missing
                or ``params`` lack what the provider kind requires.
            ProviderTransportError: On connection failure or non-OK status.
        """
        adapter, llm_params, cfg = self._prepare(params, config)
        return await adapter.call(llm_params, cfg, self._http())

    def stream(
        self,
        params: ParamsLike,
        handler: StreamHandler,
        *,
        config: Optional[ConfigLike] = None,
    ) -> StreamHandle:
        """Start a streaming call and return its handle.

        Must be called from a running event loop. Any prior in-flight stream is
        aborted first. Transport failures reach ``handler`` as one
        ``ErrorEvent``; an abort is never reported to ``handler``.

        Raises:
            ProviderConfigurationError: Synchronously, before any I/O.
        """
        adapter, llm_params, cfg = self._prepare(params, config)
        self.cancel_stream()
        client = self._http()
        guard = _TerminalGuard(handler)
        task = asyncio.get_running_loop().create_task(
            self._run_stream(adapter, llm_params, cfg, client, guard),
            name=f"statebridge-stream-{cfg.provider}",
        )
        handle = StreamHandle(task)
        self._current_stream = handle
        task.add_done_callback(lambda _t: self._stream_finished(handle))
        logger.debug("Stream started (%s)", cfg.provider)
        return handle

    async def _run_stream(
        self,
        adapter: ProviderAdapter,
        params: LLMParams,
        config: Any,
        client: httpx.AsyncClient,
        guard: _TerminalGuard,
    ) -> None:
        try:
            await adapter.run_stream(params, config, client, guard)
        except asyncio.CancelledError:
            logger.debug("Stream cancelled")
            raise
        except Exception as e:
            logger.error("Stream failed: %s", e, exc_info=True)
            await guard(ErrorEvent(error=e))

    def _stream_finished(self, handle: StreamHandle) -> None:
        if self._current_stream is handle:
            self._current_stream = None
        logger.debug("Stream finished (aborted=%s)", handle.aborted)

    def cancel_stream(self) -> None:
        """Abort the current stream, if any. Safe to call repeatedly."""
        if self._current_stream is not None:
            self._current_stream.abort()
