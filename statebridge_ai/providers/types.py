"""Provider configuration, call parameters, responses and stream events.

``ProviderConfig`` is a discriminated union over the ``provider`` field; each
variant is frozen, so switching providers means replacing the whole value.
Field aliases accept the camelCase spelling used on the wire and by host
applications (``apiKey``, ``baseURL``, ``systemPrompt``, ``maxTokens``).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Awaitable, Callable, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Closed set of provider kinds the gateway can dispatch to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    MASTRA = "mastra"
    AI_SDK = "ai-sdk"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value


class _ProviderConfigBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class OpenAIProviderConfig(_ProviderConfigBase):
    provider: Literal["openai"] = "openai"
    api_key: str = Field(..., alias="apiKey")
    base_url: str = Field(default="https://api.openai.com/v1", alias="baseURL")


class AnthropicProviderConfig(_ProviderConfigBase):
    provider: Literal["anthropic"] = "anthropic"
    api_key: str = Field(..., alias="apiKey")
    base_url: str = Field(default="https://api.anthropic.com/v1", alias="baseURL")
    api_version: str = Field(default="2023-06-01", alias="apiVersion")


class MastraProviderConfig(_ProviderConfigBase):
    """Agent backend; authentication is optional."""

    provider: Literal["mastra"] = "mastra"
    base_url: str = Field(..., alias="baseURL")
    api_key: Optional[str] = Field(default=None, alias="apiKey")


class VendorCredentials(_ProviderConfigBase):
    api_key: str = Field(..., alias="apiKey")
    base_url: Optional[str] = Field(default=None, alias="baseURL")


class AISDKProviderConfig(_ProviderConfigBase):
    """Multi-vendor routed provider: ``vendor -> credentials``."""

    provider: Literal["ai-sdk"] = "ai-sdk"
    providers: Dict[str, VendorCredentials] = Field(default_factory=dict)


class CustomProviderConfig(_ProviderConfigBase):
    """OpenAI-compatible endpoint described by a free-form mapping.

    Recognised keys: ``base_url``/``baseURL`` (required at call time),
    ``api_key``/``apiKey``, ``headers``, ``path``.
    """

    provider: Literal["custom"] = "custom"
    config: Dict[str, Any] = Field(default_factory=dict)


ProviderConfig = Annotated[
    Union[
        OpenAIProviderConfig,
        AnthropicProviderConfig,
        MastraProviderConfig,
        AISDKProviderConfig,
        CustomProviderConfig,
    ],
    Field(discriminator="provider"),
]

_PROVIDER_CONFIG_ADAPTER: TypeAdapter[ProviderConfig] = TypeAdapter(ProviderConfig)


def parse_provider_config(data: Any) -> ProviderConfig:
    """Validate a mapping (or an existing config model) into a ``ProviderConfig`` variant."""
    if isinstance(data, _ProviderConfigBase):
        return data  # type: ignore[return-value]
    return _PROVIDER_CONFIG_ADAPTER.validate_python(data)


class LLMParams(BaseModel):
    """Parameters of one call; unknown fields are vendor-specific and passed through."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    prompt: str
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
    model: Optional[str] = None
    route: Optional[str] = None

    def extra_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class Usage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt_tokens: int = Field(default=0, alias="promptTokens")
    completion_tokens: int = Field(default=0, alias="completionTokens")
    total_tokens: int = Field(default=0, alias="totalTokens")


class LLMResponse(BaseModel):
    """Normalised single-shot response.

    ``object`` carries a structured payload (action or message) when the
    backend returns one alongside the text.
    """

    content: str = ""
    usage: Optional[Usage] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    object: Optional[Any] = None


@dataclass(frozen=True)
class ChunkEvent:
    content: str
    type: Literal["chunk"] = "chunk"


@dataclass(frozen=True)
class DoneEvent:
    type: Literal["done"] = "done"


@dataclass(frozen=True)
class ErrorEvent:
    error: BaseException
    type: Literal["error"] = "error"


@dataclass(frozen=True)
class MetadataEvent:
    data: Any
    type: Literal["metadata"] = "metadata"


StreamEvent = Union[ChunkEvent, DoneEvent, ErrorEvent, MetadataEvent]
StreamHandler = Callable[[StreamEvent], Union[None, Awaitable[None]]]


def is_terminal(event: StreamEvent) -> bool:
    return isinstance(event, (DoneEvent, ErrorEvent))


class StreamHandle:
    """Handle of one streaming call.

    ``completion`` resolves once a terminal event has been delivered or the
    call was aborted; an abort never rejects it. ``abort()`` is idempotent
    and safe after completion.
    """

    def __init__(self, task: "asyncio.Task[None]") -> None:
        self._task = task
        self._aborted = False
        self._completion: "asyncio.Future[None]" = task.get_loop().create_future()
        task.add_done_callback(self._settle)

    def _settle(self, task: "asyncio.Task[None]") -> None:
        if self._completion.done():
            return
        if task.cancelled():
            self._completion.set_result(None)
            return
        exc = task.exception()
        if exc is not None:
            self._completion.set_exception(exc)
        else:
            self._completion.set_result(None)

    @property
    def completion(self) -> "asyncio.Future[None]":
        return self._completion

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def done(self) -> bool:
        return self._task.done()

    def abort(self) -> None:
        if self._aborted or self._task.done():
            return
        self._aborted = True
        logger.debug("Aborting stream task %s", self._task.get_name())
        self._task.cancel()

    def __await__(self):
        return self._completion.__await__()
