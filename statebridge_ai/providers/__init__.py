"""Provider-agnostic LLM gateway and vendor adapters."""

from .gateway import PROVIDER_ADAPTERS, ProviderGateway, get_adapter, provider_config_from_settings
from .types import (
    AISDKProviderConfig,
    AnthropicProviderConfig,
    ChunkEvent,
    CustomProviderConfig,
    DoneEvent,
    ErrorEvent,
    LLMParams,
    LLMResponse,
    MastraProviderConfig,
    MetadataEvent,
    OpenAIProviderConfig,
    ProviderConfig,
    ProviderKind,
    StreamEvent,
    StreamHandle,
    StreamHandler,
    Usage,
    VendorCredentials,
    parse_provider_config,
)

__all__ = [
    "AISDKProviderConfig",
    "AnthropicProviderConfig",
    "ChunkEvent",
    "CustomProviderConfig",
    "DoneEvent",
    "ErrorEvent",
    "LLMParams",
    "LLMResponse",
    "MastraProviderConfig",
    "MetadataEvent",
    "OpenAIProviderConfig",
    "PROVIDER_ADAPTERS",
    "ProviderConfig",
    "ProviderGateway",
    "ProviderKind",
    "StreamEvent",
    "StreamHandle",
    "StreamHandler",
    "Usage",
    "VendorCredentials",
    "get_adapter",
    "parse_provider_config",
    "provider_config_from_settings",
]
