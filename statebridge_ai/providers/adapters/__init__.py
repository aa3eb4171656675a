"""Vendor adapters, one per ``ProviderKind``."""

from .ai_sdk import AISDKAdapter, parse_model_string
from .anthropic import AnthropicAdapter
from .base import HttpRequestSpec, ProviderAdapter
from .custom import CustomAdapter
from .mastra import MastraAdapter
from .openai import OpenAIAdapter

__all__ = [
    "AISDKAdapter",
    "AnthropicAdapter",
    "CustomAdapter",
    "HttpRequestSpec",
    "MastraAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "parse_model_string",
]
