"""Adapter for a user-described OpenAI-compatible endpoint."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from ...errors import ProviderConfigurationError
from ..types import LLMParams, ProviderKind
from .openai import OpenAIAdapter


class CustomAdapter(OpenAIAdapter):
    kind = ProviderKind.CUSTOM

    def validate_params(self, params: LLMParams, config: Any) -> None:
        super().validate_params(params, config)
        self._connection(config)

    def _connection(self, config: Any) -> Tuple[str, Dict[str, str]]:
        options: Dict[str, Any] = dict(config.config)
        base_url = options.get("base_url") or options.get("baseURL")
        if not base_url:
            raise ProviderConfigurationError("Custom provider config requires 'base_url'")
        headers: Dict[str, str] = {str(k): str(v) for k, v in (options.get("headers") or {}).items()}
        api_key = options.get("api_key") or options.get("apiKey")
        if api_key:
            headers.setdefault("Authorization", f"Bearer {api_key}")
        path = options.get("path") or self.default_path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{str(base_url).rstrip('/')}{path}", headers
