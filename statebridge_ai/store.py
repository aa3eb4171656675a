"""The owned store shared by every component of one bridge instance."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

import httpx

from .capabilities import StateRegistry
from .context import InputContext
from .messages import MessageStore
from .providers import ProviderConfig, ProviderGateway


@dataclass
class BridgeStore:
    """Capability registry, input context, messages and gateway of one session.

    Components receive the store by reference and mutate it only through the
    public methods of its parts.
    """

    states: StateRegistry = field(default_factory=StateRegistry)
    context: InputContext = field(default_factory=InputContext)
    messages: MessageStore = field(default_factory=MessageStore)
    gateway: ProviderGateway = field(default_factory=ProviderGateway)

    @classmethod
    def create(
        cls,
        provider_config: Optional[Union[ProviderConfig, Mapping[str, Any]]] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> "BridgeStore":
        return cls(gateway=ProviderGateway(provider_config, client=client, timeout=timeout))

    async def aclose(self) -> None:
        await self.gateway.aclose()
