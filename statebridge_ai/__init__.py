"""StateBridge-AI.

This package lets a conversational AI backend ("agent") both talk to a user
and mutate a host application's live state through a declared, validated
capability surface.

High-level architecture
-----------------------

One round-trip flows through five cooperating parts:

- **Capability registry** (``statebridge_ai.capabilities``): named host state
  entries, each exposing custom setters an agent may invoke by name.
- **Input context** (``statebridge_ai.context``): the editor document plus
  mention/subscription/manual context entries, rendered into one prompt.
- **Event stream codec** (``statebridge_ai.transport``): incremental
  ``text/event-stream`` parsing until the terminal ``done`` event.
- **Provider gateway** (``statebridge_ai.providers``): single-shot and
  streaming calls normalised across OpenAI, Anthropic, an agent backend
  (Mastra), multi-vendor routing (ai-sdk) and custom OpenAI-compatible
  endpoints.
- **Agent session** (``statebridge_ai.session``): runs the round-trip and
  routes structured responses either to a message or to a setter.

Typical workflow
----------------

1. Create a ``BridgeStore`` with a provider config.
2. Register host state and custom setters on ``store.states``.
3. Set the editor content on ``store.context``.
4. ``await AgentSession(store).send_message()``.
5. Read ``store.messages``; actions have already been applied to the registry.
"""

from .capabilities import RegisteredState, Setter, SetterParameter, StateRegistry
from .context import ContextEntry, ContextSource, InputContext
from .errors import ProviderConfigurationError, ProviderError, ProviderTransportError, StreamClosedError
from .messages import Message, MessageRole, MessageStore
from .providers import LLMParams, LLMResponse, ProviderGateway, ProviderKind
from .session import AgentSession, SendMessageOptions, SessionState
from .store import BridgeStore

__all__ = [
    "AgentSession",
    "BridgeStore",
    "ContextEntry",
    "ContextSource",
    "InputContext",
    "LLMParams",
    "LLMResponse",
    "Message",
    "MessageRole",
    "MessageStore",
    "ProviderConfigurationError",
    "ProviderError",
    "ProviderGateway",
    "ProviderKind",
    "ProviderTransportError",
    "RegisteredState",
    "SendMessageOptions",
    "SessionState",
    "Setter",
    "SetterParameter",
    "StateRegistry",
    "StreamClosedError",
]
