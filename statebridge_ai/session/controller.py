"""Agent session controller.

Orchestrates one round-trip: assembles the prompt from the input context,
records the user message, calls the provider gateway (single-shot or
streaming) and routes the result either to the message store or to a custom
setter of the capability registry.

State machine::

    idle -> sending -> (streaming | waiting) -> routing -> idle
                  \\___________________________________/-> error -> idle
"""

from __future__ import annotations

import inspect
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from ..core import config as core_config
from ..errors import ProviderConfigurationError
from ..messages import Message, MessageRole
from ..providers import (
    ChunkEvent,
    ErrorEvent,
    LLMParams,
    LLMResponse,
    MetadataEvent,
    ProviderKind,
    StreamEvent,
    StreamHandler,
)
from ..schema import TypeValidator
from ..store import BridgeStore
from .models import ActionPayload, MessagePayload, SendMessageOptions, SessionState

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "An error occurred while sending your message."

IMPROVE_PROMPT_SYSTEM_PROMPT = (
    "You are an AI assistant that helps improve prompts for clarity and specificity.\n"
    "Given a user's prompt, analyze it and enhance it to be more specific, detailed, and effective.\n"
    "Focus on adding context, clarifying ambiguities, and structuring the prompt for better results.\n"
    "Return only the improved prompt without explanations or meta-commentary."
)

_ACTION = TypeValidator(ActionPayload)
_MESSAGE = TypeValidator(MessagePayload)

StateListener = Callable[[SessionState], None]


def _structured(obj: Any) -> Optional[Dict[str, Any]]:
    if isinstance(obj, BaseModel):
        return obj.model_dump(by_alias=True)
    if isinstance(obj, Mapping):
        return dict(obj)
    return None


def _structured_from_text(text: str) -> Optional[Dict[str, Any]]:
    """Parse streamed text as a structured payload when it is a JSON object with a ``type``."""
    stripped = text.strip()
    if not stripped.startswith("{"):
        return None
    try:
        data = json.loads(stripped)
    except ValueError:
        return None
    return data if isinstance(data, dict) and data.get("type") else None


class AgentSession:
    """
    Runs round-trips between the user, the provider and the capability registry.

    Args:
        store: The shared ``BridgeStore``.
        settings: Settings providing default models and routes (module settings by default).
    """

    def __init__(self, store: BridgeStore, *, settings: Optional[core_config.Settings] = None) -> None:
        self._store = store
        self._settings = settings or core_config.settings
        self._state = SessionState.idle
        self._is_processing = False
        self._listeners: List[StateListener] = []
        self._round_trip = 0

    @property
    def store(self) -> BridgeStore:
        return self._store

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    def add_state_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        logger.debug("Session state %s -> %s", self._state.value, state.value)
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _advance(self, round_trip: int, state: SessionState) -> None:
        """Move to ``state`` only while ``round_trip`` is the authoritative call."""
        if round_trip == self._round_trip:
            self._set_state(state)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def build_params(self, prompt: str, options: Optional[SendMessageOptions] = None) -> LLMParams:
        """
        Build provider call parameters, filling in the default model or route.

        Raises:
            ProviderConfigurationError: If no provider is configured.
        """
        options = options or SendMessageOptions()
        config = self._store.gateway.provider_config
        if config is None:
            raise ProviderConfigurationError("No provider configured")
        kind = ProviderKind(config.provider)
        values: Dict[str, Any] = {
            "prompt": prompt,
            "system_prompt": options.system_prompt,
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
            "model": options.model,
        }
        if kind is ProviderKind.MASTRA:
            values["route"] = options.route or self._settings.mastra.default_route
            if options.conversation_id:
                values["conversationId"] = options.conversation_id
        elif kind is ProviderKind.ANTHROPIC:
            values["model"] = options.model or self._settings.anthropic.model
        elif kind is ProviderKind.AI_SDK:
            values["model"] = options.model or self._settings.ai_sdk.default_model
        else:
            values["model"] = options.model or self._settings.openai.model
        return LLMParams(**values)

    # ------------------------------------------------------------------
    # Round-trip
    # ------------------------------------------------------------------
    async def send_message(self, options: Optional[Union[SendMessageOptions, Mapping[str, Any]]] = None) -> None:
        """
        Run one round-trip with the current editor content and context.

        Failures never propagate: they are logged and surfaced to the user as
        a generic assistant message.

        A newer call becomes the authoritative round-trip: it aborts this
        call's stream, and from then on only the newer call drives ``state``
        and ``is_processing``.
        """
        if options is not None and not isinstance(options, SendMessageOptions):
            options = SendMessageOptions.model_validate(dict(options))
        options = options or SendMessageOptions()
        context = self._store.context

        self._round_trip += 1
        round_trip = self._round_trip
        self._is_processing = True
        self._set_state(SessionState.sending)
        try:
            editor_text = context.stringify_editor_content()
            prompt = context.stringify_for_prompt()
            self._store.messages.add(Message(role=MessageRole.user, content=editor_text))
            context.clear_mentions()

            params = self.build_params(prompt, options)
            if options.stream:
                self._advance(round_trip, SessionState.streaming)
                completed = await self._stream_round_trip(params, round_trip)
            else:
                self._advance(round_trip, SessionState.waiting)
                response = await self._store.gateway.call(params)
                self._advance(round_trip, SessionState.routing)
                await self.handle_result(response)
                completed = True

            if completed and round_trip == self._round_trip:
                context.clear_editor_content()
        except Exception:
            logger.error("Error sending message", exc_info=True)
            self._advance(round_trip, SessionState.error)
            self._store.messages.add(Message(role=MessageRole.assistant, content=FAILURE_MESSAGE))
        finally:
            if round_trip == self._round_trip:
                self._is_processing = False
                self._set_state(SessionState.idle)
            else:
                logger.debug("Round-trip %d superseded by %d", round_trip, self._round_trip)

    async def _stream_round_trip(self, params: LLMParams, round_trip: int) -> bool:
        """Stream a call into one assistant message; returns False when the stream was aborted."""
        messages = self._store.messages
        chunks: List[str] = []
        metadata: Dict[str, Any] = {}
        errors: List[BaseException] = []
        message_id: Optional[str] = None

        def on_event(event: StreamEvent) -> None:
            nonlocal message_id
            if isinstance(event, ChunkEvent):
                chunks.append(event.content)
                text = "".join(chunks)
                if message_id is None:
                    message_id = messages.add(Message(role=MessageRole.assistant, content=text)).id
                else:
                    messages.update(message_id, content=text)
            elif isinstance(event, MetadataEvent):
                if isinstance(event.data, Mapping):
                    metadata.update(event.data)
            elif isinstance(event, ErrorEvent):
                errors.append(event.error)

        handle = self._store.gateway.stream(params, on_event)
        await handle
        if errors:
            raise errors[0]
        if handle.aborted:
            logger.info("Stream aborted; keeping partial response")
            return False

        text = "".join(chunks)
        self._advance(round_trip, SessionState.routing)
        response = LLMResponse(content=text, metadata=metadata, object=_structured_from_text(text))
        await self._route(response, streamed_message_id=message_id)
        return True

    async def handle_result(self, response: LLMResponse) -> None:
        """
        Route a response: run an action, append a structured message, or append plain text.

        Unknown or malformed structured payloads fall back to the plain text.
        """
        await self._route(response)

    async def _route(self, response: LLMResponse, *, streamed_message_id: Optional[str] = None) -> None:
        messages = self._store.messages
        payload = _structured(response.object)
        kind = payload.get("type") if payload else None

        if kind == "action":
            action = _ACTION.validate(payload)
            if action.ok:
                if streamed_message_id is not None:
                    messages.delete(streamed_message_id)
                await self._store.states.execute_custom_setter(
                    action.value.state_key, action.value.setter_key, *(action.value.args or [])
                )
                return
            logger.warning("Ignoring malformed action payload: %s", action.error)
        elif kind == "message":
            message = _MESSAGE.validate(payload)
            if message.ok:
                self._put_message(
                    message.value.role, message.value.content or response.content, streamed_message_id
                )
                return
            logger.warning("Ignoring malformed message payload: %s", message.error)
        elif kind is not None:
            logger.debug("Unknown structured response type %r; using text content", kind)

        if response.content:
            self._put_message(MessageRole.assistant, response.content, streamed_message_id)

    def _put_message(self, role: MessageRole, content: str, message_id: Optional[str]) -> None:
        if message_id is not None and self._store.messages.get(message_id) is not None:
            self._store.messages.update(message_id, role=role, content=content)
        else:
            self._store.messages.add(Message(role=role, content=content))

    def cancel(self) -> None:
        """Abort the in-flight stream, if any."""
        self._store.gateway.cancel_stream()

    async def improve_prompt(self, prompt: str, handler: Optional[StreamHandler] = None) -> str:
        """
        Rewrite ``prompt`` to be clearer and more specific.

        Streams through ``handler`` when one is given, otherwise makes a
        single-shot call.
        """
        if handler is None:
            params = self.build_params(
                prompt,
                SendMessageOptions(system_prompt=IMPROVE_PROMPT_SYSTEM_PROMPT, temperature=0.7, max_tokens=1000),
            )
            response = await self._store.gateway.call(params)
            return response.content

        params = self.build_params(prompt, SendMessageOptions(system_prompt=IMPROVE_PROMPT_SYSTEM_PROMPT))
        chunks: List[str] = []

        async def relay(event: StreamEvent) -> None:
            if isinstance(event, ChunkEvent):
                chunks.append(event.content)
            outcome = handler(event)
            if inspect.isawaitable(outcome):
                await outcome

        await self._store.gateway.stream(params, relay)
        return "".join(chunks)
