from __future__ import annotations

from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..messages import MessageRole


class SessionState(str, Enum):
    idle = "idle"
    sending = "sending"
    streaming = "streaming"
    waiting = "waiting"
    routing = "routing"
    error = "error"


class SendMessageOptions(BaseModel):
    """Per round-trip overrides; omitted values fall back to provider defaults."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    model: Optional[str] = None
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    route: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    stream: bool = False


class ActionPayload(BaseModel):
    """Structured response asking to run a custom setter."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["action"] = "action"
    state_key: str = Field(..., alias="stateKey", min_length=1)
    setter_key: str = Field(..., alias="setterKey", min_length=1)
    args: Optional[List[Any]] = None


class MessagePayload(BaseModel):
    """Structured response carrying a message with an explicit role."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["message"] = "message"
    role: MessageRole = MessageRole.assistant
    content: Optional[str] = None
