from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    user = "user"
    assistant = "assistant"
    system = "system"


class Message(BaseModel):
    """
    One chat message.

    ``type`` is open-ended (``"text"`` by default); type-specific fields are
    accepted as extra attributes, e.g. ``Message(role="assistant", type="todo", items=[...])``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(default_factory=lambda: str(uuid4()))
    role: MessageRole
    type: str = "text"
    content: str = ""
    created_at: datetime = Field(default_factory=_utc_now, alias="createdAt")
    metadata: Dict[str, Any] = Field(default_factory=dict)
