from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContextSource(str, Enum):
    mention = "mention"
    subscription = "subscription"
    manual = "manual"


class ContextEntry(BaseModel):
    """
    One piece of context attached to the outbound prompt.

    ``metadata`` usually carries ``label`` plus display hints (``icon``, ``color``).
    ``data`` is kept as given, including values that are not JSON-serializable;
    they are sanitized when the prompt is assembled.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: str
    source: ContextSource
    data: Any = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def label(self) -> Optional[str]:
        return self.metadata.get("label")


class MentionItem(BaseModel):
    """A candidate offered by a mention provider for ``@``-style references."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: str
    data: Any = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    provider_id: Optional[str] = Field(default=None, alias="providerId")
