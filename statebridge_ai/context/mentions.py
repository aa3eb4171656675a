"""Mention providers.

A mention provider offers candidate items for a trigger character (``@`` by
default) and turns the item a user picks into a ``mention`` context entry.
``StateMentionProvider`` draws its items from a list-valued registry state.
"""

from __future__ import annotations

import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)
from uuid import uuid4

from .models import ContextEntry, ContextSource, MentionItem

if TYPE_CHECKING:
    from ..capabilities.registry import StateRegistry

logger = logging.getLogger(__name__)

MAX_MENTION_ITEMS = 10

LabelField = Union[str, Callable[[Any], str]]


@runtime_checkable
class MentionProvider(Protocol):
    id: str
    trigger: str
    label: Optional[str]

    def get_items(self, query: str) -> Union[List[MentionItem], Awaitable[List[MentionItem]]]: ...

    def to_context_entry(self, item: MentionItem) -> ContextEntry: ...


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def item_label(item: Any, label_field: Optional[LabelField] = None) -> str:
    """Label of a state item: ``label_field`` if given, else title/label/name/id."""
    if callable(label_field):
        return label_field(item)
    if isinstance(label_field, str):
        return str(_field(item, label_field) or _field(item, "id") or "Unknown")
    for name in ("title", "label", "name", "id"):
        value = _field(item, name)
        if value:
            return str(value)
    return "Unknown"


class StateMentionProvider:
    """Offers the items of a list-valued registry state as mentions.

    The provider id is the state key, which is also the context key chosen
    mentions are filed under.
    """

    def __init__(
        self,
        registry: "StateRegistry",
        state_key: str,
        *,
        trigger: str = "@",
        label_field: Optional[LabelField] = None,
        search_fields: Sequence[str] = (),
        description: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> None:
        self.id = state_key
        self.trigger = trigger
        self.label = description or f"{state_key} items"
        self.description = description
        self.icon = icon
        self.color = color
        self._registry = registry
        self._label_field = label_field
        self._search_fields = tuple(search_fields)

    def _matches(self, item: Any, query: str) -> bool:
        needle = query.lower()
        if needle in item_label(item, self._label_field).lower():
            return True
        for name in self._search_fields:
            value = _field(item, name)
            if value and needle in str(value).lower():
                return True
        return False

    def get_items(self, query: str) -> List[MentionItem]:
        value = self._registry.read(self.id)
        if not isinstance(value, list):
            return []
        candidates = [item for item in value if self._matches(item, query)] if query else value
        items: List[MentionItem] = []
        for item in candidates[:MAX_MENTION_ITEMS]:
            metadata: Dict[str, Any] = dict(_field(item, "metadata") or {})
            metadata["icon"] = self.icon or metadata.get("icon")
            metadata["color"] = self.color or metadata.get("color")
            items.append(
                MentionItem(
                    id=str(_field(item, "id") or uuid4().hex),
                    label=item_label(item, self._label_field),
                    data=item,
                    metadata=metadata,
                )
            )
        return items

    def to_context_entry(self, item: MentionItem) -> ContextEntry:
        metadata = {"label": item.label, **item.metadata}
        metadata["icon"] = item.metadata.get("icon") or self.icon
        metadata["color"] = item.metadata.get("color") or self.color
        return ContextEntry(id=item.id, source=ContextSource.mention, data=item.data, metadata=metadata)
