"""Input context assembler.

Tracks the editor document and the additional context attached to the next
prompt, grouped by a logical key (``key -> [ContextEntry, ...]``), and renders
both into the single prompt string sent to the provider.
"""

from __future__ import annotations

import inspect
import json
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Union

from pydantic import BaseModel

from .editor import EditorDocument, empty_document, stringify_document
from .mentions import MentionProvider, item_label
from .models import ContextEntry, ContextSource, MentionItem

logger = logging.getLogger(__name__)

EntryLike = Union[ContextEntry, Mapping[str, Any]]


CIRCULAR = "[Circular]"


def sanitize_for_json(value: Any) -> Any:
    """Return a JSON-serializable copy of ``value``.

    Callables become ``"[Function]"`` and other objects that have no JSON form
    become ``"[TypeName]"``; containers and models are walked recursively. A
    container that contains itself is rendered as ``"[Circular]"`` at the
    point of re-entry.
    """
    return _sanitize(value, set())


def _sanitize(value: Any, ancestors: Set[int]) -> Any:
    if isinstance(value, Enum):
        return _sanitize(value.value, ancestors)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseModel):
        return _sanitize(value.model_dump(), ancestors)
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        if id(value) in ancestors:
            return CIRCULAR
        # ids on the current path only
        ancestors.add(id(value))
        try:
            if isinstance(value, Mapping):
                return {str(k): _sanitize(v, ancestors) for k, v in value.items()}
            return [_sanitize(v, ancestors) for v in value]
        finally:
            ancestors.discard(id(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if callable(value):
        return "[Function]"
    return f"[{type(value).__name__}]"


def _entry_for_prompt(entry: ContextEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "source": entry.source.value,
        "data": sanitize_for_json(entry.data),
        "metadata": sanitize_for_json(entry.metadata),
    }


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


class InputContext:
    """Editor content plus additional context for the next round-trip."""

    def __init__(self) -> None:
        self._editor_content: Optional[EditorDocument] = None
        self._context: Dict[str, List[ContextEntry]] = {}
        self._mention_providers: Dict[str, MentionProvider] = {}

    # ------------------------------------------------------------------
    # Additional context
    # ------------------------------------------------------------------
    @property
    def additional_context(self) -> Dict[str, List[ContextEntry]]:
        return {key: list(entries) for key, entries in self._context.items()}

    def entries(self, key: str) -> List[ContextEntry]:
        return list(self._context.get(key, []))

    def add_entry(self, key: str, entry: EntryLike) -> bool:
        """Add ``entry`` under ``key``; returns False when an entry with its id already exists."""
        ctx_entry = entry if isinstance(entry, ContextEntry) else ContextEntry.model_validate(dict(entry))
        current = self._context.get(key, [])
        if any(e.id == ctx_entry.id for e in current):
            return False
        self._context[key] = [*current, ctx_entry]
        return True

    def remove_entry(self, key: str, entry_id: str) -> None:
        if key in self._context:
            self._context[key] = [e for e in self._context[key] if e.id != entry_id]

    def clear_by_source(self, source: Union[ContextSource, str]) -> None:
        source = ContextSource(source)
        cleared: Dict[str, List[ContextEntry]] = {}
        for key, entries in self._context.items():
            kept = [e for e in entries if e.source is not source]
            if kept:
                cleared[key] = kept
        self._context = cleared

    def clear_mentions(self) -> None:
        self.clear_by_source(ContextSource.mention)

    def update_additional_context(self, context: Mapping[str, Any]) -> None:
        """Replace, per key, the entries of every list value with subscription entries.

        Non-list values are ignored.
        """
        for key, value in context.items():
            if not isinstance(value, (list, tuple)):
                continue
            replaced: List[ContextEntry] = []
            for index, item in enumerate(value):
                metadata = {"label": item_label(item), **(_field(item, "metadata") or {})}
                replaced.append(
                    ContextEntry(
                        id=str(_field(item, "id") or f"{key}-{index}"),
                        source=ContextSource.subscription,
                        data=item,
                        metadata=metadata,
                    )
                )
            self._context[key] = replaced

    def subscribe(
        self,
        local_state: Any,
        map_fn: Callable[[Any], Mapping[str, Any]],
        *,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> None:
        """Map host state to context and feed it as a subscription update.

        Call again whenever ``local_state`` changes. ``icon`` / ``color`` are
        merged into the metadata of every list item.
        """
        mapped = map_fn(local_state)
        if icon or color:
            enhanced: Dict[str, Any] = {}
            for key, value in mapped.items():
                if isinstance(value, (list, tuple)):
                    enhanced[key] = [
                        {
                            **(item if isinstance(item, Mapping) else {"value": item}),
                            "metadata": {**(_field(item, "metadata") or {}), "icon": icon, "color": color},
                        }
                        for item in value
                    ]
                else:
                    enhanced[key] = value
            mapped = enhanced
        self.update_additional_context(mapped)

    # ------------------------------------------------------------------
    # Editor content
    # ------------------------------------------------------------------
    @property
    def editor_content(self) -> Optional[EditorDocument]:
        return self._editor_content

    def set_editor_content(self, document: Optional[EditorDocument]) -> None:
        self._editor_content = document

    def clear_editor_content(self) -> None:
        self._editor_content = empty_document()

    def stringify_editor_content(self) -> str:
        return stringify_document(self._editor_content)

    def stringify_for_prompt(self) -> str:
        """Render the prompt: editor text followed by the JSON of every context entry."""
        sanitized = {
            key: [_entry_for_prompt(entry) for entry in entries]
            for key, entries in self._context.items()
        }
        return (
            f"User Text: {self.stringify_editor_content()}\n\n"
            f"Additional Context: {json.dumps(sanitized, indent=2, ensure_ascii=False)}"
        )

    # ------------------------------------------------------------------
    # Mentions
    # ------------------------------------------------------------------
    def register_mention_provider(self, provider: MentionProvider) -> None:
        self._mention_providers[provider.id] = provider

    def unregister_mention_provider(self, provider_id: str) -> None:
        self._mention_providers.pop(provider_id, None)

    def get_mention_providers_by_trigger(self, trigger: str) -> List[MentionProvider]:
        return [p for p in self._mention_providers.values() if p.trigger == trigger]

    async def search_mentions(self, query: str, trigger: str = "@") -> List[MentionItem]:
        """Collect candidate items from every provider bound to ``trigger``, tagged with the provider id."""
        results: List[MentionItem] = []
        for provider in self.get_mention_providers_by_trigger(trigger):
            items = provider.get_items(query)
            if inspect.isawaitable(items):
                items = await items
            results.extend(item.model_copy(update={"provider_id": provider.id}) for item in items)
        return results

    def add_mention(self, item: MentionItem) -> Optional[ContextEntry]:
        """Attach a chosen mention item as a ``mention`` entry under its provider's key."""
        provider = self._mention_providers.get(item.provider_id or "")
        if provider is None:
            logger.warning("No mention provider found for item %s", item.id)
            return None
        entry = provider.to_context_entry(item)
        self.add_entry(provider.id, entry)
        return entry
