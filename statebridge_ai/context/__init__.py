"""Prompt context: editor document, context entries and mention providers."""

from .assembler import InputContext, sanitize_for_json
from .editor import EditorDocument, document_from_text, empty_document, stringify_document
from .mentions import MentionProvider, StateMentionProvider, item_label
from .models import ContextEntry, ContextSource, MentionItem

__all__ = [
    "ContextEntry",
    "ContextSource",
    "EditorDocument",
    "InputContext",
    "MentionItem",
    "MentionProvider",
    "StateMentionProvider",
    "document_from_text",
    "empty_document",
    "item_label",
    "sanitize_for_json",
    "stringify_document",
]
