"""Plain-text rendering of the rich-text editor document.

The document is the editor's JSON tree (``{"type": "doc", "content": [...]}``)
made of block nodes (paragraphs, headings, list items, ...) holding inline
nodes. Rendering rules:

- ``text`` nodes contribute their text verbatim.
- ``hardBreak`` renders as a newline.
- ``mention`` nodes render as ``@`` followed by the label, the id or ``mention``.
- ``choice`` nodes render as the selected option, or the first option.
- Sibling block nodes are separated by a newline.

No trimming is applied, so ``stringify_document(document_from_text(text)) == text``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

EditorDocument = Dict[str, Any]

INLINE_NODE_TYPES = frozenset({"text", "hardBreak", "mention", "choice"})


def empty_document() -> EditorDocument:
    return {"type": "doc", "content": [{"type": "paragraph", "content": []}]}


def document_from_text(text: str) -> EditorDocument:
    """Build a document with one paragraph per line of ``text``."""
    paragraphs: List[Dict[str, Any]] = []
    for line in text.split("\n"):
        content = [{"type": "text", "text": line}] if line else []
        paragraphs.append({"type": "paragraph", "content": content})
    return {"type": "doc", "content": paragraphs}


def _is_block(node: Mapping[str, Any]) -> bool:
    return node.get("type") not in INLINE_NODE_TYPES


def _render(node: Mapping[str, Any]) -> str:
    node_type = node.get("type")
    attrs = node.get("attrs") or {}
    if node_type == "text":
        return node.get("text") or ""
    if node_type == "hardBreak":
        return "\n"
    if node_type == "mention":
        return f"@{attrs.get('label') or attrs.get('id') or 'mention'}"
    if node_type == "choice":
        options = attrs.get("options") or []
        selected = attrs.get("selectedOption") or (options[0] if options else "")
        return str(selected)

    out: List[str] = []
    previous: Optional[Mapping[str, Any]] = None
    for child in node.get("content") or []:
        if not isinstance(child, Mapping):
            continue
        if previous is not None and (_is_block(previous) or _is_block(child)):
            out.append("\n")
        out.append(_render(child))
        previous = child
    return "".join(out)


def stringify_document(document: Optional[Mapping[str, Any]]) -> str:
    """Flatten an editor document to plain text; ``None`` renders as an empty string."""
    if not document:
        return ""
    return _render(document)
