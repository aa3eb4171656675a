from __future__ import annotations

import pytest

from statebridge_ai.context import document_from_text, empty_document, stringify_document


@pytest.mark.parametrize(
    "text",
    ["", "hello", "line one\nline two", "a\n\nb", "trailing space  ", "\nleading newline"],
)
def test_plain_text_round_trip(text: str) -> None:
    assert stringify_document(document_from_text(text)) == text


def test_empty_document_renders_empty() -> None:
    assert stringify_document(empty_document()) == ""
    assert stringify_document(None) == ""


def test_inline_nodes() -> None:
    doc = {
        "type": "doc",
        "content": [
            {
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "Move "},
                    {"type": "mention", "attrs": {"id": "n1", "label": "Node A"}},
                    {"type": "text", "text": " to"},
                    {"type": "hardBreak"},
                    {"type": "choice", "attrs": {"options": ["left", "right"], "selectedOption": "right"}},
                ],
            }
        ],
    }

    assert stringify_document(doc) == "Move @Node A to\nright"


def test_mention_and_choice_fallbacks() -> None:
    doc = {
        "type": "doc",
        "content": [
            {
                "type": "paragraph",
                "content": [
                    {"type": "mention", "attrs": {"id": "n2"}},
                    {"type": "text", "text": " "},
                    {"type": "mention", "attrs": {}},
                    {"type": "text", "text": " "},
                    {"type": "choice", "attrs": {"options": ["first", "second"]}},
                    {"type": "choice", "attrs": {}},
                ],
            }
        ],
    }

    assert stringify_document(doc) == "@n2 @mention first"


def test_block_siblings_are_newline_separated() -> None:
    doc = {
        "type": "doc",
        "content": [
            {"type": "heading", "attrs": {"level": 1}, "content": [{"type": "text", "text": "Title"}]},
            {
                "type": "bulletList",
                "content": [
                    {"type": "listItem", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "a"}]}]},
                    {"type": "listItem", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "b"}]}]},
                ],
            },
        ],
    }

    assert stringify_document(doc) == "Title\na\nb"
