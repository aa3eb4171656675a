from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

import pytest

from statebridge_ai.capabilities import StateRegistry
from statebridge_ai.context import (
    ContextEntry,
    ContextSource,
    InputContext,
    MentionItem,
    MentionProvider,
    StateMentionProvider,
    document_from_text,
    empty_document,
    item_label,
    sanitize_for_json,
)


class _Color(Enum):
    RED = "red"


def _mention(entry_id: str, label: str = "x") -> ContextEntry:
    return ContextEntry(id=entry_id, source=ContextSource.mention, data={"id": entry_id}, metadata={"label": label})


class TestSanitizeForJson:
    def test_values(self) -> None:
        stamp = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        result = sanitize_for_json(
            {
                "callback": lambda: None,
                "when": stamp,
                "color": _Color.RED,
                "nested": [1, (2, 3), {"fn": print}],
                "opaque": object(),
                "plain": None,
            }
        )

        assert result == {
            "callback": "[Function]",
            "when": "2024-01-02T03:04:05+00:00",
            "color": "red",
            "nested": [1, [2, 3], {"fn": "[Function]"}],
            "opaque": "[object]",
            "plain": None,
        }
        json.dumps(result)

    def test_models_are_dumped(self) -> None:
        assert sanitize_for_json(_mention("m1")) == {
            "id": "m1",
            "source": "mention",
            "data": {"id": "m1"},
            "metadata": {"label": "x"},
        }

    def test_self_containing_containers_are_marked_circular(self) -> None:
        node: Dict[str, Any] = {"a": 1}
        node["self"] = node
        items: List[Any] = [1]
        items.append(items)

        assert sanitize_for_json(node) == {"a": 1, "self": "[Circular]"}
        assert sanitize_for_json(items) == [1, "[Circular]"]
        json.dumps(sanitize_for_json({"node": node, "items": items}))

    def test_indirect_cycle_is_marked_circular(self) -> None:
        parent: Dict[str, Any] = {"name": "parent"}
        parent["children"] = [{"name": "child", "parent": parent}]

        assert sanitize_for_json(parent) == {
            "name": "parent",
            "children": [{"name": "child", "parent": "[Circular]"}],
        }

    def test_shared_reference_is_not_circular(self) -> None:
        shared = {"k": "v"}

        assert sanitize_for_json({"a": shared, "b": [shared, shared]}) == {
            "a": {"k": "v"},
            "b": [{"k": "v"}, {"k": "v"}],
        }


class TestEntries:
    def test_add_entry_is_idempotent_by_id(self) -> None:
        ctx = InputContext()

        assert ctx.add_entry("nodes", _mention("n1")) is True
        assert ctx.add_entry("nodes", _mention("n1", label="other")) is False

        assert [e.label for e in ctx.entries("nodes")] == ["x"]

    def test_add_entry_accepts_mapping(self) -> None:
        ctx = InputContext()

        ctx.add_entry("notes", {"id": "a", "source": "manual", "data": "text"})

        assert ctx.entries("notes")[0].source is ContextSource.manual

    def test_remove_entry(self) -> None:
        ctx = InputContext()
        ctx.add_entry("nodes", _mention("n1"))
        ctx.add_entry("nodes", _mention("n2"))

        ctx.remove_entry("nodes", "n1")
        ctx.remove_entry("missing", "n1")

        assert [e.id for e in ctx.entries("nodes")] == ["n2"]

    def test_clear_mentions_keeps_other_sources_and_drops_empty_keys(self) -> None:
        ctx = InputContext()
        ctx.add_entry("nodes", _mention("n1"))
        ctx.add_entry("mixed", _mention("n2"))
        ctx.add_entry("mixed", ContextEntry(id="s1", source=ContextSource.subscription))

        ctx.clear_mentions()

        context = ctx.additional_context
        assert set(context) == {"mixed"}
        assert [e.id for e in context["mixed"]] == ["s1"]

    def test_additional_context_is_a_copy(self) -> None:
        ctx = InputContext()
        ctx.add_entry("nodes", _mention("n1"))

        ctx.additional_context["nodes"].clear()

        assert len(ctx.entries("nodes")) == 1


class TestSubscriptions:
    def test_update_replaces_entries_per_key(self) -> None:
        ctx = InputContext()
        ctx.add_entry("nodes", _mention("old"))
        ctx.add_entry("other", _mention("keep"))

        ctx.update_additional_context(
            {"nodes": [{"id": "n1", "title": "First"}, {"name": "unnamed"}], "ignored": "scalar"}
        )

        nodes = ctx.entries("nodes")
        assert [e.id for e in nodes] == ["n1", "nodes-1"]
        assert [e.label for e in nodes] == ["First", "unnamed"]
        assert all(e.source is ContextSource.subscription for e in nodes)
        assert [e.id for e in ctx.entries("other")] == ["keep"]
        assert "ignored" not in ctx.additional_context

    def test_subscribe_merges_icon_and_color(self) -> None:
        ctx = InputContext()
        state = {"todos": [{"id": "t1", "title": "Write"}]}

        ctx.subscribe(state, lambda s: {"todos": s["todos"]}, icon="check", color="green")

        entry = ctx.entries("todos")[0]
        assert entry.metadata == {"label": "Write", "icon": "check", "color": "green"}
        assert entry.data["metadata"] == {"icon": "check", "color": "green"}

    def test_subscribe_again_reflects_new_state(self) -> None:
        ctx = InputContext()

        ctx.subscribe([{"id": "a"}], lambda items: {"items": items})
        ctx.subscribe([{"id": "b"}, {"id": "c"}], lambda items: {"items": items})

        assert [e.id for e in ctx.entries("items")] == ["b", "c"]


class TestEditor:
    def test_clear_editor_content(self) -> None:
        ctx = InputContext()
        ctx.set_editor_content(document_from_text("hello"))

        ctx.clear_editor_content()

        assert ctx.editor_content == empty_document()
        assert ctx.stringify_editor_content() == ""

    def test_stringify_for_prompt(self) -> None:
        ctx = InputContext()
        ctx.set_editor_content(document_from_text("Rename node"))
        ctx.add_entry(
            "nodes",
            ContextEntry(
                id="n1",
                source=ContextSource.mention,
                data={"id": "n1", "onClick": lambda: None},
                metadata={"label": "Node é"},
            ),
        )

        prompt = ctx.stringify_for_prompt()

        head, _, payload = prompt.partition("\n\nAdditional Context: ")
        assert head == "User Text: Rename node"
        assert "Node é" in payload
        assert json.loads(payload) == {
            "nodes": [
                {
                    "id": "n1",
                    "source": "mention",
                    "data": {"id": "n1", "onClick": "[Function]"},
                    "metadata": {"label": "Node é"},
                }
            ]
        }

    def test_stringify_for_prompt_without_content(self) -> None:
        assert InputContext().stringify_for_prompt() == "User Text: \n\nAdditional Context: {}"


class TestMentions:
    @pytest.fixture
    def registry(self) -> StateRegistry:
        reg = StateRegistry()
        reg.register(
            "nodes",
            [
                {"id": "n1", "title": "Alpha", "kind": "input"},
                {"id": "n2", "title": "Beta", "kind": "output"},
                {"id": "n3", "label": "Gamma"},
            ],
        )
        return reg

    def test_item_label_resolution(self) -> None:
        assert item_label({"title": "T", "name": "N"}) == "T"
        assert item_label({"id": 7}) == "7"
        assert item_label({}) == "Unknown"
        assert item_label({"name": "N"}, "name") == "N"
        assert item_label({"a": 1}, lambda item: f"item {item['a']}") == "item 1"

    def test_state_provider_is_a_mention_provider(self, registry: StateRegistry) -> None:
        assert isinstance(StateMentionProvider(registry, "nodes"), MentionProvider)

    def test_get_items_filters_by_label_and_search_fields(self, registry: StateRegistry) -> None:
        provider = StateMentionProvider(registry, "nodes", search_fields=["kind"], icon="box")

        assert [i.id for i in provider.get_items("")] == ["n1", "n2", "n3"]
        assert [i.id for i in provider.get_items("bet")] == ["n2"]
        assert [i.id for i in provider.get_items("INPUT")] == ["n1"]
        assert provider.get_items("alpha")[0].metadata["icon"] == "box"

    def test_get_items_is_capped(self) -> None:
        reg = StateRegistry()
        reg.register("many", [{"id": str(i)} for i in range(25)])

        assert len(StateMentionProvider(reg, "many").get_items("")) == 10

    def test_non_list_state_yields_nothing(self) -> None:
        reg = StateRegistry()
        reg.register("count", 3)

        assert StateMentionProvider(reg, "count").get_items("") == []

    @pytest.mark.asyncio
    async def test_search_and_add_mention(self, registry: StateRegistry) -> None:
        ctx = InputContext()
        ctx.register_mention_provider(StateMentionProvider(registry, "nodes", color="blue"))

        found = await ctx.search_mentions("gam")
        assert [(i.id, i.label, i.provider_id) for i in found] == [("n3", "Gamma", "nodes")]

        entry = ctx.add_mention(found[0])

        assert entry is not None
        assert entry.source is ContextSource.mention
        assert entry.metadata["label"] == "Gamma"
        assert entry.metadata["color"] == "blue"
        assert [e.id for e in ctx.entries("nodes")] == ["n3"]

    @pytest.mark.asyncio
    async def test_search_only_uses_matching_trigger_and_awaits_async_providers(self) -> None:
        class _AsyncProvider:
            id = "people"
            trigger = "#"
            label = "People"

            async def get_items(self, query: str) -> List[MentionItem]:
                return [MentionItem(id="p1", label=f"person {query}")]

            def to_context_entry(self, item: MentionItem) -> ContextEntry:
                return ContextEntry(id=item.id, source=ContextSource.mention, metadata={"label": item.label})

        ctx = InputContext()
        ctx.register_mention_provider(_AsyncProvider())

        assert await ctx.search_mentions("x", trigger="@") == []
        found = await ctx.search_mentions("x", trigger="#")
        assert [(i.label, i.provider_id) for i in found] == [("person x", "people")]

        ctx.unregister_mention_provider("people")
        assert ctx.get_mention_providers_by_trigger("#") == []

    def test_add_mention_without_provider(self, caplog: pytest.LogCaptureFixture) -> None:
        ctx = InputContext()

        assert ctx.add_mention(MentionItem(id="x", label="X", providerId="ghost")) is None
        assert ctx.additional_context == {}
        assert "No mention provider found" in caplog.text
