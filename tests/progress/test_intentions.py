"""Tests for intention storage, intention sets and the spoken-goal parser."""

import json
from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from llm.base import LLMError
from progress.intention_parser import IntentionsParser, normalize_unit
from progress.intentions import IntentionStore, set_active_on
from progress.models import Intention, IntentionSet


@pytest.fixture
def store(db_path):
    return IntentionStore(db_path)


class TestIntentionStore:
    def test_save_assigns_id(self, store):
        intention = store.save_intention(Intention(id="", title="Read", target_value=20, unit="pages"))
        assert intention.id
        assert store.get_intention(intention.id) == intention

    def test_list_active_only(self, store):
        store.save_intention(Intention(id="a", title="A", target_value=1, unit="times", created_at=datetime(2024, 1, 1)))
        store.save_intention(
            Intention(id="b", title="B", target_value=1, unit="times", is_active=False, created_at=datetime(2024, 1, 2))
        )
        assert [i.id for i in store.list_intentions()] == ["a", "b"]
        assert [i.id for i in store.list_intentions(active_only=True)] == ["a"]

    def test_aliases_roundtrip(self, store):
        store.save_intention(Intention(id="w", title="Workout", target_value=1, unit="times", aliases=["gym", "lift"]))
        assert store.get_intention("w").aliases == ["gym", "lift"]


class TestIntentionSets:
    def test_start_set_closes_previous(self, store):
        first = store.start_set(["a"], started_at=datetime(2024, 3, 1, 8, 0))
        second = store.start_set(["a", "b"], started_at=datetime(2024, 3, 5, 8, 0))

        assert store.current_set().id == second.id
        closed = store.get_set(first.id)
        assert closed.ended_at == datetime(2024, 3, 5, 8, 0)
        assert [s.id for s in store.list_sets()] == [first.id, second.id]

    def test_active_set_on(self, store):
        first = store.start_set(["a"], started_at=datetime(2024, 3, 1, 8, 0))
        second = store.start_set(["b"], started_at=datetime(2024, 3, 5, 12, 0))

        assert store.active_set_on(date(2024, 2, 28)) is None
        assert store.active_set_on(date(2024, 3, 3)).id == first.id
        # both in force on the switch-over day; the newer one wins
        assert store.active_set_on(date(2024, 3, 5)).id == second.id
        assert store.active_set_on(date(2024, 4, 1)).id == second.id

    def test_intentions_for_set_in_set_order(self, store, sample_intentions):
        for intention in sample_intentions:
            store.save_intention(intention)
        store.save_intention(
            Intention(id="old", title="Old", target_value=1, unit="times", is_active=False)
        )
        intention_set = store.start_set(["workout", "old", "read", "ghost"])

        assert [i.id for i in store.intentions_for_set(intention_set)] == ["workout", "read"]
        assert [i.id for i in store.intentions_for_set(intention_set, active_only=False)] == [
            "workout",
            "old",
            "read",
        ]

    def test_set_active_on_bounds(self):
        s = IntentionSet(id="s", started_at=datetime(2024, 3, 2, 0, 0), ended_at=datetime(2024, 3, 3, 0, 0))
        assert not set_active_on(s, date(2024, 3, 1))
        assert set_active_on(s, date(2024, 3, 2))
        assert not set_active_on(s, date(2024, 3, 3))


@pytest.fixture
def provider():
    return MagicMock()


class TestIntentionsParser:
    @pytest.mark.asyncio
    async def test_parses_drafts(self, provider):
        provider.generate.return_value = json.dumps(
            {
                "intentions": [
                    {"title": " Read ", "target": 20, "unit": "page", "category": "learning", "notes": None},
                    {"title": "Workout", "target": 0, "unit": "sessions"},
                    {"title": "Meditate", "target": True, "unit": "banana", "category": "  "},
                    {"title": "", "target": 3},
                ]
            }
        )
        drafts = await IntentionsParser(provider=provider).parse("read 20 pages, work out, meditate")

        assert [d.title for d in drafts] == ["Read", "Workout", "Meditate"]
        assert drafts[0].target == 20.0
        assert drafts[0].unit == "pages"
        assert drafts[0].category == "learning"
        assert drafts[1].target == 1.0
        assert drafts[2].target == 1.0
        assert drafts[2].unit == "times"
        assert drafts[2].category is None

    @pytest.mark.asyncio
    async def test_empty_input_skips_llm(self, provider):
        assert await IntentionsParser(provider=provider).parse("  ") == []
        provider.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_bad_json_is_empty(self, provider):
        provider.generate.return_value = "nope"
        assert await IntentionsParser(provider=provider).parse("read more") == []

    @pytest.mark.asyncio
    async def test_missing_list_is_empty(self, provider):
        provider.generate.return_value = json.dumps({"intentions": "read"})
        assert await IntentionsParser(provider=provider).parse("read more") == []

    @pytest.mark.asyncio
    async def test_llm_error_propagates(self, provider):
        provider.generate.side_effect = LLMError("no key")
        with pytest.raises(LLMError):
            await IntentionsParser(provider=provider).parse("read more")

    def test_normalize_unit(self):
        assert normalize_unit("Mins") == "minutes"
        assert normalize_unit(None) == "times"
