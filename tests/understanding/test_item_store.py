"""Tests for extracted item persistence and corrections."""

from datetime import datetime

import pytest

from shared_types import ItemType, ReviewState
from understanding.canonicalizer import fingerprint
from understanding.models import CalendarCandidate, ExtractedItem, ItemCorrection
from understanding.store import (
    ExtractionStore,
    effective_categories,
    effective_title,
    effective_type,
)


def _item(item_id, title="Workout", session_id="s1", index=0, created=None, **kwargs):
    return ExtractedItem(
        id=item_id,
        session_id=session_id,
        segment_id=f"seg{index:03d}",
        segment_index=index,
        type=ItemType.INTENTION,
        title=title,
        categories=["fitness_health"],
        fingerprint=fingerprint(title),
        created_at=created or datetime(2024, 3, 1, 9, index),
        extracted_at=created or datetime(2024, 3, 1, 9, index),
        **kwargs,
    )


@pytest.fixture
def store(db_path):
    return ExtractionStore(db_path)


class TestItems:
    def test_save_and_get(self, store):
        item = _item(
            "a",
            source_quote="gym",
            calendar_candidate=CalendarCandidate(suggested_title="Gym", is_all_day=False),
        )
        store.save_items([item])

        loaded = store.get_item("a")
        assert loaded == item
        assert loaded.calendar_candidate.suggested_title == "Gym"

    def test_get_missing(self, store):
        assert store.get_item("nope") is None

    def test_list_by_session(self, store):
        store.save_items([_item("a", index=1), _item("b", index=0), _item("c", session_id="s2")])
        assert [i.id for i in store.list_items("s1")] == ["b", "a"]
        assert len(store.list_items()) == 3

    def test_resolve_keeps_order_and_skips_orphans(self, store):
        store.save_items([_item("a"), _item("b", index=1)])
        assert [i.id for i in store.resolve_items(["b", "gone", "a"])] == ["b", "a"]
        assert store.resolve_items([]) == []

    def test_review_state(self, store):
        store.save_items([_item("a")])
        assert store.set_review_state("a", ReviewState.KEPT)
        loaded = store.get_item("a")
        assert loaded.review_state == ReviewState.KEPT
        assert loaded.reviewed_at is not None
        assert not store.set_review_state("missing", ReviewState.DISMISSED)


class TestCorrections:
    def test_roundtrip(self, store):
        correction = ItemCorrection(
            item_id="a",
            corrected_title="Strength Training",
            corrected_type=ItemType.COMMITMENT,
            corrected_categories=["fitness_health", "personal_growth"],
            note="more specific",
        )
        store.save_correction(correction)
        loaded = store.get_correction("a")
        assert loaded.corrected_title == "Strength Training"
        assert loaded.corrected_type == ItemType.COMMITMENT
        assert loaded.corrected_categories == ["fitness_health", "personal_growth"]
        assert not loaded.is_incorrect

    def test_load_all(self, store):
        store.save_correction(ItemCorrection(item_id="a", is_incorrect=True))
        store.save_correction(ItemCorrection(item_id="b", note="x"))
        corrections = store.load_corrections()
        assert set(corrections) == {"a", "b"}
        assert corrections["a"].is_incorrect

    def test_correction_never_mutates_item(self, store):
        store.save_items([_item("a")])
        store.save_correction(ItemCorrection(item_id="a", corrected_title="Run"))
        assert store.get_item("a").title == "Workout"


class TestEffectiveValues:
    def test_overlay(self):
        item = _item("a")
        correction = ItemCorrection(
            item_id="a", corrected_title=" Run ", corrected_type=ItemType.STATE, corrected_categories=[]
        )
        assert effective_title(item, correction) == "Run"
        assert effective_type(item, correction) == ItemType.STATE
        assert effective_categories(item, correction) == []

    def test_no_correction(self):
        item = _item("a")
        assert effective_title(item, None) == "Workout"
        assert effective_type(item, None) == ItemType.INTENTION
        assert effective_categories(item, None) == ["fitness_health"]

    def test_blank_title_ignored(self):
        assert effective_title(_item("a"), ItemCorrection(item_id="a", corrected_title="  ")) == "Workout"
