"""Tests for daily mood tiers and storage."""

import pytest

from progress.mood import DailyMoodStore, clamp_mood_score, mood_tier, mood_tier_label
from shared_types import Tier


@pytest.fixture
def store(db_path):
    return DailyMoodStore(db_path)


class TestTiers:
    @pytest.mark.parametrize(
        "score,tier",
        [(0, Tier.VERY_LOW), (2, Tier.VERY_LOW), (3, Tier.LOW), (5, Tier.NEUTRAL), (8, Tier.GOOD), (10, Tier.GREAT)],
    )
    def test_mood_tier(self, score, tier):
        assert mood_tier(score) == tier

    def test_labels(self):
        assert mood_tier_label(1) == "Stressed"
        assert mood_tier_label(9) == "Happy"

    def test_clamp(self):
        assert clamp_mood_score(-2) == 0
        assert clamp_mood_score(42) == 10
        assert clamp_mood_score(None) is None


class TestDailyMoodStore:
    def test_check_in_sets_mood(self, store):
        assert store.set_from_check_in_if_not_overridden("2024-03-01", "Calm", 7, "c1")
        mood = store.get("2024-03-01")
        assert mood.mood_label == "Calm"
        assert mood.mood_score == 7
        assert mood.source_check_in_id == "c1"
        assert not mood.is_manual_override

    def test_latest_check_in_wins(self, store):
        store.set_from_check_in_if_not_overridden("2024-03-01", "Calm", 7, "c1")
        store.set_from_check_in_if_not_overridden("2024-03-01", "Tired", 4, "c2")
        assert store.get("2024-03-01").mood_label == "Tired"

    def test_manual_override_blocks_check_ins(self, store):
        store.set_manual("2024-03-01", "Great", 9)
        assert not store.set_from_check_in_if_not_overridden("2024-03-01", "Low", 3, "c1")
        mood = store.get("2024-03-01")
        assert mood.mood_label == "Great"
        assert mood.is_manual_override

    def test_clear_override_reopens_day(self, store):
        store.set_manual("2024-03-01", "Great", 9)
        store.clear_manual_override("2024-03-01")
        assert store.get("2024-03-01").mood_score is None
        assert store.set_from_check_in_if_not_overridden("2024-03-01", "Low", 3, "c1")

    def test_list_range(self, store):
        for day in ("2024-02-28", "2024-03-01", "2024-03-03"):
            store.set_manual(day, None, 5)
        assert [m.date_key for m in store.list_range("2024-03-01", "2024-03-05")] == ["2024-03-01", "2024-03-03"]

    def test_missing_day(self, store):
        assert store.get("2024-03-01") is None
