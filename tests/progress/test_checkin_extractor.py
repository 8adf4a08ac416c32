"""Tests for CheckInExtractor with mocked LLM."""

import json
from unittest.mock import MagicMock

import pytest

from llm.base import LLMError
from progress.checkin_extractor import CheckInExtractor, parse_update
from progress.models import LocalTime
from shared_types import TimeInterpretation, UpdateType

IDS = {"read", "app", "workout"}


@pytest.fixture
def provider():
    return MagicMock()


@pytest.fixture
def extractor(provider):
    return CheckInExtractor(provider=provider)


class TestParseUpdate:
    def test_full_update(self):
        update = parse_update(
            {
                "intentionId": "read",
                "updateType": "INCREMENT",
                "amount": 5,
                "unit": "pages",
                "confidence": 0.9,
                "evidence": "read five pages",
                "tookPlaceLocalTime": {"hour24": 7, "minute": 30},
                "timeInterpretation": "explicit_time",
            },
            IDS,
        )
        assert update.update_type == UpdateType.INCREMENT
        assert update.amount == 5.0
        assert update.took_place_local_time == LocalTime(7, 30)
        assert update.time_interpretation == TimeInterpretation.EXPLICIT_TIME

    @pytest.mark.parametrize(
        "overrides",
        [
            {"intentionId": "unknown"},
            {"updateType": "DELTA"},
            {"amount": "5"},
            {"amount": True},
            {"confidence": None},
            {"unit": 3},
            {"amount": float("nan")},
            {"confidence": float("inf")},
        ],
    )
    def test_rejects_bad_fields(self, overrides):
        item = {"intentionId": "read", "updateType": "TOTAL", "amount": 5, "unit": "pages", "confidence": 0.8}
        item.update(overrides)
        assert parse_update(item, IDS) is None

    def test_clamps_and_drops_bad_time(self):
        update = parse_update(
            {
                "intentionId": "app",
                "updateType": "TOTAL",
                "amount": -3,
                "unit": "minutes",
                "confidence": 1.7,
                "tookPlaceLocalTime": {"hour24": 25, "minute": 0},
                "timeInterpretation": "whenever",
            },
            IDS,
        )
        assert update.amount == 0.0
        assert update.confidence == 1.0
        assert update.took_place_local_time is None
        assert update.time_interpretation is None

    def test_not_a_dict(self):
        assert parse_update(["read"], IDS) is None


class TestExtract:
    @pytest.mark.asyncio
    async def test_updates_and_mood(self, extractor, provider, sample_intentions):
        provider.generate.return_value = json.dumps(
            {
                "updates": [
                    {"intentionId": "read", "updateType": "TOTAL", "amount": 12, "unit": "pages", "confidence": 0.9},
                    {"intentionId": "ghost", "updateType": "TOTAL", "amount": 1, "unit": "x", "confidence": 0.9},
                ],
                "moodLabel": "  Calm ",
                "moodScore": 14,
            }
        )
        result = await extractor.extract("read 12 pages, feeling calm", sample_intentions, {"read": 3})

        assert [u.intention_id for u in result.updates] == ["read"]
        assert result.mood_label == "Calm"
        assert result.mood_score == 10

        prompt = provider.generate.call_args.kwargs["messages"][1]["content"]
        assert "id: read" in prompt
        assert "- read: 3" in prompt

    @pytest.mark.asyncio
    async def test_fenced_response(self, extractor, provider, sample_intentions):
        provider.generate.return_value = '```json\n{"updates": [], "moodLabel": null, "moodScore": 4}\n```'
        result = await extractor.extract("meh", sample_intentions, {})
        assert result.updates == []
        assert result.mood_label is None
        assert result.mood_score == 4

    @pytest.mark.asyncio
    async def test_non_finite_mood_score_dropped(self, extractor, provider, sample_intentions):
        # json.loads accepts these bare tokens
        provider.generate.return_value = '{"updates": [], "moodLabel": "Ok", "moodScore": NaN}'
        result = await extractor.extract("feeling ok", sample_intentions, {})
        assert result.mood_label == "Ok"
        assert result.mood_score is None

        provider.generate.return_value = '{"updates": [], "moodLabel": null, "moodScore": -Infinity}'
        assert (await extractor.extract("feeling ok", sample_intentions, {})).mood_score is None

    @pytest.mark.asyncio
    async def test_llm_error_is_empty(self, extractor, provider, sample_intentions):
        provider.generate.side_effect = LLMError("down")
        result = await extractor.extract("read 12 pages", sample_intentions, {})
        assert result.updates == []
        assert result.mood_score is None

    @pytest.mark.asyncio
    async def test_invalid_json_is_empty(self, extractor, provider, sample_intentions):
        provider.generate.return_value = "sorry, I can't"
        result = await extractor.extract("read 12 pages", sample_intentions, {})
        assert result.updates == []

    @pytest.mark.asyncio
    async def test_skips_llm_without_input(self, extractor, provider, sample_intentions):
        assert (await extractor.extract("", sample_intentions, {})).updates == []
        assert (await extractor.extract("read", [], {})).updates == []
        provider.generate.assert_not_called()
