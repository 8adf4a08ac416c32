"""LLM extraction of progress updates and mood from check-in transcripts."""

import asyncio
import json
import math

import structlog

from llm.base import LLMError
from shared_types import TimeInterpretation, UpdateType
from understanding.extractor import strip_fences

from .models import CheckInExtraction, CheckInUpdate, Intention, LocalTime
from .mood import clamp_mood_score

logger = structlog.get_logger()

_CHECKIN_SYSTEM = """You extract progress updates and optional mood from daily check-in transcripts.

Given the user's current intentions (with target values and units) and today's progress so far, identify any explicit progress mentioned in the transcript.

RULES:
- Only extract updates that clearly reference one of the provided intentions (match by intentionId).
- Titles and aliases are equivalent signals: if the transcript mentions a title or any alias, map to that intentionId.
- updateType: "INCREMENT" when the user adds to their total (e.g., "I read 3 more pages").
- updateType: "TOTAL" when the user states an absolute total (e.g., "I've read 10 pages today").
- amount: numeric value only. Never negative.
- unit: must match the intention's unit (pages, minutes, sessions, etc.).
- confidence: 0.0 to 1.0, how certain you are this extraction is correct.
- evidence: short exact quote from the transcript that supports this update (optional).

TIME:
- tookPlaceLocalTime: {"hour24": 0-23, "minute": 0-59} when the user states a clock time; else null.
- timeInterpretation: "explicit_time" when tookPlaceLocalTime is set; "just_now" for "just now"/"just went"; otherwise "unspecified".

MOOD (optional):
- moodLabel: one word or short phrase (e.g., "Calm", "Anxious", "Tired") or null.
- moodScore: integer 0 to 10 (0 = lowest, 10 = highest, 5 = neutral) or null.

Return ONLY a JSON object: {"updates": [{"intentionId", "updateType", "amount", "unit",
"confidence", "evidence", "tookPlaceLocalTime", "timeInterpretation"}], "moodLabel", "moodScore"}
If no progress or mood is clearly stated, return: {"updates": [], "moodLabel": null, "moodScore": null}"""


def _number(value) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return float(value)


def parse_update(item: dict, intention_ids: set[str]) -> CheckInUpdate | None:
    """One update from the model, or None if any required field is off."""
    if not isinstance(item, dict):
        return None
    intention_id = item.get("intentionId")
    update_type = item.get("updateType")
    amount = _number(item.get("amount"))
    unit = item.get("unit")
    confidence = _number(item.get("confidence"))

    if intention_id not in intention_ids:
        return None
    if update_type not in (UpdateType.TOTAL.value, UpdateType.INCREMENT.value):
        return None
    if amount is None or confidence is None or not isinstance(unit, str):
        return None

    local_time = None
    raw_time = item.get("tookPlaceLocalTime")
    if isinstance(raw_time, dict):
        hour, minute = raw_time.get("hour24"), raw_time.get("minute")
        if isinstance(hour, int) and isinstance(minute, int) and 0 <= hour < 24 and 0 <= minute < 60:
            local_time = LocalTime(hour24=hour, minute=minute)

    interpretation = None
    raw_interp = item.get("timeInterpretation")
    if raw_interp in {t.value for t in TimeInterpretation}:
        interpretation = TimeInterpretation(raw_interp)

    evidence = item.get("evidence")
    return CheckInUpdate(
        intention_id=intention_id,
        update_type=UpdateType(update_type),
        amount=max(0.0, amount),
        unit=unit or "units",
        confidence=min(1.0, max(0.0, confidence)),
        evidence=evidence if isinstance(evidence, str) else None,
        took_place_local_time=local_time,
        time_interpretation=interpretation,
    )


class CheckInExtractor:
    """Extracts progress updates + mood from a check-in via an LLM."""

    def __init__(self, provider=None, max_tokens: int = 800):
        self._provider = provider
        self.max_tokens = max_tokens

    def _get_provider(self):
        if self._provider:
            return self._provider
        from llm.factory import create_cheap_provider

        self._provider = create_cheap_provider()
        return self._provider

    async def extract(
        self,
        transcript: str,
        intentions: list[Intention],
        todays_totals: dict[str, float],
        check_in_id: str = "",
    ) -> CheckInExtraction:
        """Any failure degrades to an empty result so the fallback parser can run."""
        if not transcript or not transcript.strip() or not intentions:
            return CheckInExtraction()

        prompt = self._build_prompt(transcript, intentions, todays_totals)
        try:
            response = await asyncio.to_thread(
                self._get_provider().generate,
                messages=[
                    {"role": "system", "content": _CHECKIN_SYSTEM},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                json_mode=True,
            )
        except LLMError as e:
            logger.warning("progress.checkin_extract_failed", check_in_id=check_in_id, error=str(e))
            return CheckInExtraction()

        return self._parse_response(response, {i.id for i in intentions}, check_in_id)

    def _build_prompt(
        self, transcript: str, intentions: list[Intention], todays_totals: dict[str, float]
    ) -> str:
        lines = ["CURRENT INTENTIONS:"]
        for i in intentions:
            lines.append(
                f"- id: {i.id} | title: {i.title} | aliases: {','.join(i.aliases)} "
                f"| target: {i.target_value:g} {i.unit} | timeframe: {i.timeframe}"
            )
        lines.append("")
        lines.append("TODAY'S TOTALS SO FAR (do not duplicate; add to or replace as appropriate):")
        for intention_id, total in todays_totals.items():
            lines.append(f"- {intention_id}: {total:g}")
        lines.append("")
        lines.append(f"TRANSCRIPT:\n{transcript}")
        return "\n".join(lines)

    def _parse_response(
        self, response: str, intention_ids: set[str], check_in_id: str
    ) -> CheckInExtraction:
        try:
            payload = json.loads(strip_fences(response))
        except json.JSONDecodeError:
            logger.warning("progress.checkin_parse_failed", check_in_id=check_in_id, response=response[:200])
            return CheckInExtraction()
        if not isinstance(payload, dict):
            return CheckInExtraction()

        updates = []
        raw_updates = payload.get("updates")
        if isinstance(raw_updates, list):
            for item in raw_updates:
                update = parse_update(item, intention_ids)
                if update is not None:
                    updates.append(update)

        score = _number(payload.get("moodScore"))
        mood_score = clamp_mood_score(int(score)) if score is not None else None
        label = payload.get("moodLabel")
        mood_label = label.strip() if isinstance(label, str) and label.strip() else None

        logger.info(
            "progress.checkin_extract_ok",
            check_in_id=check_in_id,
            updates=len(updates),
            mood_label=mood_label,
            mood_score=mood_score,
        )
        return CheckInExtraction(updates=updates, mood_label=mood_label, mood_score=mood_score)
