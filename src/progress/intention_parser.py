"""Turns a spoken description of goals into draft intentions."""

import asyncio
import json

import structlog

from understanding.extractor import strip_fences

from .models import ParsedIntention

logger = structlog.get_logger()

_PARSE_SYSTEM = """You convert a short spoken description of personal goals into structured intentions.

For each distinct goal return:
- title: short name (e.g. "Read", "Work on app", "Workout")
- target: positive number per timeframe (default 1)
- unit: one of minutes, pages, times, miles, steps, sessions, reps, cups, glasses
- category: optional single word (e.g. "health", "learning") or null
- notes: optional short note or null

Return ONLY a JSON object: {"intentions": [{"title", "target", "unit", "category", "notes"}]}
If nothing is described, return {"intentions": []}"""

UNIT_ALIASES = {
    "minute": "minutes",
    "minutes": "minutes",
    "min": "minutes",
    "mins": "minutes",
    "page": "pages",
    "pages": "pages",
    "time": "times",
    "times": "times",
    "mile": "miles",
    "miles": "miles",
    "mi": "miles",
    "step": "steps",
    "steps": "steps",
    "session": "sessions",
    "sessions": "sessions",
    "rep": "reps",
    "reps": "reps",
    "cup": "cups",
    "cups": "cups",
    "glass": "glasses",
    "glasses": "glasses",
}
DEFAULT_UNIT = "times"


def normalize_unit(unit: str | None) -> str:
    return UNIT_ALIASES.get((unit or "").strip().lower(), DEFAULT_UNIT)


def _parse_item(item) -> ParsedIntention | None:
    if not isinstance(item, dict):
        return None
    title = item.get("title")
    if not isinstance(title, str) or not title.strip():
        return None
    target = item.get("target")
    if isinstance(target, bool) or not isinstance(target, (int, float)) or target <= 0:
        target = 1
    category = item.get("category")
    notes = item.get("notes")
    return ParsedIntention(
        title=title.strip(),
        target=float(target),
        unit=normalize_unit(item.get("unit")),
        category=category.strip() if isinstance(category, str) and category.strip() else None,
        notes=notes.strip() if isinstance(notes, str) and notes.strip() else None,
    )


class IntentionsParser:
    def __init__(self, provider=None, max_tokens: int = 600):
        self._provider = provider
        self.max_tokens = max_tokens

    def _get_provider(self):
        if self._provider:
            return self._provider
        from llm.factory import create_cheap_provider

        self._provider = create_cheap_provider()
        return self._provider

    async def parse(self, transcript: str) -> list[ParsedIntention]:
        """Raises LLMError when the provider fails; an unparseable reply yields []."""
        if not transcript or not transcript.strip():
            return []

        response = await asyncio.to_thread(
            self._get_provider().generate,
            messages=[
                {"role": "system", "content": _PARSE_SYSTEM},
                {"role": "user", "content": transcript.strip()},
            ],
            max_tokens=self.max_tokens,
            json_mode=True,
        )
        try:
            payload = json.loads(strip_fences(response))
        except json.JSONDecodeError:
            logger.warning("intentions.parse_failed", response=response[:200])
            return []

        raw = payload.get("intentions") if isinstance(payload, dict) else None
        if not isinstance(raw, list):
            return []
        parsed = [p for p in (_parse_item(item) for item in raw) if p is not None]
        logger.info("intentions.parsed", count=len(parsed))
        return parsed
