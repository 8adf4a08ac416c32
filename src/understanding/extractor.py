"""LLM-powered item extraction from segment transcripts.

Sparse by default: an empty item list is a normal answer, not a failure.
A response that can't be decoded is retried once with a stricter
instruction; after that the segment degrades to "nothing extracted".
"""

import asyncio
import json
import uuid
from dataclasses import dataclass
from datetime import datetime

import structlog
from pydantic import BaseModel

from llm.base import LLMError
from shared_types import ItemType, ReviewState

from .canonicalizer import canonicalize
from .classifier import classify_type
from .models import CalendarCandidate, ExtractedItem, RawCandidateItem
from .strength import score_strength

logger = structlog.get_logger()

_EXTRACTION_SYSTEM = """You are an extraction assistant that identifies meaningful items from voice transcripts.

Extract ONLY items that are:
- High-confidence (you're sure this is what the user meant)
- Meaningful (worth tracking or acting on)
- Clearly stated (not vague or implied)

SPARSE BY DEFAULT: Returning an empty items array is completely valid and preferred over low-quality extractions.

ALLOWED TYPES:
- "event": time-bound occurrences (meetings, appointments, deadlines)
- "intention": things the user plans or wants to do
- "commitment": promises or obligations to self or others
- "state": observations about current conditions, feelings, or situations

ALLOWED CATEGORIES (can assign multiple):
- "fitness_health": physical health, exercise, medical, sleep, nutrition
- "career_work": job, projects, professional development
- "money_finance": finances, purchases, investments, budgets
- "personal_growth": learning, skills, self-improvement, hobbies
- "relationships_social": family, friends, social connections
- "stress_load": stress, overwhelm, burnout, pressure
- "peace_wellbeing": calm, contentment, mental health, balance

TITLE (1-3 words, max 4 if needed):
- Noun phrase, simplest phrasing ("Workout", "Call Mom", "Budget Review")
- No filler words ("like", "felt", "start", "would", "going to", "want to")
- Do NOT echo transcript phrasing verbatim

PROVENANCE:
- sourceQuote: exact words from transcript
- contextBefore / contextAfter: a few surrounding words, or null

SCORES (0.0 to 1.0):
- confidence: how certain you are this extraction is CORRECT, not how important it is
- strength: how important the item seems (heuristics will override this)

FINGERPRINT: a short concept label like "workout" or "call_mom". No time qualifiers.

CALENDAR: for events with explicit date/time, optionally provide calendarCandidate
with suggestedTitle, startISO8601, endISO8601, isAllDay, notes; otherwise null.

Output a JSON object: {"items": [{"type", "title", "summary", "categories",
"confidence", "strength", "sourceQuote", "contextBefore", "contextAfter",
"fingerprint", "calendarCandidate"}]}
If nothing meets the quality bar, return: {"items": []}"""

_STRICT_SUFFIX = "\n\nIMPORTANT: Return ONLY valid JSON matching the schema. No additional text."


class ExtractionResponse(BaseModel):
    items: list[RawCandidateItem]


@dataclass
class SegmentWork:
    """One transcript segment waiting for extraction."""

    session_id: str
    segment_id: str
    segment_index: int
    transcript_text: str
    prior_context_text: str | None = None

    @property
    def key(self) -> str:
        return f"{self.session_id}_{self.segment_id}"


def strip_fences(response: str) -> str:
    text = (response or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1]
    if text.endswith("```"):
        text = text.rsplit("```", 1)[0]
    return text.strip()


def finalize_item(
    raw: RawCandidateItem,
    session_id: str,
    segment_id: str,
    segment_index: int,
    now: datetime | None = None,
) -> ExtractedItem:
    """Map a raw candidate to a canonical item with deterministic type/strength."""
    now = now or datetime.now()
    calendar = None
    if raw.calendar_candidate is not None:
        calendar = CalendarCandidate(**raw.calendar_candidate.model_dump())

    item = ExtractedItem(
        id=uuid.uuid4().hex[:16],
        session_id=session_id,
        segment_id=segment_id,
        segment_index=segment_index,
        type=ItemType.parse(raw.type),
        title=raw.title,
        summary=raw.summary,
        categories=[c.strip().lower() for c in raw.categories if c and c.strip()],
        confidence=raw.confidence,
        strength=raw.strength,
        source_quote=raw.source_quote,
        context_before=raw.context_before,
        context_after=raw.context_after,
        fingerprint=raw.fingerprint,
        review_state=ReviewState.NEW,
        calendar_candidate=calendar,
        created_at=now,
        extracted_at=now,
    )
    item = canonicalize(item)
    item.type = classify_type(item.source_quote, item.title, item.type)
    item.strength = score_strength(item.title, item.source_quote)
    return item


class ItemExtractor:
    """Extracts candidate items from transcripts using an LLM."""

    def __init__(self, provider=None, max_transcript_chars: int = 6000, max_tokens: int = 1500):
        self._provider = provider
        self.max_transcript_chars = max_transcript_chars
        self.max_tokens = max_tokens

    def _get_provider(self):
        if self._provider:
            return self._provider
        from llm.factory import create_cheap_provider

        self._provider = create_cheap_provider()
        return self._provider

    async def extract(
        self, transcript: str, prior_context: str | None = None
    ) -> list[RawCandidateItem]:
        """Raw candidates for one transcript; [] when nothing usable came back."""
        if not transcript or not transcript.strip():
            return []

        prompt = self._build_prompt(transcript, prior_context)
        system = _EXTRACTION_SYSTEM
        for attempt in (1, 2):
            try:
                response = await asyncio.to_thread(
                    self._get_provider().generate,
                    messages=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": prompt},
                    ],
                    max_tokens=self.max_tokens,
                    json_mode=True,
                )
                return self._parse_response(response)
            except (LLMError, ValueError) as e:
                logger.warning("understanding.extract_decode_failed", attempt=attempt, error=str(e))
                system = _EXTRACTION_SYSTEM + _STRICT_SUFFIX
        return []

    async def extract_segment(self, work: SegmentWork) -> list[ExtractedItem]:
        """Full extraction for one queued segment, canonicalized and scored."""
        raw_items = await self.extract(work.transcript_text, work.prior_context_text)
        now = datetime.now()
        items = [
            finalize_item(raw, work.session_id, work.segment_id, work.segment_index, now)
            for raw in raw_items
        ]
        logger.info(
            "understanding.extract_ok",
            session_id=work.session_id,
            segment_index=work.segment_index,
            items=len(items),
        )
        return items

    def _build_prompt(self, transcript: str, prior_context: str | None) -> str:
        message = ""
        if prior_context and prior_context.strip():
            message += f"PRIOR CONTEXT (from previous segment):\n{prior_context.strip()}\n\n"
        message += f"TRANSCRIPT:\n{transcript[: self.max_transcript_chars]}"
        return message

    def _parse_response(self, response: str) -> list[RawCandidateItem]:
        """Decode the model output; raises ValueError on anything malformed."""
        payload = json.loads(strip_fences(response))
        if not isinstance(payload, dict):
            raise ValueError("extraction response is not a JSON object")
        return ExtractionResponse.model_validate(payload).items
