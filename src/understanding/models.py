"""Data models for extracted items, topics and corrections."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared_types import ItemType, ReviewState

STRENGTH_MIN = 0.20
STRENGTH_MAX = 0.65


class RawCalendarCandidate(BaseModel):
    """Calendar suggestion as emitted by the extraction model."""

    model_config = ConfigDict(populate_by_name=True)

    suggested_title: Optional[str] = Field(None, alias="suggestedTitle")
    start_iso8601: Optional[str] = Field(None, alias="startISO8601")
    end_iso8601: Optional[str] = Field(None, alias="endISO8601")
    is_all_day: Optional[bool] = Field(None, alias="isAllDay")
    notes: Optional[str] = None


class RawCandidateItem(BaseModel):
    """One item from the extraction model, before canonicalization.

    The model's fingerprint is best-effort only; the canonical one is
    recomputed from the title.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str
    title: str = Field(..., min_length=1)
    summary: str = ""
    categories: list[str] = Field(default_factory=list)
    confidence: float = 0.5
    strength: float = 0.4
    source_quote: str = Field("", alias="sourceQuote")
    context_before: Optional[str] = Field(None, alias="contextBefore")
    context_after: Optional[str] = Field(None, alias="contextAfter")
    fingerprint: str = ""
    calendar_candidate: Optional[RawCalendarCandidate] = Field(None, alias="calendarCandidate")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        return min(1.0, max(0.0, v))


@dataclass
class CalendarCandidate:
    suggested_title: str | None = None
    start_iso8601: str | None = None
    end_iso8601: str | None = None
    is_all_day: bool | None = None
    notes: str | None = None


@dataclass
class ExtractedItem:
    id: str
    session_id: str
    segment_id: str
    segment_index: int
    type: ItemType
    title: str
    summary: str = ""
    categories: list[str] = field(default_factory=list)
    confidence: float = 0.5
    strength: float = 0.4
    source_quote: str = ""
    context_before: str | None = None
    context_after: str | None = None
    fingerprint: str = ""
    review_state: ReviewState = ReviewState.NEW
    reviewed_at: datetime | None = None
    calendar_candidate: CalendarCandidate | None = None
    created_at: datetime = field(default_factory=datetime.now)
    extracted_at: datetime = field(default_factory=datetime.now)


@dataclass
class ItemCorrection:
    """User overlay on an extracted item; never mutates the item itself."""

    item_id: str
    is_incorrect: bool = False
    corrected_title: str | None = None
    corrected_type: ItemType | None = None
    corrected_categories: list[str] | None = None
    note: str | None = None
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class TopicAggregate:
    topic_key: str
    canonical_key: str
    display_title: str
    primary_category: str
    first_seen_at: datetime
    last_seen_at: datetime
    categories: list[str] = field(default_factory=list)
    occurrence_count: int = 1
    item_ids: list[str] = field(default_factory=list)

    def add_mention(self, item_id: str, seen_at: datetime, categories: list[str]):
        self.occurrence_count += 1
        self.last_seen_at = seen_at
        self.categories = sorted(set(self.categories) | set(categories))
        self.item_ids.append(item_id)


@dataclass
class TopicUpdateStats:
    created: int = 0
    updated: int = 0
    skipped_incorrect: int = 0
    skipped_existing: int = 0
    collisions: int = 0
    total: int = 0
