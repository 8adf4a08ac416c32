"""Data models for intentions, check-ins and the progress ledger."""

from dataclasses import dataclass, field
from datetime import datetime

from shared_types import TimeInterpretation, Timeframe, UpdateType


@dataclass
class Intention:
    id: str
    title: str
    target_value: float
    unit: str
    timeframe: str = Timeframe.DAILY
    category: str | None = None
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    aliases: list[str] = field(default_factory=list)


@dataclass
class IntentionSet:
    id: str
    started_at: datetime
    ended_at: datetime | None = None
    intention_ids: list[str] = field(default_factory=list)


@dataclass
class CheckIn:
    id: str
    created_at: datetime
    intention_set_id: str
    transcript: str = ""
    audio_file_name: str | None = None


@dataclass
class ProgressEntry:
    """One append-only ledger row. Never updated once written."""

    id: str
    created_at: datetime
    date_key: str
    intention_set_id: str
    intention_id: str
    update_type: UpdateType
    amount: float
    unit: str
    confidence: float = 1.0
    evidence: str | None = None
    source_check_in_id: str = ""
    took_place_at: datetime | None = None

    @property
    def effective_at(self) -> datetime:
        return self.took_place_at or self.created_at


@dataclass
class ManualProgressOverride:
    date_key: str
    intention_id: str
    amount: float
    unit: str
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class DailyMood:
    date_key: str
    mood_label: str | None = None
    mood_score: int | None = None
    updated_at: datetime = field(default_factory=datetime.now)
    source_check_in_id: str | None = None
    is_manual_override: bool = False


@dataclass
class LocalTime:
    hour24: int
    minute: int


@dataclass
class CheckInUpdate:
    """A progress update proposed by the check-in extractor or fallback parser."""

    intention_id: str
    update_type: UpdateType
    amount: float
    unit: str
    confidence: float
    evidence: str | None = None
    took_place_local_time: LocalTime | None = None
    time_interpretation: TimeInterpretation | None = None


@dataclass
class CheckInExtraction:
    updates: list[CheckInUpdate] = field(default_factory=list)
    mood_label: str | None = None
    mood_score: int | None = None


@dataclass
class ParsedIntention:
    """Draft intention parsed from speech, before the user saves it."""

    title: str
    target: float = 1
    unit: str = "times"
    category: str | None = None
    notes: str | None = None
