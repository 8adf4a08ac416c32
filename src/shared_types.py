"""Shared enums and types for attune."""

from enum import StrEnum


class ItemType(StrEnum):
    EVENT = "event"
    INTENTION = "intention"
    COMMITMENT = "commitment"
    STATE = "state"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "ItemType":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class UpdateType(StrEnum):
    TOTAL = "TOTAL"
    INCREMENT = "INCREMENT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> "UpdateType":
        try:
            return cls((value or "").strip().upper())
        except ValueError:
            return cls.UNKNOWN


class Timeframe(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"


class ReviewState(StrEnum):
    NEW = "new"
    KEPT = "kept"
    DISMISSED = "dismissed"


class TimeInterpretation(StrEnum):
    EXPLICIT_TIME = "explicit_time"
    JUST_NOW = "just_now"
    UNSPECIFIED = "unspecified"


class AmbiguityChoice(StrEnum):
    TOTAL_TODAY = "total_today"
    INCREMENT = "increment"
    SKIP = "skip"


class Tier(StrEnum):
    """Five-step scale shared by mood and momentum displays."""

    VERY_LOW = "very_low"
    LOW = "low"
    NEUTRAL = "neutral"
    GOOD = "good"
    GREAT = "great"


class StreakRule(StrEnum):
    CHECKINS = "checkins"
    COMPLETION = "completion"
