"""Derived momentum views. Recomputed on demand, never stored."""

from dataclasses import dataclass, field
from datetime import date, datetime

from shared_types import Tier


@dataclass
class MomentumPoint:
    id: str
    at: datetime
    intention_id: str
    intention_title: str
    color_index: int
    percent: float
    check_in_id: str | None = None
    slot_offset: int = 0
    draw_order: int = 1

    @property
    def bucket(self) -> str:
        """Check-in id when linked, else the minute the progress happened in."""
        return self.check_in_id or self.at.strftime("%Y-%m-%dT%H:%M")


@dataclass
class DayMomentum:
    day: date
    weekday_letter: str
    completion_ratio: float | None
    tier: Tier
    is_future: bool = False
    has_data: bool = False


@dataclass
class WeekMomentum:
    days: list[DayMomentum] = field(default_factory=list)
