"""Monday-to-Sunday completion tiers for the week strip."""

from collections.abc import Callable
from datetime import date, datetime

from progress.calculator import date_key, percent_complete, total_for_intention
from progress.models import Intention, IntentionSet, ManualProgressOverride, ProgressEntry
from shared_types import Tier

from .models import DayMomentum, WeekMomentum
from .points import week_days

WEEKDAY_LETTERS = ["M", "T", "W", "T", "F", "S", "S"]


def tier_for_ratio(ratio: float) -> Tier:
    if ratio < 0.25:
        return Tier.VERY_LOW
    if ratio < 0.5:
        return Tier.LOW
    if ratio < 0.75:
        return Tier.NEUTRAL
    if ratio < 1.0:
        return Tier.GOOD
    return Tier.GREAT


def intention_score(percent: float) -> float:
    if percent >= 1.0:
        return 1.0
    if percent > 0:
        return 0.5
    return 0.0


class WeekMomentumCalculator:
    def compute(
        self,
        today: date | datetime,
        intention_set: IntentionSet,
        intentions: list[Intention],
        entries_for_day: Callable[[str], list[ProgressEntry]],
        overrides_for_day: Callable[[str], list[ManualProgressOverride]],
    ) -> WeekMomentum:
        today = today.date() if isinstance(today, datetime) else today
        active = [i for i in intentions if i.is_active]
        days = []
        for offset, day in enumerate(week_days(today)):
            letter = WEEKDAY_LETTERS[offset]
            if day > today:
                days.append(DayMomentum(day, letter, None, Tier.NEUTRAL, is_future=True))
                continue
            if not active:
                days.append(DayMomentum(day, letter, 0.0, Tier.VERY_LOW))
                continue

            key = date_key(day)
            entries = entries_for_day(key)
            overrides = {o.intention_id: o.amount for o in overrides_for_day(key)}
            scores = [
                intention_score(
                    percent_complete(
                        total_for_intention(entries, key, i.id, intention_set.id, overrides.get(i.id)),
                        i.target_value,
                        i.timeframe,
                    )
                )
                for i in active
            ]
            ratio = sum(scores) / len(scores)
            days.append(DayMomentum(day, letter, ratio, tier_for_ratio(ratio), has_data=True))
        return WeekMomentum(days=days)
