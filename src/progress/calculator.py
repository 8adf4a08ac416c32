"""Pure progress math over the append-only entry log.

Within one (day, intention, set) a TOTAL entry wins over every INCREMENT;
only the most recently created TOTAL counts. A manual override beats both.
None of these functions raise on bad targets; they degrade to 0.
"""

from datetime import date, datetime

from shared_types import Timeframe, UpdateType

from .models import Intention, ManualProgressOverride, ProgressEntry

DAYS_PER_WEEK = 7.0


def date_key(value: date | datetime) -> str:
    """Local calendar day as YYYY-MM-DD."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%Y-%m-%d")


def total_for_intention(
    entries: list[ProgressEntry],
    day_key: str,
    intention_id: str,
    set_id: str,
    override_amount: float | None = None,
) -> float:
    if override_amount is not None:
        return override_amount

    matching = [
        e
        for e in entries
        if e.date_key == day_key and e.intention_id == intention_id and e.intention_set_id == set_id
    ]
    totals = [e for e in matching if e.update_type == UpdateType.TOTAL]
    if totals:
        return max(totals, key=lambda e: e.created_at).amount
    return sum(e.amount for e in matching if e.update_type == UpdateType.INCREMENT)


def effective_target(target: float, timeframe: str) -> float:
    if (timeframe or "").lower() == Timeframe.WEEKLY:
        return target / DAYS_PER_WEEK
    return target


def percent_complete(total: float, target: float, timeframe: str) -> float:
    """Fraction of today's target reached, clamped to [0, 1]."""
    if target <= 0:
        return 0.0
    ratio = total / effective_target(target, timeframe)
    return min(1.0, max(0.0, ratio))


def overall_percent_complete(
    intentions: list[Intention], totals_by_intention: dict[str, float]
) -> float:
    """Mean completion across active intentions; zero-target ones are left out."""
    counted = [i for i in intentions if i.is_active and i.target_value > 0]
    if not counted:
        return 0.0
    percents = [
        percent_complete(totals_by_intention.get(i.id, 0.0), i.target_value, i.timeframe)
        for i in counted
    ]
    return sum(percents) / len(percents)


def totals_for_day(
    entries: list[ProgressEntry],
    day_key: str,
    intentions: list[Intention],
    set_id: str,
    overrides: list[ManualProgressOverride] | None = None,
) -> dict[str, float]:
    """Per-intention totals for one day with manual overrides applied."""
    override_by_id = {o.intention_id: o.amount for o in overrides or [] if o.date_key == day_key}
    return {
        i.id: total_for_intention(entries, day_key, i.id, set_id, override_by_id.get(i.id))
        for i in intentions
    }
