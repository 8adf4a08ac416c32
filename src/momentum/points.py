"""Chart points for one day: running completion per intention over time."""

from datetime import date, datetime, timedelta

import structlog

from progress.calculator import effective_target
from progress.models import CheckIn, Intention, ProgressEntry
from shared_types import UpdateType

from .layout import assign_slots
from .models import MomentumPoint

logger = structlog.get_logger()

Y_AXIS_DEFAULT = 100.0
Y_AXIS_EXTENDED = 150.0


def effective_time(entry: ProgressEntry, check_ins_by_id: dict[str, CheckIn]) -> datetime:
    if entry.took_place_at:
        return entry.took_place_at
    check_in = check_ins_by_id.get(entry.source_check_in_id)
    if check_in:
        return check_in.created_at
    return entry.created_at


def build_points(
    day_key: str,
    intentions: list[Intention],
    check_ins: list[CheckIn],
    entries: list[ProgressEntry],
) -> list[MomentumPoint]:
    """One point per (intention, bucket), at the highest percent seen in it.

    Percent is not clamped, so overshooting a target shows above 100.
    """
    check_ins_by_id = {c.id: c for c in check_ins}
    by_id = {i.id: i for i in intentions}
    color_index = {i.id: index for index, i in enumerate(intentions)}

    day_entries = [e for e in entries if e.date_key == day_key]
    day_entries.sort(key=lambda e: (effective_time(e, check_ins_by_id), e.created_at))

    running: dict[str, float] = {}
    best: dict[tuple[str, str], MomentumPoint] = {}
    for entry in day_entries:
        if entry.update_type == UpdateType.TOTAL:
            running[entry.intention_id] = entry.amount
        elif entry.update_type == UpdateType.INCREMENT:
            running[entry.intention_id] = running.get(entry.intention_id, 0.0) + entry.amount
        else:
            continue

        intention = by_id.get(entry.intention_id)
        if intention is None or intention.target_value <= 0:
            continue

        percent = running[entry.intention_id] / effective_target(intention.target_value, intention.timeframe) * 100.0
        linked = entry.source_check_in_id if entry.source_check_in_id in check_ins_by_id else None
        point = MomentumPoint(
            id=f"{linked or entry.id}-{intention.id}",
            at=effective_time(entry, check_ins_by_id),
            intention_id=intention.id,
            intention_title=intention.title,
            color_index=color_index[intention.id],
            percent=percent,
            check_in_id=linked,
        )
        key = (intention.id, point.bucket)
        current = best.get(key)
        if current is None or point.percent > current.percent:
            best[key] = point

    points = sorted(best.values(), key=lambda p: (p.at, p.color_index))
    logger.debug("momentum.points_built", day=day_key, entries=len(day_entries), points=len(points))
    return assign_slots(points)


def week_days(containing: date | datetime) -> list[date]:
    """Monday through Sunday of the week holding `containing`."""
    day = containing.date() if isinstance(containing, datetime) else containing
    monday = day - timedelta(days=day.weekday())
    return [monday + timedelta(days=offset) for offset in range(7)]


def y_axis_max(points: list[MomentumPoint]) -> float:
    if any(p.percent > 100 for p in points):
        return Y_AXIS_EXTENDED
    return Y_AXIS_DEFAULT
