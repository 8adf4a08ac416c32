"""Consecutive-day streaks counted back from today.

Two rules are supported. `checkins` counts days with at least one check-in.
`completion` also requires an active intention set and an overall completion
of at least 80% with manual overrides applied.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta

import structlog

from progress.calculator import date_key, overall_percent_complete, totals_for_day
from progress.intentions import IntentionStore, set_active_on
from progress.models import CheckIn, Intention, IntentionSet, ManualProgressOverride, ProgressEntry
from progress.store import CheckInStore, OverrideStore, ProgressStore
from shared_types import StreakRule

logger = structlog.get_logger()

MAX_DAYS = 30
COMPLETION_THRESHOLD = 0.8


@dataclass
class StreakData:
    check_ins: list[CheckIn] = field(default_factory=list)
    entries: list[ProgressEntry] = field(default_factory=list)
    overrides: list[ManualProgressOverride] = field(default_factory=list)
    intention_sets: list[IntentionSet] = field(default_factory=list)
    intentions_by_set: dict[str, list[Intention]] = field(default_factory=dict)


class StreakCalculator:
    def __init__(
        self,
        rule: StreakRule | str = StreakRule.CHECKINS,
        max_days: int = MAX_DAYS,
        completion_threshold: float = COMPLETION_THRESHOLD,
    ):
        self.rule = StreakRule(rule)
        self.max_days = max_days
        self.completion_threshold = completion_threshold

    def compute(self, data: StreakData, today: date | None = None) -> int:
        today = today or date.today()
        if self.rule == StreakRule.COMPLETION:
            qualifies = self._completion_rule(data)
        else:
            qualifies = self._check_in_rule(data)

        streak = 0
        for offset in range(self.max_days):
            if not qualifies(today - timedelta(days=offset)):
                break
            streak += 1
        logger.debug("momentum.streak", rule=str(self.rule), streak=streak)
        return streak

    @staticmethod
    def _check_in_rule(data: StreakData):
        days_with_check_ins = {date_key(c.created_at) for c in data.check_ins}

        def qualifies(day: date) -> bool:
            return date_key(day) in days_with_check_ins

        return qualifies

    def _completion_rule(self, data: StreakData):
        check_in_days = defaultdict(set)
        for c in data.check_ins:
            check_in_days[c.intention_set_id].add(date_key(c.created_at))
        entries_by_day = defaultdict(list)
        for e in data.entries:
            entries_by_day[(e.intention_set_id, e.date_key)].append(e)
        # Latest-started set wins when two overlap on a day
        sets = sorted(data.intention_sets, key=lambda s: s.started_at, reverse=True)

        def qualifies(day: date) -> bool:
            active = next((s for s in sets if set_active_on(s, day)), None)
            if active is None:
                return False
            key = date_key(day)
            entries = entries_by_day.get((active.id, key), [])
            if not entries and key not in check_in_days[active.id]:
                return False
            intentions = data.intentions_by_set.get(active.id, [])
            totals = totals_for_day(entries, key, intentions, active.id, data.overrides)
            return overall_percent_complete(intentions, totals) >= self.completion_threshold

        return qualifies


class StreakDataLoader:
    """Reads everything a streak needs for the last `lookback_days` days."""

    def __init__(
        self,
        intention_store: IntentionStore,
        check_in_store: CheckInStore,
        progress_store: ProgressStore,
        override_store: OverrideStore,
        lookback_days: int = MAX_DAYS,
    ):
        self.intentions = intention_store
        self.check_ins = check_in_store
        self.progress = progress_store
        self.overrides = override_store
        self.lookback_days = lookback_days

    def load(self, today: date | None = None) -> StreakData:
        today = today or date.today()
        start = date_key(today - timedelta(days=self.lookback_days - 1))
        end = date_key(today)

        sets = self.intentions.list_sets()
        return StreakData(
            check_ins=self.check_ins.between(start, end),
            entries=self.progress.entries_between(start, end),
            overrides=self.overrides.between(start, end),
            intention_sets=sets,
            intentions_by_set={s.id: self.intentions.intentions_for_set(s) for s in sets},
        )
