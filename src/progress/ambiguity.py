"""Decides whether a check-in update needs the user's confirmation.

An update is held back only when it is late in the day, the extractor was
unsure but not hopeless, and the change is big relative to the target.
"""

from dataclasses import dataclass
from datetime import datetime

from shared_types import UpdateType

from .models import CheckInUpdate

LATE_HOUR = 18
CONFIDENCE_MIN = 0.45
CONFIDENCE_MAX = 0.80
MATERIALITY = 0.20


@dataclass
class AmbiguityChecker:
    late_hour: int = LATE_HOUR
    confidence_min: float = CONFIDENCE_MIN
    confidence_max: float = CONFIDENCE_MAX
    materiality: float = MATERIALITY

    @classmethod
    def from_config(cls, cfg) -> "AmbiguityChecker":
        return cls(
            late_hour=cfg.late_hour,
            confidence_min=cfg.confidence_min,
            confidence_max=cfg.confidence_max,
            materiality=cfg.materiality,
        )

    def is_ambiguous(
        self,
        update: CheckInUpdate,
        current_total: float,
        target: float,
        created_at: datetime,
    ) -> bool:
        if update.update_type == UpdateType.TOTAL:
            new_total = update.amount
        elif update.update_type == UpdateType.INCREMENT:
            new_total = current_total + update.amount
        else:
            return False

        if created_at.tzinfo is not None:
            created_at = created_at.astimezone()
        if created_at.hour < self.late_hour:
            return False

        confidence = min(1.0, max(0.0, update.confidence))
        if not (self.confidence_min <= confidence <= self.confidence_max):
            return False

        if target <= 0:
            return False
        return abs(new_total - current_total) / target >= self.materiality

    def partition(
        self,
        updates: list[CheckInUpdate],
        totals: dict[str, float],
        targets: dict[str, float],
        created_at: datetime,
    ) -> tuple[list[CheckInUpdate], list[CheckInUpdate]]:
        """Split updates into (clear, ambiguous)."""
        clear, ambiguous = [], []
        for update in updates:
            if self.is_ambiguous(
                update,
                totals.get(update.intention_id, 0.0),
                targets.get(update.intention_id, 0.0),
                created_at,
            ):
                ambiguous.append(update)
            else:
                clear.append(update)
        return clear, ambiguous


def is_ambiguous(update: CheckInUpdate, current_total: float, target: float, created_at: datetime) -> bool:
    return AmbiguityChecker().is_ambiguous(update, current_total, target, created_at)
