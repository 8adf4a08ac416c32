"""Check-in orchestration: extract updates, gate the unclear ones, write the ledger.

Clear updates are written before the resolver is awaited, so a user who walks
away from the confirmation prompt still keeps everything that was unambiguous.
"""

import sqlite3
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Protocol

import structlog

from observability import metrics
from shared_types import AmbiguityChoice, UpdateType

from .ambiguity import AmbiguityChecker
from .calculator import date_key, totals_for_day
from .checkin_extractor import CheckInExtractor
from .fallback import parse_fallback_updates
from .intentions import IntentionStore
from .models import CheckIn, CheckInUpdate, Intention, ProgressEntry
from .mood import DailyMoodStore
from .store import CheckInStore, OverrideStore, ProgressStore

logger = structlog.get_logger()

# Receives the ambiguous updates; returns one choice per update, or None to skip them all.
Resolver = Callable[[list[CheckInUpdate]], Awaitable[list[AmbiguityChoice] | None]]


class Transcriber(Protocol):
    def transcribe(self, audio_ref: str) -> str: ...


@dataclass
class CheckInOutcome:
    check_in: CheckIn
    applied: list[ProgressEntry] = field(default_factory=list)
    ambiguous: list[CheckInUpdate] = field(default_factory=list)
    skipped: list[CheckInUpdate] = field(default_factory=list)
    used_fallback: bool = False
    mood_updated: bool = False
    mood_label: str | None = None
    mood_score: int | None = None


def took_place_at(update: CheckInUpdate, check_in: CheckIn) -> datetime | None:
    """Stated clock time on the check-in's own day, if the user gave one."""
    local = update.took_place_local_time
    if local is None:
        return None
    return datetime.combine(check_in.created_at.date(), time(local.hour24, local.minute))


class CheckInProcessor:
    def __init__(
        self,
        check_in_store: CheckInStore,
        progress_store: ProgressStore,
        override_store: OverrideStore,
        intention_store: IntentionStore,
        mood_store: DailyMoodStore,
        extractor: CheckInExtractor | None = None,
        checker: AmbiguityChecker | None = None,
        transcriber: Transcriber | None = None,
    ):
        self.check_ins = check_in_store
        self.progress = progress_store
        self.overrides = override_store
        self.intentions = intention_store
        self.moods = mood_store
        self.extractor = extractor or CheckInExtractor()
        self.checker = checker or AmbiguityChecker()
        self.transcriber = transcriber

    def _active_intentions(self, check_in: CheckIn) -> list[Intention]:
        intention_set = self.intentions.get_set(check_in.intention_set_id)
        if intention_set is None:
            return []
        return self.intentions.intentions_for_set(intention_set)

    def todays_totals(self, check_in: CheckIn, intentions: list[Intention]) -> dict[str, float]:
        day = date_key(check_in.created_at)
        return totals_for_day(
            self.progress.entries_for_day(day, check_in.intention_set_id),
            day,
            intentions,
            check_in.intention_set_id,
            self.overrides.for_day(day),
        )

    async def process(self, check_in: CheckIn, resolver: Resolver | None = None) -> CheckInOutcome:
        if not check_in.transcript and check_in.audio_file_name and self.transcriber:
            check_in.transcript = self.transcriber.transcribe(check_in.audio_file_name)

        self.check_ins.save(check_in)
        outcome = CheckInOutcome(check_in=check_in)
        metrics.counter("checkins.processed")

        intentions = self._active_intentions(check_in)
        totals = self.todays_totals(check_in, intentions)

        with metrics.timer("checkins.extract"):
            extraction = await self.extractor.extract(
                check_in.transcript, intentions, totals, check_in_id=check_in.id
            )

        if extraction.updates:
            targets = {i.id: i.target_value for i in intentions}
            clear, ambiguous = self.checker.partition(
                extraction.updates, totals, targets, check_in.created_at
            )
        else:
            clear = parse_fallback_updates(check_in.transcript, intentions)
            ambiguous = []
            outcome.used_fallback = bool(clear)
            if clear:
                metrics.counter("checkins.fallback_used")

        for update in clear:
            self._append(check_in, update, update.update_type, outcome)

        if ambiguous:
            outcome.ambiguous = list(ambiguous)
            metrics.counter("checkins.ambiguous", len(ambiguous))
            choices = await resolver(ambiguous) if resolver else None
            self._apply_choices(check_in, ambiguous, choices, outcome)

        if extraction.mood_label is not None or extraction.mood_score is not None:
            outcome.mood_label = extraction.mood_label
            outcome.mood_score = extraction.mood_score
            try:
                outcome.mood_updated = self.moods.set_from_check_in_if_not_overridden(
                    date_key(check_in.created_at),
                    extraction.mood_label,
                    extraction.mood_score,
                    check_in.id,
                )
            except sqlite3.Error as e:
                logger.error("progress.mood_save_failed", check_in_id=check_in.id, error=str(e))

        logger.info(
            "progress.checkin_processed",
            check_in_id=check_in.id,
            applied=len(outcome.applied),
            ambiguous=len(outcome.ambiguous),
            skipped=len(outcome.skipped),
            fallback=outcome.used_fallback,
        )
        return outcome

    def _apply_choices(
        self,
        check_in: CheckIn,
        ambiguous: list[CheckInUpdate],
        choices: list[AmbiguityChoice] | None,
        outcome: CheckInOutcome,
    ):
        if choices is None:
            logger.info("progress.ambiguity_cancelled", check_in_id=check_in.id, count=len(ambiguous))
            outcome.skipped.extend(ambiguous)
            return

        for index, update in enumerate(ambiguous):
            choice = AmbiguityChoice(choices[index]) if index < len(choices) else AmbiguityChoice.SKIP
            if choice == AmbiguityChoice.TOTAL_TODAY:
                self._append(check_in, update, UpdateType.TOTAL, outcome)
            elif choice == AmbiguityChoice.INCREMENT:
                self._append(check_in, update, UpdateType.INCREMENT, outcome)
            else:
                outcome.skipped.append(update)

    def _append(
        self,
        check_in: CheckIn,
        update: CheckInUpdate,
        update_type: UpdateType,
        outcome: CheckInOutcome,
    ):
        entry = ProgressEntry(
            id=uuid.uuid4().hex[:16],
            created_at=datetime.now(),
            took_place_at=took_place_at(update, check_in),
            date_key=date_key(check_in.created_at),
            intention_set_id=check_in.intention_set_id,
            intention_id=update.intention_id,
            update_type=update_type,
            amount=update.amount,
            unit=update.unit,
            confidence=update.confidence,
            evidence=update.evidence,
            source_check_in_id=check_in.id,
        )
        try:
            self.progress.append(entry)
        except sqlite3.Error as e:
            logger.error(
                "progress.entry_save_failed",
                check_in_id=check_in.id,
                intention_id=update.intention_id,
                error=str(e),
            )
            return
        metrics.counter("progress.entries_written")
        outcome.applied.append(entry)


def resolve_all(choice: AmbiguityChoice) -> Resolver:
    """Resolver that answers every ambiguous update with the same choice."""

    async def _resolver(updates: list[CheckInUpdate]) -> list[AmbiguityChoice]:
        return [choice] * len(updates)

    return _resolver
