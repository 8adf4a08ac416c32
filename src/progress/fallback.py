"""Deterministic check-in parsing used when the LLM finds no updates.

Only the stock intentions are understood (app work, workouts, reading).
Numbers are taken in the order they appear in the transcript, so the
first "N minutes" goes to the first intention that wants minutes.
"""

import re

import structlog

from shared_types import UpdateType

from .models import CheckInUpdate, Intention

logger = structlog.get_logger()

FALLBACK_CONFIDENCE = 0.7
DEFAULT_WORKOUT_MINUTES = 30.0

_MINUTES = re.compile(r"(\d+)\s*(?:min|mins|minute|minutes)\b", re.IGNORECASE)
_PAGES = re.compile(r"(\d+)\s*(?:pages?|page)\b", re.IGNORECASE)

WORKOUT_KEYWORDS = [
    "workout",
    "worked out",
    "gym",
    "exercise",
    "trained",
    "training",
    "run",
    "running",
    "jog",
    "jogging",
    "lift",
    "lifting",
    "weights",
    "weightlifting",
    "strength",
    "cardio",
    "hiit",
    "treadmill",
    "squat",
    "deadlift",
    "bench",
]


def _mentions_workout(text: str) -> bool:
    return any(keyword in text for keyword in WORKOUT_KEYWORDS)


def _is_workout_intention(intention: Intention) -> bool:
    names = [intention.title.lower(), *(a.lower() for a in intention.aliases)]
    return any(_mentions_workout(name) for name in names)


def _update(intention: Intention, amount: float, unit: str) -> CheckInUpdate:
    return CheckInUpdate(
        intention_id=intention.id,
        update_type=UpdateType.INCREMENT,
        amount=amount,
        unit=unit,
        confidence=FALLBACK_CONFIDENCE,
    )


def parse_fallback_updates(transcript: str, intentions: list[Intention]) -> list[CheckInUpdate]:
    lower = (transcript or "").lower()
    minutes = [float(m) for m in _MINUTES.findall(lower)]
    pages = [float(p) for p in _PAGES.findall(lower)]
    updates: list[CheckInUpdate] = []

    if "work" in lower and "on" in lower and "app" in lower:
        app = next((i for i in intentions if "app" in i.title.lower()), None)
        if app and minutes and "min" in app.unit.lower():
            updates.append(_update(app, minutes.pop(0), "minutes"))

    if _mentions_workout(lower):
        workout = next((i for i in intentions if _is_workout_intention(i)), None)
        if workout:
            unit = workout.unit.lower()
            amount = None
            if minutes:
                amount = minutes.pop(0)
            elif "min" in unit:
                amount = workout.target_value if workout.target_value > 0 else DEFAULT_WORKOUT_MINUTES
            elif "session" in unit or unit == "times" or "workout" in unit:
                amount = 1.0
            if amount is not None:
                updates.append(_update(workout, amount, "minutes" if "min" in unit else workout.unit))
            else:
                logger.debug("progress.fallback_unsupported_unit", intention_id=workout.id, unit=unit)

    if "read" in lower:
        reading = next((i for i in intentions if "read" in i.title.lower()), None)
        if reading and pages and "page" in reading.unit.lower():
            updates.append(_update(reading, pages.pop(0), "pages"))

    if updates:
        logger.info("progress.fallback_used", transcript_len=len(lower), updates=len(updates))
    return updates
