"""CLI command modules."""

from .checkin import checkin
from .extract import correct, extract, review, topics
from .intentions import intentions
from .momentum import momentum
from .mood import mood
from .progress import progress

__all__ = [
    "extract",
    "topics",
    "review",
    "correct",
    "checkin",
    "progress",
    "intentions",
    "mood",
    "momentum",
]
