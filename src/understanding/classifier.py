"""Deterministic item type override.

Families are checked in priority order against quote + title; the first
family with a hit decides the type. Commitment markers are deliberately
narrow: a bare "I need to" is an intention, not a promise.
"""

import re

from shared_types import ItemType

_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

EVENT_PHRASES = [
    "meeting",
    "appointment",
    "deadline",
    "scheduled",
    "calendar",
    "tomorrow",
    "next week",
    "next month",
    "due date",
    *[f"on {day}" for day in _WEEKDAYS],
]

COMMITMENT_PHRASES = [
    "i promised",
    "i swore",
    "i committed to",
    "i'm obligated",
    "i'm required to",
    "agreed to",
    "have to deliver",
    "need to deliver",
    "due by",
]

STATE_PHRASES = [
    "got a",
    "got the",
    "received",
    "started",
    "accepted",
    "is now",
    "has been",
    "have been",
    "currently",
    "right now",
    "these days",
    "lately",
    "recently",
    "feeling",
    "been feeling",
]

INTENTION_PHRASES = [
    "want to",
    "would like to",
    "hoping to",
    "planning to",
    "thinking about",
    "considering",
    "might",
    "maybe",
    "wish i could",
    "trying to",
    "going to try",
    "i need to",
    "i have to",
    "i should",
    "i'll",
    "i will",
    "gonna",
    "going to",
]


def compile_phrases(phrases: list[str], extra: list[str] | None = None) -> re.Pattern:
    """Word-bounded alternation so "maybe" never matches inside "maybelline"."""
    parts = [re.escape(p) for p in sorted(phrases, key=len, reverse=True)]
    pattern = r"(?<![\w'])(?:" + "|".join(parts) + r")(?![\w'])"
    for raw in extra or []:
        pattern += r"|(?<![\w'])" + raw
    return re.compile(pattern)


_FAMILIES: list[tuple[ItemType, re.Pattern]] = [
    (ItemType.EVENT, compile_phrases(EVENT_PHRASES, extra=[r"at \d"])),
    (ItemType.COMMITMENT, compile_phrases(COMMITMENT_PHRASES)),
    (ItemType.STATE, compile_phrases(STATE_PHRASES)),
    (ItemType.INTENTION, compile_phrases(INTENTION_PHRASES)),
]


def prepare(text: str) -> str:
    return (text or "").lower().replace("’", "'")


def classify_type(quote: str, title: str, original: ItemType) -> ItemType:
    text = prepare(f"{quote} {title}")
    for item_type, pattern in _FAMILIES:
        if pattern.search(text):
            return item_type
    return original
