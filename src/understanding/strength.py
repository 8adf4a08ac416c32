"""Heuristic strength for extracted items.

Strength reflects how firmly something was said, not how often. Frequency
lives on topics as occurrence counts.
"""

from .classifier import compile_phrases, prepare
from .models import STRENGTH_MAX, STRENGTH_MIN

STRONG = 0.60
MODERATE = 0.50
WEAK = 0.25
MOOD = 0.35
DEFAULT = 0.40

_TIERS = [
    (compile_phrases(["must", "need to", "have to", "will"]), STRONG),
    (compile_phrases(["want to", "plan to", "going to"]), MODERATE),
    (compile_phrases(["maybe", "might", "consider"]), WEAK),
    (
        compile_phrases(
            ["sad", "down", "depressed", "anxious", "stressed", "happy", "mood", "feeling", "feel"]
        ),
        MOOD,
    ),
]


def score_strength(title: str, quote: str) -> float:
    text = prepare(f"{title} {quote}")
    score = DEFAULT
    for pattern, value in _TIERS:
        if pattern.search(text):
            score = value
            break
    return min(STRENGTH_MAX, max(STRENGTH_MIN, score))
