"""Deterministic text normalization shared by fingerprints and topic keys.

Order matters: time/frequency words are removed before the short-token
filter, otherwise words like "day" or "now" would leak through or be lost
depending on length alone.
"""

import re

# Ordered: longer phrases must come before their sub-phrases
PHRASE_REPLACEMENTS: list[tuple[str, str]] = [
    ("working out", "workout"),
    ("work out", "workout"),
    ("go over", "review"),
    ("look at", "review"),
    ("check out", "review"),
    ("figure out", "plan"),
    ("set up", "setup"),
    ("start to", "start"),
    ("going to", "will"),
    ("need to", "need"),
    ("beach trip", "beach visit"),
]

TOKEN_MAP: dict[str, str] = {
    "exercise": "workout",
    "exercising": "workout",
    "gym": "workout",
    "train": "workout",
    "training": "workout",
    "finances": "finance",
    "money": "finance",
    "budget": "finance",
    "check": "review",
    "verify": "review",
    "sad": "mood",
    "down": "mood",
    "depressed": "mood",
    "anxious": "mood",
    "stressed": "mood",
    "happy": "mood",
    "trip": "visit",
    "trips": "visit",
    "visiting": "visit",
    "visited": "visit",
}

TIME_FREQUENCY_TOKENS: frozenset[str] = frozenset(
    {
        # Relative days and parts of day
        "today", "tomorrow", "tonight", "yesterday",
        "morning", "afternoon", "evening", "night",
        "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
        "now", "later", "soon", "asap", "eventually",
        "this", "next", "last", "current", "past", "future",
        "day", "days", "week", "weeks", "month", "months", "year", "years", "time", "times",
        "ago", "before", "after", "since", "until", "during",
        # Frequency
        "daily", "weekly", "monthly", "yearly",
        "every", "each", "always", "often", "sometimes", "regularly",
        "occasionally", "frequently", "never", "rarely",
    }
)

STOPWORDS: frozenset[str] = frozenset(
    {
        "a", "an", "the",
        "and", "or", "but", "nor", "yet", "so",
        "to", "from", "in", "on", "at", "by", "for", "with", "about", "as", "of",
        "up", "down", "out", "over", "under", "into",
        "i", "me", "my", "mine", "myself",
        "you", "your", "yours", "yourself", "yourselves",
        "he", "him", "his", "himself", "she", "her", "hers", "herself",
        "it", "its", "itself", "we", "us", "our", "ours", "ourselves",
        "they", "them", "their", "theirs", "themselves",
        "this", "that", "these", "those",
        "be", "am", "is", "are", "was", "were", "been", "being",
        "have", "has", "had", "having", "do", "does", "did", "doing", "done",
        "will", "would", "shall", "should", "can", "could", "may", "might", "must",
        "go", "going", "get", "got", "getting", "make", "making",
        "very", "too", "also", "just", "now", "then", "than", "such",
    }
)

MIN_TOKEN_LENGTH = 3

_PUNCTUATION = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")
_PHRASE_PATTERNS = [
    (re.compile(rf"\b{re.escape(phrase)}\b"), replacement)
    for phrase, replacement in PHRASE_REPLACEMENTS
]


def clean_text(text: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace."""
    lowered = (text or "").lower()
    stripped = _PUNCTUATION.sub(" ", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()


def apply_phrases(text: str) -> str:
    for pattern, replacement in _PHRASE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def normalize_tokens(text: str) -> list[str]:
    """Reduce free text to its ordered significant tokens."""
    phrased = apply_phrases(clean_text(text))
    tokens = [TOKEN_MAP.get(tok, tok) for tok in phrased.split()]
    result = []
    for tok in tokens:
        if tok in TIME_FREQUENCY_TOKENS:
            continue
        if tok in STOPWORDS:
            continue
        if len(tok) < MIN_TOKEN_LENGTH:
            continue
        result.append(tok)
    return result


def unique_prefix(tokens: list[str], limit: int) -> list[str]:
    """First `limit` distinct tokens in encounter order."""
    seen: list[str] = []
    for tok in tokens:
        if tok not in seen:
            seen.append(tok)
        if len(seen) == limit:
            break
    return seen
