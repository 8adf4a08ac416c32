"""Canonical fingerprints and display titles for extracted items."""

import dataclasses
import hashlib

from .models import ExtractedItem
from .normalizer import normalize_tokens, unique_prefix

STEM_TOKEN_LIMIT = 4
HASH_LENGTH = 6
FALLBACK_STEM = "item"
MAX_TITLE_WORDS = 6

FILLER_TITLE_WORDS = frozenset({"impact", "thing", "stuff", "situation", "update", "about"})


def title_stem(title: str) -> str:
    """Up to four unique significant tokens of the title, underscore-joined."""
    tokens = unique_prefix(normalize_tokens(title), STEM_TOKEN_LIMIT)
    return "_".join(tokens) or FALLBACK_STEM


def fingerprint(title: str) -> str:
    """Stable dedup key: ``<stem>__<sha256(stem)[:6]>``.

    Derived from the title alone; quote and categories never contribute.
    """
    stem = title_stem(title)
    digest = hashlib.sha256(stem.encode("utf-8")).hexdigest()[:HASH_LENGTH]
    return f"{stem}__{digest}"


def canonicalize(item: ExtractedItem) -> ExtractedItem:
    return dataclasses.replace(item, fingerprint=fingerprint(item.title))


def stem_from_key(canonical_key: str) -> str:
    return canonical_key.rsplit("__", 1)[0]


def canonical_title(stem: str, ai_title: str | None = None) -> str:
    """Prefer the model's title; otherwise title-case the stem."""
    if ai_title and ai_title.strip():
        return ai_title.strip()
    return " ".join(word.capitalize() for word in stem.split("_") if word)


def is_better_title(current: str, candidate: str) -> bool:
    """Whether a candidate display title should replace the current one.

    Only longer, still-short titles that don't end on filler are accepted.
    """
    words = candidate.strip().lower().split()
    if not words:
        return False
    if words[-1] in FILLER_TITLE_WORDS:
        return False
    current_words = current.strip().split()
    return len(words) > len(current_words) and len(words) <= MAX_TITLE_WORDS
