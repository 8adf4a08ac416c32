"""Topic keys group recurring concepts across sessions.

The key is the concept slug only. Category is tracked as metadata so the
same concept merges even when the extractor labels it inconsistently.
"""

from .normalizer import normalize_tokens

SLUG_TOKEN_LIMIT = 4
FALLBACK_SLUG = "item"
UNCATEGORIZED = "uncategorized"

CATEGORY_PRIORITY = [
    "fitness_health",
    "health",
    "nutrition",
    "career_work",
    "career",
    "work",
    "money_finance",
    "relationships_social",
    "family",
    "personal_growth",
    "learning",
    "growth",
    "stress_load",
    "peace_wellbeing",
    "mental_health",
]


def primary_category(categories) -> str:
    present = {c.strip().lower() for c in categories or [] if c and c.strip()}
    if not present:
        return UNCATEGORIZED
    for category in CATEGORY_PRIORITY:
        if category in present:
            return category
    return sorted(present)[0]


def concept_slug(title: str) -> str:
    tokens = normalize_tokens(title)[:SLUG_TOKEN_LIMIT]
    return "_".join(tokens) or FALLBACK_SLUG


def topic_key(title: str) -> str:
    return concept_slug(title)
