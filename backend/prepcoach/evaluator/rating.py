"""
PrepCoach Interview API - Evaluation Rating Extractor

Pulls a 1-10 rating out of free-form evaluation text.
Explicit score patterns are tried first, then tone keywords.
"""

import re
from typing import List, Optional, Tuple

DEFAULT_RATING = 6

# ─── Explicit Rating Patterns ──────────────────────────────

RATING_PATTERNS = [
    re.compile(r"(?:overall\s+)?rating:?\s*(\d+)(?:/10)?", re.IGNORECASE),
    re.compile(r"(\d+)(?:/10|\s*out\s*of\s*10)", re.IGNORECASE),
    re.compile(r"score:?\s*(\d+)", re.IGNORECASE),
    re.compile(r"rating\s*of\s*(\d+)", re.IGNORECASE),
    re.compile(r"give\s*(?:this|it)\s*(?:a|an)?\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*/\s*10"),
]

# ─── Tone Keywords (checked in order) ──────────────────────

# "very poor" must be checked before "poor", "very good" before "good"
KEYWORD_RATINGS: List[Tuple[Tuple[str, ...], int]] = [
    (("excellent", "outstanding", "exceptional"), 9),
    (("very good", "strong", "well-structured"), 8),
    (("very poor", "inadequate", "insufficient"), 3),
    (("good", "solid", "adequate"), 7),
    (("fair", "acceptable", "decent"), 6),
    (("poor", "weak", "lacking"), 4),
]


def _explicit_rating(text: str) -> Optional[int]:
    """First in-range number matched by a rating pattern."""
    for pattern in RATING_PATTERNS:
        match = pattern.search(text)
        if match:
            rating = int(match.group(1))
            if 1 <= rating <= 10:
                return rating
    return None


def _keyword_rating(text: str) -> Optional[int]:
    text_lower = text.lower()
    for keywords, rating in KEYWORD_RATINGS:
        if any(kw in text_lower for kw in keywords):
            return rating
    return None


def extract_rating(evaluation: str) -> int:
    """
    Rating from evaluation text.

    Args:
        evaluation: Model-written evaluation, ideally ending "Overall Rating: X/10".

    Returns:
        Integer 1-10; DEFAULT_RATING when nothing can be inferred.
    """
    if not evaluation:
        return DEFAULT_RATING

    explicit = _explicit_rating(evaluation)
    if explicit is not None:
        return explicit

    inferred = _keyword_rating(evaluation)
    if inferred is not None:
        return inferred

    return DEFAULT_RATING
