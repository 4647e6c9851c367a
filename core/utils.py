import re
import logging
import unicodedata
from functools import lru_cache
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

# Terms this short are matched on word boundaries ("ia" must not hit "social")
SHORT_TERM_LENGTH = 3


def fold_text(value: Optional[str]) -> str:
    """Lower-case and strip accents so 'Élevage' and 'elevage' compare equal."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(value))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower().strip()


@lru_cache(maxsize=2048)
def _boundary_pattern(term: str) -> "re.Pattern":
    return re.compile(r"(?<![a-z0-9])" + re.escape(term) + r"(?![a-z0-9])")


def contains_term(text: str, term: str) -> bool:
    """
    Check whether an already-folded text contains a term.

    Long terms use substring matching, short ones require word boundaries.
    """
    term = fold_text(term)
    if not term or not text:
        return False
    if len(term) <= SHORT_TERM_LENGTH:
        return _boundary_pattern(term).search(text) is not None
    return term in text


def first_matching_term(text: str, terms: Iterable[str]) -> Optional[str]:
    for term in terms:
        if contains_term(text, term):
            return term
    return None


def clamp_score(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a score into [low, high]."""
    if value < low:
        return low
    if value > high:
        return high
    return value


def dedupe(values: Iterable[str]) -> list:
    """Remove duplicates while keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result
