"""Ranking Module - final boosts, clamping and ordering."""
from core.ranking.finalizer import (
    RankFinalizer,
    FALLBACK_MISSING_CRITERIA,
    agency_boost,
    amount_boost,
    fallback_success_probability,
    refined_success_probability,
)

__all__ = [
    'RankFinalizer',
    'FALLBACK_MISSING_CRITERIA',
    'agency_boost',
    'amount_boost',
    'fallback_success_probability',
    'refined_success_probability',
]
