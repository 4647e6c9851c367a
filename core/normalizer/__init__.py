"""Normalizer Module - Profile analysis."""
from core.normalizer.analyzer import (
    AnalyzedProfile,
    analyze_profile,
    legal_entity_types,
    normalize_sector,
    sector_from_naf_code,
    size_category,
)

__all__ = [
    'AnalyzedProfile',
    'analyze_profile',
    'legal_entity_types',
    'normalize_sector',
    'sector_from_naf_code',
    'size_category',
]
