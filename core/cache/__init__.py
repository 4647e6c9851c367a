"""Cache Module - Caching services."""
from core.cache.recommendation_cache import (
    RecommendationCache,
    CachedRecommendations,
    CACHE_TTL_SECONDS
)

__all__ = [
    'RecommendationCache',
    'CachedRecommendations',
    'CACHE_TTL_SECONDS'
]
