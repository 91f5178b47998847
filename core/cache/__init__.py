"""Cache Module - Caching services."""
from core.cache.candidate_cache import (
    CandidateCacheService,
    CachedCandidateStore,
    CACHE_TTL_SECONDS
)

__all__ = [
    'CandidateCacheService',
    'CachedCandidateStore',
    'CACHE_TTL_SECONDS'
]
