"""Candidate Cache Service - Redis caching for region-keyed candidate pools."""
import json
import logging
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, timezone
from urllib.parse import urlparse

from redis import Redis
from redis.exceptions import WatchError

from core.matcher.interfaces import CandidateStore
from core.matcher.models import CandidateKind, MatchCandidate

logger = logging.getLogger(__name__)

# Writes invalidate explicitly; the TTL only bounds memory
CACHE_TTL_SECONDS = 300

ALL_REGIONS = "_all"
KEY_PREFIX = "candidates"
# Invalidation counters, outside the KEY_PREFIX scan
GENERATION_PREFIX = "candidates-gen"


def _sanitize_url(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    try:
        parsed = urlparse(url)
        if parsed.password:
            sanitized = parsed._replace(
                netloc=f"{parsed.username or ''}:*@{parsed.hostname}:{parsed.port or 6379}"
            )
            return sanitized.geturl()
        return url
    except ValueError:
        return url


class CandidateCacheService:
    """
    Caches candidate-pool snapshots per (kind, region).

    When Redis is unreachable every call degrades to a miss/no-op and the
    caller reads the database directly.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        password: Optional[str] = None,
        ttl_seconds: int = CACHE_TTL_SECONDS
    ):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self._redis: Optional[Redis] = None
        self._available = False

        try:
            self._redis = Redis.from_url(
                redis_url,
                password=password,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
            self._redis.ping()
            self._available = True
            logger.info(f"Candidate cache connected to Redis at {_sanitize_url(redis_url)}")
        except Exception as e:
            logger.warning(f"Candidate cache Redis unavailable: {e}")
            self._redis = None
            self._available = False

    @property
    def is_available(self) -> bool:
        return self._available and self._redis is not None

    def _make_key(self, kind: CandidateKind, region: Optional[str]) -> str:
        return f"{KEY_PREFIX}:{CandidateKind(kind).value}:{region or ALL_REGIONS}"

    def _generation_key(self, kind: CandidateKind, region: Optional[str]) -> str:
        return f"{GENERATION_PREFIX}:{CandidateKind(kind).value}:{region or ALL_REGIONS}"

    def get_generation(self, kind: CandidateKind, region: Optional[str] = None) -> Optional[int]:
        """Invalidation counter for a pool key, or None when Redis cannot answer."""
        if not self.is_available:
            return None
        try:
            return int(self._redis.get(self._generation_key(kind, region)) or 0)
        except Exception as e:
            logger.warning(f"Error reading candidate cache generation: {e}")
            return None

    def get_pool(self, kind: CandidateKind, region: Optional[str] = None) -> Optional[List[MatchCandidate]]:
        """Cached pool, or None on a miss."""
        if not self.is_available:
            return None

        try:
            data = self._redis.get(self._make_key(kind, region))
            if not data:
                logger.debug(f"Cache miss for {kind} pool in {region or 'all regions'}")
                return None
            entry = json.loads(data)
            logger.debug(f"Cache hit for {kind} pool in {region or 'all regions'}")
            return [MatchCandidate.from_dict(item) for item in entry.get("data", [])]
        except Exception as e:
            logger.warning(f"Error reading from candidate cache: {e}")
            return None

    def set_pool(
        self,
        kind: CandidateKind,
        region: Optional[str],
        candidates: Iterable[MatchCandidate],
        ttl_seconds: Optional[int] = None,
        generation: Optional[int] = None
    ) -> bool:
        """
        Store a pool snapshot.

        With a generation (read via get_generation before loading), the write
        only happens if no invalidation ran in between.
        """
        if not self.is_available:
            return False

        try:
            ttl = ttl_seconds or self.ttl_seconds
            entry = {
                "data": [c.to_dict() for c in candidates],
                "cached_at": datetime.now(timezone.utc).isoformat(),
                "ttl_seconds": ttl
            }
            key = self._make_key(kind, region)
            if generation is None:
                self._redis.setex(key, ttl, json.dumps(entry))
                return True

            generation_key = self._generation_key(kind, region)
            with self._redis.pipeline() as pipe:
                pipe.watch(generation_key)
                if int(pipe.get(generation_key) or 0) != generation:
                    logger.debug(f"Skipped caching stale {kind} pool for {region or 'all regions'}")
                    return False
                pipe.multi()
                pipe.setex(key, ttl, json.dumps(entry))
                pipe.execute()
            return True
        except WatchError:
            logger.debug(f"Pool for {region or 'all regions'} invalidated while caching, skipped")
            return False
        except Exception as e:
            logger.warning(f"Error writing to candidate cache: {e}")
            return False

    def invalidate(self, kind: CandidateKind, regions: Iterable[str]) -> bool:
        """
        Drop the pools a candidate write can affect: each region it serves
        plus the all-regions pool.
        """
        if not self.is_available:
            return False

        scopes = sorted(set(regions)) + [None]
        keys = [self._make_key(kind, region) for region in scopes]
        try:
            with self._redis.pipeline() as pipe:
                for region in scopes:
                    pipe.incr(self._generation_key(kind, region))
                pipe.delete(*keys)
                pipe.execute()
            logger.debug(f"Invalidated {len(keys)} candidate pool keys")
            return True
        except Exception as e:
            logger.warning(f"Error invalidating candidate cache: {e}")
            return False

    def get_cache_stats(self) -> Dict[str, Any]:
        if not self.is_available:
            return {"available": False}

        try:
            key_count = 0
            cursor = 0
            while True:
                cursor, keys = self._redis.scan(cursor=cursor, match=f"{KEY_PREFIX}:*", count=1000)
                key_count += len(keys)
                if cursor == 0:
                    break
            return {
                "available": True,
                "candidate_pool_keys": key_count,
                "ttl_seconds": self.ttl_seconds,
            }
        except Exception as e:
            logger.warning(f"Error getting cache stats: {e}")
            return {"available": False, "error": str(e)}

    def clear_all(self) -> bool:
        if not self.is_available:
            return False

        try:
            cursor = 0
            deleted = 0
            while True:
                cursor, keys = self._redis.scan(cursor=cursor, match=f"{KEY_PREFIX}:*", count=100)
                if keys:
                    self._redis.delete(*keys)
                    deleted += len(keys)
                if cursor == 0:
                    break
            logger.info(f"Cleared {deleted} candidate pools from cache")
            return True
        except Exception as e:
            logger.warning(f"Error clearing candidate cache: {e}")
            return False


class CachedCandidateStore(CandidateStore):
    """Read-through CandidateStore in front of the repository."""

    def __init__(self, store: CandidateStore, cache: Optional[CandidateCacheService]):
        self.store = store
        self.cache = cache

    def _read_through(self, kind: CandidateKind, region: Optional[str], loader) -> List[MatchCandidate]:
        if self.cache is not None:
            cached = self.cache.get_pool(kind, region)
            if cached is not None:
                return cached
        generation = self.cache.get_generation(kind, region) if self.cache is not None else None
        pool = list(loader())
        if generation is not None:
            self.cache.set_pool(kind, region, pool, generation=generation)
        return pool

    def list_candidates_by_region(self, region: str, kind: CandidateKind) -> List[MatchCandidate]:
        return self._read_through(kind, region, lambda: self.store.list_candidates_by_region(region, kind))

    def list_all_candidates(self, kind: CandidateKind) -> List[MatchCandidate]:
        return self._read_through(kind, None, lambda: self.store.list_all_candidates(kind))

