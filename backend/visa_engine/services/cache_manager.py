"""Tiered in-memory TTL cache for evaluations, documents, sessions and rules."""

import asyncio
import copy
import hashlib
import json
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Pattern, Union

from visa_engine.config import settings
from visa_engine.core.enums import CacheType

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    value: Any
    expires_at: Optional[float]


class TTLCache:
    """
    Key-value store with a default TTL and hit/miss counters.

    Expiry is checked lazily on read and eagerly by ``sweep``. A TTL of 0
    means the entry never expires.
    """

    def __init__(self, name: str, default_ttl: int, check_period: int, clock: Clock = time.monotonic):
        self.name = name
        self.default_ttl = default_ttl
        self.check_period = check_period
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self.stats = {"hits": 0, "misses": 0, "sets": 0, "deletes": 0, "errors": 0}

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return entry.expires_at is not None and entry.expires_at <= now

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            self.stats["misses"] += 1
            return None
        if self._expired(entry, self._clock()):
            del self._entries[key]
            self.stats["misses"] += 1
            return None
        self.stats["hits"] += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        ttl = self.default_ttl if ttl is None else ttl
        expires_at = self._clock() + ttl if ttl > 0 else None
        self._entries[key] = CacheEntry(value=value, expires_at=expires_at)
        self.stats["sets"] += 1
        return True

    def delete(self, key: str) -> int:
        if self._entries.pop(key, None) is None:
            return 0
        self.stats["deletes"] += 1
        return 1

    def keys(self) -> list[str]:
        return list(self._entries)

    def sweep(self) -> int:
        """Drop expired entries; returns how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def flush(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class CacheManager:
    """
    Five cache tiers with independent TTLs.

    Public operations never raise: failures are logged, counted in the
    tier's ``errors`` counter and reported as a miss or no-op.
    """

    def __init__(self, clock: Clock = time.monotonic):
        self.caches: dict[CacheType, TTLCache] = {
            CacheType.MAIN: TTLCache("main", settings.CACHE_MAIN_TTL, settings.CACHE_MAIN_CHECK_PERIOD, clock),
            CacheType.EVALUATION: TTLCache(
                "evaluation", settings.CACHE_EVALUATION_TTL, settings.CACHE_EVALUATION_CHECK_PERIOD, clock
            ),
            CacheType.DOCUMENT: TTLCache(
                "document", settings.CACHE_DOCUMENT_TTL, settings.CACHE_DOCUMENT_CHECK_PERIOD, clock
            ),
            CacheType.SESSION: TTLCache(
                "session", settings.CACHE_SESSION_TTL, settings.CACHE_SESSION_CHECK_PERIOD, clock
            ),
            CacheType.RULES: TTLCache("rules", settings.CACHE_RULES_TTL, settings.CACHE_RULES_CHECK_PERIOD, clock),
        }
        self._sweep_tasks: list[asyncio.Task] = []

    # ==================== Lifecycle ====================

    async def start(self) -> None:
        """Start periodic sweeps for tiers with a check period."""
        for cache in self.caches.values():
            if cache.check_period > 0:
                self._sweep_tasks.append(asyncio.create_task(self._sweep_loop(cache)))
        logger.info(f"Cache manager started with {len(self._sweep_tasks)} sweep task(s)")

    async def close(self) -> None:
        """Cancel sweep tasks and drop every entry."""
        for task in self._sweep_tasks:
            task.cancel()
        await asyncio.gather(*self._sweep_tasks, return_exceptions=True)
        self._sweep_tasks.clear()
        for cache in self.caches.values():
            cache.flush()
        logger.info("Cache manager closed")

    async def _sweep_loop(self, cache: TTLCache) -> None:
        while True:
            await asyncio.sleep(cache.check_period)
            removed = cache.sweep()
            if removed:
                logger.debug(f"Swept {removed} expired entries from {cache.name} cache")

    # ==================== Basic Operations ====================

    def get(self, key: str, cache_type: CacheType = CacheType.MAIN) -> Any:
        cache = self.caches[cache_type]
        try:
            return cache.get(key)
        except Exception as e:
            cache.stats["errors"] += 1
            logger.error(f"Cache get failed ({cache.name}, {key}): {str(e)}", exc_info=True)
            return None

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        cache_type: CacheType = CacheType.MAIN,
    ) -> bool:
        cache = self.caches[cache_type]
        try:
            return cache.set(key, value, ttl)
        except Exception as e:
            cache.stats["errors"] += 1
            logger.error(f"Cache set failed ({cache.name}, {key}): {str(e)}", exc_info=True)
            return False

    def delete(self, key: str, cache_type: CacheType = CacheType.MAIN) -> int:
        cache = self.caches[cache_type]
        try:
            return cache.delete(key)
        except Exception as e:
            cache.stats["errors"] += 1
            logger.error(f"Cache delete failed ({cache.name}, {key}): {str(e)}", exc_info=True)
            return 0

    # ==================== Key Derivation ====================

    @staticmethod
    def _hash(payload: Any) -> str:
        serialized = json.dumps(payload, sort_keys=True, default=str)
        return hashlib.sha256(serialized.encode("utf-8")).hexdigest()

    def generate_evaluation_key(
        self,
        visa_type: str,
        applicant: dict[str, Any],
        application_type: str,
        rule_set_version: str,
    ) -> str:
        """
        Deterministic key for an evaluation.

        Args:
            visa_type: Normalized visa code
            applicant: Discriminant applicant fields (see ApplicantData.fingerprint)
            application_type: NEW, EXTENSION or CHANGE
            rule_set_version: Version of the rule tables

        Returns:
            Key of the form ``eval:{visa_type}:{hash}``
        """
        digest = self._hash(
            {
                "visaType": visa_type,
                "applicant": applicant,
                "applicationType": application_type,
                "ruleSetVersion": rule_set_version,
            }
        )
        return f"eval:{visa_type}:{digest}"

    def generate_document_key(self, document_type: str, applicant_id: str, document_data: Any) -> str:
        return f"doc:{document_type}:{applicant_id}:{self._hash(document_data)}"

    # ==================== Domain Helpers ====================

    def cache_evaluation_result(self, key: str, result: dict[str, Any], ttl: Optional[int] = None) -> bool:
        """Store a deep copy of an evaluation marked with ``_cached`` and ``_cachedAt``."""
        cached = {
            **copy.deepcopy(result),
            "_cached": True,
            "_cachedAt": datetime.now(timezone.utc).isoformat(),
        }
        return self.set(key, cached, ttl, CacheType.EVALUATION)

    def get_cached_evaluation(self, key: str) -> Optional[dict[str, Any]]:
        """Deep copy of a cached evaluation; callers never share the stored value."""
        cached = self.get(key, CacheType.EVALUATION)
        return copy.deepcopy(cached) if cached is not None else None

    def cache_document_validation(self, key: str, result: dict[str, Any], ttl: Optional[int] = None) -> bool:
        return self.set(key, result, ttl, CacheType.DOCUMENT)

    def get_cached_document_validation(self, key: str) -> Optional[dict[str, Any]]:
        return self.get(key, CacheType.DOCUMENT)

    def cache_user_session(self, user_id: str, session: dict[str, Any], ttl: Optional[int] = None) -> bool:
        return self.set(f"user:{user_id}", session, ttl, CacheType.SESSION)

    def get_user_session(self, user_id: str) -> Optional[dict[str, Any]]:
        return self.get(f"user:{user_id}", CacheType.SESSION)

    def delete_user_session(self, user_id: str) -> int:
        return self.delete(f"user:{user_id}", CacheType.SESSION)

    def cache_rules(self, rule_id: str, rules: list[Any]) -> bool:
        """Store compiled rules; the rules tier never expires."""
        payload = {
            "rules": rules,
            "_rulesCount": len(rules),
            "_cachedAt": datetime.now(timezone.utc).isoformat(),
        }
        return self.set(f"rules:{rule_id}", payload, None, CacheType.RULES)

    def get_cached_rules(self, rule_id: str) -> Optional[dict[str, Any]]:
        return self.get(f"rules:{rule_id}", CacheType.RULES)

    # ==================== Maintenance ====================

    def delete_by_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        """
        Delete matching keys from every tier.

        Args:
            pattern: Substring, or a compiled regular expression searched
                against each key

        Returns:
            Number of deleted entries
        """
        if isinstance(pattern, re.Pattern):
            matches = pattern.search
        else:
            matches = lambda key: pattern in key  # noqa: E731

        deleted = 0
        for cache_type, cache in self.caches.items():
            for key in cache.keys():
                if matches(key):
                    deleted += self.delete(key, cache_type)
        logger.info(f"Deleted {deleted} cache entries matching {pattern!r}")
        return deleted

    def flush(self, cache_type: Optional[CacheType] = None) -> None:
        targets = [self.caches[cache_type]] if cache_type else self.caches.values()
        for cache in targets:
            cache.flush()
        logger.info(f"Flushed {cache_type.value if cache_type else 'all'} cache(s)")

    def get_statistics(self) -> dict[str, Any]:
        """Counters, key counts and hit rate per tier."""
        statistics = {}
        for cache_type, cache in self.caches.items():
            lookups = cache.stats["hits"] + cache.stats["misses"]
            statistics[cache_type.value] = {
                **cache.stats,
                "keys": len(cache),
                "hitRate": round(cache.stats["hits"] / lookups * 100, 2) if lookups else 0.0,
            }
        return statistics

    def health_check(self) -> dict[str, Any]:
        """Round-trip a sentinel value through the main tier."""
        sentinel_key = "__health_check__"
        sentinel = datetime.now(timezone.utc).isoformat()
        healthy = self.set(sentinel_key, sentinel, 10) and self.get(sentinel_key) == sentinel
        self.delete(sentinel_key)
        return {
            "status": "HEALTHY" if healthy else "UNHEALTHY",
            "caches": {cache_type.value: len(cache) for cache_type, cache in self.caches.items()},
            "sweepTasks": len(self._sweep_tasks),
        }
