"""Shared engine resources with an explicit lifecycle."""

import logging
from dataclasses import dataclass, field
from typing import Any

from visa_engine.services.cache_manager import CacheManager
from visa_engine.services.progress_tracker import ProgressTracker
from visa_engine.services.rule_engine.factory import EvaluatorFactory

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    """
    Caches, progress tracker, plugin factory and error counters.

    One instance per FastAPI app (created in the lifespan) and one per test.
    """

    cache: CacheManager
    tracker: ProgressTracker
    factory: EvaluatorFactory
    stats: dict[str, Any] = field(
        default_factory=lambda: {
            "evaluations": 0,
            "cacheHits": 0,
            "failures": 0,
            "errorsByCode": {},
        }
    )

    @classmethod
    def new(cls, **tracker_options: Any) -> "EngineContext":
        """Build a context with fresh caches and an empty tracker."""
        cache = CacheManager()
        return cls(
            cache=cache,
            tracker=ProgressTracker(cache, **tracker_options),
            factory=EvaluatorFactory(),
        )

    async def start(self) -> None:
        """Start cache sweeps and the periodic progress cleanup."""
        await self.cache.start()
        await self.tracker.start()

    async def close(self) -> None:
        """Cancel background tasks and release caches."""
        await self.tracker.close()
        await self.cache.close()
        self.factory.clear_cache()
        logger.info("Engine context closed")

    def record_error(self, code: str) -> None:
        self.stats["failures"] += 1
        self.stats["errorsByCode"][code] = self.stats["errorsByCode"].get(code, 0) + 1
