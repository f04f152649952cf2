"""Service layer for evaluation, caching, compliance and progress tracking."""

from visa_engine.services.cache_manager import CacheManager
from visa_engine.services.evaluation_service import VisaEvaluationService
from visa_engine.services.progress_tracker import ProgressTracker

__all__ = ["CacheManager", "ProgressTracker", "VisaEvaluationService"]
