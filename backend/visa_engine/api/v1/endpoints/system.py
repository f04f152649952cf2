"""System endpoints: engine health, service status and cache administration."""

import logging
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends

from visa_engine.core.context import EngineContext
from visa_engine.core.enums import CacheType
from visa_engine.deps import get_engine_context, get_engine_service
from visa_engine.services.evaluation_service import VisaEvaluationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", summary="Engine health")
async def get_system_health(
    service: Annotated[VisaEvaluationService, Depends(get_engine_service)],
) -> dict[str, Any]:
    return service.get_system_health()


@router.get("/status", summary="Engine statistics")
async def get_service_status(
    service: Annotated[VisaEvaluationService, Depends(get_engine_service)],
) -> dict[str, Any]:
    return service.get_service_status()


@router.get("/cache", summary="Cache statistics")
async def get_cache_statistics(
    engine: Annotated[EngineContext, Depends(get_engine_context)],
) -> dict[str, Any]:
    return engine.cache.get_statistics()


@router.delete("/cache", summary="Invalidate cache entries")
async def clear_cache(
    engine: Annotated[EngineContext, Depends(get_engine_context)],
    cache_type: Optional[CacheType] = None,
    pattern: Optional[str] = None,
) -> dict[str, Any]:
    """
    Invalidate cache entries.

    With ``pattern``, deletes keys containing it from every tier; otherwise
    flushes ``cache_type`` or all tiers.
    """
    if pattern:
        deleted = engine.cache.delete_by_pattern(pattern)
        return {"deleted": deleted, "pattern": pattern}

    engine.cache.flush(cache_type)
    logger.info(f"Cache flushed via API: {cache_type.value if cache_type else 'all'}")
    return {"flushed": cache_type.value if cache_type else "all"}
