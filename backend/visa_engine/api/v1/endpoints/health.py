"""Health check endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from visa_engine.core.context import EngineContext
from visa_engine.deps import get_engine_context, get_session

router = APIRouter()


@router.get("/health")
async def health_check(
    db: Annotated[AsyncSession, Depends(get_session)],
    engine: Annotated[EngineContext, Depends(get_engine_context)],
) -> dict:
    """
    Health check endpoint.

    Verifies that the API is running, the rule engine has plugins and the
    history database is accessible.

    Returns:
        dict: Health status with API, engine and database status
    """
    # Check database connectivity
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "api": "healthy",
        "engine": {"supportedVisaTypes": engine.factory.supported_visa_types()},
        "database": db_status,
    }
