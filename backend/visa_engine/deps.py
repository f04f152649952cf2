"""Dependency injection for FastAPI endpoints."""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from visa_engine.core.context import EngineContext
from visa_engine.db.session import get_db
from visa_engine.services.evaluation_service import VisaEvaluationService

__all__ = ["get_db", "get_session", "get_engine_context", "get_engine_service", "get_evaluation_service"]


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session dependency.

    This is an alias for get_db for clarity in endpoint signatures.
    """
    async for session in get_db():
        yield session


def get_engine_context(request: Request) -> EngineContext:
    """Engine context created by the application lifespan."""
    return request.app.state.engine


def get_engine_service(
    context: Annotated[EngineContext, Depends(get_engine_context)],
) -> VisaEvaluationService:
    """Evaluation service without history persistence, for read-only endpoints."""
    return VisaEvaluationService(context)


def get_evaluation_service(
    context: Annotated[EngineContext, Depends(get_engine_context)],
    db: Annotated[AsyncSession, Depends(get_session)],
) -> VisaEvaluationService:
    """Evaluation service bound to the request's database session."""
    return VisaEvaluationService(context, db)
