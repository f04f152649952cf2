"""API v1 router configuration."""

from fastapi import APIRouter

from visa_engine.api.v1.endpoints import evaluations, guides, health, progress, system, visa_types

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health.router,
    tags=["health"],
)

api_router.include_router(
    evaluations.router,
    prefix="/evaluations",
    tags=["evaluations"],
)

api_router.include_router(
    visa_types.router,
    prefix="/visa-types",
    tags=["visa-types"],
)

api_router.include_router(
    progress.router,
    prefix="/progress",
    tags=["progress"],
)

api_router.include_router(
    system.router,
    prefix="/system",
    tags=["system"],
)

api_router.include_router(
    guides.router,
    prefix="/guides",
    tags=["guides"],
)
