"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from visa_engine.api.v1.router import api_router
from visa_engine.config import settings
from visa_engine.core.context import EngineContext
from visa_engine.core.errors import VisaEngineError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the engine context on startup and release it on shutdown."""
    engine = EngineContext.new()
    await engine.start()
    app.state.engine = engine
    logger.info(f"Visa evaluation engine started ({settings.ENVIRONMENT})")
    yield
    await engine.close()
    logger.info("Visa evaluation engine stopped")


# Create FastAPI application
app = FastAPI(
    title="Visa Evaluation Engine API",
    description="API for pre-screening visa applicants against versioned rule tables",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(VisaEngineError)
async def visa_engine_error_handler(request: Request, exc: VisaEngineError) -> JSONResponse:
    """Answer engine errors with their status code and structured body."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.to_dict()},
    )


# Include API router with v1 prefix
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "message": "Visa Evaluation Engine API",
        "version": "1.0.0",
        "docs": "/api/docs",
    }
