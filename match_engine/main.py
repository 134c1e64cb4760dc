"""
Match Engine - FastAPI Application

Main entry point for the backend API.
Provides endpoints for student profiles, program matches and catalog
administration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from match_engine.config.settings import settings
from match_engine.infrastructure.exceptions import (
    MatchEngineError,
    ValidationError,
    NotFoundError,
    ConfigurationError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    from match_engine.api.dependencies import get_match_cache, get_orchestrator

    # Startup
    logger.info(f"Match Engine starting in {settings.environment} mode...")

    if settings.database_url:
        try:
            from match_engine.infrastructure.db.database import init_db
            await init_db()
            logger.info("SQLModel database connection pool initialized")
        except Exception as e:
            logger.warning(f"SQLModel database initialization skipped: {e}")
        else:
            await get_match_cache().warm_programs()

    yield

    # Shutdown
    await get_orchestrator().precompute_queue.drain()
    await get_match_cache().settle()

    if settings.database_url:
        try:
            from match_engine.infrastructure.db.database import close_db
            await close_db()
            logger.info("SQLModel database connection pool closed")
        except Exception as e:
            logger.warning(f"SQLModel database shutdown error: {e}")

    logger.info("Match Engine shutting down...")


app = FastAPI(
    title="Match Engine",
    description="Program match scoring and caching for IB students",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=400,
        content=exc.to_dict(),
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle not found errors (including a student with no profile)."""
    return JSONResponse(
        status_code=404,
        content=exc.to_dict(),
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Handle missing configuration."""
    return JSONResponse(
        status_code=503,
        content=exc.to_dict(),
    )


@app.exception_handler(MatchEngineError)
async def general_error_handler(request: Request, exc: MatchEngineError):
    """Handle all other application errors."""
    logger.error(f"Unhandled application error: {exc.message}")
    return JSONResponse(
        status_code=500,
        content=exc.to_dict(),
    )


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "match-engine"}


# ============================================================================
# Import and register routers
# ============================================================================

from match_engine.api.routes import admin, matches, profiles  # noqa: E402

app.include_router(profiles.router, prefix="/api", tags=["Profiles"])
app.include_router(matches.router, prefix="/api", tags=["Matches"])
app.include_router(admin.router)
