"""GADS Bridge — FastAPI Application Entry Point.

Google Ads reporting normalized into platform-agnostic rows.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gadsbridge.api.report_routes import router as report_router
from gadsbridge.config import settings
from gadsbridge.core.logging import get_logger

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("GADS Bridge starting up...")
    if not settings.has_app_credentials:
        logger.warning(
            "Google Ads app credentials are not configured; report endpoints will fail"
        )
    yield
    logger.info("GADS Bridge shut down")


app = FastAPI(
    title="GADS Bridge",
    description="Pull Google Ads performance data and return standardized, platform-agnostic reporting rows.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(report_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "gads-bridge",
        "version": "1.0.0",
    }
