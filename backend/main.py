#!/usr/bin/env python3
"""
Newscast Backend

FastAPI backend that turns article URLs into short narrated podcasts.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from newscast import __version__
from newscast.config import configure_logging, load_settings
from newscast.services import build_pipeline

# Import routers
from routers import podcasts_router

settings = load_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    logger.info("=" * 80)
    logger.info("Starting Newscast Backend")
    logger.info("=" * 80)

    http_client = httpx.AsyncClient()

    try:
        pipeline = build_pipeline(settings, http_client)
        app.state.pipeline = pipeline
        logger.info("✅ Pipeline initialized")
    except Exception as e:
        logger.error(f"❌ Failed to initialize pipeline: {e}")
        await http_client.aclose()
        raise

    if pipeline.repository.configured:
        if await asyncio.to_thread(pipeline.repository.ensure_schema):
            logger.info("✅ Database schema ready")
        else:
            logger.info("⚠️  Database schema not applied - assuming tables exist")
    else:
        logger.info("⚠️  Supabase not configured - caching and history disabled")

    logger.info("=" * 80)
    logger.info("Backend ready to serve requests")
    logger.info("=" * 80)

    yield

    await http_client.aclose()
    logger.info("Shutting down Newscast Backend")


# Create FastAPI app
app = FastAPI(
    title="Newscast API",
    description="Article-to-podcast generation",
    version=__version__,
    lifespan=lifespan
)

# Register routers
app.include_router(podcasts_router)


# ==================== Root Endpoints ====================

@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "success": True,
        "data": {
            "status": "ok",
            "service": "Newscast API",
            "version": __version__,
            "database": "supabase" if settings.supabase_configured else "not configured"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    pipeline = getattr(app.state, "pipeline", None)
    return {
        "status": "healthy" if pipeline else "starting",
        "services": {
            "supabase": "configured" if settings.supabase_configured else "not configured",
            "elevenlabs": "configured" if settings.elevenlabs_api_key else "not configured",
            "gemini": settings.gemini_model
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        log_level="info"
    )
