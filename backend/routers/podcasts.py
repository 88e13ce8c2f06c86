"""
Podcasts router - HTTP binding for the generation pipeline.

Request parsing and response shaping only; cache keys, titles and audio
URLs all come from the pipeline.
"""

import asyncio
import logging
from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.responses import JSONResponse, Response

from newscast.core.errors import InvalidUrlError, NewscastError
from newscast.models import CheckCacheRequest, GenerateRequest
from newscast.pipeline import PodcastPipeline, normalize_owner_id, validate_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["podcasts"])

HISTORY_LIMIT = 50

# Failure category -> HTTP status; anything else is a 500.
STATUS_BY_CATEGORY = {
    "invalid_url": 400,
    "invalid_input": 400,
    "rate_limited": 429,
}


# ==================== Dependencies ====================

def get_pipeline(request: Request) -> PodcastPipeline:
    """Get the shared PodcastPipeline."""
    return request.app.state.pipeline


# ==================== Endpoints ====================

@router.post("/generate")
async def generate_podcast(
    request: GenerateRequest,
    pipeline: PodcastPipeline = Depends(get_pipeline)
):
    """
    Generate (or return the cached) podcast for an article URL.

    The pipeline runs inline: check cache, scrape, summarize, synthesize,
    store. Failures come back with the step and category that produced them.
    """
    logger.info(f"Starting podcast generation for: {request.url}")

    result = await pipeline.generate(request.url, request.userId)

    if not result.success:
        status_code = STATUS_BY_CATEGORY.get(result.error.category, 500)
        return JSONResponse(status_code=status_code, content=result.to_dict())

    return result.to_dict()


@router.post("/check-cache")
async def check_cache(
    request: CheckCacheRequest,
    pipeline: PodcastPipeline = Depends(get_pipeline)
):
    """Report whether a podcast already exists for a URL."""
    try:
        url = validate_url(request.url)
    except InvalidUrlError as e:
        raise HTTPException(status_code=400, detail=e.message)

    cached = await pipeline.check_cache(url)

    if cached is None:
        return {"success": True, "data": {"cached": False}}

    return {
        "success": True,
        "data": {
            "cached": True,
            "result": cached.model_dump(mode="json")
        }
    }


@router.get("/audio/{file_name}")
async def get_audio(
    file_name: str,
    pipeline: PodcastPipeline = Depends(get_pipeline)
):
    """Serve stored podcast audio."""
    if not pipeline.audio_store.configured:
        raise HTTPException(status_code=500, detail="Storage not configured")

    audio_data = await asyncio.to_thread(pipeline.audio_store.get, file_name)

    if audio_data is None:
        raise HTTPException(status_code=404, detail="Audio not found")

    return Response(
        content=audio_data,
        media_type="audio/mpeg",
        headers={
            "Cache-Control": "public, max-age=31536000",
            "Content-Disposition": f'inline; filename="{file_name}"',
            "Accept-Ranges": "bytes"
        }
    )


@router.get("/history/{owner_id}")
async def get_history(
    owner_id: str,
    pipeline: PodcastPipeline = Depends(get_pipeline)
):
    """List an owner's podcasts, newest first."""
    try:
        owner_id = normalize_owner_id(owner_id)
    except NewscastError as e:
        raise HTTPException(status_code=400, detail=e.message)

    if not pipeline.repository.configured:
        raise HTTPException(status_code=500, detail="Database not configured")

    try:
        records = await asyncio.to_thread(pipeline.repository.list_by_owner, owner_id, HISTORY_LIMIT)
    except Exception as e:
        logger.error(f"Failed to get history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get history")

    for record in records:
        record.audio_url = pipeline.audio_url_for(record.audio_object_key)

    return {
        "success": True,
        "data": [record.model_dump(mode="json") for record in records]
    }
