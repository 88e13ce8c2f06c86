"""
Podcast generation pipeline.

Single orchestrator behind every entry point (HTTP router, CLI):

    validate -> cache check -> extract (text || title) -> summarize
             -> synthesize -> store audio -> save record (best-effort)

A cache hit returns the stored record immediately. Any step failure is
wrapped in a PipelineError tagged with the step, written to the processing
log, and returned as a failed GenerationResult. Saving the record is the
one write whose failure does not fail the request.
"""

import re
import time
import asyncio
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from newscast.core.errors import (
    InvalidInputError,
    InvalidUrlError,
    PipelineError,
    RateLimitedError,
    StorageUnavailableError,
)
from newscast.core.extraction_service import FALLBACK_TITLE, ArticleExtractor
from newscast.models import ANONYMOUS_OWNER, PodcastRecord, PodcastStatus, ProcessingLogEntry
from newscast.podcasts.audio import SpeechSynthesizer
from newscast.podcasts.script import ScriptSummarizer
from newscast.rate_limit import AllowAllRateLimiter, RateLimiter
from newscast.repository import PodcastRepository, compute_cache_key
from newscast.storage import AUDIO_CONTENT_TYPE, AudioStore, audio_object_key

logger = logging.getLogger(__name__)

MAX_OWNER_ID_LENGTH = 100
_OWNER_ID_RE = re.compile(r"[^a-zA-Z0-9_-]")


def normalize_owner_id(owner_id: Optional[str]) -> str:
    """
    Sanitize a caller-supplied owner id.

    Missing or blank ids (and ids with no usable characters) become
    "anonymous".

    Raises:
        InvalidInputError if the sanitized id exceeds 100 characters
    """
    if not owner_id:
        return ANONYMOUS_OWNER

    sanitized = _OWNER_ID_RE.sub("", owner_id)
    if not sanitized:
        return ANONYMOUS_OWNER
    if len(sanitized) > MAX_OWNER_ID_LENGTH:
        raise InvalidInputError(f"userId is too long (max {MAX_OWNER_ID_LENGTH} characters)")
    return sanitized


def validate_url(url: str) -> str:
    if not url or not isinstance(url, str):
        raise InvalidUrlError("URL is required", url=url)

    parts = urlsplit(url.strip())
    if parts.scheme not in ("http", "https"):
        raise InvalidUrlError("URL must use HTTP or HTTPS protocol", url=url)
    if not parts.netloc:
        raise InvalidUrlError("Invalid URL format", url=url)
    return url.strip()


class GenerationResult:
    """Outcome of one ``generate`` call: a record or a step-tagged error."""

    def __init__(
        self,
        success: bool,
        record: Optional[PodcastRecord] = None,
        error: Optional[PipelineError] = None,
        cached: bool = False
    ):
        self.success = success
        self.record = record
        self.error = error
        self.cached = cached

    @classmethod
    def completed(cls, record: PodcastRecord, cached: bool = False) -> "GenerationResult":
        return cls(success=True, record=record, cached=cached)

    @classmethod
    def failed(cls, error: PipelineError) -> "GenerationResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {
                "success": True,
                "cached": self.cached,
                "result": self.record.model_dump(mode="json"),
            }
        return {
            "success": False,
            "error": self.error.message,
            "step": self.error.step,
            "category": self.error.category,
        }


class PodcastPipeline:
    """
    Orchestrates podcast generation for a URL.

    Holds no per-request state, so one instance serves concurrent requests.
    Blocking Supabase calls run in worker threads.
    """

    def __init__(
        self,
        repository: PodcastRepository,
        audio_store: AudioStore,
        extractor: ArticleExtractor,
        summarizer: ScriptSummarizer,
        synthesizer: SpeechSynthesizer,
        public_base_url: str,
        rate_limiter: Optional[RateLimiter] = None
    ):
        self.repository = repository
        self.audio_store = audio_store
        self.extractor = extractor
        self.summarizer = summarizer
        self.synthesizer = synthesizer
        self.public_base_url = public_base_url.rstrip("/")
        self.rate_limiter = rate_limiter or AllowAllRateLimiter()

    def audio_url_for(self, object_key: str) -> str:
        return f"{self.public_base_url}/audio/{object_key}"

    async def check_cache(self, url: str) -> Optional[PodcastRecord]:
        """Completed record for ``url`` with a fresh audio URL, or None."""
        try:
            record = await asyncio.to_thread(self.repository.lookup_by_url, url)
        except Exception as e:
            logger.error(f"Database check error: {e}")
            return None

        if record is None or record.status != PodcastStatus.COMPLETED or not record.audio_object_key:
            return None

        record.audio_url = self.audio_url_for(record.audio_object_key)
        return record

    async def generate(self, url: str, owner_id: Optional[str] = None) -> GenerationResult:
        """
        Produce (or fetch from cache) the podcast for ``url``.

        Never raises for pipeline failures; inspect ``result.success``.
        """
        start = time.monotonic()

        try:
            url, owner_id = await self._step("validate", self._validate(url, owner_id))

            cached = await self.check_cache(url)
            if cached is not None:
                logger.info(f"Database hit! Returning cached podcast for {url}")
                await self._record_access(owner_id, cached.id)
                return GenerationResult.completed(cached, cached=True)

            allowed = await self._step("validate", asyncio.to_thread(self.rate_limiter.check, owner_id))
            if not allowed:
                raise PipelineError(
                    "validate",
                    RateLimitedError("Rate limit exceeded: try again tomorrow", owner_id=owner_id)
                )

            logger.info(f"[extract] Scraping webpage and extracting title for {url}")
            content, title = await self._step("extract", self._extract(url))
            logger.info(f"Scraped {len(content)} characters, title: {title}")

            logger.info("[summarize] AI summarization...")
            script = await self._step("summarize", self.summarizer.summarize(content))

            logger.info("[synthesize] Generating audio...")
            audio_data = await self._step("synthesize", self.synthesizer.synthesize(script))

            logger.info("[store] Storing audio...")
            cache_key = compute_cache_key(url)
            object_key = await self._step(
                "store",
                self._store_audio(url, cache_key, title, owner_id, audio_data)
            )

        except PipelineError as e:
            logger.error(f"Podcast generation failed for {url}: {e}", exc_info=e.cause)
            await self._log_failure(url, e.category, e)
            return GenerationResult.failed(e)

        record = PodcastRecord(
            source_url=url,
            title=title,
            script=script,
            audio_object_key=object_key,
            audio_url=self.audio_url_for(object_key),
            owner_id=owner_id,
            status=PodcastStatus.COMPLETED,
            processing_time_ms=int((time.monotonic() - start) * 1000),
            source_content_length=len(content),
            script_length=len(script),
            audio_byte_size=len(audio_data),
            cache_key=cache_key,
        )

        await self._save(record)
        record.created_at = record.created_at or datetime.now(timezone.utc)

        logger.info(f"Podcast generation completed in {record.processing_time_ms}ms")
        return GenerationResult.completed(record)

    # ==================== Steps ====================

    async def _step(self, step: str, awaitable):
        try:
            return await awaitable
        except PipelineError:
            raise
        except Exception as e:
            raise PipelineError(step, e) from e

    async def _validate(self, url: str, owner_id: Optional[str]):
        return validate_url(url), normalize_owner_id(owner_id)

    async def _extract(self, url: str):
        await self.extractor.is_accessible(url)
        return await asyncio.gather(
            self.extractor.extract(url),
            self._derive_title(url)
        )

    async def _derive_title(self, url: str) -> str:
        try:
            return self.extractor.derive_title(url)
        except Exception as e:
            logger.error(f"Title extraction failed: {e}")
            return FALLBACK_TITLE

    async def _store_audio(
        self,
        url: str,
        cache_key: str,
        title: str,
        owner_id: str,
        audio_data: bytes
    ) -> str:
        if not self.audio_store.configured:
            raise StorageUnavailableError("Audio storage not configured", operation="put")

        object_key = audio_object_key(cache_key)
        await asyncio.to_thread(
            self.audio_store.put,
            object_key,
            audio_data,
            AUDIO_CONTENT_TYPE,
            {
                "url": url,
                "title": title,
                "createdAt": datetime.now(timezone.utc).isoformat(),
                "userId": owner_id,
            }
        )
        logger.info(f"Audio stored as {object_key}")
        return object_key

    # ==================== Best-effort writes ====================

    async def _save(self, record: PodcastRecord):
        try:
            record.id = await asyncio.to_thread(self.repository.save, record)
        except Exception as e:
            logger.error(f"Database save failed for {record.source_url}: {e}", exc_info=True)
            await self._log_failure(record.source_url, "persistence", e)
            return

        await self._record_access(record.owner_id, record.id)

    async def _record_access(self, owner_id: str, podcast_id: Optional[int]):
        if podcast_id is None:
            return
        try:
            await asyncio.to_thread(self.repository.record_access, owner_id, podcast_id)
        except Exception as e:
            logger.warning(f"Failed to record access: {e}")

    async def _log_failure(self, url: str, error_type: str, error: BaseException):
        cause = error.cause if isinstance(error, PipelineError) else error
        entry = ProcessingLogEntry(
            source_url=url if isinstance(url, str) else repr(url),
            error_type=error_type,
            error_message=str(error),
            stack_trace="".join(traceback.format_exception(type(cause), cause, cause.__traceback__)),
        )
        try:
            await asyncio.to_thread(self.repository.log_error, entry)
        except Exception as e:
            logger.warning(f"Failed to write processing log: {e}")
