"""
Wiring of clients and services shared by the app and the CLI.
"""

import logging
from typing import Optional

import httpx
from google import genai
from supabase import Client, create_client

from newscast.config import Settings
from newscast.core.errors import ConfigurationError
from newscast.core.extraction_service import ArticleExtractor
from newscast.pipeline import PodcastPipeline
from newscast.podcasts.audio import SpeechSynthesizer
from newscast.podcasts.script import ScriptSummarizer
from newscast.rate_limit import DailyRateLimiter
from newscast.repository import PodcastRepository
from newscast.storage import AudioStore

logger = logging.getLogger(__name__)


def create_supabase(settings: Settings) -> Optional[Client]:
    if not settings.supabase_configured:
        return None
    return create_client(settings.supabase_url, settings.supabase_service_key)


def build_pipeline(
    settings: Settings,
    http_client: httpx.AsyncClient,
    supabase: Optional[Client] = None,
    genai_client: Optional[genai.Client] = None
) -> PodcastPipeline:
    """
    Assemble a PodcastPipeline from settings.

    Args:
        settings: Loaded configuration
        http_client: Client shared by the extractor and the synthesizer
        supabase: Optional pre-built Supabase client
        genai_client: Optional pre-built Gemini client

    Raises:
        ConfigurationError if no Gemini key is available
    """
    if genai_client is None:
        if not settings.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY not configured", setting="GEMINI_API_KEY")
        genai_client = genai.Client(api_key=settings.gemini_api_key)

    if supabase is None:
        supabase = create_supabase(settings)

    repository = PodcastRepository(supabase)

    return PodcastPipeline(
        repository=repository,
        audio_store=AudioStore(supabase, bucket=settings.audio_bucket),
        extractor=ArticleExtractor(http_client),
        summarizer=ScriptSummarizer(genai_client, model=settings.gemini_model),
        synthesizer=SpeechSynthesizer(
            settings.elevenlabs_api_key,
            voice_id=settings.elevenlabs_voice_id,
            client=http_client
        ),
        public_base_url=settings.public_base_url,
        rate_limiter=DailyRateLimiter(repository, limit=settings.rate_limit_per_day),
    )
