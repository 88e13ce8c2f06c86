"""
Environment-driven configuration.

Values come from the process environment, optionally seeded from a ``.env``
file, and are collected into a single ``Settings`` object that the entry
points pass down explicitly.
"""

import os
import logging
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


class Settings(BaseModel):
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    elevenlabs_api_key: Optional[str] = None
    elevenlabs_voice_id: str = DEFAULT_VOICE_ID
    audio_bucket: str = "podcasts"
    public_base_url: str = "http://localhost:8000"
    rate_limit_per_day: int = 100
    log_level: str = "INFO"
    port: int = 8000

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional path to a .env file (defaults to dotenv's lookup)

    Returns:
        Populated Settings
    """
    load_dotenv(env_file)

    settings = Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY"),
        gemini_api_key=os.getenv("GEMINI_API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY") or None,
        elevenlabs_voice_id=os.getenv("ELEVENLABS_VOICE_ID") or DEFAULT_VOICE_ID,
        audio_bucket=os.getenv("AUDIO_BUCKET", "podcasts"),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        rate_limit_per_day=int(os.getenv("RATE_LIMIT_PER_DAY", "100")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", "8000")),
    )

    if not settings.supabase_configured:
        logger.warning("Supabase not configured - caching and persistence disabled")
    if not settings.elevenlabs_api_key:
        logger.warning("ELEVENLABS_API_KEY not set - audio synthesis will fail")

    return settings


def configure_logging(level: str = "INFO"):
    """Configure root logging the same way for every entry point."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
