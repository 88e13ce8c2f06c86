"""
Pytest configuration and shared fixtures for backend tests.
"""

import pytest
from unittest.mock import Mock, AsyncMock

from newscast.models import PodcastRecord


ARTICLE_URL = "https://news.example/story-1"


@pytest.fixture
def mock_supabase():
    """Mock Supabase client."""
    mock = Mock()
    mock.storage.from_.return_value.upload.return_value = None
    mock.storage.from_.return_value.download.return_value = b"\xff\xfb\x90\x00" + b"\x00" * 100
    return mock


@pytest.fixture
def mock_genai_client():
    """Mock Gemini AI client with an async generate_content."""
    mock = Mock()
    mock.aio.models.generate_content = AsyncMock()
    return mock


@pytest.fixture
def article_text():
    """500 characters of extracted article text."""
    sentence = "The city council approved a new transit plan today. "
    text = (sentence * 10)[:500]
    assert len(text) == 500
    return text


@pytest.fixture
def sample_script():
    """120-character narration script."""
    script = ("Big news from city hall! The council just approved a transit plan. "
              "Here's what it means for you and your daily commute. Stay tuned.")[:120]
    assert len(script) == 120
    return script


@pytest.fixture
def sample_record():
    """Completed podcast record as returned by the repository."""
    return PodcastRecord(
        id=42,
        source_url=ARTICLE_URL,
        title="Story 1",
        script="A cached narration script that is long enough to be real.",
        audio_object_key="podcast_abc123.mp3",
        audio_url="https://stale.example/audio/podcast_abc123.mp3",
        owner_id="alice",
        processing_time_ms=1500,
        source_content_length=500,
        script_length=57,
        audio_byte_size=10000,
        cache_key="abc123",
    )


@pytest.fixture
def sample_row(sample_record):
    """The same record as a raw table row."""
    row = sample_record.to_row()
    row.update({
        "id": 42,
        "created_at": "2024-01-15T10:00:00+00:00",
        "updated_at": "2024-01-15T10:00:00+00:00",
    })
    return row
