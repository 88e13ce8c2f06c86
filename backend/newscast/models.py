"""
Data models for podcasts, access history and processing logs.

Field names are the Python-side names; ``to_row``/``from_row`` translate to
and from the column names in ``schema.sql``.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

ANONYMOUS_OWNER = "anonymous"


class PodcastStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class PodcastRecord(BaseModel):
    """A generated podcast. Created only after audio is stored."""

    id: Optional[int] = None
    source_url: str
    title: str
    script: str
    audio_object_key: str
    audio_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    owner_id: str = ANONYMOUS_OWNER
    status: PodcastStatus = PodcastStatus.COMPLETED
    processing_time_ms: Optional[int] = None
    source_content_length: Optional[int] = None
    script_length: Optional[int] = None
    audio_byte_size: Optional[int] = None
    cache_key: str

    def to_row(self) -> Dict[str, Any]:
        """Insert payload; id and timestamps are assigned by the store."""
        return {
            "source_url": self.source_url,
            "title": self.title,
            "script": self.script,
            "audio_object_key": self.audio_object_key,
            "audio_url": self.audio_url,
            "owner_id": self.owner_id,
            "status": self.status.value,
            "processing_time_ms": self.processing_time_ms,
            "source_content_length": self.source_content_length,
            "script_length": self.script_length,
            "audio_byte_size": self.audio_byte_size,
            "cache_key": self.cache_key,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PodcastRecord":
        return cls(
            id=row.get("id"),
            source_url=row["source_url"],
            title=row["title"],
            script=row["script"],
            audio_object_key=row["audio_object_key"],
            audio_url=row.get("audio_url"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            owner_id=row.get("owner_id") or ANONYMOUS_OWNER,
            status=row.get("status") or PodcastStatus.COMPLETED,
            processing_time_ms=row.get("processing_time_ms"),
            source_content_length=row.get("source_content_length"),
            script_length=row.get("script_length"),
            audio_byte_size=row.get("audio_byte_size"),
            cache_key=row["cache_key"],
        )


class AccessEvent(BaseModel):
    owner_id: str
    podcast_id: int
    accessed_at: Optional[datetime] = None


class ProcessingLogEntry(BaseModel):
    """Diagnostic record of a pipeline failure."""

    podcast_id: Optional[int] = None
    source_url: str
    error_type: str
    error_message: str
    stack_trace: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()


class PodcastStats(BaseModel):
    count: int = 0
    distinct_owners: int = 0
    avg_processing_time_ms: int = 0
    total_audio_bytes: int = 0
    completed_count: int = 0
    failed_count: int = 0


class GenerateRequest(BaseModel):
    url: str = Field(..., description="Article URL to narrate")
    userId: Optional[str] = Field(None, description="Requesting owner; defaults to anonymous")


class CheckCacheRequest(BaseModel):
    url: str
