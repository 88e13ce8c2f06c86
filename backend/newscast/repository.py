"""
Relational persistence for podcasts, access history and processing logs.

Backed by Supabase tables (see ``schema.sql``). The client is synchronous,
so async callers go through ``asyncio.to_thread``.
"""

import logging
import string
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from newscast.core.errors import PersistenceError
from newscast.models import AccessEvent, PodcastRecord, PodcastStats, PodcastStatus, ProcessingLogEntry

logger = logging.getLogger(__name__)

PODCASTS_TABLE = "podcasts"
HISTORY_TABLE = "user_history"
LOGS_TABLE = "processing_logs"

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

UNIQUE_VIOLATION = "23505"

STATS_PAGE_SIZE = 1000

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def compute_cache_key(url: str) -> str:
    """
    Deterministic short key for a source URL.

    A 32-bit rolling string hash (``h = h * 31 + c`` over UTF-16 code
    units, wrapped to a signed 32-bit integer), absolute value, in base 36.
    Collisions are possible; ``source_url`` stays the authoritative
    uniqueness constraint.
    """
    encoded = url.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = ((h << 5) - h + code_unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return _to_base36(abs(h))


class PodcastRepository:
    """
    Podcast records, access events and error logs in Supabase.

    Lookups degrade to "not found" when the store is unavailable. ``save``
    raises PersistenceError so the pipeline can log it; ``record_access``
    and ``log_error`` swallow failures themselves.
    """

    def __init__(self, supabase: Optional[Client]):
        self.db = supabase

    @property
    def configured(self) -> bool:
        return self.db is not None

    def ensure_schema(self) -> bool:
        """
        Apply ``schema.sql``. Safe to call on every start.

        Requires an ``exec_sql(sql text)`` Postgres function exposed over
        RPC; without it the failure is logged and False is returned.
        """
        if not self.configured:
            return False

        try:
            self.db.rpc("exec_sql", {"sql": SCHEMA_PATH.read_text()}).execute()
            logger.info("Database schema initialized")
            return True
        except Exception as e:
            logger.error(f"Database schema initialization failed: {e}")
            return False

    # ==================== Lookups ====================

    def lookup_by_url(self, url: str) -> Optional[PodcastRecord]:
        return self._lookup("source_url", url)

    def lookup_by_cache_key(self, cache_key: str) -> Optional[PodcastRecord]:
        return self._lookup("cache_key", cache_key)

    def _lookup(self, column: str, value: str) -> Optional[PodcastRecord]:
        if not self.configured:
            return None

        try:
            response = self.db.table(PODCASTS_TABLE)\
                .select("*")\
                .eq(column, value)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Podcast lookup by {column} failed: {e}")
            return None

        if not response.data:
            return None
        return PodcastRecord.from_row(response.data[0])

    def list_by_owner(self, owner_id: str, limit: int = 50) -> List[PodcastRecord]:
        """Owner's podcasts, newest first."""
        if not self.configured:
            return []

        response = self.db.table(PODCASTS_TABLE)\
            .select("*")\
            .eq("owner_id", owner_id)\
            .order("created_at", desc=True)\
            .limit(limit)\
            .execute()

        return [PodcastRecord.from_row(row) for row in response.data or []]

    def count_created_since(self, owner_id: str, since: datetime) -> int:
        if not self.configured:
            return 0

        response = self.db.table(PODCASTS_TABLE)\
            .select("id", count="exact")\
            .eq("owner_id", owner_id)\
            .gte("created_at", since.isoformat())\
            .execute()

        return response.count or 0

    def aggregate_stats(self) -> PodcastStats:
        """
        Totals across all podcasts.

        PostgREST caps each response at the project's ``max-rows``, so rows
        are read in pages until the server-side exact count is reached.
        """
        if not self.configured:
            return PodcastStats()

        rows = []
        while True:
            response = self.db.table(PODCASTS_TABLE)\
                .select("owner_id, status, processing_time_ms, audio_byte_size", count="exact")\
                .order("id")\
                .range(len(rows), len(rows) + STATS_PAGE_SIZE - 1)\
                .execute()
            page = response.data or []
            rows.extend(page)
            total = response.count if response.count is not None else len(rows)
            if not page or len(rows) >= total:
                break

        timings = [r["processing_time_ms"] for r in rows if r.get("processing_time_ms") is not None]

        return PodcastStats(
            count=total,
            distinct_owners=len({r.get("owner_id") for r in rows}),
            avg_processing_time_ms=round(sum(timings) / len(timings)) if timings else 0,
            total_audio_bytes=sum(r.get("audio_byte_size") or 0 for r in rows),
            completed_count=sum(1 for r in rows if r.get("status") == PodcastStatus.COMPLETED.value),
            failed_count=sum(1 for r in rows if r.get("status") == PodcastStatus.FAILED.value),
        )

    # ==================== Writes ====================

    def save(self, record: PodcastRecord) -> Optional[int]:
        """
        Insert a podcast record.

        A duplicate ``source_url``/``cache_key`` means a concurrent request
        for the same URL finished first; the existing row's id is returned.

        Returns:
            Id of the stored row, or None when the store is not configured

        Raises:
            PersistenceError on any other failure
        """
        if not self.configured:
            logger.warning("Database not configured, podcast not saved")
            return None

        try:
            response = self.db.table(PODCASTS_TABLE).insert(record.to_row()).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                logger.info(f"Podcast for {record.source_url} already exists, reusing it")
                existing = self.lookup_by_url(record.source_url)
                if existing is not None:
                    return existing.id
            raise PersistenceError(f"Failed to save podcast: {e.message}") from e
        except Exception as e:
            raise PersistenceError(f"Failed to save podcast: {e}") from e

        if not response.data:
            raise PersistenceError("Failed to save podcast: insert returned no row")

        podcast_id = response.data[0]["id"]
        logger.info(f"Podcast saved with ID: {podcast_id}")
        return podcast_id

    def record_access(self, owner_id: str, podcast_id: int):
        if not self.configured or podcast_id is None:
            return

        try:
            event = AccessEvent(owner_id=owner_id, podcast_id=podcast_id)
            self.db.table(HISTORY_TABLE).insert(event.model_dump(exclude_none=True)).execute()
        except Exception as e:
            logger.warning(f"Failed to record access for {owner_id} to {podcast_id}: {e}")

    def log_error(self, entry: ProcessingLogEntry):
        if not self.configured:
            logger.warning(f"Database not configured, dropping error log for {entry.source_url}")
            return

        try:
            self.db.table(LOGS_TABLE).insert(entry.to_row()).execute()
        except Exception as e:
            logger.warning(f"Failed to write processing log for {entry.source_url}: {e}")
