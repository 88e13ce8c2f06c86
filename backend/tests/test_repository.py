"""
Tests for the Supabase-backed podcast repository.
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from postgrest.exceptions import APIError

from newscast.core.errors import PersistenceError
from newscast.models import PodcastStats, ProcessingLogEntry
from newscast.repository import (
    HISTORY_TABLE,
    LOGS_TABLE,
    PODCASTS_TABLE,
    PodcastRepository,
    compute_cache_key,
)


def query_returning(data=None, count=None):
    """A chainable query builder mock whose execute() returns ``data``."""
    query = Mock()
    for method in ("select", "eq", "gte", "order", "limit", "range", "insert"):
        getattr(query, method).return_value = query
    query.execute.return_value = Mock(data=data, count=count)
    return query


class TestCacheKey:

    @pytest.mark.parametrize("url, expected", [
        ("https://example.com", "ags5vy"),
        ("https://news.example/story-1", "r8v9js"),
        ("https://例え.jp/ニュース", "unupb2"),
        ("a", "2p"),
        ("", "0"),
    ])
    def test_matches_reference_hash(self, url, expected):
        assert compute_cache_key(url) == expected

    def test_deterministic(self):
        assert compute_cache_key("https://news.example/a") == compute_cache_key("https://news.example/a")
        assert compute_cache_key("https://news.example/a") != compute_cache_key("https://news.example/b")


class TestLookups:

    def test_lookup_by_url_hit(self, mock_supabase, sample_row):
        query = query_returning([sample_row])
        mock_supabase.table.return_value = query

        record = PodcastRepository(mock_supabase).lookup_by_url(sample_row["source_url"])

        mock_supabase.table.assert_called_with(PODCASTS_TABLE)
        query.eq.assert_called_with("source_url", sample_row["source_url"])
        query.limit.assert_called_with(1)
        assert record.id == 42
        assert record.cache_key == "abc123"
        assert record.created_at == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

    def test_lookup_miss(self, mock_supabase):
        mock_supabase.table.return_value = query_returning([])

        assert PodcastRepository(mock_supabase).lookup_by_url("https://news.example/nope") is None

    def test_lookup_by_cache_key(self, mock_supabase, sample_row):
        query = query_returning([sample_row])
        mock_supabase.table.return_value = query

        record = PodcastRepository(mock_supabase).lookup_by_cache_key("abc123")

        query.eq.assert_called_with("cache_key", "abc123")
        assert record.source_url == sample_row["source_url"]

    def test_lookup_failure_is_a_miss(self, mock_supabase):
        mock_supabase.table.side_effect = Exception("connection refused")

        assert PodcastRepository(mock_supabase).lookup_by_url("https://news.example/x") is None

    def test_unconfigured_lookup(self):
        assert PodcastRepository(None).lookup_by_url("https://news.example/x") is None

    def test_list_by_owner_newest_first(self, mock_supabase, sample_row):
        query = query_returning([sample_row, dict(sample_row, id=41)])
        mock_supabase.table.return_value = query

        records = PodcastRepository(mock_supabase).list_by_owner("alice")

        query.eq.assert_called_with("owner_id", "alice")
        query.order.assert_called_with("created_at", desc=True)
        query.limit.assert_called_with(50)
        assert [r.id for r in records] == [42, 41]

    def test_count_created_since(self, mock_supabase):
        query = query_returning([], count=7)
        mock_supabase.table.return_value = query
        since = datetime(2024, 1, 15, tzinfo=timezone.utc)

        count = PodcastRepository(mock_supabase).count_created_since("alice", since)

        assert count == 7
        query.select.assert_called_with("id", count="exact")
        query.gte.assert_called_with("created_at", since.isoformat())


class TestStats:

    def test_aggregates_rows(self, mock_supabase):
        mock_supabase.table.return_value = query_returning([
            {"owner_id": "alice", "status": "completed", "processing_time_ms": 1000, "audio_byte_size": 5000},
            {"owner_id": "alice", "status": "completed", "processing_time_ms": 3000, "audio_byte_size": 7000},
            {"owner_id": "bob", "status": "failed", "processing_time_ms": None, "audio_byte_size": None},
        ])

        stats = PodcastRepository(mock_supabase).aggregate_stats()

        assert stats == PodcastStats(
            count=3,
            distinct_owners=2,
            avg_processing_time_ms=2000,
            total_audio_bytes=12000,
            completed_count=2,
            failed_count=1,
        )

    def test_pages_until_server_count(self, mock_supabase):
        row = {"owner_id": "alice", "status": "completed", "processing_time_ms": 1000, "audio_byte_size": 100}
        query = query_returning()
        query.execute.side_effect = [
            Mock(data=[row, dict(row, owner_id="bob")], count=3),
            Mock(data=[dict(row, status="failed", owner_id="carol")], count=3),
        ]
        mock_supabase.table.return_value = query

        stats = PodcastRepository(mock_supabase).aggregate_stats()

        assert stats.count == 3
        assert stats.distinct_owners == 3
        assert stats.total_audio_bytes == 300
        assert stats.completed_count == 2
        assert stats.failed_count == 1
        assert [c.args for c in query.range.call_args_list] == [(0, 999), (2, 1001)]
        query.select.assert_called_with(
            "owner_id, status, processing_time_ms, audio_byte_size", count="exact"
        )

    def test_count_comes_from_server(self, mock_supabase):
        row = {"owner_id": "alice", "status": "completed", "processing_time_ms": 500, "audio_byte_size": 10}
        query = query_returning()
        query.execute.side_effect = [
            Mock(data=[row], count=1500),
            Mock(data=[], count=1500),
        ]
        mock_supabase.table.return_value = query

        stats = PodcastRepository(mock_supabase).aggregate_stats()

        assert stats.count == 1500
        assert query.execute.call_count == 2

    def test_unconfigured_is_empty(self):
        assert PodcastRepository(None).aggregate_stats() == PodcastStats()


class TestSave:

    def test_insert_returns_id(self, mock_supabase, sample_record):
        query = query_returning([{"id": 99}])
        mock_supabase.table.return_value = query

        podcast_id = PodcastRepository(mock_supabase).save(sample_record)

        assert podcast_id == 99
        row = query.insert.call_args[0][0]
        assert "id" not in row
        assert "created_at" not in row
        assert row["cache_key"] == "abc123"
        assert row["status"] == "completed"

    def test_unique_violation_reuses_existing_row(self, mock_supabase, sample_record, sample_row):
        insert_query = query_returning()
        insert_query.execute.side_effect = APIError({
            "message": "duplicate key value violates unique constraint",
            "code": "23505",
        })
        lookup_query = query_returning([sample_row])
        mock_supabase.table.side_effect = [insert_query, lookup_query]

        podcast_id = PodcastRepository(mock_supabase).save(sample_record)

        assert podcast_id == 42

    def test_other_api_error_raises(self, mock_supabase, sample_record):
        query = query_returning()
        query.execute.side_effect = APIError({"message": "permission denied", "code": "42501"})
        mock_supabase.table.return_value = query

        with pytest.raises(PersistenceError, match="permission denied"):
            PodcastRepository(mock_supabase).save(sample_record)

    def test_empty_insert_raises(self, mock_supabase, sample_record):
        mock_supabase.table.return_value = query_returning([])

        with pytest.raises(PersistenceError):
            PodcastRepository(mock_supabase).save(sample_record)

    def test_unconfigured_save_is_noop(self, sample_record):
        assert PodcastRepository(None).save(sample_record) is None


class TestBestEffortWrites:

    def test_record_access(self, mock_supabase):
        query = query_returning([{"id": 1}])
        mock_supabase.table.return_value = query

        PodcastRepository(mock_supabase).record_access("alice", 42)

        mock_supabase.table.assert_called_with(HISTORY_TABLE)
        query.insert.assert_called_with({"owner_id": "alice", "podcast_id": 42})
        assert "accessed_at" not in query.insert.call_args[0][0]

    def test_record_access_swallows_failure(self, mock_supabase):
        mock_supabase.table.side_effect = Exception("timeout")

        PodcastRepository(mock_supabase).record_access("alice", 42)

    def test_log_error(self, mock_supabase):
        query = query_returning([{"id": 1}])
        mock_supabase.table.return_value = query
        entry = ProcessingLogEntry(
            source_url="https://news.example/x",
            error_type="fetch",
            error_message="extract failed: 404",
        )

        PodcastRepository(mock_supabase).log_error(entry)

        mock_supabase.table.assert_called_with(LOGS_TABLE)
        row = query.insert.call_args[0][0]
        assert row["error_type"] == "fetch"
        assert row["podcast_id"] is None

    def test_log_error_swallows_failure(self, mock_supabase):
        mock_supabase.table.side_effect = Exception("timeout")
        entry = ProcessingLogEntry(source_url="u", error_type="fetch", error_message="m")

        PodcastRepository(mock_supabase).log_error(entry)


class TestEnsureSchema:

    def test_runs_schema_through_rpc(self, mock_supabase):
        assert PodcastRepository(mock_supabase).ensure_schema() is True

        name, params = mock_supabase.rpc.call_args[0]
        assert name == "exec_sql"
        assert "CREATE TABLE IF NOT EXISTS podcasts" in params["sql"]

    def test_failure_returns_false(self, mock_supabase):
        mock_supabase.rpc.side_effect = Exception("function exec_sql does not exist")

        assert PodcastRepository(mock_supabase).ensure_schema() is False

    def test_unconfigured(self):
        assert PodcastRepository(None).ensure_schema() is False
