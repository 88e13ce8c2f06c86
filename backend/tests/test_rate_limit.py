"""
Tests for per-owner daily rate limiting.
"""

from datetime import timezone
from unittest.mock import Mock

from newscast.rate_limit import AllowAllRateLimiter, DailyRateLimiter


def test_allow_all():
    assert AllowAllRateLimiter().check("alice") is True


def test_under_limit():
    repository = Mock()
    repository.count_created_since.return_value = 2

    assert DailyRateLimiter(repository, limit=3).check("alice") is True

    owner_id, since = repository.count_created_since.call_args[0]
    assert owner_id == "alice"
    assert since.tzinfo == timezone.utc
    assert (since.hour, since.minute, since.second, since.microsecond) == (0, 0, 0, 0)


def test_at_limit():
    repository = Mock()
    repository.count_created_since.return_value = 3

    assert DailyRateLimiter(repository, limit=3).check("alice") is False


def test_disabled_limit():
    repository = Mock()

    assert DailyRateLimiter(repository, limit=0).check("alice") is True
    repository.count_created_since.assert_not_called()


def test_count_failure_allows():
    repository = Mock()
    repository.count_created_since.side_effect = Exception("database down")

    assert DailyRateLimiter(repository, limit=1).check("alice") is True
