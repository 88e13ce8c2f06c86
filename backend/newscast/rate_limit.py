"""
Per-owner rate limiting for podcast generation.
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

from newscast.repository import PodcastRepository

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    def check(self, owner_id: str) -> bool:
        """Return True if ``owner_id`` may start another generation."""
        ...


class AllowAllRateLimiter:
    def check(self, owner_id: str) -> bool:
        return True


class DailyRateLimiter:
    """
    Allows ``limit`` new podcasts per owner per UTC day.

    Counts the owner's stored podcasts, so the only state is the store
    itself. If the count cannot be read the request is allowed.
    """

    def __init__(self, repository: PodcastRepository, limit: int = 100):
        self.repository = repository
        self.limit = limit

    def check(self, owner_id: str) -> bool:
        if self.limit <= 0:
            return True

        start_of_day = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        try:
            count = self.repository.count_created_since(owner_id, start_of_day)
        except Exception as e:
            logger.warning(f"Rate limit check failed for {owner_id}, allowing request: {e}")
            return True

        return count < self.limit
