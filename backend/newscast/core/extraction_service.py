"""
Article text extraction.

Fetches a web page, reduces its markup to bounded plain text, and derives a
display title from the URL alone.
"""

import re
import logging
from typing import Optional
from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup, Comment

from .errors import FetchError, InsufficientContentError
from .http import BROWSER_USER_AGENT, check_accessible, get_with_retry

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 100
MAX_CONTENT_LENGTH = 1000
SENTENCE_FLOOR = 800
MAX_TITLE_LENGTH = 100
FALLBACK_TITLE = "Article"

_WHITESPACE_RE = re.compile(r"\s+")
_EXTENSION_RE = re.compile(r"\.[^.]+$")


def truncate_at_sentence(text: str, limit: int, floor: int) -> str:
    """
    Cut text to at most ``limit`` characters, preferring a sentence end.

    If the cut text contains a period after index ``floor`` it is trimmed
    to end on that period; otherwise the hard cut is kept.
    """
    if len(text) <= limit:
        return text

    truncated = text[:limit]
    last_period = truncated.rfind(".")
    if last_period > floor:
        truncated = truncated[:last_period + 1]
    return truncated


def html_to_text(html: str) -> str:
    """
    Reduce HTML markup to a single line of plain text.

    Script and style elements are removed with their content, comments are
    dropped, entities are decoded by the parser and whitespace runs
    collapse to one space.
    """
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(["script", "style"]):
        tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    text = soup.get_text(separator=" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def derive_title(url: str) -> str:
    """
    Build a human-readable title from the shape of a URL.

    Uses the last non-empty path segment, or the host (without ``www.``)
    when the path is empty. Never raises; returns "Article" when nothing
    usable can be derived.

    Examples:
        >>> derive_title("https://news.example/world/big-news_today.html")
        'Big News Today'
        >>> derive_title("not a url")
        'Article'
    """
    try:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            return FALLBACK_TITLE

        segments = [s for s in parts.path.split("/") if s]
        if segments:
            segment = _EXTENSION_RE.sub("", segments[-1])
        else:
            segment = parts.hostname or ""
            if segment.startswith("www."):
                segment = segment[4:]

        words = segment.replace("-", " ").replace("_", " ").split(" ")
        title = " ".join(w[:1].upper() + w[1:].lower() for w in words)
        title = _WHITESPACE_RE.sub(" ", title).strip()
        title = title[:MAX_TITLE_LENGTH].strip()

        if len(title) < 3:
            return FALLBACK_TITLE
        return title

    except Exception as e:
        logger.warning(f"Title derivation failed for {url!r}: {e}")
        return FALLBACK_TITLE


class ArticleExtractor:
    """Fetches article pages and reduces them to narration-sized text."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self.client = client
        self.timeout = timeout

    async def extract(self, url: str) -> str:
        """
        Fetch a page and return its cleaned, bounded plain text.

        Args:
            url: Article URL

        Returns:
            Between 100 and 1000 characters of plain text

        Raises:
            FetchError: network failure or non-success status
            InsufficientContentError: empty body or too little text
        """
        logger.info(f"Scraping URL: {url}")

        if self.client is not None:
            html = await self._fetch(self.client, url)
        else:
            async with httpx.AsyncClient() as client:
                html = await self._fetch(client, url)

        if not html or len(html) < MIN_CONTENT_LENGTH:
            raise InsufficientContentError(
                "Webpage returned empty or insufficient content",
                length=len(html or "")
            )

        text = html_to_text(html)
        text = truncate_at_sentence(text, MAX_CONTENT_LENGTH, SENTENCE_FLOOR)

        if len(text) < MIN_CONTENT_LENGTH:
            raise InsufficientContentError(
                "Not enough meaningful content found on the page",
                length=len(text)
            )

        logger.info(f"Successfully extracted {len(text)} characters")
        return text

    async def is_accessible(self, url: str) -> bool:
        """Bounded HEAD probe; advisory only, never raises."""
        if self.client is not None:
            return await check_accessible(self.client, url)
        async with httpx.AsyncClient() as client:
            return await check_accessible(client, url)

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> str:
        try:
            response = await get_with_retry(
                client,
                url,
                headers={"User-Agent": BROWSER_USER_AGENT},
                timeout=self.timeout
            )
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch webpage: {e}", url=url) from e

        if not response.is_success:
            raise FetchError(
                f"Failed to fetch webpage: {response.status_code} {response.reason_phrase}",
                url=url,
                status_code=response.status_code
            )

        return response.text

    @staticmethod
    def derive_title(url: str) -> str:
        return derive_title(url)
