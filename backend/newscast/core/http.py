"""
Low-level HTTP helpers shared by the extractor.

Retry policy lives here and only here: transport failures (connection
resets, timeouts) are retried with exponential backoff, HTTP status
failures are returned to the caller untouched.
"""

import asyncio
import logging
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
PRECHECK_USER_AGENT = "Mozilla/5.0 (compatible; PodcastBot/1.0)"


async def get_with_retry(
    client: httpx.AsyncClient,
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 30.0,
    max_attempts: int = 3,
    base_delay: float = 0.5
) -> httpx.Response:
    """
    GET a URL, retrying transport-level failures.

    Args:
        client: Shared async HTTP client
        url: URL to fetch
        headers: Extra request headers
        timeout: Per-attempt timeout in seconds
        max_attempts: Total attempts before giving up
        base_delay: Delay before the second attempt; doubles each retry

    Returns:
        The response of the first attempt that reached the server

    Raises:
        httpx.TransportError if every attempt failed at the transport level
    """
    last_error: Optional[httpx.TransportError] = None

    for attempt in range(max_attempts):
        try:
            return await client.get(url, headers=headers, timeout=timeout, follow_redirects=True)
        except httpx.TransportError as e:
            last_error = e
            if attempt < max_attempts - 1:
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    f"GET {url} failed ({type(e).__name__}), "
                    f"retry {attempt + 1}/{max_attempts - 1} in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

    raise last_error


async def check_accessible(
    client: httpx.AsyncClient,
    url: str,
    timeout: float = 5.0
) -> bool:
    """
    Cheap HEAD probe before the real fetch.

    Many sites reject HEAD, so a negative answer is advisory only: the
    caller logs it and still attempts the full GET.

    Returns:
        True if the server answered with success (or 405), False otherwise
    """
    try:
        response = await client.head(
            url,
            headers={"User-Agent": PRECHECK_USER_AGENT},
            timeout=timeout,
            follow_redirects=True
        )
    except httpx.TimeoutException:
        logger.warning(f"HEAD {url} timed out after {timeout}s, will try GET during extraction")
        return False
    except httpx.HTTPError as e:
        logger.warning(f"HEAD {url} failed ({e}), will try GET during extraction")
        return False

    if response.is_success or response.status_code == 405:
        return True

    logger.warning(f"HEAD {url} returned {response.status_code}, will try GET during extraction")
    return False
