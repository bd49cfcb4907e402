"""
Initial page load. No parsing happens here; the markup is only fetched so the
analyzer can tell whether the page is a real document or an empty shell.
"""

import logging
import time
from typing import Dict, Optional

import httpx

from .cache import PageCache
from .config import EngineSettings
from .models import LoadedPage

logger = logging.getLogger(__name__)


async def load_page(
    url: str,
    settings: Optional[EngineSettings] = None,
    cache: Optional[PageCache] = None,
    headers: Optional[Dict[str, str]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> LoadedPage:
    """
    Fetch the initial markup of a page.

    A failed load never raises: it yields a LoadedPage with empty markup and
    the HTTP status of the failure (0 when there was no response at all).

    Args:
        url: URL to load
        settings: engine settings (timeout, default headers)
        cache: optional page cache consulted before and filled after the load
        headers: extra request headers
        client: an existing client to reuse

    Returns:
        LoadedPage for the URL
    """
    if not url or not url.strip():
        raise ValueError("url must not be empty")

    settings = settings or EngineSettings.from_env()

    if cache is not None:
        cached = cache.lookup(url)
        if cached is not None:
            logger.debug("Page cache hit for %s", url)
            return cached

    request_headers = settings.http_headers()
    if headers:
        request_headers.update(headers)

    start = time.monotonic()
    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=settings.loader_timeout_ms / 1000,
                follow_redirects=True,
                headers=request_headers,
            ) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(
                url,
                headers=request_headers,
                timeout=settings.loader_timeout_ms / 1000,
            )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.warning("Initial load of %s failed with HTTP %s", url, e.response.status_code)
        return LoadedPage(
            url=url,
            status_code=e.response.status_code,
            load_time_ms=_elapsed_ms(start),
        )
    except httpx.HTTPError as e:
        logger.warning("Initial load of %s failed: %s", url, e)
        return LoadedPage(url=url, status_code=0, load_time_ms=_elapsed_ms(start))

    page = LoadedPage(
        url=url,
        raw_markup=response.text,
        response_headers={k.lower(): v for k, v in response.headers.items()},
        status_code=response.status_code,
        load_time_ms=_elapsed_ms(start),
    )
    logger.debug("Loaded %s (%d chars, %d ms)", url, len(page.raw_markup), page.load_time_ms)

    if cache is not None:
        cache.store(page)
    return page


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
