"""
Fetch strategies. Each one turns a URL into RawRecords; the collector picks
one with ``create_strategy`` and never needs to know which it got.
"""

import json
import logging
from typing import Any, List, Optional, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field

from . import dom
from .browser import BrowserSession
from .cache import PageCache
from .config import EngineSettings
from .endpoints import detect_endpoints
from .hybrid import extract_best_content
from .models import (
    CrawlStrategy,
    DetectedEndpoint,
    FetcherKind,
    FetchOptions,
    ParserKind,
    RawRecord,
)
from .structured import extract_structured_content

logger = logging.getLogger(__name__)

NOISE_SELECTOR = 'script, style, noscript, meta, link[rel="stylesheet"]'

MAIN_CONTENT_SELECTORS = [
    "main",
    "article",
    ".content",
    ".main-content",
    "#content",
    '[role="main"]',
    ".article-content",
    ".post-content",
]

MIN_MAIN_CONTENT_LENGTH = 100


class CollectionContext(BaseModel):
    """What a strategy needs besides the URL: who is collecting and with what."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    source_name: str = "dynamic"
    settings: EngineSettings = Field(default_factory=EngineSettings.from_env)
    cache: Optional[PageCache] = None


class FetchStrategy(Protocol):
    name: str

    async def fetch(self, url: str, ctx: CollectionContext, options: FetchOptions) -> List[RawRecord]:
        ...


def truncate_content(text: str, limit: int = 5000) -> str:
    cleaned = dom.normalize_text(text)
    if len(cleaned) > limit:
        return cleaned[:limit] + "..."
    return cleaned


def extract_meaningful_content(markup: str, limit: int = 5000) -> str:
    """Plain text of the main content container, or of the whole body."""
    tree = dom.strip_noise(dom.parse(markup), NOISE_SELECTOR)

    for selector in MAIN_CONTENT_SELECTORS:
        text = dom.raw_text(dom.first(tree, selector))
        if len(text) > MIN_MAIN_CONTENT_LENGTH:
            return truncate_content(text, limit)

    return truncate_content(dom.raw_text(tree.body), limit)


def page_title(markup: str) -> str:
    return dom.clean_text(dom.first(dom.parse(markup), "title")) or "Untitled"


async def records_from_markup(
    markup: str,
    url: str,
    ctx: CollectionContext,
    use_readability: Optional[bool],
) -> List[RawRecord]:
    """
    Shared post-processing for the static and headless strategies.

    Tries main-content extraction first (unless disabled), then the
    structured breakdown, then plain text from the main container.
    """
    settings = ctx.settings
    fallback_title = page_title(markup)
    cleaned = dom.strip_noise(dom.parse(markup), NOISE_SELECTOR).html or ""

    if use_readability is not False:
        best = await extract_best_content(cleaned, url, settings.arbitration)
        if best is not None and len(best.content) > settings.arbitration.min_content_length:
            logger.info(
                "Content of %s extracted with %s (confidence %.2f, %d chars)",
                url, best.method, best.confidence, len(best.content),
            )
            structured = extract_structured_content(cleaned)
            if structured.is_empty():
                content: Any = truncate_content(best.content, settings.max_content_length)
            else:
                content = structured.to_dict()
            return [RawRecord(
                title=best.title or fallback_title,
                url=url,
                date=best.date_published,
                content=content,
                source=ctx.source_name,
            )]

    structured = extract_structured_content(cleaned)
    if not structured.is_empty():
        content = structured.to_dict()
    else:
        content = extract_meaningful_content(markup, settings.max_content_length)

    return [RawRecord(title=fallback_title, url=url, content=content, source=ctx.source_name)]


class StaticFetchStrategy:
    """One plain HTTP GET."""

    name = "STATIC"

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client

    async def _get(self, url: str, ctx: CollectionContext, timeout_ms: int) -> str:
        if ctx.cache is not None:
            cached = ctx.cache.lookup(url)
            if cached is not None:
                return cached.raw_markup

        timeout = ctx.settings.bounded_timeout_ms(timeout_ms) / 1000
        headers = ctx.settings.http_headers()

        if self.client is not None:
            response = await self.client.get(url, headers=headers, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True, headers=headers) as client:
                response = await client.get(url)
        response.raise_for_status()
        return response.text

    async def fetch(self, url: str, ctx: CollectionContext, options: FetchOptions) -> List[RawRecord]:
        logger.info("Fetching %s with static strategy", url)
        markup = await self._get(url, ctx, options.timeout_ms)
        return await records_from_markup(markup, url, ctx, options.use_readability)


class HeadlessFetchStrategy:
    """Renders the page in headless chromium before extracting."""

    name = "HEADLESS"

    async def fetch(self, url: str, ctx: CollectionContext, options: FetchOptions) -> List[RawRecord]:
        logger.info("Fetching %s with headless strategy", url)
        settings = ctx.settings

        async with BrowserSession(headless=settings.headless, user_agent=settings.user_agent) as session:
            markup = await session.get_html(
                url,
                timeout_ms=settings.bounded_timeout_ms(options.timeout_ms),
                settle_ms=settings.settle_ms,
            )

        return await records_from_markup(markup, url, ctx, options.use_readability)


def _records_from_payload(payload: Any, endpoint: DetectedEndpoint, source: str) -> List[RawRecord]:
    if not isinstance(payload, (dict, list)):
        return []

    entries = payload if isinstance(payload, list) else [payload]
    records = []
    for entry in entries:
        fields = entry if isinstance(entry, dict) else {}
        records.append(RawRecord(
            title=str(fields.get("title") or fields.get("name") or "API Item"),
            url=endpoint.url,
            date=str(fields.get("date") or fields.get("publishedAt") or "") or None,
            content=json.dumps(entry, ensure_ascii=False),
            source=source,
        ))
    return records


class ApiFetchStrategy:
    """Calls the JSON endpoints the page itself uses."""

    name = "API"

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client

    async def _replay(
        self,
        client: httpx.AsyncClient,
        endpoint: DetectedEndpoint,
        ctx: CollectionContext,
        timeout: float,
    ) -> List[RawRecord]:
        try:
            response = await client.get(
                endpoint.url,
                headers={"Accept": endpoint.content_type or "application/json"},
                timeout=timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to fetch API %s: %s", endpoint.url, e)
            return []
        return _records_from_payload(payload, endpoint, ctx.source_name)

    async def fetch(self, url: str, ctx: CollectionContext, options: FetchOptions) -> List[RawRecord]:
        settings = ctx.settings
        bounded_ms = settings.bounded_timeout_ms(options.timeout_ms)
        endpoints = list(options.detected_endpoints)

        if not endpoints:
            detect_settings = settings.model_copy(update={"detect_timeout_ms": bounded_ms})
            endpoints = await detect_endpoints(url, True, detect_settings)

        logger.info("Fetching %s with API strategy (%d endpoints)", url, len(endpoints))

        records: List[RawRecord] = []
        timeout = bounded_ms / 1000
        if self.client is not None:
            for endpoint in endpoints:
                records.extend(await self._replay(self.client, endpoint, ctx, timeout))
        else:
            async with httpx.AsyncClient(follow_redirects=True, headers=settings.http_headers()) as client:
                for endpoint in endpoints:
                    records.extend(await self._replay(client, endpoint, ctx, timeout))
        return records


def create_strategy(strategy: CrawlStrategy) -> FetchStrategy:
    """The fetch strategy for a resolved CrawlStrategy."""
    if strategy.parser == ParserKind.API:
        return ApiFetchStrategy()
    if strategy.fetcher == FetcherKind.HEADLESS:
        return HeadlessFetchStrategy()
    if strategy.fetcher == FetcherKind.STATIC:
        return StaticFetchStrategy()
    raise ValueError(f"Unknown fetcher: {strategy.fetcher}")
