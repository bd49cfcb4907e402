"""
The page understanding pipeline and the collector that runs it with retries.
"""

import asyncio
import logging
from typing import List, Optional

import httpx
from playwright.async_api import Error as PlaywrightError

from . import dom
from .blocks import blocks_from_selectors, extract_content_blocks
from .cache import PageCache
from .classifier import classify_page, refine_page_role
from .config import EngineSettings
from .fetchers import CollectionContext, create_strategy
from .loader import load_page
from .model_builder import build_page_data_model
from .models import (
    ExtractedItem,
    FetchOptions,
    PageConfig,
    PageDataModel,
    PageUnderstanding,
    RawRecord,
    RetryPolicy,
    utc_now_iso,
)
from .remote import ZeroShotClassifier
from .signals import analyze_page
from .strategy import select_strategy

logger = logging.getLogger(__name__)

DEFAULT_RETRY_POLICY = RetryPolicy(max_retries=2, backoff_ms=2000, strategy="exponential", max_backoff_ms=10000)


async def analyze_and_classify(
    url: str,
    config: Optional[PageConfig] = None,
    settings: Optional[EngineSettings] = None,
    cache: Optional[PageCache] = None,
    classifier: Optional[ZeroShotClassifier] = None,
) -> PageUnderstanding:
    """
    Run the analysis half of the pipeline for one URL.

    Load, analyze, classify, detect blocks, build the data model and pick a
    crawl strategy. Nothing is fetched beyond the initial load (and the
    browser pass of endpoint detection for client-rendered pages).
    """
    settings = settings or EngineSettings.from_env()

    loaded_page = await load_page(url, settings=settings, cache=cache)
    markup = loaded_page.raw_markup

    analysis = await analyze_page(loaded_page, settings=settings)

    profile = classify_page(url, markup, analysis)
    if config is not None and config.override is not None and config.override.page_role is not None:
        profile = profile.model_copy(update={"page_role": config.override.page_role})
    else:
        body_text = dom.clean_text(dom.parse(markup).body)
        profile = await refine_page_role(profile, body_text, classifier, settings.zero_shot_min_score)

    blocks = extract_content_blocks(markup, profile.page_role)
    if config is not None:
        blocks.extend(blocks_from_selectors(config.selectors, profile.page_role))

    model = build_page_data_model(markup, blocks, url)
    strategy = select_strategy(analysis, profile, config, settings.scoring)

    logger.info(
        "Analyzed %s: rendering=%s access=%s role=%s fetcher=%s parser=%s items=%d",
        url,
        profile.rendering_type.value,
        profile.data_access_type.value,
        profile.page_role.value,
        strategy.fetcher.value,
        strategy.parser.value,
        len(model.items),
    )

    return PageUnderstanding(
        loaded_page=loaded_page,
        analysis=analysis,
        profile=profile,
        blocks=blocks,
        model=model,
        strategy=strategy,
    )


def format_item_content(item: ExtractedItem) -> str:
    fields = item.fields
    parts: List[str] = []

    if fields.get("author"):
        parts.append(f"작성자: {fields['author']}")
    if fields.get("date"):
        parts.append(f"작성일: {fields['date']}")
    if fields.get("department"):
        parts.append(f"부서: {fields['department']}")
    if fields.get("views"):
        parts.append(f"조회수: {fields['views']}")

    if fields.get("content"):
        parts.append(fields["content"])
    elif fields.get("title"):
        parts.append(fields["title"])

    return "\n".join(parts)


def model_to_raw_records(model: PageDataModel, source_name: str) -> List[RawRecord]:
    records = []
    for item in model.items:
        fields = item.fields
        records.append(RawRecord(
            title=fields.get("title") or "Untitled",
            url=fields.get("detailUrl") or model.page_url,
            date=fields.get("date") or utc_now_iso(),
            content=format_item_content(item),
            source=source_name,
        ))
    return records


def is_retryable_error(error: BaseException) -> bool:
    """Network trouble, timeouts, 429 and 5xx are worth another attempt."""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    if isinstance(error, (httpx.TransportError, asyncio.TimeoutError, PlaywrightError)):
        return True
    return False


class DynamicCollector:
    """
    Collects one configured source without any site-specific code.

    Every attempt runs the full pipeline from scratch: analysis, strategy
    selection, fetch. Retryable failures are retried with exponential
    backoff; once a strategy was selected its retry policy takes over.
    """

    def __init__(
        self,
        config: PageConfig,
        settings: Optional[EngineSettings] = None,
        cache: Optional[PageCache] = None,
        classifier: Optional[ZeroShotClassifier] = None,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ):
        self.config = config
        self.source_name = config.source_name
        self.settings = settings or EngineSettings.from_env()
        self.cache = cache
        self.classifier = classifier
        self.policy = policy
        self._active_policy = policy

    async def _attempt(self) -> List[RawRecord]:
        understanding = await analyze_and_classify(
            self.config.url,
            self.config,
            settings=self.settings,
            cache=self.cache,
            classifier=self.classifier,
        )
        strategy = understanding.strategy
        self._active_policy = strategy.retry_policy

        fetcher = create_strategy(strategy)
        ctx = CollectionContext(source_name=self.source_name, settings=self.settings, cache=self.cache)
        records = await fetcher.fetch(
            self.config.url,
            ctx,
            FetchOptions(
                timeout_ms=strategy.timeout_ms,
                use_readability=strategy.use_readability,
                detected_endpoints=understanding.analysis.detected_endpoints,
            ),
        )

        model_records = model_to_raw_records(understanding.model, self.source_name)
        logger.info(
            "Collected %d records from %s (%d from %s fetch, %d from page model)",
            len(records) + len(model_records),
            self.source_name,
            len(records),
            fetcher.name,
            len(model_records),
        )
        return records + model_records

    async def collect(self) -> List[RawRecord]:
        """Collect the source, retrying retryable failures."""
        logger.info("Collecting %s from %s", self.source_name, self.config.url)
        attempt = 0
        self._active_policy = self.policy

        while True:
            try:
                return await self._attempt()
            except Exception as e:
                if not is_retryable_error(e) or attempt >= self._active_policy.max_retries:
                    raise
                delay = self._active_policy.delay_for(attempt)
                attempt += 1
                logger.warning(
                    "Attempt %d for %s failed (%s), retrying in %.1fs",
                    attempt, self.source_name, e, delay,
                )
                if self.cache is not None:
                    self.cache.invalidate(self.config.url)
                await asyncio.sleep(delay)
