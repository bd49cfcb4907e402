"""
Strategy selection: which fetcher and parser to run for a classified page.
"""

import logging
from typing import Optional, Tuple

from .config import ScoringWeights
from .models import (
    ConfigOverride,
    CrawlStrategy,
    DataAccessType,
    FetcherKind,
    PageAnalysis,
    PageConfig,
    PageProfile,
    ParserKind,
    RenderingType,
    RetryPolicy,
)

logger = logging.getLogger(__name__)

RETRY_POLICIES = {
    FetcherKind.HEADLESS: RetryPolicy(max_retries=2, backoff_ms=2000, strategy="exponential"),
    FetcherKind.STATIC: RetryPolicy(max_retries=3, backoff_ms=1000, strategy="exponential"),
}

TIMEOUTS_MS = {
    FetcherKind.HEADLESS: 30000,
    FetcherKind.STATIC: 15000,
}


def select_strategy(
    analysis: PageAnalysis,
    profile: PageProfile,
    config: Optional[PageConfig] = None,
    weights: Optional[ScoringWeights] = None,
) -> CrawlStrategy:
    """
    Pick a CrawlStrategy for the page.

    A configured override short-circuits the automatic decision entirely.
    """
    if config is not None and config.override is not None:
        return strategy_from_override(profile, config.override)

    weights = weights or ScoringWeights()
    fetcher, parser = _decide(analysis, profile)
    use_readability = False

    if profile.page_role.is_list:
        parser = ParserKind.LIST
    elif profile.page_role.is_detail:
        parser = ParserKind.DETAIL
        use_readability = True

    if not use_readability:
        use_readability = profile.page_role.is_detail or (
            analysis.has_meaningful_html
            and analysis.js_dependency_score < weights.readability_score_ceiling
        )

    strategy = _build(fetcher, parser, use_readability)
    logger.debug("Selected %s/%s for %s page", fetcher.value, parser.value, profile.page_role.value)
    return strategy


def strategy_from_override(profile: PageProfile, override: ConfigOverride) -> CrawlStrategy:
    role = override.page_role or profile.page_role

    if override.fetcher is not None:
        fetcher = override.fetcher
    elif profile.rendering_type == RenderingType.CSR:
        fetcher = FetcherKind.HEADLESS
    else:
        fetcher = FetcherKind.STATIC

    if override.parser is not None:
        parser = override.parser
    elif role.is_list:
        parser = ParserKind.LIST
    else:
        parser = ParserKind.DETAIL

    if override.use_readability is not None:
        use_readability = override.use_readability
    else:
        use_readability = parser == ParserKind.DETAIL

    return _build(fetcher, parser, use_readability)


def _decide(analysis: PageAnalysis, profile: PageProfile) -> Tuple[FetcherKind, ParserKind]:
    if profile.rendering_type == RenderingType.STATIC and profile.data_access_type == DataAccessType.HTML:
        return FetcherKind.STATIC, ParserKind.LIST
    if profile.rendering_type == RenderingType.CSR:
        return FetcherKind.HEADLESS, ParserKind.LIST
    if profile.data_access_type == DataAccessType.XHR and analysis.detected_endpoints:
        return FetcherKind.HEADLESS, ParserKind.API
    if profile.data_access_type == DataAccessType.MIXED:
        return FetcherKind.HEADLESS, ParserKind.MIXED
    return FetcherKind.STATIC, ParserKind.LIST


def _build(fetcher: FetcherKind, parser: ParserKind, use_readability: bool) -> CrawlStrategy:
    return CrawlStrategy(
        fetcher=fetcher,
        parser=parser,
        retry_policy=RETRY_POLICIES[fetcher],
        timeout_ms=TIMEOUTS_MS[fetcher],
        use_readability=use_readability,
    )
