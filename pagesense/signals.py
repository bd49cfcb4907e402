"""
Page access analysis: static markup signals, JS dependency scoring and the
optional API discovery step.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from . import dom
from .config import EngineSettings, ScoringWeights
from .endpoints import detect_endpoints
from .models import (
    DataAccessType,
    DetectedEndpoint,
    HtmlSignals,
    LoadedPage,
    PageAnalysis,
    RenderingType,
)

logger = logging.getLogger(__name__)

INLINE_DATA_MARKERS = (
    "window.__DATA__",
    "__INITIAL_STATE__",
    "__NEXT_DATA__",
    "window.__INITIAL_DATA__",
)

EndpointDetector = Callable[[str, bool, EngineSettings], Awaitable[List[DetectedEndpoint]]]


def analyze_html_signals(markup: str, weights: Optional[ScoringWeights] = None) -> HtmlSignals:
    """Count the cheap structural hints in the raw markup."""
    weights = weights or ScoringWeights()
    markup = markup or ""
    tree = dom.parse(markup)
    body_text = dom.raw_text(tree.body)

    return HtmlSignals(
        script_count=dom.count(tree, "script"),
        inline_data_presence=any(marker in markup for marker in INLINE_DATA_MARKERS),
        noscript_only=(
            dom.count(tree, "noscript") > 0
            and len(body_text) < weights.noscript_text_threshold
        ),
        content_length=len(markup),
        has_table=dom.count(tree, "tbody tr") > weights.table_row_threshold,
        has_article=dom.count(tree, "article") > weights.article_threshold,
    )


def has_meaningful_html(signals: HtmlSignals, weights: Optional[ScoringWeights] = None) -> bool:
    weights = weights or ScoringWeights()
    return signals.content_length > weights.meaningful_length and (
        signals.has_table or signals.has_article
    )


def calculate_js_dependency_score(signals: HtmlSignals, weights: Optional[ScoringWeights] = None) -> float:
    """
    Score in [0, 1] of how likely the page needs script execution.

    Many scripts and a short document push the score up, inline state
    blobs (the data is already in the markup) pull it down.
    """
    weights = weights or ScoringWeights()
    score = 0.0

    if signals.script_count > weights.script_count_threshold:
        score += weights.script_bonus

    if signals.content_length < weights.short_content_threshold:
        score += weights.short_content_bonus

    if signals.inline_data_presence:
        score -= weights.inline_data_penalty

    # Round away float noise such as 0.4 + 0.4 - 0.2 = 0.6000000000000001
    return round(max(0.0, min(1.0, score)), 6)


def requires_js_execution(score: float, weights: Optional[ScoringWeights] = None) -> bool:
    weights = weights or ScoringWeights()
    return score > weights.csr_threshold


def determine_rendering_type(score: float, weights: Optional[ScoringWeights] = None) -> RenderingType:
    if requires_js_execution(score, weights):
        return RenderingType.CSR
    return RenderingType.STATIC


def determine_data_access_type(
    meaningful_html: bool,
    endpoints: List[DetectedEndpoint],
) -> DataAccessType:
    if endpoints and meaningful_html:
        return DataAccessType.MIXED
    if endpoints:
        return DataAccessType.XHR
    return DataAccessType.HTML


async def analyze_page(
    loaded_page: LoadedPage,
    settings: Optional[EngineSettings] = None,
    detector: EndpointDetector = detect_endpoints,
) -> PageAnalysis:
    """
    Work out how the information on a loaded page can be reached.

    Args:
        loaded_page: result of the initial load
        settings: engine settings (scoring weights, browser timeouts)
        detector: endpoint detector, only called when the page needs JS

    Returns:
        PageAnalysis for the page
    """
    settings = settings or EngineSettings.from_env()
    weights = settings.scoring

    signals = analyze_html_signals(loaded_page.raw_markup, weights)
    meaningful = has_meaningful_html(signals, weights)
    score = calculate_js_dependency_score(signals, weights)
    requires_js = requires_js_execution(score, weights)

    endpoints: List[DetectedEndpoint] = []
    if requires_js:
        endpoints = await detector(loaded_page.url, requires_js, settings)

    analysis = PageAnalysis(
        has_meaningful_html=meaningful,
        html_signals=signals,
        requires_js_execution=requires_js,
        js_dependency_score=score,
        detected_endpoints=endpoints,
        data_access_type=determine_data_access_type(meaningful, endpoints),
        rendering_type=determine_rendering_type(score, weights),
    )
    logger.debug(
        "Analysis of %s: score=%.2f rendering=%s access=%s",
        loaded_page.url, score, analysis.rendering_type.value, analysis.data_access_type.value,
    )
    return analysis
