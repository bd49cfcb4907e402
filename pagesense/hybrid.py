"""
Main-content extraction that races two extractors and keeps the better
result: readability-lxml in-process and trafilatura.
"""

import asyncio
import json
import logging
import re
from typing import Callable, Optional

import readability
import trafilatura

from . import dom
from .config import ArbitrationWeights
from .models import ExtractionResult

logger = logging.getLogger(__name__)

READABILITY = "readability"
TRAFILATURA = "trafilatura"
HYBRID = "hybrid"

_BLANK_LINES = re.compile(r"\n\s*\n+")


def _excerpt(text: str, limit: int = 150) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def extract_with_readability(
    markup: str,
    url: str,
    weights: Optional[ArbitrationWeights] = None,
) -> Optional[ExtractionResult]:
    """Readability summary of the document as plain text, or None."""
    weights = weights or ArbitrationWeights()

    document = readability.Document(markup, url=url)
    summary = document.summary(html_partial=True)
    tree = dom.parse(summary)
    root = tree.body or tree.root
    text = root.text(separator="\n", strip=True) if root is not None else ""
    text = _BLANK_LINES.sub("\n", text).strip()

    if len(text) < weights.min_content_length:
        return None

    return ExtractionResult(
        title=(document.short_title() or document.title() or "").strip(),
        content=text,
        excerpt=_excerpt(dom.normalize_text(text)),
        method=READABILITY,
        confidence=weights.readability_confidence,
    )


def extract_with_trafilatura(
    markup: str,
    url: str,
    weights: Optional[ArbitrationWeights] = None,
) -> Optional[ExtractionResult]:
    """Trafilatura extraction with title/author/date metadata, or None."""
    weights = weights or ArbitrationWeights()

    raw = trafilatura.extract(
        markup,
        url=url,
        output_format="json",
        with_metadata=True,
        include_comments=False,
        include_tables=True,
    )
    if not raw:
        return None

    data = json.loads(raw)
    text = (data.get("text") or "").strip()
    if len(text) < weights.min_content_length:
        return None

    if len(text) > weights.alternate_single_threshold:
        confidence = weights.alternate_long_score
    else:
        confidence = weights.alternate_short_score

    return ExtractionResult(
        title=(data.get("title") or "").strip(),
        content=text,
        author=data.get("author") or None,
        date_published=data.get("date") or None,
        excerpt=data.get("excerpt") or None,
        method=TRAFILATURA,
        confidence=confidence,
    )


def _run_safely(
    name: str,
    extractor: Callable[..., Optional[ExtractionResult]],
    markup: str,
    url: str,
    weights: ArbitrationWeights,
) -> Optional[ExtractionResult]:
    try:
        return extractor(markup, url, weights)
    except Exception as e:
        logger.warning("%s extraction failed for %s: %s", name, url, e)
        return None


def choose_best(
    primary: Optional[ExtractionResult],
    alternate: Optional[ExtractionResult],
    weights: Optional[ArbitrationWeights] = None,
) -> Optional[ExtractionResult]:
    """
    Pick between the readability result (primary) and the trafilatura
    result (alternate).

    With only one result it is used as is. With both, the primary wins when
    it is nearly as long as the alternate, has a real title and scores at
    least as high; the alternate wins under the mirrored test; otherwise the
    primary is kept. Missing author or date is filled in from the loser.
    """
    weights = weights or ArbitrationWeights()

    if primary is None and alternate is None:
        return None

    if alternate is None:
        chosen = primary.model_copy(update={"title": primary.title or "Untitled"})
        return chosen if len(chosen.content) >= weights.min_content_length else None

    if primary is None:
        chosen = alternate.model_copy(update={"title": alternate.title or "Untitled"})
        return chosen if len(chosen.content) >= weights.min_content_length else None

    primary_len = len(primary.content)
    alternate_len = len(alternate.content)

    if primary_len > weights.short_content_length:
        primary_score = primary.confidence
    else:
        primary_score = primary.confidence * weights.short_content_discount

    if alternate_len > weights.short_content_length:
        alternate_score = weights.alternate_long_score
    else:
        alternate_score = weights.alternate_short_score

    primary_better = (
        primary_len >= alternate_len * weights.length_ratio
        and len(primary.title) > weights.min_title_length
    )
    alternate_better = (
        alternate_len >= primary_len * weights.length_ratio
        and len(alternate.title) > weights.min_title_length
    )

    if primary_better and primary_score >= alternate_score:
        winner, loser = primary, alternate
        confidence = max(primary_score, alternate_score)
    elif alternate_better:
        winner, loser = alternate, primary
        confidence = max(primary_score, alternate_score)
    else:
        winner, loser = primary, alternate
        confidence = primary_score

    if len(winner.content) < weights.min_content_length:
        return None

    return ExtractionResult(
        title=winner.title or loser.title or "Untitled",
        content=winner.content,
        author=winner.author or loser.author,
        date_published=winner.date_published or loser.date_published,
        excerpt=winner.excerpt or loser.excerpt,
        method=HYBRID,
        confidence=min(confidence, 1.0),
    )


async def extract_best_content(
    markup: str,
    url: str,
    weights: Optional[ArbitrationWeights] = None,
) -> Optional[ExtractionResult]:
    """
    Run both extractors concurrently and arbitrate between them.

    Either extractor may fail; a failure counts as no result.
    """
    weights = weights or ArbitrationWeights()

    primary, alternate = await asyncio.gather(
        asyncio.to_thread(_run_safely, READABILITY, extract_with_readability, markup, url, weights),
        asyncio.to_thread(_run_safely, TRAFILATURA, extract_with_trafilatura, markup, url, weights),
    )
    logger.debug(
        "Content extraction for %s: readability=%s trafilatura=%s",
        url,
        len(primary.content) if primary else None,
        len(alternate.content) if alternate else None,
    )
    return choose_best(primary, alternate, weights)
