"""
Data quality helpers: category classification of collected text, weighted
field extraction and record quality scoring.
"""

import logging
import re
from typing import Dict, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, Field
from selectolax.parser import HTMLParser, Node

from . import dom
from .config import QualityWeights
from .model_builder import resolve_url

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "기타"

# key -> (major category, minor keywords)
CATEGORY_PATTERNS: Dict[str, Tuple[str, List[str]]] = {
    "notice": ("공지사항", ["긴급", "일반", "안내", "알림", "공고"]),
    "seminar": ("세미나", ["교육", "네트워킹", "워크샵", "강연", "포럼"]),
    "event": ("행사", ["전시", "박람회", "컨퍼런스", "축제", "이벤트"]),
    "news": ("뉴스", ["보도자료", "언론보도", "기사", "인터뷰"]),
}

# field -> [(selector, attribute or None, weight)], best first
FIELD_PATTERNS: Dict[str, List[Tuple[str, Optional[str], float]]] = {
    "title": [
        ("h1.title, .article-title, .post-title", None, 1.0),
        ("h1, h2.title", None, 0.9),
        ('.title, [class*="title"]', None, 0.8),
        ("title", None, 0.7),
    ],
    "date": [
        ("time[datetime], [datetime]", "datetime", 1.0),
        (".date, .published, .created", None, 0.9),
        ('[class*="date"], [class*="time"]', None, 0.8),
        ("time", None, 0.7),
    ],
    "author": [
        (".author, .writer, .by", None, 1.0),
        ('[class*="author"], [class*="writer"]', None, 0.9),
        (".user, .name", None, 0.7),
    ],
    "content": [
        (".content, .article-content, .post-content", None, 1.0),
        (".body, .text, article", None, 0.9),
        ('[class*="content"], [class*="body"]', None, 0.8),
        ("main, .main-content", None, 0.7),
    ],
}

CANDIDATE_SELECTORS = [
    "article",
    ".article",
    ".post",
    ".item",
    'li[class*="item"]',
    ".list-item",
    "tr",
]
MAX_CANDIDATES_PER_SELECTOR = 20
MIN_SECTION_TEXT = 10

FULL_DATE_PATTERN = re.compile(r"\d{4}[.\-/]\d{1,2}[.\-/]\d{1,2}")


class CategoryHierarchy(BaseModel):
    major_category: str
    minor_category: Optional[str] = None
    confidence: float
    reason: str


class ExtractedField(BaseModel):
    name: str
    value: str
    confidence: float
    method: str


class QualityItem(BaseModel):
    title: str = ""
    url: Optional[str] = None
    date: Optional[str] = None
    author: Optional[str] = None
    content: str = ""
    category: Optional[CategoryHierarchy] = None
    fields: List[ExtractedField] = Field(default_factory=list)
    quality_score: float = 0.0


def classify_category(text: str) -> CategoryHierarchy:
    """Major category by keyword, refined to a minor one when possible."""
    lower_text = (text or "").lower()
    best: Optional[CategoryHierarchy] = None

    for major, minors in CATEGORY_PATTERNS.values():
        if major.lower() not in lower_text:
            continue

        match = CategoryHierarchy(
            major_category=major,
            confidence=0.6,
            reason=f'major "{major}" matched',
        )
        for minor in minors:
            if minor.lower() in lower_text:
                match = CategoryHierarchy(
                    major_category=major,
                    minor_category=minor,
                    confidence=0.9,
                    reason=f'major "{major}", minor "{minor}" matched',
                )
                break

        if best is None or match.confidence > best.confidence:
            best = match

    return best or CategoryHierarchy(
        major_category=DEFAULT_CATEGORY,
        confidence=0.3,
        reason="no category pattern matched",
    )


def extract_field(scope: Union[HTMLParser, Node], name: str) -> Optional[ExtractedField]:
    """The first non-empty value for ``name`` among its weighted selectors."""
    for selector, attribute, weight in FIELD_PATTERNS.get(name, []):
        node = dom.first(scope, selector)
        if node is None:
            continue
        value = dom.attr(node, attribute) if attribute else dom.raw_text(node)
        if value:
            return ExtractedField(name=name, value=value, confidence=weight, method=f"selector: {selector}")
    return None


def evaluate_quality(item: QualityItem, weights: Optional[QualityWeights] = None) -> float:
    """Score in [0, 1] for how complete a record is."""
    weights = weights or QualityWeights()
    score = 0.0
    max_score = weights.title + weights.url + weights.date + weights.content

    if len(item.title) > weights.min_title_length:
        score += weights.title
    elif item.title:
        score += weights.short_title

    if item.url and item.url.startswith("http"):
        score += weights.url

    if item.date and FULL_DATE_PATTERN.search(item.date):
        score += weights.date
    elif item.date:
        score += weights.partial_date

    content_length = len(item.content)
    if content_length > 100:
        score += weights.content
    elif content_length > 50:
        score += weights.medium_content
    elif content_length > 0:
        score += weights.short_content

    return score / max_score if max_score else 0.0


def extract_high_quality_items(
    markup: str,
    base_url: str,
    min_score: Optional[float] = None,
    weights: Optional[QualityWeights] = None,
) -> List[QualityItem]:
    """
    Records from every list-like section of a page that pass the quality bar.

    Args:
        markup: page markup
        base_url: URL used to resolve links
        min_score: minimum quality score, defaults to weights.min_score
        weights: quality weights

    Returns:
        Items sorted by quality score, best first
    """
    weights = weights or QualityWeights()
    if min_score is None:
        min_score = weights.min_score
    tree = dom.parse(markup)
    items: List[QualityItem] = []
    seen: Set[int] = set()

    for selector in CANDIDATE_SELECTORS:
        candidates = dom.find(tree, selector)
        if selector == "tr":
            # header rows carry no td cells
            candidates = [row for row in candidates if dom.first(row, "td") is not None]

        for section in candidates[:MAX_CANDIDATES_PER_SELECTOR]:
            # an element can match several candidate selectors
            if section.mem_id in seen:
                continue
            seen.add(section.mem_id)

            section_text = dom.raw_text(section)
            if len(section_text) < MIN_SECTION_TEXT:
                continue

            fields = [
                field for field in (extract_field(section, name) for name in ("title", "date", "author", "content"))
                if field is not None
            ]
            by_name = {field.name: field for field in fields}
            if "content" not in by_name:
                fields.append(ExtractedField(name="content", value=section_text, confidence=0.5, method="section text"))

            link = dom.first(section, "a[href]")
            title_field = by_name.get("title")
            item = QualityItem(
                title=title_field.value if title_field else section_text.split("\n")[0].strip(),
                url=resolve_url(dom.attr(link, "href"), base_url) if link is not None else None,
                date=by_name["date"].value if "date" in by_name else None,
                author=by_name["author"].value if "author" in by_name else None,
                content=by_name["content"].value if "content" in by_name else section_text,
                category=classify_category(section_text),
                fields=fields,
            )
            item.quality_score = evaluate_quality(item, weights)

            if item.quality_score >= min_score and item.title and item.content:
                items.append(item)

    items.sort(key=lambda i: i.quality_score, reverse=True)
    logger.debug("Kept %d high quality items from %s", len(items), base_url)
    return items


def organize_by_category(items: List[QualityItem]) -> Dict[str, Dict[str, List[QualityItem]]]:
    organized: Dict[str, Dict[str, List[QualityItem]]] = {}
    for item in items:
        category = item.category or classify_category(item.content)
        minor = category.minor_category or DEFAULT_CATEGORY
        organized.setdefault(category.major_category, {}).setdefault(minor, []).append(item)
    return organized
