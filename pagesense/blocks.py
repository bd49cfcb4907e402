"""
Content block detection: finds the repeating (or singular) regions of a page
and the fields that can be read from each of them.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from selectolax.parser import HTMLParser, Node

from . import dom
from .classifier import semantic_type_for
from .models import BlockType, ContentBlock, DetectedField, PageRole, SelectorConfig

logger = logging.getLogger(__name__)

TABLE_BODY_SELECTOR = "table tbody"
TABLE_ROW_SELECTOR = "table tbody tr"
ARTICLE_SELECTOR = "article, .article, .post, .item"
SINGLE_ARTICLE_SELECTOR = "article, .article"
LIST_ITEM_SELECTOR = "ul li, ol li"

MIN_LIST_ITEM_TEXT = 20
MIN_LIST_ITEMS = 3

DATE_PATTERNS = [
    re.compile(r"\d{4}[.\-/]\d{1,2}[.\-/]\d{1,2}"),
    re.compile(r"\d{2}[.\-/]\d{1,2}[.\-/]\d{1,2}"),
]
DEPARTMENT_PATTERN = re.compile(r"(팀|부|과|실)$")
VIEWS_PATTERN = re.compile(r"^\d+$")
DETAIL_HREF_MARKERS = ("rNo=", "view", "detail", "read")
DETAIL_HREF_PATTERN = re.compile(r"no=\d+", re.IGNORECASE)

# Per-element candidates, tried in order, first hit wins
ELEMENT_FIELD_CANDIDATES: List[Tuple[str, List[str], float]] = [
    ("title", ["h1", "h2", ".title", ".post-title", ".article-title"], 0.9),
    ("date", [".date", ".published", "time", "[datetime]"], 0.8),
    ("author", [".author", ".writer", ".by"], 0.8),
    ("content", [".content", ".article-content", ".post-content", "article"], 0.9),
]
ELEMENT_DETAIL_HREF_MARKERS = ("view", "detail")


def _title_length_ok(text: str) -> bool:
    return 5 < len(text) < 200


def _is_detail_href(href: str) -> bool:
    return any(marker in href for marker in DETAIL_HREF_MARKERS) or bool(DETAIL_HREF_PATTERN.search(href))


def detect_fields_from_row(row: Node) -> List[DetectedField]:
    """
    Guess the meaning of each cell in a table row.

    Selectors are positional (``td:nth-child(n)``) so that every row of the
    table can be read the same way.
    """
    candidates: List[DetectedField] = []
    position = 0

    for cell in row.iter():
        if not dom.is_element(cell) or cell.tag not in ("td", "th"):
            continue
        position += 1
        if cell.tag != "td":
            continue

        cell_selector = f"td:nth-child({position})"
        text = dom.raw_text(cell)
        matched = False

        if any(p.search(text) for p in DATE_PATTERNS):
            candidates.append(DetectedField(name="date", selector=cell_selector, confidence=0.9))
            matched = True

        if DEPARTMENT_PATTERN.search(text) and len(text) < 20:
            candidates.append(DetectedField(name="department", selector=cell_selector, confidence=0.7))
            matched = True

        if VIEWS_PATTERN.match(text) and 0 < int(text) < 1000000:
            candidates.append(DetectedField(name="views", selector=cell_selector, confidence=0.6))
            matched = True

        link = dom.first(cell, "a")
        if link is not None:
            href = dom.attr(link, "href")
            link_text = dom.raw_text(link)
            if href and _is_detail_href(href):
                candidates.append(DetectedField(name="detailUrl", selector=f"{cell_selector} a", confidence=0.8))
            if link_text and _title_length_ok(link_text):
                candidates.append(DetectedField(name="title", selector=f"{cell_selector} a", confidence=0.9))
        elif not matched and _title_length_ok(text):
            candidates.append(DetectedField(name="title", selector=cell_selector, confidence=0.6))

    return _best_per_name(candidates)


def detect_fields_from_element(element: Node) -> List[DetectedField]:
    fields: List[DetectedField] = []

    for name, selectors, confidence in ELEMENT_FIELD_CANDIDATES:
        for selector in selectors:
            node = dom.first(element, selector)
            if node is None:
                continue
            if dom.raw_text(node) or (name == "date" and dom.attr(node, "datetime")):
                fields.append(DetectedField(name=name, selector=selector, confidence=confidence))
            break

    link = dom.first(element, "a")
    if link is not None:
        href = dom.attr(link, "href")
        if href and any(marker in href for marker in ELEMENT_DETAIL_HREF_MARKERS):
            fields.append(DetectedField(name="detailUrl", selector="a", confidence=0.7))

    return fields


def _best_per_name(candidates: List[DetectedField]) -> List[DetectedField]:
    """Keep one field per name, the most confident one (earliest on ties)."""
    best: Dict[str, DetectedField] = {}
    for field in candidates:
        current = best.get(field.name)
        if current is None or field.confidence > current.confidence:
            best[field.name] = field
    return [field for field in candidates if best.get(field.name) is field]


def _first_data_row(tree: HTMLParser) -> Optional[Node]:
    body = dom.first(tree, TABLE_BODY_SELECTOR)
    if body is None:
        return None
    for row in dom.find(body, "tr"):
        if dom.first(row, "td") is not None:
            return row
    return None


def extract_content_blocks(markup: str, page_role: PageRole) -> List[ContentBlock]:
    """
    Detect every content block on a page.

    The categories are independent; a page can yield a TABLE block and a
    LIST block at the same time.
    """
    tree = dom.parse(markup)
    semantic_type = semantic_type_for(page_role)
    blocks: List[ContentBlock] = []

    row = _first_data_row(tree)
    if row is not None:
        fields = detect_fields_from_row(row)
        if fields:
            blocks.append(ContentBlock(
                block_type=BlockType.TABLE,
                semantic_type=semantic_type,
                fields=fields,
                selector=TABLE_ROW_SELECTOR,
            ))

    articles = dom.find(tree, ARTICLE_SELECTOR)
    if len(articles) > 1:
        fields = detect_fields_from_element(articles[0])
        if fields:
            blocks.append(ContentBlock(
                block_type=BlockType.LIST,
                semantic_type=semantic_type,
                fields=fields,
                selector=ARTICLE_SELECTOR,
            ))
    elif len(articles) == 1:
        fields = detect_fields_from_element(articles[0])
        if fields:
            blocks.append(ContentBlock(
                block_type=BlockType.DETAIL,
                semantic_type=semantic_type,
                fields=fields,
                selector=SINGLE_ARTICLE_SELECTOR,
            ))

    list_items = [
        li for li in dom.find(tree, LIST_ITEM_SELECTOR)
        if len(dom.raw_text(li)) > MIN_LIST_ITEM_TEXT
    ]
    if len(list_items) > MIN_LIST_ITEMS:
        fields = detect_fields_from_element(list_items[0])
        if fields:
            blocks.append(ContentBlock(
                block_type=BlockType.LIST,
                semantic_type=semantic_type,
                fields=fields,
                selector=LIST_ITEM_SELECTOR,
            ))

    logger.debug("Detected %d content blocks", len(blocks))
    return blocks


def blocks_from_selectors(selectors: Optional[SelectorConfig], page_role: PageRole) -> List[ContentBlock]:
    """A LIST block built from user supplied selectors, if they describe one."""
    if selectors is None:
        return []

    if selectors.list_selector and selectors.item:
        locator = f"{selectors.list_selector} {selectors.item}"
    else:
        locator = selectors.item or selectors.list_selector
    field_selectors = selectors.field_selectors()
    if not locator or not field_selectors:
        return []

    fields = [
        DetectedField(name=name, selector=selector, confidence=1.0)
        for name, selector in field_selectors.items()
    ]
    return [ContentBlock(
        block_type=BlockType.LIST,
        semantic_type=semantic_type_for(page_role),
        fields=fields,
        selector=locator,
    )]
