"""
Turns detected content blocks into concrete items by reading every element
the block's locator matches.
"""

import logging
from typing import Dict, List, Optional
from urllib.parse import urljoin, urlparse

from selectolax.parser import Node

from . import dom
from .models import ContentBlock, DetectedField, ExtractedItem, PageDataModel

logger = logging.getLogger(__name__)


def resolve_url(href: str, base_url: str) -> Optional[str]:
    """Absolute http(s) URL for ``href``, or None when it cannot be resolved."""
    href = (href or "").strip()
    if not href:
        return None
    try:
        absolute = urljoin(base_url, href)
    except ValueError:
        return None
    parsed = urlparse(absolute)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return absolute


def extract_field_value(element: Node, field: DetectedField, base_url: str) -> Optional[str]:
    if not field.selector:
        return None

    target = dom.first(element, field.selector)
    if target is None:
        return None

    if field.name == "detailUrl":
        href = dom.attr(target, "href")
        if not href:
            link = dom.first(target, "a[href]")
            href = dom.attr(link, "href")
        return resolve_url(href, base_url)

    if field.name == "date":
        datetime_attr = dom.attr(target, "datetime")
        if datetime_attr:
            return datetime_attr

    text = dom.raw_text(target)
    return text or None


def build_page_data_model(markup: str, blocks: List[ContentBlock], base_url: str) -> PageDataModel:
    """
    Read every element matched by each block.

    Args:
        markup: page markup
        blocks: blocks found by the detector (or configured by the user)
        base_url: URL used to resolve relative links

    Returns:
        PageDataModel with one item per element that yielded any field
    """
    tree = dom.parse(markup)
    items: List[ExtractedItem] = []

    for block in blocks:
        if not block.selector:
            continue

        for element in dom.find(tree, block.selector):
            values: Dict[str, str] = {}
            for field in block.fields:
                value = extract_field_value(element, field, base_url)
                if value:
                    values[field.name] = value

            if values:
                items.append(ExtractedItem(
                    block_type=block.block_type,
                    semantic_type=block.semantic_type,
                    fields=values,
                ))

    logger.debug("Built %d items from %d blocks on %s", len(items), len(blocks), base_url)
    return PageDataModel(page_url=base_url, blocks=blocks, items=items)
