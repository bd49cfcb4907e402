"""
Item extractors for product listings and rankings.
"""

import logging
from typing import List, Optional, Set, Union

from selectolax.parser import HTMLParser, Node

from .. import dom
from ..models import ProductItem, RankingItem
from .selectors import CATEGORY_SELECTOR, PRODUCT_SELECTORS, RANKING_ITEM_SELECTORS, RANKING_SELECTORS, TITLE_SELECTORS
from .text import extract_price, extract_rank, strip_prices, strip_rank_markers

logger = logging.getLogger(__name__)

MAX_ITEMS = 50

Searchable = Union[HTMLParser, Node]


def _image_of(element: Node) -> Optional[str]:
    img = dom.first(element, "img")
    if img is None:
        return None
    for name in ("src", "data-src", "data-lazy-src"):
        value = dom.attr(img, name)
        if value:
            return value
    return None


def _category_of(element: Node) -> Optional[str]:
    category = dom.clean_text(dom.first(element, CATEGORY_SELECTOR))
    return category or None


def _product_title(element: Node, text: str) -> str:
    for selector in TITLE_SELECTORS:
        node = dom.first(element, selector)
        if node is None:
            continue
        title = dom.clean_text(node)[:100]
        if len(title) > 3:
            return title

    without_price = strip_prices(text)
    if 3 < len(without_price) < 100:
        return without_price
    return ""


def extract_product_items(scope: Searchable) -> List[ProductItem]:
    """Product-like elements under ``scope``, deduplicated by leading text."""
    products: List[ProductItem] = []
    seen: Set[str] = set()

    for selector in PRODUCT_SELECTORS:
        for element in dom.find(scope, selector):
            text = dom.clean_text(element)
            if not 10 <= len(text) < 1000:
                continue

            key = text[:50]
            if key in seen:
                continue
            seen.add(key)

            title = _product_title(element, text)
            price = extract_price(text)
            if not title and not price.price:
                continue

            rank = extract_rank(text)
            link = dom.first(element, "a[href]")
            products.append(ProductItem(
                title=title or text[:50],
                price=price.price,
                discount_price=price.discount_price,
                delivery_fee=price.delivery_fee,
                rank=rank.rank,
                change=rank.change,
                change_amount=rank.change_amount,
                category=_category_of(element),
                image_url=_image_of(element),
                detail_url=dom.attr(link, "href") or None,
            ))

    return products[:MAX_ITEMS]


def _ranking_title(element: Node, text: str) -> str:
    for selector in TITLE_SELECTORS:
        node = dom.first(element, selector)
        if node is None:
            continue
        title = strip_rank_markers(dom.clean_text(node))
        if 2 < len(title) < 200:
            return title

    return strip_prices(strip_rank_markers(text))[:100]


def extract_ranking_items(scope: Searchable) -> List[RankingItem]:
    """
    Ranked entries under ``scope``.

    Only entries with a readable rank number are kept, one per rank,
    sorted by rank.
    """
    rankings: List[RankingItem] = []
    seen_ranks: Set[int] = set()

    for container_selector in RANKING_SELECTORS:
        for container in dom.find(scope, container_selector):
            for item_selector in RANKING_ITEM_SELECTORS:
                for element in dom.find(container, item_selector):
                    text = dom.clean_text(element)
                    if not 5 <= len(text) <= 500:
                        continue

                    rank = extract_rank(text)
                    if rank.rank is None or rank.rank in seen_ranks:
                        continue
                    seen_ranks.add(rank.rank)

                    title = _ranking_title(element, text)
                    if len(title) <= 2:
                        continue

                    products = extract_product_items(element)
                    rankings.append(RankingItem(
                        rank=rank.rank,
                        title=title,
                        change=rank.change,
                        change_amount=rank.change_amount,
                        category=_category_of(element),
                        products=products or None,
                    ))

    rankings.sort(key=lambda item: item.rank)
    return rankings[:MAX_ITEMS]
