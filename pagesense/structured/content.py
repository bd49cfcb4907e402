"""
Structured content: a page broken down into navigation, header, search,
main content, sidebar and footer.
"""

import logging
from typing import Callable, List, Optional, TypeVar

from selectolax.parser import HTMLParser

from .. import dom
from ..models import SidebarGroup, StructuredContent
from .sections import (
    extract_footer,
    extract_header,
    extract_main_content,
    extract_navigation,
    extract_search,
    extract_sidebar,
)

logger = logging.getLogger(__name__)

MAX_NAVIGATION = 30
MAX_SIDEBAR = 30

T = TypeVar("T")


def _region(name: str, extractor: Callable[[HTMLParser], T], tree: HTMLParser) -> Optional[T]:
    """Run one region extractor; a failure drops the region, not the page."""
    try:
        return extractor(tree)
    except Exception as e:
        logger.warning("Structured extraction of %s failed: %s", name, e)
        return None


def extract_structured_content(markup: str) -> StructuredContent:
    tree = dom.parse(markup)
    structured = StructuredContent()

    navigation = _region("navigation", extract_navigation, tree)
    if navigation:
        structured.navigation = navigation[:MAX_NAVIGATION]

    structured.header = _region("header", extract_header, tree)
    structured.search = _region("search", extract_search, tree)
    structured.main_content = _region("main content", extract_main_content, tree)

    sidebar = _region("sidebar", extract_sidebar, tree)
    if sidebar:
        structured.sidebar = [SidebarGroup(title="Sidebar", items=sidebar[:MAX_SIDEBAR])]

    structured.footer = _region("footer", extract_footer, tree)
    return structured


def format_structured_content(structured: StructuredContent) -> str:
    """Render structured content as readable markdown-ish text."""
    parts: List[str] = []

    if structured.navigation:
        parts.append("## 네비게이션")
        parts.extend(f"- {item}" for item in structured.navigation)
        parts.append("")

    header = structured.header
    if header:
        parts.append("## 헤더")
        if header.brand:
            parts.append(f"브랜드: {header.brand}")
        if header.services:
            parts.append("서비스:")
            parts.extend(f"  - {service}" for service in header.services)
        if header.menu:
            parts.append("메뉴:")
            parts.extend(f"  - {item}" for item in header.menu)
        parts.append("")

    search = structured.search
    if search:
        parts.append("## 검색")
        if search.area:
            parts.append(f"영역: {search.area}")
        if search.keywords:
            parts.append("키워드:")
            parts.extend(f"  - {keyword}" for keyword in search.keywords)
        if search.keyword_rankings:
            parts.append("인기 검색어:")
            parts.extend(f"  {r.rank}위: {r.title}" for r in search.keyword_rankings)
        parts.append("")

    main = structured.main_content
    if main:
        parts.append("## 메인 콘텐츠")
        if main.title:
            parts.append(f"제목: {main.title}")
        for section in main.sections or []:
            parts.append(f"### {section.name}")
            for item in section.items or []:
                parts.append(f"  - {item}")
            for product in section.products or []:
                parts.append(f"  - {product.title or 'Untitled'}")
                if product.price:
                    parts.append(f"    가격: {product.price}")
                if product.delivery_fee:
                    parts.append(f"    배송비: {product.delivery_fee}")
            for ranking in section.rankings or []:
                parts.append(f"  {ranking.rank}위: {ranking.title}")
                if ranking.change:
                    parts.append(f"    변화: {ranking.change}")
            parts.append("")

    if structured.sidebar:
        parts.append("## 사이드바")
        for group in structured.sidebar:
            parts.append(f"### {group.title}")
            parts.extend(f"  - {item}" for item in group.items)
        parts.append("")

    footer = structured.footer
    if footer:
        parts.append("## 푸터")
        if footer.links:
            parts.append("링크:")
            parts.extend(f"  - {link}" for link in footer.links)
        if footer.copyright:
            parts.append(f"저작권: {footer.copyright}")
        if footer.company_info:
            parts.append("회사 정보:")
            parts.extend(f"  {key}: {value}" for key, value in footer.company_info.items())

    return "\n".join(parts).strip()
