"""
Region extractors: navigation, header, search, main content, sidebar and
footer. Each one returns None (or an empty list) when its region is absent.
"""

import re
from typing import Dict, List, Optional, Set

from selectolax.parser import HTMLParser, Node

from .. import dom
from ..models import FooterInfo, HeaderInfo, MainContent, SearchInfo, Section
from .items import extract_product_items, extract_ranking_items
from .selectors import (
    BRAND_SELECTORS,
    HEADER_CONTAINER_SELECTOR,
    HEADER_LINK_ANCESTOR_SELECTOR,
    KEYWORD_SELECTORS,
    SECTION_BLOCK_SELECTOR,
    SECTION_HEADING_SELECTOR,
    SECTION_ITEM_SELECTOR,
    SEMANTIC_SELECTORS,
    joined,
)
from .text import split_text_into_tokens

RANKING_HINT = re.compile(r"rank|ranking|랭킹", re.IGNORECASE)
PRODUCT_HINT = re.compile(r"product|goods|상품|item|아이템", re.IGNORECASE)
MENU_TEXT_HINT = re.compile(r"홈|메인|home|main", re.IGNORECASE)
MENU_HREF_HINT = re.compile(r"서비스|service", re.IGNORECASE)

MAX_SECTIONS = 20
MAX_SECTION_ITEMS = 30
MAX_SERVICES = 15
MAX_MENU = 10
MAX_KEYWORDS = 30

COMPANY_INFO_KEYS = [
    ("address", ("주소", "Address")),
    ("phone", ("전화", "Tel", "Phone")),
    ("email", ("이메일", "Email")),
]


def _dedupe(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def detect_section_type(node: Node, text: str) -> str:
    """Classify a section as ranking, product, table, list, article or text."""
    markup = node.html or ""
    class_names = dom.class_of(node)

    if RANKING_HINT.search(text + class_names + markup):
        return "ranking"
    if PRODUCT_HINT.search(class_names + markup):
        return "product"
    if node.tag == "table" or dom.first(node, "table") is not None:
        return "table"
    if node.tag in ("ul", "ol") or dom.first(node, "ul, ol, li") is not None:
        return "list"
    if node.tag == "article" or dom.first(node, "article") is not None:
        return "article"
    return "text"


def extract_section_text(tree: HTMLParser, selectors: List[str]) -> List[str]:
    """Short labels from every container matching ``selectors``."""
    texts: List[str] = []

    for selector in selectors:
        for container in dom.find(tree, selector):
            links = dom.find(container, "a, button")
            if links:
                for link in links:
                    label = dom.clean_text(link)
                    if 0 < len(label) < 100:
                        texts.append(label)
            else:
                text = dom.clean_text(container)
                if text:
                    texts.extend(split_text_into_tokens(text))

    return _dedupe(texts)


def extract_navigation(tree: HTMLParser) -> List[str]:
    return extract_section_text(tree, SEMANTIC_SELECTORS["navigation"])


def extract_sidebar(tree: HTMLParser) -> List[str]:
    return extract_section_text(tree, SEMANTIC_SELECTORS["sidebar"])


def _has_ancestor_in(node: Node, ancestor_ids: Set[int]) -> bool:
    parent = node.parent
    while parent is not None:
        if parent.mem_id in ancestor_ids:
            return True
        parent = parent.parent
    return False


def extract_header(tree: HTMLParser) -> Optional[HeaderInfo]:
    header = HeaderInfo()

    for selector in BRAND_SELECTORS:
        brand = dom.clean_text(dom.first(tree, selector))
        if 0 < len(brand) < 50:
            header.brand = brand
            break

    header_container = dom.first(tree, HEADER_CONTAINER_SELECTOR)
    container = header_container or tree.body
    if container is None:
        return header if header.brand else None

    # Without a real header, only links inside header-ish or nav-ish
    # containers count
    ancestor_ids: Set[int] = set()
    if header_container is None:
        ancestor_ids = {node.mem_id for node in dom.find(tree, HEADER_LINK_ANCESTOR_SELECTOR)}

    services: List[str] = []
    menu: List[str] = []
    for link in dom.find(container, "a"):
        if header_container is None and not _has_ancestor_in(link, ancestor_ids):
            continue
        label = dom.clean_text(link)
        if not 0 < len(label) < 50:
            continue
        if MENU_TEXT_HINT.search(label) or MENU_HREF_HINT.search(dom.attr(link, "href")):
            menu.append(label)
        else:
            services.append(label)

    if not services and not menu:
        header_text = dom.clean_text(container)
        services.extend(t for t in split_text_into_tokens(header_text) if 1 < len(t) < 30)

    if services:
        header.services = _dedupe(services)[:MAX_SERVICES]
    if menu:
        header.menu = _dedupe(menu)[:MAX_MENU]

    if header.brand is None and header.services is None and header.menu is None:
        return None
    return header


def extract_search(tree: HTMLParser) -> Optional[SearchInfo]:
    container = dom.first(tree, joined("search"))
    if container is None:
        return None

    search = SearchInfo()
    area = dom.clean_text(container)
    if area:
        search.area = area

    keywords: List[str] = []
    for node in dom.find(tree, ", ".join(KEYWORD_SELECTORS)):
        text = dom.clean_text(node)
        if 0 < len(text) < 100:
            keywords.extend(split_text_into_tokens(text))
    if keywords:
        search.keywords = _dedupe(keywords)[:MAX_KEYWORDS]

    rankings = extract_ranking_items(container)
    if rankings:
        search.keyword_rankings = rankings

    if search.area is None and search.keywords is None and search.keyword_rankings is None:
        return None
    return search


def _main_container(tree: HTMLParser) -> Optional[Node]:
    for selector in SEMANTIC_SELECTORS["main"]:
        node = dom.first(tree, selector)
        if node is not None:
            return node
    return tree.body


def _section_container(heading: Node) -> Node:
    sibling = dom.next_element(heading)
    if sibling is not None:
        return sibling
    parent = heading.parent
    if parent is None:
        return heading
    return dom.next_element(parent) or parent


def _typed_section(name: str, section_type: str, container: Node) -> Section:
    section = Section(name=name, type=section_type)
    if section_type == "ranking":
        section.rankings = extract_ranking_items(container) or None
    elif section_type == "product":
        section.products = extract_product_items(container) or None
    return section


def _section_items(container: Node) -> List[str]:
    items: List[str] = []
    list_items = dom.find(container, SECTION_ITEM_SELECTOR)
    if list_items:
        for node in list_items:
            text = dom.clean_text(node)
            if 2 < len(text) < 300:
                items.extend(split_text_into_tokens(text) or [text])
    else:
        text = dom.clean_text(container)
        if len(text) > 5:
            items.extend(split_text_into_tokens(text)[:MAX_SECTION_ITEMS])
    return _dedupe(items)[:MAX_SECTION_ITEMS]


def extract_main_content(tree: HTMLParser) -> Optional[MainContent]:
    """
    Split the main area into named sections.

    Headings start sections; the element after a heading (or after its
    parent) holds the section body. When no heading produces a section,
    section-like blocks are used instead.
    """
    container = _main_container(tree)
    if container is None:
        return None

    sections: List[Section] = []
    seen: Set[str] = set()

    for heading in dom.find(container, SECTION_HEADING_SELECTOR):
        name = dom.clean_text(heading)
        if not 2 <= len(name) <= 150:
            continue
        key = name[:50]
        if key in seen:
            continue
        seen.add(key)

        body = _section_container(heading)
        section = _typed_section(name, detect_section_type(body, name), body)
        if not section.rankings and not section.products:
            section.items = _section_items(body) or None

        if section.has_data():
            sections.append(section)

    if not sections:
        for block in dom.find(container, SECTION_BLOCK_SELECTOR):
            text = dom.clean_text(block)
            if len(text) < 20:
                continue
            section_type = detect_section_type(block, text)
            section = _typed_section(text[:50] or "Untitled Section", section_type, block)
            if section_type not in ("ranking", "product"):
                section.items = _dedupe(split_text_into_tokens(text))[:MAX_SECTION_ITEMS] or None
            if section.has_data():
                sections.append(section)

    if not sections:
        return None
    return MainContent(sections=sections[:MAX_SECTIONS])


def extract_footer(tree: HTMLParser) -> Optional[FooterInfo]:
    container = dom.first(tree, joined("footer"))
    if container is None:
        return None

    footer = FooterInfo()

    links = [dom.clean_text(a) for a in dom.find(container, "a")]
    links = [label for label in links if 0 < len(label) < 50]
    if links:
        footer.links = _dedupe(links)

    copyright_text = dom.normalize_text(" ".join(
        dom.clean_text(node) for node in dom.find(container, '[class*="copyright"], .copyright')
    ))
    if copyright_text:
        footer.copyright = copyright_text

    company_info: Dict[str, str] = {}
    for node in dom.find(container, "p, div"):
        text = dom.clean_text(node)
        for key, labels in COMPANY_INFO_KEYS:
            if any(label in text for label in labels):
                company_info[key] = text
                break
    if company_info:
        footer.company_info = company_info

    if footer.links is None and footer.copyright is None and footer.company_info is None:
        return None
    return footer
