"""
CSS selectors for the page regions and item types the structured extractor
looks for.
"""

SEMANTIC_SELECTORS = {
    "navigation": ["nav", '[role="navigation"]', ".nav", ".navigation", ".menu", ".gnb"],
    "header": ["header", '[role="banner"]', ".header", ".top", ".topbar"],
    "main": ["main", '[role="main"]', ".main", ".content", "#content", ".container"],
    "sidebar": ["aside", '[role="complementary"]', ".sidebar", ".side", ".side-menu"],
    "footer": ["footer", '[role="contentinfo"]', ".footer", ".bottom"],
    "search": [".search", "#search", '[role="search"]', ".search-area", ".search-layer"],
    "article": ["article", ".article", ".post", ".entry"],
    "section": ["section", ".section"],
}

PRODUCT_SELECTORS = [
    '[class*="product"]',
    '[class*="goods"]',
    '[class*="item"]:not([class*="list-item"]):not([class*="menu-item"])',
    'li[class*="product"]',
    'li[class*="goods"]',
    ".goods-item",
    "[data-product-id]",
    "[data-goods-no]",
]

RANKING_SELECTORS = [
    '[class*="rank"]',
    '[class*="ranking"]',
    ".rank",
    ".ranking",
    '[class*="keyword"]',
    '[class*="best"]',
]

TITLE_SELECTORS = [
    "h3", "h4", "h5",
    ".title", '[class*="title"]',
    "a[href]",
    ".name", '[class*="name"]',
    ".product-name", '[class*="product-name"]',
]

RANKING_ITEM_SELECTORS = [
    "li",
    ".item",
    '[class*="item"]',
    "tr",
    'div[class*="rank"]',
    'div[class*="item"]',
]

KEYWORD_SELECTORS = [
    ".keyword",
    '[class*="keyword"]',
    ".rank",
    '[class*="rank"]',
    ".trending",
    '[class*="trending"]',
]

BRAND_SELECTORS = [
    ".logo",
    ".brand",
    "h1",
    "h1 a",
    '[class*="logo"]',
    '[class*="brand"]',
]

CATEGORY_SELECTOR = '[class*="category"], [class*="cat"]'

HEADER_CONTAINER_SELECTOR = 'header, .header, [role="banner"]'

HEADER_LINK_ANCESTOR_SELECTOR = 'header, .header, nav, .nav, .gnb, [role="navigation"]'

SECTION_HEADING_SELECTOR = (
    'h1, h2, h3, h4, h5, h6, .section-title, [class*="section-title"], [class*="title"]'
)

SECTION_BLOCK_SELECTOR = 'section, .section, [class*="section"], article, .article'

SECTION_ITEM_SELECTOR = 'li, .item, [class*="item"]'


def joined(region: str) -> str:
    """All selectors of a semantic region as one selector group."""
    return ", ".join(SEMANTIC_SELECTORS[region])
