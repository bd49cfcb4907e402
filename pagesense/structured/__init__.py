"""
Structured content extraction.
"""

from .content import extract_structured_content, format_structured_content
from .items import extract_product_items, extract_ranking_items
from .sections import detect_section_type
from .text import extract_price, extract_rank, normalize_text, split_text_into_tokens

__all__ = [
    "extract_structured_content",
    "format_structured_content",
    "extract_product_items",
    "extract_ranking_items",
    "detect_section_type",
    "extract_price",
    "extract_rank",
    "normalize_text",
    "split_text_into_tokens",
]
