"""
Adaptive page understanding and collection engine.
"""

from .models import (
    CrawlStrategy,
    PageAnalysis,
    PageConfig,
    PageDataModel,
    PageProfile,
    PageRole,
    PageUnderstanding,
    RawRecord,
    StructuredContent,
)
from .config import EngineSettings
from .cache import PageCache
from .core import DynamicCollector, analyze_and_classify
from .fetchers import create_strategy
from .hybrid import extract_best_content
from .signals import analyze_page
from .strategy import select_strategy
from .blocks import extract_content_blocks
from .model_builder import build_page_data_model
from .structured import extract_structured_content

__version__ = "0.3.0"

__all__ = [
    "CrawlStrategy",
    "PageAnalysis",
    "PageConfig",
    "PageDataModel",
    "PageProfile",
    "PageRole",
    "PageUnderstanding",
    "RawRecord",
    "StructuredContent",
    "EngineSettings",
    "PageCache",
    "DynamicCollector",
    "analyze_and_classify",
    "create_strategy",
    "extract_best_content",
    "analyze_page",
    "select_strategy",
    "extract_content_blocks",
    "build_page_data_model",
    "extract_structured_content",
]
