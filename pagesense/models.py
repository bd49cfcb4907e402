"""
Data models shared by the page understanding pipeline.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class RenderingType(str, Enum):
    STATIC = "STATIC"
    CSR = "CSR"


class DataAccessType(str, Enum):
    HTML = "HTML"
    XHR = "XHR"
    MIXED = "MIXED"


class PageRole(str, Enum):
    LIST_NOTICE = "LIST_NOTICE"
    DETAIL_NOTICE = "DETAIL_NOTICE"
    LIST_RECRUIT = "LIST_RECRUIT"
    DETAIL_RECRUIT = "DETAIL_RECRUIT"
    LIST_EVENT = "LIST_EVENT"
    DETAIL_EVENT = "DETAIL_EVENT"
    STATIC_PAGE = "STATIC_PAGE"
    UNKNOWN = "UNKNOWN"

    @property
    def is_list(self) -> bool:
        return self.value.startswith("LIST_")

    @property
    def is_detail(self) -> bool:
        return self.value.startswith("DETAIL_")


class BlockType(str, Enum):
    LIST = "LIST"
    DETAIL = "DETAIL"
    TABLE = "TABLE"
    TEXT = "TEXT"


class SemanticType(str, Enum):
    NOTICE = "NOTICE"
    RECRUIT = "RECRUIT"
    EVENT = "EVENT"
    UNKNOWN = "UNKNOWN"


class FetcherKind(str, Enum):
    STATIC = "STATIC"
    HEADLESS = "HEADLESS"


class ParserKind(str, Enum):
    LIST = "LIST"
    DETAIL = "DETAIL"
    API = "API"
    MIXED = "MIXED"


class LoadedPage(BaseModel):
    """A page as it came off the wire. Empty markup means the load failed."""
    model_config = ConfigDict(frozen=True)

    url: str
    raw_markup: str = ""
    response_headers: Dict[str, str] = Field(default_factory=dict)
    status_code: int = 0
    load_time_ms: int = 0

    @property
    def ok(self) -> bool:
        return bool(self.raw_markup) and 200 <= self.status_code < 400


class HtmlSignals(BaseModel):
    """Cheap markup signals used to guess whether a page needs a browser."""
    script_count: int = 0
    inline_data_presence: bool = False
    noscript_only: bool = False
    content_length: int = 0
    has_table: bool = False
    has_article: bool = False


class DetectedEndpoint(BaseModel):
    """A JSON endpoint observed while the page was rendering."""
    url: str
    method: str = "GET"
    content_type: str = "application/json"


class PageAnalysis(BaseModel):
    has_meaningful_html: bool
    html_signals: HtmlSignals
    requires_js_execution: bool
    js_dependency_score: float = Field(ge=0.0, le=1.0)
    detected_endpoints: List[DetectedEndpoint] = Field(default_factory=list)
    data_access_type: DataAccessType
    rendering_type: RenderingType


class PageProfile(BaseModel):
    rendering_type: RenderingType
    data_access_type: DataAccessType
    page_role: PageRole


class DetectedField(BaseModel):
    """A field the detector believes can be read with ``selector``."""
    name: str
    selector: Optional[str] = None
    pattern: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)


class ContentBlock(BaseModel):
    block_type: BlockType
    semantic_type: SemanticType
    fields: List[DetectedField]
    selector: str

    @field_validator("fields")
    @classmethod
    def validate_fields(cls, v):
        if not v:
            raise ValueError("A content block needs at least one field")
        return v


class ExtractedItem(BaseModel):
    block_type: BlockType
    semantic_type: SemanticType
    fields: Dict[str, str]


class PageDataModel(BaseModel):
    page_url: str
    blocks: List[ContentBlock] = Field(default_factory=list)
    items: List[ExtractedItem] = Field(default_factory=list)


class RetryPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_retries: int
    backoff_ms: int
    strategy: str = "exponential"
    max_backoff_ms: int = 10000

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (0-based)."""
        if self.strategy == "exponential":
            delay_ms = self.backoff_ms * (2 ** attempt)
        else:
            delay_ms = self.backoff_ms
        return min(delay_ms, self.max_backoff_ms) / 1000


class CrawlStrategy(BaseModel):
    """Which fetcher and parser to use for a page, and how hard to try."""
    model_config = ConfigDict(frozen=True)

    fetcher: FetcherKind
    parser: ParserKind
    retry_policy: RetryPolicy
    timeout_ms: int
    use_readability: Optional[bool] = None


class RawRecord(BaseModel):
    """One collected record handed to the downstream normalizer."""
    title: str
    url: str
    date: str = Field(default_factory=utc_now_iso)
    content: Union[str, Dict[str, Any]] = ""
    source: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def default_date(cls, v):
        return v or utc_now_iso()


class ConfigOverride(BaseModel):
    page_role: Optional[PageRole] = None
    fetcher: Optional[FetcherKind] = None
    parser: Optional[ParserKind] = None
    use_readability: Optional[bool] = None

    def is_set(self) -> bool:
        return any(
            value is not None
            for value in (self.page_role, self.fetcher, self.parser, self.use_readability)
        )


class SelectorConfig(BaseModel):
    """User supplied CSS selectors. They add to the built-in heuristics."""
    model_config = ConfigDict(populate_by_name=True)

    list_selector: Optional[str] = Field(None, alias="list")
    item: Optional[str] = None
    title: Optional[str] = None
    date: Optional[str] = None
    author: Optional[str] = None
    content: Optional[str] = None
    detail_url: Optional[str] = Field(None, alias="detailUrl")

    def field_selectors(self) -> Dict[str, str]:
        mapping = {
            "title": self.title,
            "date": self.date,
            "author": self.author,
            "content": self.content,
            "detailUrl": self.detail_url,
        }
        return {name: sel for name, sel in mapping.items() if sel}


class PageConfig(BaseModel):
    """Per-source configuration."""
    source_name: str
    url: str
    override: Optional[ConfigOverride] = None
    selectors: Optional[SelectorConfig] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("url must not be empty")
        return v


class FetchOptions(BaseModel):
    timeout_ms: int = 15000
    use_readability: Optional[bool] = None
    detected_endpoints: List[DetectedEndpoint] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    """Main content pulled out of a whole document."""
    title: str = ""
    content: str
    author: Optional[str] = None
    date_published: Optional[str] = None
    excerpt: Optional[str] = None
    method: str
    confidence: float = Field(ge=0.0, le=1.0)


# Structured content


class PriceInfo(BaseModel):
    price: Optional[str] = None
    discount_price: Optional[str] = None
    delivery_fee: Optional[str] = None


class RankInfo(BaseModel):
    rank: Optional[int] = None
    change: Optional[str] = None
    change_amount: Optional[int] = None


class ProductItem(BaseModel):
    title: Optional[str] = None
    price: Optional[str] = None
    discount_price: Optional[str] = None
    delivery_fee: Optional[str] = None
    rank: Optional[int] = None
    change: Optional[str] = None
    change_amount: Optional[int] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    detail_url: Optional[str] = None


class RankingItem(BaseModel):
    rank: int
    title: str
    change: Optional[str] = None
    change_amount: Optional[int] = None
    category: Optional[str] = None
    products: Optional[List[ProductItem]] = None


class Section(BaseModel):
    name: str
    type: str = "text"
    items: Optional[List[str]] = None
    products: Optional[List[ProductItem]] = None
    rankings: Optional[List[RankingItem]] = None

    def has_data(self) -> bool:
        return bool(self.items or self.products or self.rankings)


class SidebarGroup(BaseModel):
    title: str
    items: List[str] = Field(default_factory=list)


class HeaderInfo(BaseModel):
    brand: Optional[str] = None
    services: Optional[List[str]] = None
    menu: Optional[List[str]] = None


class SearchInfo(BaseModel):
    area: Optional[str] = None
    keywords: Optional[List[str]] = None
    keyword_rankings: Optional[List[RankingItem]] = None


class MainContent(BaseModel):
    title: Optional[str] = None
    sections: Optional[List[Section]] = None


class FooterInfo(BaseModel):
    links: Optional[List[str]] = None
    copyright: Optional[str] = None
    company_info: Optional[Dict[str, str]] = None


def is_blank(model: BaseModel) -> bool:
    """True when every field of ``model`` is None or empty."""
    return not any(model.model_dump(exclude_none=True).values())


class StructuredContent(BaseModel):
    """A page broken down into its visible regions. Empty regions stay None."""
    navigation: Optional[List[str]] = None
    header: Optional[HeaderInfo] = None
    search: Optional[SearchInfo] = None
    main_content: Optional[MainContent] = None
    sidebar: Optional[List[SidebarGroup]] = None
    footer: Optional[FooterInfo] = None

    def is_empty(self) -> bool:
        return all(
            region is None
            for region in (
                self.navigation, self.header, self.search,
                self.main_content, self.sidebar, self.footer,
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return _camelize(self.model_dump(exclude_none=True))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(k) if isinstance(k, str) else k: _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(v) for v in value]
    return value


class PageUnderstanding(BaseModel):
    """Everything the analysis phase learned about one page."""
    loaded_page: LoadedPage
    analysis: PageAnalysis
    profile: PageProfile
    blocks: List[ContentBlock] = Field(default_factory=list)
    model: PageDataModel
    strategy: CrawlStrategy
