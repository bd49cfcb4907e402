"""
Engine settings loaded from the environment (and a .env file when present).

The heuristic weights below were tuned by hand against a small set of sites.
They are kept here so a caller can override them without touching the code.
"""

import os
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ScoringWeights(BaseModel):
    """JS dependency scoring."""
    script_count_threshold: int = 10
    script_bonus: float = 0.4
    short_content_threshold: int = 5000
    short_content_bonus: float = 0.4
    inline_data_penalty: float = 0.2
    csr_threshold: float = 0.5
    meaningful_length: int = 2000
    table_row_threshold: int = 3
    article_threshold: int = 1
    noscript_text_threshold: int = 100
    readability_score_ceiling: float = 0.3


class ArbitrationWeights(BaseModel):
    """Choosing between the two main-content extractors."""
    min_content_length: int = 50
    readability_confidence: float = 0.95
    short_content_length: int = 200
    short_content_discount: float = 0.7
    alternate_long_score: float = 0.85
    alternate_short_score: float = 0.7
    alternate_single_threshold: int = 100
    length_ratio: float = 0.8
    min_title_length: int = 5


class QualityWeights(BaseModel):
    """Record quality scoring."""
    title: float = 0.3
    short_title: float = 0.15
    min_title_length: int = 5
    url: float = 0.2
    date: float = 0.2
    partial_date: float = 0.1
    content: float = 0.3
    medium_content: float = 0.2
    short_content: float = 0.1
    min_score: float = 0.4


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class EngineSettings(BaseModel):
    """Runtime knobs for the engine. Build with ``EngineSettings.from_env()``."""
    loader_timeout_ms: int = 8000
    detect_timeout_ms: int = 10000
    settle_ms: int = 2000
    safety_margin_ms: int = 5000
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7"
    max_content_length: int = 5000
    zero_shot_api_url: Optional[str] = None
    zero_shot_timeout_ms: int = 5000
    zero_shot_min_score: float = 0.6
    cache_ttl_seconds: int = 300
    cache_max_entries: int = 256
    log_level: str = "INFO"

    scoring: ScoringWeights = Field(default_factory=ScoringWeights)
    arbitration: ArbitrationWeights = Field(default_factory=ArbitrationWeights)
    quality: QualityWeights = Field(default_factory=QualityWeights)

    @field_validator("safety_margin_ms")
    @classmethod
    def validate_margin(cls, v):
        if v < 0:
            raise ValueError("safety_margin_ms must not be negative")
        return v

    @field_validator("zero_shot_api_url")
    @classmethod
    def validate_zero_shot_url(cls, v):
        if v is None:
            return None
        v = v.strip().rstrip("/")
        if not v or v.lower() == "disabled":
            return None
        return v

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            loader_timeout_ms=_env_int("PAGESENSE_LOADER_TIMEOUT_MS", 8000),
            detect_timeout_ms=_env_int("PAGESENSE_DETECT_TIMEOUT_MS", 10000),
            settle_ms=_env_int("PAGESENSE_SETTLE_MS", 2000),
            safety_margin_ms=_env_int("PAGESENSE_SAFETY_MARGIN_MS", 5000),
            headless=_env_bool("PAGESENSE_HEADLESS", True),
            user_agent=os.getenv("PAGESENSE_USER_AGENT") or DEFAULT_USER_AGENT,
            accept_language=os.getenv("PAGESENSE_ACCEPT_LANGUAGE") or "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
            max_content_length=_env_int("PAGESENSE_MAX_CONTENT_LENGTH", 5000),
            zero_shot_api_url=os.getenv("ZERO_SHOT_API_URL"),
            zero_shot_timeout_ms=_env_int("ZERO_SHOT_TIMEOUT_MS", 5000),
            zero_shot_min_score=_env_float("ZERO_SHOT_MIN_SCORE", 0.6),
            cache_ttl_seconds=_env_int("PAGESENSE_CACHE_TTL", 300),
            cache_max_entries=_env_int("PAGESENSE_CACHE_MAX_ENTRIES", 256),
            log_level=os.getenv("PAGESENSE_LOG_LEVEL") or "INFO",
        )

    def bounded_timeout_ms(self, budget_ms: int) -> int:
        """Per-call timeout that leaves ``safety_margin_ms`` of the budget unused."""
        bounded = budget_ms - self.safety_margin_ms
        if bounded <= 0:
            bounded = budget_ms // 2
        return max(bounded, 1)

    def http_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": self.accept_language,
        }
