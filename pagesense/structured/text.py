"""
Text helpers for the structured extractor: tokenizing run-together text and
pulling prices and rank markers out of it.
"""

import re
from typing import List, Optional

from ..dom import normalize_text
from ..models import PriceInfo, RankInfo

PRICE_PATTERN = re.compile(r"[\d,]+원")
PRICE_WITH_SPACE_PATTERN = re.compile(r"[\d,]+\s*원")
DELIVERY_FEE_PATTERN = re.compile(r"배송비\s*([\d,]+원|무료|FREE)", re.IGNORECASE)
PLACEHOLDER_PATTERN = re.compile(r"^__PRICE_(\d+)__$")
HANGUL_RUN = re.compile(r"[가-힣]+")

_BOUNDARIES = [
    (re.compile(r"(\d+)([가-힣a-zA-Z])"), r"\1 \2"),
    (re.compile(r"([가-힣a-zA-Z])(\d+)"), r"\1 \2"),
    (re.compile(r"([가-힣a-zA-Z])([,，.。!！?？])"), r"\1 \2"),
    (re.compile(r"([,，.。!！?？])([가-힣a-zA-Z])"), r"\1 \2"),
]

HANGUL_CHUNK = 4

RANK_PATTERNS = [
    re.compile(r"(\d+)\s*위", re.IGNORECASE),
    re.compile(r"랭킹\s*(\d+)", re.IGNORECASE),
    re.compile(r"#(\d+)"),
    re.compile(r"순위\s*(\d+)"),
]
MAX_RANK = 1000

UP_PATTERN = re.compile(r"상승|UP|up|\+")
UP_AMOUNT_PATTERNS = [
    re.compile(r"(\d+)\s*(단계?|위|step)?\s*(상승|UP|up|\+)", re.IGNORECASE),
    re.compile(r"\+\s*(\d+)"),
]
DOWN_PATTERN = re.compile(r"하락|DOWN|down|-")
DOWN_AMOUNT_PATTERNS = [
    re.compile(r"(\d+)\s*(단계?|위|step)?\s*(하락|DOWN|down|-)", re.IGNORECASE),
    re.compile(r"-\s*(\d+)"),
]
STABLE_PATTERN = re.compile(r"유지|stable", re.IGNORECASE)
SOAR_PATTERN = re.compile(r"급등|soar", re.IGNORECASE)
SOAR_AMOUNT_PATTERNS = [re.compile(r"(\d+)\s*(단계?|위)?\s*급등", re.IGNORECASE)]
NEW_PATTERN = re.compile(r"신규|new", re.IGNORECASE)

RANK_MARKERS = [
    re.compile(r"\d+\s*위"),
    re.compile(r"랭킹\s*\d+"),
    re.compile(r"상승|하락|유지|급등|신규", re.IGNORECASE),
]

__all__ = [
    "normalize_text",
    "split_text_into_tokens",
    "extract_price",
    "extract_rank",
    "strip_rank_markers",
    "strip_prices",
]


def _chunk_hangul(run: str, tokens: List[str]) -> None:
    if len(run) <= HANGUL_CHUNK:
        tokens.append(run)
        return

    remaining = run
    while remaining:
        if len(remaining) >= 2:
            size = min(HANGUL_CHUNK, len(remaining))
            tokens.append(remaining[:size])
            remaining = remaining[size:]
        else:
            # A single leftover syllable joins the previous chunk
            if tokens:
                tokens[-1] += remaining
            remaining = ""


def split_text_into_tokens(text: str) -> List[str]:
    """
    Break text that lost its separators into short units.

    "39,000원배송비4,000원" becomes ["39,000원", "배송비", "4,000원"].
    Long Hangul runs are cut into chunks of at most four syllables.
    """
    if not text:
        return []

    prices: List[str] = []

    def protect(match: re.Match) -> str:
        prices.append(match.group(0))
        return f" __PRICE_{len(prices) - 1}__ "

    processed = PRICE_PATTERN.sub(protect, text)
    for pattern, replacement in _BOUNDARIES:
        processed = pattern.sub(replacement, processed)

    tokens: List[str] = []
    for part in processed.split():
        placeholder = PLACEHOLDER_PATTERN.match(part)
        if placeholder:
            index = int(placeholder.group(1))
            if index < len(prices):
                tokens.append(prices[index])
            continue

        for run in HANGUL_RUN.findall(part):
            _chunk_hangul(run, tokens)

        rest = HANGUL_RUN.sub(" ", part).split()
        tokens.extend(rest)

    kept = [t for t in tokens if 2 <= len(t) < 100]
    return list(dict.fromkeys(kept))


def extract_price(text: str) -> PriceInfo:
    """First amount is the price, a second one the discounted price."""
    info = PriceInfo()
    amounts = [re.sub(r"\s", "", m) for m in PRICE_WITH_SPACE_PATTERN.findall(text or "")]
    if amounts:
        info.price = amounts[0]
    if len(amounts) >= 2:
        info.discount_price = amounts[1]

    delivery = DELIVERY_FEE_PATTERN.search(text or "")
    if delivery:
        info.delivery_fee = delivery.group(1)
    return info


def _first_amount(text: str, patterns) -> Optional[int]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def extract_rank(text: str) -> RankInfo:
    """Rank number and rank movement found in ``text``."""
    info = RankInfo()
    text = text or ""

    for pattern in RANK_PATTERNS:
        match = pattern.search(text)
        if match:
            rank = int(match.group(1))
            if 0 < rank <= MAX_RANK:
                info.rank = rank
                break

    if UP_PATTERN.search(text):
        info.change = "up"
        info.change_amount = _first_amount(text, UP_AMOUNT_PATTERNS)
    elif DOWN_PATTERN.search(text):
        info.change = "down"
        info.change_amount = _first_amount(text, DOWN_AMOUNT_PATTERNS)
    elif STABLE_PATTERN.search(text):
        info.change = "stable"
    elif SOAR_PATTERN.search(text):
        info.change = "soar"
        info.change_amount = _first_amount(text, SOAR_AMOUNT_PATTERNS)
    elif NEW_PATTERN.search(text):
        info.change = "new"

    return info


def strip_rank_markers(text: str) -> str:
    for pattern in RANK_MARKERS:
        text = pattern.sub("", text)
    return normalize_text(text)


def strip_prices(text: str) -> str:
    return normalize_text(PRICE_PATTERN.sub("", text))
