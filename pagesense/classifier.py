"""
Page classification: turns the analysis into a PageProfile and guesses the
role of the page from its URL and markup.

The role guess is deliberately rough. A wrong guess is fixed per source with
``PageConfig.override`` rather than with more rules here.
"""

import logging
from typing import List, Optional, Tuple

from . import dom
from .models import PageAnalysis, PageProfile, PageRole, SemanticType
from .remote import ZeroShotClassifier

logger = logging.getLogger(__name__)

# (url keywords, markup keyword, list role, detail role), tested in this order
ROLE_KEYWORDS: List[Tuple[Tuple[str, ...], str, PageRole, PageRole]] = [
    (("notice", "공지"), "공지", PageRole.LIST_NOTICE, PageRole.DETAIL_NOTICE),
    (("recruit", "채용"), "채용", PageRole.LIST_RECRUIT, PageRole.DETAIL_RECRUIT),
    (("event", "행사"), "행사", PageRole.LIST_EVENT, PageRole.DETAIL_EVENT),
]

DETAIL_URL_MARKERS = ("view", "detail", "read")

ZERO_SHOT_ROLES = {
    "notice": PageRole.DETAIL_NOTICE,
    "recruit": PageRole.DETAIL_RECRUIT,
    "event": PageRole.DETAIL_EVENT,
}


def infer_page_role(url: str, markup: str) -> PageRole:
    lower_url = (url or "").lower()
    lower_markup = (markup or "").lower()
    tree = dom.parse(markup)

    for url_keywords, markup_keyword, list_role, detail_role in ROLE_KEYWORDS:
        if any(k in lower_url for k in url_keywords) or markup_keyword in lower_markup:
            if dom.count(tree, "table tbody tr") > 0:
                return list_role
            return detail_role

    looks_like_detail = (
        any(marker in lower_url for marker in DETAIL_URL_MARKERS)
        or dom.count(tree, "article") == 1
        or dom.count(tree, ".article-content") > 0
    )
    if looks_like_detail:
        for _, markup_keyword, _, detail_role in ROLE_KEYWORDS:
            if markup_keyword in lower_markup:
                return detail_role
        return PageRole.DETAIL_NOTICE

    return PageRole.STATIC_PAGE


def classify_page(url: str, markup: str, analysis: PageAnalysis) -> PageProfile:
    return PageProfile(
        rendering_type=analysis.rendering_type,
        data_access_type=analysis.data_access_type,
        page_role=infer_page_role(url, markup),
    )


def semantic_type_for(role: PageRole) -> SemanticType:
    value = role.value
    if "NOTICE" in value:
        return SemanticType.NOTICE
    if "RECRUIT" in value:
        return SemanticType.RECRUIT
    if "EVENT" in value:
        return SemanticType.EVENT
    return SemanticType.UNKNOWN


async def refine_page_role(
    profile: PageProfile,
    text: str,
    classifier: Optional[ZeroShotClassifier],
    min_score: float = 0.6,
) -> PageProfile:
    """
    Ask the zero-shot service about pages the keyword rules left as
    STATIC_PAGE. Any other profile, a missing classifier or an unsure answer
    leaves the profile unchanged.
    """
    if classifier is None or profile.page_role != PageRole.STATIC_PAGE:
        return profile

    text = dom.normalize_text(text)[:2000]
    if not text:
        return profile

    result = await classifier.classify(text, list(ZERO_SHOT_ROLES))
    if result is None or result.score < min_score:
        return profile

    role = ZERO_SHOT_ROLES.get(result.label.lower())
    if role is None:
        return profile

    logger.info("Zero-shot classifier refined STATIC_PAGE to %s (score %.2f)", role.value, result.score)
    return profile.model_copy(update={"page_role": role})
