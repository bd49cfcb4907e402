"""
Discovery of the JSON APIs a client-rendered page talks to.
"""

import logging
from typing import List, Optional

from .browser import BrowserSession
from .config import EngineSettings
from .models import DetectedEndpoint

logger = logging.getLogger(__name__)


async def detect_endpoints(
    url: str,
    requires_js: bool,
    settings: Optional[EngineSettings] = None,
) -> List[DetectedEndpoint]:
    """
    Render the page in a headless browser and collect its JSON endpoints.

    Skipped entirely for pages that do not need JavaScript. This is an
    optional step: any failure is logged and an empty list is returned.
    """
    if not requires_js:
        return []

    settings = settings or EngineSettings.from_env()

    try:
        async with BrowserSession(headless=settings.headless, user_agent=settings.user_agent) as session:
            endpoints = await session.observe_json_responses(
                url,
                timeout_ms=settings.detect_timeout_ms,
                settle_ms=settings.settle_ms,
            )
    except Exception as e:
        logger.warning("Endpoint detection failed for %s, continuing without it: %s", url, e)
        return []

    logger.info("Detected %d JSON endpoints on %s", len(endpoints), url)
    return endpoints
