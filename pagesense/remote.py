"""
Optional zero-shot text classification served by a remote HTTP API.

The service is expected to expose ``POST /classify`` returning
``{"label": ..., "score": ...}`` and ``POST /classify-scores`` returning a
``{label: score}`` mapping. Every call is fail-open: timeouts, HTTP errors and
malformed answers all come back as ``None``.
"""

import asyncio
import logging
from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel

from .config import EngineSettings

logger = logging.getLogger(__name__)


class ZeroShotResult(BaseModel):
    label: str
    score: float = 0.0


class ZeroShotClassifier:
    """Client for a zero-shot classification service."""

    def __init__(self, api_url: str, timeout_ms: int = 5000, client: Optional[httpx.AsyncClient] = None):
        if not api_url:
            raise ValueError("api_url is required")
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout_ms / 1000
        self._client = client

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> Optional["ZeroShotClassifier"]:
        """Build a classifier, or return None when the service is not configured."""
        if not settings.zero_shot_api_url:
            return None
        return cls(settings.zero_shot_api_url, settings.zero_shot_timeout_ms)

    async def _post(self, path: str, payload: dict) -> Optional[object]:
        url = f"{self.api_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Zero-shot classification call to %s failed: %s", url, e)
            return None

    async def classify(self, text: str, categories: List[str]) -> Optional[ZeroShotResult]:
        """Best label for ``text`` among ``categories``, or None."""
        if not text or not categories:
            return None

        data = await self._post("/classify", {"text": text, "categories": categories})
        if isinstance(data, dict) and data.get("label"):
            try:
                return ZeroShotResult(label=str(data["label"]), score=float(data.get("score") or 0))
            except (TypeError, ValueError):
                return None
        return None

    async def classify_batch(self, texts: List[str], categories: List[str]) -> List[Optional[ZeroShotResult]]:
        tasks = [self.classify(text, categories) for text in texts]
        return await asyncio.gather(*tasks)

    async def classify_with_scores(self, text: str, categories: List[str]) -> Optional[Dict[str, float]]:
        """Score of every category for ``text``, or None."""
        data = await self._post("/classify-scores", {"text": text, "categories": categories})
        if not isinstance(data, dict):
            return None
        try:
            return {str(k): float(v) for k, v in data.items()}
        except (TypeError, ValueError):
            return None
