"""
Headless browser session for JavaScript-heavy pages using Playwright.
"""

import asyncio
import logging
from typing import List, Optional

from playwright.async_api import Browser, Page, Response, async_playwright

from .models import DetectedEndpoint

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ["--disable-blink-features=AutomationControlled"]

JSON_RESOURCE_TYPES = ("xhr", "fetch")


class BrowserSession:
    """
    A scoped chromium instance. Use it as an async context manager; the
    browser and the Playwright driver are released on every exit path.
    """

    def __init__(self, headless: bool = True, user_agent: Optional[str] = None):
        self.headless = headless
        self.user_agent = user_agent
        self.browser: Optional[Browser] = None
        self.playwright = None

    async def __aenter__(self):
        """Context manager entry."""
        self.playwright = await async_playwright().start()
        try:
            self.browser = await self.playwright.chromium.launch(
                headless=self.headless,
                args=LAUNCH_ARGS,
            )
        except Exception:
            await self.playwright.stop()
            self.playwright = None
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        try:
            if self.browser:
                await self.browser.close()
        finally:
            self.browser = None
            if self.playwright:
                await self.playwright.stop()
                self.playwright = None

    async def _new_page(self) -> Page:
        if not self.browser:
            raise RuntimeError("Browser not initialized. Use async with context manager.")
        if self.user_agent:
            return await self.browser.new_page(user_agent=self.user_agent)
        return await self.browser.new_page()

    async def get_html(self, url: str, timeout_ms: int = 30000, settle_ms: int = 2000) -> str:
        """
        Fetch the rendered HTML of a page.

        Args:
            url: URL to fetch
            timeout_ms: navigation timeout in milliseconds
            settle_ms: extra wait after the network went idle

        Returns:
            Rendered HTML content
        """
        page = await self._new_page()

        try:
            await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            await asyncio.sleep(settle_ms / 1000)
            return await page.content()
        finally:
            await page.close()

    async def observe_json_responses(
        self,
        url: str,
        timeout_ms: int = 10000,
        settle_ms: int = 2000,
    ) -> List[DetectedEndpoint]:
        """
        Load a page and record every XHR/fetch response that returned JSON.

        Args:
            url: URL to load
            timeout_ms: navigation timeout in milliseconds
            settle_ms: extra wait so late API calls are seen too

        Returns:
            Endpoints in the order their responses arrived
        """
        page = await self._new_page()
        endpoints: List[DetectedEndpoint] = []

        def on_response(response: Response):
            request = response.request
            if request.resource_type not in JSON_RESOURCE_TYPES:
                return
            content_type = response.headers.get("content-type", "")
            if "application/json" in content_type:
                endpoints.append(DetectedEndpoint(
                    url=response.url,
                    method=request.method,
                    content_type=content_type,
                ))

        page.on("response", on_response)

        try:
            await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            await asyncio.sleep(settle_ms / 1000)
        finally:
            await page.close()

        logger.debug("Observed %d JSON responses on %s", len(endpoints), url)
        return endpoints
