"""Tests for JSON endpoint discovery with a stand-in browser session."""

import pytest

from pagesense import endpoints
from pagesense.endpoints import detect_endpoints
from pagesense.models import DetectedEndpoint

URL = "https://example.com/app"


class RecordingSession:
    instances = []
    found = [DetectedEndpoint(url="https://example.com/api/items")]
    fail_on = None

    def __init__(self, headless=True, user_agent=None):
        self.headless = headless
        self.user_agent = user_agent
        self.exited = False
        self.observed = None
        RecordingSession.instances.append(self)

    async def __aenter__(self):
        if self.fail_on == "enter":
            raise RuntimeError("browser failed to launch")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    async def observe_json_responses(self, url, timeout_ms=10000, settle_ms=2000):
        self.observed = (url, timeout_ms, settle_ms)
        if self.fail_on == "navigate":
            raise TimeoutError("navigation timed out")
        return list(self.found)


@pytest.fixture
def session(monkeypatch):
    RecordingSession.instances = []
    RecordingSession.fail_on = None
    monkeypatch.setattr(endpoints, "BrowserSession", RecordingSession)
    return RecordingSession


@pytest.mark.asyncio
async def test_static_pages_skip_the_browser(session, settings):
    assert await detect_endpoints(URL, False, settings) == []
    assert session.instances == []


@pytest.mark.asyncio
async def test_collects_endpoints(session, settings):
    found = await detect_endpoints(URL, True, settings)

    assert found == RecordingSession.found
    instance = session.instances[0]
    assert instance.observed == (URL, settings.detect_timeout_ms, settings.settle_ms)
    assert instance.headless == settings.headless
    assert instance.exited is True


@pytest.mark.asyncio
async def test_navigation_failure_is_swallowed(session, settings):
    session.fail_on = "navigate"

    assert await detect_endpoints(URL, True, settings) == []
    assert session.instances[0].exited is True


@pytest.mark.asyncio
async def test_launch_failure_is_swallowed(session, settings):
    session.fail_on = "enter"
    assert await detect_endpoints(URL, True, settings) == []
