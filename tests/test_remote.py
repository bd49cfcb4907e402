"""Tests for the optional zero-shot classification client."""

import json

import httpx
import pytest
import respx

from pagesense.config import EngineSettings
from pagesense.remote import ZeroShotClassifier

API = "http://zero-shot.local"


class TestFromSettings:
    def test_disabled_without_url(self):
        assert ZeroShotClassifier.from_settings(EngineSettings()) is None

    @pytest.mark.parametrize("value", ["", "disabled", "DISABLED", "  "])
    def test_disabled_values(self, value):
        settings = EngineSettings(zero_shot_api_url=value)
        assert settings.zero_shot_api_url is None
        assert ZeroShotClassifier.from_settings(settings) is None

    def test_enabled(self):
        classifier = ZeroShotClassifier.from_settings(EngineSettings(zero_shot_api_url=API + "/"))
        assert classifier.api_url == API


class TestClassify:
    @pytest.mark.asyncio
    async def test_classify(self):
        classifier = ZeroShotClassifier(API)
        with respx.mock:
            route = respx.post(f"{API}/classify").mock(
                return_value=httpx.Response(200, json={"label": "notice", "score": 0.91})
            )
            result = await classifier.classify("공지사항 안내", ["notice", "event"])

        assert result.label == "notice"
        assert result.score == pytest.approx(0.91)
        assert json.loads(route.calls.last.request.content) == {
            "text": "공지사항 안내",
            "categories": ["notice", "event"],
        }

    @pytest.mark.asyncio
    async def test_server_error_is_swallowed(self):
        classifier = ZeroShotClassifier(API)
        with respx.mock:
            respx.post(f"{API}/classify").mock(return_value=httpx.Response(500))
            assert await classifier.classify("text", ["notice"]) is None

    @pytest.mark.asyncio
    async def test_timeout_is_swallowed(self):
        classifier = ZeroShotClassifier(API, timeout_ms=10)
        with respx.mock:
            respx.post(f"{API}/classify").mock(side_effect=httpx.ReadTimeout("slow"))
            assert await classifier.classify("text", ["notice"]) is None

    @pytest.mark.asyncio
    async def test_malformed_answer(self):
        classifier = ZeroShotClassifier(API)
        with respx.mock:
            respx.post(f"{API}/classify").mock(return_value=httpx.Response(200, text="not json"))
            assert await classifier.classify("text", ["notice"]) is None

    @pytest.mark.asyncio
    async def test_empty_input_skips_call(self):
        classifier = ZeroShotClassifier(API)
        assert await classifier.classify("", ["notice"]) is None
        assert await classifier.classify("text", []) is None

    @pytest.mark.asyncio
    async def test_batch(self):
        classifier = ZeroShotClassifier(API)
        with respx.mock:
            respx.post(f"{API}/classify").mock(return_value=httpx.Response(200, json={"label": "event", "score": 0.7}))
            results = await classifier.classify_batch(["a", "b"], ["event"])

        assert [r.label for r in results] == ["event", "event"]

    @pytest.mark.asyncio
    async def test_scores(self):
        classifier = ZeroShotClassifier(API)
        with respx.mock:
            respx.post(f"{API}/classify-scores").mock(
                return_value=httpx.Response(200, json={"notice": 0.8, "event": 0.2})
            )
            scores = await classifier.classify_with_scores("text", ["notice", "event"])

        assert scores == {"notice": 0.8, "event": 0.2}


def test_requires_url():
    with pytest.raises(ValueError):
        ZeroShotClassifier("")
