"""Tests for the initial page load and the page cache."""

import httpx
import pytest
import respx

from pagesense.cache import PageCache
from pagesense.loader import load_page
from pagesense.models import LoadedPage

URL = "https://example.com/board"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestLoadPage:
    @pytest.mark.asyncio
    async def test_success(self, settings):
        with respx.mock:
            route = respx.get(URL).mock(return_value=httpx.Response(
                200,
                text="<html><body>hello</body></html>",
                headers={"Content-Type": "text/html; charset=utf-8", "X-Custom": "1"},
            ))
            page = await load_page(URL, settings=settings)

        assert page.ok
        assert page.status_code == 200
        assert page.raw_markup == "<html><body>hello</body></html>"
        assert page.response_headers["content-type"] == "text/html; charset=utf-8"
        assert page.response_headers["x-custom"] == "1"
        assert page.load_time_ms >= 0
        assert route.calls.last.request.headers["User-Agent"] == settings.user_agent

    @pytest.mark.asyncio
    async def test_http_error_gives_empty_page(self, settings):
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(404, text="Not Found"))
            page = await load_page(URL, settings=settings)

        assert page.raw_markup == ""
        assert page.status_code == 404
        assert not page.ok

    @pytest.mark.asyncio
    async def test_network_error_gives_status_zero(self, settings):
        with respx.mock:
            respx.get(URL).mock(side_effect=httpx.ConnectTimeout("timed out"))
            page = await load_page(URL, settings=settings)

        assert page.status_code == 0
        assert page.raw_markup == ""

    @pytest.mark.asyncio
    async def test_extra_headers(self, settings):
        with respx.mock:
            route = respx.get(URL).mock(return_value=httpx.Response(200, text="<p>x</p>"))
            await load_page(URL, settings=settings, headers={"Referer": "https://example.com/"})

        assert route.calls.last.request.headers["Referer"] == "https://example.com/"

    @pytest.mark.asyncio
    async def test_empty_url_is_rejected(self, settings):
        with pytest.raises(ValueError):
            await load_page("  ", settings=settings)

    @pytest.mark.asyncio
    async def test_cache_is_filled_and_used(self, settings):
        cache = PageCache()
        with respx.mock:
            route = respx.get(URL).mock(return_value=httpx.Response(200, text="<p>cached</p>"))
            first = await load_page(URL, settings=settings, cache=cache)
            second = await load_page(URL, settings=settings, cache=cache)

        assert route.call_count == 1
        assert second == first
        assert cache.get_stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_failed_load_is_not_cached(self, settings):
        cache = PageCache()
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(500))
            await load_page(URL, settings=settings, cache=cache)

        assert URL not in cache


class TestPageCache:
    def _page(self, url=URL):
        return LoadedPage(url=url, raw_markup="<p>x</p>", status_code=200)

    def test_lookup_counts_hits_and_misses(self):
        cache = PageCache()
        assert cache.lookup(URL) is None
        cache.store(self._page())
        assert cache.lookup(URL) is not None

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["entries"] == 1

    def test_entries_expire(self):
        clock = FakeClock()
        cache = PageCache(ttl_seconds=10, clock=clock)
        cache.store(self._page())

        clock.now += 9
        assert URL in cache
        clock.now += 1
        assert cache.lookup(URL) is None
        assert len(cache) == 0

    def test_least_recently_used_is_evicted(self):
        cache = PageCache(max_entries=2)
        cache.store(self._page("https://a.example"))
        cache.store(self._page("https://b.example"))
        cache.lookup("https://a.example")
        cache.store(self._page("https://c.example"))

        assert "https://a.example" in cache
        assert "https://b.example" not in cache
        assert "https://c.example" in cache

    def test_invalidate_and_cleanup(self):
        clock = FakeClock()
        cache = PageCache(ttl_seconds=5, clock=clock)
        cache.store(self._page("https://a.example"))
        cache.store(self._page("https://b.example"))

        assert cache.invalidate("https://a.example") is True
        assert cache.invalidate("https://a.example") is False

        clock.now += 5
        assert cache.cleanup_expired() == 1
        assert len(cache) == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            PageCache(max_entries=0)
