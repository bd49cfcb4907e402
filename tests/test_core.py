"""Tests for the analysis pipeline and the retrying collector."""

import asyncio

import httpx
import pytest
import respx
from playwright.async_api import Error as PlaywrightError

from pagesense.cache import PageCache
from pagesense.core import (
    DynamicCollector,
    analyze_and_classify,
    format_item_content,
    is_retryable_error,
    model_to_raw_records,
)
from pagesense.models import (
    BlockType,
    ConfigOverride,
    ExtractedItem,
    FetcherKind,
    LoadedPage,
    PageConfig,
    PageDataModel,
    PageRole,
    ParserKind,
    RawRecord,
    RenderingType,
    RetryPolicy,
    SelectorConfig,
    SemanticType,
)

URL = "https://example.com/board/list.php"

NO_WAIT = RetryPolicy(max_retries=2, backoff_ms=0)


class TestAnalyzeAndClassify:
    @pytest.mark.asyncio
    async def test_notice_board(self, settings, notice_table_html):
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(200, text=notice_table_html))
            understanding = await analyze_and_classify(URL, settings=settings)

        assert understanding.analysis.rendering_type == RenderingType.STATIC
        assert understanding.profile.page_role == PageRole.LIST_NOTICE
        assert [b.block_type for b in understanding.blocks] == [BlockType.TABLE]
        assert len(understanding.model.items) == 5
        assert understanding.strategy.fetcher == FetcherKind.STATIC
        assert understanding.strategy.parser == ParserKind.LIST

    @pytest.mark.asyncio
    async def test_override_role_changes_semantics(self, settings, notice_table_html):
        config = PageConfig(
            source_name="events",
            url=URL,
            override=ConfigOverride(page_role=PageRole.LIST_EVENT, fetcher=FetcherKind.HEADLESS),
        )
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(200, text=notice_table_html))
            understanding = await analyze_and_classify(URL, config, settings=settings)

        assert understanding.profile.page_role == PageRole.LIST_EVENT
        assert understanding.blocks[0].semantic_type == SemanticType.EVENT
        assert understanding.strategy.fetcher == FetcherKind.HEADLESS
        assert understanding.strategy.parser == ParserKind.LIST

    @pytest.mark.asyncio
    async def test_configured_selectors_add_items(self, settings, notice_table_html):
        config = PageConfig(
            source_name="board",
            url=URL,
            selectors=SelectorConfig(item="table tbody tr", title="td a"),
        )
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(200, text=notice_table_html))
            understanding = await analyze_and_classify(URL, config, settings=settings)

        assert [b.block_type for b in understanding.blocks] == [BlockType.TABLE, BlockType.LIST]
        assert len(understanding.model.items) == 10

    @pytest.mark.asyncio
    async def test_failed_load_is_still_analyzed(self, settings):
        with respx.mock:
            respx.get(URL).mock(side_effect=httpx.ConnectError("refused"))
            understanding = await analyze_and_classify(URL, settings=settings)

        assert understanding.loaded_page.status_code == 0
        assert understanding.blocks == []
        assert understanding.model.items == []


class TestRecords:
    def test_format_item_content(self):
        item = ExtractedItem(
            block_type=BlockType.TABLE,
            semantic_type=SemanticType.NOTICE,
            fields={"title": "Title", "author": "Kim", "date": "2024-01-01", "department": "총무팀", "views": "12"},
        )
        assert format_item_content(item) == "작성자: Kim\n작성일: 2024-01-01\n부서: 총무팀\n조회수: 12\nTitle"

    def test_content_preferred_over_title(self):
        item = ExtractedItem(
            block_type=BlockType.LIST,
            semantic_type=SemanticType.UNKNOWN,
            fields={"title": "Title", "content": "Body"},
        )
        assert format_item_content(item) == "Body"

    def test_model_to_raw_records_defaults(self):
        model = PageDataModel(page_url=URL, items=[
            ExtractedItem(block_type=BlockType.LIST, semantic_type=SemanticType.UNKNOWN, fields={"content": "Body"}),
        ])
        records = model_to_raw_records(model, "src")

        assert records[0].title == "Untitled"
        assert records[0].url == URL
        assert records[0].source == "src"
        assert records[0].date


class TestRetryableErrors:
    def _status_error(self, status):
        request = httpx.Request("GET", URL)
        return httpx.HTTPStatusError("error", request=request, response=httpx.Response(status, request=request))

    @pytest.mark.parametrize("status,expected", [(429, True), (500, True), (503, True), (404, False), (403, False)])
    def test_status_codes(self, status, expected):
        assert is_retryable_error(self._status_error(status)) is expected

    def test_other_errors(self):
        assert is_retryable_error(httpx.ConnectError("refused")) is True
        assert is_retryable_error(asyncio.TimeoutError()) is True
        assert is_retryable_error(PlaywrightError("navigation failed")) is True
        assert is_retryable_error(ValueError("bad input")) is False


class TestDynamicCollector:
    @pytest.mark.asyncio
    async def test_collect_notice_board(self, settings, notice_table_html):
        config = PageConfig(source_name="notices", url=URL)
        with respx.mock:
            route = respx.get(URL).mock(return_value=httpx.Response(200, text=notice_table_html))
            records = await DynamicCollector(config, settings=settings).collect()

        assert route.call_count == 2
        assert len(records) == 6
        assert all(r.source == "notices" for r in records)
        assert records[0].title == "공지사항"
        assert records[1].title == "This is a sufficiently long title 12"
        assert records[1].url == "https://example.com/board/view.php?no=12"
        assert records[1].date == "2024-01-15"

    @pytest.mark.asyncio
    async def test_shared_cache_avoids_second_request(self, settings, notice_table_html):
        config = PageConfig(source_name="notices", url=URL)
        with respx.mock:
            route = respx.get(URL).mock(return_value=httpx.Response(200, text=notice_table_html))
            await DynamicCollector(config, settings=settings, cache=PageCache()).collect()

        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_retries_transient_failures(self, settings, monkeypatch):
        collector = DynamicCollector(PageConfig(source_name="s", url=URL), settings=settings, policy=NO_WAIT)
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise httpx.ConnectError("refused")
            return [RawRecord(title="ok", url=URL)]

        monkeypatch.setattr(collector, "_attempt", flaky)
        records = await collector.collect()

        assert len(attempts) == 3
        assert records[0].title == "ok"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, settings, monkeypatch):
        collector = DynamicCollector(PageConfig(source_name="s", url=URL), settings=settings, policy=NO_WAIT)
        attempts = []

        async def always_down():
            attempts.append(1)
            raise httpx.ReadTimeout("slow")

        monkeypatch.setattr(collector, "_attempt", always_down)
        with pytest.raises(httpx.ReadTimeout):
            await collector.collect()

        assert len(attempts) == NO_WAIT.max_retries + 1

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates_at_once(self, settings, monkeypatch):
        collector = DynamicCollector(PageConfig(source_name="s", url=URL), settings=settings, policy=NO_WAIT)
        attempts = []

        async def broken():
            attempts.append(1)
            raise ValueError("Unknown fetcher")

        monkeypatch.setattr(collector, "_attempt", broken)
        with pytest.raises(ValueError):
            await collector.collect()

        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_retry_starts_from_a_clean_cache(self, settings, monkeypatch):
        cache = PageCache()
        cache.store(LoadedPage(url=URL, raw_markup="<p>stale</p>", status_code=200))
        collector = DynamicCollector(PageConfig(source_name="s", url=URL), settings=settings, cache=cache, policy=NO_WAIT)
        seen = []

        async def flaky():
            seen.append(URL in cache)
            if len(seen) == 1:
                raise httpx.ConnectError("refused")
            return []

        monkeypatch.setattr(collector, "_attempt", flaky)
        await collector.collect()

        assert seen == [True, False]
