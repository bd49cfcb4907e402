"""Tests for the strategy decision table and per-source overrides."""

import pytest

from pagesense.models import (
    ConfigOverride,
    DataAccessType,
    DetectedEndpoint,
    FetcherKind,
    HtmlSignals,
    PageAnalysis,
    PageConfig,
    PageProfile,
    PageRole,
    ParserKind,
    RenderingType,
)
from pagesense.strategy import RETRY_POLICIES, TIMEOUTS_MS, select_strategy


def _analysis(rendering=RenderingType.STATIC, access=DataAccessType.HTML, score=0.4,
              meaningful=False, endpoints=None):
    return PageAnalysis(
        has_meaningful_html=meaningful,
        html_signals=HtmlSignals(),
        requires_js_execution=score > 0.5,
        js_dependency_score=score,
        detected_endpoints=endpoints or [],
        data_access_type=access,
        rendering_type=rendering,
    )


def _profile(analysis, role=PageRole.STATIC_PAGE):
    return PageProfile(
        rendering_type=analysis.rendering_type,
        data_access_type=analysis.data_access_type,
        page_role=role,
    )


class TestSelectStrategy:
    def test_static_html_list_page(self):
        analysis = _analysis()
        strategy = select_strategy(analysis, _profile(analysis, PageRole.LIST_NOTICE))

        assert strategy.fetcher == FetcherKind.STATIC
        assert strategy.parser == ParserKind.LIST
        assert strategy.use_readability is False
        assert strategy.retry_policy == RETRY_POLICIES[FetcherKind.STATIC]
        assert strategy.timeout_ms == TIMEOUTS_MS[FetcherKind.STATIC]

    def test_csr_uses_headless(self):
        analysis = _analysis(rendering=RenderingType.CSR, score=0.8)
        strategy = select_strategy(analysis, _profile(analysis))

        assert strategy.fetcher == FetcherKind.HEADLESS
        assert strategy.parser == ParserKind.LIST
        assert strategy.retry_policy.max_retries == 2
        assert strategy.retry_policy.backoff_ms == 2000
        assert strategy.timeout_ms == 30000

    def test_xhr_with_endpoints_uses_api(self):
        endpoint = DetectedEndpoint(url="https://example.com/api")
        analysis = _analysis(access=DataAccessType.XHR, endpoints=[endpoint])
        strategy = select_strategy(analysis, _profile(analysis))

        assert strategy.fetcher == FetcherKind.HEADLESS
        assert strategy.parser == ParserKind.API

    def test_mixed_access(self):
        endpoint = DetectedEndpoint(url="https://example.com/api")
        analysis = _analysis(access=DataAccessType.MIXED, endpoints=[endpoint], meaningful=True)
        strategy = select_strategy(analysis, _profile(analysis))

        assert strategy.fetcher == FetcherKind.HEADLESS
        assert strategy.parser == ParserKind.MIXED

    def test_detail_role_forces_detail_parser_and_readability(self):
        analysis = _analysis()
        strategy = select_strategy(analysis, _profile(analysis, PageRole.DETAIL_NOTICE))

        assert strategy.parser == ParserKind.DETAIL
        assert strategy.use_readability is True

    def test_meaningful_low_score_page_uses_readability(self):
        analysis = _analysis(meaningful=True, score=0.0)
        strategy = select_strategy(analysis, _profile(analysis))
        assert strategy.use_readability is True

    def test_meaningful_but_scripted_page_skips_readability(self):
        analysis = _analysis(meaningful=True, score=0.4)
        strategy = select_strategy(analysis, _profile(analysis))
        assert strategy.use_readability is False


class TestOverride:
    def _config(self, **override):
        return PageConfig(source_name="test", url="https://example.com", override=ConfigOverride(**override))

    def test_override_fetcher_and_parser(self):
        analysis = _analysis()
        config = self._config(fetcher=FetcherKind.HEADLESS, parser=ParserKind.API)
        strategy = select_strategy(analysis, _profile(analysis), config)

        assert strategy.fetcher == FetcherKind.HEADLESS
        assert strategy.parser == ParserKind.API
        assert strategy.use_readability is False
        assert strategy.timeout_ms == 30000

    def test_override_role_drives_parser(self):
        analysis = _analysis(rendering=RenderingType.CSR, score=0.8)
        strategy = select_strategy(analysis, _profile(analysis), self._config(page_role=PageRole.LIST_EVENT))

        assert strategy.fetcher == FetcherKind.HEADLESS
        assert strategy.parser == ParserKind.LIST
        assert strategy.use_readability is False

    def test_empty_override_still_short_circuits(self):
        analysis = _analysis()
        strategy = select_strategy(analysis, _profile(analysis, PageRole.LIST_NOTICE), self._config())

        assert strategy.fetcher == FetcherKind.STATIC
        assert strategy.parser == ParserKind.LIST

    def test_unknown_role_override_uses_detail_parser(self):
        analysis = _analysis()
        config = self._config(page_role="UNKNOWN")
        strategy = select_strategy(analysis, _profile(analysis, PageRole.LIST_NOTICE), config)

        assert config.override.page_role == PageRole.UNKNOWN
        assert strategy.fetcher == FetcherKind.STATIC
        assert strategy.parser == ParserKind.DETAIL
        assert strategy.use_readability is True

    def test_explicit_readability(self):
        analysis = _analysis()
        config = self._config(parser=ParserKind.LIST, use_readability=True)
        assert select_strategy(analysis, _profile(analysis), config).use_readability is True


@pytest.mark.parametrize("attempt,expected", [(0, 2.0), (1, 4.0), (2, 8.0), (3, 10.0)])
def test_retry_delay_is_exponential_and_capped(attempt, expected):
    policy = RETRY_POLICIES[FetcherKind.HEADLESS]
    assert policy.delay_for(attempt) == expected
