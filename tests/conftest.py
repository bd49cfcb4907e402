"""Shared fixtures: small HTML documents and engine settings that never read the environment."""

import pytest

from pagesense.config import EngineSettings


NOTICE_ROW = (
    '<tr><td>2024-01-{day:02d}</td>'
    '<td><a href="view.php?no={no}">This is a sufficiently long title {no}</a></td></tr>'
)

NOTICE_TABLE_HTML = (
    "<html><head><title>공지사항</title></head><body>"
    "<table><thead><tr><th>작성일</th><th>제목</th></tr></thead><tbody>"
    + "".join(NOTICE_ROW.format(day=15 - i, no=12 - i) for i in range(5))
    + "</tbody></table></body></html>"
)

ARTICLE_LIST_HTML = """\
<html><head><title>Blog</title></head><body>
<div class="list">
  <article>
    <h2>First post about the release</h2>
    <span class="date">2024-02-01</span>
    <div class="content">The first post body.</div>
    <a href="/post/view/1">Read more</a>
  </article>
  <article>
    <h2>Second post about the roadmap</h2>
    <span class="date">2024-02-08</span>
    <div class="content">The second post body.</div>
    <a href="/post/view/2">Read more</a>
  </article>
</div>
</body></html>
"""

LIST_ITEMS_HTML = """\
<html><body><ul>
  <li><span class="title">Library closed for maintenance</span> <span class="date">2024.03.01</span> <a href="detail?id=1">go</a></li>
  <li><span class="title">New opening hours from April</span> <span class="date">2024.03.05</span> <a href="detail?id=2">go</a></li>
  <li><span class="title">Reading club starts next week</span> <span class="date">2024.03.09</span> <a href="detail?id=3">go</a></li>
  <li><span class="title">Summer program registration open</span> <span class="date">2024.03.12</span> <a href="detail?id=4">go</a></li>
</ul></body></html>
"""

RANKING_HTML = (
    '<div><ol class="ranking">'
    "<li>1위 상품A 상승 39,000원</li>"
    "<li>2위 상품B 하락</li>"
    "</ol></div>"
)

SHOP_HTML = """\
<html><body>
<header>
  <div class="logo">ShopMall</div>
  <nav><a href="/">홈</a><a href="/best">베스트</a></nav>
</header>
<main>
  <h2>오늘의 랭킹</h2>
  <div class="best">
    <ol class="ranking">
      <li>2위 상품B 하락</li>
      <li>1위 상품A 상승 39,000원</li>
    </ol>
  </div>
</main>
<footer>
  <a href="/terms">이용약관</a>
  <p class="copyright">© 2024 ShopMall</p>
  <p>주소: 서울시 강남구 테헤란로 1</p>
</footer>
</body></html>
"""

ARTICLE_TEXT = (
    "Renewable energy adoption grew faster than expected last year. "
    "Solar installations doubled in several regions while battery storage "
    "costs kept falling, which made grid operators rethink their plans. "
)

ARTICLE_HTML = f"""\
<html><head><title>Renewable energy report</title></head><body>
<nav><a href="/">Home</a><a href="/news">News</a></nav>
<article>
  <h1>Renewable energy report</h1>
  <p>{ARTICLE_TEXT}</p>
  <p>{ARTICLE_TEXT}</p>
  <p>{ARTICLE_TEXT}</p>
  <p>{ARTICLE_TEXT}</p>
</article>
<footer><p>Copyright 2024</p></footer>
</body></html>
"""


@pytest.fixture
def settings():
    return EngineSettings(safety_margin_ms=1000, settle_ms=0, zero_shot_api_url=None)


@pytest.fixture
def notice_table_html():
    return NOTICE_TABLE_HTML


@pytest.fixture
def article_list_html():
    return ARTICLE_LIST_HTML


@pytest.fixture
def list_items_html():
    return LIST_ITEMS_HTML


@pytest.fixture
def ranking_html():
    return RANKING_HTML


@pytest.fixture
def shop_html():
    return SHOP_HTML


@pytest.fixture
def article_html():
    return ARTICLE_HTML
