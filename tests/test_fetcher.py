"""Tests for search.fetcher: HTML cleaning, fallbacks and fetch error mapping."""

from __future__ import annotations

import httpx
import pytest

from websum.core.errors import InsufficientContent, ScrapeFailed, ScrapeTimeout
from websum.search.fetcher import ContentExtractor, extract_content, reading_time

LONG_PARAGRAPH = " ".join(["Restoration crews replanted the riverbank with native willows."] * 6)


def test_extract_prefers_article_and_strips_chrome() -> None:
    html = f"""
    <html><head><title>t</title><script>var tracking = 1;</script></head>
    <body>
      <nav>Home | About | Contact</nav>
      <header>Site header</header>
      <article>
        <p>{LONG_PARAGRAPH}</p>
        <div class="ads">Buy now, limited offer</div>
      </article>
      <aside>Related links</aside>
      <footer>Copyright</footer>
    </body></html>
    """
    scraped = extract_content(html)

    assert scraped.content.startswith("Restoration crews")
    assert "Buy now" not in scraped.content
    assert "Home | About" not in scraped.content
    assert "tracking" not in scraped.content
    assert "  " not in scraped.content


def test_extract_falls_back_to_body_when_main_content_is_short() -> None:
    html = f"""
    <html><body>
      <article>Tiny teaser.</article>
      <div><p>{LONG_PARAGRAPH}</p></div>
    </body></html>
    """
    scraped = extract_content(html)

    assert "Tiny teaser." in scraped.content
    assert "native willows" in scraped.content


def test_extract_raises_on_insufficient_content() -> None:
    with pytest.raises(InsufficientContent):
        extract_content("<html><body><p>Too short to summarize.</p></body></html>")


def test_insufficient_content_is_a_scrape_failure() -> None:
    assert issubclass(InsufficientContent, ScrapeFailed)
    assert issubclass(ScrapeTimeout, ScrapeFailed)


def test_extract_truncates_to_max_chars() -> None:
    html = f"<html><body><main>{LONG_PARAGRAPH * 5}</main></body></html>"
    scraped = extract_content(html, max_chars=150)

    assert len(scraped.content) == 150


def test_published_date_prefers_time_datetime_attribute() -> None:
    html = f"""
    <html><body>
      <span class="date">March 3, 2024</span>
      <time datetime="2024-03-01T10:00:00Z">1 March</time>
      <article>{LONG_PARAGRAPH}</article>
    </body></html>
    """
    assert extract_content(html).published_date == "2024-03-01T10:00:00Z"


def test_published_date_uses_text_of_date_class() -> None:
    html = f'<html><body><p class="post-date">May 5, 2023</p><article>{LONG_PARAGRAPH}</article></body></html>'
    assert extract_content(html).published_date == "May 5, 2023"


def test_published_date_absent() -> None:
    html = f"<html><body><article>{LONG_PARAGRAPH}</article></body></html>"
    assert extract_content(html).published_date is None


def test_reading_time_rounds_up() -> None:
    assert reading_time("word " * 200) == "1 min read"
    assert reading_time("word " * 201) == "2 min read"


@pytest.mark.anyio
async def test_scrape_success_sends_browser_user_agent() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers.get("user-agent")
        return httpx.Response(200, text=f"<html><body><article>{LONG_PARAGRAPH}</article></body></html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        extractor = ContentExtractor(client=client, user_agent="Mozilla/5.0 test")
        scraped = await extractor.scrape("https://example.com/post")

    assert seen["ua"] == "Mozilla/5.0 test"
    assert scraped.reading_time == "1 min read"


@pytest.mark.anyio
async def test_scrape_non_2xx_raises_scrape_failed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ScrapeFailed) as exc_info:
            await ContentExtractor(client=client).scrape("https://example.com/missing")

    assert "HTTP 404" in str(exc_info.value)
    assert not isinstance(exc_info.value, ScrapeTimeout)


@pytest.mark.anyio
async def test_scrape_timeout_raises_scrape_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ScrapeTimeout):
            await ContentExtractor(client=client, timeout=10.0).scrape("https://slow.example.com")


@pytest.mark.anyio
async def test_scrape_connection_error_raises_scrape_failed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ScrapeFailed):
            await ContentExtractor(client=client).scrape("https://down.example.com")
