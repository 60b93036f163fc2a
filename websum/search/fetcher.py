"""
Purpose:
- Fetch a result page and turn it into plain article text for the summarizer.
- Strip chrome (scripts, navigation, ads), prefer main-content containers,
  fall back to the whole body, then collapse whitespace and cap the length.
- Derive reading time and, when the page exposes one, a publication date.
"""

from __future__ import annotations
import logging
import math
import re
from typing import List, Optional
import httpx
from selectolax.parser import HTMLParser
from .schema import ScrapedContent
from ..core.errors import InsufficientContent, ScrapeFailed, ScrapeTimeout
from ..core.settings import settings

logger = logging.getLogger(__name__)

MIN_CONTENT_CHARS = 100
WORDS_PER_MINUTE = 200

STRIP_SELECTORS: List[str] = ["script", "style", "nav", "header", "footer", "aside", ".advertisement", ".ads"]

# Most specific first; the first selector that matches anything wins
CONTENT_SELECTORS: List[str] = [
    "article",
    '[role="main"]',
    ".content",
    ".post-content",
    ".entry-content",
    ".article-content",
    "main",
    ".main-content",
]

DATE_SELECTORS: List[str] = [
    "time[datetime]",
    ".published",
    ".date",
    ".post-date",
    ".entry-date",
]

_WS = re.compile(r"\s+")

def _collapse(text: str) -> str:
    return _WS.sub(" ", text or "").strip()

def _main_text(parser: HTMLParser) -> str:
    for sel in CONTENT_SELECTORS:
        nodes = parser.css(sel)
        if nodes:
            return _collapse(" ".join(n.text(separator=" ") for n in nodes))
    return ""

def _published_date(parser: HTMLParser) -> Optional[str]:
    for sel in DATE_SELECTORS:
        node = parser.css_first(sel)
        if node is None:
            continue
        value = (node.attributes.get("datetime") or "").strip() or node.text(strip=True)
        return value or None
    return None

def reading_time(content: str) -> str:
    minutes = math.ceil(len(content.split()) / WORDS_PER_MINUTE)
    return f"{minutes} min read"

def extract_content(html: str, max_chars: Optional[int] = None) -> ScrapedContent:
    """
    Parse HTML into ScrapedContent.
    Raises InsufficientContent when fewer than 100 characters survive cleaning.
    """
    max_chars = max_chars or settings.scrape_max_chars
    parser = HTMLParser(html)

    # one selector per query, innermost first, so no node is freed twice
    for sel in STRIP_SELECTORS:
        for node in reversed(parser.css(sel)):
            node.decompose()

    content = _main_text(parser)
    if len(content) < MIN_CONTENT_CHARS:
        body = parser.body
        content = _collapse(body.text(separator=" ")) if body is not None else ""

    if len(content) < MIN_CONTENT_CHARS:
        raise InsufficientContent("Insufficient content extracted")

    return ScrapedContent(
        content=content[:max_chars],
        reading_time=reading_time(content),
        published_date=_published_date(parser),
    )

class ContentExtractor:
    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None,
                 user_agent: Optional[str] = None, max_chars: Optional[int] = None):
        self._client = client
        self.timeout = timeout if timeout is not None else settings.scrape_timeout
        self.user_agent = user_agent or settings.scrape_user_agent
        self.max_chars = max_chars or settings.scrape_max_chars

    async def _get(self, url: str) -> httpx.Response:
        headers = {"User-Agent": self.user_agent}
        if self._client is not None:
            return await self._client.get(url, headers=headers, timeout=self.timeout, follow_redirects=True)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await client.get(url, headers=headers)

    async def scrape(self, url: str) -> ScrapedContent:
        try:
            resp = await self._get(url)
        except httpx.TimeoutException as e:
            logger.warning("Scraping timed out for %s", url)
            raise ScrapeTimeout(f"Failed to scrape content: timed out after {self.timeout:g}s") from e
        except httpx.HTTPError as e:
            logger.warning("Scraping error for %s: %r", url, e)
            raise ScrapeFailed(f"Failed to scrape content: {e}") from e

        if not resp.is_success:
            logger.warning("Scraping error for %s: HTTP %d", url, resp.status_code)
            raise ScrapeFailed(f"Failed to scrape content: HTTP {resp.status_code}: {resp.reason_phrase}")

        try:
            return extract_content(resp.text, max_chars=self.max_chars)
        except InsufficientContent:
            logger.warning("Scraping error for %s: insufficient content", url)
            raise
