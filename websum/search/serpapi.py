"""
Purpose:
- Query SerpAPI (Google engine) for organic web results.
- Keep the provider's relevance order; no re-ranking, no dedupe.
- No key configured -> fixed sample results so the app runs offline.

Notes:
- Requires: settings.serpapi_api_key (SERP_API_KEY or SEARCH_API_KEY in env/.env)
- num is capped at 10 and the request carries its own timeout.
"""

from __future__ import annotations
import logging
from typing import Dict, List, Optional
import httpx
from urllib.parse import urlparse
from .schema import SearchHit
from ..core.errors import SearchUnavailable
from ..core.settings import settings

logger = logging.getLogger(__name__)

SERPAPI_ENDPOINT = "https://serpapi.com/search.json"
MAX_RESULTS = 10

SAMPLE_RESULTS: List[SearchHit] = [
    SearchHit(
        title="The Future of AI: 10 Trends That Will Shape 2024 and Beyond",
        url="https://techcrunch.com/ai-trends-2024",
        snippet="Comprehensive analysis of AI trends including multimodal systems, safety governance, and democratization of AI tools.",
        domain="techcrunch.com",
    ),
    SearchHit(
        title="AI in Healthcare: Revolutionary Applications and Ethical Considerations",
        url="https://nature.com/ai-healthcare-ethics",
        snippet="Research on AI's impact in healthcare covering diagnostic imaging, drug discovery, and ethical frameworks.",
        domain="nature.com",
    ),
    SearchHit(
        title="Machine Learning Infrastructure: Scaling AI for Enterprise",
        url="https://aws.amazon.com/ml-infrastructure",
        snippet="Technical guide on enterprise ML infrastructure, MLOps practices, and deployment strategies.",
        domain="aws.amazon.com",
    ),
    SearchHit(
        title="Ethics in AI: Building Responsible Artificial Intelligence Systems",
        url="https://mit.edu/ai-ethics",
        snippet="Academic paper on ethical AI development principles including fairness, transparency, and accountability.",
        domain="mit.edu",
    ),
    SearchHit(
        title="AI-Powered Content Creation: Tools and Techniques for 2024",
        url="https://content-creation-blog.com/ai-tools",
        snippet="Overview of AI content creation tools and their applications in modern workflows.",
        domain="content-creation-blog.com",
    ),
]

def domain_of(url: str) -> str:
    try:
        d = (urlparse(url).hostname or "").lower()
    except ValueError:
        return "unknown"
    if not d:
        return "unknown"
    return d[4:] if d.startswith("www.") else d

def _api_params(query: str, api_key: str, num: int) -> Dict[str, str]:
    return {
        "engine": "google",
        "q": query,
        "api_key": api_key,
        "num": str(num),
    }

class ResultSource:
    """Read-only client for the web search provider."""

    def __init__(self, api_key: Optional[str] = None, client: Optional[httpx.AsyncClient] = None,
                 timeout: Optional[float] = None):
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else settings.search_timeout
        self._client = client
        if not api_key:
            logger.warning("No search API key found. Using sample results.")

    async def search(self, query: str, limit: int = 5) -> List[SearchHit]:
        limit = max(1, min(limit, MAX_RESULTS))
        if not self.api_key:
            return [hit.model_copy() for hit in SAMPLE_RESULTS[:limit]]

        params = _api_params(query, self.api_key, num=limit)
        try:
            if self._client is not None:
                r = await self._client.get(SERPAPI_ENDPOINT, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.get(SERPAPI_ENDPOINT, params=params)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Search API error for %r: %r", query, e)
            raise SearchUnavailable("Failed to search the web. Please try again later.") from e

        if not isinstance(data, dict) or data.get("error"):
            error = data.get("error") if isinstance(data, dict) else "unexpected payload"
            logger.error("Search API error for %r: %s", query, error)
            raise SearchUnavailable("Failed to search the web. Please try again later.")

        results: List[SearchHit] = []
        for it in (data.get("organic_results") or [])[:limit]:
            link = it.get("link") or ""
            results.append(SearchHit(
                title=it.get("title") or "Untitled",
                url=link,
                snippet=it.get("snippet") or "",
                domain=domain_of(link),
            ))
        return results
