"""
Purpose:
- The "service" orchestrates query -> search -> scrape -> summarize -> persist.
- Submission only creates the search row and enqueues a background job; the
  client polls get_search_detail() until the status leaves "searching".

Pipeline per search (strictly sequential, one candidate at a time):
1) result source -> up to N candidates (none -> status "error")
2) scrape every candidate; on failure fall back to a long-enough snippet ("partial")
3) summarize only candidates with real content; partial scrapes lose 30 points
4) persist one row per candidate, then mark the search "completed"

Read side:
- only rows with confidence > 80 are shown; the stored count travels alongside.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, TypeVar
from fastapi.concurrency import run_in_threadpool

from .fetcher import ContentExtractor
from .jobs import SearchJobs
from .schema import (
    ResultOut,
    ScrapingStatus,
    SearchDetail,
    SearchedUrl,
    SearchHit,
    SearchOut,
    SearchStatus,
)
from .serpapi import ResultSource
from ..core.errors import ScrapeFailed, SearchUnavailable, SummarizationFailed
from ..services.heuristics import first_sentences
from ..services.schema import ResultMetadata, SummaryResult, decode_keywords
from ..services.summarizer import Summarizer
from ..store.models import SearchRequest, SearchResultItem
from ..store.repository import SearchRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Behavioural constants: what the client sees depends on these exact values
CONFIDENCE_THRESHOLD = 80        # strictly greater-than
PARTIAL_SCRAPE_PENALTY = 30
MIN_USABLE_CHARS = 50            # snippet substitution and AI gating
SNIPPET_CONFIDENCE = 20
BASIC_SUMMARY_CONFIDENCE = {ScrapingStatus.SUCCESS: 50, ScrapingStatus.PARTIAL: 30}

@dataclass
class ScrapedCandidate:
    hit: SearchHit
    status: ScrapingStatus
    content: Optional[str] = None
    reading_time: Optional[str] = None
    published_date: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def has_usable_content(self) -> bool:
        return bool(self.content) and len(self.content) > MIN_USABLE_CHARS

def basic_summary(content: str) -> str:
    """Local two-sentence summary used when the summarizer raises."""
    return first_sentences(content) or content[:200]

class SearchPipeline:
    def __init__(self, source: ResultSource, extractor: ContentExtractor,
                 summarizer: Summarizer, repo: SearchRepository, max_results: int = 5):
        self.source = source
        self.extractor = extractor
        self.summarizer = summarizer
        self.repo = repo
        self.max_results = max_results

    async def run(self, search_id: int, query: str, started_at: float) -> None:
        """Process one search end to end. Never raises; failures land in the row status."""
        try:
            hits = await self.source.search(query, self.max_results)
            if not hits:
                logger.info("Search %d: no results for %r", search_id, query)
                await self._db(self.repo.update_search_status, search_id, SearchStatus.ERROR)
                return
            await self._db(self.repo.set_searched_urls, search_id, hits)

            scraped: List[ScrapedCandidate] = []
            for hit in hits:
                scraped.append(await self.scrape(hit))

            usable = sum(1 for s in scraped if s.has_usable_content)
            logger.info(
                "Search %d: summarizing %d/%d results with AI (saving %d API calls)",
                search_id, usable, len(scraped), len(scraped) - usable,
            )

            for candidate in scraped:
                summary = await self.summarize(candidate)
                await self._store(search_id, candidate, summary)

            elapsed_ms = int((time.perf_counter() - started_at) * 1000)
            await self._db(
                self.repo.update_search_status, search_id, SearchStatus.COMPLETED,
                total_results=len(hits), search_time=elapsed_ms,
            )
            logger.info("Search %d completed: %d results in %dms", search_id, len(hits), elapsed_ms)
        except SearchUnavailable as e:
            logger.error("Search %d: result source unavailable: %s", search_id, e)
            await self._db(self.repo.update_search_status, search_id, SearchStatus.ERROR)
        except Exception:
            logger.exception("Search processing error for search %d", search_id)
            await self._db(self.repo.update_search_status, search_id, SearchStatus.ERROR)

    async def scrape(self, hit: SearchHit) -> ScrapedCandidate:
        try:
            page = await self.extractor.scrape(hit.url)
        except ScrapeFailed as e:
            logger.warning("Failed to scrape %s: %s", hit.url, e)
            if hit.snippet and len(hit.snippet) > MIN_USABLE_CHARS:
                return ScrapedCandidate(hit=hit, status=ScrapingStatus.PARTIAL,
                                        content=hit.snippet, error_message=str(e))
            return ScrapedCandidate(hit=hit, status=ScrapingStatus.FAILED, error_message=str(e))

        return ScrapedCandidate(
            hit=hit,
            status=ScrapingStatus.SUCCESS,
            content=page.content,
            reading_time=page.reading_time,
            published_date=page.published_date,
        )

    async def summarize(self, candidate: ScrapedCandidate) -> Optional[SummaryResult]:
        hit = candidate.hit
        if candidate.has_usable_content:
            try:
                result = await self.summarizer.summarize(candidate.content, hit.title, hit.url)
            except Exception as e:
                if isinstance(e, SummarizationFailed):
                    logger.error("AI summarization failed for %s: %s", hit.url, e)
                else:
                    logger.exception("Unexpected summarizer error for %s", hit.url)
                return SummaryResult(
                    summary=basic_summary(candidate.content),
                    confidence=BASIC_SUMMARY_CONFIDENCE[candidate.status],
                    sources_count=0,
                )
            if candidate.status is ScrapingStatus.PARTIAL:
                result = result.model_copy(
                    update={"confidence": max(0, result.confidence - PARTIAL_SCRAPE_PENALTY)}
                )
            return result

        if candidate.status is ScrapingStatus.FAILED and hit.snippet:
            return SummaryResult(summary=hit.snippet, confidence=SNIPPET_CONFIDENCE, sources_count=0)

        return None

    async def _db(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        # sync SQLAlchemy sessions; keep commits off the event loop
        return await run_in_threadpool(fn, *args, **kwargs)

    async def _store(self, search_id: int, candidate: ScrapedCandidate, summary: Optional[SummaryResult]) -> None:
        hit = candidate.hit
        await self._db(
            self.repo.create_search_result,
            search_id,
            title=hit.title,
            url=hit.url,
            domain=hit.domain,
            published_date=candidate.published_date,
            reading_time=candidate.reading_time,
            scraping_status=candidate.status.value,
            summary=summary.summary if summary else None,
            confidence=summary.confidence if summary else None,
            sources_count=summary.sources_count if summary else 0,
            keywords=summary.keywords if summary else None,
            metadata=summary.metadata if summary else None,
            error_message=candidate.error_message,
        )

def is_visible(item: SearchResultItem) -> bool:
    return item.confidence is not None and item.confidence > CONFIDENCE_THRESHOLD

def to_result_out(item: SearchResultItem) -> ResultOut:
    return ResultOut(
        id=item.id,
        search_id=item.search_id,
        title=item.title,
        url=item.url,
        domain=item.domain,
        published_date=item.published_date,
        reading_time=item.reading_time,
        scraping_status=item.scraping_status,
        summary=item.summary,
        confidence=item.confidence,
        sources_count=item.sources_count or 0,
        keywords=decode_keywords(item.keywords),
        metadata=ResultMetadata.decode(item.result_metadata),
        error_message=item.error_message,
    )

def build_search_detail(search: SearchRequest, items: List[SearchResultItem]) -> SearchDetail:
    visible = [to_result_out(i) for i in items if is_visible(i)]
    out = SearchOut(
        id=search.id,
        query=search.query,
        status=search.status,
        total_results=len(visible),
        search_time=search.search_time,
        saved=bool(search.saved),
        created_at=search.created_at,
        original_results_count=len(items),
    )
    return SearchDetail(
        search=out,
        results=visible,
        searched_urls=[SearchedUrl.model_validate(u) for u in (search.searched_urls or [])],
    )

def can_modify(search: SearchRequest, user_id: Optional[str]) -> bool:
    """Anonymous searches are open to anyone; owned ones only to their owner."""
    return search.user_id is None or search.user_id == user_id

class SearchService:
    """Entry points used by the API layer."""

    def __init__(self, pipeline: SearchPipeline, repo: SearchRepository, jobs: SearchJobs):
        self.pipeline = pipeline
        self.repo = repo
        self.jobs = jobs

    async def submit(self, query: str, user_id: Optional[str] = None) -> SearchRequest:
        """Create the search row and enqueue its pipeline run."""
        started_at = time.perf_counter()
        query = query.strip()
        search = await run_in_threadpool(self.repo.create_search, query, user_id=user_id)
        self.jobs.submit(search.id, self.pipeline.run(search.id, query, started_at))
        return search

    def get_search_detail(self, search_id: int) -> Optional[SearchDetail]:
        search = self.repo.get_search(search_id)
        if search is None:
            return None
        return build_search_detail(search, self.repo.get_search_results(search_id))

    def set_saved(self, search_id: int, saved: bool, user_id: Optional[str] = None) -> Optional[SearchRequest]:
        search = self.repo.get_search(search_id)
        if search is None or not can_modify(search, user_id):
            return None
        return self.repo.set_saved(search_id, saved)

    async def delete(self, search_id: int, user_id: Optional[str] = None) -> bool:
        search = await run_in_threadpool(self.repo.get_search, search_id)
        if search is None or not can_modify(search, user_id):
            return False
        self.jobs.cancel(search_id)
        return await run_in_threadpool(self.repo.delete_search, search_id)

    def history(self, user_id: str, limit: int = 50) -> List[SearchRequest]:
        return self.repo.list_searches(user_id, limit=limit)
