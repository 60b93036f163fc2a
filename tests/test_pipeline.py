"""Tests for the search pipeline: scrape outcomes, confidence rules and visibility."""

from __future__ import annotations

import json
import threading

import pytest

from websum.core.errors import ScrapeTimeout, SearchUnavailable, SummarizationFailed
from websum.search.schema import ScrapingStatus, SearchStatus
from websum.search.service import CONFIDENCE_THRESHOLD, basic_summary
from websum.services.summarizer import Summarizer

from stubs import (
    AI_RESULT,
    ARTICLE_TEXT,
    StubExtractor,
    StubSource,
    StubSummarizer,
    fake_client,
    fake_completion,
    make_hit,
    page,
)

LONG_SNIPPET = "A long search snippet describing the page in more than fifty characters of text."


async def run_search(services, query: str = "river restoration"):
    search = await services.search.submit(query)
    await services.jobs.wait(search.id)
    return search.id


def stored(services, search_id):
    return services.search.repo.get_search_results(search_id)


@pytest.mark.anyio
async def test_zero_hits_marks_search_as_error(make_services) -> None:
    services = make_services(source=StubSource([]))
    search_id = await run_search(services)

    detail = services.search.get_search_detail(search_id)
    assert detail.search.status is SearchStatus.ERROR
    assert detail.results == []
    assert stored(services, search_id) == []


@pytest.mark.anyio
async def test_source_unavailable_marks_search_as_error(make_services) -> None:
    services = make_services(source=StubSource(SearchUnavailable("down")))
    search_id = await run_search(services)

    assert services.search.get_search_detail(search_id).search.status is SearchStatus.ERROR


@pytest.mark.anyio
async def test_unexpected_error_marks_search_as_error(make_services) -> None:
    services = make_services(source=StubSource(RuntimeError("boom")))
    search_id = await run_search(services)

    assert services.search.get_search_detail(search_id).search.status is SearchStatus.ERROR


@pytest.mark.anyio
async def test_query_is_trimmed_before_search(make_services) -> None:
    source = StubSource([make_hit(1)])
    services = make_services(source=source)
    search_id = await run_search(services, "  solar panels  ")

    assert source.queries == ["solar panels"]
    assert services.search.get_search_detail(search_id).search.query == "solar panels"


@pytest.mark.anyio
async def test_mixed_outcomes_are_stored_and_filtered(make_services) -> None:
    hits = [
        make_hit(1),
        make_hit(2, snippet=LONG_SNIPPET),
        make_hit(3, snippet="Short snippet."),
        make_hit(4),
    ]
    extractor = StubExtractor({
        hits[0].url: page(),
        hits[2].url: ScrapeTimeout("Failed to scrape content: timed out after 10s"),
    })
    summarizer = StubSummarizer(result=AI_RESULT)
    services = make_services(source=StubSource(hits), extractor=extractor, summarizer=summarizer)

    search_id = await run_search(services)

    rows = stored(services, search_id)
    assert [r.url for r in rows] == [h.url for h in hits]
    by_url = {r.url: r for r in rows}

    full = by_url[hits[0].url]
    assert full.scraping_status == ScrapingStatus.SUCCESS.value
    assert full.confidence == 90
    assert full.published_date == "2024-03-01"
    assert full.error_message is None

    partial = by_url[hits[1].url]
    assert partial.scraping_status == ScrapingStatus.PARTIAL.value
    assert partial.confidence == 60
    assert "HTTP 404" in partial.error_message

    snippet_only = by_url[hits[2].url]
    assert snippet_only.scraping_status == ScrapingStatus.FAILED.value
    assert snippet_only.summary == "Short snippet."
    assert snippet_only.confidence == 20
    assert "timed out" in snippet_only.error_message

    empty = by_url[hits[3].url]
    assert empty.scraping_status == ScrapingStatus.FAILED.value
    assert empty.summary is None
    assert empty.confidence is None

    # only full scrape and partial scrape reach the summarizer
    assert summarizer.calls == [hits[0].url, hits[1].url]

    detail = services.search.get_search_detail(search_id)
    assert detail.search.status is SearchStatus.COMPLETED
    assert detail.search.total_results == 1
    assert detail.search.original_results_count == 4
    assert detail.search.search_time is not None
    assert [r.url for r in detail.results] == [hits[0].url]
    assert detail.results[0].keywords == ["restoration", "water quality"]
    assert detail.results[0].metadata.category == "Science"
    assert [u.url for u in detail.searched_urls] == [h.url for h in hits]


@pytest.mark.anyio
async def test_partial_penalty_never_goes_below_zero(make_services) -> None:
    hit = make_hit(1, snippet=LONG_SNIPPET)
    weak = AI_RESULT.model_copy(update={"confidence": 20})
    services = make_services(
        source=StubSource([hit]),
        extractor=StubExtractor({}),
        summarizer=StubSummarizer(result=weak),
    )
    search_id = await run_search(services)

    assert stored(services, search_id)[0].confidence == 0


@pytest.mark.anyio
async def test_summarizer_failure_uses_basic_summary(make_services) -> None:
    hits = [make_hit(1), make_hit(2, snippet=LONG_SNIPPET)]
    services = make_services(
        source=StubSource(hits),
        extractor=StubExtractor({hits[0].url: page()}),
        summarizer=StubSummarizer(error=SummarizationFailed("api down")),
    )
    search_id = await run_search(services)

    full, partial = stored(services, search_id)
    assert full.confidence == 50
    assert full.summary == basic_summary(ARTICLE_TEXT)
    assert full.summary.startswith("Researchers at the Example Institute")
    assert partial.confidence == 30
    assert services.search.get_search_detail(search_id).search.status is SearchStatus.COMPLETED


@pytest.mark.anyio
async def test_fallback_scores_stay_below_visibility_threshold(make_services) -> None:
    content = ("lorem ipsum dolor sit amet consectetur adipiscing elit sed " * 3)[:150]
    hit = make_hit(1)
    services = make_services(
        source=StubSource([hit]),
        extractor=StubExtractor({hit.url: page(content)}),
        summarizer=Summarizer(api_key=None),
    )
    search_id = await run_search(services, "test")

    row = stored(services, search_id)[0]
    assert row.scraping_status == ScrapingStatus.SUCCESS.value
    assert 40 <= row.confidence <= CONFIDENCE_THRESHOLD

    detail = services.search.get_search_detail(search_id)
    assert detail.search.status is SearchStatus.COMPLETED
    assert detail.results == []
    assert detail.search.total_results == 0
    assert detail.search.original_results_count == 1


@pytest.mark.anyio
async def test_confidence_exactly_at_threshold_is_hidden(make_services) -> None:
    hits = [make_hit(1), make_hit(2)]
    services = make_services(
        source=StubSource(hits),
        extractor=StubExtractor({h.url: page() for h in hits}),
        summarizer=StubSummarizer(result=AI_RESULT.model_copy(update={"confidence": CONFIDENCE_THRESHOLD})),
    )
    search_id = await run_search(services)

    detail = services.search.get_search_detail(search_id)
    assert detail.results == []
    assert detail.search.original_results_count == 2


@pytest.mark.anyio
async def test_reads_are_repeatable(make_services) -> None:
    hit = make_hit(1)
    services = make_services(
        source=StubSource([hit]),
        extractor=StubExtractor({hit.url: page()}),
        summarizer=StubSummarizer(result=AI_RESULT),
    )
    search_id = await run_search(services)

    first = services.search.get_search_detail(search_id)
    second = services.search.get_search_detail(search_id)
    assert first.model_dump() == second.model_dump()


def test_unknown_search_detail_is_none(make_services) -> None:
    assert make_services().search.get_search_detail(999) is None


def test_basic_summary_falls_back_to_prefix() -> None:
    assert basic_summary("tiny") == "tiny"


@pytest.mark.anyio
async def test_unexpected_summarizer_error_falls_back_per_candidate(make_services) -> None:
    hits = [make_hit(1), make_hit(2, snippet=LONG_SNIPPET)]
    services = make_services(
        source=StubSource(hits),
        extractor=StubExtractor({hits[0].url: page()}),
        summarizer=StubSummarizer(error=RuntimeError("unexpected")),
    )
    search_id = await run_search(services)

    full, partial = stored(services, search_id)
    assert full.summary == basic_summary(ARTICLE_TEXT)
    assert full.confidence == 50
    assert partial.summary == basic_summary(LONG_SNIPPET)
    assert partial.confidence == 30
    assert services.search.get_search_detail(search_id).search.status is SearchStatus.COMPLETED


@pytest.mark.anyio
async def test_unrepresentable_model_output_does_not_abort_search(make_services) -> None:
    hits = [make_hit(1), make_hit(2)]
    valid = json.dumps({"summary": "Water quality improved.", "confidence": 92, "sourcesCount": 1})
    client = fake_client(
        fake_completion('{"summary": "x", "confidence": Infinity}'),
        fake_completion(valid),
    )
    services = make_services(
        source=StubSource(hits),
        extractor=StubExtractor({h.url: page() for h in hits}),
        summarizer=Summarizer(api_key="sk-test", client=client),
    )
    search_id = await run_search(services)

    first, second = stored(services, search_id)
    assert first.confidence == 50
    assert second.confidence == 92
    detail = services.search.get_search_detail(search_id)
    assert detail.search.status is SearchStatus.COMPLETED
    assert detail.search.original_results_count == 2


@pytest.mark.anyio
async def test_pipeline_writes_run_off_the_event_loop_thread(make_services, monkeypatch) -> None:
    hit = make_hit(1)
    services = make_services(
        source=StubSource([hit]),
        extractor=StubExtractor({hit.url: page()}),
        summarizer=StubSummarizer(result=AI_RESULT),
    )
    repo = services.search.repo
    loop_thread = threading.get_ident()
    threads = []

    def recording(fn):
        def wrapper(*args, **kwargs):
            threads.append(threading.get_ident())
            return fn(*args, **kwargs)
        return wrapper

    for name in ("create_search", "set_searched_urls", "create_search_result", "update_search_status"):
        monkeypatch.setattr(repo, name, recording(getattr(repo, name)))

    await run_search(services)

    assert len(threads) == 4
    assert loop_thread not in threads
