"""Tests for search.serpapi: sample mode, result mapping and provider errors."""

from __future__ import annotations

import httpx
import pytest

from websum.core.errors import SearchUnavailable
from websum.search.serpapi import SAMPLE_RESULTS, SERPAPI_ENDPOINT, ResultSource, domain_of


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_domain_of() -> None:
    assert domain_of("https://www.Nature.com/articles/1") == "nature.com"
    assert domain_of("https://blog.example.org/x") == "blog.example.org"
    assert domain_of("not a url") == "unknown"


@pytest.mark.anyio
async def test_without_key_returns_sample_results() -> None:
    hits = await ResultSource(api_key=None).search("anything", limit=3)

    assert [h.url for h in hits] == [h.url for h in SAMPLE_RESULTS[:3]]


@pytest.mark.anyio
async def test_maps_organic_results_in_provider_order() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["url"] = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        return httpx.Response(200, json={"organic_results": [
            {"title": "First", "link": "https://www.first.com/a", "snippet": "one"},
            {"link": "https://second.org/b"},
            {"title": "Third", "link": "https://third.net/c", "snippet": "three"},
        ]})

    async with mock_client(handler) as client:
        hits = await ResultSource(api_key="serp-key", client=client).search("solar panels", limit=2)

    assert seen["url"] == SERPAPI_ENDPOINT
    assert seen["params"]["q"] == "solar panels"
    assert seen["params"]["num"] == "2"
    assert seen["params"]["engine"] == "google"
    assert [h.title for h in hits] == ["First", "Untitled"]
    assert hits[0].domain == "first.com"
    assert hits[1].snippet == ""


@pytest.mark.anyio
async def test_limit_is_capped_at_ten() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["num"] = request.url.params["num"]
        return httpx.Response(200, json={"organic_results": []})

    async with mock_client(handler) as client:
        hits = await ResultSource(api_key="serp-key", client=client).search("q", limit=50)

    assert seen["num"] == "10"
    assert hits == []


@pytest.mark.anyio
async def test_error_payload_raises_search_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "Invalid API key."})

    async with mock_client(handler) as client:
        with pytest.raises(SearchUnavailable):
            await ResultSource(api_key="bad", client=client).search("q")


@pytest.mark.anyio
async def test_http_error_raises_search_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="oops")

    async with mock_client(handler) as client:
        with pytest.raises(SearchUnavailable):
            await ResultSource(api_key="serp-key", client=client).search("q")


@pytest.mark.anyio
async def test_timeout_raises_search_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("slow", request=request)

    async with mock_client(handler) as client:
        with pytest.raises(SearchUnavailable):
            await ResultSource(api_key="serp-key", client=client).search("q")
