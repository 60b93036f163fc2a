"""Pytest configuration and fixtures for websum tests."""

from __future__ import annotations

import pytest

from websum.core.container import build_services
from websum.core.settings import Settings
from websum.services.summarizer import Summarizer

from stubs import StubExtractor, StubSource, make_hit


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(database_url="sqlite://", serpapi_api_key=None, openai_api_key=None)


@pytest.fixture
def make_services(test_settings):
    """Factory: build Services on a fresh in-memory database with the given stubs."""

    def _make(source=None, extractor=None, summarizer=None):
        return build_services(
            test_settings,
            source=source or StubSource([make_hit(1)]),
            extractor=extractor or StubExtractor({}),
            summarizer=summarizer or Summarizer(api_key=None),
        )

    return _make
