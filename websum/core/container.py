"""
Purpose:
- Wire settings into the long-lived objects the API needs (one set per process).
- Tests build their own Services with an in-memory database and stubbed clients.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.engine import Engine

from .settings import Settings, settings as default_settings
from ..search.fetcher import ContentExtractor
from ..search.jobs import SearchJobs
from ..search.serpapi import ResultSource
from ..search.service import SearchPipeline, SearchService
from ..services.accounts import AccountService
from ..services.summarizer import Summarizer
from ..store.db import init_db, make_engine, make_session_factory
from ..store.repository import SearchRepository, UserRepository

@dataclass
class Services:
    settings: Settings
    engine: Engine
    search: SearchService
    accounts: AccountService
    summarizer: Summarizer
    jobs: SearchJobs

def build_services(
    cfg: Optional[Settings] = None,
    *,
    source: Optional[ResultSource] = None,
    extractor: Optional[ContentExtractor] = None,
    summarizer: Optional[Summarizer] = None,
) -> Services:
    cfg = cfg or default_settings
    engine = make_engine(cfg.database_url)
    init_db(engine)
    session_factory = make_session_factory(engine)

    repo = SearchRepository(session_factory)
    jobs = SearchJobs()
    summarizer = summarizer or Summarizer(api_key=cfg.openai_api_key, model=cfg.openai_model)
    pipeline = SearchPipeline(
        source=source or ResultSource(api_key=cfg.serpapi_api_key, timeout=cfg.search_timeout),
        extractor=extractor or ContentExtractor(
            timeout=cfg.scrape_timeout,
            user_agent=cfg.scrape_user_agent,
            max_chars=cfg.scrape_max_chars,
        ),
        summarizer=summarizer,
        repo=repo,
        max_results=cfg.search_max_results,
    )
    return Services(
        settings=cfg,
        engine=engine,
        search=SearchService(pipeline, repo, jobs),
        accounts=AccountService(UserRepository(session_factory), cfg.free_searches_limit),
        summarizer=summarizer,
        jobs=jobs,
    )
