"""
Purpose:
- Pydantic models for search in/out so the API is self-documenting and stable.
- Field names go out in camelCase, which is what the web client reads.
"""

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from ..services.schema import CamelModel, ResultMetadata

class SearchStatus(str, Enum):
    SEARCHING = "searching"
    COMPLETED = "completed"
    ERROR = "error"

class ScrapingStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"

class SearchQuery(BaseModel):
    query: str = Field(..., min_length=1, description="User's search text")

class SearchHit(BaseModel):
    """One candidate page from the result source, before scraping."""
    title: str
    url: str
    domain: str
    snippet: str = ""

class ScrapedContent(BaseModel):
    content: str
    reading_time: str
    published_date: Optional[str] = None

class SearchSubmitted(CamelModel):
    search_id: int
    status: SearchStatus = SearchStatus.SEARCHING

class SearchedUrl(CamelModel):
    title: str
    url: str
    domain: str

class SearchOut(CamelModel):
    id: int
    query: str
    status: SearchStatus
    total_results: int = 0
    search_time: Optional[int] = None
    saved: bool = False
    created_at: Optional[datetime] = None
    original_results_count: Optional[int] = None

class ResultOut(CamelModel):
    id: int
    search_id: int
    title: str
    url: str
    domain: str
    published_date: Optional[str] = None
    reading_time: Optional[str] = None
    scraping_status: ScrapingStatus
    summary: Optional[str] = None
    confidence: Optional[int] = None
    sources_count: int = 0
    keywords: List[str] = Field(default_factory=list)
    metadata: Optional[ResultMetadata] = None
    error_message: Optional[str] = None

class SearchDetail(CamelModel):
    search: SearchOut
    results: List[ResultOut] = Field(default_factory=list)
    searched_urls: List[SearchedUrl] = Field(default_factory=list)

class SaveSearchIn(BaseModel):
    saved: bool = True

class SearchHistoryItem(CamelModel):
    id: int
    query: str
    status: SearchStatus
    created_at: Optional[datetime] = None
    total_results: int = 0
    saved: bool = False
