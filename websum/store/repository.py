"""
Purpose:
- Persistence operations for searches, their result rows and user profiles.
- Each method opens its own short session; rows come back detached
  (expire_on_commit=False) so callers can read them after the session closes.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import desc, func, select, update
from sqlalchemy.orm import sessionmaker
from .models import SearchRequest, SearchResultItem, User
from ..search.schema import SearchHit, SearchStatus
from ..services.schema import ResultMetadata, encode_keywords

class SearchRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def create_search(self, query: str, user_id: Optional[str] = None) -> SearchRequest:
        with self._session_factory() as db:
            search = SearchRequest(
                query=query,
                user_id=user_id,
                status=SearchStatus.SEARCHING.value,
                total_results=0,
                saved=False,
            )
            db.add(search)
            db.commit()
            return search

    def update_search_status(self, search_id: int, status: SearchStatus,
                             total_results: Optional[int] = None,
                             search_time: Optional[int] = None) -> None:
        with self._session_factory() as db:
            search = db.get(SearchRequest, search_id)
            if search is None:
                return
            search.status = status.value
            if total_results is not None:
                search.total_results = total_results
            if search_time is not None:
                search.search_time = search_time
            db.commit()

    def set_searched_urls(self, search_id: int, hits: Iterable[SearchHit]) -> None:
        with self._session_factory() as db:
            search = db.get(SearchRequest, search_id)
            if search is None:
                return
            search.searched_urls = [
                {"title": h.title, "url": h.url, "domain": h.domain} for h in hits
            ]
            db.commit()

    def set_saved(self, search_id: int, saved: bool) -> Optional[SearchRequest]:
        with self._session_factory() as db:
            search = db.get(SearchRequest, search_id)
            if search is None:
                return None
            search.saved = saved
            db.commit()
            return search

    def get_search(self, search_id: int) -> Optional[SearchRequest]:
        with self._session_factory() as db:
            return db.get(SearchRequest, search_id)

    def list_searches(self, user_id: str, limit: int = 50) -> List[SearchRequest]:
        with self._session_factory() as db:
            stmt = (
                select(SearchRequest)
                .where(SearchRequest.user_id == user_id)
                .order_by(desc(SearchRequest.created_at), desc(SearchRequest.id))
                .limit(limit)
            )
            return list(db.execute(stmt).scalars().all())

    def delete_search(self, search_id: int) -> bool:
        """Delete a search; its result rows go with it (ORM cascade)."""
        with self._session_factory() as db:
            search = db.get(SearchRequest, search_id)
            if search is None:
                return False
            db.delete(search)
            db.commit()
            return True

    def create_search_result(
        self,
        search_id: int,
        *,
        title: str,
        url: str,
        domain: str,
        scraping_status: str,
        published_date: Optional[str] = None,
        reading_time: Optional[str] = None,
        summary: Optional[str] = None,
        confidence: Optional[int] = None,
        sources_count: int = 0,
        keywords: Optional[List[str]] = None,
        metadata: Optional[ResultMetadata] = None,
        error_message: Optional[str] = None,
    ) -> SearchResultItem:
        with self._session_factory() as db:
            item = SearchResultItem(
                search_id=search_id,
                title=title,
                url=url,
                domain=domain,
                published_date=published_date,
                reading_time=reading_time,
                scraping_status=scraping_status,
                summary=summary,
                confidence=confidence,
                sources_count=sources_count,
                keywords=encode_keywords(keywords),
                result_metadata=metadata.encode() if metadata is not None else None,
                error_message=error_message,
            )
            db.add(item)
            db.commit()
            return item

    def get_search_results(self, search_id: int) -> List[SearchResultItem]:
        with self._session_factory() as db:
            stmt = (
                select(SearchResultItem)
                .where(SearchResultItem.search_id == search_id)
                .order_by(SearchResultItem.id)
            )
            return list(db.execute(stmt).scalars().all())

class UserRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_user(self, user_id: str) -> Optional[User]:
        with self._session_factory() as db:
            return db.get(User, user_id)

    def create_user(self, user_id: str, email: str, display_name: Optional[str],
                    searches_limit: int, subscription_tier: str = "free") -> User:
        with self._session_factory() as db:
            user = User(
                id=user_id,
                email=email,
                display_name=display_name,
                subscription_tier=subscription_tier,
                subscription_status="inactive",
                searches_used=0,
                searches_limit=searches_limit,
            )
            db.add(user)
            db.commit()
            return user

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        with self._session_factory() as db:
            user = db.get(User, user_id)
            if user is None:
                return None
            for key, value in updates.items():
                setattr(user, key, value)
            user.updated_at = datetime.now(timezone.utc)
            db.commit()
            return user

    def reserve_search(self, user_id: str, default_limit: int) -> bool:
        """
        Count one search against the user's allowance in a single UPDATE.
        Returns False (and changes nothing) when the allowance is used up or the user is unknown.
        """
        used = func.coalesce(User.searches_used, 0)
        limit = func.coalesce(User.searches_limit, default_limit)
        stmt = (
            update(User)
            .where(User.id == user_id, used < limit)
            .values(searches_used=used + 1)
            .execution_options(synchronize_session=False)
        )
        with self._session_factory() as db:
            reserved = db.execute(stmt).rowcount == 1
            db.commit()
            return reserved

    def delete_user(self, user_id: str) -> bool:
        """Delete a profile together with its searches and their results."""
        with self._session_factory() as db:
            user = db.get(User, user_id)
            if user is None:
                return False
            db.delete(user)
            db.commit()
            return True
