"""
Purpose:
- Expose /api/search* endpoints backing the search pipeline.
- POST starts a background run and answers at once; GET is polled for progress.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from .deps import current_user, get_services, require_user
from ..core.container import Services
from ..core.errors import SearchLimitReached
from ..search.schema import (
    SaveSearchIn,
    SearchDetail,
    SearchHistoryItem,
    SearchOut,
    SearchQuery,
    SearchSubmitted,
)
from ..store.models import User

router = APIRouter(prefix="/api", tags=["search"])

@router.post("/search", response_model=SearchSubmitted)
async def submit_search(
    payload: SearchQuery,
    services: Services = Depends(get_services),
    user: Optional[User] = Depends(current_user),
):
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Search query is required")

    if user is not None:
        try:
            await run_in_threadpool(services.accounts.reserve_search, user.id)
        except SearchLimitReached as e:
            raise HTTPException(status_code=403, detail=str(e))

    search = await services.search.submit(query, user_id=user.id if user else None)
    return SearchSubmitted(search_id=search.id)

@router.get("/search/{search_id}", response_model=SearchDetail)
def get_search(search_id: int, services: Services = Depends(get_services)):
    detail = services.search.get_search_detail(search_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Search not found")
    return detail

@router.post("/search/{search_id}/save", response_model=SearchOut)
def save_search(
    search_id: int,
    payload: SaveSearchIn,
    services: Services = Depends(get_services),
    user: Optional[User] = Depends(current_user),
):
    search = services.search.set_saved(search_id, payload.saved, user_id=user.id if user else None)
    if search is None:
        raise HTTPException(status_code=404, detail="Search not found")
    return SearchOut.model_validate(search)

@router.delete("/search/{search_id}", status_code=204)
async def delete_search(
    search_id: int,
    services: Services = Depends(get_services),
    user: Optional[User] = Depends(current_user),
):
    # someone else's search is reported as missing
    if not await services.search.delete(search_id, user_id=user.id if user else None):
        raise HTTPException(status_code=404, detail="Search not found")

@router.get("/searches/history", response_model=List[SearchHistoryItem])
def search_history(
    limit: int = Query(default=50, ge=1, le=200),
    services: Services = Depends(get_services),
    user: User = Depends(require_user),
):
    return [SearchHistoryItem.model_validate(s) for s in services.search.history(user.id, limit=limit)]
