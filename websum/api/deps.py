"""
Purpose:
- FastAPI dependencies: the per-process Services and the calling user.
- Identity is asserted by the upstream auth gateway via X-User-* headers.
"""

from typing import Optional
from fastapi import Depends, Header, HTTPException, Request
from ..core.container import Services
from ..store.models import User

def get_services(request: Request) -> Services:
    return request.app.state.services

def current_user(
    services: Services = Depends(get_services),
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
) -> Optional[User]:
    """Anonymous callers get None; identified callers get a synced profile."""
    if not x_user_id:
        return None
    if not x_user_email:
        raise HTTPException(status_code=400, detail="X-User-Email header is required with X-User-Id")
    return services.accounts.ensure_user_profile(x_user_id, x_user_email, x_user_name)

def require_user(user: Optional[User] = Depends(current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
