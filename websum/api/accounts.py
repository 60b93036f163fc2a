"""
Purpose:
- Profile, plan catalogue and subscription sync for identified callers.
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException
from .deps import get_services, require_user
from ..core.container import Services
from ..services.accounts import SUBSCRIPTION_PLANS
from ..services.schema import Plan, SubscriptionSync, UserProfile
from ..store.models import User

router = APIRouter(prefix="/api", tags=["accounts"])

@router.get("/auth/me", response_model=UserProfile)
def me(services: Services = Depends(get_services), user: User = Depends(require_user)):
    profile = services.accounts.get_profile(user.id)
    if profile is None:
        raise HTTPException(status_code=404, detail="User profile not found")
    return profile

@router.get("/plans", response_model=List[Plan])
def plans():
    return list(SUBSCRIPTION_PLANS.values())

@router.post("/auth/subscription", response_model=UserProfile)
def sync_subscription(
    payload: SubscriptionSync,
    services: Services = Depends(get_services),
    user: User = Depends(require_user),
):
    updated = services.accounts.sync_subscription_status(user.id, payload)
    if updated is None:
        raise HTTPException(status_code=404, detail="User profile not found")
    return UserProfile.model_validate(updated)
