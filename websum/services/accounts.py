"""
Purpose:
- Keep the local user profile in step with the external auth provider.
- Enforce the monthly search allowance that comes with each subscription tier.
- Record subscription state reported by the billing provider.

Identity itself is asserted upstream; this module only sees (id, email, name).
"""

from __future__ import annotations
import logging
from typing import Dict, Optional

from ..core.errors import SearchLimitReached
from ..store.models import User
from ..store.repository import UserRepository
from .schema import Plan, SubscriptionSync, UserProfile

logger = logging.getLogger(__name__)

SUBSCRIPTION_PLANS: Dict[str, Plan] = {
    "free": Plan(
        tier="free",
        name="Free",
        price=0.0,
        search_limit=10,
        features=["10 searches/month"],
    ),
    "pro": Plan(
        tier="pro",
        name="Pro",
        price=9.99,
        search_limit=100,
        features=["100 searches/month", "Priority support", "Advanced analytics"],
    ),
    "premium": Plan(
        tier="premium",
        name="Premium",
        price=19.99,
        search_limit=500,
        features=["500 searches/month", "Priority support", "Advanced analytics", "API access"],
    ),
}

class AccountService:
    def __init__(self, users: UserRepository, free_searches_limit: int = 10):
        self.users = users
        self.free_searches_limit = free_searches_limit

    def ensure_user_profile(self, user_id: str, email: str, display_name: Optional[str] = None) -> User:
        """Create the profile on first sight; refresh email/display name when they change."""
        user = self.users.get_user(user_id)
        if user is None:
            user = self.users.create_user(
                user_id,
                email,
                display_name or email.split("@")[0],
                searches_limit=self.free_searches_limit,
            )
            logger.info("Created user profile: %s (%s)", email, user_id)
            return user

        updates = {}
        if user.email != email:
            updates["email"] = email
        if display_name and user.display_name != display_name:
            updates["display_name"] = display_name
        if updates:
            user = self.users.update_user(user_id, updates) or user
            logger.info("Updated user profile: %s (%s)", email, user_id)
        return user

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        user = self.users.get_user(user_id)
        if user is None:
            return None
        return UserProfile.model_validate(user)

    def reserve_search(self, user_id: str) -> None:
        """Count one search against the allowance; raises SearchLimitReached when none is left."""
        if self.users.reserve_search(user_id, self.free_searches_limit):
            return
        user = self.users.get_user(user_id)
        used = user.searches_used if user is not None else 0
        limit = user.searches_limit if user is not None else self.free_searches_limit
        raise SearchLimitReached(f"Monthly search limit reached ({used}/{limit})")

    def sync_subscription_status(self, user_id: str, data: SubscriptionSync) -> Optional[User]:
        updates = data.model_dump(exclude_none=True)
        # a tier change without an explicit limit takes the plan's allowance
        if "subscription_tier" in updates and "searches_limit" not in updates:
            updates["searches_limit"] = SUBSCRIPTION_PLANS[updates["subscription_tier"]].search_limit
        user = self.users.update_user(user_id, updates)
        if user is not None:
            logger.info("Synced subscription for user %s: %s", user_id, updates)
        return user

