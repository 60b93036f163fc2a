"""
Purpose:
- Pydantic models shared by the summarizer, the heuristics and storage.
- ResultMetadata owns its stored text encoding so every writer/reader agrees on it.
"""

from __future__ import annotations
import json
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

METADATA_VERSION = 1

class CamelModel(BaseModel):
    # JSON out in camelCase (what the web client reads); snake_case still accepted in
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class ResultMetadata(CamelModel):
    topic: Optional[str] = None
    category: Optional[str] = None
    entities: List[str] = Field(default_factory=list)

    def encode(self) -> str:
        """Text form stored in search_results.metadata."""
        return json.dumps({"version": METADATA_VERSION, **self.model_dump()})

    @classmethod
    def decode(cls, raw: Optional[str]) -> Optional["ResultMetadata"]:
        """Inverse of encode(). Rows written before versioning carry no "version" key."""
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        data.pop("version", None)
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None

DEFAULT_METADATA = ResultMetadata(topic="Unknown", category="General", entities=[])

def encode_keywords(keywords: Optional[List[str]]) -> Optional[str]:
    if keywords is None:
        return None
    return json.dumps([str(k) for k in keywords])

def decode_keywords(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        return []
    return [str(k) for k in data] if isinstance(data, list) else []

class SummaryResult(CamelModel):
    summary: str
    confidence: int = Field(ge=0, le=100)
    sources_count: int = Field(default=0, ge=0)
    keywords: List[str] = Field(default_factory=list)
    metadata: Optional[ResultMetadata] = None

class UsageStats(CamelModel):
    """Snapshot of the summarizer's process-wide counters."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    quota_exceeded_count: int = 0
    last_quota_exceeded_at: Optional[datetime] = None
    consecutive_failures: int = 0
    cooling_down: bool = False
    cooldown_remaining_seconds: int = 0

# --- Accounts ----------------------------------------------------------------

SubscriptionTier = Literal["free", "pro", "premium"]
SubscriptionStatus = Literal["active", "inactive", "cancelled", "past_due"]

class Plan(CamelModel):
    tier: SubscriptionTier
    name: str
    price: float
    search_limit: int
    features: List[str] = Field(default_factory=list)

class UserProfile(CamelModel):
    id: str
    email: str
    display_name: Optional[str] = None
    subscription_tier: str = "free"
    subscription_status: str = "inactive"
    searches_used: int = 0
    searches_limit: int = 10
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class SubscriptionSync(CamelModel):
    """Billing-provider state pushed onto a profile; unset fields are left alone."""
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    subscription_tier: Optional[SubscriptionTier] = None
    subscription_status: Optional[SubscriptionStatus] = None
    searches_limit: Optional[int] = Field(default=None, ge=0)
