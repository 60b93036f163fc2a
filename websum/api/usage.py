"""
Purpose:
- Operational view of the summarizer's OpenAI usage counters.
- /reset zeroes them and lifts any active quota cooldown (debug use).
"""

from fastapi import APIRouter, Depends
from .deps import get_services
from ..core.container import Services
from ..services.schema import UsageStats

router = APIRouter(prefix="/api/usage", tags=["usage"])

@router.get("", response_model=UsageStats)
async def usage_stats(services: Services = Depends(get_services)):
    return services.summarizer.get_usage_stats()

@router.post("/reset", response_model=UsageStats)
async def reset_usage_stats(services: Services = Depends(get_services)):
    services.summarizer.reset_usage_stats()
    return services.summarizer.get_usage_stats()
