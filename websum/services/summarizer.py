"""
Purpose:
- Summarize scraped article text with an OpenAI chat model (JSON response).
- Degrade to services.heuristics.fallback_summary when the model is unusable:
    * no API key configured
    * quota exhausted (HTTP 429 insufficient_quota / billing) -> 5 minute cooldown
    * rate limited (any other HTTP 429) -> fallback for this call only
- Keep process-wide usage counters for /api/usage.

State:
    NORMAL --quota error--> COOLING_DOWN --(cooldown elapsed | successful call)--> NORMAL
While COOLING_DOWN every call goes straight to the fallback without touching the network.

Anything else (auth errors, connection errors, malformed JSON) raises SummarizationFailed.
"""

from __future__ import annotations
import json
import logging
import math
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from ..core.errors import SummarizationFailed
from ..core.settings import settings
from .heuristics import fallback_summary
from .schema import DEFAULT_METADATA, ResultMetadata, SummaryResult, UsageStats

logger = logging.getLogger(__name__)

QUOTA_COOLDOWN_SECONDS = 5 * 60

SYSTEM_PROMPT = (
    "You are an expert content summarizer. Provide accurate, concise summaries "
    "and assess content quality objectively."
)

PROMPT_TEMPLATE = """Analyze and summarize the following article content. Focus on key points, main arguments, and important findings.

Article Title: {title}
Source URL: {url}
Content: {content}

Please provide a concise summary that captures the essence of the article while being informative and objective. The summary should be 2-3 sentences long and highlight the most important information.

Additionally, extract:
1. Your confidence in the summary quality (0-100)
2. Number of distinct sources or references mentioned in the content
3. 5-8 relevant keywords for SEO/metadata (important terms, topics, entities)
4. Topic classification and main entities mentioned

Respond with JSON in this format: {{
  "summary": "string",
  "confidence": number,
  "sourcesCount": number,
  "keywords": ["keyword1", "keyword2", ...],
  "metadata": {{
    "topic": "main topic",
    "category": "content category",
    "entities": ["entity1", "entity2", ...]
  }}
}}"""

class EngineState(str, Enum):
    NORMAL = "normal"
    COOLING_DOWN = "cooling_down"

def _error_message(err: Exception) -> str:
    return str(getattr(err, "message", None) or err)

def is_quota_error(err: Exception) -> bool:
    if getattr(err, "status_code", None) != 429:
        return False
    msg = _error_message(err).lower()
    return getattr(err, "code", None) == "insufficient_quota" or "quota" in msg or "billing" in msg

def is_rate_limit_error(err: Exception) -> bool:
    # every 429 that is not a quota problem is treated as transient throttling
    return getattr(err, "status_code", None) == 429 and not is_quota_error(err)

def _clamp(value: Any, low: int, high: Optional[int] = None) -> int:
    n = int(value or 0)
    n = max(low, n)
    return min(high, n) if high is not None else n

class Summarizer:
    """
    One instance per process. Its counters and cooldown are shared by every
    running search on purpose: an exhausted quota affects everyone equally.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[Any] = None,
        cooldown_seconds: float = QUOTA_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_key = api_key
        self.model = model or settings.openai_model
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._client = client

        self.state = EngineState.NORMAL
        self._cooldown_started = 0.0
        self._stats = UsageStats()

    @property
    def client(self) -> Any:
        """Lazily built AsyncOpenAI client (tests inject their own)."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    # --- cooldown ------------------------------------------------------------

    def _cooldown_remaining(self) -> float:
        if self.state is not EngineState.COOLING_DOWN:
            return 0.0
        return max(0.0, self.cooldown_seconds - (self._clock() - self._cooldown_started))

    def should_skip_api_call(self) -> bool:
        if self.state is not EngineState.COOLING_DOWN:
            return False
        if self._cooldown_remaining() <= 0:
            self.state = EngineState.NORMAL
            self._cooldown_started = 0.0
            logger.info("OpenAI quota cooldown period ended, resuming API calls")
            return False
        return True

    def _enter_cooldown(self, err: Exception, duration_ms: int) -> None:
        self._stats.quota_exceeded_count += 1
        self._stats.last_quota_exceeded_at = datetime.now(timezone.utc)
        self.state = EngineState.COOLING_DOWN
        self._cooldown_started = self._clock()
        logger.error(
            "OpenAI quota exceeded [%dms]; quota failures=%d consecutive=%d; "
            "using fallback summaries for %d minutes: %s",
            duration_ms,
            self._stats.quota_exceeded_count,
            self._stats.consecutive_failures,
            int(self.cooldown_seconds // 60),
            _error_message(err),
        )

    # --- main entry ----------------------------------------------------------

    async def summarize(self, content: str, title: str, url: str) -> SummaryResult:
        if self.should_skip_api_call():
            logger.info(
                "Skipping OpenAI call due to quota exhaustion (%d min cooldown remaining)",
                math.ceil(self._cooldown_remaining() / 60),
            )
            return fallback_summary(content, title)

        if not self.api_key:
            logger.debug("No OpenAI API key configured; using fallback summary")
            return fallback_summary(content, title)

        self._stats.total_requests += 1
        started = time.perf_counter()
        logger.info(
            "OpenAI request #%d: %s (%s, %d chars)",
            self._stats.total_requests, title[:50], url, len(content),
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": self._build_prompt(content, title, url)},
                ],
                response_format={"type": "json_object"},
                max_tokens=settings.openai_max_tokens,
                temperature=settings.openai_temperature,
            )
            result = self._parse(response)
        except (openai.OpenAIError, ValueError, TypeError, ValidationError) as e:
            duration_ms = int((time.perf_counter() - started) * 1000)
            self._stats.failed_requests += 1
            self._stats.consecutive_failures += 1

            if is_quota_error(e):
                self._enter_cooldown(e, duration_ms)
                return fallback_summary(content, title)
            if is_rate_limit_error(e):
                logger.warning("OpenAI rate limit [%dms]; using fallback summary: %s", duration_ms, _error_message(e))
                return fallback_summary(content, title)

            logger.error("OpenAI API error [%dms]: %r", duration_ms, e)
            raise SummarizationFailed("Failed to generate summary using AI") from e

        duration_ms = int((time.perf_counter() - started) * 1000)
        self._stats.successful_requests += 1
        self._stats.consecutive_failures = 0
        self.state = EngineState.NORMAL
        self._log_success(duration_ms, getattr(response, "usage", None))
        return result

    def _build_prompt(self, content: str, title: str, url: str) -> str:
        budget = settings.summary_prompt_chars
        body = content[:budget] + (" ..." if len(content) > budget else "")
        return PROMPT_TEMPLATE.format(title=title, url=url, content=body)

    def _parse(self, response: Any) -> SummaryResult:
        """Turn a chat completion into a SummaryResult. Any malformed shape raises ValueError."""
        try:
            return self._parse_completion(response)
        except (IndexError, AttributeError, KeyError, OverflowError) as e:
            raise ValueError(f"malformed completion: {e!r}") from e

    def _parse_completion(self, response: Any) -> SummaryResult:
        raw = response.choices[0].message.content or "{}"
        data = json.loads(raw)  # ValueError on malformed JSON
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        try:
            metadata = ResultMetadata.model_validate(data["metadata"]) if data.get("metadata") else DEFAULT_METADATA
        except ValidationError:
            metadata = DEFAULT_METADATA

        keywords = data.get("keywords") or []
        return SummaryResult(
            summary=data.get("summary") or "Unable to generate summary",
            confidence=_clamp(data.get("confidence"), 0, 100),
            sources_count=_clamp(data.get("sourcesCount"), 0),
            keywords=[str(k) for k in keywords] if isinstance(keywords, list) else [],
            metadata=metadata,
        )

    def _log_success(self, duration_ms: int, usage: Any) -> None:
        if usage is not None:
            logger.info(
                "OpenAI success [%dms]; tokens: %s prompt + %s completion = %s total",
                duration_ms,
                getattr(usage, "prompt_tokens", "?"),
                getattr(usage, "completion_tokens", "?"),
                getattr(usage, "total_tokens", "?"),
            )
        else:
            logger.info("OpenAI success [%dms]", duration_ms)
        logger.info(
            "OpenAI success rate: %d%%",
            round(self._stats.successful_requests / self._stats.total_requests * 100),
        )

    # --- stats ---------------------------------------------------------------

    def get_usage_stats(self) -> UsageStats:
        remaining = self._cooldown_remaining()
        return self._stats.model_copy(update={
            "cooling_down": remaining > 0,
            "cooldown_remaining_seconds": int(remaining),
        })

    def reset_usage_stats(self) -> None:
        self._stats = UsageStats()
        self.state = EngineState.NORMAL
        self._cooldown_started = 0.0
        logger.info("OpenAI usage statistics reset")
