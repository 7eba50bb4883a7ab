"""Gemini client, rate limiting and usage accounting."""

from newsdesk.llm.gemini_client import GeminiClient, GenerationResult
from newsdesk.llm.rate_limiter import RateLimiter, TokenBucket
from newsdesk.llm.usage import AIUsage, UsageAccumulator, calculate_cost

__all__ = [
    "GeminiClient",
    "GenerationResult",
    "RateLimiter",
    "TokenBucket",
    "AIUsage",
    "UsageAccumulator",
    "calculate_cost",
]
