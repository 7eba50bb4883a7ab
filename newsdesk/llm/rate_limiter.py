"""Token bucket rate limiter for Gemini request throttling."""

import asyncio
import threading
import time
from typing import Optional

from loguru import logger


class TokenBucket:
    """
    Token bucket algorithm implementation for rate limiting.

    Tokens refill continuously at a fixed rate. Requests consume tokens.
    If insufficient tokens are available, the request must wait or be rejected.

    Attributes:
        capacity: Maximum number of tokens the bucket can hold
        refill_rate: Tokens added per second
        tokens: Current number of tokens available
        last_refill: Timestamp of last token refill
        lock: Thread lock for safe concurrent access
    """

    def __init__(self, capacity: int, refill_rate: float):
        """
        Initialize token bucket with capacity and refill rate.

        Args:
            capacity: Maximum tokens (e.g., 15 for 15 RPM)
            refill_rate: Tokens per second (e.g., 0.25 = 15 per minute)
        """
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self.last_refill = time.monotonic()
        self.lock = threading.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        # Tokens accrued since the last refill, capped at capacity
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def available(self, tokens: float = 1) -> bool:
        with self.lock:
            self._refill()
            return self.tokens >= tokens

    def acquire(self, tokens: float = 1) -> bool:
        """
        Attempt to acquire tokens from the bucket (thread-safe).

        Args:
            tokens: Number of tokens to acquire

        Returns:
            True if tokens were acquired, False if insufficient tokens available
        """
        with self.lock:
            self._refill()

            if self.tokens >= tokens:
                self.tokens -= tokens
                return True

            return False

    def seconds_until(self, tokens: float = 1) -> float:
        """Time until the bucket holds the requested amount."""
        with self.lock:
            self._refill()
            # Requests above capacity wait for a full bucket
            missing = min(tokens, self.capacity) - self.tokens
            if missing <= 0:
                return 0.0
            return missing / self.refill_rate


class RateLimiter:
    """
    Multi-dimensional rate limiter using token buckets.

    Enforces both requests-per-minute (RPM) and tokens-per-minute (TPM)
    limits simultaneously to stay within the Gemini API tier.

    Attributes:
        rpm_bucket: Token bucket for request rate limiting
        tpm_bucket: Token bucket for token rate limiting
    """

    def __init__(
        self,
        max_rpm: Optional[int] = None,
        max_tpm: Optional[int] = None
    ):
        """
        Initialize rate limiter with RPM and TPM constraints.

        Args:
            max_rpm: Maximum requests per minute (defaults to settings)
            max_tpm: Maximum tokens per minute (defaults to settings)
        """
        # Imported here to avoid a circular import at package load
        from newsdesk.config.settings import settings

        rpm = max_rpm or settings.max_rpm
        tpm = max_tpm or settings.max_tpm

        # RPM bucket: capacity = max_rpm, refills rpm/60 per second
        self.rpm_bucket = TokenBucket(capacity=rpm, refill_rate=rpm / 60.0)
        # TPM bucket: capacity = max_tpm, refills tpm/60 per second
        self.tpm_bucket = TokenBucket(capacity=tpm, refill_rate=tpm / 60.0)

        logger.debug(f"RateLimiter initialized: {rpm} RPM, {tpm:,} TPM")

    def can_proceed(self, token_count: int) -> bool:
        """
        Check if request can proceed given current rate limits.

        Only consumes from the buckets if BOTH have sufficient capacity.
        A request larger than the whole TPM budget is clamped to it so it
        can still go through once the bucket is full.

        Args:
            token_count: Number of tokens the request will consume

        Returns:
            True if request can proceed, False if rate limited
        """
        token_count = min(token_count, self.tpm_bucket.capacity)

        # Check both buckets before consuming from either
        if not self.rpm_bucket.available(1):
            logger.debug("RPM limit reached, request throttled")
            return False

        if not self.tpm_bucket.available(token_count):
            logger.debug(f"TPM limit reached, request throttled (need {token_count})")
            return False

        # Both fit, consume
        self.rpm_bucket.acquire(1)
        self.tpm_bucket.acquire(token_count)
        return True

    async def wait(self, token_count: int) -> None:
        """Sleep until the request fits both budgets, then consume them."""
        while not self.can_proceed(token_count):
            delay = max(
                self.rpm_bucket.seconds_until(1),
                self.tpm_bucket.seconds_until(token_count),
                0.05,  # Floor against busy-waiting
            )
            logger.info(f"Rate limited, waiting {delay:.1f}s")
            await asyncio.sleep(delay)
