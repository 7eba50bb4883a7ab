"""Gemini API client with exponential backoff and rate limiting."""

from dataclasses import dataclass
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types.generation_types import BlockedPromptException
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from newsdesk.config.settings import settings
from newsdesk.errors import ConfigurationError, StageError
from newsdesk.llm.rate_limiter import RateLimiter
from newsdesk.llm.usage import AIUsage

# Errors worth another attempt; anything else fails the stage at once.
TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.InternalServerError,
    google_exceptions.DeadlineExceeded,
    google_exceptions.ResourceExhausted,
)


@dataclass
class GenerationResult:
    """Raw model text plus the usage it cost."""

    text: str
    usage: AIUsage


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"Retry {retry_state.attempt_number} for Gemini call "
        f"after {retry_state.next_action.sleep:.2f}s: {exc}"
    )


class GeminiClient:
    """
    Google Gemini API client with rate limiting and error handling.

    Every call waits on the shared RateLimiter, retries transient API errors
    with exponential backoff, and reports token usage for cost tracking.
    Failures surface as StageError so callers see one failure type.

    Attributes:
        model_name: Gemini model identifier
        model: Configured Gemini generative model instance
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        max_attempts: int = 3,
        model: Any = None,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: API key (defaults to settings.gemini_api_key)
            model_name: Model identifier (defaults to settings.gemini_model)
            rate_limiter: Shared limiter (a new one from settings if omitted)
            max_attempts: Attempts per call for transient errors
            model: Pre-built model object (skips genai configuration)

        Raises:
            ConfigurationError: If no API key is available
        """
        self.model_name = model_name or settings.gemini_model
        self.rate_limiter = rate_limiter or RateLimiter()
        self.max_attempts = max_attempts

        if model is not None:
            self.model = model
        else:
            key = api_key or settings.gemini_api_key
            if not key:
                raise ConfigurationError("GEMINI_API_KEY not configured in environment")
            genai.configure(api_key=key)
            self.model = genai.GenerativeModel(self.model_name)

        logger.info(f"Gemini client initialized with model {self.model_name}")

    @staticmethod
    def estimate_tokens(text: str) -> int:
        """Rough token estimate (4 chars per token) for rate limiting."""
        return max(1, len(text) // 4)

    async def generate(
        self,
        prompt: str,
        temperature: float = 0.7,
        stage: str = "generate",
    ) -> GenerationResult:
        """
        Generate content with rate limiting and exponential backoff.

        Args:
            prompt: Input prompt
            temperature: Sampling temperature (0.0-1.0). Lower = more deterministic
            stage: Stage name used in errors and logs

        Returns:
            GenerationResult with text and usage

        Raises:
            StageError: kind "quota" when the quota stays exhausted,
                "malformed" when the prompt is blocked or no text comes back,
                "outage" for any other API failure
        """
        await self.rate_limiter.wait(self.estimate_tokens(prompt))

        generation_config = genai.types.GenerationConfig(temperature=temperature)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=1, min=2, max=30),
                retry=retry_if_exception_type(TRANSIENT_ERRORS),
                before_sleep=_log_retry,
                reraise=True,
            ):
                with attempt:
                    response = await self.model.generate_content_async(
                        prompt,
                        generation_config=generation_config,
                    )
        except BlockedPromptException as e:
            logger.error(f"Prompt blocked by safety filters in {stage}: {e}")
            raise StageError(stage, f"prompt blocked: {e}", kind=StageError.MALFORMED) from e
        except google_exceptions.ResourceExhausted as e:
            logger.error(f"Gemini quota exhausted in {stage}: {e}")
            raise StageError(stage, str(e), kind=StageError.QUOTA) from e
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Gemini API error in {stage}: {e}")
            raise StageError(stage, str(e), kind=StageError.OUTAGE) from e

        try:
            text = response.text
        except ValueError as e:
            # No candidate text (finish reason SAFETY, RECITATION, ...)
            raise StageError(stage, f"empty response: {e}", kind=StageError.MALFORMED) from e

        return GenerationResult(text=text, usage=self._usage_from(response))

    def _usage_from(self, response: Any) -> AIUsage:
        metadata = getattr(response, "usage_metadata", None)
        input_tokens = getattr(metadata, "prompt_token_count", 0) or 0
        output_tokens = getattr(metadata, "candidates_token_count", 0) or 0
        return AIUsage.from_tokens(self.model_name, input_tokens, output_tokens)
