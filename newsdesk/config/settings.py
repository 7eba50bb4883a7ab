"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Attributes:
        gemini_api_key: Google Gemini API key (required to run ingestion)
        gemini_model: Gemini model used for all three transform stages
        max_rpm: Maximum requests per minute against the Gemini API
        max_tpm: Maximum tokens per minute
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        fetch_timeout: HTTP timeout for article fetches in seconds
        max_body_chars: Article body truncation length
        min_fact_check_score: Effective score needed to skip review
        max_retries: Quality-driven rewrite retries per article
        hard_check_pass_threshold: Minimum hard check score to pass
        delay_ms: Default pause between batch items
        content_store_path: Optional JSON file backing the content store
    """

    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key"
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Default Gemini model identifier"
    )
    max_rpm: int = Field(
        default=15,
        description="Maximum requests per minute (free tier limit)"
    )
    max_tpm: int = Field(
        default=1_000_000,
        description="Maximum tokens per minute"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    fetch_timeout: float = Field(
        default=30.0,
        description="HTTP timeout for article fetches (seconds)"
    )
    max_body_chars: int = Field(
        default=10_000,
        description="Maximum article body length kept for rewriting"
    )
    min_fact_check_score: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Effective quality score required to publish without review"
    )
    max_retries: int = Field(
        default=1,
        ge=0,
        description="Rewrite retries when quality is below threshold"
    )
    hard_check_pass_threshold: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Minimum deterministic hard check score"
    )
    delay_ms: int = Field(
        default=30_000,
        ge=0,
        description="Pause between batch items (milliseconds)"
    )
    content_store_path: str | None = Field(
        default=None,
        description="JSON file for content store persistence (memory-only if unset)"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Singleton instance - import this throughout the application
settings = Settings()
