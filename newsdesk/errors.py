"""Exception taxonomy for the ingestion pipeline.

- FetchError: page could not be retrieved or parsed into an article.
- StageError: the generative service failed (outage, quota, malformed reply).
- PipelineError: a single URL could not be processed end to end.
- PersistenceError / DuplicateSourceUrlError: datastore failures.
- ConfigurationError: missing credentials, fatal before a run starts.

A verification shortfall is not an exception; it is reported through
PipelineResult.needs_review.
"""

from typing import Optional


class NewsdeskError(Exception):
    """Base class for all newsdesk errors."""


class ConfigurationError(NewsdeskError):
    """Required configuration (e.g. API credentials) is missing."""


class FetchError(NewsdeskError):
    """Article could not be fetched or extracted.

    Attributes:
        url: URL that failed
        reason: Human-readable failure reason
    """

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason} ({url})")


class StageError(NewsdeskError):
    """Generative service stage failed.

    Attributes:
        stage: Stage name (extract_facts, rewrite, soft_verify)
        kind: Failure class: "outage", "quota" or "malformed"
    """

    OUTAGE = "outage"
    QUOTA = "quota"
    MALFORMED = "malformed"

    def __init__(self, stage: str, message: str, kind: str = OUTAGE):
        self.stage = stage
        self.kind = kind
        super().__init__(f"{stage} failed ({kind}): {message}")


class PipelineError(NewsdeskError):
    """Processing a URL through the pipeline failed.

    Attributes:
        url: URL being processed
        stage: Step that failed (fetch, extract_facts, rewrite, soft_verify)
        cause: Underlying FetchError/StageError if any
    """

    def __init__(
        self,
        url: str,
        stage: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        self.url = url
        self.stage = stage
        self.cause = cause
        super().__init__(message)


class PersistenceError(NewsdeskError):
    """Datastore read or write failed."""


class DuplicateSourceUrlError(PersistenceError):
    """A live record already exists for this source URL."""

    def __init__(self, source_url: str, existing_id: str, existing_status: str):
        self.source_url = source_url
        self.existing_id = existing_id
        self.existing_status = existing_status
        super().__init__(
            f"Live record {existing_id} ({existing_status}) already exists for {source_url}"
        )
