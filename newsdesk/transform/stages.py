"""Generative transform stages: fact extraction, rewrite, soft verification.

GenerativeService is the interface the orchestrator depends on. The Gemini
implementation formats the stage prompt, calls the model once, and
validates the JSON reply against the stage schema. Anything that does not
validate is a StageError of kind "malformed"; it is never passed on.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, Optional, Protocol, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from newsdesk.config.prompts import (
    FACT_EXTRACTION_PROMPT,
    REWRITE_FEEDBACK_SECTION,
    REWRITE_PROMPT,
    SOFT_VERIFICATION_PROMPT,
)
from newsdesk.data_management.schemas import (
    ExtractedFacts,
    RawArticle,
    RewrittenArticle,
    SoftVerification,
)
from newsdesk.errors import StageError
from newsdesk.llm.usage import AIUsage

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

EXTRACT_FACTS = "extract_facts"
REWRITE = "rewrite"
SOFT_VERIFY = "soft_verify"

# Sampling temperature per stage
STAGE_TEMPERATURES = {
    EXTRACT_FACTS: 0.1,
    REWRITE: 0.7,
    SOFT_VERIFY: 0.1,
}

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


@dataclass
class StageOutput(Generic[T]):
    """Validated stage value plus the usage of the call that produced it."""

    value: T
    usage: AIUsage


class GenerativeService(Protocol):
    """The three generative operations used by the pipeline."""

    model_name: str

    async def extract_facts(self, article: RawArticle) -> StageOutput[ExtractedFacts]:
        ...

    async def rewrite(
        self,
        article: RawArticle,
        facts: ExtractedFacts,
        feedback: Optional[list[str]] = None,
    ) -> StageOutput[RewrittenArticle]:
        ...

    async def soft_verify(
        self,
        article: RawArticle,
        facts: ExtractedFacts,
        rewritten: RewrittenArticle,
    ) -> StageOutput[SoftVerification]:
        ...


def extract_json_from_response(response_text: str) -> Any:
    """
    Parse JSON from an LLM response, handling markdown blocks.

    Args:
        response_text: Raw model output

    Returns:
        Parsed JSON value

    Raises:
        json.JSONDecodeError: If no valid JSON is found
    """
    text = response_text.strip()

    fence = _FENCE_RE.search(text)
    if fence:
        text = fence.group(1).strip()
    elif not text.startswith("{"):
        # Surrounding prose: take the outermost object
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            text = text[start:end + 1]

    return json.loads(text)


def parse_stage_output(stage: str, response_text: str, model: Type[M]) -> M:
    """
    Validate a raw stage reply against its schema.

    Raises:
        StageError: kind "malformed" on invalid JSON or schema violations
    """
    try:
        data = extract_json_from_response(response_text)
    except json.JSONDecodeError as e:
        raise StageError(stage, f"invalid JSON: {e}", kind=StageError.MALFORMED) from e

    if not isinstance(data, dict):
        raise StageError(stage, "expected a JSON object", kind=StageError.MALFORMED)

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise StageError(
            stage, f"schema violation: {e.error_count()} error(s)", kind=StageError.MALFORMED
        ) from e


class GeminiTransformService:
    """
    GenerativeService backed by the Gemini client.

    The client is created lazily so that constructing the service (and
    importing the pipeline) never requires credentials.
    """

    def __init__(self, client: Any = None):
        """
        Args:
            client: GeminiClient (or compatible) instance, created on first use if omitted
        """
        self._client = client
        self.logger = logger.bind(component="GeminiTransformService")

    @property
    def client(self):
        if self._client is None:
            from newsdesk.llm.gemini_client import GeminiClient

            self._client = GeminiClient()
        return self._client

    @property
    def model_name(self) -> str:
        if self._client is not None:
            return self._client.model_name
        from newsdesk.config.settings import settings

        return settings.gemini_model

    def ensure_ready(self) -> None:
        """Create the client now; raises ConfigurationError without credentials."""
        _ = self.client

    async def _run(self, stage: str, prompt: str, model: Type[M]) -> StageOutput[M]:
        result = await self.client.generate(
            prompt, temperature=STAGE_TEMPERATURES[stage], stage=stage
        )
        value = parse_stage_output(stage, result.text, model)
        self.logger.debug(
            f"{stage} complete: {result.usage.input_tokens} in / "
            f"{result.usage.output_tokens} out, ${result.usage.cost_usd:.4f}"
        )
        return StageOutput(value=value, usage=result.usage)

    async def extract_facts(self, article: RawArticle) -> StageOutput[ExtractedFacts]:
        prompt = FACT_EXTRACTION_PROMPT.format(content=article.body_text)
        return await self._run(EXTRACT_FACTS, prompt, ExtractedFacts)

    async def rewrite(
        self,
        article: RawArticle,
        facts: ExtractedFacts,
        feedback: Optional[list[str]] = None,
    ) -> StageOutput[RewrittenArticle]:
        prompt = REWRITE_PROMPT.format(
            title=article.title,
            source_name=article.source_name,
            facts=facts.model_dump_json(indent=2),
            content=article.body_text,
        )
        if feedback:
            prompt += REWRITE_FEEDBACK_SECTION.format(
                issues="\n".join(f"- {issue}" for issue in feedback)
            )
        return await self._run(REWRITE, prompt, RewrittenArticle)

    async def soft_verify(
        self,
        article: RawArticle,
        facts: ExtractedFacts,
        rewritten: RewrittenArticle,
    ) -> StageOutput[SoftVerification]:
        prompt = SOFT_VERIFICATION_PROMPT.format(
            facts=facts.model_dump_json(indent=2),
            content=article.body_text,
            title=rewritten.title_text,
            one_liner=rewritten.one_liner or "",
            summary=rewritten.summary_plain,
            body_html=rewritten.body_html,
            insight_html=rewritten.insight_html or "",
            key_takeaways=json.dumps(
                [kt.model_dump() for kt in rewritten.key_takeaways], ensure_ascii=False
            ),
        )
        return await self._run(SOFT_VERIFY, prompt, SoftVerification)
