"""Tests for stage reply parsing and the Gemini transform service."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from newsdesk.data_management.schemas import (
    ArticleType,
    ExtractedFacts,
    RawArticle,
    RewrittenArticle,
    SoftVerification,
)
from newsdesk.errors import StageError
from newsdesk.llm.gemini_client import GenerationResult
from newsdesk.llm.usage import AIUsage
from newsdesk.transform.stages import (
    EXTRACT_FACTS,
    REWRITE,
    GeminiTransformService,
    extract_json_from_response,
    parse_stage_output,
)

FACTS_JSON = {
    "published_at": "2025-05-22",
    "classification": {"primary": "product_launch", "confidence": 0.9, "signals": ["launch"]},
    "features": ["tool use"],
}

REWRITE_JSON = {
    "title_text": "Claude 4 arrives",
    "title_emoji": "🚀",
    "summary_plain": "Anthropic released Claude 4.",
    "body_html": "<p>Released on May 22, 2025.</p>",
    "key_takeaways": [{"icon": "✅", "text": "New models"}],
    "difficulty": "Easy",
}


@pytest.fixture
def article():
    return RawArticle(
        url="https://www.anthropic.com/news/claude-4",
        title="Introducing Claude 4",
        body_text="Today, May 22, 2025, we are releasing Claude 4.",
        source_name="Anthropic",
        published_at=datetime(2025, 5, 22, tzinfo=timezone.utc),
    )


class TestExtractJson:
    """Tests for JSON extraction from model replies."""

    def test_plain_json(self):
        assert extract_json_from_response('{"a": 1}') == {"a": 1}

    def test_markdown_fence(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nDone.'
        assert extract_json_from_response(text) == {"a": 1}

    def test_fence_without_language(self):
        assert extract_json_from_response('```\n{"a": 2}\n```') == {"a": 2}

    def test_surrounding_prose(self):
        assert extract_json_from_response('Result: {"a": {"b": 3}} thanks') == {"a": {"b": 3}}

    def test_no_json_raises(self):
        with pytest.raises(json.JSONDecodeError):
            extract_json_from_response("no json here")


class TestParseStageOutput:
    """Malformed replies are rejected, never passed on."""

    def test_valid_facts(self):
        facts = parse_stage_output(EXTRACT_FACTS, json.dumps(FACTS_JSON), ExtractedFacts)

        assert facts.classification.primary == ArticleType.PRODUCT_LAUNCH
        assert facts.published_at == "2025-05-22"

    def test_unknown_article_type_falls_back_to_general(self):
        data = {"classification": {"primary": "Breaking News"}}

        facts = parse_stage_output(EXTRACT_FACTS, json.dumps(data), ExtractedFacts)

        assert facts.classification.primary == ArticleType.GENERAL

    def test_difficulty_is_normalized(self):
        rewritten = parse_stage_output(REWRITE, json.dumps(REWRITE_JSON), RewrittenArticle)

        assert rewritten.difficulty == "easy"

    def test_invalid_json(self):
        with pytest.raises(StageError) as exc_info:
            parse_stage_output(REWRITE, "{not json", RewrittenArticle)

        assert exc_info.value.kind == StageError.MALFORMED
        assert exc_info.value.stage == REWRITE

    def test_missing_required_field(self):
        data = {k: v for k, v in REWRITE_JSON.items() if k != "body_html"}

        with pytest.raises(StageError) as exc_info:
            parse_stage_output(REWRITE, json.dumps(data), RewrittenArticle)

        assert exc_info.value.kind == StageError.MALFORMED

    def test_array_instead_of_object(self):
        with pytest.raises(StageError):
            parse_stage_output(REWRITE, "[1, 2]", RewrittenArticle)

    def test_score_out_of_range(self):
        with pytest.raises(StageError):
            parse_stage_output("soft_verify", '{"score": 140}', SoftVerification)


class TestGeminiTransformService:
    """Tests for the service on a mocked client."""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.model_name = "gemini-2.5-flash"
        client.generate = AsyncMock()
        return client

    def reply(self, payload):
        return GenerationResult(
            text=json.dumps(payload),
            usage=AIUsage.from_tokens("gemini-2.5-flash", 1000, 200),
        )

    @pytest.mark.asyncio
    async def test_extract_facts(self, client, article):
        client.generate.return_value = self.reply(FACTS_JSON)
        service = GeminiTransformService(client=client)

        output = await service.extract_facts(article)

        assert output.value.features == ["tool use"]
        assert output.usage.input_tokens == 1000
        prompt = client.generate.await_args.args[0]
        assert article.body_text in prompt
        assert client.generate.await_args.kwargs["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_rewrite_includes_feedback(self, client, article):
        client.generate.return_value = self.reply(REWRITE_JSON)
        service = GeminiTransformService(client=client)
        facts = ExtractedFacts.model_validate(FACTS_JSON)

        await service.rewrite(article, facts, feedback=["Date changed: May 22 -> May 23"])

        prompt = client.generate.await_args.args[0]
        assert "Date changed: May 22 -> May 23" in prompt
        assert client.generate.await_args.kwargs["stage"] == REWRITE

    @pytest.mark.asyncio
    async def test_soft_verify(self, client, article):
        client.generate.return_value = self.reply({"score": 88, "issues": []})
        service = GeminiTransformService(client=client)
        facts = ExtractedFacts.model_validate(FACTS_JSON)
        rewritten = RewrittenArticle.model_validate(REWRITE_JSON)

        output = await service.soft_verify(article, facts, rewritten)

        assert output.value.score == 88

    @pytest.mark.asyncio
    async def test_malformed_reply_raises(self, client, article):
        client.generate.return_value = GenerationResult(
            text="Sorry, I cannot help with that.",
            usage=AIUsage.from_tokens("gemini-2.5-flash", 10, 10),
        )
        service = GeminiTransformService(client=client)

        with pytest.raises(StageError) as exc_info:
            await service.extract_facts(article)

        assert exc_info.value.kind == StageError.MALFORMED

    def test_model_name_from_client(self, client):
        assert GeminiTransformService(client=client).model_name == "gemini-2.5-flash"
