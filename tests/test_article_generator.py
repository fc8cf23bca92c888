"""Tests for article generation."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from autonews.config import Config, ConfigModel
from autonews.errors import GenerationError
from autonews.generation import (
    ArticleGenerator,
    OpenAIProvider,
    build_article_generator,
    is_transient_generation_error,
    parse_article_response,
)

from .fakes import OPENAI_URL, ScriptedLLM, status_error

VALID_RESPONSE = json.dumps(
    {
        "title": "عنوان المقال",
        "excerpt": "ملخص قصير",
        "paragraphs": [
            {"type": "paragraph", "text": "الفقرة الأولى"},
            {"type": "heading", "text": "عنوان فرعي"},
            {"type": "paragraph", "text": "الفقرة الثانية"},
        ],
        "tags": ["سياسة", "أخبار"],
    },
    ensure_ascii=False,
)


def make_generator(outcomes, **kwargs):
    llm = ScriptedLLM(outcomes)
    kwargs.setdefault("retry_base_delay", 0)
    return ArticleGenerator(llm, **kwargs), llm


class TestParseArticleResponse:
    """Tests for parse_article_response."""

    def test_valid_response(self):
        article = parse_article_response(VALID_RESPONSE, fallback_title="Video")

        assert article.title == "عنوان المقال"
        assert article.excerpt == "ملخص قصير"
        assert [b.type for b in article.blocks] == ["paragraph", "heading", "paragraph"]
        assert article.tags == ["سياسة", "أخبار"]
        assert article.warnings == []

    def test_missing_title_uses_fallback(self):
        response = json.dumps({"paragraphs": [{"type": "paragraph", "text": "Body"}], "excerpt": "x", "tags": ["a"]})

        article = parse_article_response(response, fallback_title="Video title")

        assert article.title == "Video title"
        assert len(article.warnings) == 1

    def test_missing_excerpt_and_tags(self):
        response = json.dumps({"title": "T", "paragraphs": [{"type": "paragraph", "text": "Body"}]})

        article = parse_article_response(response, fallback_title="Video")

        assert article.excerpt == ""
        assert article.tags == []
        assert len(article.warnings) == 2

    def test_block_normalization(self):
        response = json.dumps(
            {
                "title": "T",
                "excerpt": "E",
                "tags": ["a", "a", " b ", ""],
                "blocks": [
                    {"type": "quote", "text": "Treated as paragraph"},
                    {"text": "No type"},
                    {"type": "paragraph", "text": "   "},
                    {"type": "heading", "text": "Section", "level": 3},
                    "plain string",
                    {"type": "paragraph", "text": "## Markdown heading"},
                    42,
                ],
            }
        )

        article = parse_article_response(response, fallback_title="Video")

        assert [(b.type, b.text) for b in article.blocks] == [
            ("paragraph", "Treated as paragraph"),
            ("paragraph", "No type"),
            ("heading", "Section"),
            ("paragraph", "plain string"),
            ("heading", "Markdown heading"),
        ]
        assert article.blocks[2].level == 3
        assert article.blocks[4].level == 2
        assert article.tags == ["a", "b"]

    @pytest.mark.parametrize("text", ["not json", "[1, 2]", '"string"', json.dumps({"title": "T"})])
    def test_unusable_responses(self, text):
        with pytest.raises(GenerationError) as exc_info:
            parse_article_response(text, fallback_title="Video")
        assert exc_info.value.transient is False


class TestIsTransientGenerationError:
    """Tests for retry classification."""

    def test_rate_limit(self):
        assert is_transient_generation_error(status_error(openai.RateLimitError, 429))

    def test_server_errors(self):
        assert is_transient_generation_error(status_error(openai.InternalServerError, 500))
        assert is_transient_generation_error(status_error(openai.InternalServerError, 503))

    def test_connection_errors(self):
        request = httpx.Request("POST", OPENAI_URL)
        assert is_transient_generation_error(openai.APIConnectionError(request=request))
        assert is_transient_generation_error(openai.APITimeoutError(request=request))

    def test_client_errors_are_not_transient(self):
        assert not is_transient_generation_error(status_error(openai.BadRequestError, 400))
        assert not is_transient_generation_error(status_error(openai.AuthenticationError, 401))

    def test_generation_error_flag(self):
        assert is_transient_generation_error(GenerationError("slow", transient=True))
        assert not is_transient_generation_error(GenerationError("bad"))
        assert not is_transient_generation_error(ValueError("other"))


class TestArticleGenerator:
    """Tests for ArticleGenerator.generate."""

    async def test_generates_article(self):
        generator, llm = make_generator([VALID_RESPONSE])

        article = await generator.generate("transcript", "Video", "Channel", "https://youtu.be/x", "ar")

        assert article.title == "عنوان المقال"
        system_prompt, user_prompt = llm.prompts[0]
        assert "Modern Standard Arabic" in system_prompt
        assert "Channel" in user_prompt
        assert "https://youtu.be/x" in user_prompt

    async def test_truncates_transcript(self):
        generator, llm = make_generator([VALID_RESPONSE], max_transcript_chars=600)

        await generator.generate("x" * 1000, "Video", "Channel", "https://youtu.be/x")

        user_prompt = llm.prompts[0][1]
        assert "x" * 600 in user_prompt
        assert "x" * 601 not in user_prompt

    async def test_empty_input_is_rejected_without_calls(self):
        generator, llm = make_generator([VALID_RESPONSE])

        with pytest.raises(GenerationError):
            await generator.generate("   ", "Video", "Channel", "url")
        with pytest.raises(GenerationError):
            await generator.generate("transcript", "", "Channel", "url")

        assert llm.prompts == []

    async def test_retries_transient_errors(self):
        generator, llm = make_generator(
            [status_error(openai.RateLimitError, 429), status_error(openai.InternalServerError, 503), VALID_RESPONSE]
        )

        article = await generator.generate("transcript", "Video", "Channel", "url")

        assert article.title == "عنوان المقال"
        assert len(llm.prompts) == 3

    async def test_gives_up_after_max_retries(self):
        generator, llm = make_generator([status_error(openai.RateLimitError, 429)], max_retries=3)

        with pytest.raises(openai.RateLimitError):
            await generator.generate("transcript", "Video", "Channel", "url")

        assert len(llm.prompts) == 4

    async def test_non_transient_errors_are_not_retried(self):
        generator, llm = make_generator([status_error(openai.BadRequestError, 400)])

        with pytest.raises(openai.BadRequestError):
            await generator.generate("transcript", "Video", "Channel", "url")

        assert len(llm.prompts) == 1

    async def test_invalid_json_is_not_retried(self):
        generator, llm = make_generator(["not json"])

        with pytest.raises(GenerationError):
            await generator.generate("transcript", "Video", "Channel", "url")

        assert len(llm.prompts) == 1


def chat_response(content, prompt_tokens=100, completion_tokens=50):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


def mock_client(create):
    client = MagicMock()
    client.chat.completions.create = create
    return client


class TestOpenAIProvider:
    """Tests for the OpenAI provider."""

    async def test_requests_json_object(self):
        create = AsyncMock(return_value=chat_response('{"title": "T"}'))
        provider = OpenAIProvider("sk-test", client=mock_client(create))

        content = await provider.complete_json("system", "user", max_tokens=4000, temperature=0.3)

        assert content == '{"title": "T"}'
        kwargs = create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 4000
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    async def test_tracks_usage(self):
        create = AsyncMock(return_value=chat_response("{}", 1000, 1000))
        provider = OpenAIProvider("sk-test", client=mock_client(create))

        await provider.complete_json("s", "u", max_tokens=10, temperature=0)
        stats = provider.get_usage_stats()

        assert stats.api_calls == 1
        assert stats.tokens_used == 2000
        assert stats.cost_estimate == pytest.approx(0.00075)

    async def test_empty_content(self):
        create = AsyncMock(return_value=chat_response(None))
        provider = OpenAIProvider("sk-test", client=mock_client(create))

        with pytest.raises(GenerationError):
            await provider.complete_json("s", "u", max_tokens=10, temperature=0)

    async def test_wall_clock_budget(self):
        async def hang(**kwargs):
            await asyncio.sleep(10)

        provider = OpenAIProvider("sk-test", timeout=0.05, client=mock_client(hang))

        with pytest.raises(GenerationError) as exc_info:
            await provider.complete_json("s", "u", max_tokens=10, temperature=0)

        assert exc_info.value.transient is True


class TestBuildArticleGenerator:
    """Tests for build_article_generator."""

    def test_none_without_api_key(self, monkeypatch):
        monkeypatch.delenv("AUTONEWS_TEST_OPENAI_KEY", raising=False)
        config = Config.from_model(ConfigModel(llm={"api_key_env": "AUTONEWS_TEST_OPENAI_KEY"}))

        assert build_article_generator(config) is None

    def test_builds_from_environment(self, monkeypatch):
        monkeypatch.setenv("AUTONEWS_TEST_OPENAI_KEY", "sk-test")
        config = Config.from_model(
            ConfigModel(llm={"api_key_env": "AUTONEWS_TEST_OPENAI_KEY", "max_retries": 2, "model": "gpt-4o"})
        )

        generator = build_article_generator(config)

        assert isinstance(generator, ArticleGenerator)
        assert generator.max_retries == 2
        assert generator.llm_provider.model == "gpt-4o"

    def test_unknown_provider(self, monkeypatch):
        monkeypatch.setenv("AUTONEWS_TEST_OPENAI_KEY", "sk-test")
        config = Config.from_model(
            ConfigModel(llm={"provider": "other", "api_key_env": "AUTONEWS_TEST_OPENAI_KEY"})
        )

        assert build_article_generator(config) is None
