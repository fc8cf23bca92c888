"""Article generation from video transcripts."""

import json
import re
from typing import Any, List, Optional

import openai
from rich.console import Console

from ..config import Config
from ..errors import GenerationError
from ..retry import retry_async
from .llm_provider import LLMProvider, OpenAIProvider
from .models import BodyBlock, GeneratedArticle

console = Console()

TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")

LANGUAGE_NAMES = {
    "ar": "Modern Standard Arabic",
    "en": "English",
    "fr": "French",
    "es": "Spanish",
    "de": "German",
    "tr": "Turkish",
    "fa": "Persian",
    "ur": "Urdu",
    "he": "Hebrew",
}

SYSTEM_PROMPT = """You are a professional journalist at a respected news agency. Your job is to turn transcripts of news videos into professional written news articles.

Strict rules:
1. Write in a neutral, objective news style
2. Do not invent information; use only what the transcript says
3. Keep all names, numbers and quotes exactly as given
4. Write in {language_name}
5. Split the article into clear paragraphs
6. Open with a strong lead that summarizes the story (who, what, where, when)
7. Add sub-headings for the main sections
8. Close with a conclusion or additional context
9. Credit the source

Return JSON in exactly this shape:
{{
  "title": "Article headline",
  "excerpt": "Two or three sentence summary",
  "paragraphs": [
    {{"type": "paragraph", "text": "Paragraph text"}},
    {{"type": "heading", "text": "Sub-heading"}},
    {{"type": "paragraph", "text": "Paragraph text"}}
  ],
  "tags": ["tag1", "tag2", "tag3"]
}}"""

USER_PROMPT = """Turn the following transcript of the video "{title}" from the channel "{source_name}" into a professional news article.

Source link: {source_url}

Transcript:
{transcript}"""


def is_transient_generation_error(error: BaseException) -> bool:
    """Rate limits, server errors, timeouts and dropped connections are retried."""
    if isinstance(error, GenerationError):
        return error.transient
    if isinstance(error, openai.APIConnectionError):
        # Includes APITimeoutError
        return True
    if isinstance(error, openai.APIStatusError):
        return error.status_code in TRANSIENT_STATUS_CODES
    return False


def _parse_block(item: Any) -> Optional[BodyBlock]:
    """Turn one entry of the response's paragraph list into a block."""
    if isinstance(item, str):
        block_type, text, level = "paragraph", item, 2
    elif isinstance(item, dict):
        block_type = item.get("type")
        text = item.get("text")
        level = item.get("level", 2)
        if not isinstance(text, str):
            return None
        if block_type not in ("heading", "paragraph"):
            block_type = "paragraph"
        if not isinstance(level, int) or isinstance(level, bool):
            level = 2
    else:
        return None

    text = text.strip()
    if not text:
        return None

    # Markdown-style headings inside a paragraph
    match = _HEADING_RE.match(text)
    if match:
        block_type, level, text = "heading", len(match.group(1)), match.group(2).strip()

    return BodyBlock(type=block_type, text=text, level=level)


def parse_article_response(response_text: str, fallback_title: str) -> GeneratedArticle:
    """
    Parse the model's JSON answer into a GeneratedArticle.

    Missing title falls back to the video title; missing excerpt or tags are
    tolerated as empty. Each fallback is recorded in ``warnings``.

    Raises:
        GenerationError: If the response is not a JSON object or has no body
    """
    try:
        parsed = json.loads(response_text)
    except (TypeError, ValueError):
        raise GenerationError(
            f"[OpenAI] Failed to parse response as JSON: {str(response_text)[:200]}"
        )
    if not isinstance(parsed, dict):
        raise GenerationError("[OpenAI] Response JSON is not an object")

    warnings: List[str] = []

    raw_blocks = parsed.get("paragraphs")
    if raw_blocks is None:
        raw_blocks = parsed.get("blocks")
    if not isinstance(raw_blocks, list):
        raw_blocks = []

    blocks = [b for b in (_parse_block(item) for item in raw_blocks) if b is not None]
    if not blocks:
        raise GenerationError("[OpenAI] Response contains no article body")

    title = parsed.get("title")
    if not isinstance(title, str) or not title.strip():
        warnings.append("LLM returned empty title, using video title as fallback")
        title = fallback_title
    title = title.strip()

    excerpt = parsed.get("excerpt")
    if not isinstance(excerpt, str) or not excerpt.strip():
        warnings.append("LLM returned empty excerpt")
        excerpt = ""

    tags: List[str] = []
    raw_tags = parsed.get("tags")
    if isinstance(raw_tags, list):
        for tag in raw_tags:
            if isinstance(tag, str) and tag.strip() and tag.strip() not in tags:
                tags.append(tag.strip())
    if not tags:
        warnings.append("LLM returned empty tags array")

    for warning in warnings:
        console.print(f"[yellow][OpenAI] {warning}[/yellow]")

    return GeneratedArticle(
        title=title,
        excerpt=excerpt.strip(),
        blocks=blocks,
        tags=tags,
        warnings=warnings,
    )


class ArticleGenerator:
    """Generate news articles from transcripts through an LLM provider."""

    def __init__(
        self,
        llm_provider: LLMProvider,
        max_transcript_chars: int = 12_000,
        max_tokens: int = 4_000,
        temperature: float = 0.3,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
    ) -> None:
        """
        Initialize article generator.

        Args:
            llm_provider: Provider used for completions
            max_transcript_chars: Transcript characters submitted to the model
            max_tokens: Completion token budget
            temperature: Sampling temperature
            max_retries: Retries after the first attempt on transient errors
            retry_base_delay: First backoff delay in seconds
        """
        self.llm_provider = llm_provider
        self.max_transcript_chars = max_transcript_chars
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

    def _build_prompts(
        self,
        transcript: str,
        title: str,
        source_name: str,
        source_url: str,
        language: str,
    ) -> tuple[str, str]:
        language_name = LANGUAGE_NAMES.get(language.split("-", 1)[0], language)
        system_prompt = SYSTEM_PROMPT.format(language_name=language_name)
        user_prompt = USER_PROMPT.format(
            title=title,
            source_name=source_name,
            source_url=source_url,
            transcript=transcript,
        )
        return system_prompt, user_prompt

    async def generate(
        self,
        transcript: str,
        title: str,
        source_name: str,
        source_url: str,
        language: str = "ar",
    ) -> GeneratedArticle:
        """
        Generate an article from a transcript.

        Raises:
            GenerationError: On bad input, unusable responses, or transient
                failures that outlived every retry
            openai.OpenAIError: On non-transient API errors
        """
        if not transcript or not transcript.strip():
            raise GenerationError("[OpenAI] Transcript is empty")
        if not title or not title.strip():
            raise GenerationError("[OpenAI] Video title is empty")

        if len(transcript) > self.max_transcript_chars:
            console.print(
                f"[yellow][OpenAI] Transcript truncated from {len(transcript)} "
                f"to {self.max_transcript_chars} chars[/yellow]"
            )
            transcript = transcript[: self.max_transcript_chars]

        system_prompt, user_prompt = self._build_prompts(
            transcript, title, source_name, source_url, language
        )

        response_text = await retry_async(
            lambda: self.llm_provider.complete_json(
                system_prompt,
                user_prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            ),
            is_retryable=is_transient_generation_error,
            attempts=self.max_retries + 1,
            base_delay=self.retry_base_delay,
            label="OpenAI",
        )

        return parse_article_response(response_text, fallback_title=title)


def build_article_generator(config: Config) -> Optional[ArticleGenerator]:
    """Build the generator from config, or None when no LLM is configured."""
    llm_config = config.get_llm_config()

    if llm_config.get("provider") != "openai":
        console.print(
            f"[yellow]Warning: Unknown LLM provider '{llm_config.get('provider')}'. "
            f"Article generation disabled.[/yellow]"
        )
        return None

    api_key = llm_config.get("api_key")
    if not api_key:
        console.print("[yellow]Warning: No OpenAI API key found. Article generation disabled.[/yellow]")
        return None

    provider = OpenAIProvider(
        api_key=api_key,
        model=llm_config.get("model", "gpt-4o-mini"),
        base_url=llm_config.get("base_url"),
        timeout=llm_config.get("timeout", 120.0),
    )
    return ArticleGenerator(
        provider,
        max_transcript_chars=llm_config["max_transcript_chars"],
        max_tokens=llm_config["max_tokens"],
        temperature=llm_config["temperature"],
        max_retries=llm_config["max_retries"],
        retry_base_delay=llm_config["retry_base_delay"],
    )
