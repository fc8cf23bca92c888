"""Article generation and document conversion."""

from .article_generator import (
    ArticleGenerator,
    build_article_generator,
    is_transient_generation_error,
    parse_article_response,
)
from .document import RTL_LANGUAGES, convert_to_document, text_direction
from .llm_provider import LLMProvider, OpenAIProvider
from .models import BodyBlock, GeneratedArticle, GenerationStats

__all__ = [
    "ArticleGenerator",
    "BodyBlock",
    "GeneratedArticle",
    "GenerationStats",
    "LLMProvider",
    "OpenAIProvider",
    "RTL_LANGUAGES",
    "build_article_generator",
    "convert_to_document",
    "is_transient_generation_error",
    "parse_article_response",
    "text_direction",
]
