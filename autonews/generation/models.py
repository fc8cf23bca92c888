"""Data models for generation."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

BlockType = Literal["heading", "paragraph"]


class BodyBlock(BaseModel):
    """One block of article body text."""

    type: BlockType = Field("paragraph", description="Block type")
    text: str = Field(..., description="Plain text of the block")
    level: int = Field(2, description="Heading level (1-6), ignored for paragraphs")

    @field_validator("level")
    @classmethod
    def clamp_level(cls, v: int) -> int:
        """Clamp heading level to h1-h6."""
        return min(max(v, 1), 6)


class GeneratedArticle(BaseModel):
    """Structured article returned by the generator."""

    title: str = Field(..., description="Article title")
    excerpt: str = Field("", description="Short summary")
    blocks: List[BodyBlock] = Field(default_factory=list, description="Body blocks in order")
    tags: List[str] = Field(default_factory=list, description="Free-text tags")
    warnings: List[str] = Field(default_factory=list, description="Fallbacks applied while parsing")


class GenerationStats(BaseModel):
    """Statistics for generation process."""

    api_calls: int = Field(0, description="Number of API calls made")
    tokens_used: int = Field(0, description="Total tokens used")
    cost_estimate: float = Field(0.0, description="Estimated cost in USD")
    model: Optional[str] = Field(None, description="Model name")
