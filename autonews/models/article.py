"""Article model for generated, publishable articles."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import DBModel


class ArticleRecord(DBModel):
    """Machine-authored article derived from one video transcript."""

    title: str = Field(..., description="Article title")
    excerpt: str = Field("", description="Short summary")
    content: Dict[str, Any] = Field(..., description="Block-tree rich-text document")
    author_name: str = Field(..., description="Source display name")
    source_id: int = Field(..., description="Foreign key to sources table")
    video_record_id: int = Field(..., description="Foreign key to videos table (one-to-one)")
    youtube_url: str = Field(..., description="Source video URL")
    published_at: datetime = Field(..., description="Publication timestamp")
    is_auto_generated: bool = Field(True, description="Marks machine-authored articles")
    tags: List[str] = Field(default_factory=list, description="Free-text tags")
    categories: List[str] = Field(default_factory=list, description="Assigned categories")
    hero_image_id: Optional[int] = Field(None, description="Foreign key to media table")
    transcript: Optional[str] = Field(None, description="Length-capped transcript copy")
    transcript_language: Optional[str] = Field(None, description="Transcript language")
    status: str = Field("published", description="Publication status")
