"""Data models for ingestion."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


def watch_url(video_id: str) -> str:
    """Build the public watch URL for a video."""
    return f"https://www.youtube.com/watch?v={video_id}"


def default_thumbnail_url(video_id: str) -> str:
    """Build the highest-resolution thumbnail URL YouTube serves for a video."""
    return f"https://i.ytimg.com/vi/{video_id}/maxresdefault.jpg"


class VideoMeta(BaseModel):
    """Video metadata as returned by a provider."""

    video_id: str = Field(..., description="External YouTube video ID")
    title: str = Field("", description="Video title")
    description: str = Field("", description="Description or snippet")
    thumbnail_url: Optional[str] = Field(None, description="Thumbnail URL")
    youtube_url: str = Field("", description="Watch URL")
    published_text: str = Field("", description="Publish time exactly as the provider returned it")
    published_at: Optional[datetime] = Field(None, description="Normalized publish time")
    duration: str = Field("", description="Human-readable duration")
    view_count: int = Field(0, description="View count", ge=0)

    def model_post_init(self, __context) -> None:
        """Fill URL defaults derived from the video ID."""
        if not self.youtube_url:
            self.youtube_url = watch_url(self.video_id)
        if not self.thumbnail_url:
            self.thumbnail_url = default_thumbnail_url(self.video_id)


class VideoPage(BaseModel):
    """One page of a channel's video feed."""

    items: List[VideoMeta] = Field(default_factory=list, description="Videos on this page")
    next_cursor: Optional[str] = Field(None, description="Continuation cursor, None on the last page")
