"""Video record model and its processing state machine."""

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import Field

from .base import DBModel


class VideoStatus(str, Enum):
    """Processing status of a discovered video."""

    PENDING = "pending"
    FETCHED = "fetched"
    TRANSCRIBED = "transcribed"
    ARTICLE_GENERATED = "article_generated"
    NO_TRANSCRIPT = "no_transcript"
    FAILED = "failed"


TERMINAL_STATUSES: FrozenSet[VideoStatus] = frozenset(
    {VideoStatus.ARTICLE_GENERATED, VideoStatus.NO_TRANSCRIPT, VideoStatus.FAILED}
)

# Statuses the recovery surface deletes so their ids become "new" again
RETRYABLE_STATUSES: FrozenSet[VideoStatus] = frozenset(
    {VideoStatus.NO_TRANSCRIPT, VideoStatus.FAILED}
)

_TRANSITIONS: Dict[VideoStatus, FrozenSet[VideoStatus]] = {
    VideoStatus.PENDING: frozenset({VideoStatus.FETCHED, VideoStatus.FAILED}),
    VideoStatus.FETCHED: frozenset(
        {VideoStatus.TRANSCRIBED, VideoStatus.NO_TRANSCRIPT, VideoStatus.FAILED}
    ),
    VideoStatus.TRANSCRIBED: frozenset({VideoStatus.ARTICLE_GENERATED, VideoStatus.FAILED}),
}


def can_transition(current: VideoStatus, target: VideoStatus) -> bool:
    """Return True if a record may move from ``current`` to ``target``."""
    current = VideoStatus(current)
    target = VideoStatus(target)
    if current == target:
        return True
    return target in _TRANSITIONS.get(current, frozenset())


class VideoRecord(DBModel):
    """One external video discovered for a source."""

    video_id: str = Field(..., description="External YouTube video ID (unique)")
    title: str = Field(..., description="Video title")
    source_id: int = Field(..., description="Foreign key to sources table")
    youtube_url: str = Field(..., description="Watch URL")
    description: str = Field("", description="Video description snippet")
    thumbnail_url: Optional[str] = Field(None, description="Remote thumbnail URL")
    duration: str = Field("", description="Human-readable duration")
    published_at: Optional[datetime] = Field(None, description="Publish time on YouTube")
    view_count: int = Field(0, description="View count at discovery", ge=0)
    transcript: Optional[str] = Field(None, description="Length-capped transcript copy")
    transcript_language: Optional[str] = Field(None, description="Transcript language")
    status: VideoStatus = Field(VideoStatus.PENDING, description="Processing status")
    error_message: Optional[str] = Field(None, description="Last processing error")
