"""Data models for the news pipeline."""

from .article import ArticleRecord
from .media import Media
from .run import Run
from .source import Source
from .video import (
    RETRYABLE_STATUSES,
    TERMINAL_STATUSES,
    VideoRecord,
    VideoStatus,
    can_transition,
)

__all__ = [
    "ArticleRecord",
    "Media",
    "Run",
    "Source",
    "VideoRecord",
    "VideoStatus",
    "TERMINAL_STATUSES",
    "RETRYABLE_STATUSES",
    "can_transition",
]
