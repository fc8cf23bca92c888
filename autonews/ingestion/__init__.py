"""Video discovery and transcript extraction."""

from .models import VideoMeta, VideoPage
from .providers import ChannelFeedProvider, VideoProvider, YouTubeDataAPIProvider
from .transcripts import (
    AnyLanguageStrategy,
    RequestedLanguageStrategy,
    TranscriptExtractor,
    TranscriptStrategy,
    normalize_caption_text,
)
from .video_source import VideoSourceClient, normalize_published_at

__all__ = [
    "AnyLanguageStrategy",
    "ChannelFeedProvider",
    "RequestedLanguageStrategy",
    "TranscriptExtractor",
    "TranscriptStrategy",
    "VideoMeta",
    "VideoPage",
    "VideoProvider",
    "VideoSourceClient",
    "YouTubeDataAPIProvider",
    "normalize_caption_text",
    "normalize_published_at",
]
