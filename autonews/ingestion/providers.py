"""Video providers: YouTube Data API and the public channel feed."""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Dict, List, Optional

import feedparser
import httpx
import isodate
from rich.console import Console

from ..errors import VideoSourceError
from .models import VideoMeta, VideoPage, watch_url

console = Console()

DATA_API_BASE = "https://www.googleapis.com/youtube/v3"
CHANNEL_FEED_URL = "https://www.youtube.com/feeds/videos.xml"

# Thumbnail sizes in order of preference
THUMBNAIL_KEYS = ("maxres", "standard", "high", "medium", "default")


def format_duration(iso_duration: str) -> str:
    """Convert an ISO 8601 duration (PT1H2M3S) to a clock string (1:02:03)."""
    if not iso_duration:
        return ""
    try:
        delta = isodate.parse_duration(iso_duration)
    except (isodate.ISO8601Error, ValueError):
        return ""
    if not isinstance(delta, timedelta):
        # Year/month durations never occur for single videos
        return ""

    total = int(delta.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


class VideoProvider(ABC):
    """Abstract source of channel video pages."""

    @abstractmethod
    async def fetch_page(self, channel_id: str, cursor: Optional[str] = None) -> VideoPage:
        """
        Fetch one page of a channel's videos, newest first.

        Args:
            channel_id: YouTube channel ID
            cursor: Continuation cursor from the previous page, None for the first

        Returns:
            The page and the cursor for the next one
        """
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        return None


class YouTubeDataAPIProvider(VideoProvider):
    """Paginate a channel's uploads playlist through the YouTube Data API v3."""

    def __init__(
        self,
        api_key: str,
        page_size: int = 25,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            api_key: Data API key
            page_size: Videos per page (API maximum is 50)
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client (owned by the caller)
        """
        self.api_key = api_key
        self.page_size = min(max(page_size, 1), 50)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._uploads_cache: Dict[str, str] = {}

    async def _get(self, path: str, **params) -> dict:
        """Make GET request to the Data API."""
        params["key"] = self.api_key
        try:
            response = await self.client.get(f"{DATA_API_BASE}/{path}", params=params)
        except httpx.HTTPError as e:
            raise VideoSourceError(f"YouTube API request failed: {e}") from e

        if response.status_code != 200:
            raise VideoSourceError(
                f"YouTube API error {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response.json()

    async def _uploads_playlist_id(self, channel_id: str) -> str:
        """Resolve the uploads playlist of a channel."""
        if channel_id in self._uploads_cache:
            return self._uploads_cache[channel_id]

        if channel_id.startswith("UC") and len(channel_id) > 2:
            playlist_id = "UU" + channel_id[2:]
        else:
            data = await self._get("channels", part="contentDetails", id=channel_id)
            items = data.get("items") or []
            if not items:
                raise VideoSourceError(f"Channel not found: {channel_id}", status_code=404)
            playlist_id = items[0]["contentDetails"]["relatedPlaylists"]["uploads"]

        self._uploads_cache[channel_id] = playlist_id
        return playlist_id

    async def _video_details(self, video_ids: List[str]) -> Dict[str, dict]:
        """Fetch duration and statistics for a batch of videos."""
        if not video_ids:
            return {}
        data = await self._get(
            "videos",
            part="contentDetails,statistics",
            id=",".join(video_ids),
            maxResults=len(video_ids),
        )
        return {item["id"]: item for item in data.get("items", [])}

    def _pick_thumbnail(self, snippet: dict) -> Optional[str]:
        """Pick the largest available thumbnail."""
        thumbnails = snippet.get("thumbnails") or {}
        for key in THUMBNAIL_KEYS:
            url = (thumbnails.get(key) or {}).get("url")
            if url:
                return url
        return None

    async def fetch_page(self, channel_id: str, cursor: Optional[str] = None) -> VideoPage:
        """Fetch one page of the uploads playlist."""
        playlist_id = await self._uploads_playlist_id(channel_id)

        params = {
            "part": "snippet,contentDetails",
            "playlistId": playlist_id,
            "maxResults": self.page_size,
        }
        if cursor:
            params["pageToken"] = cursor

        data = await self._get("playlistItems", **params)
        entries = data.get("items", [])

        video_ids = []
        for entry in entries:
            video_id = (entry.get("contentDetails") or {}).get("videoId")
            if video_id:
                video_ids.append(video_id)

        details = await self._video_details(video_ids)

        items = []
        for entry in entries:
            content = entry.get("contentDetails") or {}
            video_id = content.get("videoId")
            if not video_id:
                continue

            snippet = entry.get("snippet") or {}
            detail = details.get(video_id, {})
            statistics = detail.get("statistics") or {}

            items.append(
                VideoMeta(
                    video_id=video_id,
                    title=snippet.get("title", ""),
                    description=snippet.get("description", ""),
                    thumbnail_url=self._pick_thumbnail(snippet),
                    youtube_url=watch_url(video_id),
                    published_text=content.get("videoPublishedAt") or snippet.get("publishedAt") or "",
                    duration=format_duration((detail.get("contentDetails") or {}).get("duration", "")),
                    view_count=int(statistics.get("viewCount", 0) or 0),
                )
            )

        return VideoPage(items=items, next_cursor=data.get("nextPageToken"))

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self.client.aclose()


class ChannelFeedProvider(VideoProvider):
    """Read the public channel Atom feed; a single page with the latest uploads."""

    def __init__(
        self,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the provider."""
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def fetch_page(self, channel_id: str, cursor: Optional[str] = None) -> VideoPage:
        """Fetch and parse the channel feed; the feed has no continuation."""
        if cursor:
            return VideoPage()

        try:
            response = await self.client.get(CHANNEL_FEED_URL, params={"channel_id": channel_id})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise VideoSourceError(
                f"Channel feed error {e.response.status_code} for {channel_id}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise VideoSourceError(f"Channel feed request failed: {e}") from e

        feed = feedparser.parse(response.text)
        if feed.bozo and not feed.entries:
            raise VideoSourceError(f"Invalid channel feed: {feed.bozo_exception}")

        items = []
        for entry in feed.entries:
            video_id = entry.get("yt_videoid")
            if not video_id:
                continue

            thumbnails = entry.get("media_thumbnail") or []
            statistics = entry.get("media_statistics") or {}

            items.append(
                VideoMeta(
                    video_id=video_id,
                    title=entry.get("title", ""),
                    description=entry.get("summary", ""),
                    thumbnail_url=thumbnails[0].get("url") if thumbnails else None,
                    youtube_url=entry.get("link") or watch_url(video_id),
                    published_text=entry.get("published", ""),
                    view_count=int(statistics.get("views", 0) or 0),
                )
            )

        return VideoPage(items=items, next_cursor=None)

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self.client.aclose()
