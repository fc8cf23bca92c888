"""Discovery of new videos for a channel."""

from datetime import datetime
from typing import Callable, Iterable, List, Optional, Set

import pendulum
from pendulum.parsing.exceptions import ParserError
from rich.console import Console

from .models import VideoMeta
from .providers import VideoProvider

console = Console()


def _utc_now() -> datetime:
    return pendulum.now("UTC")


def normalize_published_at(
    value: Optional[str],
    now: Callable[[], datetime] = _utc_now,
) -> datetime:
    """
    Parse a provider timestamp, substituting the current time when it cannot be parsed.

    YouTube sometimes returns relative strings ("3 days ago") instead of
    timestamps; an approximate date is better than dropping the video.
    """
    if not value:
        return now()
    try:
        parsed = pendulum.parse(value)
    except (ParserError, ValueError, TypeError, OverflowError):
        return now()
    if not isinstance(parsed, datetime):
        # Bare times or durations are not publish dates
        return now()
    return parsed


class VideoSourceClient:
    """Paginate a provider feed and return only videos that are not known yet."""

    def __init__(
        self,
        provider: VideoProvider,
        max_pages: int = 10,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        Initialize the client.

        Args:
            provider: Page source for channel videos
            max_pages: Safety cap on pages fetched per discovery
            now: Clock used for unparseable publish times
        """
        self.provider = provider
        self.max_pages = max(1, max_pages)
        self.now = now

    async def list_new_videos(
        self,
        source_id: str,
        max_results: int,
        known_ids: Iterable[str],
    ) -> List[VideoMeta]:
        """
        Collect up to ``max_results`` videos whose IDs are not in ``known_ids``.

        Provider errors propagate to the caller.

        Args:
            source_id: YouTube channel ID
            max_results: Maximum number of new videos to return
            known_ids: Video IDs already recorded for this channel

        Returns:
            New videos, newest first, with normalized publish times
        """
        if max_results <= 0:
            return []

        skip: Set[str] = set(known_ids)
        results: List[VideoMeta] = []
        cursor: Optional[str] = None
        pages = 0

        while len(results) < max_results and pages < self.max_pages:
            page = await self.provider.fetch_page(source_id, cursor)
            pages += 1

            for video in page.items:
                if video.video_id in skip:
                    continue
                skip.add(video.video_id)
                results.append(
                    video.model_copy(
                        update={"published_at": normalize_published_at(video.published_text, self.now)}
                    )
                )
                if len(results) >= max_results:
                    break

            cursor = page.next_cursor
            if not cursor:
                break

        if pages >= self.max_pages and len(results) < max_results and cursor:
            console.print(
                f"[yellow][VideoSource] Page cap ({self.max_pages}) reached for {source_id} "
                f"with {len(results)} new videos[/yellow]"
            )

        return results
