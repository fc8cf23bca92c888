"""Content store contract and its Postgres implementation."""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from psycopg import OperationalError
from psycopg_pool import AsyncConnectionPool

from ..config.models import SourceConfig
from ..errors import StoreError
from ..models import ArticleRecord, Media, Run, Source, VideoRecord, VideoStatus
from .articles import ArticleStorage
from .connection import create_connection_pool
from .media import MediaStorage
from .runs import RunManager
from .sources import SourceManager
from .videos import VideoManager


class ContentStore(ABC):
    """
    Typed CRUD over the collections the pipeline reads and writes.

    Every write targets a single record by id, so one store instance may be
    shared by concurrent callers without extra locking.
    """

    @abstractmethod
    async def list_active_sources(self) -> List[Source]:
        """Get all sources with the active flag set."""
        pass

    @abstractmethod
    async def get_known_video_ids(self, source_id: int) -> Set[str]:
        """Get the complete set of external video IDs recorded for a source."""
        pass

    @abstractmethod
    async def create_video(self, video: VideoRecord) -> VideoRecord:
        """Persist a new video record; raises DuplicateVideoError on a known ID."""
        pass

    @abstractmethod
    async def update_video(self, record_id: int, **fields: Any) -> None:
        """Update fields of a video record; status changes follow the state machine."""
        pass

    @abstractmethod
    async def find_videos_by_status(self, statuses: Iterable[VideoStatus]) -> List[VideoRecord]:
        """Get all video records in any of the given statuses."""
        pass

    @abstractmethod
    async def find_videos_with_article(self, statuses: Iterable[VideoStatus]) -> List[VideoRecord]:
        """Get video records in any of the given statuses that already have an article."""
        pass

    @abstractmethod
    async def delete_video(self, record_id: int) -> None:
        """Delete a video record."""
        pass

    @abstractmethod
    async def create_article(self, article: ArticleRecord) -> ArticleRecord:
        """Persist a generated article."""
        pass

    @abstractmethod
    async def create_media(self, file_path: Path, alt: str, mime_type: str) -> Media:
        """Register an image file as media."""
        pass

    @abstractmethod
    async def touch_source(self, source_id: int, fetched_at: Optional[datetime] = None) -> None:
        """Set the last-fetch timestamp and increment the fetch counter."""
        pass

    @abstractmethod
    async def start_run(self) -> int:
        """Open a run ledger entry and return its ID."""
        pass

    @abstractmethod
    async def finish_run(
        self,
        run_id: int,
        status: str,
        stats: Dict[str, Any],
        source_id: Optional[int] = None,
    ) -> None:
        """Close a run ledger entry."""
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None


class PostgresContentStore(ContentStore):
    """ContentStore backed by a Postgres connection pool."""

    def __init__(self, pool: AsyncConnectionPool, media_dir: Path) -> None:
        """
        Initialize the store.

        Args:
            pool: Open async connection pool, owned by this store from now on
            media_dir: Directory where imported media files are kept
        """
        self.pool = pool
        self.sources = SourceManager()
        self.videos = VideoManager()
        self.articles = ArticleStorage()
        self.media = MediaStorage(media_dir)
        self.runs = RunManager()

    @classmethod
    async def create(cls, db_config: Dict[str, Any], media_dir: Path) -> "PostgresContentStore":
        """Open a pool and build a store around it."""
        try:
            pool = await create_connection_pool(db_config)
        except OperationalError as e:
            raise StoreError(f"Cannot connect to database: {e}") from e
        return cls(pool, media_dir)

    async def list_active_sources(self) -> List[Source]:
        async with self.pool.connection() as conn:
            return await self.sources.get_sources(conn, active_only=True)

    async def sync_sources(self, sources: List[SourceConfig]) -> Dict[str, int]:
        """Upsert sources from sources.yaml; returns channel_id -> id."""
        async with self.pool.connection() as conn:
            return await self.sources.sync_sources(conn, sources)

    async def get_known_video_ids(self, source_id: int) -> Set[str]:
        async with self.pool.connection() as conn:
            return await self.videos.get_known_video_ids(conn, source_id)

    async def create_video(self, video: VideoRecord) -> VideoRecord:
        async with self.pool.connection() as conn:
            return await self.videos.create_video(conn, video)

    async def update_video(self, record_id: int, **fields: Any) -> None:
        async with self.pool.connection() as conn:
            await self.videos.update_video(conn, record_id, fields)

    async def find_videos_by_status(self, statuses: Iterable[VideoStatus]) -> List[VideoRecord]:
        async with self.pool.connection() as conn:
            return await self.videos.find_by_status(conn, statuses)

    async def find_videos_with_article(self, statuses: Iterable[VideoStatus]) -> List[VideoRecord]:
        async with self.pool.connection() as conn:
            return await self.videos.find_with_article(conn, statuses)

    async def count_videos_by_status(self) -> Dict[str, int]:
        """Count video records per status."""
        async with self.pool.connection() as conn:
            return await self.videos.count_by_status(conn)

    async def delete_video(self, record_id: int) -> None:
        async with self.pool.connection() as conn:
            await self.videos.delete_video(conn, record_id)

    async def create_article(self, article: ArticleRecord) -> ArticleRecord:
        async with self.pool.connection() as conn:
            return await self.articles.create_article(conn, article)

    async def create_media(self, file_path: Path, alt: str, mime_type: str) -> Media:
        async with self.pool.connection() as conn:
            return await self.media.create_media(conn, file_path, alt, mime_type)

    async def touch_source(self, source_id: int, fetched_at: Optional[datetime] = None) -> None:
        async with self.pool.connection() as conn:
            await self.sources.touch_source(conn, source_id, fetched_at)

    async def start_run(self) -> int:
        async with self.pool.connection() as conn:
            return await self.runs.create_run(conn)

    async def finish_run(
        self,
        run_id: int,
        status: str,
        stats: Dict[str, Any],
        source_id: Optional[int] = None,
    ) -> None:
        async with self.pool.connection() as conn:
            await self.runs.update_run_status(conn, run_id, status, stats, source_id=source_id)

    async def list_recent_runs(self, limit: int = 10) -> List[Run]:
        """Get the latest ledger rows, newest first."""
        async with self.pool.connection() as conn:
            return await self.runs.get_recent_runs(conn, limit)

    async def close(self) -> None:
        await self.pool.close()
