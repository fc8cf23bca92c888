"""Video record storage and status tracking."""

from typing import Any, Dict, Iterable, List, Set

from psycopg import AsyncConnection
from psycopg.errors import UniqueViolation

from ..errors import DuplicateVideoError, InvalidTransitionError, StoreError
from ..models import VideoRecord, VideoStatus, can_transition

UPDATABLE_FIELDS = {
    "title",
    "description",
    "thumbnail_url",
    "duration",
    "view_count",
    "transcript",
    "transcript_language",
    "status",
    "error_message",
}


class VideoManager:
    """Create, update and query video records."""

    async def get_known_video_ids(self, conn: AsyncConnection, source_id: int) -> Set[str]:
        """Get every external video ID recorded for a source (no paging)."""
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT video_id FROM videos WHERE source_id = %s",
                (source_id,),
            )
            rows = await cur.fetchall()
        return {row["video_id"] for row in rows}

    async def create_video(self, conn: AsyncConnection, video: VideoRecord) -> VideoRecord:
        """
        Insert a video record.

        Raises:
            DuplicateVideoError: If the external video ID is already recorded
        """
        try:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO videos (
                        video_id, title, source_id, youtube_url, description,
                        thumbnail_url, duration, published_at, view_count, status
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING *
                    """,
                    (
                        video.video_id,
                        video.title,
                        video.source_id,
                        video.youtube_url,
                        video.description,
                        video.thumbnail_url,
                        video.duration,
                        video.published_at,
                        video.view_count,
                        VideoStatus(video.status).value,
                    ),
                )
                row = await cur.fetchone()
            await conn.commit()
        except UniqueViolation:
            await conn.rollback()
            raise DuplicateVideoError(video.video_id)

        return VideoRecord(**row)

    async def update_video(
        self,
        conn: AsyncConnection,
        record_id: int,
        fields: Dict[str, Any],
    ) -> None:
        """
        Update a video record, enforcing the status state machine.

        Raises:
            InvalidTransitionError: If the status change is not allowed
            StoreError: If the record does not exist or a field is unknown
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise StoreError(f"Cannot update video fields: {', '.join(sorted(unknown))}")
        if not fields:
            return

        values = dict(fields)

        async with conn.cursor() as cur:
            if "status" in values:
                target = VideoStatus(values["status"])
                await cur.execute(
                    "SELECT status FROM videos WHERE id = %s FOR UPDATE",
                    (record_id,),
                )
                row = await cur.fetchone()
                if row is None:
                    await conn.rollback()
                    raise StoreError(f"Video record not found: {record_id}")
                if not can_transition(VideoStatus(row["status"]), target):
                    await conn.rollback()
                    raise InvalidTransitionError(row["status"], target.value)
                values["status"] = target.value

            assignments = ", ".join(f"{name} = %s" for name in values)
            await cur.execute(
                f"UPDATE videos SET {assignments} WHERE id = %s",
                (*values.values(), record_id),
            )
            if cur.rowcount == 0:
                await conn.rollback()
                raise StoreError(f"Video record not found: {record_id}")

        await conn.commit()

    async def find_by_status(
        self,
        conn: AsyncConnection,
        statuses: Iterable[VideoStatus],
    ) -> List[VideoRecord]:
        """Get all video records in any of the given statuses."""
        values = [VideoStatus(s).value for s in statuses]
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT * FROM videos WHERE status = ANY(%s) ORDER BY created_at",
                (values,),
            )
            rows = await cur.fetchall()
        return [VideoRecord(**row) for row in rows]

    async def find_with_article(
        self,
        conn: AsyncConnection,
        statuses: Iterable[VideoStatus],
    ) -> List[VideoRecord]:
        """Get video records in the given statuses that already have an article."""
        values = [VideoStatus(s).value for s in statuses]
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT v.* FROM videos v
                JOIN articles a ON a.video_record_id = v.id
                WHERE v.status = ANY(%s)
                ORDER BY v.created_at
                """,
                (values,),
            )
            rows = await cur.fetchall()
        return [VideoRecord(**row) for row in rows]

    async def delete_video(self, conn: AsyncConnection, record_id: int) -> None:
        """Delete a video record."""
        async with conn.cursor() as cur:
            await cur.execute("DELETE FROM videos WHERE id = %s", (record_id,))
        await conn.commit()

    async def count_by_status(self, conn: AsyncConnection) -> Dict[str, int]:
        """Count video records per status."""
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT status, COUNT(*) AS total FROM videos GROUP BY status ORDER BY status"
            )
            rows = await cur.fetchall()
        return {row["status"]: row["total"] for row in rows}
