"""Source management in database."""

from datetime import datetime
from typing import Dict, List, Optional

from psycopg import AsyncConnection

from ..config import SourceConfig
from ..models import Source


class SourceManager:
    """Manage sources in database."""

    async def sync_sources(
        self,
        conn: AsyncConnection,
        sources: List[SourceConfig],
    ) -> Dict[str, int]:
        """
        Sync sources from config to database.

        Polling state (last fetch time, fetch counter) is never overwritten.

        Returns:
            Mapping of channel ID to database ID
        """
        source_map = {}

        async with conn.cursor() as cur:
            for source in sources:
                await cur.execute(
                    """
                    INSERT INTO sources (channel_id, name, active, language, category)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (channel_id) DO UPDATE SET
                        name = EXCLUDED.name,
                        active = EXCLUDED.active,
                        language = EXCLUDED.language,
                        category = EXCLUDED.category
                    RETURNING id
                    """,
                    (
                        source.channel_id,
                        source.name,
                        source.active,
                        source.language,
                        source.category,
                    ),
                )

                row = await cur.fetchone()
                source_map[source.channel_id] = row["id"]

        await conn.commit()
        return source_map

    async def get_sources(self, conn: AsyncConnection, active_only: bool = False) -> List[Source]:
        """Get sources from database."""
        query = "SELECT * FROM sources"
        if active_only:
            query += " WHERE active = TRUE"
        query += " ORDER BY name"

        async with conn.cursor() as cur:
            await cur.execute(query)
            rows = await cur.fetchall()
        return [Source(**row) for row in rows]

    async def touch_source(
        self,
        conn: AsyncConnection,
        source_id: int,
        fetched_at: Optional[datetime] = None,
    ) -> None:
        """Record a completed poll: bump the fetch counter and timestamp."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE sources
                SET
                    last_fetched_at = COALESCE(%s, CURRENT_TIMESTAMP),
                    fetch_count = fetch_count + 1
                WHERE id = %s
                """,
                (fetched_at, source_id),
            )
        await conn.commit()
