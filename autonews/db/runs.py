"""Run management in database."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from psycopg import AsyncConnection
from psycopg.types.json import Jsonb

from ..models import Run


class RunManager:
    """Manage pipeline runs in database."""

    async def create_run(
        self,
        conn: AsyncConnection,
        started_at: Optional[datetime] = None,
    ) -> int:
        """
        Create a new run record.

        Returns:
            Run ID
        """
        if started_at is None:
            started_at = datetime.now(timezone.utc)

        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO runs (started_at, status)
                VALUES (%s, 'running')
                RETURNING id
                """,
                (started_at,),
            )
            row = await cur.fetchone()

        await conn.commit()
        return row["id"]

    async def update_run_status(
        self,
        conn: AsyncConnection,
        run_id: int,
        status: str,
        stats_json: Optional[Dict[str, Any]] = None,
        source_id: Optional[int] = None,
        finished_at: Optional[datetime] = None,
    ) -> None:
        """Update run status and statistics."""
        if finished_at is None and status in ["success", "failed"]:
            finished_at = datetime.now(timezone.utc)

        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE runs
                SET
                    status = %s,
                    finished_at = %s,
                    stats_json = %s,
                    source_id = COALESCE(%s, source_id)
                WHERE id = %s
                """,
                (
                    status,
                    finished_at,
                    Jsonb(stats_json) if stats_json else None,
                    source_id,
                    run_id,
                ),
            )

        await conn.commit()

    async def get_recent_runs(
        self,
        conn: AsyncConnection,
        limit: int = 10,
    ) -> List[Run]:
        """Get recent runs."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT * FROM runs
                ORDER BY started_at DESC
                LIMIT %s
                """,
                (limit,),
            )
            rows = await cur.fetchall()
        return [Run(**row) for row in rows]
