"""Media storage for imported images."""

import asyncio
import shutil
from pathlib import Path

from psycopg import AsyncConnection

from ..models import Media


class MediaStorage:
    """Copy image files into the workspace and register them."""

    def __init__(self, media_dir: Path) -> None:
        """Initialize media storage."""
        self.media_dir = media_dir

    async def create_media(
        self,
        conn: AsyncConnection,
        file_path: Path,
        alt: str,
        mime_type: str,
    ) -> Media:
        """Register an image file; the file is copied, the original is left alone."""
        self.media_dir.mkdir(parents=True, exist_ok=True)
        target = self.media_dir / file_path.name
        await asyncio.to_thread(shutil.copyfile, file_path, target)

        try:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO media (alt, filename, mime_type, path)
                    VALUES (%s, %s, %s, %s)
                    RETURNING *
                    """,
                    (alt, target.name, mime_type, str(target)),
                )
                row = await cur.fetchone()
            await conn.commit()
        except Exception:
            target.unlink(missing_ok=True)
            raise

        return Media(**row)
