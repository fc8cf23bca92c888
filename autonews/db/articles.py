"""Article storage."""

from psycopg import AsyncConnection
from psycopg.errors import UniqueViolation
from psycopg.types.json import Jsonb

from ..errors import StoreError
from ..models import ArticleRecord


class ArticleStorage:
    """Persist generated articles."""

    async def create_article(self, conn: AsyncConnection, article: ArticleRecord) -> ArticleRecord:
        """
        Insert an article.

        Raises:
            StoreError: If the video already has an article
        """
        try:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO articles (
                        title, excerpt, content, author_name, source_id,
                        video_record_id, youtube_url, published_at,
                        is_auto_generated, tags, categories, hero_image_id,
                        transcript, transcript_language, status
                    ) VALUES (
                        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
                    )
                    RETURNING *
                    """,
                    (
                        article.title,
                        article.excerpt,
                        Jsonb(article.content),
                        article.author_name,
                        article.source_id,
                        article.video_record_id,
                        article.youtube_url,
                        article.published_at,
                        article.is_auto_generated,
                        Jsonb(article.tags),
                        Jsonb(article.categories),
                        article.hero_image_id,
                        article.transcript,
                        article.transcript_language,
                        article.status,
                    ),
                )
                row = await cur.fetchone()
            await conn.commit()
        except UniqueViolation:
            await conn.rollback()
            raise StoreError(f"Article already exists for video record {article.video_record_id}")

        return ArticleRecord(**row)
