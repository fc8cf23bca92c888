"""In-memory store and fakes for the pipeline collaborators."""

import itertools
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

import httpx

from autonews.db.store import ContentStore
from autonews.errors import DuplicateVideoError, GenerationError, InvalidTransitionError, StoreError
from autonews.generation import BodyBlock, GeneratedArticle, GenerationStats, LLMProvider
from autonews.ingestion import VideoMeta, VideoPage, VideoProvider
from autonews.models import ArticleRecord, Media, Source, VideoRecord, VideoStatus, can_transition

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


# ============================================================================
# Builders
# ============================================================================


def make_video(video_id: str, title: Optional[str] = None, published: str = "2024-01-15T10:00:00Z") -> VideoMeta:
    """Build provider metadata for a video."""
    return VideoMeta(
        video_id=video_id,
        title=title or f"Video {video_id}",
        description=f"Description of {video_id}",
        published_text=published,
        duration="4:05",
        view_count=100,
    )


def make_source(source_id: int = 1, **overrides: Any) -> Source:
    data = {
        "id": source_id,
        "channel_id": f"UCchannel{source_id:016d}",
        "name": f"Channel {source_id}",
        "active": True,
        "language": "ar",
        "category": "politics",
    }
    data.update(overrides)
    return Source(**data)


# ============================================================================
# In-memory content store
# ============================================================================


class InMemoryContentStore(ContentStore):
    """ContentStore keeping everything in dicts, with the same constraints as Postgres."""

    def __init__(self, sources: Iterable[Source] = ()) -> None:
        self.sources: Dict[int, Source] = {s.id: s for s in sources}
        self.videos: Dict[int, VideoRecord] = {}
        self.articles: List[ArticleRecord] = []
        self.media: List[Media] = []
        self.media_bytes: List[bytes] = []
        self.runs: Dict[int, Dict[str, Any]] = {}
        self.failures: Dict[str, Exception] = {}
        self._ids = itertools.count(1)

    def fail(self, method: str, error: Exception) -> None:
        """Make every later call to ``method`` raise ``error``."""
        self.failures[method] = error

    def _check(self, method: str) -> None:
        if method in self.failures:
            raise self.failures[method]

    def by_video_id(self, video_id: str) -> VideoRecord:
        return next(v for v in self.videos.values() if v.video_id == video_id)

    async def list_active_sources(self) -> List[Source]:
        self._check("list_active_sources")
        return [s for s in self.sources.values() if s.active]

    async def get_known_video_ids(self, source_id: int) -> Set[str]:
        self._check("get_known_video_ids")
        return {v.video_id for v in self.videos.values() if v.source_id == source_id}

    async def create_video(self, video: VideoRecord) -> VideoRecord:
        self._check("create_video")
        if any(v.video_id == video.video_id for v in self.videos.values()):
            raise DuplicateVideoError(video.video_id)
        record = video.model_copy(update={"id": next(self._ids)})
        self.videos[record.id] = record
        return record

    async def update_video(self, record_id: int, **fields: Any) -> None:
        self._check("update_video")
        current = self.videos[record_id]
        if "status" in fields:
            target = VideoStatus(fields["status"])
            if not can_transition(current.status, target):
                raise InvalidTransitionError(current.status.value, target.value)
            fields["status"] = target
        self.videos[record_id] = current.model_copy(update=fields)

    async def find_videos_by_status(self, statuses: Iterable[VideoStatus]) -> List[VideoRecord]:
        wanted = {VideoStatus(s) for s in statuses}
        return [v for v in self.videos.values() if v.status in wanted]

    async def find_videos_with_article(self, statuses: Iterable[VideoStatus]) -> List[VideoRecord]:
        self._check("find_videos_with_article")
        wanted = {VideoStatus(s) for s in statuses}
        linked = {a.video_record_id for a in self.articles}
        return [v for v in self.videos.values() if v.status in wanted and v.id in linked]

    async def delete_video(self, record_id: int) -> None:
        if any(a.video_record_id == record_id for a in self.articles):
            raise StoreError(f"Video record {record_id} is referenced by an article")
        del self.videos[record_id]

    async def create_article(self, article: ArticleRecord) -> ArticleRecord:
        self._check("create_article")
        if any(a.video_record_id == article.video_record_id for a in self.articles):
            raise StoreError(f"Article already exists for video {article.video_record_id}")
        record = article.model_copy(update={"id": next(self._ids)})
        self.articles.append(record)
        return record

    async def create_media(self, file_path: Path, alt: str, mime_type: str) -> Media:
        self._check("create_media")
        self.media_bytes.append(file_path.read_bytes())
        media = Media(
            id=next(self._ids),
            alt=alt,
            filename=file_path.name,
            mime_type=mime_type,
            path=str(file_path),
        )
        self.media.append(media)
        return media

    async def touch_source(self, source_id: int, fetched_at: Optional[datetime] = None) -> None:
        self._check("touch_source")
        source = self.sources[source_id]
        self.sources[source_id] = source.model_copy(
            update={
                "last_fetched_at": fetched_at or datetime.now(timezone.utc),
                "fetch_count": source.fetch_count + 1,
            }
        )

    async def start_run(self) -> int:
        self._check("start_run")
        run_id = next(self._ids)
        self.runs[run_id] = {"status": "running"}
        return run_id

    async def finish_run(
        self,
        run_id: int,
        status: str,
        stats: Dict[str, Any],
        source_id: Optional[int] = None,
    ) -> None:
        self._check("finish_run")
        self.runs[run_id] = {"status": status, "stats": stats, "source_id": source_id}


# ============================================================================
# Collaborator fakes
# ============================================================================


class ScriptedProvider(VideoProvider):
    """Serves pre-built pages; cursor ``None`` is the first page."""

    def __init__(self, pages: Sequence[List[VideoMeta]] = (), error: Optional[Exception] = None) -> None:
        self.pages = [list(p) for p in pages]
        self.error = error
        self.calls: List[Optional[str]] = []

    async def fetch_page(self, channel_id: str, cursor: Optional[str] = None) -> VideoPage:
        self.calls.append(cursor)
        if self.error is not None:
            raise self.error
        index = int(cursor) if cursor else 0
        if index >= len(self.pages):
            return VideoPage()
        next_cursor = str(index + 1) if index + 1 < len(self.pages) else None
        return VideoPage(items=self.pages[index], next_cursor=next_cursor)


class FakeExtractor:
    """Returns a canned transcript per video ID; missing IDs have none."""

    def __init__(self, transcripts: Optional[Dict[str, str]] = None, default: Optional[str] = None) -> None:
        self.transcripts = transcripts or {}
        self.default = default
        self.calls: List[tuple] = []

    async def extract(self, video_id: str, language_hint: str = "ar") -> Optional[str]:
        self.calls.append((video_id, language_hint))
        return self.transcripts.get(video_id, self.default)


def status_error(cls, status_code):
    request = httpx.Request("POST", OPENAI_URL)
    response = httpx.Response(status_code, request=request)
    return cls("error", response=response, body=None)


class ScriptedLLM(LLMProvider):
    """LLM provider returning or raising scripted outcomes in order."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.prompts = []

    async def complete_json(self, system_prompt, user_prompt, max_tokens, temperature):
        self.prompts.append((system_prompt, user_prompt))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def get_usage_stats(self):
        return GenerationStats(api_calls=len(self.prompts))


class FakeGenerator:
    """
    Builds a small article from the title; raises for IDs listed in ``fail_titles``.

    Doubles as its own ``llm_provider`` and reports ``tokens_per_call`` tokens
    for every generate() call.
    """

    def __init__(self, fail_titles: Iterable[str] = (), tokens_per_call: int = 150) -> None:
        self.fail_titles = set(fail_titles)
        self.tokens_per_call = tokens_per_call
        self.calls: List[Dict[str, Any]] = []
        self.llm_provider = self

    def get_usage_stats(self) -> GenerationStats:
        calls = len(self.calls)
        return GenerationStats(
            api_calls=calls,
            tokens_used=calls * self.tokens_per_call,
            cost_estimate=calls * 0.0005,
            model="fake",
        )

    async def generate(
        self,
        transcript: str,
        title: str,
        source_name: str,
        source_url: str,
        language: str = "ar",
    ) -> GeneratedArticle:
        self.calls.append(
            {
                "transcript": transcript,
                "title": title,
                "source_name": source_name,
                "source_url": source_url,
                "language": language,
            }
        )
        if title in self.fail_titles:
            raise GenerationError("model unavailable", transient=True)
        return GeneratedArticle(
            title=f"Article: {title}",
            excerpt="Summary",
            blocks=[
                BodyBlock(type="paragraph", text="Lead paragraph"),
                BodyBlock(type="heading", text="Details"),
                BodyBlock(type="paragraph", text="Body paragraph"),
            ],
            tags=["news"],
        )


class FakeThumbnails:
    """Returns a fixed media ID, or None when ``media_id`` is None."""

    def __init__(self, media_id: Optional[int] = 99) -> None:
        self.media_id = media_id
        self.calls: List[tuple] = []

    async def import_thumbnail(self, url: Optional[str], alt_text: str) -> Optional[int]:
        self.calls.append((url, alt_text))
        return self.media_id

    async def aclose(self) -> None:
        return None


