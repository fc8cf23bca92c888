"""Pipeline orchestrator that turns new channel videos into published articles."""

import asyncio
import random
import time
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import Config
from ..config.models import PipelineConfig
from ..db.store import ContentStore
from ..errors import PipelineError
from ..generation import (
    ArticleGenerator,
    GenerationStats,
    build_article_generator,
    convert_to_document,
    text_direction,
)
from ..ingestion import (
    ChannelFeedProvider,
    TranscriptExtractor,
    VideoMeta,
    VideoSourceClient,
    YouTubeDataAPIProvider,
)
from ..media import ThumbnailImporter
from ..models import ArticleRecord, Source, VideoRecord, VideoStatus

console = Console()


class PipelineSummary(BaseModel):
    """Aggregated outcome of one run."""

    processed: int = Field(0, description="Video records created")
    articles: int = Field(0, description="Articles persisted")
    errors: int = Field(0, description="Failures caught during the run")
    skipped: bool = Field(False, description="Another run was already active")
    source: Optional[str] = Field(None, description="Name of the source polled")
    duration: float = Field(0.0, description="Wall-clock seconds")
    tokens_used: int = Field(0, description="LLM tokens spent during the run")
    cost_estimate: float = Field(0.0, description="Estimated LLM cost in USD")
    repaired: int = Field(0, description="Records moved to article_generated after a lost status write")


def cap_text(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class PipelineOrchestrator:
    """Runs discovery, transcription, generation and publication for one source."""

    def __init__(
        self,
        store: ContentStore,
        video_source: VideoSourceClient,
        extractor: TranscriptExtractor,
        generator: Optional[ArticleGenerator],
        thumbnails: Optional[ThumbnailImporter],
        settings: Optional[PipelineConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize pipeline orchestrator.

        Args:
            store: Content store shared with the trigger surfaces
            video_source: Discovery client for new channel videos
            extractor: Transcript extractor
            generator: Article generator, or None when no LLM is configured
            thumbnails: Thumbnail importer, or None to skip hero images
            settings: Per-run parameters
            rng: Random source used to pick the polled source
        """
        self.store = store
        self.video_source = video_source
        self.extractor = extractor
        self.generator = generator
        self.thumbnails = thumbnails
        self.settings = settings or PipelineConfig()
        self.rng = rng or random.Random()
        self._lock = asyncio.Lock()
        self._running = False
        self._selected_source_id: Optional[int] = None

    @property
    def is_running(self) -> bool:
        """Whether a run currently holds the latch."""
        return self._running

    async def run(self, timeout: Optional[float] = None) -> PipelineSummary:
        """
        Run the pipeline once for a single randomly chosen source.

        Per-video and per-source failures are counted in the summary. A run
        started while another one is active returns at once with ``skipped``.

        Args:
            timeout: Deadline in seconds (defaults to ``run_timeout_seconds``)

        Raises:
            PipelineError: If the sources cannot be loaded at all
        """
        async with self._lock:
            if self._running:
                console.print("[yellow][Pipeline] Run already in progress, skipping[/yellow]")
                return PipelineSummary(skipped=True)
            self._running = True

        if timeout is None:
            timeout = self.settings.run_timeout_seconds

        summary = PipelineSummary()
        start_time = time.monotonic()
        usage_before = self._usage()
        status = "failed"
        run_id = None

        try:
            run_id = await self._start_ledger()
            try:
                if timeout:
                    await asyncio.wait_for(self._execute(summary), timeout=timeout)
                else:
                    await self._execute(summary)
                status = "success"
            except asyncio.TimeoutError:
                summary.errors += 1
                console.print(f"[red][Pipeline] Run aborted after {timeout:.0f}s deadline[/red]")
        finally:
            self._running = False
            summary.duration = time.monotonic() - start_time
            self._record_usage(summary, usage_before)
            await self._finish_ledger(run_id, status, summary)
            self._print_summary(summary, status)

        return summary

    def _usage(self) -> Optional[GenerationStats]:
        if self.generator is None:
            return None
        return self.generator.llm_provider.get_usage_stats()

    def _record_usage(self, summary: PipelineSummary, before: Optional[GenerationStats]) -> None:
        """Store the tokens and cost spent since ``before`` on the summary."""
        after = self._usage()
        if after is None or before is None:
            return
        summary.tokens_used = after.tokens_used - before.tokens_used
        summary.cost_estimate = round(after.cost_estimate - before.cost_estimate, 6)

    async def _execute(self, summary: PipelineSummary) -> None:
        """Steps of a single run; counters are written into ``summary`` as they change."""
        try:
            sources = await self.store.list_active_sources()
        except Exception as e:
            raise PipelineError(f"Cannot load sources: {e}") from e

        try:
            summary.repaired = await self.repair_article_status()
        except Exception as e:
            console.print(f"[yellow][Pipeline] Could not repair article statuses: {e}[/yellow]")

        if not sources:
            console.print("[yellow][Pipeline] No active sources configured[/yellow]")
            return

        source = self.rng.choice(sources)
        summary.source = source.name
        self._selected_source_id = source.id
        console.print(f"[cyan][Pipeline] Processing source: {source.name} ({source.channel_id})[/cyan]")

        try:
            known_ids = await self.store.get_known_video_ids(source.id)
            videos = await self.video_source.list_new_videos(
                source.channel_id,
                self.settings.max_videos_per_run,
                known_ids,
            )
        except Exception as e:
            summary.errors += 1
            console.print(f"[red][Pipeline] Discovery failed for {source.name}: {e}[/red]")
            return

        console.print(f"[cyan][Pipeline] Found {len(videos)} new videos[/cyan]")

        for video in videos:
            await self._process_video(source, video, summary)

        try:
            await self.store.touch_source(source.id, datetime.now(timezone.utc))
        except Exception as e:
            summary.errors += 1
            console.print(f"[red][Pipeline] Could not update fetch time for {source.name}: {e}[/red]")

    async def _process_video(self, source: Source, video: VideoMeta, summary: PipelineSummary) -> None:
        """Carry one video as far through the pipeline as it will go."""
        record: Optional[VideoRecord] = None
        article_saved = False
        publishing = False

        try:
            record = await self.store.create_video(
                VideoRecord(
                    video_id=video.video_id,
                    title=video.title,
                    source_id=source.id,
                    youtube_url=video.youtube_url,
                    description=video.description,
                    thumbnail_url=video.thumbnail_url,
                    duration=video.duration,
                    published_at=video.published_at,
                    view_count=video.view_count,
                    status=VideoStatus.FETCHED,
                )
            )
            summary.processed += 1

            transcript = await self.extractor.extract(video.video_id, source.language)
            if not transcript:
                await self.store.update_video(record.id, status=VideoStatus.NO_TRANSCRIPT)
                console.print(f"[yellow][Pipeline] No transcript for {video.video_id}[/yellow]")
                return

            await self.store.update_video(
                record.id,
                transcript=cap_text(transcript, self.settings.video_transcript_chars),
                transcript_language=source.language,
                status=VideoStatus.TRANSCRIBED,
            )

            if self.generator is None:
                console.print(
                    f"[yellow][Pipeline] Article generation not configured, "
                    f"leaving {video.video_id} transcribed[/yellow]"
                )
                return

            generated = await self.generator.generate(
                transcript,
                video.title,
                source.name,
                video.youtube_url,
                source.language,
            )

            hero_image_id = None
            if self.thumbnails is not None:
                hero_image_id = await self.thumbnails.import_thumbnail(video.thumbnail_url, video.title)

            categories = []
            if self.settings.assign_source_category and source.category:
                categories.append(source.category)

            publishing = True
            await self.store.create_article(
                ArticleRecord(
                    title=generated.title,
                    excerpt=generated.excerpt,
                    content=convert_to_document(generated.blocks, text_direction(source.language)),
                    author_name=source.name,
                    source_id=source.id,
                    video_record_id=record.id,
                    youtube_url=video.youtube_url,
                    published_at=datetime.now(timezone.utc),
                    tags=generated.tags,
                    categories=categories,
                    hero_image_id=hero_image_id,
                    transcript=cap_text(transcript, self.settings.article_transcript_chars),
                    transcript_language=source.language,
                )
            )
            article_saved = True

            await self._mark_generated(record.id)
            summary.articles += 1
            console.print(f"[green][Pipeline] Article created: {generated.title}[/green]")

        except asyncio.CancelledError:
            if record is not None and record.id is not None and not article_saved:
                await asyncio.shield(self._settle_interrupted(record.id, publishing))
            raise
        except Exception as e:
            summary.errors += 1
            console.print(f"[red][Pipeline] Error processing video {video.video_id}: {e}[/red]")
            # Once the article exists the record must not become retryable
            if record is not None and record.id is not None and not article_saved:
                await self._mark_failed(record.id, str(e))

    async def _mark_failed(self, record_id: int, message: str) -> None:
        try:
            await self.store.update_video(
                record_id,
                status=VideoStatus.FAILED,
                error_message=message[:1000],
            )
        except Exception as e:
            console.print(f"[red][Pipeline] Could not mark video {record_id} as failed: {e}[/red]")

    async def _settle_interrupted(self, record_id: int, publishing: bool) -> None:
        """Mark a video cut off by the deadline as failed unless its article made it in."""
        if publishing:
            try:
                linked = await self.store.find_videos_with_article([VideoStatus.TRANSCRIBED])
            except Exception as e:
                console.print(f"[red][Pipeline] Could not check article for video {record_id}: {e}[/red]")
                return
            # Committed insert: repair_article_status finishes it on the next run
            if any(video.id == record_id for video in linked):
                return
        await self._mark_failed(record_id, "run deadline exceeded")

    async def _mark_generated(self, record_id: int) -> None:
        """Move a record to article_generated, trying the write a second time before giving up."""
        try:
            await self.store.update_video(record_id, status=VideoStatus.ARTICLE_GENERATED)
        except Exception as e:
            console.print(f"[yellow][Pipeline] Status write for video {record_id} failed, retrying: {e}[/yellow]")
            await self.store.update_video(record_id, status=VideoStatus.ARTICLE_GENERATED)

    async def repair_article_status(self) -> int:
        """
        Settle transcribed records whose article was saved but never acknowledged.

        Returns:
            Number of records moved to article_generated
        """
        orphans = await self.store.find_videos_with_article([VideoStatus.TRANSCRIBED])
        for video in orphans:
            await self.store.update_video(video.id, status=VideoStatus.ARTICLE_GENERATED)
            console.print(f"[cyan][Pipeline] Marked {video.video_id} as article_generated[/cyan]")
        return len(orphans)

    async def _start_ledger(self) -> Optional[int]:
        self._selected_source_id = None
        try:
            return await asyncio.wait_for(
                self.store.start_run(),
                timeout=self.settings.ledger_timeout_seconds,
            )
        except asyncio.TimeoutError:
            console.print("[yellow][Pipeline] Run start was not recorded in time[/yellow]")
            return None
        except Exception as e:
            console.print(f"[yellow][Pipeline] Could not record run start: {e}[/yellow]")
            return None

    async def _finish_ledger(self, run_id: Optional[int], status: str, summary: PipelineSummary) -> None:
        if run_id is None:
            return
        try:
            await asyncio.wait_for(
                self.store.finish_run(
                    run_id,
                    status,
                    summary.model_dump(),
                    source_id=self._selected_source_id,
                ),
                timeout=self.settings.ledger_timeout_seconds,
            )
        except asyncio.TimeoutError:
            console.print("[yellow][Pipeline] Run result was not recorded in time[/yellow]")
        except Exception as e:
            console.print(f"[yellow][Pipeline] Could not record run result: {e}[/yellow]")

    def _print_summary(self, summary: PipelineSummary, status: str) -> None:
        """Print run summary."""
        table = Table(title="Pipeline Summary")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="bold")

        table.add_row("Source", summary.source or "-")
        table.add_row("Processed", str(summary.processed))
        table.add_row("Articles", str(summary.articles))
        table.add_row("Errors", str(summary.errors))
        table.add_row("Duration", f"{summary.duration:.1f}s")
        if summary.tokens_used:
            table.add_row("Tokens", f"{summary.tokens_used:,}")
            table.add_row("Est. Cost", f"${summary.cost_estimate:.3f}")
        if summary.repaired:
            table.add_row("Repaired", str(summary.repaired))

        console.print(table)

        if status == "success" and summary.errors == 0:
            console.print(Panel("[green]Pipeline completed successfully[/green]", style="green"))
        elif status == "success":
            console.print(Panel(
                f"[yellow]Pipeline completed with {summary.errors} error(s)[/yellow]",
                style="yellow",
            ))
        else:
            console.print(Panel("[red]Pipeline failed[/red]", style="red"))

    async def aclose(self) -> None:
        """Close HTTP clients held by the collaborators."""
        await self.video_source.provider.aclose()
        if self.thumbnails is not None:
            await self.thumbnails.aclose()


def build_orchestrator(config: Config, store: ContentStore) -> PipelineOrchestrator:
    """
    Wire an orchestrator from configuration.

    With ``provider: auto`` the Data API is used when a key is available and
    the public channel feed otherwise.

    Raises:
        PipelineError: If the Data API is requested without a key
    """
    settings = config.config
    youtube = settings.youtube
    api_key = config.get_youtube_api_key()

    provider_name = youtube.provider
    if provider_name == "auto":
        provider_name = "data_api" if api_key else "feed"

    if provider_name == "data_api":
        if not api_key:
            raise PipelineError(
                f"YouTube Data API selected but {youtube.api_key_env or 'youtube.api_key'} is not set"
            )
        provider = YouTubeDataAPIProvider(api_key, page_size=youtube.page_size, timeout=youtube.timeout)
    else:
        console.print("[dim][Pipeline] Using public channel feed (latest uploads only)[/dim]")
        provider = ChannelFeedProvider(timeout=youtube.timeout)

    return PipelineOrchestrator(
        store=store,
        video_source=VideoSourceClient(provider, max_pages=youtube.max_pages),
        extractor=TranscriptExtractor(
            max_attempts=settings.transcripts.max_attempts,
            retry_base_delay=settings.transcripts.retry_base_delay,
        ),
        generator=build_article_generator(config),
        thumbnails=ThumbnailImporter(
            store,
            timeout=settings.media.timeout,
            max_seconds=settings.media.max_seconds,
        ),
        settings=settings.pipeline,
    )
