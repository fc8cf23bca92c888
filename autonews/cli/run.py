"""Run, reprocess, serve and videos command implementations."""

import asyncio
from typing import Any, Dict, Optional, Tuple

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import Config, load_sources
from ..db import PostgresContentStore, validate_connection
from ..models import VideoStatus
from ..pipeline import (
    PipelineOrchestrator,
    PipelineScheduler,
    PipelineSummary,
    build_orchestrator,
    reprocess_stuck_videos,
)

console = Console()


async def open_pipeline(config: Config, sync: bool = True) -> Tuple[PostgresContentStore, PipelineOrchestrator]:
    """Open the store, optionally sync sources.yaml into it, and wire an orchestrator."""
    store = await PostgresContentStore.create(config.get_db_config(), config.media_dir)
    try:
        if sync and config.sources_path.exists():
            source_map = await store.sync_sources(load_sources(config.sources_path))
            console.print(f"[dim]Synced {len(source_map)} sources from {config.sources_path}[/dim]")
        orchestrator = build_orchestrator(config, store)
    except Exception:
        await store.close()
        raise
    return store, orchestrator


async def close_pipeline(store: PostgresContentStore, orchestrator: PipelineOrchestrator) -> None:
    await orchestrator.aclose()
    await store.close()


async def _run_once(config: Config, timeout: Optional[float], sync: bool) -> PipelineSummary:
    store, orchestrator = await open_pipeline(config, sync=sync)
    try:
        return await orchestrator.run(timeout=timeout)
    finally:
        await close_pipeline(store, orchestrator)


async def _reprocess(config: Config) -> Dict[str, Any]:
    store, orchestrator = await open_pipeline(config)
    try:
        return await reprocess_stuck_videos(store, orchestrator)
    finally:
        await close_pipeline(store, orchestrator)


def _check_database(config: Config) -> None:
    console.print("[dim]Checking database connection...[/dim]")
    if not asyncio.run(validate_connection(config.get_db_config())):
        console.print("[red]❌ Database connection failed![/red]")
        console.print("Please check your database configuration and ensure Postgres is running.")
        raise typer.Exit(1)


def run_command(
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Abort the run after this many seconds. Default: pipeline.run_timeout_seconds",
    ),
    sync: bool = typer.Option(
        True,
        "--sync/--no-sync",
        help="Sync sources.yaml into the database before running",
    ),
) -> None:
    """Run the pipeline once for one randomly chosen source."""
    try:
        config = Config()
        _check_database(config)

        summary = asyncio.run(_run_once(config, timeout, sync))

        if summary.errors and not summary.processed:
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Pipeline interrupted by user[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Pipeline failed: {e}[/red]")
        raise typer.Exit(1)


def reprocess_command() -> None:
    """Delete videos stuck without a transcript or failed, then run the pipeline."""
    try:
        config = Config()
        _check_database(config)
        result = asyncio.run(_reprocess(config))
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Reprocess failed: {e}[/red]")
        raise typer.Exit(1)

    pipeline = result.get("pipeline")
    details = f"Deleted: {result['deleted']}\nRepaired: {result['repaired']}"
    if pipeline and pipeline.get("success"):
        details += (
            f"\nProcessed: {pipeline['processed']}"
            f"\nArticles: {pipeline['articles']}"
            f"\nErrors: {pipeline['errors']}"
        )

    style = "green" if result["success"] else "red"
    console.print(Panel(f"{result['message']}\n\n{details}", style=style))

    if not result["success"]:
        raise typer.Exit(1)


async def _serve(config: Config, host: str, port: int, with_scheduler: bool) -> None:
    import uvicorn

    from ..api import create_app

    store, orchestrator = await open_pipeline(config)
    scheduler = None
    scheduler_config = config.config.scheduler
    if with_scheduler and scheduler_config.enabled:
        scheduler = PipelineScheduler(
            orchestrator,
            interval_seconds=scheduler_config.interval_minutes * 60,
            initial_delay_seconds=scheduler_config.initial_delay_seconds,
        )

    app = create_app(orchestrator, store, config.get_cron_secret(), scheduler=scheduler)
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="info"))
    try:
        await server.serve()
    finally:
        await close_pipeline(store, orchestrator)


def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host. Default: server.host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port. Default: server.port"),
    scheduler: bool = typer.Option(
        True,
        "--scheduler/--no-scheduler",
        help="Run the pipeline on the configured interval",
    ),
) -> None:
    """Serve the trigger endpoints, with the interval scheduler."""
    try:
        config = Config()
        _check_database(config)
        server_config = config.config.server
        asyncio.run(_serve(config, host or server_config.host, port or server_config.port, scheduler))
    except typer.Exit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")
    except Exception as e:
        console.print(f"[red]Server failed: {e}[/red]")
        raise typer.Exit(1)


async def _video_overview(config: Config, status: Optional[VideoStatus]):
    store = await PostgresContentStore.create(config.get_db_config(), config.media_dir)
    try:
        counts = await store.count_videos_by_status()
        videos = await store.find_videos_by_status([status]) if status else []
        runs = await store.list_recent_runs(5)
        return counts, videos, runs
    finally:
        await store.close()


def videos_command(
    status: Optional[VideoStatus] = typer.Option(
        None,
        "--status",
        "-s",
        help="List the videos in this status",
    ),
) -> None:
    """Show video counts per processing status."""
    try:
        config = Config()
        counts, videos, runs = asyncio.run(_video_overview(config, status))
    except Exception as e:
        console.print(f"[red]Failed to load videos: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Videos by Status")
    table.add_column("Status", style="cyan")
    table.add_column("Count", style="bold")
    for video_status in VideoStatus:
        table.add_row(video_status.value, str(counts.get(video_status.value, 0)))
    console.print(table)

    if status:
        listing = Table(title=f"Videos: {status.value}")
        listing.add_column("Video ID", style="cyan")
        listing.add_column("Title")
        listing.add_column("Error", style="red")
        for video in videos:
            listing.add_row(video.video_id, video.title, video.error_message or "")
        console.print(listing)

    if runs:
        history = Table(title="Recent Runs")
        history.add_column("Started", style="cyan")
        history.add_column("Status")
        history.add_column("Articles", style="bold")
        history.add_column("Errors", style="red")
        for run in runs:
            stats = run.stats_json or {}
            history.add_row(
                run.started_at.strftime("%Y-%m-%d %H:%M"),
                run.status,
                str(stats.get("articles", 0)),
                str(stats.get("errors", 0)),
            )
        console.print(history)
