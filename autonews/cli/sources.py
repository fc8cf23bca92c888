"""Sources management commands."""

import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config, SourceConfig, load_sources, save_sources
from ..db import PostgresContentStore
from ..ingestion import ChannelFeedProvider, VideoProvider, YouTubeDataAPIProvider

console = Console()
sources_app = typer.Typer(help="Manage YouTube channel sources")


def _load_or_exit(config: Config) -> List[SourceConfig]:
    try:
        return load_sources(config.sources_path)
    except FileNotFoundError:
        console.print("[red]Sources file not found. Run 'autonews init' first.[/red]")
        raise typer.Exit(1)


@sources_app.command("list")
def sources_list() -> None:
    """List all configured sources."""
    config = Config()
    sources = _load_or_exit(config)

    if not sources:
        console.print("[yellow]No sources configured.[/yellow]")
        return

    table = Table(title="Configured Sources")
    table.add_column("Name", style="cyan")
    table.add_column("Channel ID", style="blue")
    table.add_column("Language", style="green")
    table.add_column("Category", style="magenta")
    table.add_column("Active", style="yellow")

    for source in sources:
        table.add_row(
            source.name,
            source.channel_id,
            source.language,
            source.category or "-",
            "✓" if source.active else "✗",
        )

    console.print(table)


@sources_app.command("add")
def sources_add(
    name: str = typer.Option(..., "--name", "-n", help="Source display name"),
    channel_id: str = typer.Option(..., "--channel-id", "-i", help="YouTube channel ID (UC...)"),
    language: str = typer.Option("ar", "--language", "-l", help="Transcript and article language"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category for generated articles"),
) -> None:
    """Add a new YouTube channel source."""
    config = Config()

    try:
        sources = load_sources(config.sources_path)
    except FileNotFoundError:
        sources = []

    if any(s.name == name or s.channel_id == channel_id.strip() for s in sources):
        console.print(f"[red]Source '{name}' or channel already exists.[/red]")
        raise typer.Exit(1)

    try:
        new_source = SourceConfig(
            name=name,
            channel_id=channel_id,
            language=language,
            category=category,
            active=True,
        )
    except ValueError as e:
        console.print(f"[red]Invalid source: {e}[/red]")
        raise typer.Exit(1)

    sources.append(new_source)
    save_sources(sources, config.sources_path)

    console.print(f"[green]✅ Added source: {name}[/green]")


@sources_app.command("remove")
def sources_remove(
    name: str = typer.Argument(..., help="Source name to remove"),
) -> None:
    """Remove a source from sources.yaml."""
    config = Config()
    sources = _load_or_exit(config)

    original_count = len(sources)
    sources = [s for s in sources if s.name != name]

    if len(sources) == original_count:
        console.print(f"[red]Source '{name}' not found.[/red]")
        raise typer.Exit(1)

    save_sources(sources, config.sources_path)
    console.print(f"[green]✅ Removed source: {name}[/green]")
    console.print("[dim]The database row is kept; set active: false and sync to stop polling it.[/dim]")


async def _sync(config: Config, sources: List[SourceConfig]) -> int:
    store = await PostgresContentStore.create(config.get_db_config(), config.media_dir)
    try:
        source_map = await store.sync_sources(sources)
    finally:
        await store.close()
    return len(source_map)


@sources_app.command("sync")
def sources_sync() -> None:
    """Sync sources.yaml into the database."""
    config = Config()
    sources = _load_or_exit(config)

    try:
        count = asyncio.run(_sync(config, sources))
    except Exception as e:
        console.print(f"[red]❌ Sync failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Synced {count} sources[/green]")


def _make_provider(config: Config) -> VideoProvider:
    youtube = config.config.youtube
    api_key = config.get_youtube_api_key()
    if youtube.provider == "data_api" or (youtube.provider == "auto" and api_key):
        return YouTubeDataAPIProvider(api_key or "", page_size=youtube.page_size, timeout=youtube.timeout)
    return ChannelFeedProvider(timeout=youtube.timeout)


async def _test_sources(config: Config, sources: List[SourceConfig]) -> None:
    provider = _make_provider(config)
    try:
        for source in sources:
            if not source.active:
                console.print(f"[yellow]⚠️  {source.name}: Inactive[/yellow]")
                continue

            try:
                page = await provider.fetch_page(source.channel_id)
                latest = page.items[0].title if page.items else "-"
                console.print(
                    f"[green]✅ {source.name}: OK ({len(page.items)} videos, latest: {latest})[/green]"
                )
            except Exception as e:
                console.print(f"[red]❌ {source.name}: Failed - {e}[/red]")
    finally:
        await provider.aclose()


@sources_app.command("test")
def sources_test(
    name: Optional[str] = typer.Argument(None, help="Source name to test (or test all)"),
) -> None:
    """Test channel connectivity through the configured video provider."""
    config = Config()
    sources = _load_or_exit(config)

    if name:
        sources = [s for s in sources if s.name == name]
        if not sources:
            console.print(f"[red]Source '{name}' not found.[/red]")
            raise typer.Exit(1)

    asyncio.run(_test_sources(config, sources))
