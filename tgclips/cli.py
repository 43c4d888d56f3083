"""CLI for the TGClips API."""

import asyncio
import json
from pathlib import Path

import httpx
import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tgclips.core.config import Settings, get_settings
from tgclips.core.exceptions import ClipsError
from tgclips.core.logging_config import setup_logging
from tgclips.moderation import ModerationClient
from tgclips.services import VideoService
from tgclips.services.videos import normalize_content_type
from tgclips.storage import ObjectStore, RecordStore

app = typer.Typer(help="TGClips - short-video backend")
console = Console()

_SECRET_FIELDS = {"supabase_key", "sightengine_api_secret"}


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValueError as e:
        rprint(f"[red]✗ Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _mask(value: str | None) -> str:
    if not value:
        return ""
    return value[:4] + "…" if len(value) > 8 else "****"


@app.command()
def serve(
    host: str | None = typer.Option(None, help="Bind address (default from settings)"),
    port: int | None = typer.Option(None, help="Port (default from settings)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the API server with uvicorn."""
    import uvicorn

    settings = _load_settings()
    setup_logging(settings.log_level, settings.log_file)
    uvicorn.run(
        "tgclips.api.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="info",
    )


@app.command()
def config(
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
):
    """Show the effective settings with secrets masked."""
    settings = _load_settings()
    values = settings.model_dump()
    for name in _SECRET_FIELDS:
        values[name] = _mask(values.get(name))

    if as_json:
        console.print_json(json.dumps(values, default=str))
        return

    table = Table(title="TGClips settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    for name, value in values.items():
        table.add_row(name, "" if value is None else str(value))
    console.print(table)


@app.command()
def videos(
    limit: int = typer.Option(20, min=1, max=1000, help="Maximum videos to list"),
):
    """List public videos, newest first."""
    settings = _load_settings()

    async def _fetch():
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            service = VideoService(
                records=RecordStore(
                    client,
                    rest_url=settings.rest_url,
                    api_key=settings.supabase_key,
                    videos_table=settings.videos_table,
                    channels_table=settings.channels_table,
                ),
                objects=ObjectStore(
                    client,
                    storage_url=settings.storage_url,
                    api_key=settings.supabase_key,
                    bucket=settings.storage_bucket,
                ),
                settings=settings,
            )
            return await service.list_public(limit)

    try:
        records = asyncio.run(_fetch())
    except ClipsError as e:
        rprint(f"[red]✗ Error: {escape(e.message)}[/red]")
        raise typer.Exit(1) from e

    if not records:
        rprint("\n[yellow]No public videos yet.[/yellow]\n")
        return

    table = Table()
    table.add_column("Uploaded", style="dim", width=20)
    table.add_column("Author", style="cyan")
    table.add_column("Likes", style="green", justify="right")
    table.add_column("Views", style="green", justify="right")
    table.add_column("URL", style="white")

    for video in records:
        table.add_row(
            (video.timestamp or "")[:19],
            video.author_id or "",
            str(video.likes),
            str(len(video.views)),
            video.url,
        )

    console.print(table)
    rprint(f"\n[green]Total: {len(records)} video(s)[/green]\n")


@app.command()
def moderate(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local video file"),
):
    """Run the moderation check on a local file and print the verdict."""
    settings = _load_settings()
    if not (settings.sightengine_api_user and settings.sightengine_api_secret):
        rprint("[red]✗ SIGHTENGINE_API_USER and SIGHTENGINE_API_SECRET must be set[/red]")
        raise typer.Exit(1)

    content_type = normalize_content_type(None, path.name) or "application/octet-stream"

    async def _check():
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            moderator = ModerationClient(
                client,
                api_user=settings.sightengine_api_user,
                api_secret=settings.sightengine_api_secret,
                endpoint=settings.sightengine_url,
                threshold=settings.moderation_threshold,
                timeout=settings.moderation_timeout_seconds,
            )
            return await moderator.check_bytes(path.read_bytes(), path.name, content_type)

    try:
        verdict = asyncio.run(_check())
    except ClipsError as e:
        rprint(f"[red]✗ Error: {escape(e.message)}[/red]")
        raise typer.Exit(1) from e

    scores = "\n".join(
        f"{name:<10} {score:.3f}{'  [red]flagged[/red]' if name in verdict.flagged else ''}"
        for name, score in sorted(verdict.scores.items())
    )
    style = "green" if verdict.approved else "red"
    title = "Approved" if verdict.approved else "Rejected"
    rprint(
        Panel(
            f"[bold]Threshold:[/bold] {verdict.threshold}\n\n{scores or 'No scores returned'}",
            title=f"[{style}]{title}[/{style}]",
            border_style=style,
        )
    )
    if not verdict.approved:
        raise typer.Exit(2)


if __name__ == "__main__":
    app()
