"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import aiohttp
import typer
from rich.console import Console
from rich.logging import RichHandler

from scdownload import __version__
from scdownload.api.catalog import CatalogKind
from scdownload.api.client import SoundCloudClient
from scdownload.core.download_manager import DownloadManager
from scdownload.exceptions import SCDownloadError
from scdownload.media.ffmpeg import FFmpeg
from scdownload.models.config import CoverSize
from scdownload.storage.cache import clear_cache
from scdownload.storage.config_manager import ConfigManager
from scdownload.web.client_id import ClientIdFetcher

from .formatters import print_config, print_summary_panel, print_validation_table

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("scdownload")

app = typer.Typer(
    name="scdownload",
    help=(
        "A concurrent SoundCloud downloader that rebuilds HLS streams into tagged"
        " MP3 files. Use 'scdownload <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "scdownload"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """SoundCloud Downloader CLI"""
    if version:
        console.print(f"[bold]scdownload[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    if verbose >= 2:
        log.setLevel("DEBUG")

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]scdownload init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config_manager = ConfigManager(CONFIG_FILE)
        config_manager.load_config()
        print_config(CONFIG_FILE, config_manager._get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    fetch_client_id: bool = typer.Option(
        False,
        "--fetch-client-id",
        help="Scrape the public client id now and store it in the config file.",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing file without asking."
    ),
):
    """Write a default configuration file."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {}
    if fetch_client_id:

        async def _fetch() -> str:
            console.print("\n[cyan]Fetching client id from the web player...[/cyan]")
            async with SoundCloudClient() as client:
                return await ClientIdFetcher(client).fetch()

        try:
            settings["client_id"] = asyncio.run(_fetch())
            console.print("[green]✓ Client id fetched successfully.[/green]")
        except SCDownloadError as e:
            console.print(f"[red]✗ Failed to fetch client id: {e}[/red]")
            raise typer.Exit(code=1) from e

    ConfigManager(CONFIG_FILE).save_new_config(settings)
    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print(
        "Ready to download! Try: [cyan]scdownload download track owner/slug[/cyan]"
    )


@app.command(name="download")
def download_command(
    kind: CatalogKind = typer.Argument(  # noqa: B008
        ..., help="What the identifier points at.", case_sensitive=False
    ),
    identifier: str = typer.Argument(
        ..., help="An 'owner/slug' (or 'owner') identifier or a soundcloud.com URL."
    ),
    temp_dir: Path | None = typer.Option(  # noqa: B008
        None, "--temp-dir", help="Where segments and cache records are kept."
    ),
    download_dir: Path | None = typer.Option(  # noqa: B008
        None, "-d", "--download-dir", help="Where finished MP3 files are written."
    ),
    workers: int | None = typer.Option(
        None, "-w", "--workers", help="Number of tracks processed simultaneously."
    ),
    original_cover: bool | None = typer.Option(
        None,
        "--original-cover/--large-cover",
        help="Embed cover art in its original resolution instead of 500x500.",
    ),
    disable_cache: bool = typer.Option(
        False,
        "--disable-cache",
        help="Ignore cached segments and existing output files.",
    ),
    ffmpeg: str | None = typer.Option(
        None, "--ffmpeg", help="Path to the ffmpeg executable."
    ),
):
    """Download a track, playlist, album, artist's uploads or a user's likes."""
    cli_options = {
        key: value
        for key, value in {
            "temp_dir": temp_dir,
            "download_dir": download_dir,
            "max_workers": workers,
            "ffmpeg_path": ffmpeg,
        }.items()
        if value is not None
    }
    if original_cover is not None:
        cli_options["cover_size"] = (
            CoverSize.ORIGINAL if original_cover else CoverSize.LARGE
        )
    if disable_cache:
        cli_options["cache_enabled"] = False

    config = ConfigManager(CONFIG_FILE).load_config(cli_options)

    async def _download_async():
        async with SoundCloudClient(
            config.client_id, config.max_workers, config.request_timeout
        ) as client:
            manager = DownloadManager(config, client)
            console.print("[bold cyan]🎵 Starting download session...[/bold cyan]")
            start_time = time.monotonic()
            await manager.execute(kind, identifier)
            print_summary_panel(manager.stats, time.monotonic() - start_time)
            return manager.stats

    stats = asyncio.run(_download_async())
    if stats.tracks_failed and not (
        stats.tracks_downloaded or stats.tracks_skipped_exists
    ):
        raise typer.Exit(code=1)


@app.command(name="clear-cache")
def clear_cache_command(
    force: bool = typer.Option(
        False, "--force", "-f", help="Bypass the confirmation prompt."
    ),
):
    """Delete every cached segment directory."""
    config = ConfigManager(CONFIG_FILE).load_config()
    if not force and not typer.confirm(
        f"Delete all cached segments under '{config.temp_dir}'?"
    ):
        console.print("[yellow]Operation cancelled.[/yellow]")
        raise typer.Abort()

    removed = clear_cache(config.temp_dir)
    console.print(f"[green]✓ Cache cleared ({removed} items removed).[/green]")


@app.command()
def diagnose():
    """Diagnose common configuration, toolchain and connectivity issues."""
    console.print("\n[bold cyan]Running diagnostics...[/bold cyan]\n")
    issues_found = False

    if CONFIG_FILE.is_file():
        console.print(f"[green]✓[/] Config file exists at: [dim]{CONFIG_FILE}[/dim]")
    else:
        console.print(
            "[yellow]○ No config file.[/] Defaults are used; run"
            " [cyan]scdownload init[/cyan] to create one."
        )

    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        console.print("[green]✓[/] Configuration is valid.")
        print_validation_table(config)
    except SCDownloadError as e:
        console.print(f"[red]✗ Configuration validation failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    try:
        version = FFmpeg(config.ffmpeg_path).check_available()
        console.print(f"[green]✓[/] {version}")
    except SCDownloadError as e:
        console.print(f"[red]✗ {e}[/red]")
        issues_found = True

    console.print("\n[dim]Testing connectivity to SoundCloud...[/dim]")

    async def test_connection() -> bool:
        try:
            timeout = aiohttp.ClientTimeout(total=10)
            async with (
                aiohttp.ClientSession(timeout=timeout) as session,
                session.get(SoundCloudClient.WEB_URL) as resp,
            ):
                if resp.status == 200:
                    console.print("[green]✓[/] Successfully connected to SoundCloud.")
                    return True
                console.print(
                    "[red]✗ Could not connect to SoundCloud "
                    f"(Status: {resp.status}).[/red]"
                )
                return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            console.print(f"[red]✗ Connection test failed: {e}[/red]")
            return False

    if not asyncio.run(test_connection()):
        issues_found = True

    console.print()
    if not issues_found:
        console.print(
            "[bold green]✓ All checks passed! Your setup looks good.[/bold green]\n"
        )
    else:
        console.print(
            "[bold red]✗ Some issues were found. "
            "Please review the messages above.[/bold red]\n"
        )
        raise typer.Exit(code=1)
