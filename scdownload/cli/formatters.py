"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from scdownload.models.config import DownloadConfig
from scdownload.models.stats import DownloadStats
from scdownload.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ToolUnavailableError": [
            "• Install ffmpeg and make sure it is on your PATH.",
            "• Or point to it with `--ffmpeg /path/to/ffmpeg`.",
        ],
        "ClientIdError": [
            "• SoundCloud may have changed its web player.",
            "• Set `client_id` in the config file (`scdownload init`).",
            "• Check your internet connection.",
        ],
        "CatalogError": [
            "• Check that the identifier is an `owner/slug` or a soundcloud.com URL.",
            "• Private playlists and likes cannot be enumerated.",
        ],
        "ConfigurationError": [
            "• Review the values in your config file.",
            "• Run `scdownload init --force` to write a fresh one.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• SoundCloud might be temporarily unavailable.",
            "• Please try again in a few minutes.",
        ],
        "TimeoutError": [
            "• A request timed out, which may indicate network throttling.",
            "• Try reducing the number of `--workers`.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding the client id."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if key == "client_id" and value:
            value = "[hidden]"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip() or "[dim](empty)[/dim]",
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: DownloadConfig):
    """Displays a summary of the effective settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Download Dir:", str(config.download_dir))
    table.add_row("Temp Dir:", str(config.temp_dir))
    table.add_row(
        "Cache:",
        "[green]enabled[/green]" if config.cache_enabled else "[yellow]off[/yellow]",
    )
    table.add_row("Cover Size:", config.cover_size.value)
    table.add_row("Max Workers:", str(config.max_workers))
    table.add_row("ffmpeg:", config.ffmpeg_path)
    table.add_row(
        "Client ID:", "[green]configured[/green]" if config.client_id else "auto"
    )

    console.print(
        Panel(table, title="[bold]Effective Settings[/bold]", border_style="cyan")
    )


def print_summary_panel(stats: DownloadStats, duration_s: float):
    """Displays the final summary of the download session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    downloaded = f"[bold green]{stats.tracks_downloaded}[/bold green]"
    if stats.tracks_from_cache > 0:
        downloaded += f" [dim]({stats.tracks_from_cache} from cache)[/dim]"
    stats_table.add_row("✓ Downloaded:", downloaded)

    if stats.tracks_skipped_exists > 0:
        stats_table.add_row(
            "○ Skipped:", f"[yellow]{stats.tracks_skipped_exists} (exists)[/yellow]"
        )

    if stats.tracks_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.tracks_failed}[/bold red]")
        for kind, count in stats.failures_by_kind.most_common():
            stats_table.add_row("", f"[red]{count} × {kind}[/red]")

    stats_table.add_row("", "")

    segments = f"[cyan]{stats.segments_fetched}[/cyan]"
    if stats.segments_failed > 0:
        segments += f" [yellow]({stats.segments_failed} skipped)[/yellow]"
    stats_table.add_row("Segments:", segments)
    stats_table.add_row(
        "Total Size:", f"[cyan]{format_size(stats.total_size_downloaded)}[/cyan]"
    )

    avg_speed = stats.total_size_downloaded / duration_s if duration_s > 0 else 0
    stats_table.add_row(
        "Avg. Speed:", f"[magenta]{format_size(int(avg_speed))}/s[/magenta]"
    )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if stats.peak_concurrent > 0:
        stats_table.add_row(
            "Peak Concurrent:", f"[green]{stats.peak_concurrent}[/green]"
        )

    if stats.tracks_failed and not stats.tracks_downloaded:
        title = "⚠ [bold]Download Finished With Errors[/bold]"
        border_color = "red"
    else:
        title = "🎵 [bold]Download Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
