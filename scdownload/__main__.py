"""
`python -m scdownload` entry point. Run-level errors become a Rich panel and
exit code 1.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from scdownload.cli.app import app
from scdownload.cli.formatters import format_error_with_suggestions
from scdownload.exceptions import SCDownloadError


def _use_utf8_console() -> None:
    # Track titles routinely contain emoji and non-Latin scripts.
    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(encoding="utf-8")


def main() -> None:
    if os.name == "nt":
        _use_utf8_console()

    log = logging.getLogger("scdownload")
    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Operation cancelled by user.[/yellow]")
        sys.exit(0)
    except SCDownloadError as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
