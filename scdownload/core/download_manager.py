"""
The main orchestrator: resolves what to download and runs the per-item jobs
under a concurrency bound.
"""

import asyncio
import logging
from pathlib import Path
from typing import List

from rich.markup import escape

from scdownload.api.catalog import CatalogKind, CatalogResolver
from scdownload.api.client import SoundCloudClient
from scdownload.exceptions import SCDownloadError
from scdownload.media import FFmpeg, Reconstructor
from scdownload.models.config import DownloadConfig
from scdownload.models.item import Item, JobResult, JobStatus
from scdownload.models.stats import DownloadStats
from scdownload.web.client_id import ClientIdFetcher

from .track_processor import TrackProcessor

log = logging.getLogger(__name__)


class DownloadScheduler:
    """
    Runs item jobs with at most `max_workers` of them active at once.

    A failing job is logged, counted and reported as a FAILED `JobResult`;
    it never stops its siblings.
    """

    def __init__(
        self, processor: TrackProcessor, max_workers: int, stats: DownloadStats
    ):
        self.processor = processor
        self.max_workers = max_workers
        self.stats = stats
        self.active = 0

    async def run(
        self, uris: List[str], output_dir: Path, per_owner_dir: bool = False
    ) -> List[JobResult]:
        unique_uris = list(dict.fromkeys(uris))
        if len(unique_uris) < len(uris):
            log.info(f"Removed {len(uris) - len(unique_uris)} duplicate identifiers.")
        if not unique_uris:
            return []

        limit = 1 if len(unique_uris) == 1 else self.max_workers
        semaphore = asyncio.Semaphore(limit)
        log.debug(f"Scheduling {len(unique_uris)} items with {limit} workers.")

        async def _admit(uri: str) -> JobResult:
            async with semaphore:
                self.active += 1
                if self.active > self.stats.peak_concurrent:
                    self.stats.peak_concurrent = self.active
                try:
                    return await self._run_job(uri, output_dir, per_owner_dir)
                finally:
                    self.active -= 1

        return list(await asyncio.gather(*(_admit(uri) for uri in unique_uris)))

    async def _run_job(
        self, uri: str, output_dir: Path, per_owner_dir: bool
    ) -> JobResult:
        log.info(f"📥 Downloading: [cyan]{escape(uri)}[/cyan]")
        try:
            return await self.processor.process(uri, output_dir, per_owner_dir)
        except SCDownloadError as e:
            log.error(f"[red]❌ Error: {escape(uri)} - {escape(str(e))}[/red]")
            self.stats.record_failure(e)
            return JobResult(Item(uri=uri), JobStatus.FAILED, error=e)
        except Exception as e:
            log.error(
                f"[red]❌ Error: {escape(uri)} - unexpected {type(e).__name__}: "
                f"{escape(str(e))}[/red]",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            self.stats.record_failure(e)
            return JobResult(Item(uri=uri), JobStatus.FAILED, error=e)


class DownloadManager:
    """Orchestrates the entire download session."""

    def __init__(self, config: DownloadConfig, client: SoundCloudClient):
        self.config = config
        self.client = client
        self.stats = DownloadStats()
        self.ffmpeg = FFmpeg(config.ffmpeg_path, timeout=config.tool_timeout)
        self.catalog = CatalogResolver(client)

    async def ensure_client_id(self) -> str:
        """Uses the configured client id or scrapes one from the web player."""
        if not self.client.client_id:
            log.info("[dim]Fetching public client id...[/dim]")
            self.client.client_id = await ClientIdFetcher(self.client).fetch()
        return self.client.client_id

    async def execute(self, kind: CatalogKind, identifier: str) -> List[JobResult]:
        """
        Checks the toolchain, resolves the selection and downloads every item.

        Raises:
            ToolUnavailableError: If ffmpeg cannot be run.
            ClientIdError: If no client id is configured and none could be scraped.
            CatalogError: If the selection cannot be enumerated.
        """
        version = await asyncio.to_thread(self.ffmpeg.check_available)
        log.debug(f"Using {version}")
        await self.ensure_client_id()

        selection = await self.catalog.resolve(
            kind, identifier, self.config.download_dir
        )
        if not selection.uris:
            log.warning(
                f"[yellow]No tracks found for {kind.value} "
                f"'{escape(identifier)}'.[/yellow]"
            )
            return []

        if kind is not CatalogKind.TRACK:
            log.info(
                f"\n[bold cyan]▶ {kind.value.capitalize()}:[/] {escape(identifier)}"
                f" ({len(selection.uris)} tracks)"
            )

        processor = TrackProcessor(
            self.config,
            self.client,
            self.stats,
            reconstructor=Reconstructor(self.ffmpeg),
        )
        scheduler = DownloadScheduler(processor, self.config.max_workers, self.stats)
        return await scheduler.run(
            selection.uris, selection.output_dir, selection.per_owner_dir
        )
