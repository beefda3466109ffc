"""
Handles the processing of a single track, from cache check to tagging.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.markup import escape

from scdownload.api.client import SoundCloudClient
from scdownload.exceptions import CacheInconsistency
from scdownload.media import FFmpeg, Reconstructor, SegmentFetcher, Tagger
from scdownload.models.config import DownloadConfig
from scdownload.models.item import Item, JobResult, JobStatus
from scdownload.models.stats import DownloadStats
from scdownload.storage.cache import CacheGate
from scdownload.utils.path import create_dir, output_path_for, work_dir_for

from .metadata import MetadataResolver
from .resolver import StreamResolver

log = logging.getLogger(__name__)


class TrackProcessor:
    """
    Runs one item's job: cache gate, metadata, stream resolution, segment
    fetching, reconstruction and tagging.

    Job-fatal errors (`NoPlayableStream`, `NoSegmentsDownloaded`,
    `ExternalToolFailure`) propagate to the scheduler; everything below that
    level is absorbed here or in the collaborators.
    """

    def __init__(
        self,
        config: DownloadConfig,
        client: SoundCloudClient,
        stats: DownloadStats,
        fetcher: Optional[SegmentFetcher] = None,
        reconstructor: Optional[Reconstructor] = None,
        tagger: Optional[Tagger] = None,
    ):
        self.config = config
        self.client = client
        self.stats = stats
        self.cache_gate = CacheGate(config.cache_enabled)
        self.metadata = MetadataResolver(client, self.cache_gate, config.cover_size)
        self.resolver = StreamResolver(client, timeout=config.request_timeout)
        self.fetcher = fetcher or SegmentFetcher(
            client, timeout=config.request_timeout, stats=stats
        )
        self.reconstructor = reconstructor or Reconstructor(
            FFmpeg(config.ffmpeg_path, timeout=config.tool_timeout)
        )
        self.tagger = tagger or Tagger()

    async def process(
        self, uri: str, output_dir: Path, per_owner_dir: bool = False
    ) -> JobResult:
        item = Item(uri=uri)
        work_dir = work_dir_for(self.config.temp_dir, item)
        create_dir(work_dir)

        state = self.cache_gate.inspect(work_dir)
        page_html = None
        if state.cached:
            log.info(f"Using cache: [dim]{escape(uri)}[/dim]")
            item.segment_count = state.segment_count
            item.audio_format = state.audio_format
            try:
                record = self.cache_gate.read_record(work_dir)
                item.artist, item.title, item.cover_url = (
                    record.artist,
                    record.title,
                    record.cover_url,
                )
            except CacheInconsistency as e:
                log.warning(f"[yellow]{e} Re-resolving metadata only.[/yellow]")
                await self.metadata.resolve(item, work_dir)
        else:
            page_html = await self.metadata.resolve(item, work_dir)

        output_path = output_path_for(output_dir, item, per_owner_dir)
        if self.cache_gate.is_complete(output_path):
            self.stats.tracks_skipped_exists += 1
            log.info(
                f"[yellow]○ Already exists:[/yellow] [dim]{escape(output_path.name)}[/dim]"
            )
            return JobResult(item, JobStatus.SKIPPED_EXISTS, from_cache=state.cached)

        if not state.cached:
            self.cache_gate.discard_segments(work_dir)
            manifest = await self.resolver.resolve_item(item, page_html)
            log.info(
                f"Found {len(manifest)} segments for [dim]{escape(uri)}[/dim]"
                f"{' (M4S with init segment)' if manifest.init_segment else ''}"
            )
            item.segment_count = await self.fetcher.fetch_all(manifest, work_dir)

        log.info(
            f"Processing {item.audio_format.value.upper()}: {escape(item.title)}"
        )
        await self.reconstructor.reconstruct(
            work_dir, item.segment_count, item.audio_format, output_path
        )

        self.tagger.tag_file(
            output_path,
            title=item.title,
            artist=item.artist,
            album=item.uri,
            cover_path=self.cache_gate.cover_path(work_dir),
        )

        self.stats.tracks_downloaded += 1
        if state.cached:
            self.stats.tracks_from_cache += 1
        log.info(f"[green]✓ {escape(item.title)}[/green]")
        return JobResult(item, JobStatus.DOWNLOADED, from_cache=state.cached)
