"""
Fetches the segments of a resolved manifest into an item's working directory.
"""

import logging
from pathlib import Path
from typing import Optional

import aiofiles

from scdownload.api.client import SoundCloudClient
from scdownload.exceptions import NoSegmentsDownloaded, TransientFetchError
from scdownload.models.item import Manifest
from scdownload.models.stats import DownloadStats

log = logging.getLogger(__name__)


class SegmentFetcher:
    """
    Downloads segments strictly in manifest order, one at a time.

    A failed segment is logged and skipped; it never fails the job by itself.
    Successful segments are numbered contiguously on disk (`0.<ext>`,
    `1.<ext>`, ...) so the reconstructor can rely on `0..count-1` existing.
    """

    def __init__(
        self,
        client: SoundCloudClient,
        timeout: float = 30.0,
        stats: Optional[DownloadStats] = None,
    ):
        self.client = client
        self.timeout = timeout
        self.stats = stats

    async def _write(self, path: Path, data: bytes) -> None:
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        if self.stats:
            self.stats.total_size_downloaded += len(data)

    async def fetch_init_segment(self, manifest: Manifest, work_dir: Path) -> bool:
        """Fetches the init segment, if any. Failure is tolerated."""
        init_segment = manifest.init_segment
        if init_segment is None:
            return False
        try:
            data = await self.client.get_bytes(init_segment.url, timeout=self.timeout)
            await self._write(work_dir / init_segment.filename, data)
            log.debug("Init segment downloaded.")
            return True
        except TransientFetchError as e:
            log.warning(f"[yellow]Failed to download init segment: {e}[/yellow]")
            return False

    async def fetch_all(self, manifest: Manifest, work_dir: Path) -> int:
        """
        Fetches the init segment and then every segment in index order.

        Returns:
            The number of segments written to disk.

        Raises:
            NoSegmentsDownloaded: If not a single segment could be fetched.
        """
        work_dir.mkdir(parents=True, exist_ok=True)
        await self.fetch_init_segment(manifest, work_dir)

        total = len(manifest.segments)
        written = 0
        for segment in manifest.segments:
            log.debug(f"Downloading segment {segment.index + 1}/{total}...")
            try:
                data = await self.client.get_bytes(segment.url, timeout=self.timeout)
                await self._write(work_dir / f"{written}.{segment.extension}", data)
            except (TransientFetchError, OSError) as e:
                if self.stats:
                    self.stats.segments_failed += 1
                log.warning(
                    f"[yellow]Error segment {segment.index + 1}/{total}: {e}[/yellow]"
                )
                continue
            written += 1
            if self.stats:
                self.stats.segments_fetched += 1

        if written == 0:
            raise NoSegmentsDownloaded(
                f"None of the {total} segments could be downloaded."
            )
        log.debug(
            f"Downloaded {written}/{total} segments as {manifest.audio_format.value}."
        )
        return written
