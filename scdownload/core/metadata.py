"""
Resolves an item's descriptive metadata (artist, title, cover) from its track page.
"""

import logging
from pathlib import Path
from typing import Optional

import aiofiles

from scdownload.api.client import SoundCloudClient
from scdownload.exceptions import TransientFetchError
from scdownload.models.config import CoverSize
from scdownload.models.item import Item
from scdownload.storage.cache import COVER_FILENAME, NO_COVER, CacheGate, CacheRecord
from scdownload.web.extractors import extract_cover_url, extract_title, extract_username

log = logging.getLogger(__name__)


class MetadataResolver:
    """Fills in `Item.artist`, `Item.title` and `Item.cover_url`."""

    def __init__(
        self,
        client: SoundCloudClient,
        cache_gate: CacheGate,
        cover_size: CoverSize = CoverSize.LARGE,
    ):
        self.client = client
        self.cache_gate = cache_gate
        self.cover_size = cover_size

    async def resolve(self, item: Item, work_dir: Path) -> Optional[str]:
        """
        Fetches the track page, persists the `CacheRecord` and the cover image.

        Returns:
            The page HTML so stream resolution can reuse it, or None when the page
            could not be fetched (the item then keeps "Unknown" metadata).
        """
        try:
            html = await self.client.fetch_page(item.uri)
        except TransientFetchError as e:
            log.error(f"[red]Error downloading metadata for {item.uri}: {e}[/red]")
            item.artist, item.title, item.cover_url = "Unknown", "Unknown", NO_COVER
            return None

        item.artist = extract_username(html) or "Unknown Artist"
        item.title = extract_title(html) or "Unknown Track"
        item.cover_url = extract_cover_url(html, self.cover_size) or NO_COVER

        self.cache_gate.write_record(
            work_dir, CacheRecord(item.artist, item.title, item.cover_url)
        )
        await self.download_cover(item, work_dir)
        return html

    async def download_cover(self, item: Item, work_dir: Path) -> None:
        cover_path = work_dir / COVER_FILENAME
        if item.cover_url == NO_COVER or cover_path.exists():
            return
        try:
            data = await self.client.get_bytes(item.cover_url)
            async with aiofiles.open(cover_path, "wb") as f:
                await f.write(data)
        except (TransientFetchError, OSError) as e:
            log.debug(f"Failed to download cover for {item.uri}: {e}")
