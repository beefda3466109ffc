"""
Enumerates the `owner/slug` identifiers behind a track, playlist, album,
artist or likes page.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List

from scdownload.exceptions import CatalogError, TransientFetchError
from scdownload.web.extractors import (
    extract_permalinks,
    extract_track_ids,
    extract_user_id,
)

from .client import SoundCloudClient

log = logging.getLogger(__name__)

_WEB_PREFIX = "https://soundcloud.com/"


class CatalogKind(str, Enum):
    TRACK = "track"
    ALBUM = "album"
    PLAYLIST = "playlist"
    ARTIST = "artist"
    LIKED = "liked"


@dataclass
class CatalogSelection:
    """The items to download and the directory their output files go to."""

    uris: List[str]
    output_dir: Path
    per_owner_dir: bool = False


def normalize_identifier(raw: str, kind: CatalogKind = CatalogKind.TRACK) -> str:
    """Accepts bare identifiers or full web URLs and drops query strings."""
    value = raw.strip()
    if kind is CatalogKind.LIKED and "/likes" in value:
        value = value.split("/likes")[0]
    if _WEB_PREFIX in value:
        value = value.split(_WEB_PREFIX, 1)[1]
    value = value.split("?", 1)[0]
    return value.strip("/")


class CatalogResolver:
    """Turns a (kind, identifier) pair into an ordered list of track identifiers."""

    BATCH_SIZE = 10

    def __init__(self, client: SoundCloudClient):
        self._client = client

    async def resolve(
        self, kind: CatalogKind, identifier: str, download_dir: Path
    ) -> CatalogSelection:
        uri = normalize_identifier(identifier, kind)
        if not uri:
            raise CatalogError(f"Empty {kind.value} identifier.")

        if kind is CatalogKind.TRACK:
            return CatalogSelection([uri], download_dir, per_owner_dir=True)
        if kind in (CatalogKind.PLAYLIST, CatalogKind.ALBUM):
            return CatalogSelection(await self._playlist(uri), download_dir / uri)
        if kind is CatalogKind.ARTIST:
            return CatalogSelection(
                await self._artist(uri), download_dir / "artist" / uri
            )
        return CatalogSelection(await self._liked(uri), download_dir / "liked" / uri)

    async def _fetch_page(self, uri: str) -> str:
        try:
            return await self._client.fetch_page(uri)
        except TransientFetchError as e:
            raise CatalogError(f"Could not load page '{uri}': {e}") from e

    async def _playlist(self, uri: str) -> List[str]:
        log.info(f"Fetching playlist [dim]{uri}[/dim]...")
        html = await self._fetch_page(uri)
        track_ids = extract_track_ids(html)
        if not track_ids:
            raise CatalogError(f"No tracks found on '{uri}'.")

        result: List[str] = []
        for start in range(0, len(track_ids), self.BATCH_SIZE):
            batch = track_ids[start : start + self.BATCH_SIZE]
            try:
                payload = await self._client.fetch_tracks(batch)
            except TransientFetchError as e:
                log.error(f"[red]Error fetching batch: {e}[/red]")
                continue
            result.extend(extract_permalinks(payload))
        return result

    async def _user_id(self, uri: str) -> str:
        html = await self._fetch_page(uri)
        user_id = extract_user_id(html)
        if not user_id:
            raise CatalogError(f"User ID not found for '{uri}'.")
        return user_id

    async def _artist(self, uri: str) -> List[str]:
        log.info(f"Fetching uploads of [dim]{uri}[/dim]...")
        user_id = await self._user_id(uri)
        try:
            payload = await self._client.fetch_user_tracks(user_id)
        except TransientFetchError as e:
            raise CatalogError(f"Could not list uploads of '{uri}': {e}") from e
        return extract_permalinks(payload, strict=True)

    async def _liked(self, uri: str) -> List[str]:
        log.info(f"Fetching likes of [dim]{uri}[/dim]...")
        user_id = await self._user_id(uri)
        try:
            payload = await self._client.fetch_user_likes(user_id)
        except TransientFetchError as e:
            raise CatalogError(f"Could not list likes of '{uri}': {e}") from e
        # Strict permalinks are exactly two components, so liked sets drop out.
        return extract_permalinks(payload, strict=True)
