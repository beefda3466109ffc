"""
Finds a playable HLS stream for an item among its candidate descriptors.
"""

import logging
from typing import List, Optional

from scdownload.api.client import SoundCloudClient
from scdownload.exceptions import NoPlayableStream, TransientFetchError
from scdownload.models.item import CandidateDescriptor, Item, Manifest
from scdownload.web.extractors import (
    extract_stream_candidates,
    extract_track_authorization,
)

from .manifest import ManifestParser

log = logging.getLogger(__name__)


class StreamResolver:
    """
    Tries candidate stream descriptors strictly in the order given.

    A candidate is accepted as soon as its manifest parses to at least one
    segment; later candidates are never requested. Any failure along the way
    (bad status, missing `url`, unreachable or empty manifest) only moves on
    to the next candidate.
    """

    def __init__(
        self,
        client: SoundCloudClient,
        parser: Optional[ManifestParser] = None,
        timeout: float = 30.0,
    ):
        self.client = client
        self.parser = parser or ManifestParser()
        self.timeout = timeout

    async def resolve_item(
        self, item: Item, page_html: Optional[str] = None
    ) -> Manifest:
        """
        Extracts the candidates from the item's track page and resolves them.

        Raises:
            NoPlayableStream: If the page carries no usable candidates, or none of
            them yields a manifest with segments.
        """
        if page_html is None:
            try:
                page_html = await self.client.fetch_page(item.uri)
            except TransientFetchError as e:
                raise NoPlayableStream(f"Track page unavailable: {e}") from e

        track_authorization = extract_track_authorization(page_html)
        if not track_authorization:
            raise NoPlayableStream("Track authorization not found.")

        candidates = extract_stream_candidates(page_html)
        if not candidates:
            raise NoPlayableStream("No HLS candidates found.")

        return await self.resolve(item, candidates, track_authorization)

    async def resolve(
        self,
        item: Item,
        candidates: List[CandidateDescriptor],
        track_authorization: str,
    ) -> Manifest:
        for position, candidate in enumerate(candidates, 1):
            log.debug(
                f"Trying HLS candidate {position}/{len(candidates)}: {candidate.url}"
            )
            manifest = await self._try_candidate(candidate, track_authorization)
            if manifest is None:
                continue

            item.audio_format = manifest.audio_format
            log.debug(
                f"Accepted candidate {position} with {len(manifest)} "
                f"{item.audio_format.value} segments."
            )
            return manifest

        raise NoPlayableStream(
            f"None of the {len(candidates)} stream candidates could be played."
        )

    async def _try_candidate(
        self, candidate: CandidateDescriptor, track_authorization: str
    ) -> Optional[Manifest]:
        try:
            descriptor = await self.client.fetch_stream_descriptor(
                candidate.url, track_authorization
            )
        except TransientFetchError as e:
            log.debug(f"Skipping candidate: {e}")
            return None

        target = descriptor.get("url") if isinstance(descriptor, dict) else None
        if not target:
            log.debug("Skipping candidate: descriptor has no target url.")
            return None

        manifest_url = target.replace("\\", "")
        try:
            text = await self.client.get_text(manifest_url, timeout=self.timeout)
        except TransientFetchError as e:
            log.debug(f"Skipping candidate: manifest unavailable ({e}).")
            return None

        manifest = self.parser.parse(text, manifest_url)
        if not manifest.segments:
            log.debug("Skipping candidate: manifest has no segments.")
            return None
        return manifest
