"""
Parses HLS media playlists into an ordered list of segment references.
"""

import logging
import re
from urllib.parse import urlsplit

from scdownload.models.item import InitSegmentRef, Manifest, SegmentRef

log = logging.getLogger(__name__)

_MAP_DIRECTIVE = "#EXT-X-MAP"
_URI_ATTRIBUTE_REGEX = re.compile(r'URI="([^"]+)"')
_ABSOLUTE_URL_REGEX = re.compile(r"^https?://", re.IGNORECASE)
_STRAY_QUOTES_REGEX = re.compile(r"[\"'\r]")
SEGMENT_EXTENSIONS = (".m4s", ".mp3")


def base_url_of(manifest_url: str) -> str:
    """Returns the manifest URL up to and including its final path separator."""
    return manifest_url[: manifest_url.rfind("/") + 1]


def resolve_against(base_url: str, uri: str) -> str:
    if _ABSOLUTE_URL_REGEX.match(uri):
        return uri
    return base_url + uri


def _has_segment_extension(line: str) -> bool:
    return urlsplit(line).path.lower().endswith(SEGMENT_EXTENSIONS)


class ManifestParser:
    """
    Turns manifest text into a `Manifest`.

    Unparsable input is not an error: the result simply carries no segments and
    the caller decides what to do with it.
    """

    def parse(self, text: str, manifest_url: str) -> Manifest:
        base_url = base_url_of(manifest_url)
        init_segment = None
        segment_urls: list[str] = []

        for raw_line in (text or "").splitlines():
            line = raw_line.strip()
            if not line:
                continue

            if line.startswith("#"):
                if line.startswith(_MAP_DIRECTIVE) and init_segment is None:
                    if match := _URI_ATTRIBUTE_REGEX.search(line):
                        init_segment = InitSegmentRef(
                            resolve_against(base_url, match.group(1))
                        )
                continue

            candidate = _STRAY_QUOTES_REGEX.sub("", line)
            if _ABSOLUTE_URL_REGEX.match(candidate):
                segment_urls.append(candidate)
            elif _has_segment_extension(candidate):
                segment_urls.append(base_url + candidate)

        fragmented = init_segment is not None or any(
            urlsplit(url).path.lower().endswith(".m4s") for url in segment_urls
        )
        extension = "m4s" if fragmented else "mp3"
        segments = [
            SegmentRef(url=url, index=index, extension=extension)
            for index, url in enumerate(segment_urls)
        ]

        log.debug(
            f"Parsed manifest with {len(segments)} segments"
            f"{' and an init segment' if init_segment else ''}."
        )
        return Manifest(base_url=base_url, segments=segments, init_segment=init_segment)
