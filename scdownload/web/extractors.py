"""
Best-effort field extraction from SoundCloud pages and API responses.

None of these inputs has a schema guarantee: the web pages embed their data as
hydration JSON inside script tags and the layout changes without notice. Each
routine therefore returns `None` (or an empty list) instead of raising when the
field cannot be found.
"""

import json
import logging
import re
from typing import Any, List, Optional

from bs4 import BeautifulSoup

from scdownload.models.config import CoverSize
from scdownload.models.item import CandidateDescriptor

log = logging.getLogger(__name__)

# Pre-compiled regex for performance
_USERNAME_REGEX = re.compile(r'"username":"(.*?)"')
_TITLE_REGEX = re.compile(r'"title":"(.*?)"')
_TRACK_AUTH_REGEX = re.compile(r'"track_authorization":"(.*?)"')
_HLS_CANDIDATE_REGEX = re.compile(
    r'\{"url":"(https://api-v2\.soundcloud\.com/media/soundcloud:tracks:[^"]+)"'
)
_TRACK_ID_REGEX = re.compile(r'"id":([0-9]+?),"kind":"track"')
_USER_ID_REGEX = re.compile(r'soundcloud://users:([0-9]+?)"')
_PERMALINK_REGEX = re.compile(
    r'"permalink_url":"https://soundcloud\.com/((?:[^"/]*?)/(?:[^"/]*?))"'
)
_STRICT_PERMALINK_REGEX = re.compile(
    r'"permalink_url":"https://soundcloud\.com/((?:[a-zA-Z0-9_-]*?)/(?:[a-zA-Z0-9_-]*?))"'
)
_SCRIPT_URL_REGEX = re.compile(
    r"https://a-v2\.sndcdn\.com/assets/([0-9]{1,3}-[a-zA-Z0-9*?]{8})\.js"
)
_CLIENT_ID_REGEX = re.compile(r'client_id:"([^"]+)"')


def _first(regex: re.Pattern, text: str) -> Optional[str]:
    match = regex.search(text or "")
    if match and match.group(1):
        return match.group(1)
    return None


def unescape_json_string(value: str) -> str:
    """Decodes `\\uXXXX` style escapes found in hydration JSON, if possible."""
    try:
        return json.loads(f'"{value}"')
    except ValueError:
        return value


def extract_username(html: str) -> Optional[str]:
    """The uploader's display name from a track page."""
    value = _first(_USERNAME_REGEX, html)
    return unescape_json_string(value) if value else None


def extract_title(html: str) -> Optional[str]:
    """The track title from a track page."""
    value = _first(_TITLE_REGEX, html)
    return unescape_json_string(value) if value else None


def extract_cover_url(
    html: str, cover_size: CoverSize = CoverSize.LARGE
) -> Optional[str]:
    """
    The `og:image` cover URL. The CDN serves 500x500 by default; the original
    upload is requested by swapping the size token.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    meta = soup.find("meta", attrs={"property": "og:image"})
    cover = meta.get("content") if meta else None
    if not cover:
        return None
    if cover_size is CoverSize.ORIGINAL:
        cover = cover.replace(CoverSize.LARGE.value, CoverSize.ORIGINAL.value)
    return cover


def extract_track_authorization(html: str) -> Optional[str]:
    return _first(_TRACK_AUTH_REGEX, html)


def extract_stream_candidates(html: str) -> List[CandidateDescriptor]:
    """All media transcoding endpoints in page order, duplicates removed."""
    urls = [m.group(1) for m in _HLS_CANDIDATE_REGEX.finditer(html or "")]
    return [CandidateDescriptor(url) for url in dict.fromkeys(urls)]


def extract_track_ids(html: str) -> List[str]:
    """Track ids listed on a playlist/album page."""
    ids = (m.group(1) for m in _TRACK_ID_REGEX.finditer(html or ""))
    return list(dict.fromkeys(ids))


def extract_user_id(html: str) -> Optional[str]:
    return _first(_USER_ID_REGEX, html)


def extract_permalinks(payload: Any, strict: bool = False) -> List[str]:
    """
    `owner/slug` identifiers from an API response.

    `strict` only accepts alphanumeric, dash and underscore path components,
    which is what artist upload and like listings need.
    """
    if isinstance(payload, str):
        text = payload
    else:
        text = json.dumps(payload, separators=(",", ":"))
    regex = _STRICT_PERMALINK_REGEX if strict else _PERMALINK_REGEX
    return [m.group(1) for m in regex.finditer(text) if m.group(1)]


def extract_script_urls(html: str) -> List[str]:
    urls = (m.group(0) for m in _SCRIPT_URL_REGEX.finditer(html or ""))
    return list(dict.fromkeys(urls))


def extract_client_id(script: str) -> Optional[str]:
    return _first(_CLIENT_ID_REGEX, script)
