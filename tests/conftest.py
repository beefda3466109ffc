import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure tests can import the package regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from scdownload.exceptions import TransientFetchError  # noqa: E402


class FakeClient:
    """
    Stands in for `SoundCloudClient`. Every response table maps a key to a
    value or to an exception instance; unknown keys fail like a 404.
    """

    def __init__(
        self,
        pages: dict[str, Any] | None = None,
        descriptors: dict[str, Any] | None = None,
        texts: dict[str, Any] | None = None,
        blobs: dict[str, Any] | None = None,
        json_payloads: dict[str, Any] | None = None,
    ) -> None:
        self.client_id = "test-client-id"
        self.pages = pages or {}
        self.descriptors = descriptors or {}
        self.texts = texts or {}
        self.blobs = blobs or {}
        self.json_payloads = json_payloads or {}
        self.calls: list[tuple[str, str]] = []

    @staticmethod
    def _lookup(table: dict[str, Any], key: str) -> Any:
        if key not in table:
            raise TransientFetchError(f"GET {key} returned HTTP 404")
        value = table[key]
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_page(self, uri: str) -> str:
        self.calls.append(("page", uri))
        return self._lookup(self.pages, uri)

    async def fetch_stream_descriptor(self, url: str, track_authorization: str):
        self.calls.append(("descriptor", url))
        return self._lookup(self.descriptors, url)

    async def get_text(self, url: str, params=None, timeout=None) -> str:
        self.calls.append(("text", url))
        return self._lookup(self.texts, url)

    async def get_bytes(self, url: str, timeout=None) -> bytes:
        self.calls.append(("bytes", url))
        return self._lookup(self.blobs, url)

    async def fetch_tracks(self, track_ids: list[str]):
        key = ",".join(track_ids)
        self.calls.append(("tracks", key))
        return self._lookup(self.json_payloads, key)

    async def fetch_user_tracks(self, user_id: str):
        self.calls.append(("user_tracks", user_id))
        return self._lookup(self.json_payloads, f"tracks:{user_id}")

    async def fetch_user_likes(self, user_id: str):
        self.calls.append(("user_likes", user_id))
        return self._lookup(self.json_payloads, f"likes:{user_id}")

    def calls_of(self, kind: str) -> list[str]:
        return [key for call_kind, key in self.calls if call_kind == kind]


@pytest.fixture
def fake_client():
    return FakeClient
