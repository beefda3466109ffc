"""
Async HTTP client for the SoundCloud web pages, the api-v2 JSON endpoints and
the media CDN.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from scdownload.exceptions import TransientFetchError

log = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json, text/javascript, */*; q=0.1",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Origin": "https://soundcloud.com",
    "Pragma": "no-cache",
    "Referer": "https://soundcloud.com/",
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-site",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/116.0.0.0 Safari/537.36",
}


class SoundCloudClient:
    """
    Thin async wrapper around one shared aiohttp session.

    Every failure of a single call (timeout, connection error, non-success
    status, undecodable body) surfaces as `TransientFetchError` so callers can
    skip the unit of work it belonged to.
    """

    WEB_URL = "https://soundcloud.com/"
    API_URL = "https://api-v2.soundcloud.com/"
    APP_VERSION = "1709298204"

    def __init__(
        self, client_id: str = "", max_workers: int = 3, timeout: float = 30.0
    ):
        self.client_id = client_id
        self.max_workers = max_workers
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "SoundCloudClient":
        await self._initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_workers * 2,
                limit_per_host=self.max_workers,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers=DEFAULT_HEADERS,
                timeout=aiohttp.ClientTimeout(total=self.timeout, sock_connect=15),
            )
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            log.debug("SoundCloud client session closed.")

    async def _request(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        as_bytes: bool = False,
    ) -> tuple[int, Any]:
        session = await self._initialize_session()
        request_timeout = aiohttp.ClientTimeout(total=timeout or self.timeout)
        try:
            async with session.get(
                url, params=params, timeout=request_timeout, allow_redirects=True
            ) as response:
                body = await (response.read() if as_bytes else response.text())
                return response.status, body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientFetchError(
                f"GET {url} failed: {e or type(e).__name__}"
            ) from e
        except UnicodeDecodeError as e:
            raise TransientFetchError(f"GET {url} returned an undecodable body") from e

    async def get_text(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> str:
        status, body = await self._request(url, params=params, timeout=timeout)
        if status != 200:
            raise TransientFetchError(f"GET {url} returned HTTP {status}")
        if not body.strip():
            raise TransientFetchError(f"GET {url} returned an empty body")
        return body

    async def get_bytes(self, url: str, timeout: Optional[float] = None) -> bytes:
        status, body = await self._request(url, timeout=timeout, as_bytes=True)
        if status != 200:
            raise TransientFetchError(f"GET {url} returned HTTP {status}")
        if not body:
            raise TransientFetchError(f"GET {url} returned an empty body")
        return body

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        text = await self.get_text(url, params=params, timeout=timeout)
        try:
            return json.loads(text)
        except ValueError as e:
            raise TransientFetchError(f"GET {url} returned malformed JSON") from e

    # Public API Methods
    async def fetch_page(self, uri: str) -> str:
        """Fetches the public web page for `owner/slug` (or `owner`)."""
        return await self.get_text(self.WEB_URL + uri)

    async def fetch_stream_descriptor(
        self, descriptor_url: str, track_authorization: str
    ) -> Dict[str, Any]:
        return await self.get_json(
            descriptor_url,
            params={
                "client_id": self.client_id,
                "track_authorization": track_authorization,
            },
        )

    async def fetch_tracks(self, track_ids: List[str]) -> Any:
        return await self.get_json(
            self.API_URL + "tracks",
            params={
                "ids": ",".join(track_ids),
                "client_id": self.client_id,
                "app_version": self.APP_VERSION,
                "app_locale": "en",
            },
        )

    async def fetch_user_tracks(self, user_id: str) -> Any:
        return await self.get_json(
            f"{self.API_URL}users/{user_id}/tracks",
            params={
                "offset": 0,
                "limit": 79999,
                "client_id": self.client_id,
                "app_version": self.APP_VERSION,
                "app_locale": "en",
            },
        )

    async def fetch_user_likes(self, user_id: str) -> Any:
        return await self.get_json(
            f"{self.API_URL}users/{user_id}/likes",
            params={
                "offset": 0,
                "limit": 999999,
                "linked_partitioning": 1,
                "client_id": self.client_id,
                "app_version": self.APP_VERSION,
                "app_locale": "en",
            },
        )
