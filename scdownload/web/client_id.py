"""
Fetches the SoundCloud web player's JavaScript assets to extract the public
client_id required by the api-v2 endpoints.
"""

import asyncio
import logging

from scdownload.api.client import SoundCloudClient
from scdownload.exceptions import ClientIdError, TransientFetchError

from .extractors import extract_client_id, extract_script_urls

log = logging.getLogger(__name__)

# Any public page works; it only has to reference the asset bundles.
_SEED_PAGE = "zeunig/test"


class ClientIdFetcher:
    """
    Scans the asset bundles referenced by a public page until one of them
    embeds a `client_id:"..."` literal.
    """

    def __init__(self, client: SoundCloudClient):
        self._client = client

    async def fetch(self, max_retries: int = 3) -> str:
        """Returns the client id, retrying the whole scan with backoff."""
        for attempt in range(1, max_retries + 1):
            try:
                log.debug(f"Attempt {attempt}/{max_retries} to fetch client id...")
                page_html = await self._client.fetch_page(_SEED_PAGE)
                script_urls = extract_script_urls(page_html)
                if not script_urls:
                    raise ClientIdError("No asset bundles referenced on the page.")

                for script_url in script_urls:
                    try:
                        script = await self._client.get_text(script_url)
                    except TransientFetchError as e:
                        log.debug(f"Skipping asset bundle {script_url}: {e}")
                        continue
                    if client_id := extract_client_id(script):
                        log.debug(f"Found client id in {script_url}")
                        return client_id

                raise ClientIdError("No client id found in any asset bundle.")
            except (TransientFetchError, ClientIdError) as e:
                log.warning(f"Client id fetch attempt {attempt} failed: {e}")
                if attempt == max_retries:
                    raise ClientIdError(
                        f"Failed to fetch client id after {max_retries} attempts."
                    ) from e
                await asyncio.sleep(2**attempt)

        raise ClientIdError("Client id fetching failed unexpectedly.")
