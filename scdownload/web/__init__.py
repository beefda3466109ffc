"""
Web Scraping Layer.

This package contains the best-effort extractors for SoundCloud pages and
API payloads, and the fetcher that scrapes the public client id.
"""

from .client_id import ClientIdFetcher

__all__ = ["ClientIdFetcher"]
