"""Concurrent SoundCloud HLS downloader."""

__version__ = "1.0.0"
