"""
Core application engine for orchestrating the download process.

This package contains the primary logic. The `DownloadManager` acts
as the high-level session coordinator, the `DownloadScheduler` bounds how
many items run at once, and the `TrackProcessor` carries each item from
cache check to tagged MP3.
"""

from .download_manager import DownloadManager, DownloadScheduler
from .track_processor import TrackProcessor

__all__ = ["DownloadManager", "DownloadScheduler", "TrackProcessor"]
