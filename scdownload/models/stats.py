"""
Dataclass for tracking download session statistics.
"""

from collections import Counter
from dataclasses import dataclass, field


@dataclass
class DownloadStats:
    """Tracks statistics for a download session."""

    tracks_downloaded: int = 0
    tracks_from_cache: int = 0
    tracks_skipped_exists: int = 0
    tracks_failed: int = 0
    segments_fetched: int = 0
    segments_failed: int = 0
    total_size_downloaded: int = 0
    peak_concurrent: int = 0
    failures_by_kind: Counter = field(default_factory=Counter)

    def record_failure(self, error: Exception) -> None:
        self.tracks_failed += 1
        self.failures_by_kind[type(error).__name__] += 1
