"""
Decides whether a previous run's segments can be reused, and persists the
per-item metadata record next to them.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from scdownload.exceptions import CacheInconsistency
from scdownload.models.item import INIT_SEGMENT_FILENAME, AudioFormat

log = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.txt"
COVER_FILENAME = "cover.jpg"
METADATA_SEPARATOR = "|"
NO_COVER = "None"
SEGMENT_SUFFIXES = (".mp3", ".m4s")


@dataclass
class CacheRecord:
    """The `artist|title|coverReference` record stored in a working directory."""

    artist: str
    title: str
    cover_url: str = NO_COVER

    def serialize(self) -> str:
        return METADATA_SEPARATOR.join((self.artist, self.title, self.cover_url))

    @classmethod
    def parse(cls, text: str) -> "CacheRecord":
        parts = text.strip().split(METADATA_SEPARATOR)
        if len(parts) > 3:
            # A separator inside the title; the cover reference never has one.
            parts = [parts[0], METADATA_SEPARATOR.join(parts[1:-1]), parts[-1]]
        artist = parts[0] if parts and parts[0] else "Unknown"
        title = parts[1] if len(parts) > 1 and parts[1] else "Unknown"
        cover = parts[2] if len(parts) > 2 and parts[2] else NO_COVER
        return cls(artist=artist, title=title, cover_url=cover)


@dataclass
class CacheState:
    """What the working directory already holds for an item."""

    cached: bool
    segment_count: int = 0
    audio_format: AudioFormat = AudioFormat.UNDEFINED


class CacheGate:
    """
    File-based cache over an item's working directory.

    Segments count as cached once `0.mp3` or `0.m4s` exists; the final output
    file counts as complete when it exists at its destination. Both checks are
    disabled when caching is turned off.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def inspect(self, work_dir: Path) -> CacheState:
        if not self.enabled:
            return CacheState(cached=False)

        has_m4s = (work_dir / "0.m4s").is_file()
        has_mp3 = (work_dir / "0.mp3").is_file()
        if not (has_m4s or has_mp3):
            return CacheState(cached=False)

        segment_count = count_audio_files(work_dir)
        audio_format = AudioFormat.M4S if has_m4s else AudioFormat.MP3
        log.debug(
            f"Cache hit in '{work_dir}': {segment_count} {audio_format.value} segments."
        )
        return CacheState(
            cached=True, segment_count=segment_count, audio_format=audio_format
        )

    def read_record(self, work_dir: Path) -> CacheRecord:
        """
        Raises:
            CacheInconsistency: If the metadata record is missing or unreadable.
        """
        record_path = work_dir / METADATA_FILENAME
        try:
            return CacheRecord.parse(record_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise CacheInconsistency(
                f"Cached segments in '{work_dir}' have no metadata record."
            ) from e

    def write_record(self, work_dir: Path, record: CacheRecord) -> None:
        work_dir.mkdir(parents=True, exist_ok=True)
        try:
            (work_dir / METADATA_FILENAME).write_text(
                record.serialize(), encoding="utf-8"
            )
        except OSError as e:
            log.warning(f"Could not write metadata record in '{work_dir}': {e}")

    def discard_segments(self, work_dir: Path) -> None:
        """Removes segments of an earlier run before a fresh fetch writes new ones."""
        for path in work_dir.glob("*"):
            if (
                path.suffix.lower() in SEGMENT_SUFFIXES
                or path.name == INIT_SEGMENT_FILENAME
            ):
                path.unlink(missing_ok=True)

    def is_complete(self, output_path: Path) -> bool:
        return self.enabled and output_path.is_file()

    @staticmethod
    def cover_path(work_dir: Path) -> Optional[Path]:
        path = work_dir / COVER_FILENAME
        return path if path.is_file() else None


def count_audio_files(work_dir: Path) -> int:
    try:
        return sum(
            1
            for p in work_dir.iterdir()
            if p.is_file() and p.suffix.lower() in SEGMENT_SUFFIXES
        )
    except OSError:
        return 0


def clear_cache(temp_dir: Path) -> int:
    """Removes every item working directory under `temp_dir`."""
    if not temp_dir.is_dir():
        return 0
    removed = 0
    for owner_dir in temp_dir.iterdir():
        if owner_dir.is_dir():
            removed += sum(1 for p in owner_dir.iterdir() if p.is_dir())
            shutil.rmtree(owner_dir, ignore_errors=True)
    log.info(f"Cleared {removed} cached item directories from '{temp_dir}'.")
    return removed
