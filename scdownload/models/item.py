"""
Core data structures shared by the resolver, fetcher, reconstructor and scheduler.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

INIT_SEGMENT_FILENAME = "init.mp4"


class AudioFormat(str, Enum):
    """Segment formats understood by the reconstructor."""

    UNDEFINED = "undefined"
    MP3 = "mp3"  # self-contained frames, byte concatenation is enough
    M4S = "m4s"  # fragmented MP4, needs an init segment and a transcode


class JobStatus(str, Enum):
    DOWNLOADED = "downloaded"
    SKIPPED_EXISTS = "skipped_exists"
    FAILED = "failed"


@dataclass
class Item:
    """A single track identified by its `owner/slug` permalink."""

    uri: str
    artist: str = ""
    title: str = ""
    cover_url: str = "None"
    audio_format: AudioFormat = AudioFormat.UNDEFINED
    segment_count: int = 0

    @property
    def owner(self) -> str:
        return self.uri.split("/")[0]

    @property
    def slug(self) -> str:
        parts = self.uri.split("/")
        return parts[1] if len(parts) > 1 else parts[0]


@dataclass(frozen=True)
class CandidateDescriptor:
    """One upstream stream endpoint for an item."""

    url: str


@dataclass(frozen=True)
class SegmentRef:
    url: str
    index: int
    extension: str


@dataclass(frozen=True)
class InitSegmentRef:
    url: str
    filename: str = INIT_SEGMENT_FILENAME


@dataclass
class Manifest:
    """An ordered list of segments plus an optional initialization segment."""

    base_url: str
    segments: list[SegmentRef] = field(default_factory=list)
    init_segment: Optional[InitSegmentRef] = None

    @property
    def audio_format(self) -> AudioFormat:
        if not self.segments:
            return AudioFormat.UNDEFINED
        if self.init_segment or any(s.extension == "m4s" for s in self.segments):
            return AudioFormat.M4S
        return AudioFormat.MP3

    def __len__(self) -> int:
        return len(self.segments)


@dataclass
class JobResult:
    """Outcome of one item's job as reported to the scheduler."""

    item: Item
    status: JobStatus
    error: Optional[Exception] = None
    from_cache: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status is not JobStatus.FAILED
