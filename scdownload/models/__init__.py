"""
Data Models Layer.

This package contains the Pydantic configuration model and the dataclasses
that describe items, manifests and job outcomes.
"""

from .config import CoverSize, DownloadConfig
from .item import (
    AudioFormat,
    CandidateDescriptor,
    InitSegmentRef,
    Item,
    JobResult,
    JobStatus,
    Manifest,
    SegmentRef,
)
from .stats import DownloadStats

__all__ = [
    "AudioFormat",
    "CandidateDescriptor",
    "CoverSize",
    "DownloadConfig",
    "DownloadStats",
    "InitSegmentRef",
    "Item",
    "JobResult",
    "JobStatus",
    "Manifest",
    "SegmentRef",
]
