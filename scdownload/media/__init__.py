"""
Media Processing Layer.

This package is responsible for all media file operations: fetching
segments, reconstructing them with ffmpeg, and metadata tagging.
"""

from .downloader import SegmentFetcher
from .ffmpeg import FFmpeg
from .reconstructor import Reconstructor
from .tagger import Tagger

__all__ = ["FFmpeg", "Reconstructor", "SegmentFetcher", "Tagger"]
