"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class SCDownloadError(Exception):
    """Base exception for all application-specific errors."""


class TransientFetchError(SCDownloadError):
    """
    Raised when a single network call fails (timeout, bad status, empty body).
    Always recovered locally by skipping the segment or candidate.
    """


class NoPlayableStream(SCDownloadError):
    """Raised when every candidate stream descriptor was exhausted."""


class NoSegmentsDownloaded(SCDownloadError):
    """Raised when a manifest resolved but not a single segment could be fetched."""


class ExternalToolFailure(SCDownloadError):
    """Raised when ffmpeg failed on every attempted reconstruction strategy."""


class CacheInconsistency(SCDownloadError):
    """Raised when cached segments exist but their metadata record is missing."""


class ConfigurationError(SCDownloadError):
    """Raised for issues related to configuration loading or validation."""


class ClientIdError(SCDownloadError):
    """Raised when no public client id could be scraped from the web player."""


class ToolUnavailableError(SCDownloadError):
    """Raised when the ffmpeg executable cannot be run at all."""


class CatalogError(SCDownloadError):
    """Raised when a playlist, artist or likes page cannot be enumerated."""
