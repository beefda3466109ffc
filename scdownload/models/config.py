"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import os
import tempfile
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class CoverSize(str, Enum):
    """Cover art resolution to request from the image CDN."""

    LARGE = "t500x500"
    ORIGINAL = "original"


def default_temp_dir() -> Path:
    return Path(tempfile.gettempdir()) / "SCDownloader"


class DownloadConfig(BaseModel):
    """A validated configuration model for the application."""

    # Locations
    temp_dir: Path = Field(default_factory=default_temp_dir)
    download_dir: Path = Field(default_factory=Path.cwd)

    # Download Settings
    cache_enabled: bool = True
    cover_size: CoverSize = CoverSize.LARGE
    max_workers: int = 3
    client_id: str = ""

    # External tool and timeouts (seconds)
    ffmpeg_path: str = "ffmpeg"
    request_timeout: float = 30.0
    tool_timeout: float = 120.0

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("request_timeout", "tool_timeout")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive.")
        return v

    @field_validator("temp_dir", "download_dir", mode="before")
    @classmethod
    def expand_paths(cls, v):
        if isinstance(v, str):
            if not v.strip():
                raise ValueError("Directory paths cannot be empty.")
            v = os.path.expandvars(v.strip())
        return Path(v).expanduser()

    @field_validator("ffmpeg_path")
    @classmethod
    def validate_ffmpeg_path(cls, v: str) -> str:
        if not v:
            raise ValueError("ffmpeg_path cannot be empty.")
        return v

    @model_validator(mode="after")
    def validate_directories(self) -> "DownloadConfig":
        """Segments and finished files must not share a directory."""
        if self.temp_dir.resolve() == self.download_dir.resolve():
            raise ValueError(
                "temp_dir and download_dir must be different directories."
            )
        return self

    @property
    def original_cover(self) -> bool:
        return self.cover_size is CoverSize.ORIGINAL

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return set(cls.model_fields)
