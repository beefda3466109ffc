"""
Utilities for building working-directory and output paths.
"""

import re
from pathlib import Path

from pathvalidate import sanitize_filename

from scdownload.models.item import Item

UNKNOWN_TITLE = "Unknown"

# Escaped (hydration JSON) and literal forms of the sequences rewritten to text.
_TEXT_REPLACEMENTS = (
    ("\\u0026", "and"),
    ("\\u003c3", "ily"),
    ("&", "and"),
    ("<3", "ily"),
)
_ILLEGAL_CHARS_REGEX = re.compile(r'[<>:"/\\|?*]')


def sanitize_title(title: str | None) -> str:
    """
    Converts a track title into a safe file name stem.

    `&` becomes "and" and `<3` becomes "ily" (in both their JSON-escaped and
    literal forms), characters illegal in file names are removed, and an empty
    result falls back to "Unknown".
    """
    if not title:
        return UNKNOWN_TITLE

    result = title
    for sequence, replacement in _TEXT_REPLACEMENTS:
        result = result.replace(sequence, replacement)
    result = _ILLEGAL_CHARS_REGEX.sub("", result)
    result = sanitize_filename(result, platform="auto").strip()
    return result or UNKNOWN_TITLE


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def work_dir_for(temp_dir: Path, item: Item) -> Path:
    """The per-item working directory `<temp_dir>/<owner>/<slug>`."""
    return temp_dir / sanitize_filename(item.owner) / sanitize_filename(item.slug)


def output_path_for(
    download_dir: Path, item: Item, per_owner_dir: bool = False
) -> Path:
    """The final MP3 path, optionally inside a directory named after the owner."""
    directory = (
        download_dir / sanitize_filename(item.owner) if per_owner_dir else download_dir
    )
    return directory / f"{sanitize_title(item.title)}.mp3"
