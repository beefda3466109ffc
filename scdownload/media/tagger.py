"""
Writes ID3 tags and the front cover into reconstructed MP3 files.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import mutagen.id3 as id3
from mutagen import MutagenError
from mutagen.id3 import ID3NoHeaderError

log = logging.getLogger(__name__)


class Tagger:
    """Writes metadata tags to MP3 files."""

    def __init__(self, embed_art: bool = True):
        self.embed_art = embed_art

    def tag_file(
        self,
        file_path: Path,
        title: str,
        artist: str,
        album: str,
        cover_path: Optional[Path] = None,
    ) -> bool:
        """
        Tags `file_path` in place. Failures are logged and reported as False; a
        file without tags is still a successful download.
        """
        try:
            try:
                audio = id3.ID3(file_path)
            except ID3NoHeaderError:
                audio = id3.ID3()

            audio.add(id3.TIT2(encoding=3, text=title))
            audio.add(id3.TPE1(encoding=3, text=artist))
            audio.add(id3.TPE2(encoding=3, text=artist))
            audio.add(id3.TALB(encoding=3, text=album))

            if self.embed_art and cover_path:
                self._embed_cover(cover_path, audio)

            audio.save(filename=file_path, v2_version=3)
            return True
        except (MutagenError, OSError) as e:
            log.error(
                f"Failed to write metadata to '{os.path.basename(file_path)}': {e}",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            return False

    def _embed_cover(self, cover_path: Path, audio: id3.ID3) -> None:
        if not cover_path.is_file():
            return

        with open(cover_path, "rb") as f:
            if "APIC:" in audio:
                del audio["APIC:"]
            audio.add(
                id3.APIC(
                    encoding=3, mime="image/jpeg", type=3, desc="", data=f.read()
                )
            )
