"""
Assembles downloaded segments into a single MP3 file.
"""

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, List

from scdownload.exceptions import ExternalToolFailure
from scdownload.models.item import INIT_SEGMENT_FILENAME, AudioFormat

from .ffmpeg import FFmpeg

log = logging.getLogger(__name__)

COMBINED_FILENAME = "combined.mp4"
FILELIST_FILENAME = "filelist.txt"
MP3_ENCODER_ARGS = ("-acodec", "libmp3lame", "-q:a", "2")


def _concat_files(sources: List[Path], destination: Path) -> None:
    with open(destination, "wb") as out:
        for source in sources:
            with open(source, "rb") as f:
                out.write(f.read())


def _quote_for_filelist(path: Path) -> str:
    return "file '" + str(path.resolve()).replace("'", "'\\''") + "'"


class Reconstructor:
    """
    Turns the segments in a working directory into the final audio file.

    MP3 segments are stream-copied through ffmpeg's concat protocol. M4S
    fragments go through up to three strategies, stopping at the first one
    that succeeds:

    1. ``init``:   init segment + fragments joined into one MP4, then transcoded.
    2. ``demuxer``: ffmpeg's concat demuxer over a file list of the fragments.
    3. ``binary``: fragments joined byte-wise (ignoring framing), then transcoded.
    """

    def __init__(self, ffmpeg: FFmpeg):
        self.ffmpeg = ffmpeg

    async def reconstruct(
        self,
        work_dir: Path,
        segment_count: int,
        audio_format: AudioFormat,
        output_path: Path,
    ) -> str:
        """
        Builds `output_path` from the first `segment_count` segments.

        Returns:
            The name of the strategy that produced the file.

        Raises:
            ExternalToolFailure: If every applicable strategy failed.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            if audio_format is AudioFormat.MP3:
                await self._concat_mp3(work_dir, segment_count, output_path)
                return "copy"
            if audio_format is AudioFormat.M4S:
                return await self._convert_m4s(work_dir, segment_count, output_path)
            raise ExternalToolFailure(f"Unknown segment format: {audio_format.value}")
        except ExternalToolFailure:
            # A half-written output would be mistaken for a finished one next run.
            output_path.unlink(missing_ok=True)
            raise

    @staticmethod
    def _segments(work_dir: Path, segment_count: int, ext: str) -> List[Path]:
        paths = [work_dir / f"{i}.{ext}" for i in range(segment_count)]
        return [p for p in paths if p.is_file()]

    async def _concat_mp3(
        self, work_dir: Path, segment_count: int, output_path: Path
    ) -> None:
        inputs = [str(p) for p in self._segments(work_dir, segment_count, "mp3")]
        if not inputs:
            raise ExternalToolFailure("No MP3 segments found.")
        await self.ffmpeg.run(
            [
                "-i",
                "concat:" + "|".join(inputs),
                "-acodec",
                "copy",
                str(output_path),
                "-y",
            ]
        )

    async def _transcode(self, source: Path, output_path: Path) -> None:
        await self.ffmpeg.run(
            ["-i", str(source), *MP3_ENCODER_ARGS, str(output_path), "-y"]
        )

    async def _from_init_segment(
        self, work_dir: Path, fragments: List[Path], output_path: Path
    ) -> None:
        init_path = work_dir / INIT_SEGMENT_FILENAME
        if not init_path.is_file():
            raise ExternalToolFailure("Init segment is missing.")
        combined = work_dir / COMBINED_FILENAME
        await asyncio.to_thread(_concat_files, [init_path, *fragments], combined)
        await self._transcode(combined, output_path)

    async def _from_concat_demuxer(
        self, work_dir: Path, fragments: List[Path], output_path: Path
    ) -> None:
        file_list = work_dir / FILELIST_FILENAME
        file_list.write_text(
            "\n".join(_quote_for_filelist(p) for p in fragments), encoding="utf-8"
        )
        await self.ffmpeg.run(
            [
                "-f",
                "concat",
                "-safe",
                "0",
                "-i",
                str(file_list),
                *MP3_ENCODER_ARGS,
                str(output_path),
                "-y",
            ]
        )

    async def _from_binary_concat(
        self, work_dir: Path, fragments: List[Path], output_path: Path
    ) -> None:
        combined = work_dir / COMBINED_FILENAME
        await asyncio.to_thread(_concat_files, fragments, combined)
        await self._transcode(combined, output_path)

    async def _convert_m4s(
        self, work_dir: Path, segment_count: int, output_path: Path
    ) -> str:
        fragments = self._segments(work_dir, segment_count, "m4s")
        if not fragments:
            raise ExternalToolFailure("No M4S segments found.")

        strategies: List[tuple[str, Callable[..., Awaitable[None]]]] = [
            ("init", self._from_init_segment),
            ("demuxer", self._from_concat_demuxer),
            ("binary", self._from_binary_concat),
        ]
        errors = []
        try:
            for name, strategy in strategies:
                try:
                    await strategy(work_dir, fragments, output_path)
                    log.debug(f"M4S conversion succeeded using the '{name}' strategy.")
                    return name
                except (ExternalToolFailure, OSError) as e:
                    errors.append(f"{name}: {e}")
                    log.info(
                        f"  [dim]M4S '{name}' strategy failed ({e}), trying next...[/dim]"
                    )
        finally:
            for temp_name in (COMBINED_FILENAME, FILELIST_FILENAME):
                (work_dir / temp_name).unlink(missing_ok=True)

        raise ExternalToolFailure(
            "All M4S conversion strategies failed: " + "; ".join(errors)
        )
