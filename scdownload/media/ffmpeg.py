"""
Runs ffmpeg as an async subprocess with a hard time limit.
"""

import asyncio
import logging
import shutil
import subprocess
from typing import Sequence

from scdownload.exceptions import ExternalToolFailure, ToolUnavailableError

log = logging.getLogger(__name__)


class FFmpeg:
    """Invokes the ffmpeg executable; success is exit code zero."""

    def __init__(self, executable: str = "ffmpeg", timeout: float = 120.0):
        self.executable = executable
        self.timeout = timeout

    def check_available(self) -> str:
        """
        Verifies that ffmpeg can be executed before any job is scheduled.

        Returns:
            The first line of `ffmpeg -version`.

        Raises:
            ToolUnavailableError: If the executable is missing or fails.
        """
        if shutil.which(self.executable) is None:
            raise ToolUnavailableError(f"'{self.executable}' was not found on PATH.")
        try:
            result = subprocess.run(
                [self.executable, "-version"],
                capture_output=True,
                text=True,
                timeout=15,
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise ToolUnavailableError(f"'{self.executable}' cannot be run: {e}") from e
        return result.stdout.splitlines()[0] if result.stdout else self.executable

    async def run(self, args: Sequence[str]) -> None:
        """
        Runs `ffmpeg -hide_banner -loglevel error <args>`.

        Raises:
            ExternalToolFailure: On a non-zero exit, a timeout or a spawn error.
        """
        command = [self.executable, "-hide_banner", "-loglevel", "error", *args]
        log.debug(f"Running: {' '.join(command)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalToolFailure(f"Could not start ffmpeg: {e}") from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), self.timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise ExternalToolFailure(
                f"ffmpeg timed out after {self.timeout:g}s"
            ) from e

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip().splitlines()
            raise ExternalToolFailure(
                f"ffmpeg exited with code {process.returncode}"
                + (f": {message[-1]}" if message else "")
            )
