from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .constants import DEFAULT_FFMPEG

logger = logging.getLogger(__name__)

GIF_FILTER = "fps=10,scale=480:-1:flags=lanczos"

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class Transcoder:
    """Best-effort ffmpeg post-processing for downloaded videos.

    ``available`` is probed once per process with :meth:`detect` and passed
    to the writer. Every operation degrades to leaving the original file in
    place when ffmpeg is missing or fails.
    """

    executable: str = DEFAULT_FFMPEG
    available: bool = False
    runner: Runner = field(default=subprocess.run, repr=False, compare=False)

    @classmethod
    def detect(cls, executable: str = DEFAULT_FFMPEG, *, runner: Runner = subprocess.run) -> "Transcoder":
        try:
            runner([executable, "-version"], check=True, capture_output=True)
            available = True
        except (FileNotFoundError, subprocess.CalledProcessError, OSError) as exc:
            logger.debug("%s unavailable: %s", executable, exc)
            available = False
        return cls(executable=executable, available=available, runner=runner)

    def _run(self, args: list[str]) -> None:
        self.runner([self.executable, *args], check=True, capture_output=True)

    def strip_audio(self, path: Path) -> bool:
        """Remove the audio track of *path* in place. Returns True when stripped."""
        path = Path(path)
        if not self.available:
            logger.warning(
                "%s not found, skipping audio removal. Install ffmpeg to enable automatic audio stripping.",
                self.executable,
            )
            return False

        with_audio = path.with_name(path.name + ".with_audio.mp4")
        os.replace(path, with_audio)
        try:
            logger.info("Stripping audio from %s", path)
            self._run(["-i", str(with_audio), "-an", "-c:v", "copy", "-y", str(path)])
        except (subprocess.CalledProcessError, OSError) as exc:
            logger.warning("Failed to strip audio, keeping original: %s", _describe(exc))
            os.replace(with_audio, path)
            return False
        with_audio.unlink()
        logger.info("Audio stripped successfully")
        return True

    def convert_to_gif(self, source: Path, destination: Path) -> bool:
        """Convert *source* to an animated GIF at *destination*.

        On any failure the source is moved to *destination* unchanged.
        """
        source = Path(source)
        destination = Path(destination)
        if not self.available:
            logger.warning("%s not found, skipping GIF conversion. Output will be MP4.", self.executable)
            os.replace(source, destination)
            return False

        try:
            logger.info("Converting %s to GIF", source)
            self._run(["-i", str(source), "-vf", GIF_FILTER, "-y", str(destination)])
        except (subprocess.CalledProcessError, OSError) as exc:
            logger.warning("Failed to convert to GIF, keeping MP4: %s", _describe(exc))
            os.replace(source, destination)
            return False
        source.unlink()
        logger.info("GIF conversion completed")
        return True


def _describe(exc: Exception) -> str:
    stderr = getattr(exc, "stderr", None)
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    if stderr:
        return f"{exc}: {stderr.strip()}"
    return str(exc)
