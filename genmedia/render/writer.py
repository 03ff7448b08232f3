from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

from ..core.contracts import Downloader
from ..core.types import GenerationResult
from ..errors import MaterializeError
from ..utils import ensure_dir
from ..video import Transcoder

logger = logging.getLogger(__name__)

_TEXT_MIME_PREFIXES = (
    "image/svg",
    "text/",
    "application/javascript",
    "application/x-typescript",
    "application/json",
)


def is_text_mime(mime: str) -> bool:
    return mime.lower().startswith(_TEXT_MIME_PREFIXES)


class ArtifactWriter:
    """Persist validated generation results to their output paths."""

    def __init__(self, *, transcoder: Transcoder | None = None, downloader: Downloader | None = None) -> None:
        self._transcoder = transcoder or Transcoder(available=False)
        self._downloader = downloader

    def materialize(
        self,
        result: GenerationResult,
        *,
        keep_audio: bool = True,
        convert_to: str | None = None,
    ) -> Path:
        if not result.mime:
            raise MaterializeError("MIME type is missing in generation result")
        if not result.file_path:
            raise MaterializeError("File path is missing in generation result")
        if result.check is not True:
            raise MaterializeError("Validation check failed in generation result")

        target = Path(result.file_path)
        ensure_dir(target.parent)

        if result.handle is not None:
            return self._materialize_remote(result, target, keep_audio=keep_audio, convert_to=convert_to)

        if result.data is None:
            raise MaterializeError("Generation result carries neither inline data nor a download handle")

        mime = result.mime.lower()
        if is_text_mime(mime):
            logger.info("Writing file as text: %s", target)
            target.write_bytes(result.data.encode("utf-8"))
        else:
            logger.info("Writing file as binary: %s", target)
            try:
                payload = base64.b64decode(result.data)
            except (binascii.Error, ValueError) as exc:
                raise MaterializeError(f"Binary payload for {target} is not valid base64") from exc
            target.write_bytes(payload)
        return target

    def _materialize_remote(
        self,
        result: GenerationResult,
        target: Path,
        *,
        keep_audio: bool,
        convert_to: str | None,
    ) -> Path:
        if self._downloader is None:
            raise MaterializeError("A downloader is required to materialize remote results")

        if convert_to and convert_to.lower() == "image/gif":
            tmp_mp4 = target.with_name(target.name + ".tmp.mp4")
            logger.info("Downloading video to temp: %s", tmp_mp4)
            self._downloader(result.handle, tmp_mp4)
            self._transcoder.convert_to_gif(tmp_mp4, target)
            return target

        logger.info("Downloading video to: %s", target)
        self._downloader(result.handle, target)
        if not keep_audio:
            self._transcoder.strip_audio(target)
        return target
