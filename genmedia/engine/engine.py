from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable

from ..core.types import Context, GenerationSpec, Modality
from ..executor import GenerationExecutor
from ..render.writer import ArtifactWriter
from ..specs import validate_image_spec, validate_video_spec
from ..wal import RequestLog

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    executor: GenerationExecutor
    writer: ArtifactWriter
    log_dir: Path

    def _context(self) -> Context:
        log = RequestLog(self.log_dir)
        log.load()
        return Context(log=log)

    def run_image(self, spec: GenerationSpec) -> Path:
        context = self._context()
        logger.info("Starting image generation")
        result = self.executor.generate_image(spec, context)
        logger.info("Writing output to file")
        return self.writer.materialize(result)

    def run_video(self, spec: GenerationSpec) -> Path:
        context = self._context()
        logger.info("Starting video generation")
        result = self.executor.generate_video(spec, context)
        return self.writer.materialize(
            result,
            keep_audio=spec.generate_audio,
            convert_to=spec.mime,
        )

    def run_all(
        self,
        items: Iterable[Any],
        modality: Modality,
        *,
        emit: Callable[[str], None] | None = None,
    ) -> list[Path]:
        """Validate and generate each item in order, stopping at the first failure.

        Every item is validated only when its turn comes, so outputs of
        earlier items are already written (and emitted) when a later item
        turns out to be invalid.
        """
        if modality == Modality.VIDEO:
            validate, run = validate_video_spec, self.run_video
        else:
            validate, run = validate_image_spec, self.run_image

        outputs: list[Path] = []
        for item in items:
            spec = validate(item)
            path = run(spec)
            outputs.append(path)
            if emit is not None:
                emit(str(path))
        return outputs
