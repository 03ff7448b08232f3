from __future__ import annotations

import base64
import json
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable, TypeVar

from . import catalog
from .constants import (
    DEBUG_OUTPUT,
    DEBUG_OUTPUT_INFO,
    DEBUG_OUTPUT_NORMALIZED,
    DEBUG_PROMPT,
    DEBUG_SPEC,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    DEFAULT_RETRY_LIMIT,
    IMAGE_INPUT_SURCHARGE,
    SAFETY_FACTOR,
)
from .core.contracts import Provider
from .core.types import Context, GenerationResult, GenerationSpec, RequestHistoryEntry
from .errors import (
    ComplianceError,
    FatalError,
    OperationFailedError,
    OperationTimeoutError,
    ResponseValidationError,
    RetriesExhaustedError,
    SpecValidationError,
)
from .normalize import normalize_json_text
from .prompts.default import SVG_RESPONSE_SCHEMA
from .quota import RateLimiter
from .templates import TemplateLoader

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IMAGE_MIME_BY_SUFFIX = {
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class PollState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class OperationPoller:
    """Drive a long-running operation handle until it completes, fails or times out."""

    def __init__(
        self,
        refresh: Callable[[Any], Any],
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._refresh = refresh
        self.interval = interval
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self.state = PollState.SUBMITTED

    def wait(self, operation: Any) -> Any:
        self.state = PollState.SUBMITTED
        started = self._clock()
        while not getattr(operation, "done", False):
            elapsed = self._clock() - started
            if elapsed >= self.timeout:
                self.state = PollState.TIMED_OUT
                raise OperationTimeoutError(f"Video generation timed out after {self.timeout:.0f} seconds")
            self.state = PollState.POLLING
            self._sleep(self.interval)
            logger.info("Polling... (elapsed=%ds)", round(self._clock() - started))
            operation = self._refresh(operation)

        error = getattr(operation, "error", None)
        if error:
            self.state = PollState.FAILED
            raise OperationFailedError(f"Video generation failed: {error}")
        self.state = PollState.COMPLETED
        logger.info("Video generation completed")
        return operation


def status_code(exc: BaseException) -> int | None:
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None


def is_client_error(exc: BaseException) -> bool:
    """4xx responses other than 429 will not succeed on a retry."""
    code = status_code(exc)
    return code is not None and 400 <= code < 500 and code != 429


def guess_image_mime(path: Path) -> str:
    return _IMAGE_MIME_BY_SUFFIX.get(Path(path).suffix.lower(), "image/jpeg")


class GenerationExecutor:
    """Runs one generation request through admission, dispatch and validation.

    Each attempt waits for quota headroom, appends a request log entry and
    then calls the provider. Failed attempts are retried up to
    ``retry_limit`` times; fatal errors and non-429 client errors propagate
    immediately.
    """

    def __init__(
        self,
        *,
        provider: Provider,
        limiter: RateLimiter,
        templates: TemplateLoader | None = None,
        retry_limit: int = DEFAULT_RETRY_LIMIT,
        poller: OperationPoller | None = None,
        safety_factor: float = SAFETY_FACTOR,
    ) -> None:
        if retry_limit < 1:
            raise ValueError("retry_limit must be at least 1")
        self.provider = provider
        self.limiter = limiter
        self.templates = templates or TemplateLoader()
        self.retry_limit = retry_limit
        self.poller = poller or OperationPoller(provider.refresh_operation)
        self.safety_factor = safety_factor

    def _run_attempts(
        self,
        context: Context,
        *,
        label: str,
        size: int,
        attempt: Callable[[RequestHistoryEntry], T],
    ) -> T:
        quota = context.model
        if quota is None:
            raise RuntimeError("AI model is not set in context")
        logger.info("Using AI model: %s", quota.model)

        last_exc: Exception | None = None
        for index in range(1, self.retry_limit + 1):
            try:
                self.limiter.await_admission(context)
                entry = RequestHistoryEntry.create(
                    model=quota.model,
                    prompt_length=size,
                    time_ms=self.limiter.clock(),
                )
                context.log.append(entry)
                logger.info("Calling API... attempt=%d", index)
                return attempt(entry)
            except FatalError:
                raise
            except Exception as exc:  # noqa: BLE001
                if is_client_error(exc):
                    raise
                last_exc = exc
                logger.warning("Attempt %d/%d for %s failed: %s", index, self.retry_limit, label, exc)
        raise RetriesExhaustedError(label, self.retry_limit) from last_exc

    # Image generation -------------------------------------------------

    def generate_image(self, spec: GenerationSpec, context: Context) -> GenerationResult:
        if not spec.prompt:
            raise SpecValidationError("Prompt is missing in spec")
        if not spec.mime:
            raise SpecValidationError("MIME type is missing in spec")

        if "svg" in spec.mime.lower():
            prompt = self.templates.svg_prompt(
                instructions=spec.prompt, file_path=str(spec.file_path), mime=spec.mime
            )
            context.model = catalog.text_model(spec.tier, safety_factor=self.safety_factor)
            logger.debug("Prompt built:\n%s", prompt)
            return self._run_attempts(
                context,
                label="SVG",
                size=len(prompt),
                attempt=lambda entry: self._svg_attempt(spec, prompt, context, entry),
            )

        prompt = self.templates.image_prompt(
            instructions=spec.prompt, file_path=str(spec.file_path), mime=spec.mime
        )
        context.model = catalog.image_model(spec.tier, safety_factor=self.safety_factor)
        logger.debug("Prompt built:\n%s", prompt)
        return self._run_attempts(
            context,
            label="binary image",
            size=len(prompt),
            attempt=lambda entry: self._binary_attempt(spec, prompt, context, entry),
        )

    def _svg_attempt(
        self,
        spec: GenerationSpec,
        prompt: str,
        context: Context,
        entry: RequestHistoryEntry,
    ) -> GenerationResult:
        context.log.write_debug(DEBUG_PROMPT, prompt)
        response = self.provider.generate_structured(
            model=entry.model,
            prompt=prompt,
            schema=SVG_RESPONSE_SCHEMA,
        )
        logger.info("API call succeeded, parsing response...")
        context.log.record_usage(entry, getattr(response, "usage_metadata", None))

        raw = getattr(response, "text", None) or ""
        context.log.write_debug(DEBUG_OUTPUT, raw)
        normalized = normalize_json_text(raw)
        context.log.write_debug(DEBUG_OUTPUT_NORMALIZED, normalized)

        try:
            payload = json.loads(normalized)
        except json.JSONDecodeError as exc:
            raise ResponseValidationError(f"Response is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ResponseValidationError("Generation result is not a JSON object")

        for key in ("filePath", "data", "mime"):
            if not payload.get(key):
                raise ResponseValidationError(f"{key} is missing in generation result")
        check = payload.get("check")
        if check is None:
            raise ResponseValidationError("check is missing in generation result")
        if check is False:
            raise ComplianceError("AI determined that the prompt instructions were not followed (check=false)")
        if check is not True:
            raise ResponseValidationError(f"check must be a boolean, got {check!r}")

        return GenerationResult(
            file_path=spec.file_path,
            mime=str(payload["mime"]),
            data=str(payload["data"]),
            check=True,
        )

    def _binary_attempt(
        self,
        spec: GenerationSpec,
        prompt: str,
        context: Context,
        entry: RequestHistoryEntry,
    ) -> GenerationResult:
        context.log.write_debug(DEBUG_PROMPT, prompt)
        response = self.provider.generate_image(model=entry.model, prompt=prompt)
        if response is None:
            raise ResponseValidationError("Response is undefined")
        candidates = getattr(response, "candidates", None)
        if not candidates:
            raise ResponseValidationError("Response candidates are undefined")
        logger.info("API call succeeded, parsing response...")
        context.log.record_usage(entry, getattr(response, "usage_metadata", None))

        result: GenerationResult | None = None
        summary: list[dict[str, object]] = []
        for candidate in candidates:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                inline = getattr(part, "inline_data", None)
                data = getattr(inline, "data", None) if inline is not None else None
                if data:
                    mime = getattr(inline, "mime_type", None) or spec.mime
                    summary.append({"inline_data": {"mime_type": mime, "size": len(data)}})
                    if result is None:
                        result = GenerationResult(
                            file_path=spec.file_path,
                            mime=mime,
                            data=_as_base64(data),
                            check=True,
                        )
                elif getattr(part, "text", None):
                    summary.append({"text": part.text})

        context.log.write_debug(DEBUG_OUTPUT, json.dumps(summary, indent=2))
        if result is None:
            raise ResponseValidationError("Generation result is undefined")
        return result

    # Video generation -------------------------------------------------

    def generate_video(self, spec: GenerationSpec, context: Context) -> GenerationResult:
        if not spec.prompt and not spec.image_path:
            raise SpecValidationError("Either prompt or imagePath must be provided in spec")

        quota = catalog.video_model(spec.tier, safety_factor=self.safety_factor)
        duration = spec.duration_seconds if spec.duration_seconds is not None else quota.durations[0]
        if duration not in quota.durations:
            allowed = ", ".join(str(d) for d in quota.durations)
            raise SpecValidationError(f"durationSeconds must be one of [{allowed}] for mode '{spec.tier.value}'")
        context.model = quota

        image: tuple[bytes, str] | None = None
        if spec.image_path:
            image_path = Path(spec.image_path)
            image = (image_path.read_bytes(), guess_image_mime(image_path))
            logger.info("Input image loaded: %s (%s)", image_path, image[1])

        context.log.write_debug(DEBUG_SPEC, json.dumps(spec.to_dict(), indent=2))
        size = len(spec.prompt or "") + (IMAGE_INPUT_SURCHARGE if image is not None else 0)
        aspect_ratio = spec.aspect_ratio or DEFAULT_ASPECT_RATIO

        return self._run_attempts(
            context,
            label="video",
            size=size,
            attempt=lambda entry: self._video_attempt(spec, context, entry, image, aspect_ratio, duration),
        )

    def _video_attempt(
        self,
        spec: GenerationSpec,
        context: Context,
        entry: RequestHistoryEntry,
        image: tuple[bytes, str] | None,
        aspect_ratio: str,
        duration: int,
    ) -> GenerationResult:
        operation = self.provider.start_video(
            model=entry.model,
            prompt=spec.prompt,
            image=image,
            aspect_ratio=aspect_ratio,
            duration_seconds=duration,
        )
        logger.info("Video generation started, polling for completion...")
        operation = self.poller.wait(operation)

        response = getattr(operation, "response", None)
        if response is None:
            raise ResponseValidationError("Video generation response is undefined")
        generated = getattr(response, "generated_videos", None)
        if not generated:
            raise ResponseValidationError("No videos were generated")
        video = getattr(generated[0], "video", None)
        if video is None:
            raise ResponseValidationError("Generated video data is undefined")

        uri = getattr(video, "uri", None)
        mime = getattr(video, "mime_type", None)
        context.log.write_debug(
            DEBUG_OUTPUT_INFO,
            json.dumps(
                {
                    "uri": uri,
                    "mimeType": mime,
                    "raiMediaFilteredCount": getattr(response, "rai_media_filtered_count", None),
                    "raiMediaFilteredReasons": getattr(response, "rai_media_filtered_reasons", None),
                },
                indent=2,
                default=str,
            ),
        )
        if not uri:
            raise ResponseValidationError("Video URI is missing in the response")

        return GenerationResult(
            file_path=spec.file_path,
            mime=mime or "video/mp4",
            handle=generated[0],
            check=True,
        )


def _as_base64(data: bytes | str) -> str:
    if isinstance(data, (bytes, bytearray)):
        return base64.b64encode(bytes(data)).decode("ascii")
    return str(data)
