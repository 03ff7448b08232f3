"""Parse and validate the JSON spec arrays accepted by the generators."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from . import catalog
from .constants import ASPECT_RATIOS, VIDEO_MIME_TYPES
from .core.types import GenerationSpec, Modality, Tier
from .errors import SpecValidationError


def parse_spec_list(raw: str, *, label: str = "SPEC_JSON") -> list[Any]:
    if not raw:
        raise SpecValidationError(f"{label} is missing")
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SpecValidationError(f"Failed to parse {label} as JSON") from exc
    if not isinstance(items, list):
        raise SpecValidationError(f"{label} must be a JSON array of spec objects")
    return items


def _require_object(item: Any, label: str) -> dict[str, Any]:
    if not isinstance(item, dict):
        raise SpecValidationError(f"Each element of {label} must be a JSON object")
    return item


def _tier(item: dict[str, Any], label: str, modality: Modality) -> Tier:
    raw = item.get("mode", item.get("tier"))
    if not raw:
        raise SpecValidationError(f"mode is missing in {label}")
    allowed = catalog.tiers_for(modality)
    names = [tier.value for tier in allowed]
    try:
        tier = Tier(str(raw).lower())
    except ValueError as exc:
        raise SpecValidationError(f"mode must be one of {', '.join(repr(n) for n in names)}") from exc
    if tier not in allowed:
        raise SpecValidationError(f"mode must be one of {', '.join(repr(n) for n in names)}")
    return tier


def _optional_str(item: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return str(value)
    return None


def validate_image_spec(item: Any, *, label: str = "IMAGE_SPEC_JSON") -> GenerationSpec:
    item = _require_object(item, label)
    file_path = _optional_str(item, "filePath")
    if not file_path:
        raise SpecValidationError(f"filePath is missing in {label}")
    mime = _optional_str(item, "mime", "mimeType")
    if not mime:
        raise SpecValidationError(f"mime is missing in {label}")
    prompt = _optional_str(item, "prompt")
    if not prompt:
        raise SpecValidationError(f"prompt is missing in {label}")
    tier = _tier(item, label, Modality.IMAGE)
    return GenerationSpec(file_path=Path(file_path), tier=tier, mime=mime, prompt=prompt)


def validate_video_spec(item: Any, *, label: str = "VIDEO_SPEC_JSON") -> GenerationSpec:
    item = _require_object(item, label)
    file_path = _optional_str(item, "filePath")
    if not file_path:
        raise SpecValidationError(f"filePath is missing in {label}")
    prompt = _optional_str(item, "prompt")
    image_path = _optional_str(item, "imagePath")
    if not prompt and not image_path:
        raise SpecValidationError(f"Either prompt or imagePath must be provided in {label}")
    tier = _tier(item, label, Modality.VIDEO)

    mime = _optional_str(item, "mimeType", "mime")
    if mime is not None:
        mime = mime.lower()
        if mime not in VIDEO_MIME_TYPES:
            raise SpecValidationError(f"mimeType must be one of {', '.join(repr(m) for m in VIDEO_MIME_TYPES)}")

    aspect_ratio = _optional_str(item, "aspectRatio")
    if aspect_ratio is not None and aspect_ratio not in ASPECT_RATIOS:
        raise SpecValidationError(f"aspectRatio must be one of {', '.join(repr(a) for a in ASPECT_RATIOS)}")

    duration = item.get("durationSeconds")
    if duration is not None:
        if isinstance(duration, bool) or not isinstance(duration, (int, float)) or int(duration) != duration:
            raise SpecValidationError("durationSeconds must be an integer")
        duration = int(duration)
        allowed = catalog.video_model(tier).durations
        if duration not in allowed:
            raise SpecValidationError(
                f"durationSeconds must be one of [{', '.join(str(d) for d in allowed)}] for mode '{tier.value}'"
            )

    generate_audio = item.get("generateAudio", False)
    if not isinstance(generate_audio, bool):
        raise SpecValidationError("generateAudio must be a boolean")

    return GenerationSpec(
        file_path=Path(file_path),
        tier=tier,
        mime=mime,
        prompt=prompt,
        image_path=Path(image_path) if image_path else None,
        aspect_ratio=aspect_ratio,
        duration_seconds=duration,
        generate_audio=generate_audio,
    )
