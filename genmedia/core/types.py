from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any


class Modality(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


class Tier(str, Enum):
    FAST = "fast"
    QUALITY = "quality"
    ULTRA = "ultra"


@dataclass(frozen=True)
class ModelQuota:
    model: str
    rpm: int
    rpd: int
    tpm: int | None = None
    durations: tuple[int, ...] = ()


@dataclass(frozen=True)
class RequestHistoryEntry:
    """One outbound attempt as persisted in the request log."""

    key: str
    time: int
    model: str
    prompt_length: int
    prompt_token_count: int | None = None
    candidates_token_count: int | None = None
    total_token_count: int | None = None
    cached_content_token_count: int | None = None

    @classmethod
    def create(cls, *, model: str, prompt_length: int, time_ms: int) -> "RequestHistoryEntry":
        return cls(
            key=f"{uuid.uuid4()}_{time_ms}",
            time=int(time_ms),
            model=model,
            prompt_length=int(prompt_length),
        )

    @property
    def token_usage(self) -> int:
        if self.total_token_count is not None:
            return self.total_token_count
        return self.prompt_length

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RequestHistoryEntry":
        def _optional(name: str) -> int | None:
            value = payload.get(name)
            return int(value) if value is not None else None

        return cls(
            key=str(payload["key"]),
            time=int(payload["time"]),
            model=str(payload["model"]),
            prompt_length=int(payload["prompt_length"]),
            prompt_token_count=_optional("prompt_token_count"),
            candidates_token_count=_optional("candidates_token_count"),
            total_token_count=_optional("total_token_count"),
            cached_content_token_count=_optional("cached_content_token_count"),
        )


@dataclass(frozen=True)
class GenerationSpec:
    file_path: Path
    tier: Tier
    mime: str | None = None
    prompt: str | None = None
    image_path: Path | None = None
    aspect_ratio: str | None = None
    duration_seconds: int | None = None
    generate_audio: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": str(self.file_path),
            "mode": self.tier.value,
            "mime": self.mime,
            "prompt": self.prompt,
            "imagePath": str(self.image_path) if self.image_path else None,
            "aspectRatio": self.aspect_ratio,
            "durationSeconds": self.duration_seconds,
            "generateAudio": self.generate_audio,
        }


@dataclass
class GenerationResult:
    file_path: Path
    mime: str
    data: str | None = None
    handle: Any = None
    check: bool = False


@dataclass
class Context:
    """Per-invocation state: the hydrated request log and the active model."""

    log: "RequestLog"
    model: ModelQuota | None = field(default=None)

    @property
    def entries(self) -> list[RequestHistoryEntry]:
        return self.log.entries


if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..wal import RequestLog
