from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol


class Provider(Protocol):
    def generate_structured(self, *, model: str, prompt: str, schema: dict[str, Any]) -> Any:
        ...

    def generate_image(self, *, model: str, prompt: str) -> Any:
        ...

    def start_video(
        self,
        *,
        model: str,
        prompt: str | None,
        image: tuple[bytes, str] | None,
        aspect_ratio: str,
        duration_seconds: int,
    ) -> Any:
        ...

    def refresh_operation(self, operation: Any) -> Any:
        ...

    def download(self, handle: Any, destination: Path) -> None:
        ...


class Downloader(Protocol):
    def __call__(self, handle: Any, destination: Path) -> None:
        ...
