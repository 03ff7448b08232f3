from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import httpx
from google import genai
from google.genai import types as genai_types

logger = logging.getLogger(__name__)

# Gemini SDK interprets timeout in milliseconds.
_TIMEOUT_MS = 600_000


class GeminiProvider:
    """Thin wrapper around the google-genai Client for media generation."""

    def __init__(
        self,
        *,
        api_key: str,
        client: Optional[object] = None,
        types_module: Optional[object] = None,
    ) -> None:
        self._types = types_module or genai_types
        if client is not None:
            self._client = client
        else:
            http_options = self._types.HttpOptions(timeout=_TIMEOUT_MS)
            self._client = genai.Client(api_key=api_key, http_options=http_options)
            # Video downloads and long generations need generous socket timeouts.
            api_client = getattr(self._client, "_api_client", None)
            if api_client and hasattr(api_client, "_httpx_client"):
                api_client._httpx_client.timeout = httpx.Timeout(timeout=600.0, connect=30.0)

    def _schema(self, schema: dict[str, Any]) -> object:
        type_enum = self._types.Type
        properties = {
            name: self._types.Schema(
                type=getattr(type_enum, spec["type"]),
                description=spec.get("description"),
            )
            for name, spec in schema["properties"].items()
        }
        return self._types.Schema(
            type=type_enum.OBJECT,
            properties=properties,
            required=list(schema.get("required", [])),
        )

    def generate_structured(self, *, model: str, prompt: str, schema: dict[str, Any]) -> object:
        config = self._types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=self._schema(schema),
        )
        return self._client.models.generate_content(model=model, contents=prompt, config=config)

    def generate_image(self, *, model: str, prompt: str) -> object:
        return self._client.models.generate_content(model=model, contents=prompt)

    def start_video(
        self,
        *,
        model: str,
        prompt: str | None,
        image: tuple[bytes, str] | None,
        aspect_ratio: str,
        duration_seconds: int,
    ) -> object:
        kwargs: dict[str, object] = {
            "model": model,
            "config": self._types.GenerateVideosConfig(
                aspect_ratio=aspect_ratio,
                duration_seconds=duration_seconds,
            ),
        }
        if prompt:
            kwargs["prompt"] = prompt
        if image is not None:
            image_bytes, mime_type = image
            kwargs["image"] = self._types.Image(image_bytes=image_bytes, mime_type=mime_type)
        operation = self._client.models.generate_videos(**kwargs)
        name = getattr(operation, "name", None)
        if name:
            logger.info("Operation name: %s", name)
        return operation

    def refresh_operation(self, operation: object) -> object:
        return self._client.operations.get(operation)

    def download(self, handle: object, destination: Path) -> None:
        """Fetch the bytes behind a generated-video descriptor into *destination*."""
        video = getattr(handle, "video", handle)
        data = self._client.files.download(file=video)
        destination = Path(destination)
        if isinstance(data, (bytes, bytearray)):
            destination.write_bytes(bytes(data))
        else:
            video.save(str(destination))
