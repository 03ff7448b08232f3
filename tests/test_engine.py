from __future__ import annotations

import json
import types
from pathlib import Path

import pytest

from genmedia.api import build_engine
from genmedia.config import AppConfig
from genmedia.core.types import Modality
from genmedia.errors import RetriesExhaustedError, SpecValidationError
from genmedia.video import Transcoder
from genmedia.wal import RequestLog


class _FakeProvider:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.downloads: list[Path] = []
        self.svg_check = True

    def generate_structured(self, *, model, prompt, schema):
        self.calls.append(("structured", {"model": model}))
        payload = {"filePath": "ignored.svg", "data": "<svg/>", "mime": "image/svg+xml", "check": self.svg_check}
        return types.SimpleNamespace(
            text=json.dumps(payload),
            usage_metadata=types.SimpleNamespace(prompt_token_count=10, total_token_count=42),
        )

    def generate_image(self, *, model, prompt):
        self.calls.append(("image", {"model": model}))
        part = types.SimpleNamespace(inline_data=types.SimpleNamespace(data=b"PNGDATA", mime_type="image/png"))
        return types.SimpleNamespace(
            candidates=[types.SimpleNamespace(content=types.SimpleNamespace(parts=[part]))],
            usage_metadata=None,
        )

    def start_video(self, **kwargs):
        self.calls.append(("video", kwargs))
        video = types.SimpleNamespace(uri="https://example.test/v.mp4", mime_type="video/mp4")
        response = types.SimpleNamespace(generated_videos=[types.SimpleNamespace(video=video)])
        return types.SimpleNamespace(done=True, error=None, response=response)

    def refresh_operation(self, operation):  # pragma: no cover - operations finish immediately
        return operation

    def download(self, handle, destination: Path) -> None:
        self.downloads.append(Path(destination))
        Path(destination).write_bytes(b"mp4-bytes")


def _engine(tmp_path, provider, **overrides):
    cfg = AppConfig(
        api_key="test",
        log_dir=tmp_path / "logs",
        templates_dir=tmp_path / "templates",
        **overrides,
    )
    return build_engine(cfg, provider=provider, transcoder=Transcoder(available=False), sleep=lambda _: None)


def test_images_are_written_in_order_and_emitted(tmp_path):
    provider = _FakeProvider()
    engine = _engine(tmp_path, provider)
    emitted: list[str] = []
    items = [
        {"filePath": str(tmp_path / "out" / "logo.svg"), "mime": "image/svg+xml", "prompt": "logo", "mode": "fast"},
        {"filePath": str(tmp_path / "out" / "hero.png"), "mime": "image/png", "prompt": "hero", "mode": "quality"},
    ]

    outputs = engine.run_all(items, Modality.IMAGE, emit=emitted.append)

    assert outputs == [tmp_path / "out" / "logo.svg", tmp_path / "out" / "hero.png"]
    assert emitted == [str(path) for path in outputs]
    assert (tmp_path / "out" / "logo.svg").read_text() == "<svg/>"
    assert (tmp_path / "out" / "hero.png").read_bytes() == b"PNGDATA"
    assert [name for name, _ in provider.calls] == ["structured", "image"]

    entries = RequestLog(tmp_path / "logs").load()
    assert len(entries) == 2
    assert entries[0].total_token_count == 42
    assert entries[0].prompt_token_count == 10
    assert entries[1].total_token_count is None


def test_invalid_later_element_stops_after_earlier_output(tmp_path):
    provider = _FakeProvider()
    engine = _engine(tmp_path, provider)
    emitted: list[str] = []
    first = tmp_path / "first.svg"
    items = [
        {"filePath": str(first), "mime": "image/svg+xml", "prompt": "one", "mode": "fast"},
        {"mime": "image/svg+xml", "prompt": "two", "mode": "fast"},
        {"filePath": str(tmp_path / "third.svg"), "mime": "image/svg+xml", "prompt": "three", "mode": "fast"},
    ]

    with pytest.raises(SpecValidationError):
        engine.run_all(items, Modality.IMAGE, emit=emitted.append)

    assert emitted == [str(first)]
    assert first.read_text() == "<svg/>"
    assert not (tmp_path / "third.svg").exists()
    assert len(provider.calls) == 1


def test_exhausted_retries_leave_no_output(tmp_path):
    provider = _FakeProvider()
    provider.svg_check = False
    engine = _engine(tmp_path, provider, retry_limit=2)
    target = tmp_path / "never.svg"

    with pytest.raises(RetriesExhaustedError):
        engine.run_all(
            [{"filePath": str(target), "mime": "image/svg+xml", "prompt": "x", "mode": "fast"}],
            Modality.IMAGE,
        )

    assert not target.exists()
    assert len(RequestLog(tmp_path / "logs").load()) == 2


def test_video_is_downloaded_to_spec_path(tmp_path):
    provider = _FakeProvider()
    engine = _engine(tmp_path, provider)
    target = tmp_path / "clips" / "intro.mp4"

    outputs = engine.run_all(
        [{"filePath": str(target), "prompt": "waves", "mode": "quality", "generateAudio": True}],
        Modality.VIDEO,
    )

    assert outputs == [target]
    assert provider.downloads == [target]
    assert target.read_bytes() == b"mp4-bytes"
    assert provider.calls[0][1]["duration_seconds"] == 4


def test_gif_request_without_ffmpeg_keeps_mp4_bytes(tmp_path):
    provider = _FakeProvider()
    engine = _engine(tmp_path, provider)
    target = tmp_path / "loop.gif"

    engine.run_all(
        [{"filePath": str(target), "prompt": "loop", "mode": "fast", "mimeType": "image/gif"}],
        Modality.VIDEO,
    )

    assert provider.downloads == [tmp_path / "loop.gif.tmp.mp4"]
    assert target.read_bytes() == b"mp4-bytes"
