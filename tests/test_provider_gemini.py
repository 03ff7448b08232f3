from __future__ import annotations

import types

from genmedia.prompts.default import SVG_RESPONSE_SCHEMA
from genmedia.providers.gemini import GeminiProvider


class _FakeTypes:
    class Type:
        OBJECT = "OBJECT"
        STRING = "STRING"
        BOOLEAN = "BOOLEAN"

    class Schema:
        def __init__(self, **kwargs):
            self.kwargs = kwargs

    class GenerateContentConfig:
        def __init__(self, **kwargs):
            self.kwargs = kwargs

    class GenerateVideosConfig:
        def __init__(self, **kwargs):
            self.kwargs = kwargs

    class Image:
        def __init__(self, *, image_bytes: bytes, mime_type: str):
            self.image_bytes = image_bytes
            self.mime_type = mime_type


class _FakeModels:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, object]]] = []

    def generate_content(self, **kwargs):
        self.calls.append(("generate_content", kwargs))
        return types.SimpleNamespace(text="{}")

    def generate_videos(self, **kwargs):
        self.calls.append(("generate_videos", kwargs))
        return types.SimpleNamespace(name="operations/abc", done=False)


class _FakeOperations:
    def __init__(self) -> None:
        self.seen: list[object] = []

    def get(self, operation):
        self.seen.append(operation)
        return types.SimpleNamespace(name=operation.name, done=True)


class _FakeFiles:
    def __init__(self, payload) -> None:
        self.payload = payload
        self.calls: list[object] = []

    def download(self, *, file):
        self.calls.append(file)
        return self.payload


class _FakeClient:
    def __init__(self, payload=b"video-bytes") -> None:
        self.models = _FakeModels()
        self.operations = _FakeOperations()
        self.files = _FakeFiles(payload)


def _provider(client: _FakeClient) -> GeminiProvider:
    return GeminiProvider(api_key="test", client=client, types_module=_FakeTypes)


def test_generate_structured_requests_json_with_schema() -> None:
    client = _FakeClient()
    _provider(client).generate_structured(model="gemini-3-flash-preview", prompt="draw", schema=SVG_RESPONSE_SCHEMA)

    name, kwargs = client.models.calls[0]
    assert name == "generate_content"
    assert kwargs["model"] == "gemini-3-flash-preview"
    assert kwargs["contents"] == "draw"

    config = kwargs["config"].kwargs
    assert config["response_mime_type"] == "application/json"
    schema = config["response_schema"].kwargs
    assert schema["type"] == "OBJECT"
    assert set(schema["properties"]) == {"filePath", "data", "mime", "check"}
    assert schema["properties"]["check"].kwargs["type"] == "BOOLEAN"
    assert sorted(schema["required"]) == ["check", "data", "filePath", "mime"]


def test_generate_image_sends_plain_prompt() -> None:
    client = _FakeClient()
    _provider(client).generate_image(model="gemini-2.5-flash-image", prompt="a cat")
    assert client.models.calls == [("generate_content", {"model": "gemini-2.5-flash-image", "contents": "a cat"})]


def test_start_video_with_reference_image() -> None:
    client = _FakeClient()
    operation = _provider(client).start_video(
        model="veo-3.1-generate-preview",
        prompt="waves",
        image=(b"jpeg", "image/jpeg"),
        aspect_ratio="9:16",
        duration_seconds=8,
    )

    assert operation.name == "operations/abc"
    _, kwargs = client.models.calls[0]
    assert kwargs["prompt"] == "waves"
    assert kwargs["image"].image_bytes == b"jpeg"
    assert kwargs["image"].mime_type == "image/jpeg"
    assert kwargs["config"].kwargs == {"aspect_ratio": "9:16", "duration_seconds": 8}


def test_start_video_image_only_omits_prompt() -> None:
    client = _FakeClient()
    _provider(client).start_video(
        model="veo-2.0-generate-001",
        prompt=None,
        image=(b"png", "image/png"),
        aspect_ratio="16:9",
        duration_seconds=5,
    )
    _, kwargs = client.models.calls[0]
    assert "prompt" not in kwargs


def test_refresh_operation_fetches_latest_state() -> None:
    client = _FakeClient()
    pending = types.SimpleNamespace(name="operations/abc", done=False)
    refreshed = _provider(client).refresh_operation(pending)
    assert client.operations.seen == [pending]
    assert refreshed.done is True


def test_download_writes_returned_bytes(tmp_path) -> None:
    client = _FakeClient(payload=b"\x00\x01mp4")
    video = types.SimpleNamespace(uri="https://example.test/v.mp4")
    handle = types.SimpleNamespace(video=video)
    target = tmp_path / "clip.mp4"

    _provider(client).download(handle, target)

    assert client.files.calls == [video]
    assert target.read_bytes() == b"\x00\x01mp4"


def test_download_falls_back_to_video_save(tmp_path) -> None:
    saved: list[str] = []
    video = types.SimpleNamespace(uri="https://example.test/v.mp4", save=saved.append)
    client = _FakeClient(payload=None)

    _provider(client).download(types.SimpleNamespace(video=video), tmp_path / "clip.mp4")

    assert saved == [str(tmp_path / "clip.mp4")]
