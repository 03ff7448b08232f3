from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable, Sequence

from .config import AppConfig
from .core.contracts import Provider
from .core.types import Modality
from .engine import Engine
from .executor import GenerationExecutor, OperationPoller
from .providers import GeminiProvider
from .quota import RateLimiter
from .render.writer import ArtifactWriter
from .specs import parse_spec_list
from .templates import TemplateLoader
from .video import Transcoder


def _build_provider(cfg: AppConfig) -> Provider:
    return GeminiProvider(api_key=cfg.api_key)


def build_engine(
    cfg: AppConfig,
    *,
    provider: Provider | None = None,
    transcoder: Transcoder | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Engine:
    """Wire the executor, writer and request log described by *cfg*."""
    provider = provider or _build_provider(cfg)
    limiter = RateLimiter(interval=cfg.rate_limit_interval, max_wait=cfg.max_wait, sleep=sleep)
    poller = OperationPoller(
        provider.refresh_operation,
        interval=cfg.poll_interval,
        timeout=cfg.poll_timeout,
    )
    executor = GenerationExecutor(
        provider=provider,
        limiter=limiter,
        templates=TemplateLoader(cfg.templates_dir),
        retry_limit=cfg.retry_limit,
        poller=poller,
        safety_factor=cfg.safety_factor,
    )
    writer = ArtifactWriter(
        transcoder=transcoder or Transcoder.detect(cfg.ffmpeg),
        downloader=provider.download,
    )
    return Engine(executor=executor, writer=writer, log_dir=cfg.log_dir)


def _coerce_items(specs: str | Sequence[Any], label: str) -> list[Any]:
    if isinstance(specs, str):
        return parse_spec_list(specs, label=label)
    return list(specs)


def GenerateImages(
    specs: str | Sequence[Any],
    *,
    config_path: Path | None = None,
    on_output: Callable[[str], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[Path]:
    """Generate every image spec in order and return the written paths."""
    items = _coerce_items(specs, "IMAGE_SPEC_JSON")
    cfg = AppConfig.from_sources(config_path)
    engine = build_engine(cfg, sleep=sleep, transcoder=Transcoder(executable=cfg.ffmpeg))
    return engine.run_all(items, Modality.IMAGE, emit=on_output)


def GenerateVideos(
    specs: str | Sequence[Any],
    *,
    config_path: Path | None = None,
    on_output: Callable[[str], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[Path]:
    """Generate every video spec in order and return the written paths."""
    items = _coerce_items(specs, "VIDEO_SPEC_JSON")
    cfg = AppConfig.from_sources(config_path)
    engine = build_engine(cfg, sleep=sleep)
    return engine.run_all(items, Modality.VIDEO, emit=on_output)
