from dataclasses import dataclass
from pathlib import Path
from typing import Any
import os
import yaml

from .constants import (
    DEFAULT_FFMPEG,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    DEFAULT_RATE_LIMIT_INTERVAL,
    DEFAULT_RETRY_LIMIT,
    LOG_DIR,
    SAFETY_FACTOR,
    TEMPLATES_DIR,
)
from .errors import MissingCredentialError


def _as_int(value: Any, *, minimum: int | None = None) -> int | None:
    if value is None:
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc
    if minimum is not None and parsed < minimum:
        raise ValueError(f"Expected integer >= {minimum}, got {parsed}")
    return parsed


def _as_float(value: Any, *, positive: bool = True) -> float | None:
    if value is None or value == "":
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected numeric value, got {value!r}") from exc
    if positive and parsed <= 0:
        raise ValueError(f"Expected positive value, got {parsed}")
    return parsed


def _section(data: Any, name: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    value = data.get(name, {})
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class AppConfig:
    api_key: str
    log_dir: Path = LOG_DIR
    templates_dir: Path = TEMPLATES_DIR
    retry_limit: int = DEFAULT_RETRY_LIMIT
    rate_limit_interval: float = DEFAULT_RATE_LIMIT_INTERVAL
    max_wait: float | None = None
    safety_factor: float = SAFETY_FACTOR
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    ffmpeg: str = DEFAULT_FFMPEG
    config_path: Path | None = None

    @staticmethod
    def from_sources(config_path: Path | None = None) -> "AppConfig":
        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise MissingCredentialError("GEMINI_API_KEY environment variable not set")

        env_config = os.getenv("GENMEDIA_CONFIG")
        candidates: list[Path] = []
        if config_path is not None:
            candidates.append(Path(config_path).expanduser())
        elif env_config:
            candidates.append(Path(env_config).expanduser())
        else:
            candidates.extend([Path("genmedia.yaml"), Path("genmedia.yml")])

        resolved_config: Path | None = None
        config_data: dict[str, Any] = {}
        for candidate in candidates:
            if candidate.exists():
                resolved_config = candidate
                try:
                    config_data = yaml.safe_load(candidate.read_text()) or {}
                except yaml.YAMLError as exc:
                    raise ValueError(f"Failed to parse configuration file {candidate}: {exc}") from exc
                break

        if config_path is not None and resolved_config is None:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        retry_cfg = _section(config_data, "retry")
        rate_cfg = _section(config_data, "rate_limit")
        video_cfg = _section(config_data, "video")

        def _coerce_path(value: Any) -> Path | None:
            if value in {None, "", False}:
                return None
            return Path(str(value)).expanduser()

        top = config_data if isinstance(config_data, dict) else {}
        log_dir = _coerce_path(top.get("log_dir")) or LOG_DIR
        templates_dir = _coerce_path(top.get("templates_dir")) or TEMPLATES_DIR
        retry_limit = _as_int(retry_cfg.get("limit"), minimum=1) or DEFAULT_RETRY_LIMIT
        rate_limit_interval = _as_float(rate_cfg.get("interval_seconds")) or DEFAULT_RATE_LIMIT_INTERVAL
        max_wait = _as_float(rate_cfg.get("max_wait_seconds"))
        safety_factor = _as_float(rate_cfg.get("safety_factor")) or SAFETY_FACTOR
        poll_interval = _as_float(video_cfg.get("poll_interval_seconds")) or DEFAULT_POLL_INTERVAL
        poll_timeout = _as_float(video_cfg.get("poll_timeout_seconds")) or DEFAULT_POLL_TIMEOUT
        ffmpeg = str(video_cfg.get("ffmpeg") or DEFAULT_FFMPEG)

        # Environment overrides
        log_dir_env = os.getenv("GENMEDIA_LOG_DIR")
        if log_dir_env:
            log_dir = Path(log_dir_env).expanduser()

        templates_dir_env = os.getenv("GENMEDIA_TEMPLATES_DIR")
        if templates_dir_env:
            templates_dir = Path(templates_dir_env).expanduser()

        retry_env = os.getenv("GENMEDIA_RETRY_LIMIT")
        if retry_env:
            retry_limit = _as_int(retry_env, minimum=1) or retry_limit

        interval_env = os.getenv("GENMEDIA_RATE_LIMIT_INTERVAL")
        if interval_env:
            rate_limit_interval = _as_float(interval_env) or rate_limit_interval

        max_wait_env = os.getenv("GENMEDIA_MAX_WAIT")
        if max_wait_env:
            max_wait = _as_float(max_wait_env)

        poll_interval_env = os.getenv("GENMEDIA_POLL_INTERVAL")
        if poll_interval_env:
            poll_interval = _as_float(poll_interval_env) or poll_interval

        poll_timeout_env = os.getenv("GENMEDIA_POLL_TIMEOUT")
        if poll_timeout_env:
            poll_timeout = _as_float(poll_timeout_env) or poll_timeout

        ffmpeg = os.getenv("GENMEDIA_FFMPEG") or ffmpeg

        if not 0 < safety_factor <= 1:
            raise ValueError(f"safety_factor must be in (0, 1], got {safety_factor}")

        return AppConfig(
            api_key=api_key,
            log_dir=log_dir,
            templates_dir=templates_dir,
            retry_limit=retry_limit,
            rate_limit_interval=rate_limit_interval,
            max_wait=max_wait,
            safety_factor=safety_factor,
            poll_interval=poll_interval,
            poll_timeout=poll_timeout,
            ffmpeg=ffmpeg,
            config_path=resolved_config,
        )
