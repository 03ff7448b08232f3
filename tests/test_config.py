from pathlib import Path

import pytest

from genmedia.config import AppConfig
from genmedia.errors import MissingCredentialError

_ENV_VARS = (
    "GENMEDIA_CONFIG",
    "GENMEDIA_LOG_DIR",
    "GENMEDIA_TEMPLATES_DIR",
    "GENMEDIA_RETRY_LIMIT",
    "GENMEDIA_RATE_LIMIT_INTERVAL",
    "GENMEDIA_MAX_WAIT",
    "GENMEDIA_POLL_INTERVAL",
    "GENMEDIA_POLL_TIMEOUT",
    "GENMEDIA_FFMPEG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.chdir(tmp_path)


def test_missing_api_key_is_fatal(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY")
    with pytest.raises(MissingCredentialError):
        AppConfig.from_sources()


def test_defaults_without_config_file():
    cfg = AppConfig.from_sources()
    assert cfg.api_key == "test-key"
    assert cfg.log_dir == Path(".logs")
    assert cfg.retry_limit == 3
    assert cfg.rate_limit_interval == 60.0
    assert cfg.max_wait is None
    assert cfg.safety_factor == 0.95
    assert cfg.poll_interval == 10.0
    assert cfg.poll_timeout == 600.0
    assert cfg.ffmpeg == "ffmpeg"
    assert cfg.config_path is None


def test_yaml_file_in_working_directory_is_picked_up(tmp_path):
    (tmp_path / "genmedia.yaml").write_text(
        "log_dir: run-logs\n"
        "retry:\n"
        "  limit: 5\n"
        "rate_limit:\n"
        "  interval_seconds: 30\n"
        "  max_wait_seconds: 900\n"
        "  safety_factor: 0.8\n"
        "video:\n"
        "  poll_interval_seconds: 5\n"
        "  poll_timeout_seconds: 120\n"
        "  ffmpeg: /usr/local/bin/ffmpeg\n"
    )

    cfg = AppConfig.from_sources()

    assert cfg.config_path == Path("genmedia.yaml")
    assert cfg.log_dir == Path("run-logs")
    assert cfg.retry_limit == 5
    assert cfg.rate_limit_interval == 30.0
    assert cfg.max_wait == 900.0
    assert cfg.safety_factor == 0.8
    assert cfg.poll_interval == 5.0
    assert cfg.poll_timeout == 120.0
    assert cfg.ffmpeg == "/usr/local/bin/ffmpeg"


def test_environment_overrides_file_values(monkeypatch, tmp_path):
    config_file = tmp_path / "custom.yaml"
    config_file.write_text("retry:\n  limit: 5\nlog_dir: from-file\n")
    monkeypatch.setenv("GENMEDIA_CONFIG", str(config_file))
    monkeypatch.setenv("GENMEDIA_RETRY_LIMIT", "7")
    monkeypatch.setenv("GENMEDIA_LOG_DIR", "from-env")
    monkeypatch.setenv("GENMEDIA_MAX_WAIT", "45")

    cfg = AppConfig.from_sources()

    assert cfg.config_path == config_file
    assert cfg.retry_limit == 7
    assert cfg.log_dir == Path("from-env")
    assert cfg.max_wait == 45.0


def test_explicit_missing_config_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        AppConfig.from_sources(tmp_path / "absent.yaml")


def test_invalid_yaml_raises_value_error(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("retry: [unterminated\n")
    with pytest.raises(ValueError):
        AppConfig.from_sources(bad)


@pytest.mark.parametrize(
    "content",
    [
        "retry:\n  limit: 0\n",
        "retry:\n  limit: many\n",
        "rate_limit:\n  safety_factor: 1.5\n",
        "rate_limit:\n  interval_seconds: -1\n",
    ],
)
def test_out_of_range_values_are_rejected(tmp_path, content):
    path = tmp_path / "genmedia.yaml"
    path.write_text(content)
    with pytest.raises(ValueError):
        AppConfig.from_sources(path)
