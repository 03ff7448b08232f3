import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from . import api
from . import catalog
from .config import AppConfig
from .core.types import Context, Modality, Tier
from .errors import GenMediaError
from .quota import RateLimiter
from .utils import sleep_with_countdown
from .wal import RequestLog


_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    context_settings=_CONTEXT_SETTINGS,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    _configure_logging(verbose)


def _fail(exc: Exception) -> None:
    typer.echo(str(exc), err=True)
    raise typer.Exit(code=1) from exc


@app.command(help="Generate images (SVG or raster) from a JSON array of specs.")
def image(
    spec_json: str = typer.Argument(..., metavar="IMAGE_SPEC_JSON", help="JSON array of image specs."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML configuration file"),
) -> None:
    try:
        api.GenerateImages(spec_json, config_path=config, on_output=typer.echo, sleep=sleep_with_countdown)
    except (GenMediaError, ValueError, FileNotFoundError) as exc:
        _fail(exc)


@app.command(help="Generate videos (MP4 or GIF) from a JSON array of specs.")
def video(
    spec_json: str = typer.Argument(..., metavar="VIDEO_SPEC_JSON", help="JSON array of video specs."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML configuration file"),
) -> None:
    try:
        api.GenerateVideos(spec_json, config_path=config, on_output=typer.echo, sleep=sleep_with_countdown)
    except (GenMediaError, ValueError, FileNotFoundError) as exc:
        _fail(exc)


@app.command(help="Report current quota consumption from the request log.")
def usage(
    modality: str = typer.Option("image", "--modality", "-m", case_sensitive=False, help="text|image|video"),
    tier: str = typer.Option("fast", "--tier", "-t", case_sensitive=False, help="fast|quality|ultra"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory holding wal.json"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML configuration file"),
) -> None:
    try:
        normalized_modality = Modality(modality.lower())
        normalized_tier = Tier(tier.lower())
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        cfg = AppConfig.from_sources(config)
        quota = catalog.lookup(normalized_modality, normalized_tier, safety_factor=cfg.safety_factor)
    except (GenMediaError, ValueError, FileNotFoundError) as exc:
        _fail(exc)
        return

    log = RequestLog(log_dir or cfg.log_dir)
    log.load()
    report = RateLimiter().check(Context(log=log, model=quota))

    typer.echo(f"Model: {quota.model}")
    typer.echo(f"  Requests (last minute): {report.rpm_count}/{quota.rpm}")
    typer.echo(f"  Requests (last day): {report.rpd_count}/{quota.rpd}")
    if quota.tpm is not None:
        typer.echo(f"  Tokens (last minute): {report.tpm_count:,}/{quota.tpm:,}")
    typer.echo(f"  Admission: {'blocked' if report.exceeded else 'open'}")


if __name__ == "__main__":  # pragma: no cover
    app()
