import time
from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

stderr_console = Console(stderr=True)


def ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p


def sleep_with_countdown(sleep_time: float, description: str = "Waiting for rate limit reset") -> None:
    """Sleep for *sleep_time* seconds while showing the remaining time on stderr."""
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}", justify="left"),
        TimeElapsedColumn(),
        console=stderr_console,
        transient=True,
    )
    target_time = time.time() + sleep_time
    with progress:
        task = progress.add_task(description, total=None)
        while True:
            remaining = target_time - time.time()
            if remaining <= 0:
                break
            progress.update(task, description=f"{description}: {remaining:.0f} sec remaining")
            time.sleep(min(0.5, remaining))
