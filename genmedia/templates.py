from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from .constants import TEMPLATES_DIR
from .prompts.default import DEFAULT_PROMPTS, render


class TemplateLoader:
    """Resolve prompt templates, preferring ``<name>-prompt.txt`` files in *base*."""

    def __init__(self, base: Path | None = None):
        self.base = Path(base or TEMPLATES_DIR)

    def _load_optional(self, name: str) -> str | None:
        path = self.base / name
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    @lru_cache(maxsize=None)
    def prompt(self, name: str) -> str:
        if (text := self._load_optional(f"{name}-prompt.txt")) is not None:
            return text
        return DEFAULT_PROMPTS[name]

    def svg_prompt(self, *, instructions: str, file_path: str, mime: str) -> str:
        return render(self.prompt("svg"), instructions=instructions, file_path=file_path, mime=mime)

    def image_prompt(self, *, instructions: str, file_path: str, mime: str) -> str:
        return render(self.prompt("image"), instructions=instructions, file_path=file_path, mime=mime)
