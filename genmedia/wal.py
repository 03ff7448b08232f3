from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from .constants import LOG_DIR, WAL_FILENAME
from .core.types import RequestHistoryEntry
from .utils import ensure_dir

logger = logging.getLogger(__name__)


class RequestLog:
    """Durable, append-only record of every outbound request attempt.

    The whole sequence is rewritten on each append so the next quota check in
    the same process always sees it. Entries are never removed or compacted.
    The directory also receives the per-attempt debug artifacts, which are
    overwritten each time and never read back.
    """

    def __init__(self, directory: Path | None = None) -> None:
        self.directory = Path(directory or LOG_DIR)
        self.path = self.directory / WAL_FILENAME
        self._entries: list[RequestHistoryEntry] = []

    @property
    def entries(self) -> list[RequestHistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> list[RequestHistoryEntry]:
        """Hydrate from disk; a missing or malformed file starts a fresh log."""
        ensure_dir(self.directory)
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"), parse_constant=_reject_constant)
            if not isinstance(payload, list):
                raise ValueError("request log is not a JSON array")
            entries = [RequestHistoryEntry.from_dict(item) for item in payload]
        except (OSError, ValueError, KeyError, TypeError, OverflowError, RecursionError) as exc:
            logger.warning("Initializing request log at %s (%s)", self.path, exc)
            entries = []
            self._entries = entries
            self._persist()
            return self.entries
        self._entries = entries
        logger.debug("Loaded %d request log entries from %s", len(entries), self.path)
        return self.entries

    def append(self, entry: RequestHistoryEntry) -> None:
        self._entries.append(entry)
        self._persist()

    def record_usage(self, entry: RequestHistoryEntry, usage: Any) -> RequestHistoryEntry:
        """Attach provider-reported token counts to a previously appended entry.

        The entry keeps its key, timestamp and position; only the optional
        token fields are filled in.
        """
        counts = extract_usage_counts(usage)
        if not any(value is not None for value in counts.values()):
            return entry
        for index in range(len(self._entries) - 1, -1, -1):
            if self._entries[index].key == entry.key:
                updated = replace(entry, **counts)
                self._entries[index] = updated
                self._persist()
                return updated
        raise KeyError(f"request log entry {entry.key} not found")

    def write_debug(self, name: str, content: str | bytes) -> Path:
        ensure_dir(self.directory)
        target = self.directory / name
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_bytes(content.encode("utf-8"))
        return target

    def _persist(self) -> None:
        ensure_dir(self.directory)
        payload = [entry.to_dict() for entry in self._entries]
        self.path.write_text(json.dumps(payload), encoding="utf-8")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def extract_usage_counts(usage: Any) -> dict[str, int | None]:
    fields = (
        "prompt_token_count",
        "candidates_token_count",
        "total_token_count",
        "cached_content_token_count",
    )
    counts: dict[str, int | None] = {}
    for name in fields:
        if usage is None:
            value = None
        elif isinstance(usage, dict):
            value = usage.get(name)
        else:
            value = getattr(usage, name, None)
        try:
            counts[name] = int(value) if value is not None else None
        except (TypeError, ValueError):
            counts[name] = None
    return counts
