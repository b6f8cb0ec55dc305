"""
Command history for Quick Term.

An ordered, deduplicated, bounded list of (original, expanded) command
pairs, most recent last, persisted as JSON after every append.
"""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterator, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


@dataclass(frozen=True)
class HistoryEntry:
    """A command as typed (original) and as sent to the terminal (expanded)."""

    original: str
    expanded: str

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on either form."""
        needle = term.lower()
        return needle in self.original.lower() or needle in self.expanded.lower()


class HistoryStore:
    """
    Bounded command history.

    No two entries share the same original; appending an existing
    original moves it to the tail with its new expansion.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, path: Optional[Path] = None):
        if capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.path = path
        self._entries: List[HistoryEntry] = []
        if path is not None:
            self._entries = self._load(path)[-capacity:]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> HistoryEntry:
        return self._entries[index]

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def most_recent_first(self) -> List[HistoryEntry]:
        return list(reversed(self._entries))

    def search(self, term: str) -> List[HistoryEntry]:
        """Entries matching term, most recent first. An empty term matches all."""
        return [e for e in reversed(self._entries) if e.matches(term)]

    def append(self, original: str, expanded: str) -> Optional[HistoryEntry]:
        """
        Record a command, replacing any entry with the same original.

        Blank commands are ignored and return None.
        """
        key = original.strip()
        if not key:
            return None

        entry = HistoryEntry(original=key, expanded=expanded)
        self._entries = [e for e in self._entries if e.original != key]
        self._entries.append(entry)

        while len(self._entries) > self.capacity:
            self._entries.pop(0)

        self.save()
        return entry

    def save(self):
        """Persist the history. Failures are logged and otherwise ignored."""
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            data = [asdict(e) for e in self._entries]
            self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False))
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save history to {self.path}: {e}")

    @staticmethod
    def _load(path: Path) -> List[HistoryEntry]:
        """Read persisted history. Failures give an empty history."""
        try:
            if not path.exists():
                logger.debug("No history file at %s", path)
                return []
            data = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load history from {path}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Ignoring malformed history file {path}")
            return []

        entries: List[HistoryEntry] = []
        seen = set()
        # Later entries win when the file holds duplicates
        for item in reversed(data):
            if isinstance(item, str):
                # Older format: plain command strings
                original, expanded = item, item
            elif isinstance(item, dict) and isinstance(item.get("original"), str):
                original = item["original"]
                expanded = item.get("expanded")
                if not isinstance(expanded, str):
                    expanded = original
            else:
                logger.debug(f"Skipping malformed history item: {item!r}")
                continue

            original = original.strip()
            if not original or original in seen:
                continue
            seen.add(original)
            entries.append(HistoryEntry(original=original, expanded=expanded))

        entries.reverse()
        return entries
