"""
Input session for Quick Term.

Owns the state of one command capture: the displayed text, the
history browsing cursor and the incremental history search. Accepting
resolves the command, records it in history and hands it to the
terminal sink.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional

from . import config
from .command_input import parse_command_input
from .history import HistoryEntry, HistoryStore
from .resolver.context import ResolutionContext
from .resolver.placeholders import PlaceholderResult, resolve_placeholders

logger = logging.getLogger(__name__)

# Browsing cursor value meaning "showing the live input"
LIVE = -1

TerminalSink = Callable[[str, bool], None]


def _debug_log(label: str, data: Any) -> None:
    """Append a timestamped entry to the debug log file."""
    if not config.debug_enabled():
        return
    try:
        config.DEBUG_LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with open(config.DEBUG_LOG_PATH, "a") as f:
            ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
            f.write(f"\n{'='*72}\n")
            f.write(f"[{ts}] {label}\n")
            f.write(f"{'='*72}\n")
            if isinstance(data, (dict, list)):
                f.write(json.dumps(data, indent=2, default=str))
            else:
                f.write(str(data))
            f.write("\n")
    except Exception:
        pass  # never break the CLI for debug logging


@dataclass
class SearchSession:
    """Incremental search over history, results most recent first."""

    term: str = ""
    results: List[HistoryEntry] = field(default_factory=list)
    cursor: int = 0

    @property
    def selected(self) -> Optional[HistoryEntry]:
        if 0 <= self.cursor < len(self.results):
            return self.results[self.cursor]
        return None


class Session:
    """
    One command capture at a time.

    Navigation and search methods return the new displayed text, or
    None when the display does not change.
    """

    def __init__(
        self,
        store: HistoryStore,
        sink: Optional[TerminalSink] = None,
        resolver: Callable[[str, ResolutionContext], PlaceholderResult] = resolve_placeholders,
    ):
        self.store = store
        self.sink = sink
        self.resolver = resolver
        self.text = ""
        self.is_open = False
        self.search: Optional[SearchSession] = None
        self._cursor = LIVE
        self._live_text = ""

    @property
    def cursor(self) -> int:
        return self._cursor

    # --- Capture lifecycle ---

    def begin(self, initial_text: str = "") -> None:
        """Open a capture. Only one capture can be open at a time."""
        if self.is_open:
            raise RuntimeError("A command capture is already open")
        self.is_open = True
        self.text = initial_text
        self._cursor = LIVE
        self._live_text = initial_text
        self.search = None

    def end(self) -> None:
        """Close the capture, dropping browsing and search state."""
        self.is_open = False
        self.search = None
        self._cursor = LIVE

    def set_text(self, value: str) -> None:
        """The user edited the input."""
        self.text = value
        if self._cursor == LIVE:
            self._live_text = value

    # --- History browsing ---

    def previous(self) -> Optional[str]:
        """Step back to an older history entry, showing its expansion."""
        if not len(self.store):
            return None

        if self._cursor == LIVE:
            self._live_text = self.text
            self._cursor = len(self.store) - 1
        elif self._cursor > 0:
            self._cursor -= 1

        self.text = self.store[self._cursor].expanded
        return self.text

    def next(self) -> Optional[str]:
        """Step forward; past the newest entry the live input comes back."""
        if not len(self.store) or self._cursor == LIVE:
            return None

        if self._cursor < len(self.store) - 1:
            self._cursor += 1
            self.text = self.store[self._cursor].expanded
        else:
            self._cursor = LIVE
            self.text = self._live_text
        return self.text

    def restore_original(self) -> Optional[str]:
        """Show the placeholder form of the selected search result or history entry."""
        entry = None
        if self.search is not None:
            entry = self.search.selected
        elif 0 <= self._cursor < len(self.store):
            entry = self.store[self._cursor]

        if entry is None:
            return None
        self.text = entry.original
        return self.text

    # --- Search ---

    def enter_search(self) -> Optional[str]:
        """Start searching; while already searching this cycles to the next result."""
        if self.search is not None:
            return self.cycle_search()
        self.search = SearchSession(term="", results=self.store.most_recent_first(), cursor=0)
        return None

    def update_search(self, term: str) -> Optional[str]:
        """Filter history by term and show the best match."""
        if self.search is None:
            self.search = SearchSession()
        self.search.term = term
        self.search.results = self.store.search(term)
        self.search.cursor = 0

        selected = self.search.selected
        if selected is None:
            return None
        self.text = selected.expanded
        return self.text

    def cycle_search(self) -> Optional[str]:
        """Advance to the next search result, wrapping around."""
        if self.search is None:
            self.search = SearchSession()
        if not self.search.results:
            self.search.results = self.store.most_recent_first()
            if not self.search.results:
                return None

        self.search.cursor = (self.search.cursor + 1) % len(self.search.results)
        self.text = self.search.results[self.search.cursor].expanded
        return self.text

    def exit_search(self) -> None:
        """Leave search mode, keeping the displayed text."""
        self.search = None

    # --- Dispatch ---

    def execute(
        self, command: str, context: ResolutionContext, auto_submit: bool = True
    ) -> Optional[PlaceholderResult]:
        """
        Resolve a command, record it and send it to the terminal sink.
        auto_submit tells the sink whether to run the command or only
        place it at the prompt. Blank commands are ignored and return None.
        """
        original = command.strip()
        if not original:
            return None

        result = self.resolver(original, context)
        _debug_log("RESOLVE", {
            "original": original,
            "resolved": result.resolved_text,
            "warnings": result.warnings,
        })

        self.store.append(original, result.resolved_text)
        for warning in result.warnings:
            logger.warning(warning)

        if self.sink is not None:
            self.sink(result.resolved_text, auto_submit)
            _debug_log("DISPATCH", result.resolved_text)
        return result

    def accept(self, context: ResolutionContext) -> Optional[PlaceholderResult]:
        """Accept the displayed text and close the capture."""
        command = self.text
        self.end()
        return self.execute(command, context)

    def paste(self, value: Any, context: ResolutionContext) -> Optional[PlaceholderResult]:
        """
        Put a command input into the open capture, accepting it at once
        when it asks for auto execution.

        Raises:
            ConfigurationError: If value is not a supported command input
        """
        if not self.is_open:
            logger.warning("No open command capture to paste into")
            return None

        request = parse_command_input(value, context.active_document)
        self.set_text(request.command)
        self.exit_search()

        if request.auto_execute and request.command.strip():
            return self.accept(context)
        return None
