"""
Quick Term entrypoint.

Reads a JSON request from stdin, resolves the command template,
records it in history and prints the command to stdout.

Request fields:
    action: "run" (default) or "history"
    command: template string, rule list, or {command, autoExecute}
    file, scheme, line, column, selection: active document
    workspaceFolders: [{"name": ..., "path": ...}] (or "workspace": path)
    cwd, autoChangeDirectory: optional overrides
    search: filter term for the history action
"""

import json
import os
import sys
from typing import Any, Dict, List


def _document_from_request(data: Dict[str, Any]):
    from .resolver.context import ActiveDocument

    path = data.get("file")
    if not path:
        return None
    return ActiveDocument(
        path=path,
        scheme=data.get("scheme", "file"),
        line=int(data.get("line", 1)),
        column=int(data.get("column", 1)),
        selected_text=data.get("selection", "") or "",
    )


def _folders_from_request(data: Dict[str, Any]) -> List:
    from .resolver.context import WorkspaceFolder

    folders = []
    for item in data.get("workspaceFolders") or []:
        if isinstance(item, dict) and item.get("path"):
            path = item["path"]
            folders.append(WorkspaceFolder(name=item.get("name") or os.path.basename(path), path=path))
    workspace = data.get("workspace")
    if not folders and isinstance(workspace, str) and workspace:
        folders.append(WorkspaceFolder(name=os.path.basename(workspace.rstrip("/")), path=workspace))
    return folders


def _print_command(command: str, auto_submit: bool) -> None:
    # A trailing newline tells the shell integration to run the command
    print(command, end="\n" if auto_submit else "")


def run(data: Dict[str, Any]) -> int:
    """Handle one request. Returns the process exit code."""
    from . import config
    from .command_input import ConfigurationError, parse_command_input
    from .history import HistoryStore
    from .resolver.context import create_context
    from .session import Session

    store = HistoryStore(capacity=config.history_capacity(), path=config.HISTORY_PATH)
    action = data.get("action", "run")

    if action == "history":
        term = data.get("search", "") or ""
        for entry in store.search(term):
            print(entry.expanded)
        return 0

    if action != "run":
        print(f"quick-term: unknown action '{action}'", file=sys.stderr)
        return 1

    document = _document_from_request(data)
    context = create_context(
        active_document=document,
        workspace_folders=_folders_from_request(data),
        cwd=data.get("cwd"),
        auto_change_directory=data.get("autoChangeDirectory"),
    )

    try:
        request = parse_command_input(data.get("command"), document)
    except ConfigurationError as e:
        print(f"quick-term: {e}", file=sys.stderr)
        return 1

    session = Session(store, sink=_print_command)
    result = session.execute(request.command, context, auto_submit=request.auto_execute)
    if result is None:
        return 1

    for warning in result.warnings:
        print(f"quick-term: warning: {warning}", file=sys.stderr)
    return 0


def main():
    """Read stdin, process request, print command."""
    try:
        # Read JSON from stdin
        raw = sys.stdin.read().strip()
        if not raw:
            sys.exit(1)

        data = json.loads(raw)
        if not isinstance(data, dict):
            sys.exit(1)

        sys.exit(run(data))

    except json.JSONDecodeError:
        sys.exit(1)
    except (TypeError, ValueError) as e:
        print(f"quick-term: invalid request: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(1)


if __name__ == "__main__":
    main()
