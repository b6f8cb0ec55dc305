"""
Resolution context for Quick Term.

Snapshots of the host state (active document, workspace folders,
environment, configuration) that placeholder resolution reads from,
plus the derived per-file information.
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

from .. import config_file

logger = logging.getLogger(__name__)

LOCAL_FILE_SCHEME = "file"

# Valid auto change directory policies
AUTO_CD_POLICIES = ("none", "file", "workspace", "auto")


@dataclass
class ActiveDocument:
    """The document the user is editing. Line and column are 1-based."""

    path: str
    scheme: str = LOCAL_FILE_SCHEME
    line: int = 1
    column: int = 1
    selected_text: str = ""

    @property
    def is_local(self) -> bool:
        return self.scheme == LOCAL_FILE_SCHEME


@dataclass
class WorkspaceFolder:
    name: str
    path: str


@dataclass
class FileInfo:
    """File information derived from the active document."""

    file_basename: str = ""
    file_basename_no_extension: str = ""
    file: str = ""
    file_extname: str = ""
    file_dirname: str = ""
    file_dirname_basename: str = ""
    file_workspace_folder: str = ""
    relative_file: str = ""
    relative_file_dirname: str = ""
    line_number: int = 0
    column_number: int = 0
    selected_text: str = ""


def _no_config(key: str) -> Any:
    return None


@dataclass
class ResolutionContext:
    """
    Everything placeholder resolution may consult.

    get_config is the layered lookup used by {config:...}; the
    workspace/global lookups and find_interpreter only feed the
    {pythonPath} chain.
    """

    active_document: Optional[ActiveDocument] = None
    workspace_folders: List[WorkspaceFolder] = field(default_factory=list)
    user_home: str = field(default_factory=lambda: str(Path.home()))
    path_separator: str = os.sep
    cwd: str = field(default_factory=os.getcwd)
    get_env_var: Callable[[str], Optional[str]] = os.environ.get
    get_config: Callable[[str], Any] = _no_config
    get_workspace_config: Optional[Callable[[str], Any]] = None
    get_global_config: Optional[Callable[[str], Any]] = None
    find_interpreter: Optional[Callable[[], Optional[str]]] = None
    auto_change_directory: str = "none"

    @property
    def workspace_root(self) -> Optional[str]:
        """Path of the first workspace folder, if any."""
        if self.workspace_folders:
            return self.workspace_folders[0].path
        return None


def _split_ext(path: str) -> tuple[str, str]:
    """Split a basename into (stem, extension) the way editors do."""
    basename = os.path.basename(path)
    stem, ext = os.path.splitext(basename)
    return stem, ext


def find_workspace_folder(
    path: str, folders: List[WorkspaceFolder]
) -> Optional[WorkspaceFolder]:
    """Return the innermost workspace folder containing path."""
    best = None
    for folder in folders:
        root = folder.path.rstrip("/\\") or folder.path
        if path == root or path.startswith(root + os.sep) or path.startswith(root + "/"):
            if best is None or len(root) > len(best.path):
                best = folder
    return best


def extract_file_info(
    document: ActiveDocument, workspace_folders: List[WorkspaceFolder]
) -> Optional[FileInfo]:
    """Derive the full file information. Returns None for non-local documents."""
    if not document.is_local:
        return None

    file_name = document.path
    stem, ext = _split_ext(file_name)
    dirname = os.path.dirname(file_name)

    owner = find_workspace_folder(file_name, workspace_folders)
    relative_file = ""
    relative_dirname = ""
    if owner is not None:
        relative_file = os.path.relpath(file_name, owner.path)
        relative_dirname = os.path.dirname(relative_file)

    return FileInfo(
        file_basename=os.path.basename(file_name),
        file_basename_no_extension=stem,
        file=file_name,
        file_extname=ext,
        file_dirname=dirname,
        file_dirname_basename=os.path.basename(dirname),
        file_workspace_folder=owner.path if owner else "",
        relative_file=relative_file,
        relative_file_dirname=relative_dirname,
        line_number=document.line,
        column_number=document.column,
        selected_text=document.selected_text,
    )


def extract_basic_file_info(document: ActiveDocument) -> FileInfo:
    """Derive the subset of file information that works for any scheme."""
    # Non-local paths always use forward slashes
    basename = document.path.rsplit("/", 1)[-1]
    stem, ext = os.path.splitext(basename)
    return FileInfo(
        file_basename=basename,
        file_basename_no_extension=stem,
        file_extname=ext,
        line_number=document.line,
        column_number=document.column,
        selected_text=document.selected_text,
    )


def create_context(
    active_document: Optional[ActiveDocument] = None,
    workspace_folders: Optional[List[WorkspaceFolder]] = None,
    cwd: Optional[str] = None,
    auto_change_directory: Optional[str] = None,
) -> ResolutionContext:
    """
    Build a context from the current process and configuration files.

    Args:
        active_document: Document being edited, if any
        workspace_folders: Open workspace folders, first one is primary
        cwd: Working directory (defaults to the process cwd)
        auto_change_directory: Policy override (defaults to config file)

    Returns:
        ResolutionContext wired to the environment and TOML configuration
    """
    from .python_path import find_active_interpreter

    folders = list(workspace_folders or [])
    workspace_root = folders[0].path if folders else None

    workspace_config = config_file.load_workspace_config(workspace_root)
    policy = config_file.get("auto_change_directory")
    if auto_change_directory:
        override = config_file.normalize_auto_cd(auto_change_directory)
        if override is None:
            print(
                f"quick-term: unknown auto_change_directory '{auto_change_directory}', ignoring",
                file=sys.stderr,
            )
        else:
            policy = override

    def get_config(key: str) -> Any:
        return config_file.lookup(key, workspace_config)

    def get_workspace_config(key: str) -> Any:
        return config_file.lookup_in(workspace_config, key)

    def get_global_config(key: str) -> Any:
        return config_file.lookup_in(config_file.raw(), key)

    return ResolutionContext(
        active_document=active_document,
        workspace_folders=folders,
        cwd=cwd or os.getcwd(),
        get_config=get_config,
        get_workspace_config=get_workspace_config,
        get_global_config=get_global_config,
        find_interpreter=find_active_interpreter,
        auto_change_directory=config_file.normalize_auto_cd(policy) or "workspace",
    )
