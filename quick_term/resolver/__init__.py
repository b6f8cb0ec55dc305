"""Template resolution for Quick Term."""

from .escape import escape_shell_arg
from .auto_cd import apply_auto_cd, apply_auto_change_directory
from .context import ActiveDocument, FileInfo, ResolutionContext, WorkspaceFolder
from .placeholders import PlaceholderResult, resolve_placeholders

__all__ = [
    "ActiveDocument",
    "FileInfo",
    "PlaceholderResult",
    "ResolutionContext",
    "WorkspaceFolder",
    "apply_auto_cd",
    "apply_auto_change_directory",
    "escape_shell_arg",
    "resolve_placeholders",
]
