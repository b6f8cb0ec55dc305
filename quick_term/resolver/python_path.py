"""
Python interpreter lookup for the {pythonPath} / {pythonInterpreter} placeholders.
"""

import logging
import os
import re
import sys
from typing import Any, Callable, Optional

from .context import ResolutionContext

logger = logging.getLogger(__name__)

INTERPRETER_KEYS = ("python.defaultInterpreterPath", "python.pythonPath")

_GENERIC_NAMES = {"python", "python3", "python2"}
_PYTHON_EXECUTABLE = re.compile(r"python[\d.]*(?:\.exe)?$", re.IGNORECASE)


def is_valid_python_path(candidate: Any) -> bool:
    """Accept paths and versioned executables, reject bare generic names."""
    if not isinstance(candidate, str) or not candidate:
        return False
    if candidate in _GENERIC_NAMES:
        return False
    if "/" in candidate or "\\" in candidate:
        return True
    return bool(_PYTHON_EXECUTABLE.search(candidate))


def fallback_python_command(platform: Optional[str] = None) -> str:
    """Command to use when no interpreter path could be determined."""
    platform = platform or sys.platform
    return "python" if platform.startswith("win") else "python3"


def _from_lookup(lookup: Optional[Callable[[str], Any]], source: str) -> Optional[str]:
    if lookup is None:
        return None
    for key in INTERPRETER_KEYS:
        try:
            value = lookup(key)
        except Exception as e:
            logger.debug(f"{source} lookup of {key} failed: {e}")
            continue
        if is_valid_python_path(value):
            return str(value)
    return None


def get_python_interpreter_path(context: ResolutionContext) -> Optional[str]:
    """
    Find the interpreter to substitute, in priority order:

    direct configuration, workspace configuration, global configuration,
    then the interpreter service. Candidates failing the plausibility
    check are skipped.
    """
    for lookup, source in (
        (context.get_config, "direct"),
        (context.get_workspace_config, "workspace"),
        (context.get_global_config, "global"),
    ):
        found = _from_lookup(lookup, source)
        if found:
            return found

    if context.find_interpreter is not None:
        try:
            active = context.find_interpreter()
        except Exception as e:
            logger.debug(f"Interpreter service failed: {e}")
            return None
        if is_valid_python_path(active):
            return str(active)

    return None


def find_active_interpreter() -> Optional[str]:
    """Interpreter of the active virtualenv or conda environment, if any."""
    for var in ("VIRTUAL_ENV", "CONDA_PREFIX"):
        prefix = os.environ.get(var)
        if not prefix:
            continue
        if sys.platform.startswith("win"):
            candidates = [os.path.join(prefix, "Scripts", "python.exe"),
                          os.path.join(prefix, "python.exe")]
        else:
            candidates = [os.path.join(prefix, "bin", "python")]
        for candidate in candidates:
            if os.path.exists(candidate):
                return candidate
    return None
