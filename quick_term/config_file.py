"""
Optional config file support for Quick Term.

Reads ~/.config/quick-term/config.toml if it exists, and a
.quick-term.toml at the root of the open workspace.
Missing config or invalid values fall back to defaults.
"""

import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(
    os.environ.get("QUICK_TERM_CONFIG", Path.home() / ".config" / "quick-term" / "config.toml")
)
WORKSPACE_CONFIG_NAME = ".quick-term.toml"

# Defaults
DEFAULTS: Dict[str, Any] = {
    "auto_change_directory": "workspace",
    "history_capacity": 100,
    "debug": False,
}

# Valid auto change directory policies, plus the legacy spelling
_AUTO_CD_ALIASES = {
    "none": "none",
    "file": "file",
    "workspace": "workspace",
    "auto": "auto",
    "auto (experimental)": "auto",
}

_config: Dict[str, Any] = {}
_raw: Dict[str, Any] = {}
_loaded = False


def normalize_auto_cd(value: Any) -> str | None:
    """Map a policy name to its canonical form. Returns None if unknown."""
    if not isinstance(value, str):
        return None
    return _AUTO_CD_ALIASES.get(value.strip().lower())


def _validate_int(value: Any, key: str, minimum: int = 1) -> int | None:
    """Validate an integer config value. Returns None if invalid."""
    try:
        val = int(value)
        if val < minimum:
            print(f"quick-term: config '{key}' must be >= {minimum}, ignoring", file=sys.stderr)
            return None
        return val
    except (TypeError, ValueError):
        print(f"quick-term: config '{key}' must be an integer, ignoring", file=sys.stderr)
        return None


def load_config() -> Dict[str, Any]:
    """
    Load config from TOML file, merging with defaults.

    Returns a dict with keys: auto_change_directory, history_capacity, debug.
    """
    global _config, _raw, _loaded

    if _loaded:
        return _config

    _config = dict(DEFAULTS)
    _raw = {}
    _loaded = True

    if not CONFIG_PATH.exists():
        logger.debug("No config file at %s, using defaults", CONFIG_PATH)
        return _config

    try:
        with open(CONFIG_PATH, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        print(f"quick-term: error reading config: {e}", file=sys.stderr)
        return _config

    _raw = data

    # [terminal] section
    terminal_section = data.get("terminal", {})
    if isinstance(terminal_section, dict):
        policy = terminal_section.get("auto_change_directory")
        if policy is not None:
            canonical = normalize_auto_cd(policy)
            if canonical:
                _config["auto_change_directory"] = canonical
            else:
                print(
                    f"quick-term: unknown auto_change_directory '{policy}', ignoring",
                    file=sys.stderr,
                )

    # [history] section
    history_section = data.get("history", {})
    if isinstance(history_section, dict):
        capacity = history_section.get("capacity")
        if capacity is not None:
            val = _validate_int(capacity, "capacity")
            if val is not None:
                _config["history_capacity"] = val

    # [debug] section
    debug_section = data.get("debug", {})
    if isinstance(debug_section, dict):
        enabled = debug_section.get("enabled")
        if isinstance(enabled, bool):
            _config["debug"] = enabled

    logger.debug("Loaded config: %s", _config)
    return _config


def get(key: str) -> Any:
    """Get a config value by key."""
    cfg = load_config()
    return cfg.get(key, DEFAULTS.get(key))


def raw() -> Dict[str, Any]:
    """The parsed user config file, unvalidated."""
    load_config()
    return _raw


def load_workspace_config(workspace_root: Optional[str]) -> Dict[str, Any]:
    """Read <workspace_root>/.quick-term.toml. Not cached."""
    if not workspace_root:
        return {}

    path = Path(workspace_root) / WORKSPACE_CONFIG_NAME
    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        logger.warning(f"Error reading workspace config {path}: {e}")
        return {}


def lookup_in(data: Dict[str, Any], dotted_key: str) -> Any:
    """Look up a dotted key (e.g. 'editor.fontSize') in nested tables."""
    node: Any = data
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def lookup(dotted_key: str, workspace_config: Optional[Dict[str, Any]] = None) -> Any:
    """Layered lookup: workspace config first, then the user config."""
    if workspace_config:
        value = lookup_in(workspace_config, dotted_key)
        if value is not None:
            return value
    return lookup_in(raw(), dotted_key)


def reset():
    """Reset loaded config (for testing)."""
    global _config, _raw, _loaded
    _config = {}
    _raw = {}
    _loaded = False
