"""
Automatic working directory selection.

Prefixes a command template with `cd <dir> && ` according to the
configured policy. The `auto` policy recognises well-known tools by
their leading tokens and walks up from the active file looking for the
project marker files those tools are configured by.
"""

import logging
import os
import re
from typing import List, NamedTuple, Optional

from .context import FileInfo, ResolutionContext
from .escape import escape_shell_arg

logger = logging.getLogger(__name__)

# Placeholders that only make sense relative to the file's own directory
FILE_ONLY_PLACEHOLDERS = frozenset({
    "{filename}", "{filestem}", "{fileext}",
    "{fileBasename}", "{fileBasenameNoExtension}", "{fileExtname}",
})

_PYTHON_MODULE_PREFIX = r"^((?:[^\s]*python[^\s]*|\{pythonPath\})\s+-m\s+)?"


class CommandRule(NamedTuple):
    pattern: re.Pattern
    markers: List[str]


def _rule(pattern: str, markers: List[str]) -> CommandRule:
    return CommandRule(re.compile(pattern), markers)


# Ordered; the first matching rule wins.
COMMAND_RULES: List[CommandRule] = [
    # Python
    _rule(_PYTHON_MODULE_PREFIX + r"pytest(\s|$)",
          ["pytest.ini", "pyproject.toml", "tox.ini", "setup.cfg"]),
    _rule(_PYTHON_MODULE_PREFIX + r"ruff(\s|$)",
          ["pyproject.toml", "ruff.toml", ".ruff.toml"]),
    _rule(_PYTHON_MODULE_PREFIX + r"black(\s|$)", ["pyproject.toml", ".black"]),
    _rule(_PYTHON_MODULE_PREFIX + r"mypy(\s|$)",
          ["mypy.ini", "pyproject.toml", "setup.cfg"]),
    _rule(r"^uv(\s|$)", ["pyproject.toml"]),
    _rule(r"^flake8(\s|$)", ["setup.cfg", "tox.ini", ".flake8"]),
    _rule(r"^poetry(\s|$)", ["pyproject.toml"]),

    # Docker
    _rule(r"^docker\s+compose(\s|$)|^docker-compose(\s|$)",
          ["docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"]),

    # Node.js
    _rule(r"^(npm|yarn|pnpm)(\s|$)", ["package.json"]),
    _rule(r"^vite(\s|$)",
          ["vite.config.js", "vite.config.ts", "vite.config.mjs", "vite.config.cjs",
           "package.json"]),
    _rule(r"^tsc(\s|$)", ["tsconfig.json"]),
    _rule(r"^eslint(\s|$)",
          [".eslintrc.js", ".eslintrc.json", ".eslintrc.yml", ".eslintrc.yaml",
           "eslint.config.js", "eslint.config.mjs", "package.json"]),

    # Build systems
    _rule(r"^make(\s|$)", ["Makefile", "makefile", "GNUmakefile"]),
    _rule(r"^(gradle|gradlew|\./gradlew)(\s|$)",
          ["build.gradle", "build.gradle.kts", "gradlew", "settings.gradle",
           "settings.gradle.kts"]),
    _rule(r"^(mvn|mvnw|\./mvnw)(\s|$)", ["pom.xml", "mvnw"]),

    # Other languages and tools
    _rule(r"^terraform(\s|$)", ["main.tf", "variables.tf", "outputs.tf", "terraform.tf"]),
    _rule(r"^ansible-playbook(\s|$)", ["ansible.cfg", "playbook.yml", "site.yml", "inventory"]),
    _rule(r"^cargo(\s|$)", ["Cargo.toml"]),
    _rule(r"^go(\s|$)", ["go.mod"]),
    _rule(r"^composer(\s|$)", ["composer.json"]),
    _rule(r"^(bundle|bundler)(\s|$)", ["Gemfile"]),
    _rule(r"^dotnet(\s|$)", ["*.csproj", "*.sln", "*.fsproj", "*.vbproj"]),
    _rule(r"^helm(\s|$)", ["Chart.yaml", "Chart.yml"]),
]


def _wildcard_regex(marker: str) -> re.Pattern:
    """Translate a single-`*` marker into an anchored, case-sensitive regex."""
    return re.compile("^" + marker.replace(".", r"\.").replace("*", ".*") + "$")


def _has_marker(directory: str, marker: str) -> bool:
    """Check one marker in one directory. Probe errors count as absent."""
    try:
        if "*" in marker:
            pattern = _wildcard_regex(marker)
            return any(pattern.match(entry) for entry in os.listdir(directory))
        return os.path.exists(os.path.join(directory, marker))
    except OSError as e:
        logger.debug(f"Marker probe failed for {marker} in {directory}: {e}")
        return False


def find_marker_directory(
    start_dir: str, markers: List[str], workspace_root: Optional[str]
) -> Optional[str]:
    """
    Walk up from start_dir to the nearest directory holding any marker.

    The workspace root is still checked, but the walk never goes above
    it. The filesystem root itself is never checked.

    Returns:
        The matching directory, or None if nothing was found
    """
    boundary = os.path.normpath(workspace_root) if workspace_root else None
    current = os.path.normpath(start_dir)

    while current != os.path.dirname(current):
        for marker in markers:
            if _has_marker(current, marker):
                return current

        if boundary is not None and current == boundary:
            break

        current = os.path.dirname(current)

    return None


def match_rule(command: str) -> Optional[CommandRule]:
    """Return the first rule whose pattern matches the command, if any."""
    for rule in COMMAND_RULES:
        if rule.pattern.search(command):
            return rule
    return None


def _cd_prefix(directory: str, command: str) -> str:
    return f"cd {escape_shell_arg(directory)} && {command}"


def apply_auto_cd(
    command: str, file_info: FileInfo, workspace_root: Optional[str]
) -> str:
    """
    Prefix command with a cd into the directory inferred for it.

    Args:
        command: Unexpanded command template
        file_info: Information about the active local file
        workspace_root: Directory the ancestor search must not leave

    Returns:
        The prefixed command, or the input unchanged if it is blank
    """
    trimmed = command.strip()
    if not trimmed:
        return command

    # Standalone file placeholders run relative to the file itself
    if any(part in FILE_ONLY_PLACEHOLDERS for part in trimmed.split()):
        return _cd_prefix(file_info.file_dirname, command)

    rule = match_rule(trimmed)
    if rule is not None:
        found = find_marker_directory(file_info.file_dirname, rule.markers, workspace_root)
        if found:
            logger.debug(f"Matched rule {rule.pattern.pattern!r}, using {found}")
            return _cd_prefix(found, command)

    return _cd_prefix(file_info.file_dirname, command)


def apply_auto_change_directory(
    command: str, file_info: Optional[FileInfo], context: ResolutionContext
) -> str:
    """Apply the context's auto change directory policy to a template."""
    policy = context.auto_change_directory
    if not policy or policy == "none" or file_info is None:
        return command
    if not command.strip():
        return command

    if policy == "auto":
        return apply_auto_cd(command, file_info, context.workspace_root)
    if policy == "file":
        return _cd_prefix(file_info.file_dirname, command)
    if policy == "workspace":
        if context.workspace_root:
            return _cd_prefix(context.workspace_root, command)
        return command

    logger.warning(f"Unknown auto change directory policy: {policy}")
    return command
