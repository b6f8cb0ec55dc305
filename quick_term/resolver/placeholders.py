"""
Placeholder resolution for Quick Term.

Expands {placeholder} tokens in a command template into literal text.
The stages run in a fixed order:

1. auto change directory, applied to the still-unexpanded template so
   directory rules see literal command names
2. file placeholders (a reduced set for non-local documents)
3. workspace placeholders
4. system, environment, configuration and interpreter placeholders

Missing context never aborts resolution; it produces warnings instead.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .auto_cd import apply_auto_change_directory
from .context import (
    FileInfo,
    ResolutionContext,
    WorkspaceFolder,
    extract_basic_file_info,
    extract_file_info,
)
from .escape import escape_shell_arg
from .python_path import fallback_python_command, get_python_interpreter_path

logger = logging.getLogger(__name__)

FILE_PLACEHOLDERS = [
    "{fileBasename}", "{fileBasenameNoExtension}", "{file}", "{fileDirname}", "{dir}",
    "{fileExtname}", "{relativeFile}", "{fileWorkspaceFolder}", "{relativeFileDirname}",
    "{fileDirnameBasename}", "{lineNumber}", "{columnNumber}", "{selectedText}",
    "{filename}", "{filestem}", "{filepath}", "{fileext}", "{dirname}", "{relativepath}",
]

WORKSPACE_PLACEHOLDERS = [
    "{workspaceFolder}", "{workspaceFolderBasename}", "{workspace}", "{workspacename}",
]

# Need a real filesystem path to resolve
LOCAL_ONLY_PLACEHOLDERS = [
    "{file}", "{fileDirname}", "{dir}", "{relativeFile}", "{fileWorkspaceFolder}",
    "{relativeFileDirname}", "{fileDirnameBasename}",
    "{filepath}", "{dirname}", "{relativepath}",
]

_UNRESOLVED = re.compile(r"\{[^}]+\}")
_ENV = re.compile(r"\{env:([^}]+)\}")
_CONFIG = re.compile(r"\{config:([^}]+)\}")


# Inserted as-is; everything else is escaped
_UNESCAPED = {"{fileExtname}", "{fileext}", "{lineNumber}", "{columnNumber}"}

_CONCATENATION_TOKENS = ("{fileDirname}", "{dir}", "{dirname}", "{workspaceFolder}", "{workspace}")


@dataclass
class PlaceholderResult:
    resolved_text: str
    warnings: List[str] = field(default_factory=list)


def file_placeholder_values(info: FileInfo, local: bool = True) -> Dict[str, str]:
    """
    Raw (unescaped) values of the file placeholders available for info.

    Path placeholders need a local file. The optional ones are only
    present when they have a value, so they are otherwise reported as
    unresolved.
    """
    values = {}
    if local or info.file_basename:
        values["{fileBasename}"] = info.file_basename
        values["{filename}"] = info.file_basename
    if local or info.file_basename_no_extension:
        values["{fileBasenameNoExtension}"] = info.file_basename_no_extension
        values["{filestem}"] = info.file_basename_no_extension
    if local or info.file_extname:
        values["{fileExtname}"] = info.file_extname
        values["{fileext}"] = info.file_extname
    if local or info.line_number:
        values["{lineNumber}"] = str(info.line_number)
    if local or info.column_number:
        values["{columnNumber}"] = str(info.column_number)
    if info.selected_text:
        values["{selectedText}"] = info.selected_text

    if not local:
        return values

    values["{file}"] = info.file
    values["{filepath}"] = info.file
    values["{fileDirname}"] = info.file_dirname
    values["{dir}"] = info.file_dirname
    values["{dirname}"] = info.file_dirname
    values["{fileDirnameBasename}"] = info.file_dirname_basename
    if info.file_workspace_folder:
        values["{fileWorkspaceFolder}"] = info.file_workspace_folder
    if info.relative_file:
        values["{relativeFile}"] = info.relative_file
        values["{relativepath}"] = info.relative_file
    if info.relative_file_dirname:
        values["{relativeFileDirname}"] = info.relative_file_dirname
    return values


def workspace_placeholder_values(folders: List[WorkspaceFolder]) -> Dict[str, str]:
    """Raw values of the workspace placeholders, taken from the first folder."""
    if not folders:
        return {}
    root, name = folders[0].path, folders[0].name
    return {
        "{workspaceFolder}": root,
        "{workspace}": root,
        "{workspaceFolderBasename}": name,
        "{workspacename}": name,
    }


def replace_concatenations(text: str, values: Dict[str, str]) -> str:
    """
    Replace `{dir}/suffix` style forms with one escaped path.

    Placeholders inside the suffix are expanded with their raw values
    first, so the joined path is escaped exactly once.
    """
    result = text
    for token in _CONCATENATION_TOKENS:
        base = values.get(token)
        if not base:
            continue

        def _join(match: re.Match) -> str:
            suffix = match.group(1)
            for name, value in values.items():
                suffix = suffix.replace(name, value)
            return escape_shell_arg(os.path.join(base, suffix))

        result = re.sub(re.escape(token) + r"/(\S+)", _join, result)
    return result


def _replace_values(text: str, values: Dict[str, str]) -> str:
    for token, value in values.items():
        if token not in _UNESCAPED:
            value = escape_shell_arg(value)
        text = text.replace(token, value)
    return text


def replace_file_placeholders(text: str, info: FileInfo) -> str:
    """Replace all file placeholders for a local file."""
    values = file_placeholder_values(info)
    # Concatenations first so the bare tokens below do not split them
    return _replace_values(replace_concatenations(text, values), values)


def replace_basic_file_placeholders(text: str, info: FileInfo) -> str:
    """Replace the placeholders that also work for non-local documents."""
    return _replace_values(text, file_placeholder_values(info, local=False))


def replace_workspace_placeholders(text: str, folders: List[WorkspaceFolder]) -> str:
    """Replace workspace placeholders using the first workspace folder."""
    values = workspace_placeholder_values(folders)
    return _replace_values(replace_concatenations(text, values), values)


def stringify_config_value(value: Any) -> str:
    """Render a configuration value the way it would be typed in a command."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(stringify_config_value(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def replace_system_placeholders(text: str, context: ResolutionContext) -> str:
    """Replace system, environment, configuration and interpreter placeholders."""
    result = text

    result = result.replace("{userHome}", escape_shell_arg(context.user_home))
    result = result.replace("{pathSeparator}", context.path_separator)
    result = result.replace("{/}", context.path_separator)
    result = result.replace("{cwd}", escape_shell_arg(context.cwd))

    def _env(match: re.Match) -> str:
        value = context.get_env_var(match.group(1))
        # Undefined variables are left in place
        if value is None:
            return match.group(0)
        return escape_shell_arg(value)

    result = _ENV.sub(_env, result)

    def _config(match: re.Match) -> str:
        key = match.group(1)
        try:
            value = context.get_config(key)
        except Exception as e:
            logger.warning(f"Failed to get config {key}: {e}")
            return match.group(0)
        if value is None:
            return match.group(0)
        return escape_shell_arg(stringify_config_value(value))

    result = _CONFIG.sub(_config, result)

    if "{pythonPath}" in result or "{pythonInterpreter}" in result:
        interpreter = get_python_interpreter_path(context)
        if interpreter:
            python = escape_shell_arg(interpreter)
        else:
            python = fallback_python_command()
        result = result.replace("{pythonPath}", python)
        result = result.replace("{pythonInterpreter}", python)

    return result


def find_unresolved_placeholders(text: str) -> List[str]:
    """Find every {...} span left in text."""
    return _UNRESOLVED.findall(text)


def generate_warnings(text: str, context: ResolutionContext) -> List[str]:
    """Warnings for placeholders that the current context cannot satisfy."""
    warnings = []
    document = context.active_document

    if document is None and any(p in text for p in FILE_PLACEHOLDERS):
        warnings.append(
            "File placeholders are used but there is no active file editor."
        )

    if not context.workspace_folders and any(p in text for p in WORKSPACE_PLACEHOLDERS):
        warnings.append(
            "Workspace placeholders are used but no workspace folder is open."
        )

    if document is not None and not document.is_local:
        if any(p in text for p in LOCAL_ONLY_PLACEHOLDERS):
            warnings.append(
                "Some file path placeholders are not available for "
                f"non-file documents ({document.scheme}:)"
            )

    return warnings


def _resolve(text: str, context: ResolutionContext) -> PlaceholderResult:
    warnings = generate_warnings(text, context)
    result = text
    document = context.active_document
    values = workspace_placeholder_values(context.workspace_folders)

    file_info = None
    if document is not None:
        if document.is_local:
            file_info = extract_file_info(document, context.workspace_folders)
            result = apply_auto_change_directory(result, file_info, context)
            values.update(file_placeholder_values(file_info))
        else:
            file_info = extract_basic_file_info(document)
            values.update(file_placeholder_values(file_info, local=False))

    # {workspaceFolder}/{fileBasename} needs both stages' values at once
    result = replace_concatenations(result, values)

    if file_info is not None:
        if document.is_local:
            result = replace_file_placeholders(result, file_info)
        else:
            result = replace_basic_file_placeholders(result, file_info)

    result = replace_workspace_placeholders(result, context.workspace_folders)
    result = replace_system_placeholders(result, context)

    unresolved = find_unresolved_placeholders(result)
    if unresolved:
        warnings.append(f"Unresolved placeholders found: {', '.join(unresolved)}")

    return PlaceholderResult(resolved_text=result, warnings=warnings)


def resolve_placeholders(text: str, context: ResolutionContext) -> PlaceholderResult:
    """
    Resolve every placeholder in a command template.

    Never raises: on an unexpected internal error the template is
    returned untouched with no warnings.

    Args:
        text: Command template
        context: Host state to resolve against

    Returns:
        PlaceholderResult with the resolved command and any warnings
    """
    try:
        return _resolve(text, context)
    except Exception as e:
        logger.error(f"Placeholder resolution failed: {e}")
        return PlaceholderResult(resolved_text=text, warnings=[])
