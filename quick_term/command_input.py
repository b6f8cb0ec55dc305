"""
Command input normalization.

A command can be supplied as a plain string, as a list of
{pattern, command} rules chosen by the active file's name, or as an
object {command, autoExecute} wrapping either. Everything is reduced
to a CommandRequest before it reaches the resolver.
"""

import fnmatch
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .resolver.context import ActiveDocument

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """The command input does not have a supported shape."""


@dataclass(frozen=True)
class CommandRequest:
    command: str
    auto_execute: bool = False


def _is_rule_list(value: Any) -> bool:
    return isinstance(value, list)


def _validate_rules(rules: List[Any]) -> List[Dict[str, str]]:
    for i, rule in enumerate(rules):
        if not isinstance(rule, dict):
            raise ConfigurationError(f"Command rule {i} must be an object, got {type(rule).__name__}")
        if not isinstance(rule.get("pattern"), str) or not isinstance(rule.get("command"), str):
            raise ConfigurationError(f"Command rule {i} needs string 'pattern' and 'command'")
    return rules


def matches_pattern(file_name: str, pattern: str) -> bool:
    """Case-insensitive glob match of a file name (`*` and `?`)."""
    return fnmatch.fnmatchcase(file_name.lower(), pattern.lower())


def select_command_by_pattern(
    rules: List[Dict[str, str]], document: Optional[ActiveDocument]
) -> str:
    """
    Pick the command whose pattern matches the active file's basename.

    Falls back to the first command when there is no local active file
    or nothing matches; an empty rule list gives an empty command.
    """
    if not rules:
        return ""

    if document is None or not document.is_local:
        return rules[0]["command"]

    file_name = document.path.replace("\\", "/").rsplit("/", 1)[-1]
    for rule in rules:
        if matches_pattern(file_name, rule["pattern"]):
            logger.debug(f'Matched pattern "{rule["pattern"]}" for file "{file_name}"')
            return rule["command"]

    logger.debug(f'No pattern matched for file "{file_name}", using fallback')
    return rules[0]["command"]


def parse_command_input(value: Any, document: Optional[ActiveDocument] = None) -> CommandRequest:
    """
    Normalize a command input into a CommandRequest.

    Placeholders are left untouched so they can be seen and edited.

    Raises:
        ConfigurationError: If the input is neither a command, a rule
            list, nor a {command, autoExecute} object
    """
    if isinstance(value, str):
        return CommandRequest(command=value)

    if _is_rule_list(value):
        return CommandRequest(command=select_command_by_pattern(_validate_rules(value), document))

    if isinstance(value, dict) and "command" in value and "autoExecute" in value:
        auto_execute = value["autoExecute"]
        if not isinstance(auto_execute, bool):
            raise ConfigurationError("'autoExecute' must be a boolean")

        command = value["command"]
        if isinstance(command, str):
            return CommandRequest(command=command, auto_execute=auto_execute)
        if _is_rule_list(command):
            selected = select_command_by_pattern(_validate_rules(command), document)
            return CommandRequest(command=selected, auto_execute=auto_execute)
        raise ConfigurationError(f"Invalid command type: {type(command).__name__}")

    raise ConfigurationError(f"Invalid input type: {type(value).__name__}")
