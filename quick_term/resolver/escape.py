"""
Shell argument quoting.

Values made only of safe characters are returned untouched; everything
else is wrapped in double quotes with the characters the shell still
interprets inside double quotes backslash-escaped.
"""

import re

_SAFE_ARG = re.compile(r"[A-Za-z0-9._/-]+")
_DOUBLE_QUOTE_SPECIALS = re.compile(r'([\\$"`])')


def escape_shell_arg(value: str) -> str:
    """Quote a value for safe use as a single shell word."""
    if _SAFE_ARG.fullmatch(value):
        return value
    return '"' + _DOUBLE_QUOTE_SPECIALS.sub(r"\\\1", value) + '"'
