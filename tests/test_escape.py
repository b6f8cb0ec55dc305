"""Tests for shell argument quoting."""

import pytest

from quick_term.resolver.escape import escape_shell_arg


class TestSafeValues:
    """Values made of safe characters are returned unchanged."""

    @pytest.mark.parametrize("value", [
        "main.py", "/home/user/project/src", "v1.2.3", "./gradlew",
    ])
    def test_fixed_point(self, value):
        assert escape_shell_arg(value) == value
        assert escape_shell_arg(escape_shell_arg(value)) == value


class TestQuoting:
    """Anything else is double-quoted with specials escaped."""

    def test_spaces(self):
        assert escape_shell_arg("file with spaces.ts") == '"file with spaces.ts"'

    def test_specials_escaped(self):
        assert escape_shell_arg('say "hi"') == '"say \\"hi\\""'
        assert escape_shell_arg("$HOME") == '"\\$HOME"'
        assert escape_shell_arg("a`b`") == '"a\\`b\\`"'
        assert escape_shell_arg("back\\slash") == '"back\\\\slash"'

    def test_underscore_is_quoted(self):
        assert escape_shell_arg("test_main.py") == '"test_main.py"'

    def test_empty_string(self):
        assert escape_shell_arg("") == '""'

    def test_trailing_newline_is_quoted(self):
        assert escape_shell_arg("abc\n") == '"abc\n"'
