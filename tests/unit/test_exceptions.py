"""Tests for custom exception classes."""

import pytest

from scriptlex.exceptions import (
    ConfigurationError,
    ExportError,
    ParseError,
    ScriptLexError,
    ScriptLexFileNotFoundError,
    ValidationError,
    check_config_keys,
)


class TestScriptLexError:
    """Test the base exception formatting."""

    def test_message_only(self):
        error = ScriptLexError("Something broke")
        assert str(error) == "Error: Something broke"
        assert error.hint is None
        assert error.details is None

    def test_with_hint_and_details(self):
        """Test hint and details are included in the message."""
        error = ScriptLexError(
            message="Cannot read script",
            hint="Check the file encoding",
            details={"file": "a.fountain", "encoding": "utf-8"},
        )
        error_str = str(error)
        assert "Error: Cannot read script" in error_str
        assert "Hint: Check the file encoding" in error_str
        assert "Details:" in error_str
        assert "file: a.fountain" in error_str
        assert "encoding: utf-8" in error_str

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError,
            ParseError,
            ScriptLexFileNotFoundError,
            ValidationError,
            ExportError,
        ],
    )
    def test_inheritance(self, error_class):
        """Test that every error derives from ScriptLexError."""
        error = error_class("failure")
        assert isinstance(error, ScriptLexError)
        assert isinstance(error, Exception)


class TestCheckConfigKeys:
    """Test configuration key checking."""

    def test_valid_keys_pass(self):
        check_config_keys({"parser_incremental": False, "log_level": "DEBUG"})

    @pytest.mark.parametrize(
        ("wrong", "correct"),
        [
            ("resolve_emphasis", "parser_resolve_emphasis"),
            ("incremental", "parser_incremental"),
            ("words_per_page", "stats_words_per_page"),
            ("page_width", "export_page_width"),
        ],
    )
    def test_wrong_key_raises(self, wrong, correct):
        with pytest.raises(ConfigurationError) as exc_info:
            check_config_keys({wrong: 1})

        assert exc_info.value.details["correct_key"] == correct
        assert f"Use '{correct}'" in str(exc_info.value)
