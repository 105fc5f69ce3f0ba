"""Custom exception hierarchy for ScriptLex with helpful error messages."""

from __future__ import annotations

from typing import Any


class ScriptLexError(Exception):
    """Base exception with helpful formatting for all ScriptLex errors.

    Screenplay content never raises: the parser degrades to Action elements
    and diagnostics instead. These exceptions cover configuration, file
    access and invalid API arguments.
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize exception with structured error information.

        Args:
            message: Primary error message describing what went wrong
            hint: Optional hint suggesting how to fix the problem
            details: Optional dictionary with additional debugging information
        """
        self.message = message
        self.hint = hint
        self.details = details
        super().__init__(self.format_error())

    def format_error(self) -> str:
        """Format the error message with hint and details.

        Returns:
            Formatted error string with all available information
        """
        output = f"Error: {self.message}"
        if self.hint:
            output += f"\nHint: {self.hint}"
        if self.details:
            details_str = "\n".join(
                f"  {key}: {value}" for key, value in self.details.items()
            )
            output += f"\nDetails:\n{details_str}"
        return output


class ConfigurationError(ScriptLexError):
    """Configuration errors including invalid settings and missing config files."""

    pass


class ParseError(ScriptLexError):
    """Fountain source errors that happen before parsing (decoding, reading)."""

    pass


class ScriptLexFileNotFoundError(ScriptLexError):
    """File not found errors with helpful path information."""

    pass


class ValidationError(ScriptLexError):
    """Input validation errors with details about what was expected."""

    pass


class ExportError(ScriptLexError):
    """Errors raised while writing exported screenplay text."""

    pass


def check_config_keys(config: dict[str, Any]) -> None:
    """Check for common configuration mistakes.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigurationError: With hints about correct configuration keys
    """
    wrong_keys = {
        "resolve_emphasis": "parser_resolve_emphasis",
        "incremental": "parser_incremental",
        "latency_budget_ms": "parser_latency_budget_ms",
        "words_per_page": "stats_words_per_page",
        "page_width": "export_page_width",
    }

    for wrong, correct in wrong_keys.items():
        if wrong in config:
            raise ConfigurationError(
                message=f"Invalid configuration key '{wrong}'",
                hint=f"Use '{correct}' instead of '{wrong}'",
                details={
                    "found_keys": list(config.keys()),
                    "invalid_key": wrong,
                    "correct_key": correct,
                },
            )
