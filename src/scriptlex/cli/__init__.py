"""ScriptLex command line interface."""

from scriptlex.cli.main import app, main

__all__ = ["app", "main"]
