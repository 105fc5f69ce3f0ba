"""ScriptLex utilities module."""

from scriptlex.utils.screenplay import ScreenplayUtils

__all__ = ["ScreenplayUtils"]
