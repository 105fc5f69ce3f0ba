"""JSON output for CLI commands."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any

from pydantic import BaseModel

from scriptlex.exceptions import ScriptLexError


def to_json(data: Any) -> str:
    """Serialize a parse result, an analyzer report or a plain mapping.

    Pydantic models are dumped in JSON mode, so element kinds and diagnostic
    codes appear as their string values.
    """
    if isinstance(data, BaseModel):
        payload = data.model_dump(mode="json")
    elif is_dataclass(data) and not isinstance(data, type):
        payload = asdict(data)
    else:
        payload = data
    return json.dumps(payload, default=str, indent=2)


def error_response(error: Exception, code: int = 1) -> str:
    """JSON body describing a failed command.

    Args:
        error: The error that ended the command.
        code: Exit code the command returns.

    Returns:
        An object with ``success`` set to false, the message and any hint.
    """
    response: dict[str, Any] = {"success": False, "code": code}
    if isinstance(error, ScriptLexError):
        response["error"] = error.message
        if error.hint:
            response["hint"] = error.hint
    else:
        response["error"] = str(error)
    return json.dumps(response, indent=2)
