"""Classification of JSON decode failures into user-facing diagnoses."""

import json
import re
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel


class DuplicateKeyError(ValueError):
    """Raised while decoding when one JSON object repeats a key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"duplicate key: {key!r}")


class JsonErrorInfo(BaseModel):
    error_type: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    suggestion: Optional[str] = None
    has_backup: bool = False


_INCOMPLETE = (
    "incomplete",
    "The JSON file appears to be incomplete or truncated",
    "Check if the file ends properly with closing braces }",
)
_SYNTAX = (
    "syntax",
    "Invalid JSON syntax found",
    "Check for missing commas, quotes, or brackets around the error location",
)
_TRAILING_COMMA = (
    "trailing_comma",
    "Found an extra comma at the end of a list or object",
    "Remove the trailing comma before the closing bracket",
)
_DUPLICATE_KEY = (
    "duplicate_key",
    "Found duplicate server names in the configuration",
    "Each server must have a unique name",
)
_UNKNOWN = (
    "unknown",
    "JSON parsing error occurred",
    "Please check your JSON syntax or restore from backup",
)


def _reject_duplicates(pairs: List[Tuple[str, Any]]) -> dict:
    seen = {}
    for key, value in pairs:
        if key in seen:
            raise DuplicateKeyError(key)
        seen[key] = value
    return seen


def loads_strict(content: str) -> Any:
    """``json.loads`` that refuses duplicate keys inside one object."""
    return json.loads(content, object_pairs_hook=_reject_duplicates)


def _line_col(content: str, pos: int) -> Tuple[int, int]:
    line = content.count("\n", 0, pos) + 1
    column = pos - (content.rfind("\n", 0, pos) + 1) + 1
    return line, column


def _trailing_comma_pos(content: str, pos: int) -> Optional[int]:
    """Index of a comma directly followed by a closing bracket, near *pos*."""
    if content[pos : pos + 1] == ",":
        comma = pos
    else:
        before = content[:pos].rstrip()
        if not before.endswith(","):
            return None
        comma = len(before) - 1
    after = content[comma + 1 :].lstrip()
    return comma if after[:1] in ("}", "]") else None


def _classify_decode_error(content: str, exc: json.JSONDecodeError) -> Tuple[str, str, str]:
    if _trailing_comma_pos(content, exc.pos) is not None:
        return _TRAILING_COMMA
    if exc.pos >= len(content.rstrip()):
        return _INCOMPLETE
    if exc.msg.startswith("Unterminated string") and "\n" not in content[exc.pos:].strip():
        return _INCOMPLETE
    return _SYNTAX


def _locate_duplicate(content: str, key: str) -> Optional[Tuple[int, int]]:
    pattern = re.compile(r'"' + re.escape(json.dumps(key)[1:-1]) + r'"\s*:')
    matches = list(pattern.finditer(content))
    if len(matches) < 2:
        return None
    return _line_col(content, matches[1].start())


def analyze_json_error(content: str, exc: Exception) -> JsonErrorInfo:
    """Turn a decode exception into a :class:`JsonErrorInfo`.

    ``has_backup`` is always ``False`` here; the caller knows where the
    backup lives and fills it in.
    """
    line: Optional[int] = None
    column: Optional[int] = None

    if isinstance(exc, DuplicateKeyError):
        kind = _DUPLICATE_KEY
        located = _locate_duplicate(content, exc.key)
        if located is not None:
            line, column = located
    elif isinstance(exc, json.JSONDecodeError):
        kind = _classify_decode_error(content, exc)
        line, column = exc.lineno, exc.colno
        comma = _trailing_comma_pos(content, exc.pos)
        if comma is not None:
            line, column = _line_col(content, comma)
    else:
        kind = _UNKNOWN

    error_type, message, suggestion = kind
    return JsonErrorInfo(
        error_type=error_type,
        message=message,
        line=line,
        column=column,
        suggestion=suggestion,
    )
