"""Outcome values for expected negative results.

"Already exists", "not found", "port busy" and friends are normal answers,
not failures, so they are returned rather than raised.
"""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class OutcomeKind(str, Enum):
    OK = "ok"
    DISABLED = "disabled"
    ALREADY_RUNNING = "already_running"
    PORT_UNAVAILABLE = "port_unavailable"
    INVALID_PORT = "invalid_port"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    NO_BACKUP = "no_backup"
    MISSING_FILE = "missing_file"
    INVALID_PRESET = "invalid_preset"


class Outcome(BaseModel):
    """Result of an operation: ``success`` plus a human-readable ``message``."""

    success: bool
    message: str
    kind: OutcomeKind = OutcomeKind.OK
    data: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **data: Any) -> "Outcome":
        return cls(success=True, message=message, kind=OutcomeKind.OK, data=data)

    @classmethod
    def fail(cls, kind: OutcomeKind, message: str, **data: Any) -> "Outcome":
        return cls(success=False, message=message, kind=kind, data=data)

    def __bool__(self) -> bool:
        return self.success
