"""Logging configuration setup."""

import copy
import logging
import logging.config
import os
import re
import sys
from datetime import datetime
from typing import Optional, Set, Tuple  # noqa: UP035

from mcp_manager.constants import DEFAULT_LOG_LEVEL
from mcp_manager.paths import default_log_dir

# ── Secret redaction filter ──────────────────────────────────────────────

_REDACTED = "***REDACTED***"


class SecretRedactionFilter(logging.Filter):
    """Logging filter that replaces server environment values with a placeholder.

    The config store registers every ``env`` value it loads or saves, so API
    keys never reach a log file even when a message echoes a whole entry.
    """

    def __init__(self) -> None:
        super().__init__()
        self._secrets: Set[str] = set()
        self._pattern: Optional[re.Pattern[str]] = None

    def register(self, value: str) -> None:
        """Register a secret value for redaction."""
        if not value or len(value) < 4 or value in self._secrets:  # skip trivially short values
            return
        self._secrets.add(value)
        # Longest first so overlapping secrets are fully masked
        escaped = sorted((re.escape(s) for s in self._secrets), key=len, reverse=True)
        self._pattern = re.compile("|".join(escaped))

    def redact(self, text: str) -> str:
        if self._pattern is None:
            return text
        return self._pattern.sub(_REDACTED, text)

    def filter(self, record: logging.LogRecord) -> bool:
        if self._pattern is not None:
            if isinstance(record.msg, str):
                record.msg = self.redact(record.msg)
            if record.args:
                if isinstance(record.args, dict):
                    record.args = {
                        k: self.redact(v) if isinstance(v, str) else v
                        for k, v in record.args.items()
                    }
                elif isinstance(record.args, tuple):
                    record.args = tuple(self.redact(a) if isinstance(a, str) else a for a in record.args)
        return True


secret_redaction_filter = SecretRedactionFilter()

BASE_LOG_CFG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple_file": {
            "format": ("%(asctime)s - %(name)25s:%(lineno)-4d - " "%(levelname)-7s - %(message)s"),
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "console": {
            "format": "%(levelname)s: %(message)s",
        },
    },
    "handlers": {
        "file_handler": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "simple_file",
            "filename": "temp_log_name.log",
            "encoding": "utf-8",
        },
        "console_handler": {
            "class": "logging.StreamHandler",
            "level": "WARNING",
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "uvicorn": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "WARNING",
        },
        "uvicorn.error": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "WARNING",
        },
        "uvicorn.access": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "WARNING",
        },
        "starlette": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "INFO",
        },
        "mcp_manager": {
            "handlers": ["file_handler", "console_handler"],
            "propagate": False,
            "level": "INFO",
        },
        "mcp": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "INFO",
        },
    },
    "root": {
        "handlers": ["file_handler"],
        "level": "WARNING",
    },
}


def setup_logging(
    log_lvl_str: str = DEFAULT_LOG_LEVEL,
    *,
    quiet: bool = False,
    log_dir: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Set up the logging system.

    Everything goes to a timestamped file; warnings and errors from
    ``mcp_manager`` are also echoed to stderr unless *quiet* is set.

    Args:
        log_lvl_str: The desired log level string (e.g., 'debug', 'info').
        quiet: If *True*, no console handler and no ``print()`` output.
        log_dir: Directory for the log file; the per-user log dir if omitted.

    Returns:
        A tuple of (log_file_path, validated_log_level).
    """
    log_lvl_valid = log_lvl_str.upper()
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if log_lvl_valid not in valid_levels:
        if not quiet:
            print(f"Warning: invalid log level '{log_lvl_str}'. Using 'INFO'.", file=sys.stderr)
        log_lvl_valid = "INFO"

    log_dir = log_dir or default_log_dir()
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    os.makedirs(log_dir, exist_ok=True)
    log_fpath = os.path.join(log_dir, f"manager_{ts}_{log_lvl_valid}.log")

    log_cfg: dict = copy.deepcopy(BASE_LOG_CFG)
    log_cfg["handlers"]["file_handler"]["filename"] = log_fpath
    if quiet:
        del log_cfg["handlers"]["console_handler"]
        log_cfg["loggers"]["mcp_manager"]["handlers"] = ["file_handler"]

    for name in ("mcp_manager", "mcp", "starlette"):
        log_cfg["loggers"][name]["level"] = log_lvl_valid

    if log_lvl_valid == "DEBUG":
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            log_cfg["loggers"][name]["level"] = "INFO"
        log_cfg["root"]["level"] = "DEBUG"

    try:
        logging.config.dictConfig(log_cfg)
        # dictConfig builds fresh handlers each time, so the filter is re-attached
        attached = set()
        for logger_name in ("", "mcp_manager"):
            for handler in logging.getLogger(logger_name).handlers:
                if id(handler) not in attached:
                    handler.addFilter(secret_redaction_filter)
                    attached.add(id(handler))
    except (ValueError, TypeError, AttributeError, ImportError) as e_log_cfg:
        if not quiet:
            print(f"Error applying logging configuration: {e_log_cfg}", file=sys.stderr)

    return log_fpath, log_lvl_valid
