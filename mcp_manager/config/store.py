"""ConfigStore - owns the Claude Desktop config file on disk.

Loading parses, validates and caches the file; saving always copies the
current file to ``<path>.backup`` first and only then overwrites it.  The
in-memory cache is a read-mostly view: mutating operations re-read the file
instead of trusting the cache, and the cache is replaced only after a write
succeeded.

Blocking file I/O runs in worker threads so a slow disk only delays the
caller that is waiting on it.

Concurrent mutations are not serialised beyond the re-read-then-write
sequence: two processes (or two overlapping calls) editing the same file can
still lose one update.  This is accepted for a single-user desktop tool.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import tempfile
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ValidationError

from mcp_manager.config.diagnostics import analyze_json_error, loads_strict
from mcp_manager.config.schema import Configuration, ServerEntry, ServerInfo, validate_structure
from mcp_manager.constants import (
    BACKUP_SUFFIX,
    BROKEN_SUFFIX,
    EVENT_CONFIG_RESTORED,
    EVENT_SERVER_ADDED,
    EVENT_SERVER_DELETED,
    EVENT_SERVER_UPDATED,
    MANUAL_BACKUP_INFIX,
)
from mcp_manager.display.logging_config import secret_redaction_filter
from mcp_manager.errors import (
    BackupCorruptedError,
    ConfigIOError,
    ConfigParseError,
    ConfigSerializeError,
    ConfigValidationError,
    PathNotSetError,
    ServerNotFoundError,
)
from mcp_manager.outcome import Outcome, OutcomeKind
from mcp_manager.paths import default_config_path

if TYPE_CHECKING:
    from mcp_manager.context import AppContext

logger = logging.getLogger(__name__)


class BackupInfo(BaseModel):
    path: str
    created: str
    size: int
    is_valid: bool


def backup_path_for(config_path: str) -> str:
    return f"{config_path}{BACKUP_SUFFIX}"


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string.

    Only locations and messages are reported, never the offending values.
    """
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"]) or "(root)"
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


# ── Blocking helpers (run via asyncio.to_thread) ─────────────────────────


def _read_text(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError as exc:
        raise ConfigIOError(f"Configuration file does not exist: {path}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigIOError(f"Configuration file is not valid UTF-8: {path}") from exc
    except OSError as exc:
        raise ConfigIOError(f"Failed to read configuration at {path}: {exc}") from exc


def _decode(content: str, path: str, backup_path: str) -> Configuration:
    """Parse and shape-check *content*.  Domain rules are not applied here."""
    try:
        raw_data = loads_strict(content)
    except (ValueError, RecursionError) as exc:
        info = analyze_json_error(content, exc)
        info.has_backup = os.path.exists(backup_path)
        raise ConfigParseError(info, path=path) from exc

    try:
        return Configuration.model_validate(raw_data)
    except ValidationError as exc:
        raise ConfigValidationError(
            f"Configuration validation failed ({len(exc.errors())} error(s)):\n"
            f"{_format_validation_errors(exc)}"
        ) from exc


def _read_config(path: str) -> Configuration:
    content = _read_text(path)
    config = _decode(content, path, backup_path_for(path))
    try:
        validate_structure(config)
    except ConfigValidationError as exc:
        raise ConfigValidationError(f"Configuration validation failed: {exc}") from exc
    return config


def _serialize(config: Configuration) -> str:
    try:
        return json.dumps(config.to_json_dict(), indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise ConfigSerializeError(f"Failed to serialize config: {exc}") from exc


def _write_with_backup(path: str, content: str) -> None:
    """Copy *path* to its ``.backup`` sibling, then overwrite *path*.

    A failed backup aborts before the primary file is touched.
    """
    try:
        shutil.copyfile(path, backup_path_for(path))
    except OSError as exc:
        raise ConfigIOError(f"Failed to create backup: {exc}") from exc

    try:
        _write_atomic(path, content)
    except OSError as exc:
        raise ConfigIOError(f"Failed to write config: {exc}") from exc


def _write_atomic(path: str, content: str) -> None:
    """Write *content* to a sibling temp file and swap it in with ``os.replace``.

    The primary file is either the old or the new content, never partial.
    """
    dir_name = os.path.dirname(os.path.abspath(path)) or "."
    fd, tmp_path = tempfile.mkstemp(dir=dir_name, prefix=".mcp_config_", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        if os.path.exists(path):
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _copy(src: str, dst: str, what: str) -> None:
    try:
        shutil.copyfile(src, dst)
    except OSError as exc:
        raise ConfigIOError(f"Failed to {what}: {exc}") from exc


def _decode_backup(content: str, path: str) -> Configuration:
    """Decode a backup and apply the same rules a load would."""
    config = _decode(content, path, path)
    validate_structure(config)
    return config


def _stat_backup(path: str) -> Optional[BackupInfo]:
    if not os.path.exists(path):
        return None
    try:
        st = os.stat(path)
    except OSError as exc:
        raise ConfigIOError(f"Failed to get backup metadata: {exc}") from exc
    try:
        _decode_backup(_read_text(path), path)
        is_valid = True
    except (ConfigIOError, ConfigParseError, ConfigValidationError):
        is_valid = False
    return BackupInfo(
        path=path,
        created=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat(),
        size=st.st_size,
        is_valid=is_valid,
    )


# ── ConfigStore ──────────────────────────────────────────────────────────


class ConfigStore:
    """Load/validate/cache/save the configuration with backup-guarded writes."""

    def __init__(self, ctx: "AppContext") -> None:
        self._ctx = ctx

    # ── Path handling ────────────────────────────────────────────────

    async def resolve_path(self, path_override: Optional[str] = None) -> str:
        """Explicit override, then the settings' config path, then the defaults."""
        if path_override and path_override.strip():
            return path_override.strip()
        settings = await self._ctx.settings.get()
        if settings.config_path.strip():
            return settings.config_path.strip()
        return self._ctx.default_config_path or default_config_path()

    async def current_path(self) -> str:
        """Path of the last successful load, or the resolved default."""
        remembered = await self._ctx.config_path.get()
        if remembered:
            return remembered
        return await self.resolve_path(None)

    async def use_path(self, path: str) -> str:
        """Remember *path* for later operations without reading it."""
        resolved = os.path.abspath(os.path.expanduser(path.strip()))
        await self._ctx.config_path.set(resolved)
        return resolved

    # ── Load / save ──────────────────────────────────────────────────

    async def load(self, path_override: Optional[str] = None) -> Configuration:
        """Read, parse and validate the file, then cache it.

        Raises :class:`ConfigIOError`, :class:`ConfigParseError` or
        :class:`ConfigValidationError`; the cache is untouched on failure.
        """
        path = await self.resolve_path(path_override)
        logger.debug("Loading configuration file: %s", path)
        config = await asyncio.to_thread(_read_config, path)
        await self._remember(path, config)
        logger.info("Configuration '%s' loaded. %d server(s).", path, len(config.servers))
        return config

    async def save(self, config: Configuration) -> None:
        """Back up the current file, then overwrite it with *config*."""
        path = await self._ctx.config_path.get()
        if not path:
            raise PathNotSetError()

        content = _serialize(config)
        await asyncio.to_thread(_write_with_backup, path, content)

        async with self._ctx.config.write() as guard:
            guard.value = config.model_copy(deep=True)
        self._register_secrets(config)
        logger.info("Configuration saved to %s (%d server(s)).", path, len(config.servers))

    async def cached(self) -> Optional[Configuration]:
        """Copy of the last loaded or saved configuration, if any."""
        async with self._ctx.config.read() as config:
            return config.model_copy(deep=True) if config is not None else None

    async def _reload(self) -> Configuration:
        return await self.load(await self.current_path())

    async def _remember(self, path: str, config: Configuration) -> None:
        async with self._ctx.config_path.write() as guard:
            guard.value = path
        async with self._ctx.config.write() as guard:
            guard.value = config.model_copy(deep=True)
        self._register_secrets(config)

    @staticmethod
    def _register_secrets(config: Configuration) -> None:
        for entry in config.servers.values():
            for value in (entry.env or {}).values():
                secret_redaction_filter.register(value)

    # ── Queries ──────────────────────────────────────────────────────

    async def list_servers(self, path_override: Optional[str] = None) -> List[ServerInfo]:
        """All servers, sorted by name."""
        if path_override:
            config = await self.load(path_override)
        else:
            config = await self._reload()
        return [ServerInfo.from_entry(name, config.servers[name]) for name in sorted(config.servers)]

    async def get_server_details(self, name: str) -> ServerInfo:
        config = await self._reload()
        entry = config.servers.get(name)
        if entry is None:
            raise ServerNotFoundError(name)
        return ServerInfo.from_entry(name, entry)

    # ── Mutations ────────────────────────────────────────────────────

    async def add_server(self, name: str, entry: ServerEntry) -> Outcome:
        config = await self._reload()
        if name in config.servers:
            return Outcome.fail(OutcomeKind.ALREADY_EXISTS, f"Server '{name}' already exists")

        config.servers[name] = self._normalise(entry)
        await self._save_validated(config)
        self._ctx.events.emit_change(EVENT_SERVER_ADDED, {"name": name})
        return Outcome.ok(f"Server '{name}' added successfully")

    async def update_server(self, name: str, entry: ServerEntry) -> Outcome:
        """Overwrite *name*, creating it when absent."""
        config = await self._reload()
        existed = name in config.servers

        config.servers[name] = self._normalise(entry)
        await self._save_validated(config)
        self._ctx.events.emit_change(EVENT_SERVER_UPDATED, {"name": name, "created": not existed})
        return Outcome.ok(f"Server '{name}' updated successfully")

    async def delete_server(self, name: str) -> Outcome:
        config = await self._reload()
        if config.servers.pop(name, None) is None:
            return Outcome.fail(OutcomeKind.NOT_FOUND, f"Server '{name}' not found")

        await self.save(config)
        self._ctx.events.emit_change(EVENT_SERVER_DELETED, {"name": name})
        return Outcome.ok(f"Server '{name}' deleted successfully")

    async def _save_validated(self, config: Configuration) -> None:
        validate_structure(config)
        await self.save(config)

    @staticmethod
    def _normalise(entry: ServerEntry) -> ServerEntry:
        entry = entry.model_copy(deep=True)
        if not entry.env:
            entry.env = None
        return entry

    # ── Backups ──────────────────────────────────────────────────────

    async def backup_info(self) -> Optional[BackupInfo]:
        path = await self.current_path()
        return await asyncio.to_thread(_stat_backup, backup_path_for(path))

    async def restore_from_backup(self) -> Outcome:
        """Replace the primary file with ``.backup`` after validating it.

        A present primary file is first copied to ``.broken``; that copy is
        never removed automatically.
        """
        path = await self.current_path()
        backup_path = backup_path_for(path)
        if not await asyncio.to_thread(os.path.exists, backup_path):
            return Outcome.fail(OutcomeKind.NO_BACKUP, "No backup file found")

        content = await asyncio.to_thread(_read_text, backup_path)
        try:
            restored = _decode_backup(content, backup_path)
        except (ConfigParseError, ConfigValidationError) as exc:
            raise BackupCorruptedError("Backup file is corrupted or invalid") from exc

        await asyncio.to_thread(self._swap_in_backup, path, backup_path)
        await self._remember(path, restored)
        logger.warning("Configuration %s restored from %s.", path, backup_path)
        self._ctx.events.emit_change(EVENT_CONFIG_RESTORED, {"path": path})
        return Outcome.ok("Configuration restored from backup successfully")

    @staticmethod
    def _swap_in_backup(path: str, backup_path: str) -> None:
        if os.path.exists(path):
            _copy(path, f"{path}{BROKEN_SUFFIX}", "backup current file")
        _copy(backup_path, path, "restore from backup")

    async def create_manual_backup(self) -> Outcome:
        """Timestamped copy of the current file, independent of ``.backup``."""
        path = await self.current_path()
        if not await asyncio.to_thread(os.path.exists, path):
            return Outcome.fail(OutcomeKind.MISSING_FILE, "Configuration file does not exist")

        manual_path = f"{path}{MANUAL_BACKUP_INFIX}{int(time.time())}"
        await asyncio.to_thread(_copy, path, manual_path, "create manual backup")
        logger.info("Manual backup created: %s", manual_path)
        return Outcome.ok(f"Manual backup created: {manual_path}", path=manual_path)

    def __repr__(self) -> str:
        return f"ConfigStore(default={self._ctx.default_config_path!r})"
