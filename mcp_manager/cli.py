"""CLI argument parsing and main entry point.

``mcp-manager run`` hosts the embedded tool server; every other subcommand
is a one-shot operation over the same config and settings files.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from mcp_manager.config.schema import ServerEntry, ServerInfo
from mcp_manager.config.store import ConfigStore
from mcp_manager.constants import DEFAULT_LOG_LEVEL, SERVER_NAME, SERVER_VERSION
from mcp_manager.context import AppContext
from mcp_manager.display.logging_config import setup_logging
from mcp_manager.errors import ConfigParseError, ManagerBaseError
from mcp_manager.host import ManagerHost
from mcp_manager.outcome import Outcome
from mcp_manager.paths import default_config_path
from mcp_manager.presets import PresetServer, all_presets, presets_by_category, presets_by_type
from mcp_manager.runtime.ports import validate_port
from mcp_manager.settings import SettingsStore

module_logger = logging.getLogger(__name__)

_MASK = "********"


# ── Helpers ──────────────────────────────────────────────────────────────


async def _open_store(args: argparse.Namespace) -> Tuple[AppContext, ConfigStore]:
    """Context with settings loaded and the ``--config`` path applied."""
    ctx = AppContext.create(settings_path=args.settings)
    await SettingsStore(ctx).load()
    store = ConfigStore(ctx)
    if args.config:
        await store.use_path(args.config)
    return ctx, store


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _report(outcome: Outcome) -> None:
    stream = sys.stdout if outcome.success else sys.stderr
    print(outcome.message, file=stream)
    if not outcome.success:
        sys.exit(1)


def _fail(exc: ManagerBaseError) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    if isinstance(exc, ConfigParseError) and exc.info.has_backup:
        print("A backup is available; run 'mcp-manager restore' to recover it.", file=sys.stderr)
    sys.exit(1)


def _parse_env(pairs: Optional[List[str]]) -> Dict[str, str]:
    env: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"Invalid --env value '{pair}', expected KEY=VALUE")
        env[key.strip()] = value
    return env


def _run(args: argparse.Namespace, coro_fn: Callable[[argparse.Namespace], Awaitable[None]]) -> None:
    """Run one async command, turning domain errors into exit code 1."""
    setup_logging(args.log_level, quiet=args.quiet)
    try:
        asyncio.run(coro_fn(args))
    except ManagerBaseError as exc:
        _fail(exc)


def _format_server(info: ServerInfo, reveal: bool = False) -> str:
    lines = [f"{info.name}", f"  command: {info.command}"]
    if info.args:
        lines.append(f"  args:    {' '.join(info.args)}")
    for key in sorted(info.env):
        lines.append(f"  env:     {key}={info.env[key] if reveal else _MASK}")
    return "\n".join(lines)


def _masked(info: ServerInfo) -> Dict[str, Any]:
    data = info.model_dump()
    data["env"] = {k: _MASK for k in info.env}
    return data


# ── Server entries ───────────────────────────────────────────────────────


async def _list(args: argparse.Namespace) -> None:
    _ctx, store = await _open_store(args)
    servers = await store.list_servers()
    if args.json:
        _print_json([_masked(s) for s in servers])
        return
    if not servers:
        print(f"No MCP servers configured in {await store.current_path()}.")
        return
    print(f"{'NAME':<24s}  {'COMMAND':<12s}  ARGS")
    print("─" * 72)
    for s in servers:
        print(f"{s.name:<24s}  {s.command:<12s}  {' '.join(s.args)}")
    print(f"\n{len(servers)} server(s).")


async def _show(args: argparse.Namespace) -> None:
    _ctx, store = await _open_store(args)
    info = await store.get_server_details(args.name)
    if args.json:
        _print_json(info.model_dump() if args.reveal else _masked(info))
    else:
        print(_format_server(info, reveal=args.reveal))


async def _add(args: argparse.Namespace) -> None:
    _ctx, store = await _open_store(args)
    entry = ServerEntry.build(args.server_command, args.args, _parse_env(args.env))
    if args.command == "add":
        outcome = await store.add_server(args.name, entry)
    else:
        outcome = await store.update_server(args.name, entry)
    _report(outcome)


async def _delete(args: argparse.Namespace) -> None:
    _ctx, store = await _open_store(args)
    _report(await store.delete_server(args.name))


# ── Backups ──────────────────────────────────────────────────────────────


async def _backup(args: argparse.Namespace) -> None:
    _ctx, store = await _open_store(args)
    _report(await store.create_manual_backup())


async def _backup_info(args: argparse.Namespace) -> None:
    _ctx, store = await _open_store(args)
    info = await store.backup_info()
    if info is None:
        print("No backup file found.")
        return
    if args.json:
        _print_json(info.model_dump())
        return
    print(f"Backup:  {info.path}")
    print(f"Created: {info.created}")
    print(f"Size:    {info.size} bytes")
    print(f"Valid:   {'yes' if info.is_valid else 'no'}")


async def _restore(args: argparse.Namespace) -> None:
    _ctx, store = await _open_store(args)
    _report(await store.restore_from_backup())


# ── Settings ─────────────────────────────────────────────────────────────


async def _settings(args: argparse.Namespace) -> None:
    ctx = AppContext.create(settings_path=args.settings)
    settings_store = SettingsStore(ctx)
    settings = await settings_store.load()

    if args.settings_action == "set":
        changes: Dict[str, Any] = {}
        if args.config_path is not None:
            changes["config_path"] = args.config_path
        if args.port is not None:
            outcome = validate_port(args.port)
            if not outcome.success and not args.force:
                _report(outcome)
            changes["server_port"] = args.port
        if args.sse_path is not None:
            changes["sse_path"] = args.sse_path
        if args.enabled is not None:
            changes["server_enabled"] = args.enabled
        if args.dark_mode is not None:
            changes["dark_mode"] = args.dark_mode
        if not changes:
            print("Nothing to change.", file=sys.stderr)
            sys.exit(1)
        settings = await settings_store.update(**changes)
        print(f"Settings saved to {settings_store.path}")

    _print_json(settings.to_json_dict())


def _cmd_validate_port(args: argparse.Namespace) -> None:
    _report(validate_port(args.port))


def _cmd_default_path(_args: argparse.Namespace) -> None:
    print(default_config_path())


def _cmd_presets(args: argparse.Namespace) -> None:
    presets: List[PresetServer]
    if args.category:
        presets = presets_by_category(args.category)
    elif args.type:
        presets = presets_by_type(args.type)
    else:
        presets = all_presets()

    if args.json:
        _print_json([p.model_dump(by_alias=True, exclude_none=True) for p in presets])
        return
    for p in presets:
        key_note = " (requires API key)" if p.requires_api_key else ""
        print(f"{p.name:<22s} [{p.category}] {p.description}{key_note}")
        print(f"{'':<22s} {p.command} {' '.join(p.args)}")


# ── ``mcp-manager run`` ──────────────────────────────────────────────────


def _print_event(event: Dict[str, Any]) -> None:
    print(f"[{event['timestamp'][11:19]}] {event['name']} {json.dumps(event['payload'])}")


async def _run_host(args: argparse.Namespace) -> None:
    log_fpath, cfg_log_lvl = setup_logging(args.log_level, quiet=args.quiet)
    module_logger.info(
        "---- %s v%s starting (file log level: %s) ----",
        SERVER_NAME,
        SERVER_VERSION,
        cfg_log_lvl,
    )

    host = ManagerHost(AppContext.create(settings_path=args.settings))
    host.ctx.events.add_listener(_print_event)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop_event.set))

    settings = await host.startup(args.config)
    status = await host.lifecycle.status()
    if status.running:
        print(f"{SERVER_NAME} tool server: {status.url}")
    elif not settings.server_enabled:
        print("MCP server is disabled in settings (enable with: mcp-manager settings set --enable).")
    print(f"Log file: {log_fpath}\nPress Ctrl+C to stop.")

    try:
        await stop_event.wait()
    finally:
        print("\nShutting down…")
        await host.shutdown()


def _cmd_run(args: argparse.Namespace) -> None:
    """Entry-point for ``mcp-manager run``."""
    try:
        asyncio.run(_run_host(args))
    except KeyboardInterrupt:
        module_logger.info("%s interrupted by KeyboardInterrupt.", SERVER_NAME)


# ── CLI parser construction ──────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with one subcommand per operation."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Path to the Claude Desktop config file (default: from settings or platform default)",
    )
    common.add_argument(
        "--settings",
        type=str,
        default=None,
        metavar="PATH",
        help="Path to the application settings file",
    )
    common.add_argument(
        "--log-level",
        type=str,
        default=DEFAULT_LOG_LEVEL.lower(),
        choices=["debug", "info", "warning", "error", "critical"],
        help="Set file logging level (default: info)",
    )
    common.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=False,
        help="Do not echo warnings to the console",
    )

    parser = argparse.ArgumentParser(
        prog="mcp-manager",
        description=f"{SERVER_NAME} v{SERVER_VERSION}",
    )
    subparsers = parser.add_subparsers(dest="command")

    # ── run ─────────────────────────────────────────────────────
    sp_run = subparsers.add_parser(
        "run", parents=[common], help="Run the host (auto-starts the MCP tool server if enabled)"
    )
    sp_run.set_defaults(func=_cmd_run)

    # ── server entries ──────────────────────────────────────────
    sp_list = subparsers.add_parser("list", parents=[common], help="List configured MCP servers")
    sp_list.add_argument("--json", action="store_true", help="Print JSON (env values masked)")
    sp_list.set_defaults(func=lambda a: _run(a, _list))

    sp_show = subparsers.add_parser("show", parents=[common], help="Show one MCP server")
    sp_show.add_argument("name", help="Server name")
    sp_show.add_argument("--reveal", action="store_true", help="Show environment values")
    sp_show.add_argument("--json", action="store_true", help="Print JSON")
    sp_show.set_defaults(func=lambda a: _run(a, _show))

    for action, help_text in (
        ("add", "Add a new MCP server"),
        ("update", "Update (or create) an MCP server"),
    ):
        sp = subparsers.add_parser(action, parents=[common], help=help_text)
        sp.add_argument("name", help="Server name")
        sp.add_argument("server_command", metavar="COMMAND", help="Executable to run")
        sp.add_argument("args", nargs="*", help="Command arguments (use -- before dashed args)")
        sp.add_argument(
            "-e",
            "--env",
            action="append",
            metavar="KEY=VALUE",
            help="Environment variable (repeatable)",
        )
        sp.set_defaults(func=lambda a: _run(a, _add))

    sp_delete = subparsers.add_parser("delete", parents=[common], help="Delete an MCP server")
    sp_delete.add_argument("name", help="Server name")
    sp_delete.set_defaults(func=lambda a: _run(a, _delete))

    # ── backups ─────────────────────────────────────────────────
    sp_backup = subparsers.add_parser(
        "backup", parents=[common], help="Create a timestamped manual backup"
    )
    sp_backup.set_defaults(func=lambda a: _run(a, _backup))

    sp_binfo = subparsers.add_parser(
        "backup-info", parents=[common], help="Show the automatic backup's metadata"
    )
    sp_binfo.add_argument("--json", action="store_true", help="Print JSON")
    sp_binfo.set_defaults(func=lambda a: _run(a, _backup_info))

    sp_restore = subparsers.add_parser(
        "restore", parents=[common], help="Restore the config from its automatic backup"
    )
    sp_restore.set_defaults(func=lambda a: _run(a, _restore))

    # ── settings ────────────────────────────────────────────────
    sp_settings = subparsers.add_parser(
        "settings", parents=[common], help="Show or change application settings"
    )
    settings_sub = sp_settings.add_subparsers(dest="settings_action")
    settings_sub.add_parser("show", help="Print the current settings")
    sp_set = settings_sub.add_parser("set", help="Change settings")
    sp_set.add_argument("--config-path", type=str, default=None, help="Claude config path ('' for default)")
    sp_set.add_argument("--port", type=int, default=None, help="MCP server port")
    sp_set.add_argument("--sse-path", type=str, default=None, help="MCP SSE endpoint path")
    sp_set.add_argument("--force", action="store_true", help="Save the port even if it is busy")
    enable = sp_set.add_mutually_exclusive_group()
    enable.add_argument("--enable", dest="enabled", action="store_const", const=True, default=None)
    enable.add_argument("--disable", dest="enabled", action="store_const", const=False)
    theme = sp_set.add_mutually_exclusive_group()
    theme.add_argument("--dark-mode", dest="dark_mode", action="store_const", const=True, default=None)
    theme.add_argument("--light-mode", dest="dark_mode", action="store_const", const=False)
    sp_settings.set_defaults(func=lambda a: _run(a, _settings), settings_action="show")

    # ── misc ────────────────────────────────────────────────────
    sp_port = subparsers.add_parser("validate-port", parents=[common], help="Check whether a port can be used")
    sp_port.add_argument("port", type=int, help="Port number")
    sp_port.set_defaults(func=_cmd_validate_port)

    sp_presets = subparsers.add_parser("presets", parents=[common], help="List preset servers")
    filters = sp_presets.add_mutually_exclusive_group()
    filters.add_argument("--category", type=str, default=None, help="Only this category")
    filters.add_argument("--type", type=str, default=None, help="Only this server type (npx, uvx, ...)")
    sp_presets.add_argument("--json", action="store_true", help="Print JSON")
    sp_presets.set_defaults(func=_cmd_presets)

    sp_default = subparsers.add_parser(
        "default-path", parents=[common], help="Print the platform default config file path"
    )
    sp_default.set_defaults(func=_cmd_default_path)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Program entry point: parse arguments and dispatch to subcommand."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    try:
        args.func(args)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
