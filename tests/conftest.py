"""Shared fixtures: an isolated context with its own config and settings files."""

from __future__ import annotations

import json
import socket
from pathlib import Path
from typing import Any, Dict

import pytest

from mcp_manager.context import AppContext

SECRET = "sk-live-9f8e7d6c5b4a"

SAMPLE_CONFIG: Dict[str, Any] = {
    "globalShortcut": "Ctrl+Space",
    "mcpServers": {
        "zeta": {"command": "npx", "args": ["-y", "@scope/zeta"]},
        "alpha": {
            "command": "uvx",
            "args": ["alpha-server"],
            "env": {"API_KEY": SECRET},
            "disabled": False,
        },
    },
}


def write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def free_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
    finally:
        s.close()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "claude_desktop_config.json"
    write_json(path, SAMPLE_CONFIG)
    return path


@pytest.fixture
def ctx(tmp_path: Path, config_file: Path) -> AppContext:
    return AppContext.create(
        settings_path=str(tmp_path / "settings" / "settings.json"),
        config_path=str(config_file),
    )
