"""Tests for the configuration models and structural rules."""

from __future__ import annotations

import pytest

from mcp_manager.config.schema import Configuration, SanitizedServer, ServerEntry, ServerInfo, validate_structure
from mcp_manager.errors import ConfigValidationError


class TestServerEntry:
    def test_build_drops_empty_env(self) -> None:
        entry = ServerEntry.build("npx", ["-y", "pkg"], {})
        assert entry.env is None
        assert entry.args == ["-y", "pkg"]

    def test_env_keys_sorted(self) -> None:
        entry = ServerEntry.build("npx", env={"B": "2", "A": "1"})
        assert entry.env_keys == ["A", "B"]

    def test_extra_keys_survive(self) -> None:
        entry = ServerEntry.model_validate({"command": "npx", "disabled": True})
        assert entry.model_dump(exclude_none=True) == {"command": "npx", "args": [], "disabled": True}


class TestConfiguration:
    def test_round_trip_keeps_unknown_keys(self) -> None:
        raw = {
            "globalShortcut": "Ctrl+Space",
            "mcpServers": {"a": {"command": "uvx", "args": ["a"], "autoApprove": ["x"]}},
        }
        assert Configuration.model_validate(raw).to_json_dict() == raw

    def test_missing_servers_defaults_empty(self) -> None:
        config = Configuration.model_validate({})
        assert config.servers == {}
        assert config.to_json_dict() == {"mcpServers": {}}

    def test_sanitized_view_hides_values(self) -> None:
        info = ServerInfo.from_entry("a", ServerEntry.build("uvx", env={"TOKEN": "secret-value"}))
        view = SanitizedServer.from_info(info)
        assert view.env_keys == ["TOKEN"]
        assert "secret-value" not in view.model_dump_json()


class TestValidateStructure:
    @pytest.mark.parametrize(
        "servers, message",
        [
            ({" ": {"command": "npx"}}, "Server name cannot be empty"),
            ({"a": {"command": "  "}}, "Server 'a' has an empty command"),
            ({"a": {"command": "npx -y pkg"}}, "contains spaces but is not quoted"),
        ],
    )
    def test_rejects(self, servers, message) -> None:
        config = Configuration.model_validate({"mcpServers": servers})
        with pytest.raises(ConfigValidationError, match=message):
            validate_structure(config)

    def test_quoted_command_with_spaces_allowed(self) -> None:
        config = Configuration.model_validate(
            {"mcpServers": {"a": {"command": '"C:\\Program Files\\node.exe"'}}}
        )
        validate_structure(config)
