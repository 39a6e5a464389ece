"""Tests for the preset catalog and its lookups."""

from __future__ import annotations

import pytest

from mcp_manager.presets import (
    PRESET_CATALOG,
    PresetServer,
    SanitizedPreset,
    ServerKind,
    ServerType,
    all_presets,
    categories,
    preset_by_name,
    presets_by_category,
    presets_by_type,
    server_types,
)


class TestServerType:
    @pytest.mark.parametrize("command,kind", [("docker", ServerKind.DOCKER), ("NPX", ServerKind.NPX), ("uv", ServerKind.UV)])
    def test_known_commands(self, command: str, kind: ServerKind) -> None:
        assert ServerType.from_command(command).kind is kind

    def test_other_keeps_command(self) -> None:
        t = ServerType.from_command("python3")
        assert t.is_other
        assert str(t) == "python3"

    def test_literal_other_is_not_a_kind(self) -> None:
        assert ServerType.from_command("other") == ServerType.other("other")

    def test_equality(self) -> None:
        assert ServerType.from_command("uvx") == ServerType(kind=ServerKind.UVX)
        assert ServerType.other("a") != ServerType.other("b")


class TestCatalog:
    def test_size_and_unique_names(self) -> None:
        names = [p.name for p in all_presets()]
        assert len(names) == 10
        assert len(set(names)) == len(names)

    def test_every_preset_matches_its_type(self) -> None:
        assert all(p.validate_command_matches_type() for p in PRESET_CATALOG)

    def test_mismatch_detected(self) -> None:
        bad = PresetServer(
            name="x", description="", category="c", server_type=ServerType(kind=ServerKind.NPX), command="uvx"
        )
        assert not bad.validate_command_matches_type()
        other = bad.model_copy(update={"server_type": ServerType.other("whatever")})
        assert other.validate_command_matches_type()

    def test_categories_sorted_unique(self) -> None:
        assert categories() == [
            "AI Tools",
            "Development",
            "Search",
            "System",
            "Utilities",
            "Weather",
            "Web Tools",
        ]

    def test_by_category(self) -> None:
        assert {p.name for p in presets_by_category("Utilities")} == {"dice", "time"}
        assert presets_by_category("Nope") == []

    def test_by_name(self) -> None:
        preset = preset_by_name("openweather")
        assert preset is not None
        assert preset.args == ["run", "-i", "--rm", "-e", "OWM_API_KEY", "mcp/openweather"]
        assert preset_by_name("missing") is None

    def test_by_type(self) -> None:
        assert {p.name for p in presets_by_type("docker")} == {
            "sequential-thinking",
            "openweather",
            "desktop-commander",
        }
        assert presets_by_type("ruby") == []

    def test_server_types(self) -> None:
        assert server_types() == ["docker", "npx", "uvx"]

    def test_serialises_with_gui_keys(self) -> None:
        data = preset_by_name("brave-search").model_dump(by_alias=True, exclude_none=True)
        assert data["serverType"] == "npx"
        assert data["requiresApiKey"] is True
        assert "env" not in data


class TestToEntry:
    def test_api_keys_merged(self) -> None:
        preset = preset_by_name("openweather").model_copy(update={"env": {"UNITS": "metric"}})
        entry = preset.to_entry({"OWM_API_KEY": "k-123"})
        assert entry.env == {"UNITS": "metric", "OWM_API_KEY": "k-123"}
        assert entry.command == "docker"

    def test_no_env_stays_absent(self) -> None:
        assert preset_by_name("dice").to_entry().env is None

    def test_sanitized_hides_values(self) -> None:
        preset = preset_by_name("dice").model_copy(update={"env": {"SEED": "42424242"}})
        dumped = SanitizedPreset.from_preset(preset).model_dump_json(by_alias=True)
        assert "SEED" in dumped
        assert "42424242" not in dumped
