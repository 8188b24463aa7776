"""Tests for settings and the demo server wiring"""

import pytest
from fastapi import FastAPI

import toolset_gateway.main as main_module
from toolset_gateway.config import Settings
from toolset_gateway.main import build_demo_server, create_default_app
from toolset_gateway.models.toolset import Mode


class TestSettings:
    """Test suite for Settings"""

    def test_defaults(self):
        """Test default values without environment overrides"""
        config = Settings(_env_file=None)

        assert config.port == 8001
        assert config.mode == Mode.DYNAMIC
        assert config.permissions_from_headers is False
        assert config.cache_config().max_size == 1000

    def test_environment_prefix(self, monkeypatch):
        """Test that TOOLSET_GATEWAY_ variables are picked up"""
        monkeypatch.setenv("TOOLSET_GATEWAY_MODE", "STATIC")
        monkeypatch.setenv("TOOLSET_GATEWAY_CLIENT_CACHE_MAX_SIZE", "5")

        config = Settings(_env_file=None)

        assert config.mode == Mode.STATIC
        assert config.cache_config().max_size == 5

    @pytest.mark.parametrize(
        "raw,expected",
        [(None, None), ("  ", None), ("all", "ALL"), ("core, ext", ["core", "ext"])],
    )
    def test_startup_config(self, raw, expected):
        """Test parsing of the startup toolset list"""
        config = Settings(_env_file=None, startup_toolsets=raw)

        assert config.startup_config().toolsets == expected

    def test_permission_config(self):
        """Test that header permissions use the configured header name"""
        config = Settings(_env_file=None, permission_header="x-perms")

        permissions = config.permission_config()

        assert permissions.source == "headers"
        assert permissions.header_name == "x-perms"


class TestBuildDemoServer:
    """Test suite for the demo server factory"""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for key in ("DYNAMIC_TOOL_DISCOVERY", "FMP_TOOL_SETS"):
            monkeypatch.delenv(key, raising=False)

    def test_settings_mode(self):
        """Test that the configured mode is used without overrides"""
        server = build_demo_server(Settings(_env_file=None, mode="STATIC", startup_toolsets="core"))

        assert server.mode == Mode.STATIC

    def test_cli_flags_override_settings(self):
        """Test that CLI flags take precedence over settings"""
        server = build_demo_server(
            Settings(_env_file=None, mode="DYNAMIC"),
            {"dynamic-tool-discovery": False, "tool-sets": "core,bogus"},
        )

        assert server.mode == Mode.STATIC
        assert server.base.orchestrator.get_mode() == Mode.STATIC

    def test_permission_based(self):
        """Test that header permissions build a permission-based server"""
        server = build_demo_server(Settings(_env_file=None, permissions_from_headers=True))

        assert server.permission_based
        assert server.permission_resolver.config.header_name == "mcp-toolset-permissions"

    @pytest.mark.asyncio
    async def test_cli_toolsets_are_enabled_on_start(self):
        """Test that CLI toolsets are enabled when the server starts"""
        server = build_demo_server(Settings(_env_file=None), {"tool-sets": "core,ext"})

        await server.start()

        assert server.get_status().active_toolsets == ["core", "ext"]
        await server.close()


class TestCreateDefaultApp:
    """Test suite for the app factory"""

    def test_importing_main_builds_no_app(self):
        """Test that importing the module does not build a server"""
        assert not hasattr(main_module, "app")

    def test_factory_builds_a_fresh_app_per_call(self, monkeypatch):
        """Test that each call builds its own app around the configured server"""
        monkeypatch.delenv("DYNAMIC_TOOL_DISCOVERY", raising=False)
        monkeypatch.setattr(
            main_module, "get_config", lambda: Settings(_env_file=None, mode="STATIC", startup_toolsets="core")
        )

        first = create_default_app()
        second = create_default_app()

        assert isinstance(first, FastAPI)
        assert first is not second
        assert first.state.toolset_server is not second.state.toolset_server
        assert first.state.toolset_server.mode == Mode.STATIC
