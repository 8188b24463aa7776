"""Tests for per-client permission resolution."""

import asyncio

import pytest

from toolset_gateway.errors import ConfigurationError
from toolset_gateway.models.permissions import PermissionConfig, validate_permission_config
from toolset_gateway.services.permission_resolver import PermissionResolver


def header_resolver(**kwargs):
    return PermissionResolver(PermissionConfig(source="headers", **kwargs))


def config_resolver(**kwargs):
    return PermissionResolver(PermissionConfig(source="config", **kwargs))


def explode(client_id):
    raise RuntimeError("directory offline")


class TestHeaderPermissions:
    """Test suite for header-sourced permissions"""

    def test_parses_comma_separated_header(self):
        """Test that header values are split, trimmed and blanks dropped"""
        resolver = header_resolver()

        permissions = resolver.resolve_permissions("c1", {"mcp-toolset-permissions": " core, ,ext "})

        assert permissions == ["core", "ext"]

    def test_header_lookup_is_case_insensitive(self):
        """Test that mixed-case header keys match the configured header"""
        resolver = header_resolver(header_name="X-Toolsets")

        assert resolver.resolve_permissions("c1", {"x-TOOLSETS": "core"}) == ["core"]

    def test_mixed_case_default_header(self):
        """Test that a mixed-case default header resolves like the lowercase one"""
        mixed = header_resolver().resolve_permissions("c1", {"MCP-Toolset-Permissions": "core,ext"})
        lower = header_resolver().resolve_permissions("c1", {"mcp-toolset-permissions": "core,ext"})

        assert mixed == lower == ["core", "ext"]

    @pytest.mark.parametrize("headers", [None, {}, {"other": "core"}, {"mcp-toolset-permissions": ""}])
    def test_missing_header_gives_no_permissions(self, headers):
        """Test that a missing or empty header grants nothing"""
        assert header_resolver().resolve_permissions("c1", headers) == []

    def test_result_is_cached_per_client(self):
        """Test that results are memoised until the client is invalidated"""
        resolver = header_resolver()
        resolver.resolve_permissions("c1", {"mcp-toolset-permissions": "core"})

        # Later headers are ignored until the cache entry is invalidated
        assert resolver.resolve_permissions("c1", {"mcp-toolset-permissions": "ext"}) == ["core"]

        resolver.invalidate_cache("c1")
        assert resolver.resolve_permissions("c1", {"mcp-toolset-permissions": "ext"}) == ["ext"]
        assert resolver.cache_size == 1

    def test_returned_list_is_a_copy(self):
        """Test that callers cannot mutate the memoised list"""
        resolver = header_resolver()
        first = resolver.resolve_permissions("c1", {"mcp-toolset-permissions": "core"})
        first.append("ext")

        assert resolver.resolve_permissions("c1") == ["core"]


class TestConfigPermissions:
    """Test suite for the resolver, static map and defaults chain"""

    def test_static_map(self):
        """Test static map lookup with no defaults configured"""
        resolver = config_resolver(static_map={"c1": ["core"]})

        assert resolver.resolve_permissions("c1") == ["core"]
        assert resolver.resolve_permissions("c2") == []

    def test_present_empty_static_entry_beats_defaults(self):
        """Test that a present but empty static entry is not replaced by defaults"""
        resolver = config_resolver(static_map={"c1": []}, default_permissions=["core"])

        assert resolver.resolve_permissions("c1") == []
        assert resolver.resolve_permissions("c2") == ["core"]

    def test_resolver_takes_precedence(self):
        """Test that a resolver result wins over the static map"""
        resolver = config_resolver(
            resolver=lambda client_id: ["ext"],
            static_map={"c1": ["core"]},
        )

        assert resolver.resolve_permissions("c1") == ["ext"]

    def test_failing_resolver_falls_back_to_static_map(self, caplog):
        """Test that a raising resolver falls through to the static map"""
        resolver = config_resolver(resolver=explode, static_map={"c1": ["core"]})

        assert resolver.resolve_permissions("c1") == ["core"]
        assert "directory offline" in caplog.text

    def test_failing_resolver_and_unknown_client_fall_back_to_defaults(self, caplog):
        """Test the full chain: raising resolver, absent static entry, then defaults"""
        resolver = config_resolver(
            resolver=explode,
            static_map={"c1": ["core"]},
            default_permissions=["ext"],
        )

        assert resolver.resolve_permissions("c2") == ["ext"]
        assert "directory offline" in caplog.text

    def test_non_list_resolver_result_falls_back_to_defaults(self, caplog):
        """Test that a non-list resolver result is ignored with a warning"""
        resolver = config_resolver(resolver=lambda client_id: "core", default_permissions=["ext"])

        assert resolver.resolve_permissions("c1") == ["ext"]
        assert "non-list" in caplog.text

    def test_resolver_entries_are_sanitised(self):
        """Test that non-string and blank entries are dropped"""
        resolver = config_resolver(resolver=lambda client_id: [" core ", "", 3, "ext"])

        assert resolver.resolve_permissions("c1") == ["core", "ext"]

    def test_clear_cache(self):
        """Test that clearing the cache forces the resolver to run again"""
        calls = []

        def record(client_id):
            calls.append(client_id)
            return ["core"]

        resolver = config_resolver(resolver=record)
        resolver.resolve_permissions("c1")
        resolver.resolve_permissions("c1")
        resolver.clear_cache()
        resolver.resolve_permissions("c1")

        assert calls == ["c1", "c1"]
        assert resolver.cache_size == 1


class TestAsyncResolver:
    """Test suite for resolver callbacks that return a pending result"""

    @pytest.mark.asyncio
    async def test_async_resolver_is_awaited(self):
        """Test that an async resolver's permissions are used"""

        async def lookup(client_id):
            await asyncio.sleep(0)
            return ["core"]

        resolver = config_resolver(resolver=lookup, default_permissions=["ext"])

        assert await resolver.resolve_permissions_async("c1") == ["core"]
        assert resolver.resolve_permissions("c1") == ["core"]

    @pytest.mark.asyncio
    async def test_async_resolver_failure_falls_back(self, caplog):
        """Test that an async resolver that raises falls through to the static map"""

        async def lookup(client_id):
            raise RuntimeError("directory offline")

        resolver = config_resolver(resolver=lookup, static_map={"c1": ["core"]}, default_permissions=["ext"])

        assert await resolver.resolve_permissions_async("c1") == ["core"]
        assert await resolver.resolve_permissions_async("c2") == ["ext"]
        assert "directory offline" in caplog.text

    @pytest.mark.asyncio
    async def test_async_resolver_non_list_falls_back(self, caplog):
        """Test that an async resolver returning a non-list is ignored"""

        async def lookup(client_id):
            return "core"

        resolver = config_resolver(resolver=lookup, default_permissions=["ext"])

        assert await resolver.resolve_permissions_async("c1") == ["ext"]
        assert "non-list" in caplog.text

    def test_sync_resolution_closes_pending_result(self, caplog):
        """Test that the sync path closes an async resolver's coroutine and falls back"""
        created = []

        async def lookup(client_id):
            return ["core"]

        def tracking(client_id):
            coro = lookup(client_id)
            created.append(coro)
            return coro

        resolver = config_resolver(resolver=tracking, default_permissions=["ext"])

        assert resolver.resolve_permissions("c1") == ["ext"]
        assert created[0].cr_frame is None
        assert "resolve_permissions_async" in caplog.text

    @pytest.mark.asyncio
    async def test_headers_source_async(self):
        """Test that header resolution works the same through the async path"""
        resolver = header_resolver()

        assert await resolver.resolve_permissions_async("c1", {"mcp-toolset-permissions": "core"}) == ["core"]


class TestPermissionConfigValidation:
    """Test suite for permission config validation and the builder"""

    def test_config_source_needs_a_source_of_permissions(self):
        """Test that config source without any permission source is rejected"""
        with pytest.raises(ConfigurationError, match="at least one of"):
            PermissionResolver(PermissionConfig(source="config"))

    def test_blank_header_name_rejected(self):
        """Test that a blank header name is rejected"""
        with pytest.raises(ConfigurationError, match="headerName"):
            validate_permission_config(PermissionConfig(source="headers", header_name="  "))

    def test_none_config_rejected(self):
        """Test that a missing config is rejected"""
        with pytest.raises(ConfigurationError):
            validate_permission_config(None)

    def test_builder(self):
        """Test that the builder assembles a validated config"""
        config = (
            PermissionConfig.builder()
            .source("config")
            .static_map({"c1": ["core"]})
            .default_permissions(["ext"])
            .build()
        )

        assert config.static_map == {"c1": ["core"]}
        assert config.header_name == "mcp-toolset-permissions"

    def test_builder_without_source(self):
        """Test that build() requires a source"""
        with pytest.raises(ConfigurationError, match="source"):
            PermissionConfig.builder().header_name("x").build()

    def test_builder_with_invalid_source(self):
        """Test that an unknown source becomes a ConfigurationError"""
        with pytest.raises(ConfigurationError) as exc_info:
            PermissionConfig.builder().source("cookies").build()

        assert exc_info.value.code == "E_CONFIG"

    def test_builder_validates(self):
        """Test that build() runs config validation"""
        with pytest.raises(ConfigurationError):
            PermissionConfig.builder().source("config").build()

    def test_builder_accepts_async_resolver(self):
        """Test that an async resolver callback is a valid config"""

        async def lookup(client_id):
            return ["core"]

        config = PermissionConfig.builder().source("config").resolver(lookup).build()

        assert config.resolver is lookup
