import pytest

from toolset_gateway.models.toolset import Mode
from toolset_gateway.services.mode_resolver import ModeResolver


@pytest.fixture
def mode_resolver():
    return ModeResolver()


class TestResolveMode:
    """Test suite for mode resolution from args and environment"""

    def test_nothing_configured(self, mode_resolver):
        """Test that no configuration resolves to no mode"""
        assert mode_resolver.resolve_mode({}, {}) is None

    def test_dynamic_flag_from_args(self, mode_resolver):
        """Test the dynamic flag from CLI args"""
        assert mode_resolver.resolve_mode(args={"dynamic-tool-discovery": True}) == Mode.DYNAMIC

    def test_dynamic_flag_string_from_env(self, mode_resolver):
        """Test a string dynamic flag from the environment"""
        assert mode_resolver.resolve_mode(env={"DYNAMIC_TOOL_DISCOVERY": "TRUE"}) == Mode.DYNAMIC

    def test_toolsets_mean_static(self, mode_resolver):
        """Test that a toolset list selects static mode"""
        assert mode_resolver.resolve_mode(env={"FMP_TOOL_SETS": "core,ext"}) == Mode.STATIC

    def test_dynamic_wins_within_one_source(self, mode_resolver):
        """Test that the dynamic flag wins over toolsets in one source"""
        args = {"dynamicToolDiscovery": "true", "toolSets": "core"}

        assert mode_resolver.resolve_mode(args=args) == Mode.DYNAMIC

    def test_args_take_precedence_over_env(self, mode_resolver):
        """Test that CLI args take precedence over the environment"""
        mode = mode_resolver.resolve_mode(
            env={"DYNAMIC_TOOL_DISCOVERY": "true"}, args={"tool-sets": "core"}
        )

        assert mode == Mode.STATIC

    def test_blank_toolsets_are_ignored(self, mode_resolver):
        """Test that a blank toolset list is ignored"""
        assert mode_resolver.resolve_mode(args={"tool-sets": "  "}) is None

    def test_custom_keys(self):
        """Test resolution with custom key names"""
        resolver = ModeResolver(dynamic_keys=("dyn",), toolset_keys=("sets",))

        assert resolver.resolve_mode(args={"dyn": True}) == Mode.DYNAMIC
        assert resolver.resolve_mode(args={"dynamic-tool-discovery": True}) is None


class TestToolsetParsing:
    """Test suite for comma-separated toolset parsing"""

    def test_parse_skips_unknown_and_blank(self, mode_resolver, catalog, caplog):
        """Test that unknown and blank entries are skipped"""
        parsed = mode_resolver.parse_comma_separated_toolsets(" core, ,nope,ext ", catalog)

        assert parsed == ["core", "ext"]
        assert "Invalid toolset 'nope' ignored" in caplog.text

    def test_parse_empty(self, mode_resolver, catalog):
        """Test that an empty string parses to no toolsets"""
        assert mode_resolver.parse_comma_separated_toolsets("", catalog) == []

    def test_modules_are_deduplicated(self, mode_resolver, catalog):
        """Test that shared modules are listed once"""
        assert mode_resolver.get_modules_for_toolsets(["ext", "mixed", "core", "nope"], catalog) == ["ext"]
