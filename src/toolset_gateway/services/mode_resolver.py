"""Startup mode detection from CLI-style arguments and environment variables."""

import logging
from collections.abc import Mapping
from typing import Any

from ..models.toolset import Mode, ToolsetCatalog

logger = logging.getLogger(__name__)

DEFAULT_DYNAMIC_KEYS = ("dynamic-tool-discovery", "dynamicToolDiscovery", "DYNAMIC_TOOL_DISCOVERY")
DEFAULT_TOOLSET_KEYS = ("tool-sets", "toolSets", "FMP_TOOL_SETS")


class ModeResolver:
    """Decides between DYNAMIC and STATIC mode.

    Arguments take precedence over the environment. Within one source a
    dynamic flag wins over an explicit toolset list.
    """

    def __init__(
        self,
        dynamic_keys: tuple[str, ...] = DEFAULT_DYNAMIC_KEYS,
        toolset_keys: tuple[str, ...] = DEFAULT_TOOLSET_KEYS,
    ) -> None:
        self.dynamic_keys = dynamic_keys
        self.toolset_keys = toolset_keys

    def resolve_mode(
        self,
        env: Mapping[str, Any] | None = None,
        args: Mapping[str, Any] | None = None,
    ) -> Mode | None:
        for source in (args, env):
            if self._is_dynamic_enabled(source):
                return Mode.DYNAMIC
            if self.get_toolsets_string(source):
                return Mode.STATIC
        return None

    def get_toolsets_string(self, source: Mapping[str, Any] | None) -> str | None:
        if not source:
            return None
        for key in self.toolset_keys:
            value = source.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None

    def parse_comma_separated_toolsets(self, value: str, catalog: ToolsetCatalog) -> list[str]:
        if not value or not isinstance(value, str):
            return []
        result: list[str] = []
        for name in (part.strip() for part in value.split(",")):
            if not name:
                continue
            if name in catalog:
                result.append(name)
            else:
                logger.warning(f"Invalid toolset '{name}' ignored. Available: {', '.join(catalog)}")
        return result

    def get_modules_for_toolsets(self, toolsets: list[str], catalog: ToolsetCatalog) -> list[str]:
        modules: dict[str, None] = {}
        for name in toolsets:
            definition = catalog.get(name)
            if definition is None:
                continue
            modules.update(dict.fromkeys(definition.modules))
        return list(modules)

    def _is_dynamic_enabled(self, source: Mapping[str, Any] | None) -> bool:
        if not source:
            return False
        for key in self.dynamic_keys:
            value = source.get(key)
            if value is True:
                return True
            if isinstance(value, str) and value.strip().lower() == "true":
                return True
        return False
