"""Resolves the tools of catalog toolsets, including lazily loaded modules."""

import inspect
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from ..errors import ConfigurationError
from ..models.toolset import (
    RESERVED_TOOLSET_KEYS,
    ModuleLoader,
    ToolDefinition,
    ToolsetCatalog,
    ToolsetDefinition,
    ToolsetNameValidation,
)

logger = logging.getLogger(__name__)


class ModuleResolver:
    """Validates toolset names and materialises their tools.

    The catalog is frozen on construction and shared read-only by every
    manager built on this resolver. Module loaders are looked up by key and
    may be sync or async; a loader that fails only loses its own tools.
    """

    def __init__(
        self,
        catalog: ToolsetCatalog,
        module_loaders: Mapping[str, ModuleLoader] | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        reserved = [key for key in catalog if key in RESERVED_TOOLSET_KEYS]
        if reserved:
            raise ConfigurationError(
                f"Toolset key(s) {', '.join(reserved)} are reserved and cannot be used in the catalog",
                {"reserved": reserved},
            )
        self._catalog: Mapping[str, ToolsetDefinition] = MappingProxyType(
            {key: ToolsetDefinition.model_validate(value) for key, value in catalog.items()}
        )
        self._module_loaders: Mapping[str, ModuleLoader] = MappingProxyType(dict(module_loaders or {}))
        self._logger = log or logger

    @property
    def catalog(self) -> Mapping[str, ToolsetDefinition]:
        return self._catalog

    def get_available_toolsets(self) -> list[str]:
        return list(self._catalog)

    def get_toolset_definition(self, name: str) -> ToolsetDefinition | None:
        return self._catalog.get(name)

    def validate_toolset_name(self, name: Any) -> ToolsetNameValidation:
        available = ", ".join(self.get_available_toolsets())
        if not name or not isinstance(name, str):
            return ToolsetNameValidation(
                is_valid=False,
                error=f"Invalid toolset name provided. Must be a non-empty string. Available toolsets: {available}",
            )
        sanitized = name.strip()
        if not sanitized:
            return ToolsetNameValidation(
                is_valid=False,
                error=f"Empty toolset name provided. Available toolsets: {available}",
            )
        if sanitized in RESERVED_TOOLSET_KEYS:
            return ToolsetNameValidation(
                is_valid=False,
                error=f"Toolset '{sanitized}' is reserved. Available toolsets: {available}",
            )
        if sanitized not in self._catalog:
            return ToolsetNameValidation(
                is_valid=False,
                error=f"Toolset '{sanitized}' not found. Available toolsets: {available}",
            )
        return ToolsetNameValidation(is_valid=True, sanitized=sanitized)

    async def resolve_tools_for_toolsets(self, toolsets: list[str], context: Any = None) -> list[ToolDefinition]:
        """Collect tools for ``toolsets`` in order: inline tools, then each module in catalog order."""
        collected: list[ToolDefinition] = []
        for name in toolsets:
            definition = self._catalog.get(name)
            if definition is None:
                continue
            collected.extend(definition.tools)

            for module_key in definition.modules:
                loader = self._module_loaders.get(module_key)
                if loader is None:
                    self._logger.warning(f"No module loader registered for '{module_key}' (toolset '{name}'), skipping")
                    continue
                try:
                    loaded = loader(context)
                    if inspect.isawaitable(loaded):
                        loaded = await loaded
                except Exception as e:
                    self._logger.warning(f"Module loader '{module_key}' failed for toolset '{name}': {e}")
                    continue

                if not isinstance(loaded, list):
                    self._logger.warning(
                        f"Module loader '{module_key}' for toolset '{name}' returned "
                        f"{type(loaded).__name__}, expected a list of tools"
                    )
                    continue
                collected.extend(self._coerce_tools(loaded, name, module_key))
        return collected

    def _coerce_tools(self, loaded: list[Any], toolset: str, module_key: str) -> list[ToolDefinition]:
        tools: list[ToolDefinition] = []
        for item in loaded:
            if isinstance(item, ToolDefinition):
                tools.append(item)
                continue
            try:
                tools.append(ToolDefinition.model_validate(item))
            except ValidationError as e:
                self._logger.warning(
                    f"Module loader '{module_key}' for toolset '{toolset}' produced an invalid tool: {e}"
                )
        return tools
