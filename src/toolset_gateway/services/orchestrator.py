"""Wires a toolset manager and its meta tools onto one registration surface."""

import logging
from collections.abc import Mapping
from typing import Any

from ..models.toolset import (
    BatchResult,
    ExposurePolicy,
    Mode,
    ModuleLoader,
    StartupConfig,
    ToolsetCatalog,
)
from .mcp_surface import ToolRegistrationSurface
from .meta_tools import register_meta_tools as install_meta_tools
from .module_resolver import ModuleResolver
from .tool_registry import ToolRegistry
from .toolset_manager import DynamicToolManager, ToolsListChangedHook

logger = logging.getLogger(__name__)


class ServerOrchestrator:
    """One orchestrator per registration surface (per client, or shared in STATIC mode).

    Construction registers the meta tools synchronously; startup toolsets are
    enabled by awaiting ``start()``.
    """

    def __init__(
        self,
        surface: ToolRegistrationSurface,
        catalog: ToolsetCatalog,
        module_loaders: Mapping[str, ModuleLoader] | None = None,
        exposure_policy: ExposurePolicy | None = None,
        context: Any = None,
        notify_tools_list_changed: ToolsListChangedHook | None = None,
        startup: StartupConfig | None = None,
        register_meta_tools: bool = True,
        resolver: ModuleResolver | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._startup = startup or StartupConfig()
        self._mode = self._startup.mode
        self._logger = log or logger
        self.surface = surface
        self._resolver = resolver or ModuleResolver(catalog, module_loaders, log=self._logger)
        tool_registry = ToolRegistry(
            namespace_with_toolset=exposure_policy.namespace_tools_with_set_key if exposure_policy else True
        )
        self._manager = DynamicToolManager(
            surface=surface,
            resolver=self._resolver,
            context=context,
            on_tools_list_changed=notify_tools_list_changed,
            exposure_policy=exposure_policy,
            tool_registry=tool_registry,
            log=self._logger,
        )
        self.meta_tools: list[str] = []
        if register_meta_tools:
            self.meta_tools = install_meta_tools(surface, self._manager, self._mode)

    def get_mode(self) -> Mode:
        return self._mode

    def get_manager(self) -> DynamicToolManager:
        return self._manager

    async def start(self) -> BatchResult | None:
        """Enable the startup toolsets, if any were configured."""
        initial = self._startup.toolsets
        if initial == "ALL":
            return await self._manager.enable_all_toolsets()
        if isinstance(initial, str):
            initial = [part.strip() for part in initial.split(",") if part.strip()]
        if initial:
            result = await self._manager.enable_toolsets(list(initial))
            for failed in (r for r in result.results if not r.success):
                self._logger.warning(f"Startup toolset '{failed.name}' not enabled: {failed.message}")
            return result
        return None
