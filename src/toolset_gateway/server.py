"""Server factories.

``create_toolset_server`` serves every client from the catalog, either with a
fresh surface per client (DYNAMIC) or one shared surface (STATIC).
``create_permission_based_server`` gives each client a STATIC surface holding
only the toolsets its permissions grant.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from .errors import ConfigurationError
from .models.permissions import ClientCacheConfig, PermissionConfig
from .models.toolset import (
    ExposurePolicy,
    Mode,
    ModuleLoader,
    StartupConfig,
    ToolsetCatalog,
    ToolsetStatus,
)
from .services.client_bundles import (
    ClientBundle,
    ClientBundleManager,
    ClientRequestContext,
    create_permission_aware_bundle,
)
from .services.mcp_surface import McpToolSurface
from .services.module_resolver import ModuleResolver
from .services.orchestrator import ServerOrchestrator
from .services.permission_resolver import PermissionResolver
from .services.toolset_manager import DynamicToolManager

logger = logging.getLogger(__name__)

SurfaceFactory = Callable[[], McpToolSurface]


class ToolsetServer:
    """A base bundle (for status reporting) plus the per-client bundle cache."""

    def __init__(
        self,
        mode: Mode,
        base: ClientBundle,
        bundles: ClientBundleManager,
        permission_resolver: PermissionResolver | None = None,
    ) -> None:
        self.mode = mode
        self.base = base
        self.bundles = bundles
        self.permission_resolver = permission_resolver
        self._started = False

    @property
    def default_manager(self) -> DynamicToolManager:
        return self.base.orchestrator.get_manager()

    @property
    def permission_based(self) -> bool:
        return self.permission_resolver is not None

    def get_status(self) -> ToolsetStatus:
        return self.default_manager.get_status()

    async def get_bundle(
        self, client_id: str | None = None, headers: Mapping[str, str] | None = None
    ) -> ClientBundle:
        return await self.bundles.get_bundle(client_id, headers)

    async def start(self) -> None:
        if self._started:
            return
        result = await self.base.orchestrator.start()
        if result is not None:
            self.base.allowed_toolsets = [r.name for r in result.results if r.success]
            self.base.failed_toolsets = [r.name for r in result.results if not r.success]
        self.bundles.start()
        self._started = True
        logger.info(f"Toolset server started in {self.mode.value} mode")

    async def close(self) -> None:
        try:
            self.bundles.close()
        finally:
            if self.permission_resolver is not None:
                self.permission_resolver.clear_cache()
            self._started = False
        logger.info("Toolset server closed")


def _check_surface_factory(create_surface: SurfaceFactory | None) -> SurfaceFactory:
    if create_surface is None:
        return McpToolSurface
    if not callable(create_surface):
        raise ConfigurationError("create_surface must be a factory returning a McpToolSurface")
    return create_surface


def create_toolset_server(
    catalog: ToolsetCatalog,
    module_loaders: Mapping[str, ModuleLoader] | None = None,
    exposure_policy: ExposurePolicy | None = None,
    context: Any = None,
    startup: StartupConfig | None = None,
    register_meta_tools: bool = True,
    create_surface: SurfaceFactory | None = None,
    cache_config: ClientCacheConfig | None = None,
) -> ToolsetServer:
    startup = startup or StartupConfig()
    create_surface = _check_surface_factory(create_surface)
    resolver = ModuleResolver(catalog, module_loaders)

    def build_orchestrator(surface: McpToolSurface) -> ServerOrchestrator:
        return ServerOrchestrator(
            surface=surface,
            catalog=resolver.catalog,
            exposure_policy=exposure_policy,
            context=context,
            notify_tools_list_changed=surface.notify_tools_list_changed,
            startup=startup,
            register_meta_tools=register_meta_tools,
            resolver=resolver,
        )

    base_surface = create_surface()
    base = ClientBundle(surface=base_surface, orchestrator=build_orchestrator(base_surface))

    async def create_bundle(context: ClientRequestContext) -> ClientBundle:
        if startup.mode == Mode.STATIC:
            # One shared surface; per-client orchestrators would register duplicates
            return base
        surface = create_surface()
        orchestrator = build_orchestrator(surface)
        result = await orchestrator.start()
        bundle = ClientBundle(surface=surface, orchestrator=orchestrator)
        if result is not None:
            bundle.allowed_toolsets = [r.name for r in result.results if r.success]
            bundle.failed_toolsets = [r.name for r in result.results if not r.success]
        return bundle

    return ToolsetServer(startup.mode, base, ClientBundleManager(create_bundle, cache_config))


def create_permission_based_server(
    catalog: ToolsetCatalog,
    permissions: PermissionConfig | None,
    module_loaders: Mapping[str, ModuleLoader] | None = None,
    exposure_policy: ExposurePolicy | None = None,
    context: Any = None,
    create_surface: SurfaceFactory | None = None,
    cache_config: ClientCacheConfig | None = None,
    startup: StartupConfig | None = None,
) -> ToolsetServer:
    if permissions is None:
        raise ConfigurationError(
            "Permission configuration is required for create_permission_based_server. "
            "Please provide a 'permissions' argument."
        )
    if startup is not None:
        raise ConfigurationError(
            "Permission-based servers determine toolsets from client permissions. "
            "The 'startup' option is not allowed."
        )
    create_surface = _check_surface_factory(create_surface)
    permission_resolver = PermissionResolver(permissions)
    resolver = ModuleResolver(catalog, module_loaders)
    static_startup = StartupConfig(mode=Mode.STATIC)

    def build_bundle(allowed_toolsets: list[str]) -> ClientBundle:
        # Toolsets are enabled by the permission-aware wrapper, not at startup
        surface = create_surface()
        orchestrator = ServerOrchestrator(
            surface=surface,
            catalog=resolver.catalog,
            exposure_policy=exposure_policy,
            context=context,
            startup=static_startup,
            register_meta_tools=False,
            resolver=resolver,
        )
        return ClientBundle(surface=surface, orchestrator=orchestrator)

    base = build_bundle([])
    bundles = ClientBundleManager(
        create_permission_aware_bundle(build_bundle, permission_resolver),
        cache_config,
        on_release=permission_resolver.invalidate_cache,
    )
    return ToolsetServer(Mode.STATIC, base, bundles, permission_resolver)
