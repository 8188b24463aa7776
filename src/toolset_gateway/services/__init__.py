# Services package
# Toolset lifecycle, module resolution, permissions and per-client caching

from .client_bundles import ClientBundle, ClientBundleManager, ClientRequestContext, create_permission_aware_bundle
from .client_cache import ClientResourceCache
from .mcp_surface import McpToolSurface, ToolRegistrationSurface
from .meta_tools import META_TOOL_NAMES, register_meta_tools
from .mode_resolver import ModeResolver
from .module_resolver import ModuleResolver
from .orchestrator import ServerOrchestrator
from .permission_resolver import PermissionResolver
from .tool_registry import ToolRegistry
from .toolset_manager import DynamicToolManager

__all__ = [
    "META_TOOL_NAMES",
    "ClientBundle",
    "ClientBundleManager",
    "ClientRequestContext",
    "ClientResourceCache",
    "DynamicToolManager",
    "McpToolSurface",
    "ModeResolver",
    "ModuleResolver",
    "PermissionResolver",
    "ServerOrchestrator",
    "ToolRegistrationSurface",
    "ToolRegistry",
    "create_permission_aware_bundle",
    "register_meta_tools",
]
