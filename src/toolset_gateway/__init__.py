# Toolset gateway
# Runtime toolset activation, per-client permissions and bounded per-client state for MCP servers

from .errors import ConfigurationError, PermissionDeniedError, ToolingError, ToolNameConflictError
from .models import (
    ClientCacheConfig,
    ExposurePolicy,
    Mode,
    PermissionConfig,
    StartupConfig,
    ToolDefinition,
    ToolsetDefinition,
)
from .server import ToolsetServer, create_permission_based_server, create_toolset_server
from .services import (
    ClientResourceCache,
    DynamicToolManager,
    McpToolSurface,
    ModuleResolver,
    PermissionResolver,
    ServerOrchestrator,
)

__version__ = "0.1.0"

__all__ = [
    "ClientCacheConfig",
    "ClientResourceCache",
    "ConfigurationError",
    "DynamicToolManager",
    "ExposurePolicy",
    "McpToolSurface",
    "Mode",
    "ModuleResolver",
    "PermissionConfig",
    "PermissionDeniedError",
    "PermissionResolver",
    "ServerOrchestrator",
    "StartupConfig",
    "ToolDefinition",
    "ToolNameConflictError",
    "ToolingError",
    "ToolsetDefinition",
    "ToolsetServer",
    "create_permission_based_server",
    "create_toolset_server",
]


def main() -> None:
    """CLI entry point: serve the demo catalog's status API."""
    import argparse

    import uvicorn

    from .config import get_config
    from .main import build_demo_server, configure_logging, create_app

    parser = argparse.ArgumentParser(description="Toolset gateway demo server")
    parser.add_argument("--dynamic-tool-discovery", action="store_true", help="Run in DYNAMIC mode")
    parser.add_argument("--tool-sets", default=None, help="Comma separated toolsets (STATIC mode)")
    parsed = parser.parse_args()

    config = get_config()
    configure_logging(config.log_level)
    args = {"dynamic-tool-discovery": parsed.dynamic_tool_discovery, "tool-sets": parsed.tool_sets}
    app = create_app(build_demo_server(config, args))
    uvicorn.run(app, host=config.host, port=config.port)
