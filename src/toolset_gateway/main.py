# FastAPI application entry point
# Builds the app around a ToolsetServer and manages its lifecycle

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import status
from .config import Settings, get_config
from .demo import DEMO_CATALOG, DEMO_MODULE_LOADERS
from .server import ToolsetServer, create_permission_based_server, create_toolset_server
from .services.mode_resolver import ModeResolver

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def create_app(toolset_server: ToolsetServer) -> FastAPI:
    """Create the FastAPI app; the server is started and closed with the app lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting toolset server...")
        try:
            await toolset_server.start()
        except Exception as e:
            logger.error(f"Startup failed: {e}")
            raise
        yield
        logger.info("Shutting down toolset server...")
        await toolset_server.close()

    app = FastAPI(
        title="Toolset Gateway",
        description="Runtime toolset activation and per-client scoping for MCP tool servers",
        lifespan=lifespan,
    )
    app.state.toolset_server = toolset_server
    app.include_router(status.router)
    return app


def build_demo_server(config: Settings, args: dict | None = None) -> ToolsetServer:
    """Demo server over the bundled catalog; mode flags in args/env override settings."""
    if config.permissions_from_headers:
        logger.info(f"Client toolsets come from the '{config.permission_header}' header")
        return create_permission_based_server(
            DEMO_CATALOG,
            config.permission_config(),
            module_loaders=DEMO_MODULE_LOADERS,
            cache_config=config.cache_config(),
        )

    startup = config.startup_config()
    mode_resolver = ModeResolver()
    mode = mode_resolver.resolve_mode(env=os.environ, args=args)
    if mode is not None:
        toolsets_raw = mode_resolver.get_toolsets_string(args) or mode_resolver.get_toolsets_string(os.environ)
        toolsets = (
            mode_resolver.parse_comma_separated_toolsets(toolsets_raw, DEMO_CATALOG)
            if toolsets_raw
            else startup.toolsets
        )
        startup = startup.model_copy(update={"mode": mode, "toolsets": toolsets})
    return create_toolset_server(
        DEMO_CATALOG,
        module_loaders=DEMO_MODULE_LOADERS,
        startup=startup,
        cache_config=config.cache_config(),
    )


def create_default_app() -> FastAPI:
    """App factory for ``uvicorn --factory toolset_gateway.main:create_default_app``."""
    return create_app(build_demo_server(get_config()))
