"""
Test configuration and shared fixtures for the toolset gateway tests.

The fixtures model a small catalog: an inline toolset (``core``), a toolset
whose tools come from a lazy module loader (``ext``) and a toolset mixing
both (``mixed``).
"""

import pytest

from toolset_gateway.models.toolset import ToolDefinition, ToolsetDefinition
from toolset_gateway.services.mcp_surface import McpToolSurface
from toolset_gateway.services.module_resolver import ModuleResolver
from toolset_gateway.services.toolset_manager import DynamicToolManager

from .helpers import CountingLoader, FakeClock, echo_handler, make_tool


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ext_loader():
    return CountingLoader(
        [
            ToolDefinition(
                name="echo",
                description="Echo text back",
                input_schema={"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]},
                handler=echo_handler,
            ),
            make_tool("upper", handler=lambda args: args.get("text", "").upper()),
        ],
        delay=0.01,
    )


@pytest.fixture
def catalog():
    return {
        "core": ToolsetDefinition(
            name="Core",
            description="Connectivity checks",
            tools=[make_tool("ping", handler=lambda args: {"ok": True, "message": "pong"})],
            decision_criteria="Enable first",
        ),
        "ext": ToolsetDefinition(name="Extensions", description="Lazily loaded tools", modules=["ext"]),
        "mixed": ToolsetDefinition(
            name="Mixed",
            description="Inline and module tools",
            tools=[make_tool("status")],
            modules=["ext"],
        ),
    }


@pytest.fixture
def module_loaders(ext_loader):
    return {"ext": ext_loader}


@pytest.fixture
def resolver(catalog, module_loaders):
    return ModuleResolver(catalog, module_loaders)


@pytest.fixture
def surface():
    return McpToolSurface("test-surface")


@pytest.fixture
def manager(surface, resolver):
    return DynamicToolManager(surface=surface, resolver=resolver, context={"tenant": "t1"})
