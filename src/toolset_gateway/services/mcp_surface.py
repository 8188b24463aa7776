"""Tool registration surface backed by the MCP SDK low-level server.

The surface is append-only: tools can be registered but never removed, which is
what most MCP clients expect from a server (there is no "tool removed"
request in the protocol, only a list-changed notification).
"""

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import mcp.types as types
from mcp.server.lowlevel import Server

from ..errors import ToolingError, ToolNameConflictError
from ..models.toolset import ToolHandler

logger = logging.getLogger(__name__)

_CONTENT_TYPES = (types.TextContent, types.ImageContent, types.EmbeddedResource)


class ToolRegistrationSurface(Protocol):
    """The single operation the toolset manager needs from a tool server."""

    def register(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        annotations: dict[str, Any] | None,
        handler: ToolHandler,
    ) -> None: ...


@dataclass
class RegisteredTool:
    """A tool placed on the surface."""

    name: str
    description: str
    input_schema: dict[str, Any]
    annotations: dict[str, Any] | None
    handler: ToolHandler

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
            annotations=types.ToolAnnotations(**self.annotations) if self.annotations else None,
        )


class McpToolSurface:
    """Registers tools on an MCP low-level ``Server`` and dispatches calls to them."""

    def __init__(self, name: str = "toolset-gateway", log: logging.Logger | None = None) -> None:
        self.server = Server(name)
        self._tools: dict[str, RegisteredTool] = {}
        self._logger = log or logger
        self.server.list_tools()(self.list_tools)
        self.server.call_tool()(self.call_tool)

    def register(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        annotations: dict[str, Any] | None,
        handler: ToolHandler,
    ) -> None:
        if name in self._tools:
            raise ToolNameConflictError(
                f"Tool name collision: '{name}' already registered", {"tool": name}
            )
        self._tools[name] = RegisteredTool(
            name=name,
            description=description,
            input_schema=input_schema or {"type": "object"},
            annotations=annotations,
            handler=handler,
        )
        self._logger.debug(f"Registered tool '{name}' on surface '{self.server.name}'")

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def tool_names(self) -> list[str]:
        return list(self._tools)

    async def list_tools(self) -> list[types.Tool]:
        return [tool.to_mcp_tool() for tool in self._tools.values()]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> list[Any]:
        """Invoke a registered tool and normalise its result into MCP content."""
        tool = self._tools.get(name)
        if tool is None:
            raise ToolingError(f"Unknown tool '{name}'", "E_VALIDATION", {"tool": name})

        result = tool.handler(arguments or {})
        if inspect.isawaitable(result):
            result = await result
        return _to_content(result)

    async def notify_tools_list_changed(self) -> None:
        """Send ``notifications/tools/list_changed`` when called inside an MCP request."""
        try:
            ctx = self.server.request_context
        except LookupError:
            # Not serving a request; connected clients will see the change on next list
            return
        await ctx.session.send_tool_list_changed()


def _to_content(result: Any) -> list[Any]:
    if isinstance(result, _CONTENT_TYPES):
        return [result]
    if isinstance(result, list) and result and all(isinstance(item, _CONTENT_TYPES) for item in result):
        return result
    if isinstance(result, str):
        return [types.TextContent(type="text", text=result)]
    return [types.TextContent(type="text", text=json.dumps(result, default=str))]
