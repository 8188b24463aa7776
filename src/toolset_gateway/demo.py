# Demo catalog
# Small catalog used by the CLI entry point: an inline toolset and a lazily loaded one

import asyncio
from typing import Any

from .models.toolset import ToolDefinition, ToolsetDefinition


def ping(args: dict[str, Any]) -> dict[str, Any]:
    return {"ok": True, "message": "pong"}


def echo(args: dict[str, Any]) -> str:
    return str(args.get("text", ""))


async def load_ext_tools(context: Any) -> list[ToolDefinition]:
    # Stands in for an import or a remote schema fetch
    await asyncio.sleep(0)
    return [
        ToolDefinition(
            name="echo",
            description="Echo the given text back",
            input_schema={
                "type": "object",
                "properties": {"text": {"type": "string"}},
                "required": ["text"],
            },
            handler=echo,
        )
    ]


DEMO_CATALOG: dict[str, ToolsetDefinition] = {
    "core": ToolsetDefinition(
        name="Core",
        description="Connectivity checks",
        tools=[
            ToolDefinition(
                name="ping",
                description="Check that the server is reachable",
                annotations={"readOnlyHint": True},
                handler=ping,
            )
        ],
        decision_criteria="Enable first to verify the connection",
    ),
    "ext": ToolsetDefinition(
        name="Extensions",
        description="Text utilities loaded on demand",
        modules=["ext"],
    ),
}

DEMO_MODULE_LOADERS = {"ext": load_ext_tools}
