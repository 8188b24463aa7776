"""Shared test helpers: a fake clock, tool factories and a counting module loader."""

import asyncio
from typing import Any

from toolset_gateway.models.toolset import ToolDefinition


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_tool(name: str, handler=None, description: str | None = None) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description=description or f"{name} tool",
        handler=handler or (lambda args: {"ok": True}),
    )


def echo_handler(args: dict[str, Any]) -> str:
    return args["text"]


class CountingLoader:
    """Async module loader that records calls and can be slowed down."""

    def __init__(self, tools: list[ToolDefinition], delay: float = 0.0) -> None:
        self.tools = tools
        self.delay = delay
        self.calls: list[Any] = []

    async def __call__(self, context: Any) -> list[ToolDefinition]:
        self.calls.append(context)
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.tools)
