"""Toolset lifecycle management.

A toolset is either INACTIVE (initial) or ACTIVE. Enabling resolves its tools
through the module resolver and registers them, namespaced as
``<toolset>.<tool>``, on the registration surface. Every namespaced name is
registered at most once for the lifetime of the manager.

Disabling is state-only. The registration surface is append-only, so tools of
a disabled toolset stay registered and stay listed in ``get_status().tools``;
only ``is_active`` and the active toolset list change. Re-enabling a disabled
toolset registers nothing new.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..errors import ToolNameConflictError
from ..models.toolset import (
    BatchResult,
    ExposurePolicy,
    ToolDefinition,
    ToolsetDefinition,
    ToolsetResult,
    ToolsetStatus,
)
from .mcp_surface import ToolRegistrationSurface
from .module_resolver import ModuleResolver
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

ToolsListChangedHook = Callable[[], Awaitable[None] | None]


class DynamicToolManager:
    """Owns the active toolset set and the registration history of one surface."""

    def __init__(
        self,
        surface: ToolRegistrationSurface,
        resolver: ModuleResolver,
        context: Any = None,
        on_tools_list_changed: ToolsListChangedHook | None = None,
        exposure_policy: ExposurePolicy | None = None,
        tool_registry: ToolRegistry | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._surface = surface
        self._resolver = resolver
        self._context = context
        self._on_tools_list_changed = on_tools_list_changed
        self._exposure_policy = exposure_policy
        self._registry = tool_registry or ToolRegistry(
            namespace_with_toolset=exposure_policy.namespace_tools_with_set_key if exposure_policy else True
        )
        self._logger = log or logger
        # Insertion-ordered so active toolsets are reported in activation order
        self._active: dict[str, None] = {}
        self._in_flight: dict[str, asyncio.Future[ToolsetResult]] = {}

    def get_available_toolsets(self) -> list[str]:
        return self._resolver.get_available_toolsets()

    def get_active_toolsets(self) -> list[str]:
        return list(self._active)

    def get_toolset_definition(self, name: str) -> ToolsetDefinition | None:
        return self._resolver.get_toolset_definition(name)

    def is_active(self, name: str) -> bool:
        return name in self._active

    async def enable_toolset(self, toolset_name: str) -> ToolsetResult:
        """Activate a toolset and register its tools.

        Never raises: invalid names, policy rejections and loader or
        registration failures are reported in the returned result. Concurrent
        calls for the same toolset share one activation.
        """
        validation = self._resolver.validate_toolset_name(toolset_name)
        if not validation.is_valid or not validation.sanitized:
            return ToolsetResult.failure(str(toolset_name), validation.error or "Unknown validation error")
        name = validation.sanitized

        if name in self._active:
            return ToolsetResult(name=name, success=True, message=f"Toolset '{name}' is already enabled.")

        pending = self._in_flight.get(name)
        if pending is None:
            rejection = self._check_exposure_policy(name)
            if rejection is not None:
                return rejection
            pending = asyncio.ensure_future(self._activate(name))
            self._in_flight[name] = pending
        else:
            self._logger.debug(f"Toolset '{name}' activation already in flight, waiting for it")

        # Shielded so one cancelled caller does not cancel the activation for the others
        return await asyncio.shield(pending)

    async def disable_toolset(self, toolset_name: str) -> ToolsetResult:
        """Mark a toolset inactive. Its tools remain registered on the surface."""
        validation = self._resolver.validate_toolset_name(toolset_name)
        if not validation.is_valid or not validation.sanitized:
            base = validation.error or "Unknown validation error"
            return ToolsetResult.failure(
                str(toolset_name), f"{base} Active toolsets: {self._active_summary()}"
            )
        name = validation.sanitized

        if name not in self._active:
            return ToolsetResult.failure(
                name,
                f"Toolset '{name}' is not currently active. Active toolsets: {self._active_summary()}",
            )

        del self._active[name]
        self._logger.info(f"Toolset '{name}' disabled (tools remain registered)")
        await self._notify_tools_list_changed()
        return ToolsetResult(
            name=name,
            success=True,
            message=f"Toolset '{name}' disabled successfully. Individual tools remain registered due to MCP limitations.",
        )

    async def enable_toolsets(self, toolset_names: list[str]) -> BatchResult:
        """Enable toolsets one after another. Earlier successes are kept when a later one fails."""
        results: list[ToolsetResult] = []
        for name in toolset_names:
            try:
                results.append(await self.enable_toolset(name))
            except Exception as e:
                self._logger.error(f"Unexpected error enabling toolset '{name}': {e}")
                results.append(ToolsetResult.failure(str(name), str(e), "E_INTERNAL"))

        success_all = all(r.success for r in results)
        message = "All toolsets enabled" if success_all else "Some toolsets failed to enable"
        return BatchResult(success=success_all, results=results, message=message)

    async def enable_all_toolsets(self) -> BatchResult:
        return await self.enable_toolsets(self.get_available_toolsets())

    def get_status(self) -> ToolsetStatus:
        available = self.get_available_toolsets()
        return ToolsetStatus(
            available_toolsets=available,
            active_toolsets=self.get_active_toolsets(),
            total_toolsets=len(available),
            active_count=len(self._active),
            tools=self._registry.names(),
            toolset_to_tools=self._registry.list_by_toolset(),
        )

    async def _activate(self, name: str) -> ToolsetResult:
        try:
            tools = await self._resolver.resolve_tools_for_toolsets([name], self._context)
            registered = self._register_tools(name, tools)
            self._active[name] = None
        except Exception as e:
            self._logger.error(f"Failed to enable toolset '{name}': {e}")
            return ToolsetResult.failure(name, f"Failed to enable toolset '{name}': {e}", "E_INTERNAL")
        finally:
            self._in_flight.pop(name, None)

        self._logger.info(f"Toolset '{name}' enabled, registered {registered} of {len(tools)} tools")
        await self._notify_tools_list_changed()
        return ToolsetResult(
            name=name,
            success=True,
            message=f"Toolset '{name}' enabled successfully. Registered {registered} tools.",
            registered_count=registered,
        )

    def _register_tools(self, toolset_key: str, tools: list[ToolDefinition]) -> int:
        registered = 0
        for tool in tools:
            safe_name = self._registry.get_safe_name(toolset_key, tool.name)
            if self._registry.has(safe_name):
                self._logger.debug(f"Tool '{safe_name}' already registered, skipping")
                continue
            try:
                self._surface.register(
                    safe_name, tool.description, tool.input_schema, tool.annotations, tool.handler
                )
            except ToolNameConflictError as e:
                self._logger.warning(f"Skipping tool '{safe_name}' for toolset '{toolset_key}': {e.message}")
                continue
            self._registry.add_for_toolset(toolset_key, safe_name)
            registered += 1
        return registered

    def _check_exposure_policy(self, name: str) -> ToolsetResult | None:
        policy = self._exposure_policy
        if policy is None:
            return None
        if policy.allowlist is not None and name not in policy.allowlist:
            return ToolsetResult.failure(name, f"Toolset '{name}' is not allowed by policy.")
        if policy.denylist is not None and name in policy.denylist:
            return ToolsetResult.failure(name, f"Toolset '{name}' is denied by policy.")
        if policy.max_active_toolsets is not None:
            # In-flight activations count so concurrent enables cannot overshoot the limit
            if len(self._active) + len(self._in_flight) + 1 > policy.max_active_toolsets:
                if policy.on_limit_exceeded is not None:
                    try:
                        policy.on_limit_exceeded([name], self.get_active_toolsets())
                    except Exception as e:
                        self._logger.warning(f"on_limit_exceeded callback failed: {e}")
                return ToolsetResult.failure(
                    name,
                    f"Activation exceeds maxActiveToolsets ({policy.max_active_toolsets}).",
                    "E_POLICY_MAX_ACTIVE",
                )
        return None

    async def _notify_tools_list_changed(self) -> None:
        if self._on_tools_list_changed is None:
            return
        try:
            result = self._on_tools_list_changed()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._logger.warning(f"Failed to send tool list change notification: {e}")

    def _active_summary(self) -> str:
        return ", ".join(self._active) or "none"
