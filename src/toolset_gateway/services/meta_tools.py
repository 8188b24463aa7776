# Meta tools
# Built-in tools that let a client inspect and (in DYNAMIC mode) change toolset activation

import json
from typing import Any

from ..models.toolset import Mode
from .mcp_surface import ToolRegistrationSurface
from .toolset_manager import DynamicToolManager

META_TOOL_NAMES = ("enable_toolset", "disable_toolset", "list_toolsets", "describe_toolset", "list_tools")

_NAME_SCHEMA = {
    "type": "object",
    "properties": {"name": {"type": "string", "description": "Toolset name"}},
    "required": ["name"],
}
_EMPTY_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}

_MUTATING = {"destructiveHint": True, "idempotentHint": True}
_READ_ONLY = {"readOnlyHint": True, "idempotentHint": True}


def register_meta_tools(
    surface: ToolRegistrationSurface,
    manager: DynamicToolManager,
    mode: Mode = Mode.DYNAMIC,
) -> list[str]:
    """Register the meta tools for ``mode`` on ``surface`` and return their names.

    DYNAMIC registers all five; STATIC only ``list_tools`` since toolsets are
    fixed at startup.
    """
    registered: list[str] = []

    if mode == Mode.DYNAMIC:

        async def enable_toolset(args: dict[str, Any]) -> str:
            result = await manager.enable_toolset(args.get("name"))
            return _dump(result.model_dump(exclude_none=True))

        async def disable_toolset(args: dict[str, Any]) -> str:
            result = await manager.disable_toolset(args.get("name"))
            return _dump(result.model_dump(exclude_none=True))

        def list_toolsets(args: dict[str, Any]) -> str:
            by_toolset = manager.get_status().toolset_to_tools
            items = [_describe(manager, key, by_toolset) for key in manager.get_available_toolsets()]
            return _dump({"toolsets": items})

        def describe_toolset(args: dict[str, Any]) -> str:
            name = args.get("name")
            if not isinstance(name, str) or manager.get_toolset_definition(name) is None:
                return _dump({"error": f"Unknown toolset '{name}'"})
            return _dump(_describe(manager, name, manager.get_status().toolset_to_tools))

        surface.register("enable_toolset", "Enable a toolset by name", _NAME_SCHEMA, _MUTATING, enable_toolset)
        surface.register(
            "disable_toolset", "Disable a toolset by name (state only)", _NAME_SCHEMA, _MUTATING, disable_toolset
        )
        surface.register(
            "list_toolsets",
            "List available toolsets with active status and definitions",
            _EMPTY_SCHEMA,
            _READ_ONLY,
            list_toolsets,
        )
        surface.register(
            "describe_toolset",
            "Describe a toolset with definition, active status and tools",
            _NAME_SCHEMA,
            _READ_ONLY,
            describe_toolset,
        )
        registered += ["enable_toolset", "disable_toolset", "list_toolsets", "describe_toolset"]

    def list_tools(args: dict[str, Any]) -> str:
        status = manager.get_status()
        return _dump({"tools": status.tools, "toolsetToTools": status.toolset_to_tools})

    surface.register(
        "list_tools", "List currently registered tool names (best effort)", _EMPTY_SCHEMA, _READ_ONLY, list_tools
    )
    registered.append("list_tools")
    return registered


def _describe(manager: DynamicToolManager, key: str, by_toolset: dict[str, list[str]]) -> dict[str, Any]:
    definition = manager.get_toolset_definition(key)
    return {
        "key": key,
        "active": manager.is_active(key),
        "definition": (
            {
                "name": definition.name,
                "description": definition.description,
                "modules": list(definition.modules),
                "decisionCriteria": definition.decision_criteria,
            }
            if definition
            else None
        ),
        "tools": by_toolset.get(key, []),
    }


def _dump(payload: Any) -> str:
    return json.dumps(payload)
