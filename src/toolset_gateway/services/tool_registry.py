"""Bookkeeping of namespaced tool names registered by a toolset manager."""

from ..errors import ToolNameConflictError


class ToolRegistry:
    """Tracks every tool name ever registered and which toolset registered it."""

    def __init__(self, namespace_with_toolset: bool = True) -> None:
        self.namespace_with_toolset = namespace_with_toolset
        self._names: dict[str, str] = {}
        self._toolset_to_names: dict[str, list[str]] = {}

    def get_safe_name(self, toolset_key: str, tool_name: str) -> str:
        """Return the ``<toolset>.<tool>`` name used as the uniqueness key."""
        if not self.namespace_with_toolset:
            return tool_name
        if tool_name.startswith(f"{toolset_key}."):
            return tool_name
        return f"{toolset_key}.{tool_name}"

    def has(self, name: str) -> bool:
        return name in self._names

    def add_for_toolset(self, toolset_key: str, name: str) -> None:
        if name in self._names:
            raise ToolNameConflictError(
                f"Tool name collision: '{name}' already registered by toolset '{self._names[name]}'",
                {"tool": name, "toolset": self._names[name]},
            )
        self._names[name] = toolset_key
        self._toolset_to_names.setdefault(toolset_key, []).append(name)

    def names(self) -> list[str]:
        return list(self._names)

    def list_by_toolset(self) -> dict[str, list[str]]:
        return {key: list(names) for key, names in self._toolset_to_names.items()}
