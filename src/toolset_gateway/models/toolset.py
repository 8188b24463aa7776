# Toolset domain models
# Catalog, tool definitions and the result/status shapes returned by the manager

from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import ToolingErrorCode

RESERVED_TOOLSET_KEYS = ("_meta",)

ToolHandler = Callable[[dict[str, Any]], Any]


class Mode(str, Enum):
    """Operating mode of an orchestrator."""

    DYNAMIC = "DYNAMIC"
    STATIC = "STATIC"


class ToolDefinition(BaseModel):
    """A single callable tool contributed by a toolset or a module loader."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Short tool name, unique within its toolset")
    description: str = Field(..., description="Tool description for LLM consumption")
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object"}, description="JSON Schema for tool inputs"
    )
    annotations: dict[str, Any] | None = Field(default=None, description="MCP tool annotation hints")
    handler: ToolHandler = Field(..., description="Sync or async callable receiving the argument dict")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure the short name is not blank."""
        if not v.strip():
            raise ValueError("Tool name cannot be empty")
        return v.strip()


class ToolsetDefinition(BaseModel):
    """Catalog entry describing a group of tools activated as a unit."""

    name: str = Field(..., description="Human-readable toolset name")
    description: str = Field(..., description="What the toolset is for")
    tools: list[ToolDefinition] = Field(default_factory=list, description="Inline tools")
    modules: list[str] = Field(default_factory=list, description="Lazy module loader keys")
    decision_criteria: str | None = Field(
        default=None, description="Hint for clients deciding whether to enable the toolset"
    )


ToolsetCatalog = Mapping[str, ToolsetDefinition]

# Receives the opaque orchestrator context; returns (or resolves to) a list of ToolDefinition
ModuleLoader = Callable[[Any], Awaitable[list[ToolDefinition]] | list[ToolDefinition]]


class ExposurePolicy(BaseModel):
    """Limits on which toolsets may be activated and how their tools are named."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_active_toolsets: int | None = Field(default=None, ge=0)
    namespace_tools_with_set_key: bool = True
    allowlist: list[str] | None = None
    denylist: list[str] | None = None
    on_limit_exceeded: Callable[[list[str], list[str]], None] | None = None


class StartupConfig(BaseModel):
    """Initial mode and toolsets of an orchestrator."""

    mode: Mode = Mode.DYNAMIC
    toolsets: list[str] | str | None = Field(
        default=None, description='Toolset keys to enable at startup, or "ALL"'
    )


class ToolsetNameValidation(BaseModel):
    """Outcome of validating a toolset name against the catalog."""

    is_valid: bool
    sanitized: str | None = None
    error: str | None = None


class ToolsetResult(BaseModel):
    """Result of enabling or disabling one toolset."""

    name: str
    success: bool
    message: str
    registered_count: int = 0
    error: str | None = None
    code: ToolingErrorCode | None = None

    @classmethod
    def failure(cls, name: str, message: str, code: ToolingErrorCode = "E_VALIDATION") -> "ToolsetResult":
        return cls(name=name, success=False, message=message, error=message, code=code)


class BatchResult(BaseModel):
    """Per-toolset results of a batch enable."""

    success: bool
    results: list[ToolsetResult] = Field(default_factory=list)
    message: str


class ToolsetStatus(BaseModel):
    """Snapshot of a manager's toolsets and its full registration history."""

    model_config = ConfigDict(populate_by_name=True)

    available_toolsets: list[str] = Field(default_factory=list, alias="availableToolsets")
    active_toolsets: list[str] = Field(default_factory=list, alias="activeToolsets")
    total_toolsets: int = Field(default=0, alias="totalToolsets")
    active_count: int = Field(default=0, alias="activeCount")
    tools: list[str] = Field(default_factory=list)
    toolset_to_tools: dict[str, list[str]] = Field(default_factory=dict, alias="toolsetToTools")
