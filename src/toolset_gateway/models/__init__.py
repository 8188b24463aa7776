# Data models
# Pydantic models shared by the services and the HTTP API

from .permissions import ClientCacheConfig, PermissionConfig, PermissionConfigBuilder
from .toolset import (
    RESERVED_TOOLSET_KEYS,
    BatchResult,
    ExposurePolicy,
    Mode,
    ModuleLoader,
    StartupConfig,
    ToolDefinition,
    ToolsetCatalog,
    ToolsetDefinition,
    ToolsetNameValidation,
    ToolsetResult,
    ToolsetStatus,
)

__all__ = [
    "RESERVED_TOOLSET_KEYS",
    "BatchResult",
    "ClientCacheConfig",
    "ExposurePolicy",
    "Mode",
    "ModuleLoader",
    "PermissionConfig",
    "PermissionConfigBuilder",
    "StartupConfig",
    "ToolDefinition",
    "ToolsetCatalog",
    "ToolsetDefinition",
    "ToolsetNameValidation",
    "ToolsetResult",
    "ToolsetStatus",
]
