"""Exception hierarchy for the toolset gateway."""

from typing import Any, Literal, Optional

ToolingErrorCode = Literal[
    "E_VALIDATION",
    "E_POLICY_MAX_ACTIVE",
    "E_TOOL_NAME_CONFLICT",
    "E_NOTIFY_FAILED",
    "E_INTERNAL",
    "E_CONFIG",
    "E_PERMISSION",
]


class ToolingError(Exception):
    """Base exception class for toolset-related errors."""
    def __init__(self, message: str, code: ToolingErrorCode = "E_INTERNAL", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ToolingError):
    """Invalid catalog or server configuration. Raised at construction time only."""
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "E_CONFIG", details)


class ToolNameConflictError(ToolingError):
    """A tool name was registered twice on the same surface."""
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "E_TOOL_NAME_CONFLICT", details)


class PermissionDeniedError(ToolingError):
    """None of the toolsets a client is permitted to use could be enabled."""
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "E_PERMISSION", details)
