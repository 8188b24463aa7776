"""Permission and client-cache configuration models.

A ``PermissionConfig`` is a plain validated struct. ``PermissionConfigBuilder``
only accumulates fields and hands them to ``build()``, which validates.
"""

from collections.abc import Awaitable, Callable
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ConfigurationError

DEFAULT_PERMISSION_HEADER = "mcp-toolset-permissions"

PermissionSource = Literal["headers", "config"]

# Sync or async callback from client id to permitted toolset keys
PermissionCallback = Callable[[str], list[str] | Awaitable[list[str]]]


class PermissionConfig(BaseModel):
    """Where a client's permitted toolsets come from."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: PermissionSource
    header_name: str = DEFAULT_PERMISSION_HEADER
    static_map: dict[str, list[str]] | None = None
    resolver: PermissionCallback | None = None
    default_permissions: list[str] | None = None

    @classmethod
    def builder(cls) -> "PermissionConfigBuilder":
        return PermissionConfigBuilder()


class ClientCacheConfig(BaseModel):
    """Bounds for the per-client resource cache."""

    max_size: int = Field(default=1000, gt=0)
    ttl_seconds: float = Field(default=60 * 60, gt=0)
    prune_interval_seconds: float = Field(default=10 * 60, gt=0)


def validate_permission_config(config: PermissionConfig) -> None:
    """Raise ConfigurationError if the permission configuration cannot work."""
    if config is None:
        raise ConfigurationError("Permission configuration is required")

    if config.source not in ("headers", "config"):
        raise ConfigurationError(
            f'Invalid permission source: "{config.source}". Must be either "headers" or "config"'
        )

    if config.source == "config" and not (
        config.static_map is not None
        or config.resolver is not None
        or config.default_permissions is not None
    ):
        raise ConfigurationError(
            "Config-based permissions require at least one of: staticMap, resolver or defaultPermissions"
        )

    if not config.header_name or not config.header_name.strip():
        raise ConfigurationError("headerName must be a non-empty string")


class PermissionConfigBuilder:
    """Fluent assembly of a PermissionConfig."""

    def __init__(self) -> None:
        self._fields: dict[str, object] = {}

    def source(self, value: PermissionSource) -> "PermissionConfigBuilder":
        self._fields["source"] = value
        return self

    def header_name(self, value: str) -> "PermissionConfigBuilder":
        self._fields["header_name"] = value
        return self

    def static_map(self, value: dict[str, list[str]]) -> "PermissionConfigBuilder":
        self._fields["static_map"] = value
        return self

    def resolver(self, value: PermissionCallback) -> "PermissionConfigBuilder":
        self._fields["resolver"] = value
        return self

    def default_permissions(self, value: list[str]) -> "PermissionConfigBuilder":
        self._fields["default_permissions"] = value
        return self

    def build(self) -> PermissionConfig:
        if "source" not in self._fields:
            raise ConfigurationError('Permission source must be either "headers" or "config"')
        try:
            config = PermissionConfig(**self._fields)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid permission configuration: {e}") from e
        validate_permission_config(config)
        return config
