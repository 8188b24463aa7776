"""Configuration management for the toolset gateway"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.permissions import DEFAULT_PERMISSION_HEADER, ClientCacheConfig, PermissionConfig
from .models.toolset import Mode, StartupConfig


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8001
    log_level: str = "INFO"

    # Toolsets
    mode: Mode = Mode.DYNAMIC
    startup_toolsets: str | None = None  # comma separated keys, or ALL

    # Per-client permissions
    permissions_from_headers: bool = False
    permission_header: str = DEFAULT_PERMISSION_HEADER

    # Per-client cache
    client_cache_max_size: int = 1000
    client_cache_ttl_seconds: float = 60 * 60
    client_cache_prune_interval_seconds: float = 10 * 60

    model_config = SettingsConfigDict(
        env_prefix="TOOLSET_GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def cache_config(self) -> ClientCacheConfig:
        return ClientCacheConfig(
            max_size=self.client_cache_max_size,
            ttl_seconds=self.client_cache_ttl_seconds,
            prune_interval_seconds=self.client_cache_prune_interval_seconds,
        )

    def permission_config(self) -> PermissionConfig:
        return PermissionConfig(source="headers", header_name=self.permission_header)

    def startup_config(self) -> StartupConfig:
        """Startup mode and toolsets; ``ALL`` enables the whole catalog"""
        raw = (self.startup_toolsets or "").strip()
        if not raw:
            return StartupConfig(mode=self.mode)
        if raw.upper() == "ALL":
            return StartupConfig(mode=self.mode, toolsets="ALL")
        return StartupConfig(mode=self.mode, toolsets=[part.strip() for part in raw.split(",") if part.strip()])


# Global settings instance
settings = Settings()


def get_config() -> Settings:
    """Get the global configuration instance."""
    return settings
